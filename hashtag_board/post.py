from __future__ import annotations

from dataclasses import dataclass
from typing import Sequence


@dataclass(frozen=True)
class Post:
    """A stored board post. Never mutated after creation."""

    post_id: str
    text: str = ""
    nickname: str | None = None
    hashtags: Sequence[str] = ()
    # Opaque ordering key; ISO-8601 UTC in the local store.
    created_at: str | None = None
    user_id: str | None = None


@dataclass(frozen=True)
class NewPost:
    text: str
    hashtags: Sequence[str] = ()


@dataclass(frozen=True)
class User:
    uid: str
    nickname: str | None = None
