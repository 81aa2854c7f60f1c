from __future__ import annotations

from typing import Any, Mapping

from .hashtags import normalize_hashtags
from .post import Post


def _coerce_str(value: Any) -> str | None:
    if isinstance(value, str):
        s = value.strip()
        return s if s else None
    return None


def _coerce_id(value: Any) -> str | None:
    if isinstance(value, str):
        v = value.strip()
        return v if v else None
    if isinstance(value, int) and not isinstance(value, bool):
        return str(value)
    return None


def _coerce_timestamp(value: Any) -> str | None:
    if isinstance(value, str):
        return _coerce_str(value)
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return str(value)
    return None


def convert_category_to_hashtags(category_id: Any) -> list[str]:
    """Turn a legacy single category into a one-element hashtag list."""
    if not isinstance(category_id, str):
        return []
    return normalize_hashtags([category_id.strip()])


def post_from_record(record: Mapping[str, Any]) -> Post | None:
    """
    Best-effort conversion of a stored post document into a Post.

    Documents written before hashtags existed carry a `categoryId` instead; that
    value becomes the post's only hashtag. Returns None when there is no id.
    """
    post_id = _coerce_id(record.get("id")) or _coerce_id(record.get("post_id"))
    if not post_id:
        return None

    raw_tags = record.get("hashtags")
    if isinstance(raw_tags, (list, tuple)):
        hashtags = tuple(raw_tags)
    else:
        category = record.get("categoryId")
        if category is None:
            category = record.get("category_id")
        hashtags = tuple(convert_category_to_hashtags(category))

    text = record.get("text")
    created_at = record.get("createdAt")
    if created_at is None:
        created_at = record.get("created_at")

    return Post(
        post_id=post_id,
        text=text if isinstance(text, str) else "",
        nickname=_coerce_str(record.get("nickname")),
        hashtags=hashtags,
        created_at=_coerce_timestamp(created_at),
        user_id=_coerce_id(record.get("userId")) or _coerce_id(record.get("user_id")),
    )
