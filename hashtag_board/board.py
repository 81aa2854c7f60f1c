from __future__ import annotations

from typing import Protocol, Sequence

from .config_schema import LimitsConfig
from .errors import AuthError, PostError
from .hashtags import extract_hashtags, merge_hashtags, validate_hashtags
from .post import NewPost, Post, User
from .run_log import RunLogger
from .storage import BoardStore

_NICKNAME_MAX_SUFFIX = 100


class AuthProvider(Protocol):
    def current_user(self) -> User | None: ...

    def sign_in_anonymously(self) -> User: ...

    def set_nickname(self, name: str) -> User: ...


class PostSource(Protocol):
    def list_posts(self, *, limit: int | None = None) -> list[Post]: ...


class PostSink(Protocol):
    def add_post(
        self,
        *,
        text: str,
        hashtags: Sequence[str],
        nickname: str | None = None,
        user_id: str | None = None,
        post_id: str | None = None,
        created_at: str | None = None,
    ) -> Post: ...


def validate_nickname(name: str, *, max_chars: int = 20) -> str:
    nickname = (name or "").strip()
    if not nickname:
        raise AuthError("Nickname is required")
    if len(nickname) > max_chars:
        raise AuthError(f"Nickname must be at most {max_chars} characters")
    return nickname


class LocalAuth:
    """
    Anonymous auth backed by the local board store.

    Nicknames are unique; a taken nickname gets a numeric suffix starting at 2.
    """

    def __init__(self, store: BoardStore, *, nickname_max_chars: int = 20) -> None:
        self._store = store
        self._nickname_max_chars = int(nickname_max_chars)
        self._user: User | None = None

    def current_user(self) -> User | None:
        return self._user

    def sign_in_anonymously(self) -> User:
        self._user = self._store.create_user()
        return self._user

    def resume(self, uid: str) -> User:
        user = self._store.get_user(uid)
        if user is None:
            raise AuthError(f"Unknown user: {uid}")
        self._user = user
        return user

    def set_nickname(self, name: str) -> User:
        if self._user is None:
            raise AuthError("Not signed in")

        nickname = validate_nickname(name, max_chars=self._nickname_max_chars)
        final = self._available_nickname(nickname)
        self._user = self._store.set_user_nickname(self._user.uid, final)
        return self._user

    def _available_nickname(self, nickname: str) -> str:
        uid = self._user.uid if self._user is not None else None
        if not self._store.nickname_taken(nickname, exclude_uid=uid):
            return nickname

        for counter in range(2, _NICKNAME_MAX_SUFFIX + 1):
            suffix = str(counter)
            # The suffixed name still has to fit the nickname limit.
            base = nickname[: max(0, self._nickname_max_chars - len(suffix))].rstrip()
            candidate = f"{base}{suffix}"
            if not self._store.nickname_taken(candidate, exclude_uid=uid):
                return candidate

        raise AuthError(f"Could not find an available nickname for {nickname!r}")


def create_post(
    new_post: NewPost,
    *,
    auth: AuthProvider,
    sink: PostSink,
    limits: LimitsConfig | None = None,
    logger: RunLogger | None = None,
) -> Post:
    """
    Validate a new post, attach its hashtags, and hand it to `sink`.

    Hashtags found in the text come first, followed by the explicit ones; the
    combined list must pass validate_hashtags.
    """
    lim = limits or LimitsConfig()

    user = auth.current_user()
    if user is None or not user.nickname:
        raise PostError("Sign in and set a nickname before posting")

    text = (new_post.text or "").strip()
    if not text:
        raise PostError("Post text is required")
    if len(new_post.text) > lim.post_max_chars:
        raise PostError(f"Post text must be at most {lim.post_max_chars} characters")

    hashtags = merge_hashtags(extract_hashtags(text), list(new_post.hashtags or ()))
    result = validate_hashtags(
        hashtags,
        max_count=lim.hashtag_max_count,
        max_length=lim.hashtag_max_length,
    )
    if not result.is_valid:
        if logger is not None:
            logger.warning("post_rejected", user_id=user.uid, errors=list(result.errors))
        raise PostError("; ".join(result.errors))

    post = sink.add_post(
        text=text,
        hashtags=hashtags,
        nickname=user.nickname,
        user_id=user.uid,
    )

    if logger is not None:
        logger.info(
            "post_created",
            post_id=post.post_id,
            user_id=user.uid,
            hashtags=list(post.hashtags),
        )
    return post
