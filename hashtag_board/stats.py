from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Iterable, Mapping, Sequence, TypeVar

from .hashtags import ascii_lower

P = TypeVar("P")


@dataclass(frozen=True)
class HashtagStat:
    hashtag: str
    count: int
    posts: Sequence[str]


@dataclass(frozen=True)
class HashtagCount:
    hashtag: str
    count: int


@dataclass(frozen=True)
class TrendSummary:
    total_hashtags: int
    unique_hashtags: int
    average_hashtags_per_post: float
    most_popular: str | None
    least_used: Sequence[str]


def _iter_posts(posts: Any) -> Sequence[Any]:
    """Posts as a sequence; anything that is not a collection of posts is empty."""
    if isinstance(posts, (list, tuple)):
        return posts
    if posts is None or isinstance(posts, (str, bytes, Mapping)):
        return ()
    if isinstance(posts, Iterable):
        return list(posts)
    return ()


def _coerce_limit(limit: Any, default: int) -> int:
    if isinstance(limit, bool) or not isinstance(limit, int):
        return default
    return limit


def _field(post: Any, *names: str) -> Any:
    if isinstance(post, Mapping):
        for name in names:
            if name in post:
                return post[name]
        return None
    for name in names:
        value = getattr(post, name, None)
        if value is not None:
            return value
    return None


def _post_id(post: Any) -> str:
    value = _field(post, "post_id", "id")
    return "" if value is None else str(value)


def _post_hashtags(post: Any) -> Sequence[Any] | None:
    value = _field(post, "hashtags")
    if isinstance(value, (list, tuple)):
        return value
    return None


def _group_key(tag: str) -> str:
    return ascii_lower(tag).strip()


def _match_key(tag: str) -> str:
    return tag.lower().strip()


def _as_counts(stats: Sequence[HashtagStat]) -> list[HashtagCount]:
    return [HashtagCount(hashtag=s.hashtag, count=s.count) for s in stats]


def calculate_hashtag_stats(posts: Sequence[Any]) -> list[HashtagStat]:
    """
    Count hashtag occurrences across posts, most used first.

    Tags are grouped case-insensitively (ASCII only) and displayed with the casing
    first seen. Every occurrence counts, so a tag repeated on one post counts twice.
    Ties keep the order in which tags were first seen. Malformed entries are skipped.
    """
    counts: dict[str, int] = {}
    display: dict[str, str] = {}
    post_ids: dict[str, list[str]] = {}

    for post in _iter_posts(posts):
        tags = _post_hashtags(post)
        if tags is None:
            continue

        pid = _post_id(post)
        for tag in tags:
            if not isinstance(tag, str) or not tag.strip():
                continue

            key = _group_key(tag)
            if key not in counts:
                counts[key] = 0
                display[key] = tag
                post_ids[key] = []
            counts[key] += 1
            post_ids[key].append(pid)

    stats = [
        HashtagStat(hashtag=display[key], count=counts[key], posts=tuple(post_ids[key]))
        for key in counts
    ]
    # sorted() is stable, so equal counts stay in first-seen order.
    return sorted(stats, key=lambda s: s.count, reverse=True)


def get_popular_hashtags(posts: Sequence[Any], limit: int = 10) -> list[HashtagCount]:
    limit = _coerce_limit(limit, 10)
    if limit <= 0:
        return []
    return _as_counts(calculate_hashtag_stats(posts)[:limit])


def recent_popular_hashtags(
    posts: Sequence[Any], limit: int = 10, *, window: int = 100
) -> list[HashtagCount]:
    """Popular hashtags over the last `window` posts only."""
    items = list(_iter_posts(posts))
    window = _coerce_limit(window, 100)
    if window > 0 and len(items) > window:
        items = items[-window:]
    return get_popular_hashtags(items, limit)


def filter_posts_by_hashtag(posts: Sequence[P], query: Any) -> Sequence[P]:
    """
    Keep posts with any hashtag containing `query`, case-insensitively.

    A blank query returns `posts` itself when it is a list or tuple.
    """
    items = _iter_posts(posts)
    if not isinstance(query, str) or not query.strip():
        return items

    needle = _match_key(query)
    out: list[P] = []
    for post in items:
        tags = _post_hashtags(post)
        if tags is None:
            continue
        if any(isinstance(tag, str) and needle in tag.lower() for tag in tags):
            out.append(post)
    return out


def analyze_hashtag_trends(posts: Sequence[Any]) -> TrendSummary:
    items = _iter_posts(posts)
    stats = calculate_hashtag_stats(items)
    total = sum(s.count for s in stats)

    tagged_posts = 0
    for post in items:
        tags = _post_hashtags(post)
        if tags:
            tagged_posts += 1

    return TrendSummary(
        total_hashtags=total,
        unique_hashtags=len(stats),
        average_hashtags_per_post=(total / tagged_posts) if tagged_posts else 0.0,
        most_popular=stats[0].hashtag if stats else None,
        least_used=[s.hashtag for s in stats if s.count == 1],
    )


def get_co_occurring_hashtags(posts: Sequence[Any], target: Any) -> list[HashtagCount]:
    """
    Count hashtags that appear on the same posts as `target`.

    Entries are keyed by the exact string on the post, so differently cased
    spellings of one tag are reported separately.
    """
    if not isinstance(target, str) or not target.strip():
        return []

    wanted = _match_key(target)
    counts: dict[str, int] = {}

    for post in _iter_posts(posts):
        tags = _post_hashtags(post)
        if tags is None:
            continue

        strings = [t for t in tags if isinstance(t, str)]
        if not any(_match_key(t) == wanted for t in strings):
            continue

        for tag in strings:
            if not tag.strip() or _match_key(tag) == wanted:
                continue
            counts[tag] = counts.get(tag, 0) + 1

    ranked = [HashtagCount(hashtag=tag, count=n) for tag, n in counts.items()]
    return sorted(ranked, key=lambda c: c.count, reverse=True)


def get_hashtag_suggestions(
    posts: Sequence[Any], query: Any, limit: int = 5
) -> list[HashtagCount]:
    limit = _coerce_limit(limit, 5)
    if not isinstance(query, str) or not query.strip():
        return get_popular_hashtags(posts, limit)
    if limit <= 0:
        return []

    needle = _match_key(query)
    matches = [s for s in calculate_hashtag_stats(posts) if needle in s.hashtag.lower()]
    return _as_counts(matches[:limit])


def search_hashtags(posts: Sequence[Any], query: Any) -> list[str]:
    """Distinct hashtag strings containing `query`, in first-seen order."""
    if not isinstance(query, str) or not query.strip():
        return []

    needle = query.lower()
    out: list[str] = []
    seen: set[str] = set()
    for post in _iter_posts(posts):
        for tag in _post_hashtags(post) or ():
            if not isinstance(tag, str) or tag in seen:
                continue
            seen.add(tag)
            if needle in tag.lower():
                out.append(tag)
    return out
