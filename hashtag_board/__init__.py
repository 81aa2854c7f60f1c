from __future__ import annotations

from .config import load_config
from .config_schema import AppConfig
from .errors import AuthError, ConfigError, PostError, StorageError
from .hashtags import (
    HASHTAG_MAX_COUNT,
    HASHTAG_MAX_LENGTH,
    extract_hashtags,
    normalize_hashtag,
    normalize_hashtags,
    process_hashtags_from_text,
    validate_hashtag,
    validate_hashtags,
)
from .post import Post
from .stats import (
    analyze_hashtag_trends,
    calculate_hashtag_stats,
    filter_posts_by_hashtag,
    get_co_occurring_hashtags,
    get_hashtag_suggestions,
    get_popular_hashtags,
)

__all__ = [
    "AppConfig",
    "AuthError",
    "ConfigError",
    "HASHTAG_MAX_COUNT",
    "HASHTAG_MAX_LENGTH",
    "Post",
    "PostError",
    "StorageError",
    "analyze_hashtag_trends",
    "calculate_hashtag_stats",
    "extract_hashtags",
    "filter_posts_by_hashtag",
    "get_co_occurring_hashtags",
    "get_hashtag_suggestions",
    "get_popular_hashtags",
    "load_config",
    "normalize_hashtag",
    "normalize_hashtags",
    "process_hashtags_from_text",
    "validate_hashtag",
    "validate_hashtags",
]
