from __future__ import annotations


class ConfigError(RuntimeError):
    """Raised when configuration is missing or invalid."""


class StorageError(RuntimeError):
    """Raised when reading or writing board state in SQLite fails."""


class AuthError(RuntimeError):
    """Raised when sign-in or nickname registration fails."""


class PostError(RuntimeError):
    """Raised when a new post is rejected before it is stored."""
