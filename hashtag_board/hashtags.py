from __future__ import annotations

import re
import string
from dataclasses import dataclass
from typing import Any, Sequence

HASHTAG_MARKER = "#"
HASHTAG_MAX_LENGTH = 50
HASHTAG_MAX_COUNT = 10

# A tag runs until whitespace, another marker, or ASCII / full-width punctuation.
_HASHTAG_RE = re.compile(
    r"#([^\s#.,!?;:()\[\]{}「」『』。、！？；：（）［］｛｝]+)"
)

_ASCII_LOWER = str.maketrans(string.ascii_uppercase, string.ascii_lowercase)


@dataclass(frozen=True)
class HashtagValidation:
    is_valid: bool
    errors: Sequence[str]


@dataclass(frozen=True)
class SingleHashtagValidation:
    is_valid: bool
    error: str | None = None


@dataclass(frozen=True)
class ProcessedHashtags:
    hashtags: Sequence[str]
    is_valid: bool
    errors: Sequence[str]


@dataclass(frozen=True)
class TextSegment:
    text: str
    hashtag: str | None = None

    @property
    def is_hashtag(self) -> bool:
        return self.hashtag is not None


def _is_list(value: Any) -> bool:
    return isinstance(value, (list, tuple))


def ascii_lower(value: str) -> str:
    """Lower-case A-Z only; every other character is returned as-is."""
    return value.translate(_ASCII_LOWER)


def normalize_hashtag(value: Any) -> str:
    if not isinstance(value, str) or not value:
        return ""

    # Repeated markers are stripped too so normalizing twice changes nothing.
    tag = value.strip()
    while tag.startswith(HASHTAG_MARKER):
        tag = tag[len(HASHTAG_MARKER) :].strip()
    return ascii_lower(tag)


def normalize_hashtags(values: Any) -> list[str]:
    """
    Normalize each entry, drop empty results, and de-duplicate.

    The first occurrence of a normalized value wins; non-list input yields [].
    """
    if not _is_list(values):
        return []

    out: list[str] = []
    seen: set[str] = set()
    for item in values:
        tag = normalize_hashtag(item)
        if not tag or tag in seen:
            continue
        seen.add(tag)
        out.append(tag)
    return out


def extract_hashtags(text: Any) -> list[str]:
    """
    Extract normalized hashtags from free-form text in order of first appearance.

    Length is not enforced here; see validate_hashtags.
    """
    if not isinstance(text, str) or not text:
        return []

    return normalize_hashtags(_HASHTAG_RE.findall(text))


def merge_hashtags(extracted: Any, explicit: Any) -> list[str]:
    """Combine text-extracted and explicitly chosen hashtags, extracted first."""
    combined: list[Any] = []
    if _is_list(extracted):
        combined.extend(extracted)
    if _is_list(explicit):
        combined.extend(explicit)
    return normalize_hashtags(combined)


def _entry_error(value: Any, *, label: str, max_length: int) -> str | None:
    if not isinstance(value, str):
        return f"{label} must be a string"
    if len(value) == 0:
        return f"{label} cannot be empty"
    if len(value) > max_length:
        return f"{label} must be at most {max_length} characters"
    return None


def validate_hashtags(
    values: Any,
    *,
    max_count: int = HASHTAG_MAX_COUNT,
    max_length: int = HASHTAG_MAX_LENGTH,
) -> HashtagValidation:
    """
    Check a hashtag list against count and per-entry length limits.

    All problems are reported; entries are numbered from 1 in messages.
    """
    if not _is_list(values):
        return HashtagValidation(is_valid=False, errors=["Hashtags must be a list"])

    errors: list[str] = []
    if len(values) > max_count:
        errors.append(f"At most {max_count} hashtags are allowed")

    for index, item in enumerate(values, start=1):
        err = _entry_error(item, label=f"Hashtag {index}", max_length=max_length)
        if err:
            errors.append(err)

    return HashtagValidation(is_valid=not errors, errors=errors)


def validate_hashtag(
    value: Any, *, max_length: int = HASHTAG_MAX_LENGTH
) -> SingleHashtagValidation:
    err = _entry_error(value, label="Hashtag", max_length=max_length)
    if err:
        return SingleHashtagValidation(is_valid=False, error=err)
    return SingleHashtagValidation(is_valid=True)


def check_custom_hashtag(
    candidate: Any,
    selected: Sequence[str] | None = None,
    extracted: Sequence[str] | None = None,
    *,
    max_count: int = HASHTAG_MAX_COUNT,
    max_length: int = HASHTAG_MAX_LENGTH,
) -> SingleHashtagValidation:
    """
    Check a hashtag typed into an "add custom hashtag" control.

    A blank candidate is invalid but carries no message, so a form can stay quiet
    until the user types something.
    """
    tag = candidate.strip() if isinstance(candidate, str) else ""
    if not tag:
        return SingleHashtagValidation(is_valid=False)

    chosen = list(selected or ())
    from_text = list(extracted or ())

    if tag in set(chosen):
        return SingleHashtagValidation(
            is_valid=False, error="This hashtag is already selected"
        )
    if tag in set(from_text):
        return SingleHashtagValidation(
            is_valid=False, error="This hashtag is already extracted from the text"
        )
    if len(chosen) + len(from_text) + 1 > max_count:
        return SingleHashtagValidation(
            is_valid=False, error=f"At most {max_count} hashtags are allowed"
        )

    return validate_hashtag(tag, max_length=max_length)


def process_hashtags_from_text(
    text: Any,
    *,
    max_count: int = HASHTAG_MAX_COUNT,
    max_length: int = HASHTAG_MAX_LENGTH,
) -> ProcessedHashtags:
    hashtags = extract_hashtags(text)
    result = validate_hashtags(hashtags, max_count=max_count, max_length=max_length)
    return ProcessedHashtags(
        hashtags=hashtags,
        is_valid=result.is_valid,
        errors=result.errors,
    )


def split_hashtag_segments(text: Any) -> list[TextSegment]:
    """
    Split text into plain and hashtag segments for highlighting.

    Joining every segment's text gives back the input. Hashtag segments keep the
    raw `#tag` text plus the marker-stripped, un-normalized tag.
    """
    if not isinstance(text, str) or not text:
        return []

    segments: list[TextSegment] = []
    last = 0
    for match in _HASHTAG_RE.finditer(text):
        start, end = match.span()
        if start > last:
            segments.append(TextSegment(text=text[last:start]))
        segments.append(TextSegment(text=match.group(0), hashtag=match.group(1)))
        last = end

    if last < len(text):
        segments.append(TextSegment(text=text[last:]))
    return segments
