"""Utilities for generating filesystem-friendly, length-limited slugs."""

from __future__ import annotations

import hashlib
import re
from typing import Pattern

_SLUG_PATTERN: Pattern[str] = re.compile(r"[^a-z0-9_.-]+")
_HYPHEN_COLLAPSE = re.compile(r"-{2,}")


def slugify(value: str | None, *, fallback: str = "run", max_length: int = 60) -> str:
    """Normalize ``value`` into a lowercase slug suitable for log file names."""
    slug = _HYPHEN_COLLAPSE.sub("-", _SLUG_PATTERN.sub("-", (value or "").strip().lower())).strip("-.")
    if not slug:
        slug = fallback
    if len(slug) <= max_length:
        return slug
    digest = hashlib.sha256(slug.encode("utf-8")).hexdigest()[:8]
    prefix = slug[: max(max_length - len(digest) - 1, 1)].rstrip("-")
    return f"{prefix}-{digest}"
