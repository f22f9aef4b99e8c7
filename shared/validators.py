"""
Input validators and normalisers: framework-agnostic pure functions.
"""

from __future__ import annotations

import re

SLUG_PATTERN = re.compile(r"^[A-Za-z0-9_-]+$")


def validate_slug(slug: str) -> bool:
    """Return True if *slug* is non-empty and only uses ``A-Za-z0-9_-``."""
    return bool(slug) and bool(SLUG_PATTERN.match(slug))


def normalize_url(url: str) -> str:
    """Prefix ``https://`` when *url* carries no http(s) scheme."""
    url = url.strip()
    if url.startswith("http://") or url.startswith("https://"):
        return url
    return "https://" + url


def is_image_mime(mime_type: str) -> bool:
    return mime_type.startswith("image/")
