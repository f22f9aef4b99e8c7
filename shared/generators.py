"""
Slug generation.

Slugs use the URL-safe alphabet ``A-Za-z0-9_-`` and a cryptographically
secure source, so generated slugs always pass ``validate_slug``.
"""

from __future__ import annotations

import secrets
import string

SLUG_ALPHABET = string.ascii_letters + string.digits + "_-"

LINK_SLUG_LENGTH = 6
FILE_SLUG_LENGTH = 8


def generate_slug(length: int = LINK_SLUG_LENGTH) -> str:
    """Generate a random URL-safe slug of *length* characters."""
    return "".join(secrets.choice(SLUG_ALPHABET) for _ in range(length))
