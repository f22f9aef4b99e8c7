"""
Content hashing and password comparison helpers.
"""

from __future__ import annotations

import hashlib
import hmac
from typing import Optional


def compute_etag(data: bytes) -> str:
    """Return the hex MD5 digest of *data*, used as the file's strong ETag.

    The value is stored unquoted; HTTP headers carry it as ``"<etag>"``.
    """
    return hashlib.md5(data).hexdigest()


def passwords_match(stored: Optional[str], supplied: Optional[str]) -> bool:
    """Compare a stored plaintext password with the supplied one.

    Passwords are persisted in plaintext (see DESIGN.md); the comparison is
    constant-time. A missing supplied value never matches.
    """
    if stored is None:
        return True
    if supplied is None:
        return False
    return hmac.compare_digest(stored.encode("utf-8"), supplied.encode("utf-8"))
