"""
Client IP resolution from request headers.

``resolve_client_ip`` works on a plain header mapping so the enrichment
pipeline can stay free of request objects.
"""

from __future__ import annotations

from typing import Mapping, Optional


def first_forwarded_ip(value: Optional[str]) -> Optional[str]:
    """Return the first address of a comma-separated ``X-Forwarded-For`` value."""
    if not value or not isinstance(value, str):
        return None
    client_ip = value.split(",")[0].strip()
    return client_ip or None


def resolve_client_ip(
    headers: Mapping[str, str], remote_addr: Optional[str] = None
) -> Optional[str]:
    """Extract the originating client IP.

    ``X-Forwarded-For`` (first hop) wins over ``X-Real-IP``, which wins over
    the direct connection address.

    Returns:
        The IP string, or ``None`` if none can be found.
    """
    for header in ("x-forwarded-for", "x-real-ip"):
        client_ip = first_forwarded_ip(headers.get(header))
        if client_ip:
            return client_ip
    return remote_addr or None

