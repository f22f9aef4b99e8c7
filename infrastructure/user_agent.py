"""User-Agent parsing on top of the ``user-agents`` library.

The library wraps ua-parser and adds the mobile/tablet classification the
enrichment pipeline needs. ua-parser reports unrecognised families as
``"Other"``; those are surfaced as ``"Unknown"`` to match the defaults used
for client-supplied data.
"""

from __future__ import annotations

from dataclasses import dataclass

from user_agents import parse as parse_user_agent

UNKNOWN = "Unknown"


@dataclass(frozen=True)
class ParsedUserAgent:
    browser: str = UNKNOWN
    browser_version: str = UNKNOWN
    os: str = UNKNOWN
    os_version: str = UNKNOWN
    device_type: str = "desktop"
    device_model: str = UNKNOWN
    is_mobile: bool = False
    is_tablet: bool = False

    @property
    def is_desktop(self) -> bool:
        return not self.is_mobile and not self.is_tablet


def _known(value: str | None) -> str:
    if not value or value == "Other":
        return UNKNOWN
    return value


class UserAgentParser:
    """Callable that turns a ``User-Agent`` header into a ParsedUserAgent."""

    def __call__(self, user_agent: str) -> ParsedUserAgent:
        ua = parse_user_agent(user_agent)

        is_tablet = bool(ua.is_tablet)
        is_mobile = bool(ua.is_mobile) and not is_tablet
        if is_tablet:
            device_type = "tablet"
        elif is_mobile:
            device_type = "mobile"
        else:
            device_type = "desktop"

        return ParsedUserAgent(
            browser=_known(ua.browser.family),
            browser_version=ua.browser.version_string or UNKNOWN,
            os=_known(ua.os.family),
            os_version=ua.os.version_string or UNKNOWN,
            device_type=device_type,
            device_model=_known(ua.device.model),
            is_mobile=is_mobile,
            is_tablet=is_tablet,
        )
