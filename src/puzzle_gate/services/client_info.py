"""Client network and device details extracted from HTTP requests."""

from __future__ import annotations

import re
from dataclasses import asdict, dataclass, field
from typing import Any

from starlette.requests import Request

from puzzle_gate.models.user import DEVICE_TYPE_MAX_LENGTH, IP_MAX_LENGTH

# Proxy headers checked in order of preference before the socket peer.
REAL_IP_HEADERS = (
    "x-real-ip",
    "x-forwarded-for",
    "cf-connecting-ip",
    "x-client-ip",
    "x-cluster-client-ip",
)

_TABLET_RE = re.compile(r"ipad|tablet|playbook|silk|(android(?!.*mobile))", re.IGNORECASE)
_MOBILE_RE = re.compile(r"mobi|iphone|ipod|android|blackberry|opera mini|iemobile", re.IGNORECASE)


@dataclass(frozen=True)
class ClientInfo:
    """Network and device details of the caller."""

    ip_address: str | None = None
    real_ip: str | None = None
    forwarded_for: str | None = None
    user_agent: str | None = None
    device_type: str = "unknown"
    language: str | None = None
    extra: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        """Return a JSON-serializable representation."""
        return asdict(self)


def detect_device_type(user_agent: str | None) -> str:
    """Classify a user agent as mobile, tablet, desktop or unknown."""
    if not user_agent:
        return "unknown"
    if _TABLET_RE.search(user_agent):
        return "tablet"
    if _MOBILE_RE.search(user_agent):
        return "mobile"
    return "desktop"


def clip(value: str | None, limit: int) -> str | None:
    """Cut a client-supplied value down to the width of its column."""
    if value is None:
        return None
    return value[:limit]


def _first_forwarded(value: str | None) -> str | None:
    if not value:
        return None
    first = value.split(",")[0].strip()
    return first or None


def collect_from_request(request: Request) -> ClientInfo:
    """Build :class:`ClientInfo` from request headers and the socket peer."""
    headers = request.headers
    peer = request.client.host if request.client else None

    real_ip = None
    for header in REAL_IP_HEADERS:
        candidate = _first_forwarded(headers.get(header))
        if candidate and candidate != "undefined":
            real_ip = candidate
            break

    user_agent = headers.get("user-agent")
    return ClientInfo(
        ip_address=clip(peer, IP_MAX_LENGTH),
        real_ip=clip(real_ip or peer, IP_MAX_LENGTH),
        forwarded_for=headers.get("x-forwarded-for"),
        user_agent=user_agent,
        device_type=detect_device_type(user_agent),
        language=headers.get("accept-language"),
    )
