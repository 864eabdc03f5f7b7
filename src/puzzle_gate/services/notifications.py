"""Post-commit notifications about QR access attempts."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Protocol

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AccessEvent:
    """Summary of a finished access attempt."""

    token: str
    game_number: int
    status: str
    reason: str | None
    user_id: int | None = None
    real_ip: str | None = None


class Notifier(Protocol):
    """Receives access events after they are committed."""

    def notify(self, event: AccessEvent) -> None:
        ...


class LogNotifier:
    """Write access events to the application log."""

    def notify(self, event: AccessEvent) -> None:
        if event.status == "granted":
            logger.info("QR access granted for game %s (user=%s)", event.game_number, event.user_id)
        else:
            logger.info(
                "QR access %s for game %s: %s (ip=%s)",
                event.status,
                event.game_number,
                event.reason,
                event.real_ip,
            )


class NullNotifier:
    """Discard access events."""

    def notify(self, event: AccessEvent) -> None:
        return None
