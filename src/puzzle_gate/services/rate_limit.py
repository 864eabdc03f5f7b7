"""Fixed-window rate limiting for OTP endpoints."""

from __future__ import annotations

import logging
from dataclasses import dataclass

from puzzle_gate.core.settings import settings
from puzzle_gate.services.ephemeral import EphemeralStore, get_ephemeral_store

logger = logging.getLogger(__name__)


class RateLimitExceeded(Exception):
    """Raised when a caller exceeds a window's allowance."""

    def __init__(self, retry_after: int) -> None:
        super().__init__(f"Rate limit exceeded, retry in {retry_after}s")
        self.retry_after = retry_after


@dataclass(frozen=True)
class RateRule:
    """Allowance of ``limit`` hits per ``window_seconds``."""

    name: str
    limit: int
    window_seconds: int


def otp_send_rule() -> RateRule:
    return RateRule("otp_send", settings.otp_send_limit, settings.otp_send_window_seconds)


def otp_verify_rule() -> RateRule:
    return RateRule("otp_verify", settings.otp_verify_limit, settings.otp_verify_window_seconds)


class RateLimiter:
    """Count attempts per rule and subject."""

    def __init__(self, store: EphemeralStore | None = None) -> None:
        self.store = store or get_ephemeral_store()

    @staticmethod
    def _key(rule: RateRule, subject: str) -> str:
        return f"rl:{rule.name}:{subject}"

    def hit(self, rule: RateRule, subject: str) -> None:
        """Record an attempt, raising once the allowance is used up.

        Raises:
            RateLimitExceeded: If this attempt exceeds ``rule.limit``.
        """
        count, remaining = self.store.incr(self._key(rule, subject), rule.window_seconds)
        if count > rule.limit:
            logger.warning("Rate limit %s exceeded for %s (%d hits)", rule.name, subject, count)
            raise RateLimitExceeded(remaining or rule.window_seconds)

    def check(self, rule: RateRule, subject: str) -> None:
        """Raise if ``subject`` is already blocked, without counting an attempt."""
        count, remaining = self.store.peek_counter(self._key(rule, subject))
        if count >= rule.limit:
            raise RateLimitExceeded(remaining or rule.window_seconds)

    def clear(self, rule: RateRule, subject: str) -> None:
        """Reset the counter for ``subject``."""
        self.store.delete(self._key(rule, subject))


def get_rate_limiter() -> RateLimiter:
    """Return a rate limiter bound to the default store."""
    return RateLimiter()
