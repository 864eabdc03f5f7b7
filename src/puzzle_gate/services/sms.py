"""SMS delivery for one-time passwords.

The OTP manager only depends on the :class:`SmsSender` protocol. The
production sender talks to the Melipayamak pattern API over HTTPS; the
console sender logs codes for local development.
"""

from __future__ import annotations

import logging
import re
from typing import Protocol

import httpx

from puzzle_gate.core.settings import settings

logger = logging.getLogger(__name__)

# Melipayamak reports success with RetStatus == 1.
RET_STATUS_OK = 1
SUCCESS_STATUS_CODES = (200, 201)


class SmsDeliveryError(RuntimeError):
    """Raised when an SMS could not be handed to the provider."""


class SmsSender(Protocol):
    """Anything able to deliver an OTP code to a phone number."""

    def send(self, phone_number: str, code: str) -> None:
        """Deliver ``code`` to ``phone_number`` or raise :class:`SmsDeliveryError`."""
        ...


class MelipayamakSmsSender:
    """Pattern-based SMS sender for the Melipayamak REST API."""

    def __init__(
        self,
        *,
        endpoint: str,
        username: str | None,
        password: str | None,
        pattern_code: str,
        timeout: float = 10.0,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        self.endpoint = endpoint
        self.username = username
        self.password = password
        self.pattern_code = pattern_code
        self.timeout = timeout
        self._transport = transport
        if not self.configured:
            logger.warning("Melipayamak credentials not configured; OTP sending will fail")

    @property
    def configured(self) -> bool:
        """Return True when credentials are present."""
        return bool(self.username and self.password)

    @property
    def url(self) -> str:
        """Return the pattern-send endpoint URL."""
        return f"https://{self.endpoint}/api/SendSMS/BaseServiceNumber"

    def send(self, phone_number: str, code: str) -> None:
        """Send ``code`` using the configured message pattern."""
        if not self.configured:
            raise SmsDeliveryError("SMS service not configured")

        try:
            body_id = int(self.pattern_code)
        except (TypeError, ValueError) as err:
            logger.error("SMS pattern code %r is not numeric", self.pattern_code)
            raise SmsDeliveryError("SMS pattern code is not configured correctly") from err

        clean_phone = re.sub(r"\D", "", phone_number)
        payload = {
            "username": self.username,
            "password": self.password,
            "to": clean_phone,
            "bodyId": body_id,
            "text": code,
        }

        logger.info("Sending OTP to %s via Melipayamak (pattern %s)", clean_phone, self.pattern_code)
        try:
            with httpx.Client(timeout=self.timeout, transport=self._transport) as client:
                response = client.post(self.url, json=payload)
        except httpx.HTTPError as err:
            logger.error("Network error calling Melipayamak: %s", err)
            raise SmsDeliveryError(f"Network error: {err}") from err

        try:
            data = response.json()
        except ValueError as err:
            logger.error("Invalid response from Melipayamak: %s", response.text)
            raise SmsDeliveryError("Invalid response from SMS provider") from err

        if not isinstance(data, dict):
            logger.error("Unexpected response body from Melipayamak: %r", data)
            raise SmsDeliveryError("Invalid response from SMS provider")

        if response.status_code in SUCCESS_STATUS_CODES and data.get("RetStatus") == RET_STATUS_OK:
            logger.info("OTP sent to %s (message id %s)", clean_phone, data.get("Value"))
            return

        logger.error(
            "Melipayamak rejected OTP for %s (status=%s): %s",
            clean_phone,
            response.status_code,
            data,
        )
        raise SmsDeliveryError(str(data.get("StrRetStatus") or "Failed to send SMS"))


class ConsoleSmsSender:
    """Development sender that writes codes to the log instead of the network."""

    def send(self, phone_number: str, code: str) -> None:
        logger.warning("OTP for %s is %s (console SMS backend)", phone_number, code)


def get_sms_sender() -> SmsSender:
    """Return the SMS sender selected by ``SMS_BACKEND``."""
    if settings.sms_backend == "console":
        return ConsoleSmsSender()
    return MelipayamakSmsSender(
        endpoint=settings.sms_endpoint,
        username=settings.sms_username,
        password=settings.sms_password,
        pattern_code=settings.sms_pattern_code,
        timeout=settings.sms_timeout_seconds,
    )
