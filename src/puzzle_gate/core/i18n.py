"""Localized user-facing messages."""

from __future__ import annotations

from typing import Any

from puzzle_gate.core.settings import settings

SUPPORTED_LOCALES = ("fa", "en")

TRANSLATIONS: dict[str, dict[str, Any]] = {
    "fa": {
        "errors": {
            "invalid_phone": "شماره موبایل معتبر نیست",
            "invalid_or_expired_code": "کد تایید نامعتبر یا منقضی شده است",
            "delivery_failed": "خطا در ارسال پیامک. لطفاً دوباره تلاش کنید",
            "rate_limited": "تعداد درخواست‌ها بیش از حد مجاز است. لطفاً {minutes} دقیقه دیگر تلاش کنید",
            "internal_error": "خطای سرور. لطفاً دوباره تلاش کنید",
            "captcha_required": "لطفاً کد امنیتی را وارد کنید",
            "captcha_missing": "کد امنیتی یافت نشد. لطفاً کد جدید دریافت کنید",
            "captcha_invalid": "کد امنیتی اشتباه است. لطفاً دوباره تلاش کنید",
            "registration_token_invalid": "اعتبار تایید شماره موبایل منقضی شده است",
            "phone_already_registered": "این شماره قبلاً ثبت شده است",
            "unauthorized": "دسترسی غیرمجاز",
            "forbidden": "شما به این بخش دسترسی ندارید",
            "not_found": "مورد درخواستی یافت نشد",
            "answer_not_configured": "پاسخی برای این سوال تعریف نشده است",
            "submission_already_reviewed": "این پاسخ قبلاً بررسی شده است",
        },
        "success": {
            "otp_sent": "کد تایید با موفقیت ارسال شد",
            "otp_verified": "کد تایید با موفقیت تایید شد",
            "login": "ورود با موفقیت انجام شد",
            "registered": "ثبت نام با موفقیت انجام شد",
            "logged_out": "خروج با موفقیت انجام شد",
            "captcha_verified": "کد امنیتی تایید شد",
            "access_granted": "دسترسی مجاز است",
            "progress_saved": "پیشرفت بازی ذخیره شد",
            "answer_correct": "پاسخ درست است!",
            "answer_incorrect": "پاسخ اشتباه است",
            "answer_pending": "پاسخ برای بررسی ارسال شد",
        },
        "qr": {
            "access_denied": "دسترسی مجاز نیست",
            "unknown_token": "کد QR معتبر نیست",
            "game_mismatch": "این کد QR برای این بازی نیست",
            "inactive": "این کد QR غیرفعال شده است",
            "already_used": "این کد QR قبلاً استفاده شده است",
        },
    },
    "en": {
        "errors": {
            "invalid_phone": "Invalid mobile number",
            "invalid_or_expired_code": "Invalid or expired verification code",
            "delivery_failed": "Failed to send the SMS, please try again",
            "rate_limited": "Too many requests, please try again in {minutes} minutes",
            "internal_error": "Server error, please try again",
            "captcha_required": "Please solve the CAPTCHA",
            "captcha_missing": "No CAPTCHA found, please request a new one",
            "captcha_invalid": "Invalid CAPTCHA, please try again",
            "registration_token_invalid": "Phone verification has expired",
            "phone_already_registered": "This number is already registered",
            "unauthorized": "Unauthorized",
            "forbidden": "You do not have access to this resource",
            "not_found": "Not found",
            "answer_not_configured": "No answer is configured for this question",
            "submission_already_reviewed": "This submission has already been reviewed",
        },
        "success": {
            "otp_sent": "Verification code sent",
            "otp_verified": "Verification code accepted",
            "login": "Signed in successfully",
            "registered": "Registered successfully",
            "logged_out": "Logged out successfully",
            "captcha_verified": "CAPTCHA verified",
            "access_granted": "Access granted",
            "progress_saved": "Progress saved successfully",
            "answer_correct": "Correct answer!",
            "answer_incorrect": "Incorrect answer",
            "answer_pending": "Answer submitted for verification",
        },
        "qr": {
            "access_denied": "Access denied",
            "unknown_token": "Unknown QR code",
            "game_mismatch": "This QR code belongs to another game",
            "inactive": "This QR code has been deactivated",
            "already_used": "This QR code has already been used",
        },
    },
}


def t(key: str, locale: str | None = None, **kwargs: Any) -> str:
    """Get translated text for the given key and locale.

    Args:
        key: Dot-notation key (e.g., "errors.invalid_phone")
        locale: Language code; falls back to the configured default
        **kwargs: Format parameters for string interpolation

    Returns:
        Translated text, or the key itself if not found
    """
    value: Any = TRANSLATIONS.get(locale or "", TRANSLATIONS[_default_locale()])
    for part in key.split("."):
        if not isinstance(value, dict):
            return key
        value = value.get(part, key)

    if not isinstance(value, str):
        return key
    if kwargs:
        try:
            return value.format(**kwargs)
        except KeyError:
            return value
    return value


def get_locale_from_header(accept_language: str | None) -> str:
    """Extract a supported locale from an Accept-Language header value."""
    if not accept_language:
        return _default_locale()

    for lang in accept_language.split(","):
        tag = lang.split(";")[0].strip().lower()
        primary = tag.split("-")[0]
        if primary in SUPPORTED_LOCALES:
            return primary
    return _default_locale()


def _default_locale() -> str:
    if settings.default_locale in SUPPORTED_LOCALES:
        return settings.default_locale
    return SUPPORTED_LOCALES[0]
