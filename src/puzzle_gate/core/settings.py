"""Application settings and configuration.

This module defines all configuration options for the Puzzle Gate backend.
Settings are loaded from environment variables with sensible defaults.
"""

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables.

    Settings can be overridden via environment variables or .env files.
    """

    # Application metadata
    app_name: str = Field(default="Puzzle Gate", alias="APP_NAME")
    app_version: str = Field(default="0.1.0", alias="APP_VERSION")
    default_locale: str = Field(default="fa", alias="DEFAULT_LOCALE")
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")

    # Security and authentication
    secret_key: str = Field(alias="SECRET_KEY")
    debug: bool = Field(default=False, alias="DEBUG")

    # Database configuration
    database_url: str = Field(default="sqlite:///./puzzle_gate.db", alias="DATABASE_URL")
    test_database_url: str | None = Field(default=None, alias="TEST_DATABASE_URL")
    use_testing_database: bool = Field(default=False, alias="USE_TEST_DATABASE")
    sql_debug: bool = Field(default=False, alias="SQL_DEBUG")

    # Redis backs CAPTCHA codes and rate-limit counters when configured
    redis_url: str | None = Field(default=None, alias="REDIS_URL")

    # JWT authentication settings
    jwt_algorithm: str = Field(default="HS256", alias="JWT_ALGORITHM")
    access_token_expire_minutes: int = Field(
        default=60 * 24 * 7,
        alias="ACCESS_TOKEN_EXPIRE_MINUTES",
    )
    registration_token_expire_minutes: int = Field(
        default=30,
        alias="REGISTRATION_TOKEN_EXPIRE_MINUTES",
    )
    session_expire_days: int = Field(default=30, alias="SESSION_EXPIRE_DAYS")

    # One-time passwords
    otp_ttl_minutes: int = Field(default=10, alias="OTP_TTL_MINUTES")
    otp_code_length: int = Field(default=6, ge=4, le=6, alias="OTP_CODE_LENGTH")
    otp_phone_pattern: str = Field(default=r"^09\d{9}$", alias="OTP_PHONE_PATTERN")
    otp_send_limit: int = Field(default=5, alias="OTP_SEND_LIMIT")
    otp_send_window_seconds: int = Field(default=3600, alias="OTP_SEND_WINDOW_SECONDS")
    otp_verify_limit: int = Field(default=5, alias="OTP_VERIFY_LIMIT")
    otp_verify_window_seconds: int = Field(default=900, alias="OTP_VERIFY_WINDOW_SECONDS")

    # SMS provider (Melipayamak pattern API)
    sms_backend: str = Field(default="melipayamak", alias="SMS_BACKEND")
    sms_endpoint: str = Field(default="rest.payamak-panel.com", alias="SMS_ENDPOINT")
    sms_username: str | None = Field(default=None, alias="SMS_USERNAME")
    sms_password: str | None = Field(default=None, alias="SMS_PASSWORD")
    sms_pattern_code: str = Field(default="413580", alias="SMS_PATTERN_CODE")
    sms_timeout_seconds: float = Field(default=10.0, alias="SMS_TIMEOUT_SECONDS")

    # QR access tokens
    qr_default_max_uses: int = Field(default=1, ge=1, alias="QR_DEFAULT_MAX_USES")
    qr_default_game_count: int = Field(default=9, alias="QR_DEFAULT_GAME_COUNT")
    qr_max_batch_size: int = Field(default=20, alias="QR_MAX_BATCH_SIZE")
    public_base_url: str = Field(default="http://localhost:3000", alias="PUBLIC_BASE_URL")
    minigame_path_template: str = Field(
        default="/minigame-{game}",
        alias="MINIGAME_PATH_TEMPLATE",
    )

    # CAPTCHA challenges
    captcha_width: int = Field(default=400, alias="CAPTCHA_WIDTH")
    captcha_height: int = Field(default=150, alias="CAPTCHA_HEIGHT")
    captcha_length: int = Field(default=6, alias="CAPTCHA_LENGTH")
    captcha_ttl_seconds: int = Field(default=300, alias="CAPTCHA_TTL_SECONDS")
    captcha_required_for_otp: bool = Field(default=False, alias="CAPTCHA_REQUIRED_FOR_OTP")

    # CORS configuration for web frontend access
    cors_origins: list[str] = Field(
        default=["*"],
        alias="CORS_ORIGINS",
    )
    cors_allow_credentials: bool = Field(default=True, alias="CORS_ALLOW_CREDENTIALS")
    cors_allow_methods: list[str] = Field(
        default=["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"],
        alias="CORS_ALLOW_METHODS",
    )
    cors_allow_headers: list[str] = Field(
        default=["*"],
        alias="CORS_ALLOW_HEADERS",
    )

    model_config = SettingsConfigDict(
        env_file=".env",
        validate_assignment=True,
        extra="ignore",
    )

    @property
    def database_url_sync(self) -> str:
        """Return a sync-compatible database URL for tooling.

        Converts asyncpg URLs to psycopg for synchronous database operations
        like Alembic migrations.
        """
        url = self.effective_database_url
        if url.startswith("postgresql+asyncpg"):
            return url.replace("postgresql+asyncpg", "postgresql+psycopg", 1)
        return url

    @property
    def effective_database_url(self) -> str:
        """Return the database URL respecting testing overrides."""
        if self.use_testing_database and self.test_database_url:
            return self.test_database_url
        return self.database_url

    def minigame_url(self, game_number: int) -> str:
        """Return the public URL of a minigame page."""
        path = self.minigame_path_template.format(game=game_number)
        return f"{self.public_base_url.rstrip('/')}{path}"

    def qr_access_url(self, game_number: int, token: str) -> str:
        """Return the URL printed into a QR code for a token."""
        return (
            f"{self.public_base_url.rstrip('/')}/minigame-access"
            f"?game={game_number}&token={token}"
        )


settings = Settings()  # type: ignore[call-arg]
