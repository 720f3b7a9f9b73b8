from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


DEFAULT_ALLOWED_ORIGINS = "http://localhost:5173,http://localhost:8080,http://localhost:8081"
DEFAULT_CSP = (
    "default-src 'self'; base-uri 'self'; img-src 'self' data: https:; "
    "font-src 'self' data: https://fonts.gstatic.com; "
    "style-src 'self' 'unsafe-inline' https://fonts.googleapis.com; "
    "script-src 'self' 'unsafe-inline'; connect-src 'self' https: wss: https://*.supabase.co; "
    "frame-src 'self' https://*.supabase.co; form-action 'self' https://*.supabase.co"
)
DEFAULT_SUPPORT_CHAT_URL = "https://wa.me/919696255795"


def _split_csv(raw: str | None) -> list[str]:
    return [item.strip() for item in (raw or "").split(",") if item.strip()]


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    environment: str = Field(default="development", alias="ENVIRONMENT")
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")
    host: str = Field(default="0.0.0.0", alias="HOST")
    port: int = Field(default=8787, alias="PORT")

    database_url: str | None = Field(default=None, alias="DATABASE_URL")
    redis_url: str | None = Field(default=None, alias="REDIS_URL")

    allowed_origins: str = Field(default=DEFAULT_ALLOWED_ORIGINS, alias="ALLOWED_ORIGINS")
    admin_emails: str = Field(default="", alias="ADMIN_EMAILS")
    allow_dev_header: bool = Field(default=False, alias="ALLOW_DEV_HEADER")

    supabase_url: str | None = Field(default=None, alias="SUPABASE_URL")
    supabase_service_role_key: str | None = Field(default=None, alias="SUPABASE_SERVICE_ROLE_KEY")
    supabase_jwt_secret: str | None = Field(default=None, alias="SUPABASE_JWT_SECRET")
    jwt_audience: str = Field(default="authenticated", alias="JWT_AUDIENCE")

    status_email_webhook_url: str | None = Field(default=None, alias="STATUS_EMAIL_WEBHOOK_URL")
    sheets_webhook_url: str | None = Field(default=None, alias="SHEETS_WEBHOOK_URL")
    admin_notification_webhook_url: str | None = Field(
        default=None, alias="ADMIN_NOTIFICATION_WEBHOOK_URL"
    )
    webhook_timeout_seconds: float = Field(default=10.0, alias="WEBHOOK_TIMEOUT_SECONDS")

    rate_limit_per_minute: int = Field(default=120, alias="RATE_LIMIT_PER_MINUTE")
    rate_limit_storage_uri: str = Field(default="memory://", alias="RATE_LIMIT_STORAGE_URI")
    proxies_count: int = Field(default=1, alias="PROXIES_COUNT")
    enable_hsts: bool = Field(default=False, alias="ENABLE_HSTS")
    content_security_policy: str | None = Field(default=DEFAULT_CSP, alias="CONTENT_SECURITY_POLICY")

    company_name: str = Field(default="AcreCap", alias="COMPANY_NAME")
    support_chat_url: str = Field(default=DEFAULT_SUPPORT_CHAT_URL, alias="SUPPORT_CHAT_URL")

    @property
    def allowed_origin_list(self) -> list[str]:
        return _split_csv(self.allowed_origins)

    @property
    def admin_email_set(self) -> frozenset[str]:
        return frozenset(email.lower() for email in _split_csv(self.admin_emails))

    @property
    def persistence_configured(self) -> bool:
        return bool(self.database_url and self.database_url.strip())

    @property
    def identity_provider_configured(self) -> bool:
        if self.supabase_jwt_secret:
            return True
        return bool(self.supabase_url and self.supabase_service_role_key)


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings()
