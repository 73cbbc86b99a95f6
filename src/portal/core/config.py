from functools import lru_cache

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # App
    app_name: str = "Consultancy Portal Auth"
    app_env: str = "development"  # development, testing, production
    debug: bool = False
    enable_openapi: bool = True  # Set to False in production

    # Security
    log_user_emails: bool = False  # Set to False in production for GDPR compliance
    trusted_proxy_ips: list[str] = []  # Proxies whose X-Forwarded-For is honoured
    csp_production: str = "default-src 'self'; frame-ancestors 'none'"

    # Database
    database_url: str
    database_pool_size: int = 5
    database_max_overflow: int = 10

    # Auth
    jwt_secret_key: str
    jwt_algorithm: str = "HS256"
    access_token_expire_minutes: int = 15
    refresh_token_expire_days: int = 7
    argon2_time_cost: int = 3
    argon2_memory_cost: int = 65536
    argon2_parallelism: int = 1

    # Lockout
    max_login_attempts: int = 5
    lockout_minutes: int = 15

    # Password reset
    password_reset_expire_minutes: int = 10
    client_url: str = "http://localhost:3000"  # Frontend URL for reset links

    # Cookies
    cookie_secure: bool | None = None  # None: secure everywhere except development/testing
    cookie_samesite: str = "lax"

    @field_validator("jwt_secret_key")
    @classmethod
    def validate_jwt_secret(cls, v: str) -> str:
        if v == "change-this-to-a-secure-random-string":
            raise ValueError(
                "JWT_SECRET_KEY must be changed from default value. "
                "Generate a secure secret with: openssl rand -hex 32"
            )
        if len(v) < 32:
            raise ValueError("JWT_SECRET_KEY must be at least 32 characters")
        return v

    @field_validator("cors_origins")
    @classmethod
    def validate_cors_origins(cls, v: list[str]) -> list[str]:
        """Validate CORS origins - reject wildcards when credentials are used."""
        for origin in v:
            if origin == "*":
                raise ValueError(
                    "CORS wildcard '*' is not allowed when allow_credentials=True. "
                    "Specify explicit origins instead."
                )
        return v

    @field_validator("cookie_samesite")
    @classmethod
    def validate_cookie_samesite(cls, v: str) -> str:
        value = v.lower()
        if value not in ("lax", "strict", "none"):
            raise ValueError("COOKIE_SAMESITE must be one of: lax, strict, none")
        return value

    # Temporal
    temporal_host: str = "localhost:7233"
    temporal_namespace: str = "default"
    temporal_task_queue: str = "portal-maintenance"

    # CORS
    cors_origins: list[str] = ["http://localhost:3000"]

    # Metrics
    metrics_api_key: str | None = None  # If set, /metrics requires this key

    # Retention (Temporal scheduled workflow)
    retention_schedule: str | None = None  # Cron syntax, e.g., "0 3 * * *" for daily at 3am UTC
    refresh_token_retention_days: int = 30
    session_retention_days: int = 30
    audit_log_retention_days: int = 90

    # Redis (optional - app works without it)
    redis_url: str | None = None  # e.g., "redis://localhost:6379/0"
    redis_pool_size: int = 10

    # Rate Limiting
    login_rate_limit: str = "5/15minutes"
    password_reset_rate_limit: str = "3/hour"

    @property
    def secure_cookies(self) -> bool:
        """Whether auth cookies carry the Secure flag."""
        if self.cookie_secure is not None:
            return self.cookie_secure
        return self.app_env not in ("development", "testing")


@lru_cache
def get_settings() -> Settings:
    return Settings()
