from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    # Database
    database_url: str

    # Redis
    redis_url: str

    # API
    api_port: int = 8000

    # Security
    gateway_secret: str  # HMAC secret for gateway->API requests carrying the caller wallet
    feed_secret: str  # HMAC secret for payment/finalize confirmation callbacks

    # Intent lifecycle
    payment_window_minutes: int = 15
    min_duration_hours: int = 1
    max_duration_hours: int = 168
    default_duration_hours: int = 24
    max_tags: int = 5

    # Workers
    expiry_sweep_interval_seconds: int = 60

    # Environment
    environment: str = "development"
    log_level: str = "INFO"

    @property
    def is_production(self) -> bool:
        return self.environment == "production"

    @property
    def is_development(self) -> bool:
        return self.environment == "development"


settings = Settings()
