from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import Field


class Settings(BaseSettings):
    # Database
    DB_USER: str = Field("sessionhub_admin")
    DB_PASSWORD: str = Field("SessionHubPass2026")
    DB_NAME: str = Field("sessionhub")
    DB_HOST: str = Field("postgres")
    DB_PORT: int = Field(5432)
    # Full SQLAlchemy URL; overrides the DB_* fields when set
    DATABASE_URL: str | None = Field(None)

    # Redis (drift ledger)
    REDIS_HOST: str = Field("redis")
    REDIS_PORT: int = Field(6379)
    REDIS_PASSWORD: str | None = Field(None)

    # Stream (video calls + chat channels)
    STREAM_API_KEY: str | None = Field(None)
    STREAM_API_SECRET: str | None = Field(None)
    STREAM_VIDEO_BASE_URL: str = Field("https://video.stream-io-api.com")
    STREAM_CHAT_BASE_URL: str = Field("https://chat.stream-io-api.com")
    STREAM_TIMEOUT_SECONDS: float = Field(10.0)

    # Inbound auth (bearer JWT, subject = provider user id)
    AUTH_JWT_SECRET: str = Field("supersecret")
    AUTH_JWT_ALGORITHM: str = Field("HS256")

    # App
    API_HOST: str = Field("0.0.0.0")
    API_PORT: int = Field(8000)
    DEBUG: bool = Field(False)

    # Background reconciliation of partially provisioned / torn down sessions
    RECONCILER_ENABLED: bool = Field(True)
    RECONCILE_INTERVAL_SECONDS: int = Field(60)

    # Prometheus
    METRICS_ENABLED: bool = Field(False)
    METRICS_PORT: int = Field(8001)

    model_config = SettingsConfigDict(
        env_file=".env",
        extra="ignore",
        env_file_encoding="utf-8"
    )

    @property
    def database_url(self) -> str:
        if self.DATABASE_URL:
            return self.DATABASE_URL
        return (
            f"postgresql+asyncpg://{self.DB_USER}:{self.DB_PASSWORD}"
            f"@{self.DB_HOST}:{self.DB_PORT}/{self.DB_NAME}"
        )


settings = Settings()
