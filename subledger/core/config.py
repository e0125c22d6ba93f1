from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    APP_NAME: str = "subledger"
    version: str = "0.1.0"
    DEBUG: bool = False
    LOG_LEVEL: str = "INFO"
    APP_DOMAIN: str = "example.com"
    APP_DATABASE_DSN: str = "sqlite:////tmp/subledger.db"

    # PortOne gateway
    PORTONE_API_BASE: str = "https://api.portone.io"
    PORTONE_API_SECRET: str = ""
    PORTONE_CURRENCY: str = "KRW"
    PORTONE_TIMEOUT_SECONDS: float = 30.0

    # Timezone in which next-cycle attempts are placed between 10:00 and 10:59
    RENEWAL_TIMEZONE: str = "UTC"

    # Public URL the gateway calls back into
    PUBLIC_BASE_URL: str = "http://localhost:8000"

    # CORS
    CORS_ORIGINS: str = "http://localhost:3000,http://localhost:5173"

    @property
    def portone_webhook_url(self) -> str:
        return f"{self.PUBLIC_BASE_URL.rstrip('/')}/v1/portone/webhook"


settings = Settings()
