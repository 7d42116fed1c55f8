from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    DATABASE_URL: str

    # If DEV and you hit SSL cert issues on Windows, set DB_SSL_VERIFY=false in .env
    DB_SSL_VERIFY: bool = True

    SECRET_KEY: str
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60

    ENV: str = "dev"  # "dev" or "prod"
    FRONTEND_URL: str = "http://localhost:3000"

    # --- STORAGE (Supabase) ---
    SUPABASE_URL: str | None = None
    SUPABASE_KEY: str | None = None
    STORAGE_BUCKET: str = "learning-agreements"

    # --- AUTOMATION WEBHOOK (n8n) ---
    # Absent URL = webhook dispatch silently skipped
    WEBHOOK_URL: str | None = Field(
        default=None,
        validation_alias=AliasChoices("WEBHOOK_URL", "WEBHOOK_N8N_URL"),
    )
    WEBHOOK_TIMEOUT_SECONDS: float = 10.0

    # --- REGISTRATION ---
    ALLOWED_EMAIL_DOMAINS: list[str] = ["@ece.fr", "@edu.ece.fr"]

    # --- RATE LIMITING ---
    RATE_LIMIT_ENABLED: bool = True
    REDIS_URL: str | None = None

    # --- SEEDING ---
    # e.g. "2025-2026"; derived from today's date when unset
    CURRENT_ACADEMIC_YEAR: str | None = None
    INTERNATIONAL_ADMIN_EMAIL: str | None = None
    INTERNATIONAL_ADMIN_PASSWORD: str | None = None
    INTERNATIONAL_ADMIN_NAME: str = "Service International"

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        extra = "ignore"


settings = Settings()
