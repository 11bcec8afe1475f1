# netscan/config.py
import os
from pydantic import BaseModel
from dotenv import load_dotenv

load_dotenv()  # Load environment variables from .env file


def _split_origins(raw: str) -> list[str]:
    return [o.strip() for o in raw.split(",") if o.strip()]


class Settings(BaseModel):
    # General app settings
    APP_NAME: str = "NetScan API"
    env: str = os.getenv("ENV", "dev")

    # Host & Port settings
    host: str = os.getenv("HOST", "0.0.0.0")
    port: int = int(os.getenv("PORT", "8000"))

    # CORS origins for frontend (comma separated in env)
    CORS_ORIGINS: list[str] = _split_origins(
        os.getenv("CORS_ORIGINS", "http://localhost:5500,http://127.0.0.1:5500")
    )

    # Session tokens
    jwt_secret: str = os.getenv("JWT_SECRET", "dev-secret")  # use a strong secret in production
    access_token_expire_minutes: int = int(os.getenv("ACCESS_TOKEN_EXPIRE_MINUTES", str(7 * 24 * 60)))

    # History retention: newest N records are kept per user
    max_history_per_user: int = int(os.getenv("MAX_HISTORY_PER_USER", "100"))

    # Storage: "memory" (in-process) or "tortoise" (DATABASE_URL)
    storage_backend: str = os.getenv("STORAGE_BACKEND", "memory").lower()
    database_url: str = os.getenv("DATABASE_URL", "sqlite://netscan.sqlite3")


settings = Settings()  # Instantiate configuration
