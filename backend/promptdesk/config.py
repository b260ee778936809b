from __future__ import annotations

import os
from functools import lru_cache
from pathlib import Path
from typing import List, Optional

from dotenv import load_dotenv


load_dotenv(Path(__file__).resolve().parents[2] / ".env")

_DEFAULT_CLIENT_SECRET = os.path.abspath(
    os.path.join(os.path.dirname(__file__), "../../client_secret.json")
)


def _split(value: str) -> List[str]:
    return [v.strip() for v in value.split(",") if v.strip()]


class Settings:
    """Application settings loaded from environment variables.

    Values are read when the object is built, so tests can set env vars and
    clear the `get_settings` cache.
    """

    def __init__(self) -> None:
        self.app_env: str = os.getenv("APP_ENV", "local").lower()
        self.log_level: str = os.getenv("LOG_LEVEL", "INFO").upper()
        self.database_url: str = os.getenv("DATABASE_URL", "sqlite:///./promptdesk.db")
        self.cors_origins: List[str] = _split(
            os.getenv("CORS_ORIGINS", "http://localhost:3000,http://127.0.0.1:3000")
        )

        self.google_client_id: Optional[str] = os.getenv("GOOGLE_CLIENT_ID")
        self.google_client_secret_file: str = os.getenv(
            "GOOGLE_CLIENT_SECRET_FILE", _DEFAULT_CLIENT_SECRET
        )

        # OpenAI-compatible chat completion endpoint
        self.completion_base_url: str = os.getenv(
            "OPENROUTER_BASE_URL", "https://openrouter.ai/api/v1"
        )
        self.completion_api_key: Optional[str] = os.getenv("OPENROUTER_API_KEY")
        self.completion_model: str = os.getenv(
            "COMPLETION_MODEL", "meta-llama/llama-3-8b-instruct"
        )
        self.completion_timeout: float = float(os.getenv("COMPLETION_TIMEOUT", "60"))

        # file references live in the OpenAI Files API
        self.openai_api_key: Optional[str] = os.getenv("OPENAI_API_KEY")
        self.max_upload_bytes: int = int(os.getenv("MAX_UPLOAD_BYTES", str(50 * 1024 * 1024)))

        self.host: str = os.getenv("HOST", "0.0.0.0")
        self.port: int = int(os.getenv("PORT", "5000"))


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings()
