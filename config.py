"""
Runtime settings for the Flights API.

Values come from the environment (optionally a .env file next to the
process working directory).
"""

import os
from dataclasses import dataclass, field
from typing import List

from dotenv import load_dotenv

load_dotenv()


def _split_origins(raw: str) -> List[str]:
    return [o.strip() for o in raw.split(",") if o.strip()] or ["*"]


@dataclass(frozen=True)
class Settings:
    database_url: str = "mongodb://localhost:27017"
    database_name: str = "flights_api"
    database_timeout_ms: int = 5000
    port: int = 3000
    environment: str = "development"
    cors_origins: List[str] = field(default_factory=lambda: ["*"])
    max_body_bytes: int = 10 * 1024 * 1024
    log_level: str = "INFO"


def get_settings() -> Settings:
    return Settings(
        database_url=os.getenv("DATABASE_URL", "mongodb://localhost:27017"),
        database_name=os.getenv("DATABASE_NAME", "flights_api"),
        database_timeout_ms=int(os.getenv("DATABASE_TIMEOUT_MS", 5000)),
        port=int(os.getenv("PORT", 3000)),
        environment=os.getenv("ENVIRONMENT", "development"),
        cors_origins=_split_origins(os.getenv("CORS_ORIGINS", "*")),
        max_body_bytes=int(os.getenv("MAX_BODY_BYTES", 10 * 1024 * 1024)),
        log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
    )
