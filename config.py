import os
from dataclasses import dataclass, field
from typing import Tuple

from dotenv import load_dotenv

# Load environment variables from .env file
load_dotenv()


def _env_bool(name: str, default: bool) -> bool:
    raw = os.environ.get(name)
    if raw is None:
        return default
    return raw.strip().lower() in {"1", "true", "yes", "on"}


@dataclass(frozen=True)
class Settings:
    database_url: str
    echo_sql: bool = False
    log_level: str = "INFO"
    cors_origins: Tuple[str, ...] = field(default_factory=lambda: ("*",))
    seed_rooms: bool = True
    host: str = "0.0.0.0"
    port: int = 3001

    @classmethod
    def from_env(cls) -> "Settings":
        # Fail fast: nothing works without a database
        database_url = os.environ.get("DATABASE_URL")
        if not database_url:
            raise ValueError("DATABASE_URL is not set. Please check your .env file.")

        origins = os.environ.get("CORS_ORIGINS", "*")
        return cls(
            database_url=database_url,
            echo_sql=_env_bool("SQL_ECHO", False),
            log_level=os.environ.get("LOG_LEVEL", "INFO").upper(),
            cors_origins=tuple(o.strip() for o in origins.split(",") if o.strip()),
            seed_rooms=_env_bool("SEED_ROOMS", True),
            host=os.environ.get("HOST", "0.0.0.0"),
            port=int(os.environ.get("PORT", "3001")),
        )
