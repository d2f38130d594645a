"""Environment-driven application settings.

Values come from process environment variables, with a local ``.env`` file
loaded first (python-dotenv) for development.
"""

import os
from dataclasses import dataclass, field
from functools import lru_cache
from typing import List

from dotenv import load_dotenv

DEFAULT_DATABASE_URL = "sqlite+aiosqlite:///./tavern.db"
DEV_JWT_SECRET = "dev-insecure-secret-change-me-before-deploying"


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() not in {"0", "false", "no", "off", ""}


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    return int(raw) if raw not in (None, "") else default


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    return float(raw) if raw not in (None, "") else default


def _env_list(name: str) -> List[str]:
    raw = os.getenv(name, "")
    return [item.strip() for item in raw.split(",") if item.strip()]


@dataclass
class Settings:
    """Runtime configuration for the Tavern service."""

    service_name: str = "Tavern API"
    service_version: str = "1.0.0"
    environment: str = "development"
    log_level: str = "INFO"
    port: int = 3000

    # Database
    database_url: str = DEFAULT_DATABASE_URL
    db_pool_size: int = 20
    db_pool_timeout: float = 2.0
    db_echo: bool = False
    auto_create_tables: bool = True

    # Auth
    jwt_secret: str = DEV_JWT_SECRET
    jwt_algorithm: str = "HS256"
    token_ttl_hours: int = 24 * 7

    # HTTP / Socket.IO
    cors_allowed_origins: List[str] = field(default_factory=list)

    # Sessions
    default_max_participants: int = 6
    default_allow_spectators: bool = True
    default_dice_visibility: str = "public"
    chat_history_limit: int = 100
    dice_history_limit: int = 50
    max_chat_message_length: int = 2000

    # Dice
    dice_max_count: int = 100
    dice_max_sides: int = 1000

    @property
    def is_production(self) -> bool:
        return self.environment.lower() in {"prod", "production"}

    @classmethod
    def from_env(cls) -> "Settings":
        load_dotenv()
        return cls(
            environment=os.getenv("ENVIRONMENT", "development"),
            log_level=os.getenv("LOG_LEVEL", "INFO"),
            port=_env_int("PORT", 3000),
            database_url=os.getenv("DATABASE_URL", DEFAULT_DATABASE_URL),
            db_pool_size=_env_int("DB_POOL_SIZE", 20),
            db_pool_timeout=_env_float("DB_POOL_TIMEOUT", 2.0),
            db_echo=_env_bool("DB_ECHO", False),
            auto_create_tables=_env_bool("AUTO_CREATE_TABLES", True),
            jwt_secret=os.getenv("JWT_SECRET", DEV_JWT_SECRET),
            jwt_algorithm=os.getenv("JWT_ALGORITHM", "HS256"),
            token_ttl_hours=_env_int("TOKEN_TTL_HOURS", 24 * 7),
            cors_allowed_origins=_env_list("CORS_ALLOWED_ORIGINS"),
            default_max_participants=_env_int("DEFAULT_MAX_PARTICIPANTS", 6),
            default_allow_spectators=_env_bool("DEFAULT_ALLOW_SPECTATORS", True),
            default_dice_visibility=os.getenv("DEFAULT_DICE_VISIBILITY", "public"),
            chat_history_limit=_env_int("CHAT_HISTORY_LIMIT", 100),
            dice_history_limit=_env_int("DICE_HISTORY_LIMIT", 50),
            max_chat_message_length=_env_int("MAX_CHAT_MESSAGE_LENGTH", 2000),
            dice_max_count=_env_int("DICE_MAX_COUNT", 100),
            dice_max_sides=_env_int("DICE_MAX_SIDES", 1000),
        )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Process-wide settings loaded from the environment."""
    return Settings.from_env()
