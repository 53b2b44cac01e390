import math
from datetime import UTC, datetime
from enum import Enum
from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings

# I(k) = base * factor**k, growing by e per long-term rank.
DEFAULT_LTM_GROWTH_FACTOR = math.e


def utcnow() -> datetime:
    """Return the current UTC time as a naive datetime.

    Replaces the deprecated ``datetime.utcnow()`` while keeping datetimes
    naive so they stay compatible with SQLite (which doesn't store tz info).
    """
    return datetime.now(UTC).replace(tzinfo=None)


class FlipMode(str, Enum):
    """Which side of a card is asked while repeating."""

    NEVER = "never"
    ALWAYS = "always"
    RANDOM = "random"


class ReturnPosition(str, Enum):
    """Where a forgotten card re-enters the unlearned pool."""

    APPEND = "append"
    RANDOM = "random"
    PREPEND = "prepend"


class Settings(BaseSettings):
    app_name: str = "Leitner Trainer"
    database_url: str = f"sqlite+aiosqlite:///{Path(__file__).resolve().parent.parent / 'data' / 'leitner.db'}"
    ustm_seconds: int = Field(default=18, gt=0)
    stm_minutes: int = Field(default=12, gt=0)
    flip_card_sides: FlipMode = FlipMode.NEVER
    return_forgotten_cards: ReturnPosition = ReturnPosition.PREPEND
    learn_new_cards_randomly: bool = False
    case_sensitive_typing: bool = False
    ltm_base_interval_days: float = Field(default=1.0, gt=0)
    ltm_growth_factor: float = Field(default=DEFAULT_LTM_GROWTH_FACTOR, ge=1.0)
    debug: bool = False

    model_config = {"env_prefix": "LEITNER_", "env_file": ".env"}


settings = Settings()
