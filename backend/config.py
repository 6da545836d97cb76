"""
Module: config.py
Description: Environment-driven settings for the finance analytics backend.

Values are read once from the process environment (and an optional .env file)
and cached. Analytics tuning constants default to the values the engine was
designed around; override them only for experiments.

Environment:
    DATABASE_URL            SQLAlchemy URL (default: sqlite:///./finance_tracker.db)
    LOG_LEVEL               Logging level name (default: INFO)
    CORS_ORIGINS            Comma-separated list of allowed frontend origins
    FORECAST_WEIGHTS        Comma-separated recency weights, most recent first
    IDEAL_SAVINGS_RATE      Share of income recommended for savings (default: 0.20)
    MINIMUM_SAVINGS_RATE    Fallback share of income (default: 0.10)
    FALLBACK_SAVINGS_SHARE  Share of disposable income saved below the minimum (default: 0.5)
    SPENDING_INCREASE_WARNING_PCT  Month-over-month increase that triggers a warning (default: 10)

Author: Finance Analytics Team
"""

import os
from dataclasses import dataclass
from functools import lru_cache
from typing import Tuple

from dotenv import load_dotenv

load_dotenv()


DEFAULT_FORECAST_WEIGHTS = (0.30, 0.25, 0.20, 0.15, 0.07, 0.03)

DEFAULT_CORS_ORIGINS = (
    "http://localhost:3000",
    "http://localhost:5173",
    "http://127.0.0.1:3000",
    "http://127.0.0.1:5173",
)


@dataclass(frozen=True)
class Settings:
    """Immutable application settings."""
    database_url: str = "sqlite:///./finance_tracker.db"
    log_level: str = "INFO"
    cors_origins: Tuple[str, ...] = DEFAULT_CORS_ORIGINS

    # Analytics constants
    forecast_weights: Tuple[float, ...] = DEFAULT_FORECAST_WEIGHTS
    ideal_savings_rate: float = 0.20
    minimum_savings_rate: float = 0.10
    fallback_savings_share: float = 0.5
    spending_increase_warning_pct: float = 10.0


def _parse_floats(raw: str) -> Tuple[float, ...]:
    """Parse a comma-separated list of floats, ignoring blanks."""
    return tuple(float(part) for part in raw.split(",") if part.strip())


def _parse_list(raw: str) -> Tuple[str, ...]:
    return tuple(part.strip() for part in raw.split(",") if part.strip())


def load_settings() -> Settings:
    """
    Build settings from the current environment.

    Raises:
        ValueError: If a numeric variable cannot be parsed.
    """
    defaults = Settings()
    weights_raw = os.getenv("FORECAST_WEIGHTS", "")
    origins_raw = os.getenv("CORS_ORIGINS", "")

    return Settings(
        database_url=os.getenv("DATABASE_URL", defaults.database_url),
        log_level=os.getenv("LOG_LEVEL", defaults.log_level).upper(),
        cors_origins=_parse_list(origins_raw) if origins_raw else defaults.cors_origins,
        forecast_weights=_parse_floats(weights_raw) if weights_raw else defaults.forecast_weights,
        ideal_savings_rate=float(os.getenv("IDEAL_SAVINGS_RATE", defaults.ideal_savings_rate)),
        minimum_savings_rate=float(os.getenv("MINIMUM_SAVINGS_RATE", defaults.minimum_savings_rate)),
        fallback_savings_share=float(os.getenv("FALLBACK_SAVINGS_SHARE", defaults.fallback_savings_share)),
        spending_increase_warning_pct=float(
            os.getenv("SPENDING_INCREASE_WARNING_PCT", defaults.spending_increase_warning_pct)
        ),
    )


@lru_cache()
def get_settings() -> Settings:
    """Cached settings accessor used across the app."""
    return load_settings()
