"""Runtime configuration for slotwise, read from the environment."""

import os
from dotenv import load_dotenv
from pydantic import BaseModel, Field

from slotwise.models.constants import (
    DEFAULT_WORKDAY_START_HOUR,
    DEFAULT_WORKDAY_END_HOUR,
    DEFAULT_MAX_LOOKAHEAD_DAYS,
)

load_dotenv()


class Settings(BaseModel):
    """Scheduler settings."""

    workday_start_hour: int = Field(DEFAULT_WORKDAY_START_HOUR, ge=0, le=23)
    workday_end_hour: int = Field(DEFAULT_WORKDAY_END_HOUR, ge=1, le=24)
    max_lookahead_days: int = Field(DEFAULT_MAX_LOOKAHEAD_DAYS, ge=1)


def get_settings() -> Settings:
    """Build settings from ``SLOTWISE_*`` environment variables."""
    return Settings(
        workday_start_hour=int(os.getenv("SLOTWISE_WORKDAY_START_HOUR", str(DEFAULT_WORKDAY_START_HOUR))),
        workday_end_hour=int(os.getenv("SLOTWISE_WORKDAY_END_HOUR", str(DEFAULT_WORKDAY_END_HOUR))),
        max_lookahead_days=int(os.getenv("SLOTWISE_MAX_LOOKAHEAD_DAYS", str(DEFAULT_MAX_LOOKAHEAD_DAYS))),
    )
