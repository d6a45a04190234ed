"""Runtime settings, read from environment variables."""

from __future__ import annotations

import os

from pydantic import BaseModel, Field

DEFAULT_OFFSETS_MINUTES = (-30, -60, 30, 60, -90, 90)


def _env_flag(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in ("1", "true", "yes", "on")


def _env_offsets(name: str) -> tuple[int, ...]:
    raw = os.getenv(name)
    if not raw:
        return DEFAULT_OFFSETS_MINUTES
    return tuple(int(part) for part in raw.split(",") if part.strip())


class SearchSettings(BaseModel):
    """Knobs for the nearby-time alternative search.

    ``offsets_minutes`` is probed in order for every candidate room; offsets
    that move the start further than ``max_shift_minutes`` are skipped even if
    listed.
    """

    offsets_minutes: tuple[int, ...] = DEFAULT_OFFSETS_MINUTES
    max_shift_minutes: int = Field(default=120, ge=0)
    business_open_hour: int = Field(default=8, ge=0, le=23)
    business_close_hour: int = Field(default=18, ge=1, le=23)
    max_results: int = Field(default=5, gt=0)


class Settings(BaseModel):
    search: SearchSettings = Field(default_factory=SearchSettings)
    openai_api_key: str | None = None
    openai_model: str = "gpt-4o-mini"
    log_level: str = "INFO"
    seed_rooms: bool = True

    @classmethod
    def from_env(cls) -> Settings:
        return cls(
            search=SearchSettings(
                offsets_minutes=_env_offsets("ROOMDESK_SEARCH_OFFSETS"),
                max_shift_minutes=int(os.getenv("ROOMDESK_SEARCH_MAX_SHIFT", "120")),
            ),
            openai_api_key=os.getenv("OPENAI_API_KEY") or None,
            openai_model=os.getenv("ROOMDESK_OPENAI_MODEL", "gpt-4o-mini"),
            log_level=os.getenv("ROOMDESK_LOG_LEVEL", "INFO"),
            seed_rooms=_env_flag("ROOMDESK_SEED_ROOMS", True),
        )
