"""
Runtime settings, read from FOCUSTRACK_* environment variables.
A .env file next to the working directory is loaded first.
"""
from __future__ import annotations

import os
from dataclasses import dataclass
from datetime import timezone, tzinfo
from functools import lru_cache
from typing import Mapping
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from dotenv import load_dotenv

from focustrack.errors import ConfigurationError

load_dotenv()

ENV_PREFIX = "FOCUSTRACK_"


@dataclass(frozen=True)
class Settings:
    database_url: str = "sqlite:///focus.db"
    timezone: str = "UTC"
    cors_origins: tuple[str, ...] = ("http://localhost:3000",)
    log_level: str = "INFO"
    log_dir: str | None = None

    # Sessions shorter than this are noise and are not kept.
    min_duration: int = 1

    default_target_duration: int = 25
    min_target_duration: int = 1
    max_target_duration: int = 120

    short_break: int = 5
    long_break: int = 15
    cycle_length: int = 4

    default_break_ratio: int = 5

    def __post_init__(self) -> None:
        if not self.database_url.strip():
            raise ConfigurationError("FOCUSTRACK_DATABASE_URL cannot be empty")
        if self.min_duration < 0:
            raise ConfigurationError("FOCUSTRACK_MIN_DURATION must be >= 0")
        if not 1 <= self.min_target_duration <= self.max_target_duration:
            raise ConfigurationError(
                f"target bounds must satisfy 1 <= min <= max, got "
                f"[{self.min_target_duration}, {self.max_target_duration}]"
            )
        if not self.min_target_duration <= self.default_target_duration <= self.max_target_duration:
            raise ConfigurationError(
                f"FOCUSTRACK_DEFAULT_TARGET must be within "
                f"[{self.min_target_duration}, {self.max_target_duration}]"
            )
        if self.short_break < 0 or self.long_break < 0:
            raise ConfigurationError("break lengths must be >= 0")
        if self.cycle_length < 1:
            raise ConfigurationError("FOCUSTRACK_CYCLE_LENGTH must be >= 1")
        if self.default_break_ratio < 1:
            raise ConfigurationError("FOCUSTRACK_BREAK_RATIO must be >= 1")
        self.tzinfo  # noqa: B018 - validates the zone name

    @property
    def tzinfo(self) -> tzinfo:
        if self.timezone.upper() == "UTC":
            return timezone.utc
        try:
            return ZoneInfo(self.timezone)
        except (ZoneInfoNotFoundError, ValueError) as e:
            raise ConfigurationError(f"Unknown FOCUSTRACK_TIMEZONE: {self.timezone!r}") from e

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> "Settings":
        env = os.environ if environ is None else environ

        def get(name: str) -> str | None:
            value = env.get(ENV_PREFIX + name)
            if value is None or not value.strip():
                return None
            return value.strip()

        def get_int(name: str, default: int) -> int:
            raw = get(name)
            if raw is None:
                return default
            try:
                return int(raw)
            except ValueError as e:
                raise ConfigurationError(f"{ENV_PREFIX}{name} must be an integer, got {raw!r}") from e

        origins = get("CORS_ORIGINS")
        return cls(
            database_url=get("DATABASE_URL") or cls.database_url,
            timezone=get("TIMEZONE") or cls.timezone,
            cors_origins=(
                tuple(o.strip() for o in origins.split(",") if o.strip())
                if origins
                else cls.cors_origins
            ),
            log_level=(get("LOG_LEVEL") or cls.log_level).upper(),
            log_dir=get("LOG_DIR"),
            min_duration=get_int("MIN_DURATION", cls.min_duration),
            default_target_duration=get_int("DEFAULT_TARGET", cls.default_target_duration),
            min_target_duration=get_int("MIN_TARGET", cls.min_target_duration),
            max_target_duration=get_int("MAX_TARGET", cls.max_target_duration),
            short_break=get_int("SHORT_BREAK", cls.short_break),
            long_break=get_int("LONG_BREAK", cls.long_break),
            cycle_length=get_int("CYCLE_LENGTH", cls.cycle_length),
            default_break_ratio=get_int("BREAK_RATIO", cls.default_break_ratio),
        )


@lru_cache
def get_settings() -> Settings:
    return Settings.from_env()
