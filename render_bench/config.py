"""
Application settings for render-bench.

Values are read from the environment (prefix ``RENDER_BENCH_``) or from a
``.env`` file in the working directory. The CLI uses them as defaults for
its flags, so every flag can also be set through the environment.
"""

import re
from typing import Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

_DURATION_PART_RE = re.compile(r"(\d+(?:\.\d+)?)(ns|us|µs|ms|s|m|h)")

_DURATION_UNITS = {
    "ns": 1e-9,
    "us": 1e-6,
    "µs": 1e-6,
    "ms": 1e-3,
    "s": 1.0,
    "m": 60.0,
    "h": 3600.0,
}


def parse_duration(value: str | int | float) -> float:
    """
    Parse a duration into seconds.

    Accepts plain numbers (seconds) and Go-style duration strings such as
    ``100ms``, ``1m``, ``1h30m`` or ``2.5s``.

    Raises:
        ValueError: If the value is negative or not a recognizable duration.
    """
    if isinstance(value, bool):
        raise ValueError(f"Invalid duration: {value!r}")
    if isinstance(value, (int, float)):
        seconds = float(value)
    else:
        text = str(value).strip()
        if not text:
            raise ValueError("Duration must not be empty")
        try:
            seconds = float(text)
        except ValueError:
            pos = 0
            seconds = 0.0
            for match in _DURATION_PART_RE.finditer(text):
                if match.start() != pos:
                    raise ValueError(f"Invalid duration: {value!r}")
                seconds += float(match.group(1)) * _DURATION_UNITS[match.group(2)]
                pos = match.end()
            if pos == 0 or pos != len(text):
                raise ValueError(f"Invalid duration: {value!r}")

    if seconds < 0:
        raise ValueError(f"Duration must be non-negative, got {value!r}")
    return seconds


class Settings(BaseSettings):
    """Process-wide configuration."""

    model_config = SettingsConfigDict(
        env_prefix="RENDER_BENCH_",
        env_file=".env",
        extra="ignore",
    )

    # Logging
    LOG_LEVEL: str = Field("INFO", description="Root log level")
    LOG_FORMAT: str = Field(
        "%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        description="logging format string",
    )
    LOG_FILE: Optional[str] = Field(None, description="Optional log file path")

    # Load target
    TARGETS_FILE: str = Field(
        "test.csv", description="CSV file, at this time with one field - target"
    )
    BASE_URL: str = Field("http://127.0.0.1:8889", description="Base URL")
    RENDER_FORMAT: str = Field("protobuf", description="Render API output format")
    REQUEST_TIMEOUT_SECONDS: float = Field(
        30.0, gt=0, description="Per-request HTTP timeout"
    )

    # Run shape
    DELAY: float = Field(0.1, ge=0, description="Delay between requests (seconds)")
    DURATION: float = Field(60.0, gt=0, description="Run duration (seconds)")
    WINDOW_PRESET: str = Field(
        "time_buckets", description="Query window table (time_buckets, day_counts)"
    )

    @field_validator("DELAY", "DURATION", mode="before")
    @classmethod
    def _parse_duration_fields(cls, v):
        return parse_duration(v)

    @field_validator("LOG_LEVEL")
    @classmethod
    def _validate_log_level(cls, v: str) -> str:
        level = str(v).upper()
        if level not in ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"):
            raise ValueError(f"Unknown log level: {v}")
        return level


settings = Settings()
