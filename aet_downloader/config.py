"""Configuration management from environment variables."""
import os
import re
from dataclasses import dataclass, field, replace
from datetime import time as dt_time
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

from aet_downloader.errors import ConfigError
from aet_downloader.jobs.months import ALL_MONTHS, normalize_months, parse_months

DEFAULT_OUTPUT_DIR = Path("./aetsbaixadas")
DEFAULT_BASE_URL = "https://siaet.dnit.gov.br"

FETCH_MODES = ("http", "browser")

_START_TIME_RE = re.compile(r"^(\d{1,2}):(\d{2})$")


def parse_start_time(value: str) -> dt_time:
    """Parse an HH:MM wall-clock time."""
    match = _START_TIME_RE.match(value.strip())
    if not match:
        raise ValueError(f"invalid start time {value!r}, expected HH:MM")
    hour, minute = int(match.group(1)), int(match.group(2))
    if hour > 23 or minute > 59:
        raise ValueError(f"invalid start time {value!r}, expected HH:MM")
    return dt_time(hour, minute)


def _parse_bool(value: str) -> bool:
    return value.strip().lower() in ("1", "true", "yes", "on", "sim")


@dataclass(frozen=True)
class Credentials:
    """Long-lived SIAET credentials."""

    id: str
    secret: str

    def is_complete(self) -> bool:
        return bool(self.id) and bool(self.secret)


@dataclass(frozen=True)
class Settings:
    """Application configuration, built once at startup."""

    # SIAET
    siaet_id: Optional[str] = None
    siaet_secret: Optional[str] = None
    base_url: str = DEFAULT_BASE_URL

    # Query
    year: Optional[int] = None
    months: tuple[int, ...] = ALL_MONTHS

    # Fetching
    fetch_mode: str = "http"
    timeout: float = 30.0
    navigation_timeout: float = 60.0
    max_attempts: int = 3
    retry_delay: float = 5.0
    month_delay: float = 2.0

    # Scheduling
    start_time: Optional[dt_time] = None

    # Storage
    output_dir: Path = DEFAULT_OUTPUT_DIR
    persist_empty: bool = True

    # Logging
    log_level: str = "INFO"

    # Problems found while reading the environment, reported by validate()
    errors: tuple[str, ...] = field(default=(), compare=False, repr=False)

    @property
    def credentials(self) -> Credentials:
        return Credentials(id=self.siaet_id or "", secret=self.siaet_secret or "")

    @classmethod
    def from_env(cls, env_file: Optional[str] = None) -> "Settings":
        """Read settings from the environment (and a .env file if present)."""
        load_dotenv(env_file)
        errors: list[str] = []

        def number(name: str, default: float, cast=float):
            raw = os.getenv(name)
            if raw is None or raw.strip() == "":
                return default
            try:
                return cast(raw)
            except ValueError:
                errors.append(f"{name} must be a number, got {raw!r}")
                return default

        year = None
        raw_year = os.getenv("ANO_CONSULTA")
        if raw_year:
            try:
                year = int(raw_year)
            except ValueError:
                errors.append(f"ANO_CONSULTA must be an integer, got {raw_year!r}")

        start_time = None
        raw_start = os.getenv("HORARIO_INICIO")
        if raw_start:
            try:
                start_time = parse_start_time(raw_start)
            except ValueError as e:
                errors.append(f"HORARIO_INICIO: {e}")

        raw_months = os.getenv("MESES_CONSULTA")
        months = normalize_months(parse_months(raw_months)) if raw_months else ALL_MONTHS

        return cls(
            siaet_id=os.getenv("SIAET_ID"),
            siaet_secret=os.getenv("SIAET_SECRET"),
            base_url=os.getenv("SIAET_BASE_URL", DEFAULT_BASE_URL).rstrip("/"),
            year=year,
            months=months,
            fetch_mode=os.getenv("FETCH_MODE", "http").strip().lower(),
            timeout=number("TIMEOUT", 30.0),
            navigation_timeout=number("NAVIGATION_TIMEOUT", 60.0),
            max_attempts=number("MAX_ATTEMPTS", 3, int),
            retry_delay=number("RETRY_DELAY", 5.0),
            month_delay=number("MONTH_DELAY", 2.0),
            start_time=start_time,
            output_dir=Path(os.getenv("OUTPUT_DIR", str(DEFAULT_OUTPUT_DIR))),
            persist_empty=_parse_bool(os.getenv("PERSIST_EMPTY", "true")),
            log_level=os.getenv("LOG_LEVEL", "INFO"),
            errors=tuple(errors),
        )

    def with_overrides(self, **changes) -> "Settings":
        """Return a copy with the non-None values in ``changes`` applied."""
        return replace(self, **{k: v for k, v in changes.items() if v is not None})

    def validate(self) -> None:
        """Validate required configuration."""
        errors = list(self.errors)
        if not self.siaet_id:
            errors.append("SIAET_ID is required")
        if not self.siaet_secret:
            errors.append("SIAET_SECRET is required")
        if self.year is None:
            errors.append("ANO_CONSULTA is required")
        if self.fetch_mode not in FETCH_MODES:
            errors.append(f"FETCH_MODE must be one of {', '.join(FETCH_MODES)}")
        if self.max_attempts < 1:
            errors.append("MAX_ATTEMPTS must be at least 1")
        if errors:
            raise ConfigError(f"Configuration errors: {', '.join(errors)}")
