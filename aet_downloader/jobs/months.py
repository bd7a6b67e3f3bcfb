"""Month selection helpers."""
import logging
from typing import Iterable, Optional

logger = logging.getLogger(__name__)

ALL_MONTHS: tuple[int, ...] = tuple(range(1, 13))


def format_month(month: int) -> str:
    """Two-digit month as the API and the output tree expect it."""
    return f"{month:02d}"


def parse_months(raw: Optional[str]) -> list[int]:
    """Parse a comma/space separated month list, ignoring junk tokens."""
    if not raw:
        return []
    months = []
    for token in raw.replace(";", ",").replace(" ", ",").split(","):
        token = token.strip()
        if not token:
            continue
        try:
            months.append(int(token))
        except ValueError:
            logger.warning(f"Ignoring invalid month value {token!r}")
    return months


def normalize_months(months: Optional[Iterable[int]]) -> tuple[int, ...]:
    """
    Keep the caller's order, drop duplicates and values outside 1..12.
    Falls back to the full year when nothing valid is left.
    """
    seen: list[int] = []
    for month in months or ():
        if 1 <= month <= 12 and month not in seen:
            seen.append(month)
    if not seen:
        return ALL_MONTHS
    return tuple(seen)
