"""One-time wait until a configured wall-clock start time."""
import asyncio
import logging
from datetime import datetime, time as dt_time, timedelta
from typing import Optional

from aet_downloader.fetch.retry import Sleep

logger = logging.getLogger(__name__)


def seconds_until(start_time: dt_time, now: Optional[datetime] = None) -> float:
    """Seconds from ``now`` to the next occurrence of ``start_time`` (today or tomorrow)."""
    now = now or datetime.now()
    target = now.replace(hour=start_time.hour, minute=start_time.minute, second=0, microsecond=0)
    if target <= now:
        target += timedelta(days=1)
    return (target - now).total_seconds()


async def wait_until(
    start_time: dt_time,
    sleep: Sleep = asyncio.sleep,
    now: Optional[datetime] = None,
) -> float:
    """Sleep until the next ``start_time``. Returns the seconds waited."""
    delay = seconds_until(start_time, now)
    hours, remainder = divmod(int(delay), 3600)
    logger.info(
        f"Waiting until {start_time.strftime('%H:%M')} to start "
        f"({hours}h{remainder // 60:02d}m from now)"
    )
    await sleep(delay)
    return delay
