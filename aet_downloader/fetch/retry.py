"""Fixed-interval retry policy built on tenacity."""
import asyncio
import logging
from dataclasses import dataclass, field
from typing import Awaitable, Callable

from tenacity import AsyncRetrying, retry_if_exception_type, stop_after_attempt, wait_fixed

logger = logging.getLogger(__name__)

Sleep = Callable[[float], Awaitable[None]]


@dataclass(frozen=True)
class RetryPolicy:
    """
    How many attempts a month gets and how long to wait between them.

    The wait is constant (no jitter, no growth). ``sleep`` is injectable so
    tests can observe delays without spending wall-clock time.
    """

    max_attempts: int = 3
    delay: float = 5.0
    sleep: Sleep = field(default=asyncio.sleep, compare=False)

    def retrying(self, retry_on: type[BaseException]) -> AsyncRetrying:
        """A tenacity controller that retries only ``retry_on`` exceptions."""
        return AsyncRetrying(
            stop=stop_after_attempt(self.max_attempts),
            wait=wait_fixed(self.delay),
            retry=retry_if_exception_type(retry_on),
            sleep=self.sleep,
            before_sleep=self._log_wait,
            reraise=True,
        )

    def _log_wait(self, retry_state) -> None:
        logger.info(
            f"Attempt {retry_state.attempt_number}/{self.max_attempts} failed, "
            f"waiting {self.delay:g}s before retrying"
        )


def no_wait_policy(max_attempts: int = 3) -> RetryPolicy:
    """Policy with zero delay."""

    async def _no_sleep(_seconds: float) -> None:
        return None

    return RetryPolicy(max_attempts=max_attempts, delay=0.0, sleep=_no_sleep)
