"""Month loop: token, fetch, then persist or skip."""
import asyncio
import logging
from typing import Iterable, Optional

from aet_downloader.auth.token import TokenProvider
from aet_downloader.config import Credentials, Settings
from aet_downloader.errors import AuthError, ConfigError, TokenExpiredError
from aet_downloader.fetch.client import BrowserJsonClient, HttpJsonClient, JsonClient
from aet_downloader.fetch.outcomes import (
    ApiFailure,
    ApiOutcome,
    Success,
    TokenInvalid,
    TransportFailure,
)
from aet_downloader.fetch.records import RecordFetcher
from aet_downloader.fetch.retry import RetryPolicy, Sleep
from aet_downloader.jobs.metrics import RunMetrics
from aet_downloader.jobs.months import format_month, normalize_months
from aet_downloader.jobs.schedule import wait_until
from aet_downloader.store.aet_storage import AetStorage

logger = logging.getLogger(__name__)

class MonthRunner:
    """
    Drives the month loop strictly in sequence.

    Every month gets a fresh token. A failed month is logged and skipped;
    only missing credentials stop the run, and they are checked before the
    first request.
    """

    def __init__(
        self,
        token_provider: TokenProvider,
        fetcher: RecordFetcher,
        storage: AetStorage,
        persist_empty: bool = True,
        month_delay: float = 2.0,
        sleep: Sleep = asyncio.sleep,
        propagate_token_expiry: bool = False,
    ):
        self.token_provider = token_provider
        self.fetcher = fetcher
        self.storage = storage
        self.persist_empty = persist_empty
        self.month_delay = month_delay
        self.sleep = sleep
        self.propagate_token_expiry = propagate_token_expiry

    async def run(self, credentials: Credentials, year: int, months: Optional[Iterable[int]] = None) -> RunMetrics:
        """Process every configured month of ``year``."""
        if not credentials.is_complete():
            raise ConfigError("SIAET_ID and SIAET_SECRET were not provided")

        months = normalize_months(months)
        metrics = RunMetrics(total=len(months))
        logger.info(f"Starting AET download for {year}: months {', '.join(format_month(m) for m in months)}")

        for month in months:
            logger.info(f"--- Processing {format_month(month)}/{year} ---")
            try:
                await self._process_month(credentials, year, month, metrics)
            except TokenExpiredError:
                raise
            except Exception as e:
                logger.error(f"Unexpected error for {format_month(month)}/{year}, skipping this month: {e}", exc_info=True)
                metrics.increment("failed")
            metrics.increment("processed")

            logger.debug(f"Waiting {self.month_delay:g}s before the next month")
            await self.sleep(self.month_delay)

        metrics.report()
        return metrics

    async def _process_month(self, credentials: Credentials, year: int, month: int, metrics: RunMetrics) -> None:
        label = f"{format_month(month)}/{year}"

        try:
            token = await self.token_provider.acquire_token(credentials)
        except AuthError as e:
            logger.error(f"Could not obtain a token for {label}, skipping this month: {e}")
            metrics.increment("auth_failed")
            return

        outcome = await self.fetcher.fetch_month(token, month, year)
        await self._dispatch(outcome, year, month, metrics)

    async def _dispatch(self, outcome: ApiOutcome, year: int, month: int, metrics: RunMetrics) -> None:
        label = f"{format_month(month)}/{year}"

        if isinstance(outcome, Success):
            if outcome.is_empty and not self.persist_empty:
                logger.info(f"No AET records for {label}, nothing saved")
                metrics.increment("empty")
                return
            try:
                path = await self.storage.save(outcome.payload, year, month)
            except OSError as e:
                logger.error(f"Error saving data for {label}: {e}")
                metrics.increment("failed")
                return
            if outcome.is_empty:
                metrics.increment("empty")
            metrics.record_saved(path)
            return

        if isinstance(outcome, TokenInvalid):
            logger.warning(f"Token expired for {label}: {outcome.message}")
            metrics.increment("token_expired")
            if self.propagate_token_expiry:
                raise TokenExpiredError(month, year, outcome.message)
            return

        if isinstance(outcome, ApiFailure):
            logger.warning(f"No AET data returned for {label} ({outcome.code}: {outcome.message})")
            metrics.increment("skipped")
        elif isinstance(outcome, TransportFailure):
            logger.warning(f"Persistent failure for {label}: {outcome.message}")
            metrics.increment("failed")


def build_client(settings: Settings) -> JsonClient:
    """Pick the transport for the configured fetch mode."""
    if settings.fetch_mode == "browser":
        return BrowserJsonClient(navigation_timeout=settings.navigation_timeout)
    return HttpJsonClient(timeout=settings.timeout)


async def run_from_settings(
    settings: Settings,
    client: Optional[JsonClient] = None,
    sleep: Sleep = asyncio.sleep,
    propagate_token_expiry: bool = False,
) -> RunMetrics:
    """Wire the components from validated settings and run once."""
    settings.validate()

    if settings.start_time is not None:
        await wait_until(settings.start_time, sleep=sleep)

    policy = RetryPolicy(max_attempts=settings.max_attempts, delay=settings.retry_delay, sleep=sleep)
    async with (client or build_client(settings)) as json_client:
        runner = MonthRunner(
            token_provider=TokenProvider(json_client, settings.base_url),
            fetcher=RecordFetcher(json_client, settings.base_url, policy),
            storage=AetStorage(settings.output_dir),
            persist_empty=settings.persist_empty,
            month_delay=settings.month_delay,
            sleep=sleep,
            propagate_token_expiry=propagate_token_expiry,
        )
        return await runner.run(settings.credentials, settings.year, settings.months)
