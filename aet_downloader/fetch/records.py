"""Monthly AET retrieval with response classification and retries."""
import logging

from aet_downloader.errors import FetchError
from aet_downloader.fetch.client import JsonClient
from aet_downloader.fetch.endpoints import get_aet_params, get_aet_url
from aet_downloader.fetch.outcomes import (
    ApiFailure,
    ApiOutcome,
    Success,
    TokenInvalid,
    TransportFailure,
)
from aet_downloader.fetch.retry import RetryPolicy
from aet_downloader.jobs.months import format_month
from aet_downloader.parse.envelope import (
    classify_data_response,
    is_terminal_code,
    is_token_invalid_message,
)
from aet_downloader.parse.redact import redact_string

logger = logging.getLogger(__name__)


class RetryableOutcome(Exception):
    """Raised inside an attempt whose outcome deserves another try."""

    def __init__(self, outcome: ApiOutcome):
        super().__init__(repr(outcome))
        self.outcome = outcome


class RecordFetcher:
    """Fetches one month of AET records and decides when to give up."""

    def __init__(self, client: JsonClient, base_url: str, policy: RetryPolicy | None = None):
        self.client = client
        self.base_url = base_url
        self.policy = policy or RetryPolicy()

    async def fetch_month(self, token: str, month: int, year: int) -> ApiOutcome:
        """
        Query AET records for ``month``/``year``.

        Returns Success as soon as an ``AET`` list arrives (even empty).
        TokenInvalid and terminal error codes stop immediately; other
        failures are retried up to the policy's attempt cap.
        """
        label = f"{format_month(month)}/{year}"
        logger.info(f"Querying AET for {label}")

        try:
            async for attempt in self.policy.retrying(RetryableOutcome):
                with attempt:
                    attempt_number = attempt.retry_state.attempt_number
                    logger.debug(f"Attempt {attempt_number}/{self.policy.max_attempts} for {label}")
                    return await self._attempt(token, month, year, label)
        except RetryableOutcome as e:
            logger.error(f"Giving up on {label} after {self.policy.max_attempts} attempts")
            return e.outcome

        # Unreachable: tenacity either returns from the block or reraises
        return TransportFailure(f"no attempt made for {label}")

    async def _attempt(self, token: str, month: int, year: int, label: str) -> ApiOutcome:
        try:
            payload = await self.client.get_json(
                get_aet_url(self.base_url),
                get_aet_params(token, month, year),
            )
        except FetchError as e:
            message = str(e)
            if is_token_invalid_message(message):
                logger.warning(f"Token invalid or expired while querying {label}")
                return TokenInvalid(message)
            logger.warning(f"Transport failure for {label}: {redact_string(message)}")
            raise RetryableOutcome(TransportFailure(message)) from e
        except Exception as e:
            message = redact_string(str(e)) or type(e).__name__
            if is_token_invalid_message(message):
                logger.warning(f"Token invalid or expired while querying {label}")
                return TokenInvalid(message)
            logger.warning(f"Unexpected transport error for {label}: {message}", exc_info=True)
            raise RetryableOutcome(TransportFailure(message)) from e

        outcome = classify_data_response(payload)

        if isinstance(outcome, Success):
            if outcome.is_empty:
                logger.info(f"No AET found for {label}")
            else:
                logger.info(f"Received {len(outcome.records)} AET records for {label}")
            return outcome

        if isinstance(outcome, ApiFailure):
            logger.warning(f"API error ({outcome.code}) for {label}: {outcome.message}")
            if is_token_invalid_message(outcome.message):
                logger.warning(f"Token invalid or expired while querying {label}")
                return TokenInvalid(outcome.message)
            if is_terminal_code(outcome.code):
                logger.info(f"Code {outcome.code} is final for {label}, not retrying")
                return outcome
            raise RetryableOutcome(outcome)

        logger.warning(f"Unrecognized response for {label}: {redact_string(repr(payload)[:200])}")
        raise RetryableOutcome(ApiFailure(code="unrecognized", message="response has neither AET nor siaet"))
