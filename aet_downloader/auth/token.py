"""Access token acquisition from the SIAET token endpoint."""
import logging

from aet_downloader.config import Credentials
from aet_downloader.errors import AuthError, FetchError
from aet_downloader.fetch.client import JsonClient
from aet_downloader.fetch.endpoints import get_token_params, get_token_url
from aet_downloader.parse.envelope import parse_token_response

logger = logging.getLogger(__name__)


class TokenProvider:
    """Exchanges the long-lived credentials for a short-lived token."""

    def __init__(self, client: JsonClient, base_url: str):
        self.client = client
        self.base_url = base_url

    async def acquire_token(self, credentials: Credentials) -> str:
        """
        Request a new token. No retries here; the caller decides.

        Raises AuthError when credentials are missing (before any request),
        on transport failure, or when the envelope is not a 200 token.
        """
        if not credentials.is_complete():
            logger.error("SIAET id or secret not provided")
            raise AuthError("missing credentials")

        logger.info("Requesting token...")
        try:
            payload = await self.client.get_json(
                get_token_url(self.base_url),
                get_token_params(credentials.id, credentials.secret),
            )
        except FetchError as e:
            logger.error(f"Token request failed: {e}")
            raise AuthError(str(e)) from e
        except Exception as e:
            logger.error(f"Unexpected token request failure: {e}", exc_info=True)
            raise AuthError(f"unexpected token request failure: {e}") from e

        try:
            token = parse_token_response(payload)
        except AuthError as e:
            logger.error(f"Token rejected: {e}")
            raise

        logger.info("Token obtained")
        return token
