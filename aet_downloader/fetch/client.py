"""JSON clients for the SIAET API: plain HTTP and headless browser."""
import logging
from typing import Any, Optional

import httpx
import orjson
from playwright.async_api import Error as PlaywrightError
from playwright.async_api import async_playwright
from selectolax.parser import HTMLParser

from aet_downloader.errors import FetchError
from aet_downloader.parse.redact import redact_params, redact_string

logger = logging.getLogger(__name__)


def decode_body(text: str) -> Any:
    """Decode a JSON body, returning the raw text when it is not JSON."""
    try:
        return orjson.loads(text)
    except orjson.JSONDecodeError:
        return text


class JsonClient:
    """Issues a GET and hands back the decoded body. One call, one resource."""

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.aclose()

    async def aclose(self) -> None:
        pass

    async def get_json(self, url: str, params: dict[str, str]) -> Any:
        raise NotImplementedError


class HttpJsonClient(JsonClient):
    """Plain HTTP client backed by httpx."""

    def __init__(self, timeout: float = 30.0, transport: Optional[httpx.AsyncBaseTransport] = None):
        self.client = httpx.AsyncClient(
            http2=True,
            timeout=timeout,
            follow_redirects=True,
            transport=transport,
        )

    async def aclose(self) -> None:
        await self.client.aclose()

    async def get_json(self, url: str, params: dict[str, str]) -> Any:
        logger.debug(f"GET {url} {redact_params(params)}")
        try:
            response = await self.client.get(url, params=params)
        except httpx.HTTPError as e:
            message = redact_string(str(e)) or type(e).__name__
            logger.warning(f"Request to {url} failed: {message}")
            raise FetchError(message) from e

        body = decode_body(response.text)

        # Error statuses often still carry a siaet envelope worth classifying
        if response.is_error and not isinstance(body, dict):
            excerpt = redact_string(response.text[:200].strip())
            logger.warning(f"HTTP {response.status_code} from {url}: {excerpt}")
            raise FetchError(f"HTTP {response.status_code}: {excerpt}" if excerpt else f"HTTP {response.status_code}")
        if response.is_error:
            logger.debug(f"HTTP {response.status_code} from {url} with JSON body")

        return body


class BrowserJsonClient(JsonClient):
    """
    Headless Chromium client.

    Navigates to the endpoint, lets the page render and reads the body text.
    A fresh page is opened per call and closed right after.
    """

    def __init__(self, navigation_timeout: float = 60.0, headless: bool = True):
        self.navigation_timeout = navigation_timeout
        self.headless = headless
        self._playwright = None
        self._browser = None

    async def __aenter__(self):
        self._playwright = await async_playwright().start()
        try:
            self._browser = await self._playwright.chromium.launch(headless=self.headless)
        except PlaywrightError as e:
            await self._playwright.stop()
            self._playwright = None
            raise FetchError(
                "Playwright Chromium is missing. Run `playwright install chromium` and re-run."
            ) from e
        return self

    async def aclose(self) -> None:
        if self._browser is not None:
            await self._browser.close()
            self._browser = None
        if self._playwright is not None:
            await self._playwright.stop()
            self._playwright = None

    async def get_json(self, url: str, params: dict[str, str]) -> Any:
        if self._browser is None:
            raise RuntimeError("Browser not started. Use 'async with BrowserJsonClient()'.")

        logger.debug(f"Navigating to {url} {redact_params(params)}")
        target = str(httpx.URL(url, params=params))
        page = None
        try:
            page = await self._browser.new_page()
            await page.goto(
                target,
                wait_until="domcontentloaded",
                timeout=self.navigation_timeout * 1000,
            )
            html = await page.content()
        except PlaywrightError as e:
            message = redact_string(str(e).splitlines()[0] if str(e) else type(e).__name__)
            logger.warning(f"Navigation to {url} failed: {message}")
            raise FetchError(message) from e
        finally:
            if page is not None:
                await self._close_page(page)

        return decode_body(extract_body_text(html))

    async def _close_page(self, page) -> None:
        """Close a page without masking the error that ended its navigation."""
        try:
            await page.close()
        except PlaywrightError as e:
            logger.debug(f"Error closing page: {e}")


def extract_body_text(html: str) -> str:
    """Text content of the rendered page body (Chromium wraps JSON in <pre>)."""
    tree = HTMLParser(html)
    if tree.body is None:
        return ""
    return tree.body.text(separator="", strip=False).strip()
