"""Tests for the JSON clients."""
import asyncio

import httpx
import pytest
from playwright.async_api import Error as PlaywrightError

from aet_downloader.errors import FetchError
from aet_downloader.fetch import client as client_module
from aet_downloader.fetch.client import BrowserJsonClient, HttpJsonClient, decode_body, extract_body_text


def _get(handler, url="https://siaet.test/api/aet/detalhe/v1/", params=None):
    async def go():
        async with HttpJsonClient(transport=httpx.MockTransport(handler)) as client:
            return await client.get_json(url, params or {"token": "t"})

    return asyncio.run(go())


def test_get_json_decodes_body():
    """JSON bodies are decoded."""
    body = _get(lambda request: httpx.Response(200, json={"AET": [{"id": 1}]}))
    assert body == {"AET": [{"id": 1}]}


def test_get_json_sends_params():
    """Query parameters are encoded on the URL."""
    seen = []

    def handler(request):
        seen.append(request)
        return httpx.Response(200, json={"AET": []})

    _get(handler, params={"token": "abc", "mesLiberacaoAet": "04", "anoLiberacaoAet": "2024"})
    assert seen[0].url.params["mesLiberacaoAet"] == "04"
    assert seen[0].url.params["anoLiberacaoAet"] == "2024"


def test_get_json_error_status_with_envelope():
    """Error statuses with a JSON body are returned for classification."""
    envelope = {"siaet": {"retorno": "erro", "codigo": "401", "mensagem": "token invalido"}}
    body = _get(lambda request: httpx.Response(401, json=envelope))
    assert body == envelope


def test_get_json_error_status_without_json():
    """Error statuses without JSON are transport failures."""
    with pytest.raises(FetchError, match="HTTP 502"):
        _get(lambda request: httpx.Response(502, text="<html>Bad Gateway</html>"))


def test_get_json_non_json_success_returns_text():
    """A 200 with non-JSON content is handed back as text."""
    assert _get(lambda request: httpx.Response(200, text="manutencao")) == "manutencao"


def test_get_json_timeout():
    """Timeouts surface as FetchError."""

    def handler(request):
        raise httpx.ReadTimeout("timed out", request=request)

    with pytest.raises(FetchError):
        _get(handler)


def test_decode_body():
    """Invalid JSON stays text."""
    assert decode_body('{"AET": []}') == {"AET": []}
    assert decode_body("not json") == "not json"
    assert decode_body("") == ""


def test_extract_body_text_from_rendered_json():
    """Chromium renders JSON inside <pre>; the body text is the JSON."""
    html = '<html><head></head><body><pre>{"AET": [{"numero": "1"}]}</pre></body></html>'
    assert decode_body(extract_body_text(html)) == {"AET": [{"numero": "1"}]}


def test_extract_body_text_empty_page():
    """A blank page gives an empty string."""
    assert extract_body_text("<html><body></body></html>") == ""


def test_get_json_error_status_keeps_body_excerpt():
    """Plain-text error bodies stay in the message so a rejected token is recognizable."""
    with pytest.raises(FetchError, match="HTTP 401: token invalido"):
        _get(lambda request: httpx.Response(401, text="token invalido"))


class FakePage:
    def __init__(self, html="", goto_error=None, close_error=None):
        self.html = html
        self.goto_error = goto_error
        self.close_error = close_error
        self.visited: list[str] = []
        self.closed = False

    async def goto(self, url, wait_until=None, timeout=None):
        self.visited.append(url)
        if self.goto_error:
            raise self.goto_error

    async def content(self):
        return self.html

    async def close(self):
        self.closed = True
        if self.close_error:
            raise self.close_error


class FakeBrowser:
    def __init__(self, pages=None, new_page_error=None):
        self.pages = list(pages or [])
        self.new_page_error = new_page_error
        self.opened: list[FakePage] = []

    async def new_page(self):
        if self.new_page_error:
            raise self.new_page_error
        page = self.pages.pop(0)
        self.opened.append(page)
        return page


def _browser_get(browser, params=None):
    client = BrowserJsonClient(navigation_timeout=5)
    client._browser = browser
    return asyncio.run(client.get_json("https://siaet.test/api/aet/detalhe/v1/", params or {"token": "t"}))


def test_browser_page_per_call():
    """Every call opens its own page and closes it afterwards."""
    pages = [FakePage('<html><body><pre>{"AET": []}</pre></body></html>') for _ in range(2)]
    browser = FakeBrowser(pages)
    client = BrowserJsonClient()
    client._browser = browser

    async def go():
        first = await client.get_json("https://siaet.test/api/aet/detalhe/v1/", {"mesLiberacaoAet": "01"})
        second = await client.get_json("https://siaet.test/api/aet/detalhe/v1/", {"mesLiberacaoAet": "02"})
        return first, second

    assert asyncio.run(go()) == ({"AET": []}, {"AET": []})
    assert browser.opened == pages
    assert all(page.closed for page in pages)
    assert "mesLiberacaoAet=01" in pages[0].visited[0]
    assert "mesLiberacaoAet=02" in pages[1].visited[0]


def test_browser_navigation_error_is_fetch_error():
    """A failed navigation surfaces as FetchError and the page is still closed."""
    page = FakePage(goto_error=PlaywrightError("net::ERR_TIMED_OUT"))
    with pytest.raises(FetchError, match="ERR_TIMED_OUT"):
        _browser_get(FakeBrowser([page]))
    assert page.closed


def test_browser_close_error_does_not_mask_navigation_error():
    """An error while closing a crashed page keeps the original failure."""
    page = FakePage(
        goto_error=PlaywrightError("Target crashed"),
        close_error=PlaywrightError("Target closed"),
    )
    with pytest.raises(FetchError, match="Target crashed"):
        _browser_get(FakeBrowser([page]))


def test_browser_new_page_error_is_fetch_error():
    """Failing to open a page is a transport failure too."""
    with pytest.raises(FetchError, match="Browser has been closed"):
        _browser_get(FakeBrowser(new_page_error=PlaywrightError("Browser has been closed")))


def test_browser_requires_start():
    """Using the client outside 'async with' is a programming error."""
    with pytest.raises(RuntimeError):
        asyncio.run(BrowserJsonClient().get_json("https://siaet.test/", {}))


def test_browser_launch_failure(monkeypatch):
    """A missing Chromium becomes a FetchError and Playwright is stopped."""
    stopped = []

    class FakeChromium:
        async def launch(self, headless=True):
            raise PlaywrightError("Executable doesn't exist")

    class FakePlaywright:
        chromium = FakeChromium()

        async def stop(self):
            stopped.append(True)

    class FakeStarter:
        async def start(self):
            return FakePlaywright()

    monkeypatch.setattr(client_module, "async_playwright", lambda: FakeStarter())

    async def go():
        async with BrowserJsonClient():
            pass

    with pytest.raises(FetchError, match="playwright install chromium"):
        asyncio.run(go())
    assert stopped == [True]
