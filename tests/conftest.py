"""Shared fakes for the downloader tests."""
import pytest

from aet_downloader.config import Credentials
from aet_downloader.errors import FetchError
from aet_downloader.fetch.client import JsonClient
from aet_downloader.fetch.endpoints import AET_DETAIL_PATH, TOKEN_PATH

BASE_URL = "https://siaet.test"


def token_ok(token: str = "tok-123") -> dict:
    return {"siaet": {"retorno": "token", "codigo": "200", "mensagem": token}}


def api_error(code: str, message: str) -> dict:
    return {"siaet": {"retorno": "erro", "codigo": code, "mensagem": message}}


class SleepRecorder:
    """Async sleep replacement that only records the requested delays."""

    def __init__(self):
        self.calls: list[float] = []

    async def __call__(self, seconds: float) -> None:
        self.calls.append(seconds)


class FakeSiaetClient(JsonClient):
    """
    Scripted client. Each endpoint has a queue of responses; an Exception
    instance in the queue is raised instead of returned. The last response
    repeats once the queue is drained.
    """

    def __init__(self, token_responses=None, data_responses=None):
        self.token_responses = list(token_responses or [token_ok()])
        self.data_responses = list(data_responses or [{"AET": []}])
        self.calls: list[tuple[str, dict]] = []

    def _next(self, queue):
        item = queue.pop(0) if len(queue) > 1 else queue[0]
        if isinstance(item, Exception):
            raise item
        return item

    async def get_json(self, url, params):
        self.calls.append((url, dict(params)))
        if url.endswith(TOKEN_PATH):
            return self._next(self.token_responses)
        if url.endswith(AET_DETAIL_PATH):
            return self._next(self.data_responses)
        raise FetchError(f"unexpected url {url}")

    def calls_to(self, path: str) -> list[dict]:
        return [params for url, params in self.calls if url.endswith(path)]


@pytest.fixture
def credentials():
    return Credentials(id="my-id", secret="my-secret")


@pytest.fixture
def sleep_recorder():
    return SleepRecorder()
