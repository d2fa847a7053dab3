"""Root conftest with shared fixtures for a fake CoachShare backend."""

from datetime import datetime, timedelta
from typing import Any, Callable

import httpx
import pytest

from coachshare.api import CoachShareApi
from coachshare.services.client import ApiClient
from coachshare.services.token_store import MemoryTokenStorage, SessionStore

BASE_URL = "http://coachshare.test/api"

Handler = Callable[[httpx.Request], Any]


class FakeBackend:
    """
    httpx.MockTransport handler with per-route canned responses.

    Each route holds a queue of ``(status, body)`` tuples or callables; the
    last entry repeats once the queue is drained.
    """

    def __init__(self):
        self.routes: dict[tuple[str, str], list[Any]] = {}
        self.calls: list[httpx.Request] = []

    def add(self, method: str, path: str, *responses: Any) -> None:
        self.routes[(method.upper(), path)] = list(responses)

    def count(self, method: str, path: str) -> int:
        return sum(
            1
            for r in self.calls
            if r.method == method.upper() and self._path(r) == path
        )

    def last(self, method: str, path: str) -> httpx.Request:
        matching = [
            r
            for r in self.calls
            if r.method == method.upper() and self._path(r) == path
        ]
        return matching[-1]

    @staticmethod
    def _path(request: httpx.Request) -> str:
        return request.url.path.removeprefix("/api")

    async def __call__(self, request: httpx.Request) -> httpx.Response:
        self.calls.append(request)
        key = (request.method, self._path(request))
        queue = self.routes.get(key)
        if not queue:
            return httpx.Response(404, json={"message": f"No route for {key}"})

        item = queue.pop(0) if len(queue) > 1 else queue[0]
        if callable(item):
            item = item(request)
            if hasattr(item, "__await__"):
                item = await item
        if isinstance(item, httpx.Response):
            return item
        status, body = item
        return httpx.Response(status, json=body)


class FakeClock:
    def __init__(self, start: datetime | None = None):
        self.now = start or datetime(2024, 7, 1, 9, 0, 0)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs: float) -> None:
        self.now += timedelta(**kwargs)


class RecordingSleep:
    def __init__(self):
        self.delays: list[float] = []

    async def __call__(self, delay: float) -> None:
        self.delays.append(delay)


def user_payload(**overrides: Any) -> dict[str, Any]:
    user = {
        "_id": "u1",
        "firstName": "Ana",
        "lastName": "Silva",
        "email": "ana@example.com",
        "role": "coach",
        "isEmailVerified": True,
        "athletes": ["a1", "a2"],
        "specialties": ["sprint"],
    }
    user.update(overrides)
    return user


@pytest.fixture
def backend() -> FakeBackend:
    return FakeBackend()


@pytest.fixture
def store() -> SessionStore:
    return SessionStore(MemoryTokenStorage())


@pytest.fixture
def redirects() -> list[str]:
    return []


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def sleep() -> RecordingSleep:
    return RecordingSleep()


@pytest.fixture
def client(backend, store, redirects, clock, sleep) -> ApiClient:
    return ApiClient(
        BASE_URL,
        store=store,
        navigator=redirects.append,
        http_client=httpx.AsyncClient(transport=httpx.MockTransport(backend)),
        clock=clock,
        sleep=sleep,
    )


@pytest.fixture
def api(client) -> CoachShareApi:
    return CoachShareApi(client)


@pytest.fixture
def make_user() -> Callable[..., dict[str, Any]]:
    return user_payload
