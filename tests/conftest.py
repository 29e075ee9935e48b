import httpx
import pytest

BASE_URL = "http://backend.test"


class FakeBackend:
    """Routes path → (status, json) or an exception instance. Unknown paths 404."""

    def __init__(self):
        self.routes = {}
        self.calls = []

    def add(self, path, body=None, status=200):
        self.routes[path] = (status, body)

    def fail(self, path, exc=None):
        self.routes[path] = exc or httpx.ConnectError("connection refused")

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.calls.append(request)
        route = self.routes.get(request.url.path)
        if route is None:
            return httpx.Response(404, json={"message": "not found"})
        if isinstance(route, Exception):
            raise route
        status, body = route
        if isinstance(body, (bytes, str)):
            return httpx.Response(status, content=body)
        return httpx.Response(status, json=body)

    def client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(base_url=BASE_URL, transport=httpx.MockTransport(self.handler))

    def paths(self):
        return [r.url.path for r in self.calls]


@pytest.fixture
def backend():
    return FakeBackend()


class FakeClock:
    def __init__(self, start=1_700_000_000_000):
        self.now = start

    def __call__(self):
        return self.now

    def advance(self, ms):
        self.now += ms


@pytest.fixture
def clock():
    return FakeClock()
