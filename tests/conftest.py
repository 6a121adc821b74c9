"""Test configuration and fixtures for Sub-O-TX."""

from collections.abc import Iterable
from pathlib import Path

import pytest

from auth.key_manager import KeyRotator
from auth.session_handler import SessionHandler
from recon import console
from recon.otx_enum import OTXClient
from recon.settings import Settings


class FakeClock:
    """Manual clock: sleeping advances time and is recorded, never blocks."""

    def __init__(self, start: float = 1000.0):
        self.now = start
        self.sleeps: list[float] = []

    def time(self) -> float:
        return self.now

    def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.now += seconds


class FakeResponse:
    def __init__(self, status_code: int, body=None):
        self.status_code = status_code
        self._body = body

    def json(self):
        if self._body is None:
            raise ValueError("No JSON object could be decoded")
        return self._body


class FakeSession:
    """Stands in for requests.Session; replays scripted responses in order."""

    def __init__(self, responses: Iterable = ()):
        self.responses = list(responses)
        self.calls: list[dict] = []
        self.closed = False

    def queue(self, *responses) -> None:
        self.responses.extend(responses)

    def get(self, url, headers=None, **kwargs):
        self.calls.append({"url": url, "headers": dict(headers or {}), **kwargs})
        if not self.responses:
            raise AssertionError(f"unexpected request: {url}")
        item = self.responses.pop(0)
        if isinstance(item, Exception):
            raise item
        return item

    def close(self):
        self.closed = True

    @property
    def keys_used(self) -> list[str]:
        return [c["headers"].get("X-OTX-API-KEY") for c in self.calls]

    @property
    def urls(self) -> list[str]:
        return [c["url"] for c in self.calls]


def ok(body) -> FakeResponse:
    return FakeResponse(200, body)


def url_page(*urls) -> FakeResponse:
    return FakeResponse(200, {"url_list": [{"url": u} for u in urls], "has_next": bool(urls)})


def dns_page(*hostnames) -> FakeResponse:
    return FakeResponse(200, {"passive_dns": [{"hostname": h} for h in hostnames]})


def rate_limited() -> FakeResponse:
    return FakeResponse(429, {"detail": "Request was throttled."})


@pytest.fixture(autouse=True)
def reset_console():
    console.configure()
    yield
    console.configure()


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def fake_session() -> FakeSession:
    return FakeSession()


@pytest.fixture
def client(fake_session: FakeSession) -> OTXClient:
    return OTXClient(handler=SessionHandler(session=fake_session), base_url="https://otx.test/api/v1")


@pytest.fixture
def settings() -> Settings:
    return Settings(per_key_gap=3, success_sleep=1, rate_sleep_fast=30, rate_sleep_long=180, max_429_retries=5)


@pytest.fixture
def make_rotator(clock: FakeClock):
    def _make(keys, min_gap=3):
        return KeyRotator(keys, min_gap=min_gap, clock=clock.time, sleep=clock.sleep)
    return _make


@pytest.fixture
def output_dir(tmp_path: Path) -> Path:
    return tmp_path / "logs"
