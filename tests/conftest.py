"""Shared fixtures: clients wired to an in-process httpx mock transport."""

from collections.abc import Callable

import httpx
import pytest

from slurmrestapi import SlurmClient, SlurmDBClient

ENDPOINT = "http://slurmrestd.test:6820"
USER = "slurm-user"
TOKEN = "not-a-jwt-token"

Handler = Callable[[httpx.Request], httpx.Response]


@pytest.fixture
def anyio_backend() -> str:
    """Run async tests on asyncio only."""
    return "asyncio"


@pytest.fixture
def requests_seen() -> list[httpx.Request]:
    """Requests received by the mock transport, in order."""
    return []


@pytest.fixture
def make_slurm_client(requests_seen: list[httpx.Request]):
    """Factory for SlurmClient instances answering through ``handler``."""

    def _make(handler: Handler) -> SlurmClient:
        def _record(request: httpx.Request) -> httpx.Response:
            requests_seen.append(request)
            return handler(request)

        return SlurmClient(
            USER, TOKEN, ENDPOINT, transport=httpx.MockTransport(_record)
        )

    return _make


@pytest.fixture
def make_slurmdb_client(requests_seen: list[httpx.Request]):
    """Factory for SlurmDBClient instances answering through ``handler``."""

    def _make(handler: Handler) -> SlurmDBClient:
        def _record(request: httpx.Request) -> httpx.Response:
            requests_seen.append(request)
            return handler(request)

        return SlurmDBClient(
            USER, TOKEN, ENDPOINT, transport=httpx.MockTransport(_record)
        )

    return _make


@pytest.fixture
def json_handler():
    """Build a handler answering every request with a fixed JSON payload."""

    def _build(payload: dict, status_code: int = 200) -> Handler:
        def _handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(status_code, json=payload)

        return _handler

    return _build
