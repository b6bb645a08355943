import asyncio

import httpx
import pytest

from greeter.backend import create_backend_app
from greeter.fetcher import (
    LOADING,
    ClientFetcher,
    DisplayCell,
    Failed,
    Loading,
    StateTransitionError,
    Success,
    fetch_once,
    render,
)


def _run(coro):
    return asyncio.run(coro)


def test_display_cell_single_transition():
    cell = DisplayCell()
    assert cell.state == LOADING
    assert cell.render() == "Loading..."

    cell.commit(Success("hi"))
    assert cell.state == Success("hi")
    assert cell.render() == "hi"

    with pytest.raises(StateTransitionError):
        cell.commit(Success("again"))
    with pytest.raises(StateTransitionError):
        cell.commit(Failed("late"))
    assert cell.state == Success("hi")


def test_display_cell_rejects_loading_commit():
    cell = DisplayCell()
    with pytest.raises(StateTransitionError):
        cell.commit(Loading())


def test_render_variants():
    assert render(LOADING) == "Loading..."
    assert render(Success("Hello from Go API!")) == "Hello from Go API!"
    assert render(Failed("HTTP 503")) == "Unavailable: HTTP 503"


def test_fetch_against_live_backend(cfg):
    async def scenario():
        transport = httpx.ASGITransport(app=create_backend_app(cfg))
        async with httpx.AsyncClient(transport=transport) as client:
            fetcher = ClientFetcher("http://go-api-service:8080/", client=client)
            assert fetcher.state == LOADING
            await fetcher.on_init()
            first = fetcher.state
            # a second init must not fetch or transition again
            await fetcher.on_init()
            return first, fetcher.state, fetcher.render()

    first, second, shown = _run(scenario())
    assert first == Success("Hello from Go API!")
    assert second is first
    assert shown == "Hello from Go API!"


def test_on_init_issues_exactly_one_request():
    calls = []

    def handler(request):
        calls.append(request)
        return httpx.Response(200, text="Hello from Go API!")

    async def scenario():
        async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
            fetcher = ClientFetcher("http://go-api-service:8080", client=client)
            t1 = fetcher.on_init()
            t2 = fetcher.on_init()
            assert t1 is t2
            await t1
            fetcher.on_init()
            await asyncio.sleep(0)
            return fetcher.state

    assert _run(scenario()) == Success("Hello from Go API!")
    assert len(calls) == 1
    assert calls[0].method == "GET"


@pytest.mark.parametrize(
    "exc,expected",
    [
        (httpx.ConnectError, "connection failed: ConnectError"),
        (httpx.ReadTimeout, "timed out after 3s"),
    ],
)
def test_unreachable_backend_fails_without_retry(exc, expected):
    calls = []

    def handler(request):
        calls.append(request)
        raise exc("boom", request=request)

    async def scenario():
        async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
            return await fetch_once("http://go-api-service:8080", timeout_s=3, client=client)

    state = _run(scenario())
    assert state == Failed(expected)
    assert len(calls) == 1


def test_non_success_status_is_failed():
    def handler(request):
        return httpx.Response(503, text="No healthy backends")

    async def scenario():
        async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
            return await fetch_once("http://go-api-service:8080", client=client)

    assert _run(scenario()) == Failed("HTTP 503")


def test_session_end_discards_pending_fetch():
    async def handler(request):
        await asyncio.Event().wait()

    async def scenario():
        async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
            fetcher = ClientFetcher("http://go-api-service:8080", client=client)
            task = fetcher.on_init()
            await asyncio.sleep(0.01)
            await fetcher.aclose()
            return task, fetcher.state

    task, state = _run(scenario())
    assert task.cancelled()
    assert state == LOADING


def test_fetcher_validates_arguments():
    with pytest.raises(ValueError):
        ClientFetcher("  ")
    with pytest.raises(ValueError):
        ClientFetcher("http://go-api-service:8080", timeout_s=0)


def test_undecodable_body_is_failed():
    def handler(request):
        return httpx.Response(
            200,
            headers={"Content-Encoding": "gzip"},
            stream=httpx.ByteStream(b"not gzip"),
        )

    async def scenario():
        async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
            return await fetch_once("http://go-api-service:8080", client=client)

    assert _run(scenario()) == Failed("bad response: DecodingError")
