"""Single-shot client that fetches the greeting and holds what is displayed.

A session starts in ``Loading`` and moves exactly once, to ``Success`` with the
body text or to ``Failed`` with a reason. Nothing is retried.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from threading import Lock
from typing import Union

import httpx

logger = logging.getLogger(__name__)

LOADING_TEXT = "Loading..."


@dataclass(frozen=True)
class Loading:
    pass


@dataclass(frozen=True)
class Success:
    text: str


@dataclass(frozen=True)
class Failed:
    reason: str


DisplayState = Union[Loading, Success, Failed]

LOADING = Loading()


class StateTransitionError(RuntimeError):
    """Raised when display state is committed more than once."""


def render(state: DisplayState) -> str:
    if isinstance(state, Success):
        return state.text
    if isinstance(state, Failed):
        return f"Unavailable: {state.reason}"
    return LOADING_TEXT


class DisplayCell:
    """Holds the display state; the only legal move is out of Loading, once."""

    def __init__(self) -> None:
        self._lock = Lock()
        self._state: DisplayState = LOADING

    @property
    def state(self) -> DisplayState:
        with self._lock:
            return self._state

    def commit(self, state: DisplayState) -> None:
        if isinstance(state, Loading):
            raise StateTransitionError("cannot commit Loading")
        with self._lock:
            if not isinstance(self._state, Loading):
                raise StateTransitionError(f"display state already settled as {self._state!r}")
            self._state = state

    def render(self) -> str:
        return render(self.state)


class ClientFetcher:
    """Issues one GET to the backend and commits the outcome to a DisplayCell."""

    def __init__(self, target_url: str, timeout_s: float = 10.0, client: httpx.AsyncClient | None = None):
        target_url = target_url.strip()
        if not target_url:
            raise ValueError("target_url must not be blank")
        if timeout_s <= 0:
            raise ValueError("timeout_s must be > 0")
        self.target_url = target_url
        self.timeout_s = timeout_s
        self.cell = DisplayCell()
        self._client = client
        self._owns_client = client is None
        self._task: asyncio.Task | None = None

    @property
    def state(self) -> DisplayState:
        return self.cell.state

    def render(self) -> str:
        return self.cell.render()

    def on_init(self) -> asyncio.Task:
        """Start the fetch. Later calls return the same task without a new request."""
        if self._task is None:
            self._task = asyncio.get_running_loop().create_task(self._fetch())
        return self._task

    async def _fetch(self) -> None:
        if self._client is None:
            self._client = httpx.AsyncClient()
        try:
            resp = await self._client.get(self.target_url, timeout=self.timeout_s)
        except httpx.TimeoutException:
            outcome: DisplayState = Failed(f"timed out after {self.timeout_s:g}s")
        except httpx.TransportError as e:
            outcome = Failed(f"connection failed: {type(e).__name__}")
        except httpx.RequestError as e:
            # e.g. a body that does not decode under its Content-Encoding
            outcome = Failed(f"bad response: {type(e).__name__}")
        else:
            if resp.is_success:
                outcome = Success(resp.text)
            else:
                outcome = Failed(f"HTTP {resp.status_code}")

        if isinstance(outcome, Failed):
            logger.warning("Fetch from %s failed: %s", self.target_url, outcome.reason)
        else:
            logger.info("Fetched %d characters from %s", len(outcome.text), self.target_url)
        self.cell.commit(outcome)

    async def aclose(self) -> None:
        """End the session. A request still in flight is dropped, not awaited."""
        if self._task is not None and not self._task.done():
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
        if self._owns_client and self._client is not None:
            await self._client.aclose()
            self._client = None

    async def __aenter__(self) -> ClientFetcher:
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()


async def fetch_once(target_url: str, timeout_s: float = 10.0, client: httpx.AsyncClient | None = None) -> DisplayState:
    async with ClientFetcher(target_url, timeout_s=timeout_s, client=client) as fetcher:
        await fetcher.on_init()
        return fetcher.state
