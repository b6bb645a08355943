from __future__ import annotations

import time

import httpx

PROBE_MARKER = "greeter-prober"


def check_health(url: str, timeout_s: float = 2.0, mark: bool = True) -> tuple[bool, str, float | None]:
    """Probe an instance over HTTP.

    Any 200 answer counts as healthy; the body is not inspected.
    Returns (is_healthy, message, latency_ms).
    """
    params = {"source": PROBE_MARKER} if mark else None
    start = time.time()
    try:
        with httpx.Client(timeout=timeout_s, follow_redirects=False) as client:
            resp = client.get(url, params=params)
        latency_ms = round((time.time() - start) * 1000.0, 2)
        if resp.status_code != 200:
            return False, f"HTTP {resp.status_code}", latency_ms
        return True, "Healthy", latency_ms
    except (httpx.ConnectError, httpx.TimeoutException):
        latency_ms = round((time.time() - start) * 1000.0, 2)
        return False, "No response", latency_ms
    except httpx.HTTPError as e:
        latency_ms = round((time.time() - start) * 1000.0, 2)
        return False, f"Error: {type(e).__name__}: {e}", latency_ms
