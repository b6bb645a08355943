from __future__ import annotations

import logging
from contextlib import asynccontextmanager

import httpx
from fastapi import FastAPI, Request
from fastapi.responses import PlainTextResponse, Response

from .registry import Endpoint, ServiceRegistry
from .settings import Settings, settings as default_settings

logger = logging.getLogger(__name__)

PROXY_METHODS = ["GET", "HEAD", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"]

_HOP_BY_HOP = {
    "connection",
    "keep-alive",
    "proxy-authenticate",
    "proxy-authorization",
    "te",
    "trailers",
    "transfer-encoding",
    "upgrade",
    "host",
    "content-length",
}


class UnknownService(KeyError):
    pass


class NoHealthyBackends(Exception):
    pass


def select_backend(service: str, registry: ServiceRegistry) -> Endpoint:
    """Pick a healthy instance for a logical service name.

    Round-robin across the healthy instances bound to the name. Raises
    immediately when there is nothing to route to.
    """
    if registry.identity(service) is None:
        raise UnknownService(service)
    targets = sorted(registry.healthy_endpoints(service), key=lambda e: e.instance_id)
    if not targets:
        raise NoHealthyBackends(f"No healthy backends for service '{service}'.")
    idx = registry.next_index(f"svc:{service}:inst", len(targets))
    return targets[idx]


def _forward_headers(headers: httpx.Headers | dict) -> dict[str, str]:
    return {k: v for k, v in headers.items() if k.lower() not in _HOP_BY_HOP}


def create_gateway_app(
    registry: ServiceRegistry,
    service: str,
    cfg: Settings | None = None,
    transport: httpx.AsyncBaseTransport | None = None,
) -> FastAPI:
    """Front a logical service name the way a cluster Service does.

    Each request goes to exactly one selected instance. No retries.
    """
    cfg = cfg or default_settings

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        async with httpx.AsyncClient(timeout=cfg.gateway_timeout_s, transport=transport) as client:
            app.state.http = client
            yield

    app = FastAPI(title=f"Gateway {service}", docs_url=None, redoc_url=None, openapi_url=None, lifespan=lifespan)

    @app.api_route("/{path:path}", methods=PROXY_METHODS, include_in_schema=False)
    async def proxy(path: str, request: Request) -> Response:
        try:
            target = select_backend(service, registry)
        except (UnknownService, NoHealthyBackends) as e:
            logger.warning("Cannot route %s %s: %s", request.method, request.url.path, e)
            return PlainTextResponse(str(e), status_code=503)

        url = f"{target.base_url}/{path}"
        client: httpx.AsyncClient = app.state.http
        try:
            upstream = await client.request(
                request.method,
                url,
                params=request.query_params.multi_items(),
                headers=_forward_headers(request.headers),
                content=await request.body(),
            )
        except httpx.TimeoutException:
            logger.warning("Upstream %s timed out", target.instance_id)
            return PlainTextResponse(f"Upstream {target.instance_id} timed out", status_code=504)
        except httpx.TransportError as e:
            logger.warning("Upstream %s unreachable: %s", target.instance_id, e)
            return PlainTextResponse(f"Upstream {target.instance_id} unreachable", status_code=502)

        headers = _forward_headers(upstream.headers)
        headers.pop("content-encoding", None)
        return Response(content=upstream.content, status_code=upstream.status_code, headers=headers)

    return app
