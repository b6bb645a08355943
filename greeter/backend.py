from __future__ import annotations

import logging

from fastapi import FastAPI, Request
from fastapi.responses import PlainTextResponse, Response

from .api_models import CorsPolicy
from .cors import install_cors
from .settings import Settings, settings as default_settings

logger = logging.getLogger(__name__)

GREETING = "Hello from Go API!"

# Every method is answered the same way.
RESPONDER_METHODS = ["GET", "HEAD", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"]


def cors_policy_from_settings(cfg: Settings) -> CorsPolicy:
    return CorsPolicy(
        allowed_origins=list(cfg.cors_allowed_origins),
        allowed_methods=list(cfg.cors_allowed_methods),
        allowed_headers=list(cfg.cors_allowed_headers),
    )


def create_backend_app(cfg: Settings | None = None) -> FastAPI:
    """Build the backend responder.

    Any path and any method gets 200 with the greeting. Cross-origin
    pre-flights are answered by the CORS middleware and never reach the route.
    """
    cfg = cfg or default_settings
    policy = cors_policy_from_settings(cfg)

    app = FastAPI(title="Greeter API", docs_url=None, redoc_url=None, openapi_url=None)

    @app.api_route("/{path:path}", methods=RESPONDER_METHODS, include_in_schema=False)
    def respond(request: Request) -> Response:
        if request.method == "OPTIONS":
            return Response(status_code=200)
        return PlainTextResponse(GREETING)

    install_cors(app, policy)
    logger.debug("Backend responder ready (allowed origins: %s)", ", ".join(policy.allowed_origins))
    return app
