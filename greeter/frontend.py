from __future__ import annotations

import logging
from pathlib import Path

from fastapi import FastAPI
from fastapi.responses import FileResponse, JSONResponse
from fastapi.staticfiles import StaticFiles

from .api_models import FrontendConfig
from .settings import Settings, settings as default_settings

logger = logging.getLogger(__name__)

STATIC_DIR = Path(__file__).resolve().parent / "static"


def frontend_config_from_settings(cfg: Settings) -> FrontendConfig:
    return FrontendConfig(backend_url=cfg.backend_url, fetch_timeout_ms=int(cfg.fetch_timeout_s * 1000))


def create_frontend_app(cfg: Settings | None = None) -> FastAPI:
    """Serve the single-page client and the config document it reads on startup."""
    cfg = cfg or default_settings
    config = frontend_config_from_settings(cfg)
    logger.info("Front-end will point clients at %s", config.backend_url)

    app = FastAPI(title="Greeter Web", docs_url=None, redoc_url=None, openapi_url=None)

    @app.get("/", include_in_schema=False)
    def index() -> FileResponse:
        return FileResponse(STATIC_DIR / "index.html", media_type="text/html")

    @app.get("/config.json", include_in_schema=False)
    def client_config() -> JSONResponse:
        return JSONResponse(config.model_dump(by_alias=True), headers={"Cache-Control": "no-store"})

    app.mount("/static", StaticFiles(directory=STATIC_DIR), name="static")
    return app
