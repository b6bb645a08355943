from __future__ import annotations

import asyncio
import logging
from dataclasses import replace

import uvicorn

from .backend import create_backend_app
from .frontend import create_frontend_app
from .gateway import create_gateway_app
from .logging_config import get_logging_config
from .prober import Prober
from .registry import Endpoint, ServiceIdentity, ServiceRegistry
from .settings import Settings, settings as default_settings

logger = logging.getLogger(__name__)


class LocalStack:
    """Both tiers on one host, with the registry standing in for the orchestrator.

    Backend replicas listen on consecutive ports from ``replica_base_port``;
    the gateway owns the service port and forwards to a healthy replica.
    """

    def __init__(
        self,
        cfg: Settings | None = None,
        replicas: int | None = None,
        host: str = "127.0.0.1",
        backend_url: str | None = None,
    ):
        self.cfg = cfg or default_settings
        self.backend_url = backend_url
        self.replicas = max(1, int(replicas if replicas is not None else self.cfg.replicas))
        self.host = host
        self.identity = ServiceIdentity(name=self.cfg.service_name, port=self.cfg.service_port)
        self.registry = ServiceRegistry()
        self.registry.bind(self.identity, {"app": self.cfg.backend_app_label})
        self.endpoints = [
            Endpoint(
                instance_id=f"{self.cfg.backend_app_label}-{i}",
                host=host,
                port=self.cfg.replica_base_port + i,
                labels={"app": self.cfg.backend_app_label},
            )
            for i in range(self.replicas)
        ]
        for e in self.endpoints:
            self.registry.register(e)
        self.prober = Prober(self.registry, self.cfg)

    def frontend_settings(self) -> Settings:
        """The browser cannot resolve cluster names here, so it talks to the gateway."""
        url = self.backend_url or f"http://{self.host}:{self.identity.port}"
        return replace(self.cfg, backend_url=url)

    def _server(self, app, port: int) -> uvicorn.Server:
        config = uvicorn.Config(
            app,
            host=self.cfg.bind_host,
            port=port,
            log_config=get_logging_config(self.cfg.log_level),
        )
        return uvicorn.Server(config)

    def servers(self) -> list[uvicorn.Server]:
        servers = [self._server(create_backend_app(self.cfg), e.port) for e in self.endpoints]
        servers.append(self._server(create_gateway_app(self.registry, self.identity.name, self.cfg), self.identity.port))
        servers.append(self._server(create_frontend_app(self.frontend_settings()), self.cfg.frontend_port))
        return servers

    async def serve(self) -> None:
        servers = self.servers()
        logger.info(
            "Starting %d replica(s) of %s behind %s, front-end on port %d",
            self.replicas,
            self.cfg.backend_app_label,
            self.identity.url(),
            self.cfg.frontend_port,
        )
        self.prober.start()
        tasks = [asyncio.create_task(s.serve()) for s in servers]
        try:
            # When one server stops (signal or bind failure) take the rest down too.
            await asyncio.wait(tasks, return_when=asyncio.FIRST_COMPLETED)
            for s in servers:
                s.should_exit = True
            await asyncio.gather(*tasks, return_exceptions=True)
        finally:
            self.prober.stop(timeout_s=self.cfg.probe_timeout_s + 1)

    def run(self) -> None:
        asyncio.run(self.serve())
