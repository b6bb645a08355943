from __future__ import annotations

import argparse
import logging
import sys

import uvicorn

from greeter.backend import create_backend_app
from greeter.frontend import create_frontend_app
from greeter.gateway import create_gateway_app
from greeter.logging_config import get_logging_config, setup_logging
from greeter.prober import Prober
from greeter.registry import Endpoint, ServiceIdentity, ServiceRegistry
from greeter.settings import Settings, load_settings
from greeter.stack import LocalStack

logger = logging.getLogger("greeter.main")

ROLES = ("backend", "frontend", "gateway", "stack")


def _run(app, cfg: Settings, port: int) -> None:
    uvicorn.run(app, host=cfg.bind_host, port=port, log_config=get_logging_config(cfg.log_level))


def _gateway_registry(cfg: Settings, upstreams: list[str]) -> ServiceRegistry:
    registry = ServiceRegistry()
    registry.bind(ServiceIdentity(cfg.service_name, cfg.service_port), {"app": cfg.backend_app_label})
    for i, upstream in enumerate(upstreams):
        host, _, port = upstream.rpartition(":")
        if not host or not port.isdigit():
            raise ValueError(f"Invalid upstream '{upstream}', expected host:port")
        registry.register(
            Endpoint(
                instance_id=f"{cfg.backend_app_label}-{i}",
                host=host,
                port=int(port),
                labels={"app": cfg.backend_app_label},
            )
        )
    return registry


def main(argv: list[str] | None = None) -> int:
    cfg = load_settings()
    p = argparse.ArgumentParser(description="Greeter stack servers")
    p.add_argument("role", nargs="?", default=cfg.role, choices=ROLES, help="Which server to run")
    p.add_argument("--port", type=int, default=None, help="Override the listen port (single-server roles)")
    p.add_argument("--replicas", type=int, default=None, help="Backend replicas (stack only)")
    p.add_argument(
        "--upstream",
        action="append",
        default=[],
        help="host:port of a backend instance (gateway only, repeatable)",
    )
    args = p.parse_args(argv)

    setup_logging(cfg.log_level)
    logger.info("Starting role %s", args.role)

    if args.role == "backend":
        _run(create_backend_app(cfg), cfg, args.port or cfg.backend_port)
        return 0

    if args.role == "frontend":
        _run(create_frontend_app(cfg), cfg, args.port or cfg.frontend_port)
        return 0

    if args.role == "gateway":
        if not args.upstream:
            p.error("gateway needs at least one --upstream host:port")
        try:
            registry = _gateway_registry(cfg, args.upstream)
        except ValueError as e:
            p.error(str(e))
        prober = Prober(registry, cfg)
        prober.start()
        try:
            _run(create_gateway_app(registry, cfg.service_name, cfg), cfg, args.port or cfg.service_port)
        finally:
            prober.stop(timeout_s=cfg.probe_timeout_s + 1)
        return 0

    LocalStack(cfg, replicas=args.replicas).run()
    return 0


if __name__ == "__main__":
    raise SystemExit(main(sys.argv[1:]))
