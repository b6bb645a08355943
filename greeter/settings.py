from __future__ import annotations

import os
from dataclasses import dataclass, field


def _env_str(name: str, default: str) -> str:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    return raw.strip()


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None:
        return default
    try:
        return int(raw)
    except ValueError:
        return default


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None:
        return default
    try:
        return float(raw)
    except ValueError:
        return default


def _env_optional_int(name: str, default: int | None) -> int | None:
    """Like _env_int, but an empty value or "none" disables the setting."""
    raw = os.getenv(name)
    if raw is None:
        return default
    if raw.strip().lower() in {"", "none", "off"}:
        return None
    try:
        return int(raw)
    except ValueError:
        return default


def _env_list(name: str, default: tuple[str, ...]) -> tuple[str, ...]:
    raw = os.getenv(name)
    if raw is None:
        return default
    items = tuple(x.strip() for x in raw.split(",") if x.strip())
    return items or default


@dataclass(frozen=True)
class Settings:
    role: str = field(default_factory=lambda: _env_str("GREETER_ROLE", "backend"))
    bind_host: str = field(default_factory=lambda: _env_str("GREETER_BIND_HOST", "0.0.0.0"))
    log_level: str = field(default_factory=lambda: _env_str("GREETER_LOG_LEVEL", "INFO").upper())

    # Backend responder
    backend_port: int = field(default_factory=lambda: _env_int("GREETER_BACKEND_PORT", 8080))
    cors_allowed_origins: tuple[str, ...] = field(
        default_factory=lambda: _env_list("GREETER_CORS_ALLOWED_ORIGINS", ("*",))
    )
    cors_allowed_methods: tuple[str, ...] = field(
        default_factory=lambda: _env_list("GREETER_CORS_ALLOWED_METHODS", ("GET", "POST", "PUT", "DELETE", "OPTIONS"))
    )
    cors_allowed_headers: tuple[str, ...] = field(
        default_factory=lambda: _env_list("GREETER_CORS_ALLOWED_HEADERS", ("Content-Type",))
    )

    # Service registration
    service_name: str = field(default_factory=lambda: _env_str("GREETER_SERVICE_NAME", "go-api-service"))
    service_port: int = field(default_factory=lambda: _env_int("GREETER_SERVICE_PORT", 8080))
    backend_app_label: str = field(default_factory=lambda: _env_str("GREETER_BACKEND_APP_LABEL", "go-api"))
    replicas: int = field(default_factory=lambda: _env_int("GREETER_REPLICAS", 1))
    replica_base_port: int = field(default_factory=lambda: _env_int("GREETER_REPLICA_BASE_PORT", 18080))
    backend_node_port: int | None = field(default_factory=lambda: _env_optional_int("GREETER_BACKEND_NODE_PORT", 30002))
    gateway_timeout_s: float = field(default_factory=lambda: _env_float("GREETER_GATEWAY_TIMEOUT_S", 10.0))

    # Health probing of registered instances
    probe_path: str = field(default_factory=lambda: _env_str("GREETER_PROBE_PATH", "/"))
    probe_interval_s: float = field(default_factory=lambda: _env_float("GREETER_PROBE_INTERVAL_S", 5.0))
    probe_initial_delay_s: float = field(default_factory=lambda: _env_float("GREETER_PROBE_INITIAL_DELAY_S", 1.0))
    probe_timeout_s: float = field(default_factory=lambda: _env_float("GREETER_PROBE_TIMEOUT_S", 2.0))
    failure_threshold: int = field(default_factory=lambda: _env_int("GREETER_FAILURE_THRESHOLD", 3))

    # Front-end and external exposure
    frontend_port: int = field(default_factory=lambda: _env_int("GREETER_FRONTEND_PORT", 80))
    frontend_node_port: int | None = field(default_factory=lambda: _env_optional_int("GREETER_FRONTEND_NODE_PORT", 30000))
    frontend_service_name: str = field(default_factory=lambda: _env_str("GREETER_FRONTEND_SERVICE_NAME", "react-service"))
    frontend_app_label: str = field(default_factory=lambda: _env_str("GREETER_FRONTEND_APP_LABEL", "react-app"))
    # Read at startup and served to the browser client, so one build works in every environment.
    backend_url: str = field(default_factory=lambda: _env_str("GREETER_BACKEND_URL", "http://go-api-service:8080"))
    fetch_timeout_s: float = field(default_factory=lambda: _env_float("GREETER_FETCH_TIMEOUT_S", 10.0))

    # Descriptors
    namespace: str = field(default_factory=lambda: _env_str("GREETER_NAMESPACE", "default"))
    backend_image: str = field(default_factory=lambda: _env_str("GREETER_BACKEND_IMAGE", "greeter-api:latest"))
    frontend_image: str = field(default_factory=lambda: _env_str("GREETER_FRONTEND_IMAGE", "greeter-web:latest"))


def load_settings() -> Settings:
    """Read settings from the current environment."""
    return Settings()


settings = load_settings()
