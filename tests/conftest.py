import os as _os
import sys

# Ensure project root is importable (so `import services...`, `cli` and `main.py` work reliably across environments)
_project_root = _os.path.dirname(_os.path.dirname(__file__))
if _project_root not in sys.path:
    sys.path.insert(0, _project_root)

import pytest

from greeter.settings import Settings


@pytest.fixture
def cfg() -> Settings:
    """Settings with the documented defaults, independent of the caller's environment."""
    return Settings(
        role="backend",
        bind_host="127.0.0.1",
        log_level="INFO",
        backend_port=8080,
        cors_allowed_origins=("*",),
        cors_allowed_methods=("GET", "POST", "PUT", "DELETE", "OPTIONS"),
        cors_allowed_headers=("Content-Type",),
        service_name="go-api-service",
        service_port=8080,
        backend_app_label="go-api",
        replicas=1,
        replica_base_port=18080,
        backend_node_port=30002,
        gateway_timeout_s=5.0,
        probe_path="/",
        probe_interval_s=5.0,
        probe_initial_delay_s=1.0,
        probe_timeout_s=2.0,
        failure_threshold=3,
        frontend_port=80,
        frontend_node_port=30000,
        frontend_service_name="react-service",
        frontend_app_label="react-app",
        backend_url="http://go-api-service:8080",
        fetch_timeout_s=10.0,
        namespace="default",
        backend_image="greeter-api:latest",
        frontend_image="greeter-web:latest",
    )
