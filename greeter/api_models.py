from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field, field_validator


class CorsPolicy(BaseModel):
    allowed_origins: list[str] = Field(default_factory=lambda: ["*"])
    allowed_methods: list[str] = Field(default_factory=lambda: ["GET", "POST", "PUT", "DELETE", "OPTIONS"])
    allowed_headers: list[str] = Field(default_factory=lambda: ["Content-Type"])

    @field_validator("allowed_methods")
    @classmethod
    def _upper_methods(cls, value: list[str]) -> list[str]:
        return [m.strip().upper() for m in value if m.strip()]


class FrontendConfig(BaseModel):
    """Runtime config document read by the browser client at startup."""

    model_config = ConfigDict(populate_by_name=True)

    backend_url: str = Field(..., alias="backendUrl", min_length=1, description="Full URL of the backend service")
    fetch_timeout_ms: int = Field(10_000, alias="fetchTimeoutMs", ge=1)

    @field_validator("backend_url")
    @classmethod
    def _require_http_url(cls, value: str) -> str:
        value = value.strip()
        if not value.startswith(("http://", "https://")):
            raise ValueError("backend_url must be an absolute http(s) URL")
        return value


class WorkloadSpec(BaseModel):
    """Inputs for one Deployment/Service descriptor pair."""

    name: str = Field(..., description="Deployment name and app label")
    service_name: str = Field(..., description="Logical service name (dns-safe)")
    image: str = Field(..., description="Container image (name:tag)")
    container_port: int = Field(..., ge=1, le=65535)
    service_port: int = Field(..., ge=1, le=65535)
    node_port: int | None = Field(None, ge=30000, le=32767, description="Host-mapped port; None keeps the service internal")
    replicas: int = Field(1, ge=1, le=50)
    probe_path: str = "/"
    env: dict[str, str] = Field(default_factory=dict)

    @field_validator("name", "service_name")
    @classmethod
    def _dns_safe(cls, value: str) -> str:
        value = value.strip()
        if not value or len(value) > 63 or not value[0].isalpha():
            raise ValueError("name must start with a letter and be at most 63 characters")
        if not all(c.islower() or c.isdigit() or c == "-" for c in value):
            raise ValueError("name may only contain lowercase letters, digits and '-'")
        return value
