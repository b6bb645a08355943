from __future__ import annotations

from typing import Any, Iterable

import yaml

from .api_models import WorkloadSpec
from .settings import Settings, settings as default_settings


def build_deployment(spec: WorkloadSpec, namespace: str = "default") -> dict[str, Any]:
    container: dict[str, Any] = {
        "name": spec.name,
        "image": spec.image,
        "ports": [{"containerPort": spec.container_port}],
        # Only ready pods are listed behind the service name.
        "readinessProbe": {
            "httpGet": {"path": spec.probe_path, "port": spec.container_port},
            "initialDelaySeconds": 1,
            "periodSeconds": 5,
            "timeoutSeconds": 2,
        },
        "livenessProbe": {
            "httpGet": {"path": spec.probe_path, "port": spec.container_port},
            "initialDelaySeconds": 5,
            "periodSeconds": 10,
            "failureThreshold": 3,
        },
    }
    if spec.env:
        container["env"] = [{"name": k, "value": v} for k, v in sorted(spec.env.items())]

    return {
        "apiVersion": "apps/v1",
        "kind": "Deployment",
        "metadata": {"name": spec.name, "namespace": namespace},
        "spec": {
            "replicas": spec.replicas,
            "selector": {"matchLabels": {"app": spec.name}},
            "template": {
                "metadata": {"labels": {"app": spec.name}},
                "spec": {"containers": [container]},
            },
        },
    }


def build_service(spec: WorkloadSpec, namespace: str = "default") -> dict[str, Any]:
    port: dict[str, Any] = {
        "protocol": "TCP",
        "port": spec.service_port,
        "targetPort": spec.container_port,
    }
    if spec.node_port is not None:
        port["nodePort"] = spec.node_port
    return {
        "apiVersion": "v1",
        "kind": "Service",
        "metadata": {"name": spec.service_name, "namespace": namespace},
        "spec": {
            "type": "NodePort" if spec.node_port is not None else "ClusterIP",
            "selector": {"app": spec.name},
            "ports": [port],
        },
    }


def backend_workload(cfg: Settings, replicas: int | None = None) -> WorkloadSpec:
    return WorkloadSpec(
        name=cfg.backend_app_label,
        service_name=cfg.service_name,
        image=cfg.backend_image,
        container_port=cfg.backend_port,
        service_port=cfg.service_port,
        node_port=cfg.backend_node_port,
        replicas=replicas if replicas is not None else cfg.replicas,
        probe_path=cfg.probe_path,
        env={"GREETER_ROLE": "backend", "GREETER_BACKEND_PORT": str(cfg.backend_port)},
    )


def frontend_workload(cfg: Settings) -> WorkloadSpec:
    return WorkloadSpec(
        name=cfg.frontend_app_label,
        service_name=cfg.frontend_service_name,
        image=cfg.frontend_image,
        container_port=cfg.frontend_port,
        service_port=cfg.frontend_port,
        node_port=cfg.frontend_node_port,
        replicas=1,
        env={
            "GREETER_ROLE": "frontend",
            "GREETER_FRONTEND_PORT": str(cfg.frontend_port),
            "GREETER_BACKEND_URL": cfg.backend_url,
        },
    )


def default_workloads(cfg: Settings | None = None, replicas: int | None = None) -> list[WorkloadSpec]:
    cfg = cfg or default_settings
    return [backend_workload(cfg, replicas=replicas), frontend_workload(cfg)]


def build_documents(specs: Iterable[WorkloadSpec], namespace: str = "default") -> list[dict[str, Any]]:
    docs: list[dict[str, Any]] = []
    for spec in specs:
        docs.append(build_deployment(spec, namespace))
        docs.append(build_service(spec, namespace))
    return docs


def render_manifests(specs: Iterable[WorkloadSpec], namespace: str = "default") -> str:
    return yaml.safe_dump_all(build_documents(specs, namespace), sort_keys=False)
