import os
from dataclasses import replace

import pytest
import yaml
from pydantic import ValidationError

from greeter.api_models import WorkloadSpec
from greeter.manifests import (
    backend_workload,
    build_documents,
    build_service,
    default_workloads,
    frontend_workload,
    render_manifests,
)

K8S_DIR = os.path.join(os.path.dirname(os.path.dirname(__file__)), "k8s")


def _by_kind(docs, kind):
    return [d for d in docs if d["kind"] == kind]


def test_render_produces_two_deployment_service_pairs(cfg):
    docs = list(yaml.safe_load_all(render_manifests(default_workloads(cfg))))
    assert [d["kind"] for d in docs] == ["Deployment", "Service", "Deployment", "Service"]


def test_backend_service_binds_logical_name_to_8080(cfg):
    deployment, service = build_documents([backend_workload(cfg)])
    assert service["metadata"]["name"] == "go-api-service"
    assert service["spec"]["selector"] == {"app": "go-api"}
    assert service["spec"]["ports"][0]["port"] == 8080
    assert service["spec"]["ports"][0]["targetPort"] == 8080

    container = deployment["spec"]["template"]["spec"]["containers"][0]
    assert container["ports"] == [{"containerPort": 8080}]
    assert container["readinessProbe"]["httpGet"] == {"path": "/", "port": 8080}
    assert deployment["spec"]["template"]["metadata"]["labels"] == {"app": "go-api"}


def test_replica_count_is_static_input(cfg):
    deployment, _ = build_documents([backend_workload(cfg, replicas=3)])
    assert deployment["spec"]["replicas"] == 3
    deployment, _ = build_documents([backend_workload(replace(cfg, replicas=2))])
    assert deployment["spec"]["replicas"] == 2


def test_frontend_is_exposed_on_node_port_and_gets_backend_url(cfg):
    deployment, service = build_documents([frontend_workload(replace(cfg, backend_url="http://api.test:8080"))])
    assert service["spec"]["type"] == "NodePort"
    assert service["spec"]["ports"][0] == {"protocol": "TCP", "port": 80, "targetPort": 80, "nodePort": 30000}

    env = {e["name"]: e["value"] for e in deployment["spec"]["template"]["spec"]["containers"][0]["env"]}
    assert env["GREETER_BACKEND_URL"] == "http://api.test:8080"
    assert env["GREETER_ROLE"] == "frontend"


def test_node_port_is_configuration(cfg):
    _, service = build_documents([frontend_workload(replace(cfg, frontend_node_port=30002))])
    assert service["spec"]["ports"][0]["nodePort"] == 30002

    service = build_service(backend_workload(replace(cfg, backend_node_port=None)))
    assert service["spec"]["type"] == "ClusterIP"
    assert "nodePort" not in service["spec"]["ports"][0]


def test_workload_validation():
    with pytest.raises(ValidationError):
        WorkloadSpec(name="go-api", service_name="go-api-service", image="x", container_port=8080, service_port=8080, node_port=80)
    with pytest.raises(ValidationError):
        WorkloadSpec(name="Go_API", service_name="go-api-service", image="x", container_port=8080, service_port=8080)
    with pytest.raises(ValidationError):
        WorkloadSpec(name="go-api", service_name="go-api-service", image="x", container_port=8080, service_port=8080, replicas=0)


@pytest.mark.parametrize(
    "filename,workload",
    [("backend.yaml", backend_workload), ("frontend.yaml", frontend_workload)],
)
def test_checked_in_descriptors_match_generated(cfg, filename, workload):
    with open(os.path.join(K8S_DIR, filename), encoding="utf-8") as f:
        checked_in = list(yaml.safe_load_all(f))
    assert checked_in == build_documents([workload(cfg)], namespace=cfg.namespace)
