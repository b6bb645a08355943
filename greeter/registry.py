from __future__ import annotations

from dataclasses import dataclass, field
from threading import Lock


@dataclass(frozen=True)
class ServiceIdentity:
    """A logical service name and the port it is reachable on."""

    name: str
    port: int

    def url(self, scheme: str = "http") -> str:
        return f"{scheme}://{self.name}:{int(self.port)}"


@dataclass(frozen=True, eq=False)
class Endpoint:
    instance_id: str
    host: str
    port: int
    labels: dict[str, str] = field(default_factory=dict)

    @property
    def base_url(self) -> str:
        return f"http://{self.host}:{int(self.port)}"

    def matches(self, selector: dict[str, str]) -> bool:
        return all(self.labels.get(k) == v for k, v in selector.items())


@dataclass(frozen=True)
class Binding:
    identity: ServiceIdentity
    selector: dict[str, str] = field(default_factory=dict, hash=False)


class ServiceRegistry:
    """In-memory name -> instances table with per-instance health.

    A name resolves to the registered instances whose labels match the
    binding's selector and whose last health check passed.
    """

    def __init__(self) -> None:
        self.lock = Lock()
        self.bindings: dict[str, Binding] = {}  # service name -> binding
        self.endpoints: dict[str, Endpoint] = {}  # instance_id -> endpoint
        self.healthy: dict[str, bool] = {}  # instance_id -> last healthy
        self.fail_counts: dict[str, int] = {}  # instance_id -> consecutive fails
        self.rr_index: dict[str, int] = {}  # key -> idx

    def bind(self, identity: ServiceIdentity, selector: dict[str, str]) -> None:
        with self.lock:
            self.bindings[identity.name] = Binding(identity=identity, selector=dict(selector))

    def unbind(self, name: str) -> None:
        with self.lock:
            self.bindings.pop(name, None)
            for key in [k for k in self.rr_index if k.startswith(f"svc:{name}:")]:
                del self.rr_index[key]

    def identity(self, name: str) -> ServiceIdentity | None:
        with self.lock:
            b = self.bindings.get(name)
            return b.identity if b else None

    def register(self, endpoint: Endpoint, healthy: bool = False) -> None:
        """Add an instance. New instances stay out of rotation until a probe passes."""
        with self.lock:
            self.endpoints[endpoint.instance_id] = endpoint
            self.fail_counts[endpoint.instance_id] = 0
            if healthy:
                self.healthy[endpoint.instance_id] = True
            else:
                # unknown until the first probe
                self.healthy.pop(endpoint.instance_id, None)

    def deregister(self, instance_id: str) -> Endpoint | None:
        with self.lock:
            self.healthy.pop(instance_id, None)
            self.fail_counts.pop(instance_id, None)
            return self.endpoints.pop(instance_id, None)

    def all_endpoints(self) -> list[Endpoint]:
        with self.lock:
            return list(self.endpoints.values())

    def instances(self, name: str) -> list[Endpoint]:
        with self.lock:
            b = self.bindings.get(name)
            if b is None:
                return []
            return [e for e in self.endpoints.values() if e.matches(b.selector)]

    def healthy_endpoints(self, name: str) -> list[Endpoint]:
        with self.lock:
            b = self.bindings.get(name)
            if b is None:
                return []
            return [
                e for e in self.endpoints.values() if e.matches(b.selector) and self.healthy.get(e.instance_id)
            ]

    def is_healthy(self, instance_id: str) -> bool:
        with self.lock:
            return bool(self.healthy.get(instance_id))

    def mark_health(self, instance_id: str, healthy: bool) -> tuple[bool | None, int]:
        """Update last health and consecutive failure count.

        Returns (previous_healthy or None, current_fail_count).
        """
        with self.lock:
            if instance_id not in self.endpoints:
                return None, 0
            prev = self.healthy.get(instance_id)
            if healthy:
                self.healthy[instance_id] = True
                self.fail_counts[instance_id] = 0
                return prev, 0
            self.healthy[instance_id] = False
            self.fail_counts[instance_id] = self.fail_counts.get(instance_id, 0) + 1
            return prev, self.fail_counts[instance_id]

    def next_index(self, key: str, n: int) -> int:
        with self.lock:
            if n <= 0:
                return 0
            i = self.rr_index.get(key, 0) % n
            self.rr_index[key] = (i + 1) % n
            return i
