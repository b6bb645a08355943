from __future__ import annotations

import logging
import time
from threading import Event, Thread
from typing import Callable

from .health import check_health
from .registry import Endpoint, ServiceRegistry
from .settings import Settings, settings as default_settings

logger = logging.getLogger(__name__)

HealthCheck = Callable[[str, float], tuple[bool, str, float | None]]


class Prober:
    """Keeps registry health in line with what the instances actually answer."""

    def __init__(
        self,
        registry: ServiceRegistry,
        cfg: Settings | None = None,
        health_check: HealthCheck | None = None,
    ):
        self.registry = registry
        self.cfg = cfg or default_settings
        self.failure_threshold = max(1, int(self.cfg.failure_threshold))
        self._check = health_check or check_health
        self._stop = Event()
        self._thr: Thread | None = None

    def start(self) -> None:
        if self._thr and self._thr.is_alive():
            return
        self._stop.clear()
        self._thr = Thread(target=self._loop, name="greeter-prober", daemon=True)
        self._thr.start()

    def stop(self, timeout_s: float | None = None) -> None:
        self._stop.set()
        if self._thr:
            self._thr.join(timeout_s)

    def _loop(self) -> None:
        logger.info("Prober started")
        if self._stop.wait(max(0.0, self.cfg.probe_initial_delay_s)):
            return
        while not self._stop.is_set():
            started = time.time()
            try:
                self.tick()
            except Exception:
                logger.exception("Prober tick failed")
            elapsed = time.time() - started
            self._stop.wait(max(0.1, self.cfg.probe_interval_s - elapsed))
        logger.info("Prober stopped")

    def tick(self) -> None:
        for endpoint in self.registry.all_endpoints():
            self.probe(endpoint)

    def probe(self, endpoint: Endpoint) -> bool:
        url = f"{endpoint.base_url}{self.cfg.probe_path}"
        ok, msg, latency = self._check(url, self.cfg.probe_timeout_s)
        prev, fail_cnt = self.registry.mark_health(endpoint.instance_id, ok)

        if prev is None and ok:
            logger.info("Instance %s ready (%s ms)", endpoint.instance_id, latency)
        elif prev and not ok:
            logger.warning("Instance %s became unhealthy: %s", endpoint.instance_id, msg)
        elif prev is False and ok:
            logger.info("Instance %s recovered", endpoint.instance_id)

        # Failed instances stay registered, out of rotation, and keep being probed.
        if not ok and fail_cnt == self.failure_threshold:
            logger.error(
                "Instance %s down after %d consecutive failed checks (%s)", endpoint.instance_id, fail_cnt, msg
            )
        return ok
