from __future__ import annotations

import logging
from datetime import datetime
from typing import Any, Final, List

import requests

from autoscaler.domain.workload_platform import PlatformError

logger = logging.getLogger(__name__)


class PrometheusClient:
    _QUERY_RANGE_PATH: Final[str] = "/api/v1/query_range"

    def __init__(
            self,
            base_url: str,
            namespace: str,
            pod_prefix: str,
            timeout: float = 10.0,
            step: str = "1m",
    ) -> None:
        self.base = base_url.rstrip("/")
        self.ns = namespace
        self.pod_prefix = pod_prefix
        self.timeout = timeout
        self.step = step

    @property
    def pod_pattern(self) -> str:
        # <deployment>-<replicaset hash>-<suffix>; a sibling like web-api-<hash>-<suffix> must not match web
        prefix = self.pod_prefix.replace(".", "[.]")
        return f"{prefix}-[a-z0-9]+-[a-z0-9]{{5}}"

    @property
    def cpu_query(self) -> str:
        # per-pod CPU usage as a percentage of the pod's CPU limit
        selector = f'namespace="{self.ns}",pod=~"{self.pod_pattern}",container!=""'
        return (
            f"100 * sum by (pod) (rate(container_cpu_usage_seconds_total{{{selector}}}[{self.step}])) "
            f"/ sum by (pod) (kube_pod_container_resource_limits{{{selector},resource=\"cpu\"}})"
        )

    def fetch_cpu_samples(self, start: datetime, end: datetime) -> List[List[float]]:
        params = {
            "query": self.cpu_query,
            "start": start.timestamp(),
            "end": end.timestamp(),
            "step": self.step,
        }

        try:
            r = requests.get(f"{self.base}{self._QUERY_RANGE_PATH}", params=params, timeout=self.timeout)
            r.raise_for_status()
            data: dict[str, Any] = r.json()
        except requests.RequestException as exc:
            raise PlatformError("Failed to query Prometheus") from exc
        except ValueError as exc:
            raise PlatformError("Prometheus returned a non-JSON body") from exc

        if data.get("status") != "success":
            raise PlatformError(f"Prometheus error: {data}")

        try:
            series = data["data"]["result"]
            samples = [[float(value) for _, value in s["values"]] for s in series]
        except (KeyError, IndexError, ValueError, TypeError) as exc:
            raise PlatformError(f"Invalid Prometheus response: {data}") from exc

        logger.debug(f"Fetched {sum(len(s) for s in samples)} CPU samples for {len(samples)} pods from Prometheus")
        return samples
