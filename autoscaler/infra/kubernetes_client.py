from __future__ import annotations

import logging

from kubernetes import client, config
from kubernetes.client.rest import ApiException
from urllib3.exceptions import HTTPError

from autoscaler.domain.scaling_policy import ConfigError
from autoscaler.domain.workload_platform import PlatformError

logger = logging.getLogger(__name__)


def _load_config() -> None:
    try:
        config.load_incluster_config()
    except config.ConfigException:
        try:
            config.load_kube_config()
        except config.ConfigException as exc:
            raise ConfigError(f"No usable Kubernetes configuration: {exc}") from exc


class KubernetesClient:
    def __init__(
            self,
            namespace: str = "default",
            timeout: float = 10.0,
            apps_api: client.AppsV1Api | None = None,
    ) -> None:
        if apps_api is None:
            _load_config()
            apps_api = client.AppsV1Api()
        self.apps = apps_api
        self.ns = namespace
        self.timeout = timeout

    def get_replicas(self, deployment: str) -> int:
        try:
            scale = self.apps.read_namespaced_deployment_scale(
                name=deployment,
                namespace=self.ns,
                _request_timeout=self.timeout,
            )
        except (ApiException, HTTPError) as exc:
            raise PlatformError(f"Failed to read scale of deployment '{deployment}'") from exc
        return int(scale.spec.replicas or 0)

    def scale_replicas(self, deployment: str, replicas: int) -> None:
        patch = {"spec": {"replicas": replicas}}
        try:
            self.apps.patch_namespaced_deployment_scale(
                name=deployment,
                namespace=self.ns,
                body=patch,
                _request_timeout=self.timeout,
            )
        except (ApiException, HTTPError) as exc:
            raise PlatformError(f"Failed to scale deployment '{deployment}'") from exc

        logger.info(f"deployment={self.ns}/{deployment} replicas -> {replicas}")
