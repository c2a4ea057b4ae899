from datetime import datetime

from autoscaler.domain.instance_metrics import InstanceMetrics
from autoscaler.domain.workload_platform import WorkloadPlatform
from autoscaler.infra.kubernetes_client import KubernetesClient
from autoscaler.infra.prometheus_client import PrometheusClient


class KubernetesPlatform(WorkloadPlatform):
    """Deployment replicas from the Kubernetes API, CPU samples from Prometheus."""

    def __init__(self, metrics: PrometheusClient, scaler: KubernetesClient) -> None:
        self.metrics = metrics
        self.scaler = scaler

    def fetch_metrics(self, service_id: str, window_start: datetime, window_end: datetime) -> InstanceMetrics:
        samples = self.metrics.fetch_cpu_samples(window_start, window_end)
        return InstanceMetrics(
            replica_count=self.scaler.get_replicas(service_id),
            per_instance_samples=samples,
        )

    def set_replica_count(self, service_id: str, desired: int) -> None:
        self.scaler.scale_replicas(service_id, desired)
