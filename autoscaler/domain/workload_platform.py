from abc import ABC, abstractmethod
from datetime import datetime

from autoscaler.domain.instance_metrics import InstanceMetrics


class PlatformError(RuntimeError):
    """Any failure talking to the platform: transport, remote error payload or decoding."""


class WorkloadPlatform(ABC):
    @abstractmethod
    def fetch_metrics(self, service_id: str, window_start: datetime, window_end: datetime) -> InstanceMetrics:
        pass

    @abstractmethod
    def set_replica_count(self, service_id: str, desired: int) -> None:
        pass

    def close(self) -> None:
        pass
