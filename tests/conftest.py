from datetime import datetime, timedelta, timezone
from typing import List, Optional, Tuple

import pytest

from autoscaler.domain.instance_metrics import InstanceMetrics
from autoscaler.domain.scaling_policy import ScalingPolicy
from autoscaler.domain.workload_platform import PlatformError, WorkloadPlatform

T0 = datetime(2025, 1, 1, 12, 0, 0, tzinfo=timezone.utc)


class FakePlatform(WorkloadPlatform):
    def __init__(self, samples: Optional[List[List[float]]] = None, replicas: int = 2):
        self.samples = samples if samples is not None else [[50.0]]
        self.replicas = replicas
        self.fetch_error: Optional[Exception] = None
        self.scale_error: Optional[Exception] = None
        self.fetch_calls: List[Tuple[str, datetime, datetime]] = []
        self.scale_calls: List[Tuple[str, int]] = []

    def fetch_metrics(self, service_id, window_start, window_end):
        self.fetch_calls.append((service_id, window_start, window_end))
        if self.fetch_error:
            raise self.fetch_error
        return InstanceMetrics(replica_count=self.replicas, per_instance_samples=self.samples)

    def set_replica_count(self, service_id, desired):
        self.scale_calls.append((service_id, desired))
        if self.scale_error:
            raise self.scale_error
        self.replicas = desired


class FakeClock:
    def __init__(self, start: datetime = T0):
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += timedelta(seconds=seconds)


@pytest.fixture
def policy() -> ScalingPolicy:
    return ScalingPolicy(service_id="svc-123", credential="token")


@pytest.fixture
def platform() -> FakePlatform:
    return FakePlatform()


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def failing_scale(platform) -> FakePlatform:
    platform.scale_error = PlatformError("mutation rejected")
    return platform
