import logging
from datetime import datetime, timezone
from typing import Callable, Sequence

import numpy as np

from autoscaler.domain.instance_metrics import InstanceMetrics
from autoscaler.domain.metric_snapshot import MetricSnapshot
from autoscaler.domain.scaling_policy import ScalingPolicy
from autoscaler.domain.workload_platform import PlatformError, WorkloadPlatform

logger = logging.getLogger(__name__)


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def average_utilization(per_instance_samples: Sequence[Sequence[float]]) -> float:
    """
    Mean over every sample of every instance. Instances that report more
    buckets weigh more; this is not a mean of per-instance means.
    """
    samples = np.fromiter(
        (sample for instance in per_instance_samples for sample in instance),
        dtype=float,
    )
    if samples.size == 0:
        return 0.0
    return float(samples.mean())


class SnapshotProvider:
    def __init__(
            self,
            platform: WorkloadPlatform,
            policy: ScalingPolicy,
            clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self.platform = platform
        self.policy = policy
        self.clock = clock

    def fetch_snapshot(self) -> MetricSnapshot:
        window_end = self.clock()
        window_start = window_end - self.policy.metrics_window

        try:
            metrics: InstanceMetrics = self.platform.fetch_metrics(
                self.policy.service_id, window_start, window_end
            )
        except PlatformError as exc:
            logger.warning(f"Metrics fetch failed for {self.policy.service_id}: {exc}")
            return MetricSnapshot.degraded_snapshot()

        avg = average_utilization(metrics.per_instance_samples)
        logger.debug(
            f"Fetched {sum(len(s) for s in metrics.per_instance_samples)} samples "
            f"from {len(metrics.per_instance_samples)} instances: avg={avg:.2f}% "
            f"replicas={metrics.replica_count}"
        )
        return MetricSnapshot(average_utilization=avg, replica_count=metrics.replica_count)
