from dataclasses import dataclass


@dataclass(frozen=True)
class MetricSnapshot:
    average_utilization: float
    replica_count: int
    degraded: bool = False

    @classmethod
    def degraded_snapshot(cls) -> "MetricSnapshot":
        """
        Neutral observation used when the platform could not be read.
        0% never scales up and 0 replicas never scales down.
        """
        return cls(average_utilization=0.0, replica_count=0, degraded=True)
