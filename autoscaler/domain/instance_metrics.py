from dataclasses import dataclass, field
from typing import List


@dataclass(frozen=True)
class InstanceMetrics:
    replica_count: int
    per_instance_samples: List[List[float]] = field(default_factory=list)
