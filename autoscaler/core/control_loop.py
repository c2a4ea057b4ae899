import logging
import threading
from dataclasses import dataclass
from datetime import datetime
from typing import Callable, Optional

from autoscaler.core.cooldown_actuator import ActuationResult, CooldownActuator
from autoscaler.core.scaling_policy_engine import decide_replicas
from autoscaler.core.snapshot_provider import SnapshotProvider, utc_now
from autoscaler.domain.metric_snapshot import MetricSnapshot
from autoscaler.domain.scaling_policy import ScalingPolicy
from autoscaler.domain.workload_platform import WorkloadPlatform

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CycleReport:
    snapshot: MetricSnapshot
    desired_replicas: int
    actuation: ActuationResult


class ControlLoop:
    """
    Sampling loop for one workload.

    Each cycle runs fetch -> decide -> maybe-apply strictly in sequence, then
    waits ``poll_interval`` on a stop event. Cycles never overlap and no error
    raised inside a cycle ends the loop; only :meth:`stop` does.
    """

    def __init__(
            self,
            platform: WorkloadPlatform,
            policy: ScalingPolicy,
            clock: Callable[[], datetime] = utc_now,
            stop_event: Optional[threading.Event] = None,
    ) -> None:
        self.policy = policy
        self.clock = clock
        self.provider = SnapshotProvider(platform, policy, clock=clock)
        self.actuator = CooldownActuator(platform, policy, now=clock())
        self._stop = stop_event or threading.Event()
        self.cycles: int = 0

    # ─────────────────────────── lifecycle ────────────────────────────
    def stop(self) -> None:
        # not from a signal handler on the thread running run(): Event.set() takes a non-reentrant lock
        self._stop.set()

    @property
    def stopped(self) -> bool:
        return self._stop.is_set()

    # ─────────────────────────── cycle ────────────────────────────────
    def run_cycle(self) -> CycleReport:
        snapshot = self.provider.fetch_snapshot()
        if snapshot.degraded:
            logger.debug("Using degraded snapshot (0% CPU, 0 replicas) for this cycle")

        desired = decide_replicas(snapshot.average_utilization, snapshot.replica_count, self.policy)
        logger.debug(
            f"cpu={snapshot.average_utilization:.2f}% replicas={snapshot.replica_count} desired={desired}"
        )

        actuation = self.actuator.maybe_apply(desired, snapshot.replica_count, self.clock())
        return CycleReport(snapshot=snapshot, desired_replicas=desired, actuation=actuation)

    def run(self, max_cycles: Optional[int] = None) -> None:
        interval = self.policy.poll_interval.total_seconds()
        logger.info(
            f"Starting scaling loop for {self.policy.service_id}: "
            f"cpu band [{self.policy.low_threshold}%, {self.policy.high_threshold}%], "
            f"replicas [{self.policy.min_replicas}, {self.policy.max_replicas}], "
            f"cooldown={self.policy.cooldown.total_seconds():.0f}s interval={interval:.0f}s"
        )

        while not self._stop.is_set():
            try:
                self.run_cycle()
            except Exception:
                logger.exception("Unexpected error in scaling cycle; continuing")
            self.cycles += 1

            if max_cycles is not None and self.cycles >= max_cycles:
                break
            self._stop.wait(interval)

        logger.info(f"Scaling loop stopped after {self.cycles} cycles")
