import logging
from dataclasses import dataclass
from datetime import datetime, timedelta
from enum import Enum
from typing import Optional

from autoscaler.domain.scaling_policy import ScalingPolicy
from autoscaler.domain.workload_platform import PlatformError, WorkloadPlatform

logger = logging.getLogger(__name__)


class ActuationOutcome(str, Enum):
    NO_CHANGE = "no_change"
    COOLDOWN = "cooldown"
    APPLIED = "applied"
    FAILED = "failed"


@dataclass(frozen=True)
class ActuationResult:
    outcome: ActuationOutcome
    last_scale_time: datetime

    @property
    def applied(self) -> bool:
        return self.outcome is ActuationOutcome.APPLIED


def maybe_apply(
        platform: WorkloadPlatform,
        desired: int,
        current: int,
        last_scale_time: datetime,
        policy: ScalingPolicy,
        now: datetime,
) -> ActuationResult:
    """
    Issues at most one replica change, gated by the cooldown.

    The cooldown is measured from the last *successful* change: a failed call
    returns the timestamp it was given so the next cycle may retry at once.
    """
    if desired == current:
        return ActuationResult(ActuationOutcome.NO_CHANGE, last_scale_time)

    elapsed = now - last_scale_time
    if elapsed <= policy.cooldown:
        remaining = (policy.cooldown - elapsed).total_seconds()
        logger.info(f"Scaling {current} -> {desired} suppressed: cooldown active, {remaining:.0f}s remaining")
        return ActuationResult(ActuationOutcome.COOLDOWN, last_scale_time)

    try:
        platform.set_replica_count(policy.service_id, desired)
    except PlatformError as exc:
        logger.warning(f"Scale {current} -> {desired} failed for {policy.service_id}: {exc}")
        return ActuationResult(ActuationOutcome.FAILED, last_scale_time)

    logger.info(f"Scaled {policy.service_id}: replicas {current} -> {desired}")
    return ActuationResult(ActuationOutcome.APPLIED, now)


class CooldownActuator:
    def __init__(
            self,
            platform: WorkloadPlatform,
            policy: ScalingPolicy,
            last_scale_time: Optional[datetime] = None,
            now: Optional[datetime] = None,
    ) -> None:
        self.platform = platform
        self.policy = policy
        if last_scale_time is None:
            if now is None:
                raise ValueError("either last_scale_time or now is required")
            # strictly past the cooldown so the first cycle is eligible to scale
            last_scale_time = now - policy.cooldown - timedelta(seconds=1)
        self.last_scale_time: datetime = last_scale_time

    def maybe_apply(self, desired: int, current: int, now: datetime) -> ActuationResult:
        result = maybe_apply(self.platform, desired, current, self.last_scale_time, self.policy, now)
        self.last_scale_time = result.last_scale_time
        return result
