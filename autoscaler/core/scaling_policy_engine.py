from autoscaler.domain.scaling_policy import ScalingPolicy


def decide_replicas(utilization: float, current_replicas: int, policy: ScalingPolicy) -> int:
    """
    Single-step hysteresis: one replica up above the high threshold, one down
    below the low threshold, nothing inside the deadband or at the band edges.
    """
    if utilization > policy.high_threshold and current_replicas < policy.max_replicas:
        return current_replicas + 1
    if utilization < policy.low_threshold and current_replicas > policy.min_replicas:
        return current_replicas - 1
    return current_replicas
