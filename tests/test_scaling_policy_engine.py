import pytest

from autoscaler.core.scaling_policy_engine import decide_replicas
from autoscaler.domain.scaling_policy import ScalingPolicy

UTILIZATIONS = [0.0, 10.0, 29.9, 30.0, 50.0, 75.0, 75.1, 99.0, 250.0]


def test_scale_up_above_high_threshold(policy):
    assert decide_replicas(80.0, 2, policy) == 3


def test_scale_down_below_low_threshold(policy):
    assert decide_replicas(20.0, 2, policy) == 1


def test_no_change_inside_deadband(policy):
    assert decide_replicas(50.0, 2, policy) == 2


@pytest.mark.parametrize("utilization", [30.0, 42.0, 75.0])
def test_thresholds_themselves_are_inside_deadband(policy, utilization):
    assert decide_replicas(utilization, 3, policy) == 3


def test_never_exceeds_max(policy):
    assert decide_replicas(100.0, policy.max_replicas, policy) == policy.max_replicas


def test_never_goes_below_min(policy):
    assert decide_replicas(0.0, policy.min_replicas, policy) == policy.min_replicas


def test_output_stays_in_band_and_moves_at_most_one():
    policy = ScalingPolicy(service_id="svc", min_replicas=2, max_replicas=6, high_threshold=70, low_threshold=40)
    for replicas in range(policy.min_replicas, policy.max_replicas + 1):
        for utilization in UTILIZATIONS:
            desired = decide_replicas(utilization, replicas, policy)
            assert policy.min_replicas <= desired <= policy.max_replicas
            assert abs(desired - replicas) <= 1


def test_zero_replicas_from_degraded_snapshot_does_not_scale(policy):
    assert decide_replicas(0.0, 0, policy) == 0
