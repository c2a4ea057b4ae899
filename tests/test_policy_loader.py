from datetime import timedelta

import pytest

from autoscaler.domain.policy_loader import load_platform_name, load_policy, parse_duration
from autoscaler.domain.scaling_policy import ConfigError, ScalingPolicy

BASE_ENV = {"RAILWAY_TOKEN": "tok", "SERVICE_ID": "svc"}


def test_defaults():
    policy = load_policy(BASE_ENV)

    assert policy.high_threshold == 75.0
    assert policy.low_threshold == 30.0
    assert policy.min_replicas == 1
    assert policy.max_replicas == 5
    assert policy.cooldown == timedelta(seconds=120)
    assert policy.poll_interval == timedelta(seconds=30)
    assert policy.request_timeout == timedelta(seconds=10)
    assert policy.credential == "tok"
    assert policy.service_id == "svc"


def test_overrides():
    env = dict(BASE_ENV, CPU_HIGH="80.5", CPU_LOW="20", MIN_REPLICAS="2", MAX_REPLICAS="8",
               COOLDOWN="5m", POLL_INTERVAL="15s", REQUEST_TIMEOUT="2.5")
    policy = load_policy(env)

    assert policy.high_threshold == 80.5
    assert policy.low_threshold == 20.0
    assert (policy.min_replicas, policy.max_replicas) == (2, 8)
    assert policy.cooldown == timedelta(minutes=5)
    assert policy.poll_interval == timedelta(seconds=15)
    assert policy.request_timeout == timedelta(seconds=2.5)


@pytest.mark.parametrize("missing", ["RAILWAY_TOKEN", "SERVICE_ID"])
def test_missing_required_value(missing):
    env = {k: v for k, v in BASE_ENV.items() if k != missing}
    with pytest.raises(ConfigError, match=missing):
        load_policy(env)


def test_token_optional_for_kubernetes():
    policy = load_policy({"PLATFORM": "kubernetes", "SERVICE_ID": "web"})
    assert policy.credential == ""


@pytest.mark.parametrize("key,value", [
    ("CPU_HIGH", "lots"),
    ("MIN_REPLICAS", "1.5"),
    ("COOLDOWN", "2 minutes"),
    ("POLL_INTERVAL", "inf"),
])
def test_unparseable_values(key, value):
    with pytest.raises(ConfigError, match=key):
        load_policy(dict(BASE_ENV, **{key: value}))


@pytest.mark.parametrize("env", [
    {"CPU_LOW": "80", "CPU_HIGH": "75"},
    {"CPU_LOW": "75"},
    {"MIN_REPLICAS": "0"},
    {"MIN_REPLICAS": "4", "MAX_REPLICAS": "3"},
    {"POLL_INTERVAL": "0s"},
    {"CPU_HIGH": "nan"},
])
def test_invalid_policy(env):
    with pytest.raises(ConfigError):
        load_policy(dict(BASE_ENV, **env))


def test_unknown_platform():
    with pytest.raises(ConfigError, match="PLATFORM"):
        load_platform_name({"PLATFORM": "nomad"})


@pytest.mark.parametrize("raw,expected", [
    ("30s", timedelta(seconds=30)),
    ("2m", timedelta(minutes=2)),
    ("1h30m", timedelta(hours=1, minutes=30)),
    ("1m30s", timedelta(seconds=90)),
    ("500ms", timedelta(milliseconds=500)),
    ("1.5s", timedelta(seconds=1.5)),
    ("45", timedelta(seconds=45)),
])
def test_parse_duration(raw, expected):
    assert parse_duration(raw) == expected


@pytest.mark.parametrize("raw", ["", "s", "10x", "5m garbage", "-"])
def test_parse_duration_rejects(raw):
    with pytest.raises(ValueError):
        parse_duration(raw)


def test_policy_metrics_window_is_two_intervals():
    policy = ScalingPolicy(service_id="svc", poll_interval=timedelta(seconds=45))
    assert policy.metrics_window == timedelta(seconds=90)
