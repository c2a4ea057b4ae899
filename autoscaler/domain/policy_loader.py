import math
import os
import re
from datetime import timedelta
from typing import Callable, Mapping, Optional, TypeVar

from autoscaler.domain.scaling_policy import ConfigError, ScalingPolicy

T = TypeVar("T")

PLATFORM_RAILWAY = "railway"
PLATFORM_KUBERNETES = "kubernetes"
PLATFORMS = (PLATFORM_RAILWAY, PLATFORM_KUBERNETES)

_DURATION_PART = re.compile(r"(\d+(?:\.\d*)?|\.\d+)(ms|h|m|s)")
_UNIT_SECONDS = {"h": 3600.0, "m": 60.0, "s": 1.0, "ms": 0.001}


def parse_duration(raw: str) -> timedelta:
    """
    Parses "90s", "2m", "1h30m", "500ms" or a bare number of seconds.
    """
    value = raw.strip()
    if not value:
        raise ValueError("empty duration")

    try:
        seconds = float(value)
    except ValueError:
        seconds = None
    if seconds is not None:
        if not math.isfinite(seconds):
            raise ValueError(f"invalid duration {raw!r}")
        return timedelta(seconds=seconds)

    pos = 0
    total = 0.0
    for match in _DURATION_PART.finditer(value):
        if match.start() != pos:
            break
        total += float(match.group(1)) * _UNIT_SECONDS[match.group(2)]
        pos = match.end()

    if pos == 0 or pos != len(value):
        raise ValueError(f"invalid duration {raw!r}")
    return timedelta(seconds=total)


def _required(env: Mapping[str, str], key: str) -> str:
    value = env.get(key, "").strip()
    if not value:
        raise ConfigError(f"missing env {key}")
    return value


def _optional(env: Mapping[str, str], key: str, parse: Callable[[str], T], default: T) -> T:
    raw = env.get(key, "").strip()
    if not raw:
        return default
    try:
        return parse(raw)
    except ValueError as exc:
        raise ConfigError(f"invalid value for {key}: {raw!r}") from exc


def load_platform_name(environ: Optional[Mapping[str, str]] = None) -> str:
    env = os.environ if environ is None else environ
    name = env.get("PLATFORM", PLATFORM_RAILWAY).strip().lower() or PLATFORM_RAILWAY
    if name not in PLATFORMS:
        raise ConfigError(f"unknown PLATFORM {name!r}, expected one of {', '.join(PLATFORMS)}")
    return name


def load_policy(environ: Optional[Mapping[str, str]] = None) -> ScalingPolicy:
    env = os.environ if environ is None else environ
    platform = load_platform_name(env)

    if platform == PLATFORM_RAILWAY:
        credential = _required(env, "RAILWAY_TOKEN")
    else:
        credential = env.get("RAILWAY_TOKEN", "").strip()

    return ScalingPolicy(
        service_id=_required(env, "SERVICE_ID"),
        credential=credential,
        high_threshold=_optional(env, "CPU_HIGH", float, 75.0),
        low_threshold=_optional(env, "CPU_LOW", float, 30.0),
        min_replicas=_optional(env, "MIN_REPLICAS", int, 1),
        max_replicas=_optional(env, "MAX_REPLICAS", int, 5),
        cooldown=_optional(env, "COOLDOWN", parse_duration, timedelta(minutes=2)),
        poll_interval=_optional(env, "POLL_INTERVAL", parse_duration, timedelta(seconds=30)),
        request_timeout=_optional(env, "REQUEST_TIMEOUT", parse_duration, timedelta(seconds=10)),
    )
