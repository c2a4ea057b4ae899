import math
from dataclasses import dataclass
from datetime import timedelta


class ConfigError(ValueError):
    """Raised when the scaling policy cannot be built from its inputs."""


@dataclass(frozen=True)
class ScalingPolicy:
    service_id: str
    credential: str = ""
    high_threshold: float = 75.0
    low_threshold: float = 30.0
    min_replicas: int = 1
    max_replicas: int = 5
    cooldown: timedelta = timedelta(minutes=2)
    poll_interval: timedelta = timedelta(seconds=30)
    request_timeout: timedelta = timedelta(seconds=10)

    def __post_init__(self):
        self.validate()

    def validate(self) -> None:
        if not self.service_id:
            raise ConfigError("service_id must not be empty")
        if not (math.isfinite(self.high_threshold) and math.isfinite(self.low_threshold)):
            raise ConfigError("thresholds must be finite numbers")
        if self.low_threshold >= self.high_threshold:
            raise ConfigError(
                f"low threshold ({self.low_threshold}) must be below high threshold ({self.high_threshold})"
            )
        if self.min_replicas < 1:
            raise ConfigError(f"min_replicas must be >= 1, got {self.min_replicas}")
        if self.max_replicas < self.min_replicas:
            raise ConfigError(
                f"max_replicas ({self.max_replicas}) must be >= min_replicas ({self.min_replicas})"
            )
        if self.cooldown < timedelta(0):
            raise ConfigError("cooldown must not be negative")
        if self.poll_interval <= timedelta(0):
            raise ConfigError("poll_interval must be positive")
        if self.request_timeout <= timedelta(0):
            raise ConfigError("request_timeout must be positive")

    @property
    def metrics_window(self) -> timedelta:
        # two intervals so a lagging latest bucket is still covered
        return 2 * self.poll_interval
