import logging
import os
import signal
import sys
import threading
from types import FrameType
from typing import Callable, Mapping, Optional

from autoscaler.core.control_loop import ControlLoop
from autoscaler.domain.policy_loader import PLATFORM_KUBERNETES, load_platform_name, load_policy
from autoscaler.domain.scaling_policy import ConfigError, ScalingPolicy
from autoscaler.domain.workload_platform import WorkloadPlatform
from autoscaler.infra.kubernetes_client import KubernetesClient
from autoscaler.infra.kubernetes_platform import KubernetesPlatform
from autoscaler.infra.prometheus_client import PrometheusClient
from autoscaler.infra.railway_client import RailwayClient

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

logger = logging.getLogger("autoscaler")


def configure_logging(environ: Optional[Mapping[str, str]] = None) -> None:
    env = os.environ if environ is None else environ
    level = logging.getLevelName(env.get("LOG_LEVEL", "INFO").strip().upper())
    if not isinstance(level, int):
        level = logging.INFO
    logging.basicConfig(level=level, format=LOG_FORMAT)


def build_platform(policy: ScalingPolicy, environ: Optional[Mapping[str, str]] = None) -> WorkloadPlatform:
    env = os.environ if environ is None else environ
    timeout = policy.request_timeout.total_seconds()

    if load_platform_name(env) == PLATFORM_KUBERNETES:
        namespace = env.get("K8S_NAMESPACE", "default")
        return KubernetesPlatform(
            metrics=PrometheusClient(
                base_url=env.get("PROMETHEUS_URL", "http://localhost:9090"),
                namespace=namespace,
                pod_prefix=policy.service_id,
                timeout=timeout,
            ),
            scaler=KubernetesClient(namespace=namespace, timeout=timeout),
        )

    return RailwayClient(token=policy.credential, timeout=timeout)


def make_shutdown_handler(loop: ControlLoop) -> Callable[[int, Optional[FrameType]], None]:
    """
    Signal handler that stops the loop from a helper thread.

    The handler runs on the main thread, possibly while that thread holds the
    stop Event's internal lock inside `wait()`; calling `set()` from the
    handler frame would deadlock on it.
    """
    def _shutdown(signum: int, _frame: Optional[FrameType]) -> None:
        logger.info(f"Received {signal.Signals(signum).name}, stopping after current cycle")
        threading.Thread(target=loop.stop, name="autoscaler-shutdown", daemon=True).start()

    return _shutdown


def main() -> int:
    configure_logging()

    # --- Configuration ---
    try:
        policy = load_policy()
        platform = build_platform(policy)
    except ConfigError as exc:
        logger.error(f"Invalid configuration: {exc}")
        return 1

    # --- Loop ---
    loop = ControlLoop(platform=platform, policy=policy)

    shutdown = make_shutdown_handler(loop)
    signal.signal(signal.SIGINT, shutdown)
    signal.signal(signal.SIGTERM, shutdown)

    try:
        loop.run()
    finally:
        platform.close()
    return 0


if __name__ == "__main__":
    sys.exit(main())
