from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any, Final, Mapping

import requests

from autoscaler.domain.instance_metrics import InstanceMetrics
from autoscaler.domain.workload_platform import PlatformError, WorkloadPlatform

logger = logging.getLogger(__name__)

RAILWAY_ENDPOINT: Final[str] = "https://backboard.railway.com/graphql/v2"

METRICS_QUERY: Final[str] = (
    "query($id:String!,$from:Time!,$to:Time!){service(id:$id){replicas "
    'instances{metrics(from:$from,to:$to,interval:"1m"){cpuPercent}}}}'
)

SCALE_MUTATION: Final[str] = (
    "mutation($id:String!,$count:Int!)"
    "{serviceReplicaScale(input:{serviceId:$id,replicas:$count}){id}}"
)


def _rfc3339(ts: datetime) -> str:
    if ts.tzinfo is None:
        ts = ts.replace(tzinfo=timezone.utc)
    return ts.astimezone(timezone.utc).replace(microsecond=0).isoformat().replace("+00:00", "Z")


class RailwayClient(WorkloadPlatform):
    def __init__(
            self,
            token: str,
            endpoint: str = RAILWAY_ENDPOINT,
            timeout: float = 10.0,
            session: requests.Session | None = None,
    ) -> None:
        self.endpoint = endpoint
        self.timeout = timeout
        self.session = session or requests.Session()
        # project token gives the least privilege
        self.session.headers.update({
            "Content-Type": "application/json",
            "Project-Access-Token": token,
        })

    def _graphql(self, query: str, variables: Mapping[str, Any]) -> dict[str, Any]:
        payload = {"query": query, "variables": dict(variables)}

        try:
            r = self.session.post(self.endpoint, json=payload, timeout=self.timeout)
        except requests.RequestException as exc:
            raise PlatformError("Failed to reach Railway API") from exc

        try:
            body: Any = r.json()
        except ValueError:
            body = None

        # GraphQL errors often come with a 4xx status; report their messages first
        errors = body.get("errors") if isinstance(body, dict) else None
        if errors:
            messages = "; ".join(str(e.get("message", e)) if isinstance(e, dict) else str(e) for e in errors)
            raise PlatformError(f"Railway API error (HTTP {r.status_code}): {messages}")

        try:
            r.raise_for_status()
        except requests.HTTPError as exc:
            raise PlatformError(f"Railway API returned HTTP {r.status_code}") from exc

        if body is None:
            raise PlatformError("Railway API returned a non-JSON body")
        if not isinstance(body, dict):
            raise PlatformError(f"Unexpected Railway response: {body!r}")

        data = body.get("data")
        if not isinstance(data, dict):
            raise PlatformError(f"Railway response without data: {body!r}")
        return data

    def fetch_metrics(self, service_id: str, window_start: datetime, window_end: datetime) -> InstanceMetrics:
        data = self._graphql(METRICS_QUERY, {
            "id": service_id,
            "from": _rfc3339(window_start),
            "to": _rfc3339(window_end),
        })

        try:
            service = data["service"]
            samples = [
                [float(point["cpuPercent"]) for point in (instance.get("metrics") or [])]
                for instance in (service.get("instances") or [])
            ]
            replicas = int(service.get("replicas") or 0)
        except (KeyError, TypeError, ValueError, AttributeError) as exc:
            raise PlatformError(f"Invalid Railway metrics payload: {data!r}") from exc

        logger.debug(f"Railway: {len(samples)} instances, replicas={replicas}")
        return InstanceMetrics(replica_count=replicas, per_instance_samples=samples)

    def set_replica_count(self, service_id: str, desired: int) -> None:
        self._graphql(SCALE_MUTATION, {"id": service_id, "count": desired})

    def close(self) -> None:
        self.session.close()
