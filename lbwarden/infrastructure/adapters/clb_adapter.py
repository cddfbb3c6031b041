"""
CLB Load Balancer Adapter

Architectural Intent:
- Implements LoadBalancerPort for the remote load-balancing (CLB) service
- Simulates the CLB call patterns (DescribeLoadBalancers, CreateListener,
  RegisterTargets, DescribeTaskStatus, ...) without importing the real SDK
- When the real SDK is available, replace the _stub_* helpers with actual
  client calls; the public method signatures remain stable

Design Decisions:
- Every mutation returns the RequestId of its response, which doubles as the
  asynchronous task id, exactly as the remote does
- Mutations are applied when issued. A task can be made to report "running"
  for a number of polls (pending_polls) or to fail (fail_tasks); a failed
  task leaves the registry untouched
- Remote limits are enforced: 60-character names, a subnet for INTERNAL
  load balancers, 20 targets per register / deregister call, 5 values per
  filter
- Every request name is appended to `requests` so tests can count calls
"""

from __future__ import annotations
from typing import Optional
import logging
import uuid

from lbwarden.domain.entities.load_balancer import (
    Listener,
    ListenerBackend,
    ListenerSpec,
    LoadBalancer,
    LoadBalancerSpec,
    LoadBalancerType,
    Target,
)
from lbwarden.domain.errors import CloudAPIError
from lbwarden.domain.ports.load_balancer_port import TASK_FAILED, TASK_RUNNING, TASK_SUCCEEDED

logger = logging.getLogger(__name__)

MAX_NAME_LENGTH = 60
MAX_TARGETS_PER_CALL = 20
MAX_FILTER_VALUES = 5
FILTER_NAME = "LoadBalancerName"


def _request_id() -> str:
    return str(uuid.uuid4())


def _make_id(prefix: str) -> str:
    return f"{prefix}-" + uuid.uuid4().hex[:8]


def _make_vip(lb_type: str, index: int) -> str:
    """Return a deterministic VIP: public range for OPEN, VPC range for INTERNAL."""
    if lb_type == LoadBalancerType.PUBLIC.value:
        return f"119.28.{(index // 256) % 256}.{index % 256 + 1}"
    return f"10.0.{(index // 256) % 256 + 100}.{index % 256 + 1}"


def _stub_load_balancer(
    load_balancer_id: str,
    spec: LoadBalancerSpec,
    vip: str,
) -> dict:
    """Return a dict shaped like one entry of DescribeLoadBalancers' LoadBalancerSet."""
    return {
        "LoadBalancerId": load_balancer_id,
        "LoadBalancerName": spec.name,
        "LoadBalancerType": spec.type.value,
        "Forward": 1,
        "VpcId": spec.vpc_id,
        "SubnetId": spec.subnet_id or "",
        "LoadBalancerVips": [vip],
        "Status": 1,
        "LoadBalancerPassToTarget": spec.pass_to_target,
        "Tags": [{"TagKey": k, "TagValue": v} for k, v in spec.tags.items()],
    }


def _stub_listener(listener_id: str, spec: ListenerSpec) -> dict:
    """
    Return a dict shaped like one entry of DescribeListeners' Listeners.

    The real call looks like:
        req = models.CreateListenerRequest()
        req.LoadBalancerId = lb_id
        req.Ports = [spec.port]
        req.Protocol = spec.protocol
        req.ListenerNames = [spec.name]
        req.HealthCheck = {"HealthSwitch": 1, "TimeOut": 2, ...}
    """
    hc = spec.health_check
    return {
        "ListenerId": listener_id,
        "ListenerName": spec.name,
        "Port": spec.port,
        "Protocol": spec.protocol,
        "HealthCheck": {
            "HealthSwitch": 1 if hc.enabled else 0,
            "TimeOut": hc.timeout,
            "IntervalTime": hc.interval,
            "HealthNum": hc.healthy_threshold,
            "UnHealthNum": hc.unhealthy_threshold,
            "SourceIpType": 1,
        },
        "Targets": [],
    }


def _stub_mutation_response() -> dict:
    return {"Response": {"RequestId": _request_id()}}


def _tags(raw: dict) -> dict[str, str]:
    return {t["TagKey"]: t["TagValue"] for t in raw.get("Tags", [])}


def _to_load_balancer(raw: dict) -> LoadBalancer:
    return LoadBalancer(
        load_balancer_id=raw["LoadBalancerId"],
        name=raw["LoadBalancerName"],
        type=LoadBalancerType(raw["LoadBalancerType"]),
        vpc_id=raw["VpcId"],
        subnet_id=raw["SubnetId"] or None,
        vips=tuple(raw.get("LoadBalancerVips") or ()),
        tags=_tags(raw),
    )


def _to_listener(load_balancer_id: str, raw: dict) -> Listener:
    return Listener(
        listener_id=raw["ListenerId"],
        port=raw["Port"],
        protocol=raw["Protocol"],
        load_balancer_id=load_balancer_id,
        name=raw["ListenerName"],
    )


class CLBAdapter:
    """
    Simulated CLB load balancer adapter.

    Configuration parameters
    ------------------------
    region : str
        Remote region name (e.g. "ap-guangzhou").
    pending_polls : int
        Number of DescribeTaskStatus polls that report "running" before a
        task reaches its terminal status.
    """

    def __init__(self, region: str = "ap-guangzhou", pending_polls: int = 0) -> None:
        self.region = region
        self.pending_polls = pending_polls
        self.fail_tasks = False
        self.requests: list[str] = []

        self._load_balancers: dict[str, dict] = {}
        # Raw listener dicts per load balancer id, each carrying its Targets.
        self._listeners: dict[str, list[dict]] = {}
        # Task id -> statuses still to be reported, terminal one last.
        self._tasks: dict[str, list[int]] = {}
        self._errors: dict[str, CloudAPIError] = {}
        self._created = 0

        logger.debug("CLBAdapter initialised (region=%s)", region)

    # ------------------------------------------------------------------
    # Simulation controls
    # ------------------------------------------------------------------

    def add_load_balancer(self, spec: LoadBalancerSpec) -> str:
        """Insert a load balancer directly, bypassing tasks and request counting."""
        return self._insert(spec)

    def fail_next(self, action: str, code: str, message: str = "simulated failure") -> None:
        """Make the next call to `action` raise CloudAPIError(code)."""
        self._errors[action] = CloudAPIError(code, message, _request_id())

    def count(self, action: str) -> int:
        return self.requests.count(action)

    def mutation_count(self) -> int:
        return sum(1 for r in self.requests if not r.startswith("Describe"))

    def load_balancer_ids(self) -> list[str]:
        return list(self._load_balancers)

    def raw_load_balancer(self, load_balancer_id: str) -> Optional[dict]:
        return self._load_balancers.get(load_balancer_id)

    def raw_listeners(self, load_balancer_id: str) -> list[dict]:
        return self._listeners.get(load_balancer_id, [])

    # ------------------------------------------------------------------
    # LoadBalancerPort implementation
    # ------------------------------------------------------------------

    async def describe_load_balancers(self, filters: dict[str, list[str]]) -> list[LoadBalancer]:
        self._record("DescribeLoadBalancers")
        logger.debug("CLB DescribeLoadBalancers (region=%s, filters=%s)", self.region, filters)

        for name, values in filters.items():
            if not name.startswith("tag:") and name != FILTER_NAME:
                raise CloudAPIError("InvalidFilter", f"unsupported filter {name}", _request_id())
            if len(values) > MAX_FILTER_VALUES:
                raise CloudAPIError(
                    "InvalidParameterValue.LimitExceeded",
                    f"filter {name} accepts at most {MAX_FILTER_VALUES} values",
                    _request_id(),
                )

        matched = [raw for raw in self._load_balancers.values() if _matches(raw, filters)]
        return [_to_load_balancer(raw) for raw in matched]

    async def create_load_balancer(self, spec: LoadBalancerSpec) -> str:
        self._record("CreateLoadBalancer")
        if len(spec.name) > MAX_NAME_LENGTH:
            raise CloudAPIError(
                "InvalidParameterValue.Length",
                f"LoadBalancerName exceeds {MAX_NAME_LENGTH} characters",
                _request_id(),
            )
        if spec.type == LoadBalancerType.PRIVATE and not spec.subnet_id:
            raise CloudAPIError(
                "InvalidParameterValue",
                "SubnetId is required for INTERNAL load balancers",
                _request_id(),
            )

        logger.info("CLB CreateLoadBalancer: name=%s type=%s vpc=%s", spec.name, spec.type.value, spec.vpc_id)
        return self._task(lambda: self._insert(spec))

    async def delete_load_balancer(self, load_balancer_id: str) -> str:
        self._record("DeleteLoadBalancer")
        self._require(load_balancer_id)

        def apply() -> None:
            self._load_balancers.pop(load_balancer_id, None)
            self._listeners.pop(load_balancer_id, None)

        logger.info("CLB DeleteLoadBalancer: %s", load_balancer_id)
        return self._task(apply)

    async def describe_listeners(self, load_balancer_id: str) -> list[Listener]:
        self._record("DescribeListeners")
        self._require(load_balancer_id)
        return [_to_listener(load_balancer_id, raw) for raw in self._listeners[load_balancer_id]]

    async def create_listener(self, load_balancer_id: str, spec: ListenerSpec) -> str:
        self._record("CreateListener")
        self._require(load_balancer_id)
        for raw in self._listeners[load_balancer_id]:
            if raw["Port"] == spec.port and raw["Protocol"] == spec.protocol:
                raise CloudAPIError(
                    "InvalidParameter.PortCheckFailed",
                    f"listener {spec.port}/{spec.protocol} already exists",
                    _request_id(),
                )

        def apply() -> None:
            self._listeners[load_balancer_id].append(_stub_listener(_make_id("lbl"), spec))

        return self._task(apply)

    async def delete_listener(self, load_balancer_id: str, listener_id: str) -> str:
        self._record("DeleteListener")
        self._listener(load_balancer_id, listener_id)

        def apply() -> None:
            self._listeners[load_balancer_id] = [
                raw for raw in self._listeners[load_balancer_id]
                if raw["ListenerId"] != listener_id
            ]

        return self._task(apply)

    async def describe_targets(self, load_balancer_id: str) -> list[ListenerBackend]:
        self._record("DescribeTargets")
        self._require(load_balancer_id)
        return [
            ListenerBackend(
                listener_id=raw["ListenerId"],
                port=raw["Port"],
                protocol=raw["Protocol"],
                targets=tuple(Target(t["InstanceId"], t["Port"]) for t in raw["Targets"]),
            )
            for raw in self._listeners[load_balancer_id]
        ]

    async def register_targets(
        self, load_balancer_id: str, listener_id: str, targets: list[Target]
    ) -> str:
        self._record("RegisterTargets")
        listener = self._listener(load_balancer_id, listener_id)
        self._check_target_count(targets)

        def apply() -> None:
            existing = {(t["InstanceId"], t["Port"]) for t in listener["Targets"]}
            for target in targets:
                if (target.instance_id, target.port) not in existing:
                    listener["Targets"].append({"InstanceId": target.instance_id, "Port": target.port})

        return self._task(apply)

    async def deregister_targets(
        self, load_balancer_id: str, listener_id: str, targets: list[Target]
    ) -> str:
        self._record("DeregisterTargets")
        listener = self._listener(load_balancer_id, listener_id)
        self._check_target_count(targets)

        def apply() -> None:
            removed = {(t.instance_id, t.port) for t in targets}
            listener["Targets"] = [
                t for t in listener["Targets"] if (t["InstanceId"], t["Port"]) not in removed
            ]

        return self._task(apply)

    async def describe_task_status(self, task_id: str) -> int:
        self._record("DescribeTaskStatus")
        statuses = self._tasks.get(task_id)
        if statuses is None:
            raise CloudAPIError("ResourceNotFound", f"task {task_id} not found", _request_id())
        if len(statuses) > 1:
            return statuses.pop(0)
        return statuses[0]

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _record(self, action: str) -> None:
        self.requests.append(action)
        error = self._errors.pop(action, None)
        if error is not None:
            raise error

    def _insert(self, spec: LoadBalancerSpec) -> str:
        load_balancer_id = _make_id("lb")
        self._load_balancers[load_balancer_id] = _stub_load_balancer(
            load_balancer_id, spec, _make_vip(spec.type.value, self._created)
        )
        self._listeners[load_balancer_id] = []
        self._created += 1
        return load_balancer_id

    def _task(self, apply) -> str:
        task_id = _stub_mutation_response()["Response"]["RequestId"]
        if self.fail_tasks:
            terminal = TASK_FAILED
        else:
            apply()
            terminal = TASK_SUCCEEDED
        self._tasks[task_id] = [TASK_RUNNING] * self.pending_polls + [terminal]
        logger.debug("CLB task %s issued (terminal status %d)", task_id, terminal)
        return task_id

    def _require(self, load_balancer_id: str) -> dict:
        raw = self._load_balancers.get(load_balancer_id)
        if raw is None:
            raise CloudAPIError(
                "ResourceNotFound", f"load balancer {load_balancer_id} not found", _request_id()
            )
        return raw

    def _listener(self, load_balancer_id: str, listener_id: str) -> dict:
        self._require(load_balancer_id)
        for raw in self._listeners[load_balancer_id]:
            if raw["ListenerId"] == listener_id:
                return raw
        raise CloudAPIError("ResourceNotFound", f"listener {listener_id} not found", _request_id())

    @staticmethod
    def _check_target_count(targets: list[Target]) -> None:
        if not targets:
            raise CloudAPIError("MissingParameter", "Targets must not be empty", _request_id())
        if len(targets) > MAX_TARGETS_PER_CALL:
            raise CloudAPIError(
                "InvalidParameterValue.LimitExceeded",
                f"at most {MAX_TARGETS_PER_CALL} targets per call, got {len(targets)}",
                _request_id(),
            )


def _matches(raw: dict, filters: dict[str, list[str]]) -> bool:
    tags = _tags(raw)
    for name, values in filters.items():
        if name == FILTER_NAME:
            if raw["LoadBalancerName"] not in values:
                return False
        elif tags.get(name[len("tag:"):]) not in values:
            return False
    return True
