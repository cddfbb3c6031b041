"""
CVM Compute Adapter

Architectural Intent:
- Implements ComputePort for the remote compute (CVM) service
- Simulates the DescribeInstances call pattern without importing the real
  SDK, so the reconciler can be exercised with zero cloud credentials
- When the real SDK is available, replace the _stub_* helpers with actual
  client calls; the public method signatures remain stable

Design Decisions:
- The in-memory registry plays the role of the CVM backend; tests populate
  it through register_instance
- Responses mirror the remote payload shape (InstanceSet, TotalCount,
  RequestId) and are translated to Instance entities at the boundary
- The remote limit of 5 values per filter is enforced, so callers that
  forget to chunk fail the same way they would in production
- Every request name is appended to `requests` so tests can count calls
"""

from __future__ import annotations
from typing import Optional
import logging
import uuid

from lbwarden.domain.entities.instance import Instance, RUNNING
from lbwarden.domain.errors import CloudAPIError
from lbwarden.domain.ports.compute_port import FILTER_INSTANCE_ID, FILTER_PRIVATE_IP

logger = logging.getLogger(__name__)

MAX_FILTER_VALUES = 5


def _request_id() -> str:
    return str(uuid.uuid4())


def _make_instance_id() -> str:
    """Return a plausible CVM instance ID."""
    return "ins-" + uuid.uuid4().hex[:8]


def _stub_instance(
    instance_id: str,
    vpc_id: str,
    zone: str,
    instance_type: str,
    private_ips: list[str],
    public_ips: list[str],
    state: str,
) -> dict:
    """Return a dict shaped like one entry of DescribeInstances' InstanceSet."""
    return {
        "InstanceId": instance_id,
        "InstanceType": instance_type,
        "InstanceState": state,
        "Placement": {"Zone": zone, "ProjectId": 0},
        "VirtualPrivateCloud": {"VpcId": vpc_id, "SubnetId": "subnet-00000000"},
        "PrivateIpAddresses": list(private_ips),
        "PublicIpAddresses": list(public_ips),
    }


def _stub_describe_instances(instances: list[dict]) -> dict:
    """
    Simulate a DescribeInstances response.

    The real call looks like:
        client = cvm_client.CvmClient(credential, region)
        req = models.DescribeInstancesRequest()
        req.Filters = [{"Name": "private-ip-address", "Values": [...]}]
        resp = client.DescribeInstances(req)
    """
    return {
        "Response": {
            "TotalCount": len(instances),
            "InstanceSet": instances,
            "RequestId": _request_id(),
        }
    }


def _to_instance(raw: dict) -> Instance:
    return Instance(
        instance_id=raw["InstanceId"],
        vpc_id=raw["VirtualPrivateCloud"]["VpcId"],
        zone=raw["Placement"]["Zone"],
        instance_type=raw["InstanceType"],
        private_ips=tuple(raw.get("PrivateIpAddresses") or ()),
        public_ips=tuple(raw.get("PublicIpAddresses") or ()),
        state=raw["InstanceState"],
    )


class CVMAdapter:
    """
    Simulated CVM compute adapter.

    Configuration parameters
    ------------------------
    region : str
        Remote region name (e.g. "ap-guangzhou").
    default_zone : str
        Zone assigned to registered instances that do not name one.
    """

    def __init__(self, region: str = "ap-guangzhou", default_zone: str = "ap-guangzhou-3") -> None:
        self.region = region
        self.default_zone = default_zone
        self.requests: list[str] = []

        # Keyed by instance id; values are raw InstanceSet entries.
        self._instances: dict[str, dict] = {}
        self._errors: dict[str, CloudAPIError] = {}

        logger.debug("CVMAdapter initialised (region=%s)", region)

    # ------------------------------------------------------------------
    # Simulation controls
    # ------------------------------------------------------------------

    def register_instance(
        self,
        private_ips: list[str],
        vpc_id: str,
        instance_id: Optional[str] = None,
        zone: Optional[str] = None,
        instance_type: str = "S5.MEDIUM4",
        public_ips: Optional[list[str]] = None,
        state: str = RUNNING,
    ) -> str:
        instance_id = instance_id or _make_instance_id()
        self._instances[instance_id] = _stub_instance(
            instance_id=instance_id,
            vpc_id=vpc_id,
            zone=zone or self.default_zone,
            instance_type=instance_type,
            private_ips=private_ips,
            public_ips=public_ips or [],
            state=state,
        )
        return instance_id

    def remove_instance(self, instance_id: str) -> None:
        self._instances.pop(instance_id, None)

    def fail_next(self, action: str, code: str, message: str = "simulated failure") -> None:
        """Make the next call to `action` raise CloudAPIError(code)."""
        self._errors[action] = CloudAPIError(code, message, _request_id())

    def count(self, action: str) -> int:
        return self.requests.count(action)

    # ------------------------------------------------------------------
    # ComputePort implementation
    # ------------------------------------------------------------------

    async def describe_instances(self, filters: dict[str, list[str]]) -> list[Instance]:
        self._record("DescribeInstances")
        logger.debug("CVM DescribeInstances (region=%s, filters=%s)", self.region, filters)

        for name, values in filters.items():
            if name not in (FILTER_PRIVATE_IP, FILTER_INSTANCE_ID):
                raise CloudAPIError("InvalidFilter", f"unsupported filter {name}", _request_id())
            if len(values) > MAX_FILTER_VALUES:
                raise CloudAPIError(
                    "InvalidParameterValue.LimitExceeded",
                    f"filter {name} accepts at most {MAX_FILTER_VALUES} values, got {len(values)}",
                    _request_id(),
                )

        matched = [raw for raw in self._instances.values() if _matches(raw, filters)]
        response = _stub_describe_instances(matched)["Response"]
        logger.debug("DescribeInstances returned %d instance(s)", response["TotalCount"])
        return [_to_instance(raw) for raw in response["InstanceSet"]]

    def _record(self, action: str) -> None:
        self.requests.append(action)
        error = self._errors.pop(action, None)
        if error is not None:
            raise error


def _matches(raw: dict, filters: dict[str, list[str]]) -> bool:
    for name, values in filters.items():
        if name == FILTER_PRIVATE_IP:
            if not set(raw["PrivateIpAddresses"]) & set(values):
                return False
        elif name == FILTER_INSTANCE_ID:
            if raw["InstanceId"] not in values:
                return False
    return True
