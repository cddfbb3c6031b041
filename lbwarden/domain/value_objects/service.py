"""
Service and Node Value Objects

Architectural Intent:
- Immutable desired state handed in by the control loop
- Service: identity, declared ports, annotations, session affinity
- Node: candidate backend host, named by its private IP, with labels
- Validates port bounds and node names (DNS, IPv4, IPv6)
"""

import re
from dataclasses import dataclass, field
from typing import Mapping

from lbwarden.domain.errors import ValidationError
from lbwarden.domain.value_objects.load_balancer_options import LoadBalancerOptions

SESSION_AFFINITY_NONE = "None"

# RFC 1123 hostname: labels of alnum/hyphens, dot-separated
_HOSTNAME_RE = re.compile(
    r"^(?!-)[A-Za-z0-9-]{1,63}(?<!-)(\.[A-Za-z0-9-]{1,63})*$"
)

_IPV4_RE = re.compile(
    r"^(\d{1,3})\.(\d{1,3})\.(\d{1,3})\.(\d{1,3})$"
)

# IPv6 pattern (simplified, accepts ::1, fe80::1, etc.)
_IPV6_RE = re.compile(r"^[0-9a-fA-F:]+$")


def _is_valid_node_name(name: str) -> bool:
    """Validate a node name as DNS name, IPv4, or IPv6."""
    if not name:
        return False

    m = _IPV4_RE.match(name)
    if m:
        return all(0 <= int(g) <= 255 for g in m.groups())

    if _IPV6_RE.match(name) and ":" in name:
        return True

    return bool(_HOSTNAME_RE.match(name)) and len(name) <= 253


def _check_port(value: int, label: str) -> None:
    if not (1 <= value <= 65535):
        raise ValidationError(f"{label} must be 1-65535, got {value}")


@dataclass(frozen=True)
class ServicePort:
    name: str
    port: int
    node_port: int
    protocol: str = "TCP"

    def __post_init__(self) -> None:
        _check_port(self.port, "Port")
        _check_port(self.node_port, "NodePort")
        if not self.protocol:
            raise ValidationError("Protocol cannot be empty")

    @property
    def key(self) -> tuple[int, str]:
        return (self.port, self.protocol)


@dataclass(frozen=True)
class Service:
    """
    Value Object representing a network-exposed workload.
    """
    namespace: str
    name: str
    uid: str
    ports: tuple[ServicePort, ...] = ()
    annotations: Mapping[str, str] = field(default_factory=dict, hash=False, compare=False)
    session_affinity: str = SESSION_AFFINITY_NONE

    def __post_init__(self) -> None:
        if not self.uid:
            raise ValidationError("Service uid cannot be empty")

    def __str__(self) -> str:
        return f"{self.namespace}/{self.name}"

    def check_session_affinity(self) -> None:
        if self.session_affinity != SESSION_AFFINITY_NONE:
            raise ValidationError(
                f"service {self}: SessionAffinity {self.session_affinity!r} is not supported currently"
            )

    def options(self) -> LoadBalancerOptions:
        return LoadBalancerOptions.from_annotations(self.annotations)


@dataclass(frozen=True)
class Node:
    """
    Value Object representing a candidate backend node.
    """
    name: str
    labels: Mapping[str, str] = field(default_factory=dict, hash=False, compare=False)

    def __post_init__(self) -> None:
        if not _is_valid_node_name(self.name):
            raise ValidationError(f"Invalid node name: {self.name!r}")

    def __str__(self) -> str:
        return self.name

    @property
    def private_ip(self) -> str:
        return self.name
