"""
Load Balancer Entities

Architectural Intent:
- Remote load-balancing resources as seen by the reconciler
- Listener identity within a load balancer is the (port, protocol) pair
- Target identity is the (instance_id, port) pair; one instance may appear
  under many listeners because each service port maps to its own node port

Design Decisions:
- All entities are frozen snapshots; the remote system is the source of
  truth and the reconciler never mutates local copies
- LoadBalancerType keeps the remote wire values (OPEN / INTERNAL) so adapters
  can translate without a lookup table
"""

from __future__ import annotations
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional

from lbwarden.domain.value_objects.load_balancer_options import HealthCheck, Visibility


class LoadBalancerType(Enum):
    PUBLIC = "OPEN"
    PRIVATE = "INTERNAL"

    @classmethod
    def for_visibility(cls, visibility: Visibility) -> "LoadBalancerType":
        if visibility == Visibility.PUBLIC:
            return cls.PUBLIC
        return cls.PRIVATE


@dataclass(frozen=True)
class LoadBalancer:
    load_balancer_id: str
    name: str
    type: LoadBalancerType
    vpc_id: str
    subnet_id: Optional[str] = None
    vips: tuple[str, ...] = ()
    tags: dict[str, str] = field(default_factory=dict, hash=False, compare=False)

    def is_owned_by(self, tag_key: str, service_id: str) -> bool:
        return self.tags.get(tag_key) == service_id


@dataclass(frozen=True)
class LoadBalancerSpec:
    """Request body for creating a load balancer."""
    name: str
    type: LoadBalancerType
    vpc_id: str
    subnet_id: Optional[str] = None
    tags: dict[str, str] = field(default_factory=dict, hash=False, compare=False)
    pass_to_target: bool = True


@dataclass(frozen=True)
class Listener:
    listener_id: str
    port: int
    protocol: str
    load_balancer_id: str = ""
    name: str = ""

    @property
    def key(self) -> tuple[int, str]:
        return (self.port, self.protocol)


@dataclass(frozen=True)
class ListenerSpec:
    """Request body for creating a listener."""
    name: str
    port: int
    protocol: str
    health_check: HealthCheck = field(default_factory=HealthCheck)


@dataclass(frozen=True)
class Target:
    instance_id: str
    port: int

    def __str__(self) -> str:
        return f"{self.instance_id}:{self.port}"


@dataclass(frozen=True)
class ListenerBackend:
    """A listener together with the targets currently registered under it."""
    listener_id: str
    port: int
    protocol: str
    targets: tuple[Target, ...] = ()

    @property
    def key(self) -> tuple[int, str]:
        return (self.port, self.protocol)
