"""
Reconciliation Planner

Architectural Intent:
- Pure domain logic computing what must change for remote state to match
  desired state; no I/O, so every phase can be re-derived on the next pass
- Listener diff keyed by (port, protocol)
- Target diff keyed by (instance_id, port)

Domain Logic:
- A declared port with a matching listener keeps that listener
- A declared port without one is queued for creation (once per key, even
  when two service ports share a key)
- An existing listener whose key is not declared is queued for deletion
- Targets present but undesired are deregistered; desired but absent are
  registered; order follows the input so batching is deterministic
"""

from __future__ import annotations
from dataclasses import dataclass, field
from typing import Iterable, Sequence, TypeVar

from lbwarden.domain.entities.instance import Instance
from lbwarden.domain.entities.load_balancer import Listener, ListenerBackend, Target
from lbwarden.domain.value_objects.service import ServicePort

T = TypeVar("T")


@dataclass(frozen=True)
class ListenerPlan:
    kept: dict[tuple[int, str], str] = field(default_factory=dict)
    to_create: list[ServicePort] = field(default_factory=list)
    to_delete: list[Listener] = field(default_factory=list)

    @property
    def is_converged(self) -> bool:
        return not self.to_create and not self.to_delete


@dataclass(frozen=True)
class TargetPlan:
    listener_id: str
    to_register: list[Target] = field(default_factory=list)
    to_deregister: list[Target] = field(default_factory=list)

    @property
    def is_converged(self) -> bool:
        return not self.to_register and not self.to_deregister


def plan_listeners(existing: Iterable[Listener], ports: Iterable[ServicePort]) -> ListenerPlan:
    existing = list(existing)
    by_key: dict[tuple[int, str], Listener] = {}
    for listener in existing:
        by_key.setdefault(listener.key, listener)

    kept: dict[tuple[int, str], str] = {}
    to_create: list[ServicePort] = []
    declared: set[tuple[int, str]] = set()
    for port in ports:
        if port.key in declared:
            continue
        declared.add(port.key)
        listener = by_key.get(port.key)
        if listener is not None:
            kept[port.key] = listener.listener_id
        else:
            to_create.append(port)

    kept_ids = set(kept.values())
    to_delete = [listener for listener in existing if listener.listener_id not in kept_ids]
    return ListenerPlan(kept=kept, to_create=to_create, to_delete=to_delete)


def plan_targets(
    backend: ListenerBackend,
    instances: Sequence[Instance],
    node_port: int,
) -> TargetPlan:
    desired = [Target(instance_id=i.instance_id, port=node_port) for i in instances]
    desired_set = set(desired)
    current_set = set(backend.targets)

    to_deregister = [t for t in backend.targets if t not in desired_set]
    to_register: list[Target] = []
    seen: set[Target] = set()
    for target in desired:
        if target in current_set or target in seen:
            continue
        seen.add(target)
        to_register.append(target)

    return TargetPlan(
        listener_id=backend.listener_id,
        to_register=to_register,
        to_deregister=to_deregister,
    )


def chunked(items: Sequence[T], size: int) -> list[list[T]]:
    """Split items into consecutive batches of at most size, preserving order."""
    if size < 1:
        raise ValueError(f"batch size must be positive, got {size}")
    return [list(items[i:i + size]) for i in range(0, len(items), size)]
