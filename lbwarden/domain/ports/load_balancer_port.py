"""
Load Balancer Port

Architectural Intent:
- Port interface for the remote load-balancing service
- Every mutating call returns the id of an asynchronous remote task; the
  mutation is not guaranteed complete until that task is polled to a
  terminal status through describe_task_status

Task status codes: 0 success, 1 failure, 2 in progress.
"""

from typing import Protocol, runtime_checkable

from lbwarden.domain.entities.load_balancer import (
    LoadBalancer,
    LoadBalancerSpec,
    Listener,
    ListenerBackend,
    ListenerSpec,
    Target,
)

TASK_SUCCEEDED = 0
TASK_FAILED = 1
TASK_RUNNING = 2


@runtime_checkable
class LoadBalancerPort(Protocol):
    """Port for load balancer, listener, target and task operations."""

    async def describe_load_balancers(self, filters: dict[str, list[str]]) -> list[LoadBalancer]:
        ...

    async def create_load_balancer(self, spec: LoadBalancerSpec) -> str:
        ...

    async def delete_load_balancer(self, load_balancer_id: str) -> str:
        ...

    async def describe_listeners(self, load_balancer_id: str) -> list[Listener]:
        ...

    async def create_listener(self, load_balancer_id: str, spec: ListenerSpec) -> str:
        ...

    async def delete_listener(self, load_balancer_id: str, listener_id: str) -> str:
        ...

    async def describe_targets(self, load_balancer_id: str) -> list[ListenerBackend]:
        ...

    async def register_targets(
        self, load_balancer_id: str, listener_id: str, targets: list[Target]
    ) -> str:
        ...

    async def deregister_targets(
        self, load_balancer_id: str, listener_id: str, targets: list[Target]
    ) -> str:
        ...

    async def describe_task_status(self, task_id: str) -> int:
        ...
