"""
Cluster Route Port

Architectural Intent:
- Port interface for the managed route table that carries pod traffic
  between nodes
"""

from typing import Protocol, runtime_checkable

from lbwarden.domain.value_objects.status import Route


@runtime_checkable
class ClusterRoutePort(Protocol):
    """Port for cluster route table operations."""

    async def describe_cluster_routes(self, route_table: str) -> list[Route]:
        ...

    async def create_cluster_route(
        self, route_table: str, gateway_ip: str, destination_cidr: str
    ) -> None:
        ...

    async def delete_cluster_route(
        self, route_table: str, gateway_ip: str, destination_cidr: str
    ) -> None:
        ...
