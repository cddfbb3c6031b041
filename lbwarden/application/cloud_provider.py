"""
Cloud Provider Facade

Architectural Intent:
- The single surface the external control loop calls
- Delegates load balancer work to LoadBalancerReconciler, node metadata to
  InstanceQueries and route table work to ClusterRoutes
- Holds no state of its own; every call is an independent pass
"""

from __future__ import annotations
from typing import Optional, Sequence

from lbwarden.application.use_cases.cluster_routes import ClusterRoutes
from lbwarden.application.use_cases.instance_queries import InstanceQueries
from lbwarden.application.use_cases.reconcile_load_balancer import LoadBalancerReconciler
from lbwarden.domain.value_objects.service import Node, Service
from lbwarden.domain.value_objects.status import LoadBalancerStatus, NodeAddress, Route


class CloudProvider:
    def __init__(
        self,
        reconciler: LoadBalancerReconciler,
        instances: InstanceQueries,
        routes: ClusterRoutes,
        provider_name: str = "tencentcloud",
    ) -> None:
        self._reconciler = reconciler
        self._instances = instances
        self._routes = routes
        self.provider_name = provider_name

    # Load balancers

    async def ensure_load_balancer(
        self, cluster: str, service: Service, nodes: Sequence[Node]
    ) -> LoadBalancerStatus:
        return await self._reconciler.ensure(cluster, service, nodes)

    async def update_load_balancer(self, cluster: str, service: Service, nodes: Sequence[Node]) -> None:
        await self._reconciler.update(cluster, service, nodes)

    async def get_load_balancer(
        self, cluster: str, service: Service
    ) -> tuple[Optional[LoadBalancerStatus], bool]:
        return await self._reconciler.get(cluster, service)

    def get_load_balancer_name(self, cluster: str, service: Service) -> str:
        return self._reconciler.load_balancer_name(service)

    async def ensure_load_balancer_deleted(self, cluster: str, service: Service) -> None:
        await self._reconciler.delete(cluster, service)

    # Instances

    async def node_addresses(self, node_name: str) -> list[NodeAddress]:
        return await self._instances.node_addresses(node_name)

    async def node_addresses_by_provider_id(self, provider_id: str) -> list[NodeAddress]:
        return await self._instances.node_addresses_by_provider_id(provider_id)

    async def instance_id(self, node_name: str) -> str:
        return await self._instances.instance_id(node_name)

    async def external_id(self, node_name: str) -> str:
        return await self._instances.external_id(node_name)

    async def instance_type(self, node_name: str) -> str:
        return await self._instances.instance_type(node_name)

    async def instance_type_by_provider_id(self, provider_id: str) -> str:
        return await self._instances.instance_type_by_provider_id(provider_id)

    async def instance_exists_by_provider_id(self, provider_id: str) -> bool:
        return await self._instances.instance_exists_by_provider_id(provider_id)

    async def instance_shutdown_by_provider_id(self, provider_id: str) -> bool:
        return await self._instances.instance_shutdown_by_provider_id(provider_id)

    # Routes

    async def list_routes(self, cluster: str) -> list[Route]:
        return await self._routes.list_routes(cluster)

    async def create_route(self, cluster: str, name_hint: str, route: Route) -> None:
        await self._routes.create_route(cluster, name_hint, route)

    async def delete_route(self, cluster: str, route: Route) -> None:
        await self._routes.delete_route(cluster, route)
