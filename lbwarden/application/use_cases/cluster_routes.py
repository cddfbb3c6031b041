"""
Cluster Routes Use Case

Architectural Intent:
- Maintains pod-network routes in the configured route table
- A route is identified by its gateway (the node's private IP) and
  destination CIDR; the gateway doubles as route name and target node
"""

import logging

from lbwarden.domain.ports.cluster_route_port import ClusterRoutePort
from lbwarden.domain.value_objects.status import Route

logger = logging.getLogger(__name__)


class ClusterRoutes:
    def __init__(self, routes: ClusterRoutePort, route_table: str) -> None:
        self._routes = routes
        self.route_table = route_table

    async def list_routes(self, cluster: str) -> list[Route]:
        routes = await self._routes.describe_cluster_routes(self.route_table)
        logger.debug("Route table %s holds %d route(s) for %s", self.route_table, len(routes), cluster)
        return routes

    async def create_route(self, cluster: str, name_hint: str, route: Route) -> None:
        logger.info(
            "Creating route %s via %s in %s (hint %s)",
            route.destination_cidr,
            route.target_node,
            self.route_table,
            name_hint,
        )
        await self._routes.create_cluster_route(
            self.route_table, route.target_node, route.destination_cidr
        )

    async def delete_route(self, cluster: str, route: Route) -> None:
        logger.info(
            "Deleting route %s via %s from %s",
            route.destination_cidr,
            route.target_node,
            self.route_table,
        )
        await self._routes.delete_cluster_route(
            self.route_table, route.target_node, route.destination_cidr
        )
