"""
TKE Cluster Route Adapter

Architectural Intent:
- Implements ClusterRoutePort for the managed container-network route table
- Simulates DescribeClusterRoutes / CreateClusterRoute / DeleteClusterRoute
  without importing the real SDK; replace the _stub_* helpers with client
  calls when credentials are available

Design Decisions:
- Route tables must be registered (add_route_table) before use, matching
  the remote behaviour of rejecting unknown tables
- Creating an existing route or deleting a missing one raises CloudAPIError
"""

from __future__ import annotations
import logging
import uuid

from lbwarden.domain.errors import CloudAPIError
from lbwarden.domain.value_objects.status import Route

logger = logging.getLogger(__name__)


def _request_id() -> str:
    return str(uuid.uuid4())


def _stub_route(route_table: str, gateway_ip: str, destination_cidr: str) -> dict:
    return {
        "RouteTableName": route_table,
        "GatewayIp": gateway_ip,
        "DestinationCidrBlock": destination_cidr,
    }


def _stub_describe_cluster_routes(routes: list[dict]) -> dict:
    """
    Simulate a DescribeClusterRoutes response.

    The real call looks like:
        req = models.DescribeClusterRoutesRequest()
        req.RouteTableName = route_table
        resp = tke_client.DescribeClusterRoutes(req)
    """
    return {
        "Response": {
            "TotalCount": len(routes),
            "RouteSet": routes,
            "RequestId": _request_id(),
        }
    }


class TKERouteAdapter:
    def __init__(self, region: str = "ap-guangzhou") -> None:
        self.region = region
        self.requests: list[str] = []
        self._tables: dict[str, list[dict]] = {}

    def add_route_table(self, route_table: str) -> None:
        self._tables.setdefault(route_table, [])

    async def describe_cluster_routes(self, route_table: str) -> list[Route]:
        self.requests.append("DescribeClusterRoutes")
        response = _stub_describe_cluster_routes(list(self._table(route_table)))["Response"]
        return [
            Route(
                name=raw["GatewayIp"],
                target_node=raw["GatewayIp"],
                destination_cidr=raw["DestinationCidrBlock"],
            )
            for raw in response["RouteSet"]
        ]

    async def create_cluster_route(
        self, route_table: str, gateway_ip: str, destination_cidr: str
    ) -> None:
        self.requests.append("CreateClusterRoute")
        routes = self._table(route_table)
        if self._find(routes, gateway_ip, destination_cidr) is not None:
            raise CloudAPIError(
                "ResourceInUse",
                f"route {destination_cidr} via {gateway_ip} already exists",
                _request_id(),
            )
        logger.info("TKE CreateClusterRoute: %s %s via %s", route_table, destination_cidr, gateway_ip)
        routes.append(_stub_route(route_table, gateway_ip, destination_cidr))

    async def delete_cluster_route(
        self, route_table: str, gateway_ip: str, destination_cidr: str
    ) -> None:
        self.requests.append("DeleteClusterRoute")
        routes = self._table(route_table)
        route = self._find(routes, gateway_ip, destination_cidr)
        if route is None:
            raise CloudAPIError(
                "ResourceNotFound",
                f"route {destination_cidr} via {gateway_ip} not found",
                _request_id(),
            )
        logger.info("TKE DeleteClusterRoute: %s %s via %s", route_table, destination_cidr, gateway_ip)
        routes.remove(route)

    def _table(self, route_table: str) -> list[dict]:
        routes = self._tables.get(route_table)
        if routes is None:
            raise CloudAPIError(
                "ResourceNotFound", f"route table {route_table} not found", _request_id()
            )
        return routes

    @staticmethod
    def _find(routes: list[dict], gateway_ip: str, destination_cidr: str):
        for raw in routes:
            if raw["GatewayIp"] == gateway_ip and raw["DestinationCidrBlock"] == destination_cidr:
                return raw
        return None
