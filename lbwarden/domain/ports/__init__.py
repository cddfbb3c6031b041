"""
Domain Ports Package

Architectural Intent:
- Contains port interfaces (abstract contracts) for external dependencies
- Ports define what the domain needs, adapters implement how
- Follows Hexagonal Architecture principles
"""

from lbwarden.domain.ports.cache_port import CachePort
from lbwarden.domain.ports.cluster_route_port import ClusterRoutePort
from lbwarden.domain.ports.compute_port import ComputePort
from lbwarden.domain.ports.load_balancer_port import LoadBalancerPort

__all__ = [
    "CachePort",
    "ClusterRoutePort",
    "ComputePort",
    "LoadBalancerPort",
]
