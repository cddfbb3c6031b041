from dataclasses import dataclass
from enum import Enum


@dataclass(frozen=True)
class LoadBalancerStatus:
    """
    Value Object listing the externally reachable ingress addresses (VIPs).
    """
    ingress: tuple[str, ...] = ()

    @staticmethod
    def from_vips(vips) -> "LoadBalancerStatus":
        return LoadBalancerStatus(ingress=tuple(vips))


class NodeAddressType(Enum):
    INTERNAL_IP = "InternalIP"
    EXTERNAL_IP = "ExternalIP"


@dataclass(frozen=True)
class NodeAddress:
    type: NodeAddressType
    address: str


@dataclass(frozen=True)
class Route:
    """
    Value Object for a cluster route: traffic to destination_cidr goes via
    the node named target_node.
    """
    name: str
    target_node: str
    destination_cidr: str
