"""
Instance Queries Use Case

Architectural Intent:
- Read-only node metadata answered from the instance resolver
- Nodes are named by their private IP, so every name-based query is a
  private-IP lookup; provider-id queries go through the instance id
"""

import logging

from lbwarden.application.resolvers.instance_resolver import InstanceResolver
from lbwarden.domain.entities.instance import Instance
from lbwarden.domain.errors import InstanceNotFoundError
from lbwarden.domain.value_objects.status import NodeAddress, NodeAddressType

logger = logging.getLogger(__name__)


def _addresses(instance: Instance) -> list[NodeAddress]:
    addresses = [NodeAddress(NodeAddressType.INTERNAL_IP, ip) for ip in instance.private_ips]
    addresses.extend(NodeAddress(NodeAddressType.EXTERNAL_IP, ip) for ip in instance.public_ips)
    return addresses


class InstanceQueries:
    def __init__(self, resolver: InstanceResolver) -> None:
        self._resolver = resolver

    async def node_addresses(self, node_name: str) -> list[NodeAddress]:
        return _addresses(await self._resolver.resolve_by_private_ip(node_name))

    async def node_addresses_by_provider_id(self, provider_id: str) -> list[NodeAddress]:
        return _addresses(await self._resolver.resolve_by_provider_id(provider_id))

    async def instance_id(self, node_name: str) -> str:
        """Return ``/<zone>/<instanceId>``, the path part of a provider id."""
        instance = await self._resolver.resolve_by_private_ip(node_name)
        return f"/{instance.zone}/{instance.instance_id}"

    async def external_id(self, node_name: str) -> str:
        instance = await self._resolver.resolve_by_private_ip(node_name)
        return instance.instance_id

    async def instance_type(self, node_name: str) -> str:
        instance = await self._resolver.resolve_by_private_ip(node_name)
        return instance.instance_type

    async def instance_type_by_provider_id(self, provider_id: str) -> str:
        instance = await self._resolver.resolve_by_provider_id(provider_id)
        return instance.instance_type

    async def instance_exists_by_provider_id(self, provider_id: str) -> bool:
        try:
            await self._resolver.resolve_by_provider_id(provider_id)
        except InstanceNotFoundError:
            logger.debug("Instance %s no longer exists", provider_id)
            return False
        return True

    async def instance_shutdown_by_provider_id(self, provider_id: str) -> bool:
        instance = await self._resolver.resolve_by_provider_id(provider_id)
        return not instance.is_running
