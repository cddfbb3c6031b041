"""
Instance Resolver

Architectural Intent:
- Cache-first lookup of compute instances by private IP, instance id, or
  provider id, always scoped to the configured VPC
- Batches uncached private IPs into remote queries of at most
  `batch_size` filter values (the remote per-filter limit)

Design Decisions:
- Uncached IPs are sorted before chunking so request shaping is deterministic
- Instances outside the configured VPC are dropped silently: nodes from a
  peered VPC are not valid backends
- A failing chunk aborts the whole call with that chunk's error; no partial
  result is returned
- Remote "not found" errors become InstanceNotFoundError, which callers use
  for control flow (the node is gone)
"""

from __future__ import annotations
from typing import Iterable
import logging

from lbwarden.domain.entities.instance import Instance
from lbwarden.domain.errors import CloudAPIError, InstanceNotFoundError
from lbwarden.domain.ports.cache_port import CachePort
from lbwarden.domain.ports.compute_port import (
    ComputePort,
    FILTER_INSTANCE_ID,
    FILTER_PRIVATE_IP,
)
from lbwarden.domain.services.reconciliation_planner import chunked
from lbwarden.domain.value_objects.provider_id import ProviderID

logger = logging.getLogger(__name__)

CACHE_PREFIX_VM_IP = "vm_ip_"
CACHE_PREFIX_VM_ID = "vm_id_"


class InstanceResolver:
    def __init__(
        self,
        compute: ComputePort,
        cache: CachePort,
        vpc_id: str,
        provider_name: str = "tencentcloud",
        batch_size: int = 5,
    ) -> None:
        self._compute = compute
        self._cache = cache
        self.vpc_id = vpc_id
        self.provider_name = provider_name
        self.batch_size = batch_size

    async def resolve_by_private_ip(self, ip: str) -> Instance:
        cached, found = self._cache.get(CACHE_PREFIX_VM_IP + ip)
        if found:
            logger.debug("Instance for ip %s served from cache", ip)
            return cached

        for instance in await self.resolve_by_private_ips([ip]):
            if instance.has_private_ip(ip):
                return instance
        raise InstanceNotFoundError(ip)

    async def resolve_by_private_ips(self, ips: Iterable[str]) -> list[Instance]:
        instances: list[Instance] = []
        uncached: list[str] = []
        for ip in ips:
            cached, found = self._cache.get(CACHE_PREFIX_VM_IP + ip)
            if found:
                instances.append(cached)
            else:
                uncached.append(ip)

        uncached = sorted(set(uncached))
        wanted = set(uncached)
        logger.debug(
            "Resolving %d private ip(s), %d from cache", len(uncached), len(instances)
        )

        for batch in chunked(uncached, self.batch_size):
            response = await self._describe({FILTER_PRIVATE_IP: batch})
            for instance in response:
                if not self._in_vpc(instance):
                    continue
                matched = [ip for ip in instance.private_ips if ip in wanted]
                for ip in matched:
                    self._cache.set(CACHE_PREFIX_VM_IP + ip, instance)
                if matched:
                    instances.append(instance)

        return _unique(instances)

    async def resolve_by_instance_id(self, instance_id: str) -> Instance:
        cache_key = CACHE_PREFIX_VM_ID + instance_id
        cached, found = self._cache.get(cache_key)
        if found:
            logger.debug("Instance %s served from cache", instance_id)
            return cached

        for instance in await self._describe({FILTER_INSTANCE_ID: [instance_id]}):
            if instance.instance_id != instance_id or not self._in_vpc(instance):
                continue
            self._cache.set(cache_key, instance)
            return instance
        raise InstanceNotFoundError(instance_id)

    async def resolve_by_provider_id(self, provider_id: str) -> Instance:
        parsed = ProviderID.parse(provider_id, self.provider_name)
        return await self.resolve_by_instance_id(parsed.instance_id)

    async def _describe(self, filters: dict[str, list[str]]) -> list[Instance]:
        try:
            return await self._compute.describe_instances(filters)
        except CloudAPIError as e:
            if e.is_not_found:
                values = [v for vs in filters.values() for v in vs]
                raise InstanceNotFoundError(",".join(values)) from e
            logger.warning("describe_instances failed for %s: %s", filters, e)
            raise

    def _in_vpc(self, instance: Instance) -> bool:
        if instance.vpc_id != self.vpc_id:
            logger.debug(
                "Skipping instance %s: vpc %s is not %s",
                instance.instance_id,
                instance.vpc_id,
                self.vpc_id,
            )
            return False
        return True


def _unique(instances: list[Instance]) -> list[Instance]:
    seen: set[str] = set()
    unique: list[Instance] = []
    for instance in instances:
        if instance.instance_id in seen:
            continue
        seen.add(instance.instance_id)
        unique.append(instance)
    return unique
