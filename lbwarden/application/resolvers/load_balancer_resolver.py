"""
Load Balancer Resolver

Architectural Intent:
- Cache-first lookup of the load balancer owned by a service
- The remote query filters by the service ownership tag, not by name, so
  lookups survive renames and never collide on shared name prefixes
- Listener lists are cached per load balancer and dropped whenever the
  reconciler mutates them

Multiplicity policy:
- exactly one match: that load balancer
- zero matches: LoadBalancerNotFoundError
- more than one match: also LoadBalancerNotFoundError. Ambiguous ownership is
  never auto-resolved; the reconciler then attempts a create and the remote
  reports any conflict. This can hide an operator-made duplicate, so it is
  logged as a warning.
"""

import logging

from lbwarden.domain.entities.load_balancer import LoadBalancer, Listener
from lbwarden.domain.errors import LoadBalancerNotFoundError
from lbwarden.domain.ports.cache_port import CachePort
from lbwarden.domain.ports.load_balancer_port import LoadBalancerPort

logger = logging.getLogger(__name__)

CACHE_PREFIX_CLB = "clb_id_"
CACHE_PREFIX_CLB_LISTENERS = "clb_listener_id_"


class LoadBalancerResolver:
    def __init__(
        self,
        load_balancers: LoadBalancerPort,
        cache: CachePort,
        service_tag_key: str = "k8s-service-id",
    ) -> None:
        self._load_balancers = load_balancers
        self._cache = cache
        self.service_tag_key = service_tag_key

    async def find_by_name_and_owner(self, name: str, service_id: str) -> LoadBalancer:
        cache_key = CACHE_PREFIX_CLB + name
        cached, found = self._cache.get(cache_key)
        if found:
            logger.debug("Load balancer %s served from cache", name)
            return cached

        found_lbs = await self._load_balancers.describe_load_balancers(
            {f"tag:{self.service_tag_key}": [service_id]}
        )
        # The tag filter is applied remotely; keep only exact owners.
        matches = [lb for lb in found_lbs if lb.is_owned_by(self.service_tag_key, service_id)]
        if len(matches) == 1:
            load_balancer = matches[0]
            self._cache.set(cache_key, load_balancer)
            logger.debug(
                "Found load balancer %s (%s)", load_balancer.name, load_balancer.load_balancer_id
            )
            return load_balancer

        if matches:
            logger.warning(
                "Found %d load balancers tagged %s=%s for %s, treating as not found",
                len(matches),
                self.service_tag_key,
                service_id,
                name,
            )
        raise LoadBalancerNotFoundError(name)

    def forget(self, name: str) -> bool:
        return self._cache.delete(CACHE_PREFIX_CLB + name)

    async def listeners(self, load_balancer_id: str) -> list[Listener]:
        cache_key = CACHE_PREFIX_CLB_LISTENERS + load_balancer_id
        cached, found = self._cache.get(cache_key)
        if found:
            logger.debug("Listeners of %s served from cache", load_balancer_id)
            return cached

        listeners = await self._load_balancers.describe_listeners(load_balancer_id)
        self._cache.set(cache_key, listeners)
        return listeners

    def forget_listeners(self, load_balancer_id: str) -> bool:
        return self._cache.delete(CACHE_PREFIX_CLB_LISTENERS + load_balancer_id)
