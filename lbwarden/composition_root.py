"""
Composition Root

Architectural Intent:
- Dependency injection composition root for lbwarden
- Single place where cache, tracker, resolvers, use cases and the
  CloudProvider facade are wired together from one ControllerConfig
- Remote adapters are passed in, so the same wiring serves the simulated
  adapters and real SDK-backed ones

Design Decisions:
- Uses a simple dataclass container instead of a DI framework
- One TTLCache instance is shared by both resolvers
"""

from dataclasses import dataclass

from lbwarden.application.cloud_provider import CloudProvider
from lbwarden.application.orchestration.task_tracker import TaskTracker
from lbwarden.application.resolvers.instance_resolver import InstanceResolver
from lbwarden.application.resolvers.load_balancer_resolver import LoadBalancerResolver
from lbwarden.application.use_cases.cluster_routes import ClusterRoutes
from lbwarden.application.use_cases.instance_queries import InstanceQueries
from lbwarden.application.use_cases.reconcile_load_balancer import (
    LoadBalancerReconciler,
    ReconcilerSettings,
)
from lbwarden.domain.ports.cluster_route_port import ClusterRoutePort
from lbwarden.domain.ports.compute_port import ComputePort
from lbwarden.domain.ports.load_balancer_port import LoadBalancerPort
from lbwarden.infrastructure.cache.ttl_cache import TTLCache
from lbwarden.infrastructure.config import ControllerConfig
from lbwarden.infrastructure.logging import configure_logging


@dataclass
class LBWardenContainer:
    """DI container holding all wired dependencies."""

    config: ControllerConfig
    cache: TTLCache
    tracker: TaskTracker
    instance_resolver: InstanceResolver
    load_balancer_resolver: LoadBalancerResolver
    reconciler: LoadBalancerReconciler
    instance_queries: InstanceQueries
    cluster_routes: ClusterRoutes
    cloud_provider: CloudProvider


def create_container(
    config: ControllerConfig,
    compute: ComputePort,
    load_balancers: LoadBalancerPort,
    routes: ClusterRoutePort,
) -> LBWardenContainer:
    """Create and wire all dependencies."""
    configure_logging(config.log_level)

    cloud = config.cloud
    tuning = config.tuning

    cache = TTLCache(ttl=tuning.cache_ttl_seconds)
    tracker = TaskTracker(
        load_balancers,
        attempts=tuning.task_poll_attempts,
        interval=tuning.task_poll_interval_seconds,
    )
    instance_resolver = InstanceResolver(
        compute,
        cache,
        vpc_id=cloud.vpc_id,
        provider_name=config.provider_name,
        batch_size=tuning.instance_query_batch,
    )
    load_balancer_resolver = LoadBalancerResolver(
        load_balancers, cache, service_tag_key=cloud.service_tag_key
    )

    reconciler = LoadBalancerReconciler(
        load_balancers,
        load_balancer_resolver,
        instance_resolver,
        tracker,
        ReconcilerSettings(
            vpc_id=cloud.vpc_id,
            name_prefix=cloud.clb_name_prefix,
            cluster_tag_key=cloud.tag_key,
            service_tag_key=cloud.service_tag_key,
            target_batch=tuning.target_batch,
        ),
    )
    instance_queries = InstanceQueries(instance_resolver)
    cluster_routes = ClusterRoutes(routes, cloud.cluster_route_table)
    cloud_provider = CloudProvider(
        reconciler, instance_queries, cluster_routes, provider_name=config.provider_name
    )

    return LBWardenContainer(
        config=config,
        cache=cache,
        tracker=tracker,
        instance_resolver=instance_resolver,
        load_balancer_resolver=load_balancer_resolver,
        reconciler=reconciler,
        instance_queries=instance_queries,
        cluster_routes=cluster_routes,
        cloud_provider=cloud_provider,
    )
