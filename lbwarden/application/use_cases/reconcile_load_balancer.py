"""
Reconcile Load Balancer Use Case

Architectural Intent:
- Converges one service's load balancer in three strictly ordered phases:
  1. instance: the load balancer exists with the right type / VPC / subnet
  2. listeners: one listener per declared (port, protocol)
  3. backends: each listener targets (instance, node port) for every
     eligible node
- No persisted state: each phase re-derives its work from remote state plus
  desired state, so an aborted pass is finished by the next one
- A phase failure aborts the remaining phases of the pass

Concurrency Policy:
- Mutations inside a phase are issued one after another; their tasks are
  then awaited together through TaskTracker.await_many
- A failed remote task is logged by the tracker and not raised; the next
  pass repairs whatever it left undone
"""

from __future__ import annotations
from dataclasses import dataclass
from typing import Optional, Sequence
import logging

from lbwarden.application.orchestration.task_tracker import TaskTracker
from lbwarden.application.resolvers.instance_resolver import InstanceResolver
from lbwarden.application.resolvers.load_balancer_resolver import LoadBalancerResolver
from lbwarden.domain.entities.load_balancer import (
    LoadBalancer,
    LoadBalancerSpec,
    LoadBalancerType,
    ListenerSpec,
)
from lbwarden.domain.errors import LoadBalancerNotFoundError, ValidationError
from lbwarden.domain.ports.load_balancer_port import LoadBalancerPort
from lbwarden.domain.services.naming import load_balancer_name
from lbwarden.domain.services.reconciliation_planner import (
    TargetPlan,
    chunked,
    plan_listeners,
    plan_targets,
)
from lbwarden.domain.value_objects.load_balancer_options import LoadBalancerOptions
from lbwarden.domain.value_objects.service import Node, Service
from lbwarden.domain.value_objects.status import LoadBalancerStatus

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ReconcilerSettings:
    vpc_id: str
    name_prefix: str
    cluster_tag_key: str
    service_tag_key: str = "k8s-service-id"
    target_batch: int = 20


class LoadBalancerReconciler:
    def __init__(
        self,
        load_balancers: LoadBalancerPort,
        load_balancer_resolver: LoadBalancerResolver,
        instance_resolver: InstanceResolver,
        tracker: TaskTracker,
        settings: ReconcilerSettings,
    ) -> None:
        self._load_balancers = load_balancers
        self._resolver = load_balancer_resolver
        self._instances = instance_resolver
        self._tracker = tracker
        self.settings = settings

    def load_balancer_name(self, service: Service) -> str:
        return load_balancer_name(self.settings.name_prefix, service)

    async def ensure(self, cluster: str, service: Service, nodes: Sequence[Node]) -> LoadBalancerStatus:
        """Run all three phases and return the ingress status."""
        logger.debug("Ensuring load balancer for %s in cluster %s", service, cluster)
        service.check_session_affinity()
        options = service.options()

        load_balancer = await self.ensure_instance(service, options)
        await self.ensure_listeners(service, options, load_balancer)
        await self.ensure_backends(service, options, nodes, load_balancer)

        status = LoadBalancerStatus.from_vips(load_balancer.vips)
        logger.info("Load balancer %s for %s converged: %s", load_balancer.name, service, status.ingress)
        return status

    async def update(self, cluster: str, service: Service, nodes: Sequence[Node]) -> None:
        """Re-run backend convergence only."""
        logger.debug("Updating backends for %s in cluster %s", service, cluster)
        options = service.options()
        load_balancer = await self._resolver.find_by_name_and_owner(
            self.load_balancer_name(service), service.uid
        )
        await self.ensure_backends(service, options, nodes, load_balancer)

    async def get(self, cluster: str, service: Service) -> tuple[Optional[LoadBalancerStatus], bool]:
        try:
            load_balancer = await self._resolver.find_by_name_and_owner(
                self.load_balancer_name(service), service.uid
            )
        except LoadBalancerNotFoundError:
            return None, False
        return LoadBalancerStatus.from_vips(load_balancer.vips), True

    async def delete(self, cluster: str, service: Service) -> None:
        """Delete the service's load balancer; a missing one is success."""
        name = self.load_balancer_name(service)
        try:
            load_balancer = await self._resolver.find_by_name_and_owner(name, service.uid)
        except LoadBalancerNotFoundError:
            logger.debug("No load balancer %s to delete", name)
            return
        await self._delete(name, load_balancer)

    # ------------------------------------------------------------------
    # Phase 1: instance
    # ------------------------------------------------------------------

    async def ensure_instance(self, service: Service, options: LoadBalancerOptions) -> LoadBalancer:
        name = self.load_balancer_name(service)
        try:
            load_balancer = await self._resolver.find_by_name_and_owner(name, service.uid)
        except LoadBalancerNotFoundError:
            return await self._create(name, service, options)

        if self._matches(load_balancer, options):
            return load_balancer

        logger.info(
            "Load balancer %s (%s) drifted from %s: type=%s vpc=%s subnet=%s, recreating",
            load_balancer.name,
            load_balancer.load_balancer_id,
            service,
            load_balancer.type.name,
            load_balancer.vpc_id,
            load_balancer.subnet_id,
        )
        await self._delete(name, load_balancer)
        return await self._create(name, service, options)

    def _matches(self, load_balancer: LoadBalancer, options: LoadBalancerOptions) -> bool:
        desired_type = LoadBalancerType.for_visibility(options.visibility)
        if load_balancer.type != desired_type or load_balancer.vpc_id != self.settings.vpc_id:
            return False
        if options.is_private:
            return load_balancer.subnet_id == options.require_subnet()
        return True

    async def _create(self, name: str, service: Service, options: LoadBalancerOptions) -> LoadBalancer:
        subnet_id = options.require_subnet() if options.is_private else None
        spec = LoadBalancerSpec(
            name=name,
            type=LoadBalancerType.for_visibility(options.visibility),
            vpc_id=self.settings.vpc_id,
            subnet_id=subnet_id,
            tags={
                self.settings.cluster_tag_key: self.settings.name_prefix,
                self.settings.service_tag_key: service.uid,
            },
        )
        logger.info("Creating %s load balancer %s for %s", options.visibility.value, name, service)
        task_id = await self._load_balancers.create_load_balancer(spec)
        await self._tracker.await_one(task_id)
        return await self._resolver.find_by_name_and_owner(name, service.uid)

    async def _delete(self, name: str, load_balancer: LoadBalancer) -> None:
        logger.info("Deleting load balancer %s (%s)", name, load_balancer.load_balancer_id)
        task_id = await self._load_balancers.delete_load_balancer(load_balancer.load_balancer_id)
        try:
            await self._tracker.await_one(task_id)
        finally:
            self._resolver.forget(name)
            self._resolver.forget_listeners(load_balancer.load_balancer_id)

    # ------------------------------------------------------------------
    # Phase 2: listeners
    # ------------------------------------------------------------------

    async def ensure_listeners(
        self, service: Service, options: LoadBalancerOptions, load_balancer: LoadBalancer
    ) -> None:
        lb_id = load_balancer.load_balancer_id
        plan = plan_listeners(await self._resolver.listeners(lb_id), service.ports)
        if plan.is_converged:
            logger.debug("Listeners of %s already converged", lb_id)
            return

        self._resolver.forget_listeners(lb_id)
        task_ids: list[str] = []
        for port in plan.to_create:
            logger.info("Creating listener %s %d/%s on %s", port.name, port.port, port.protocol, lb_id)
            spec = ListenerSpec(
                name=port.name,
                port=port.port,
                protocol=port.protocol,
                health_check=options.health_check,
            )
            task_ids.append(await self._load_balancers.create_listener(lb_id, spec))

        for listener in plan.to_delete:
            logger.info(
                "Deleting listener %s %d/%s on %s",
                listener.listener_id,
                listener.port,
                listener.protocol,
                lb_id,
            )
            task_ids.append(await self._load_balancers.delete_listener(lb_id, listener.listener_id))

        await self._tracker.await_many(task_ids)

    # ------------------------------------------------------------------
    # Phase 3: backends
    # ------------------------------------------------------------------

    async def ensure_backends(
        self,
        service: Service,
        options: LoadBalancerOptions,
        nodes: Sequence[Node],
        load_balancer: LoadBalancer,
    ) -> None:
        lb_id = load_balancer.load_balancer_id
        selector = options.node_selector
        eligible = [node.private_ip for node in nodes if selector.matches(node.labels)]
        if not eligible:
            raise ValidationError(f"can't found nodes base on label: {selector}")

        instances = await self._instances.resolve_by_private_ips(eligible)
        if not instances:
            logger.warning(
                "None of %d node(s) labelled %s resolved to an instance in vpc %s",
                len(eligible),
                selector,
                self.settings.vpc_id,
            )

        backends = {}
        for backend in await self._load_balancers.describe_targets(lb_id):
            backends.setdefault(backend.key, backend)

        plans: list[TargetPlan] = []
        planned: set[tuple[int, str]] = set()
        for port in service.ports:
            if port.key in planned:
                continue
            planned.add(port.key)
            backend = backends.get(port.key)
            if backend is None:
                raise ValidationError(
                    f"can not find loadBalancer listener for service port {port.port}/{port.protocol}"
                )
            plans.append(plan_targets(backend, instances, port.node_port))

        batch = self.settings.target_batch
        task_ids: list[str] = []
        for plan in plans:
            for targets in chunked(plan.to_deregister, batch):
                logger.info(
                    "Deregistering %d target(s) from %s/%s: %s",
                    len(targets),
                    lb_id,
                    plan.listener_id,
                    ", ".join(str(t) for t in targets),
                )
                task_ids.append(
                    await self._load_balancers.deregister_targets(lb_id, plan.listener_id, targets)
                )

        for plan in plans:
            for targets in chunked(plan.to_register, batch):
                logger.info(
                    "Registering %d target(s) on %s/%s: %s",
                    len(targets),
                    lb_id,
                    plan.listener_id,
                    ", ".join(str(t) for t in targets),
                )
                task_ids.append(
                    await self._load_balancers.register_targets(lb_id, plan.listener_id, targets)
                )

        if not task_ids:
            logger.debug("Backends of %s already converged", lb_id)
            return
        await self._tracker.await_many(task_ids)
