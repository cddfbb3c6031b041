"""
Tests for the simulated cloud adapters.

Coverage strategy
-----------------
Each adapter is checked for:
  1. Port conformance (runtime_checkable Protocol).
  2. Response translation into domain entities.
  3. Enforcement of the remote limits callers must respect.
  4. Task lifecycle for asynchronous mutations.
  5. Request recording used to count remote calls.
"""

import pytest

from lbwarden.domain.entities.load_balancer import (
    ListenerSpec,
    LoadBalancerSpec,
    LoadBalancerType,
    Target,
)
from lbwarden.domain.errors import CloudAPIError
from lbwarden.domain.ports.cluster_route_port import ClusterRoutePort
from lbwarden.domain.ports.compute_port import ComputePort
from lbwarden.domain.ports.load_balancer_port import (
    LoadBalancerPort,
    TASK_FAILED,
    TASK_RUNNING,
    TASK_SUCCEEDED,
)
from lbwarden.infrastructure.adapters.clb_adapter import CLBAdapter
from lbwarden.infrastructure.adapters.cvm_adapter import CVMAdapter
from lbwarden.infrastructure.adapters.tke_route_adapter import TKERouteAdapter


def _spec(**kwargs) -> LoadBalancerSpec:
    defaults = dict(
        name="cls_default_web",
        type=LoadBalancerType.PUBLIC,
        vpc_id="vpc-main",
        tags={"k8s-service-id": "uid-1"},
    )
    defaults.update(kwargs)
    return LoadBalancerSpec(**defaults)


class TestPortConformance:
    def test_cvm(self):
        assert isinstance(CVMAdapter(), ComputePort)

    def test_clb(self):
        assert isinstance(CLBAdapter(), LoadBalancerPort)

    def test_tke(self):
        assert isinstance(TKERouteAdapter(), ClusterRoutePort)


class TestCVMAdapter:
    @pytest.mark.asyncio
    async def test_empty_registry(self):
        assert await CVMAdapter().describe_instances({"private-ip-address": ["10.0.0.1"]}) == []

    @pytest.mark.asyncio
    async def test_translates_instance(self):
        cvm = CVMAdapter(default_zone="ap-guangzhou-4")
        cvm.register_instance(["10.0.0.1"], "vpc-main", instance_id="ins-1", public_ips=["1.2.3.4"])

        [instance] = await cvm.describe_instances({"instance-id": ["ins-1"]})

        assert instance.instance_id == "ins-1"
        assert instance.vpc_id == "vpc-main"
        assert instance.zone == "ap-guangzhou-4"
        assert instance.private_ips == ("10.0.0.1",)
        assert instance.public_ips == ("1.2.3.4",)
        assert instance.is_running

    @pytest.mark.asyncio
    async def test_filter_value_limit(self):
        cvm = CVMAdapter()
        ips = [f"10.0.0.{i}" for i in range(6)]
        with pytest.raises(CloudAPIError, match="LimitExceeded"):
            await cvm.describe_instances({"private-ip-address": ips})

    @pytest.mark.asyncio
    async def test_unknown_filter(self):
        with pytest.raises(CloudAPIError, match="InvalidFilter"):
            await CVMAdapter().describe_instances({"zone": ["a"]})

    @pytest.mark.asyncio
    async def test_fail_next_is_one_shot(self):
        cvm = CVMAdapter()
        cvm.fail_next("DescribeInstances", "InternalError")
        with pytest.raises(CloudAPIError):
            await cvm.describe_instances({})
        assert await cvm.describe_instances({}) == []
        assert cvm.count("DescribeInstances") == 2

    @pytest.mark.asyncio
    async def test_remove_instance(self):
        cvm = CVMAdapter()
        cvm.register_instance(["10.0.0.1"], "vpc-main", instance_id="ins-1")
        cvm.remove_instance("ins-1")
        assert await cvm.describe_instances({"instance-id": ["ins-1"]}) == []


class TestCLBAdapter:
    @pytest.mark.asyncio
    async def test_create_and_describe(self):
        clb = CLBAdapter()
        task_id = await clb.create_load_balancer(_spec())

        assert await clb.describe_task_status(task_id) == TASK_SUCCEEDED
        [lb] = await clb.describe_load_balancers({"tag:k8s-service-id": ["uid-1"]})
        assert lb.name == "cls_default_web"
        assert lb.type == LoadBalancerType.PUBLIC
        assert lb.subnet_id is None
        assert len(lb.vips) == 1

    @pytest.mark.asyncio
    async def test_name_filter(self):
        clb = CLBAdapter()
        clb.add_load_balancer(_spec())
        assert await clb.describe_load_balancers({"LoadBalancerName": ["other"]}) == []

    @pytest.mark.asyncio
    async def test_name_length_limit(self):
        with pytest.raises(CloudAPIError, match="Length"):
            await CLBAdapter().create_load_balancer(_spec(name="n" * 61))

    @pytest.mark.asyncio
    async def test_internal_requires_subnet(self):
        with pytest.raises(CloudAPIError, match="SubnetId"):
            await CLBAdapter().create_load_balancer(_spec(type=LoadBalancerType.PRIVATE))

    @pytest.mark.asyncio
    async def test_pending_polls(self):
        clb = CLBAdapter(pending_polls=2)
        task_id = await clb.create_load_balancer(_spec())
        statuses = [await clb.describe_task_status(task_id) for _ in range(4)]
        assert statuses == [TASK_RUNNING, TASK_RUNNING, TASK_SUCCEEDED, TASK_SUCCEEDED]

    @pytest.mark.asyncio
    async def test_failed_task_leaves_state(self):
        clb = CLBAdapter()
        clb.fail_tasks = True
        task_id = await clb.create_load_balancer(_spec())
        assert await clb.describe_task_status(task_id) == TASK_FAILED
        assert await clb.describe_load_balancers({}) == []

    @pytest.mark.asyncio
    async def test_unknown_task(self):
        with pytest.raises(CloudAPIError, match="ResourceNotFound"):
            await CLBAdapter().describe_task_status("nope")

    @pytest.mark.asyncio
    async def test_listener_lifecycle(self):
        clb = CLBAdapter()
        lb_id = clb.add_load_balancer(_spec())
        await clb.create_listener(lb_id, ListenerSpec("http", 80, "TCP"))

        [listener] = await clb.describe_listeners(lb_id)
        assert listener.key == (80, "TCP")
        assert listener.load_balancer_id == lb_id

        await clb.delete_listener(lb_id, listener.listener_id)
        assert await clb.describe_listeners(lb_id) == []

    @pytest.mark.asyncio
    async def test_duplicate_listener_rejected(self):
        clb = CLBAdapter()
        lb_id = clb.add_load_balancer(_spec())
        await clb.create_listener(lb_id, ListenerSpec("http", 80, "TCP"))
        with pytest.raises(CloudAPIError, match="PortCheckFailed"):
            await clb.create_listener(lb_id, ListenerSpec("again", 80, "TCP"))

    @pytest.mark.asyncio
    async def test_targets(self):
        clb = CLBAdapter()
        lb_id = clb.add_load_balancer(_spec())
        await clb.create_listener(lb_id, ListenerSpec("http", 80, "TCP"))
        [listener] = await clb.describe_listeners(lb_id)

        await clb.register_targets(lb_id, listener.listener_id, [Target("ins-1", 30080), Target("ins-2", 30080)])
        await clb.deregister_targets(lb_id, listener.listener_id, [Target("ins-1", 30080)])

        [backend] = await clb.describe_targets(lb_id)
        assert backend.listener_id == listener.listener_id
        assert backend.targets == (Target("ins-2", 30080),)

    @pytest.mark.asyncio
    async def test_target_limit(self):
        clb = CLBAdapter()
        lb_id = clb.add_load_balancer(_spec())
        await clb.create_listener(lb_id, ListenerSpec("http", 80, "TCP"))
        [listener] = await clb.describe_listeners(lb_id)
        targets = [Target(f"ins-{i}", 30080) for i in range(21)]
        with pytest.raises(CloudAPIError, match="LimitExceeded"):
            await clb.register_targets(lb_id, listener.listener_id, targets)

    @pytest.mark.asyncio
    async def test_delete_unknown_lb(self):
        with pytest.raises(CloudAPIError) as exc_info:
            await CLBAdapter().delete_load_balancer("lb-missing")
        assert exc_info.value.is_not_found

    @pytest.mark.asyncio
    async def test_request_recording(self):
        clb = CLBAdapter()
        await clb.describe_load_balancers({})
        await clb.create_load_balancer(_spec())
        assert clb.requests == ["DescribeLoadBalancers", "CreateLoadBalancer"]
        assert clb.mutation_count() == 1


class TestTKERouteAdapter:
    @pytest.mark.asyncio
    async def test_lifecycle(self):
        tke = TKERouteAdapter()
        tke.add_route_table("rt-1")
        await tke.create_cluster_route("rt-1", "10.0.0.5", "172.16.0.0/24")

        [route] = await tke.describe_cluster_routes("rt-1")
        assert route.target_node == "10.0.0.5"
        assert route.destination_cidr == "172.16.0.0/24"

        await tke.delete_cluster_route("rt-1", "10.0.0.5", "172.16.0.0/24")
        assert await tke.describe_cluster_routes("rt-1") == []
        assert tke.requests == [
            "CreateClusterRoute", "DescribeClusterRoutes", "DeleteClusterRoute", "DescribeClusterRoutes",
        ]
