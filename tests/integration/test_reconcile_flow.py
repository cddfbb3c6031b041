"""
Integration tests: full reconciliation passes through the CloudProvider
facade, wired by the composition root against the simulated adapters.
"""

import math

import pytest

from lbwarden.composition_root import create_container
from lbwarden.domain.entities.load_balancer import LoadBalancerSpec, LoadBalancerType
from lbwarden.domain.errors import CloudAPIError, LoadBalancerNotFoundError, ValidationError
from lbwarden.domain.value_objects.load_balancer_options import ANNOTATION_TYPE
from lbwarden.domain.value_objects.service import Node, Service, ServicePort
from lbwarden.domain.value_objects.status import NodeAddressType, Route
from lbwarden.infrastructure.adapters.clb_adapter import CLBAdapter
from lbwarden.infrastructure.adapters.cvm_adapter import CVMAdapter
from lbwarden.infrastructure.adapters.tke_route_adapter import TKERouteAdapter
from lbwarden.infrastructure.config import CloudConfig, ControllerConfig, TuningConfig

VPC = "vpc-main"
CLUSTER = "cls-abc"
NODE_LABELS = {"kubernetes.io/role": "node"}


def _make_env():
    config = ControllerConfig(
        cloud=CloudConfig(
            region="ap-guangzhou",
            vpc_id=VPC,
            clb_name_prefix=CLUSTER,
            tag_key="tke-clb-cluster-id",
            secret_id="id",
            secret_key="key",
            cluster_route_table="rt-1",
        ),
        tuning=TuningConfig(task_poll_interval_seconds=0.0),
    )
    cvm, clb, tke = CVMAdapter(), CLBAdapter(), TKERouteAdapter()
    tke.add_route_table("rt-1")
    container = create_container(config, cvm, clb, tke)
    return container, cvm, clb


def _service(ports=None, **kwargs) -> Service:
    return Service(
        namespace="shop",
        name="frontend",
        uid="3f6b2c1a-9d0e-4f7a-b1c2-d3e4f5a6b7c8",
        ports=tuple(ports or (ServicePort("http", 80, 30080), ServicePort("https", 443, 30443))),
        annotations={ANNOTATION_TYPE: "public"},
        **kwargs,
    )


def _nodes(cvm: CVMAdapter, count: int, vpc_id: str = VPC, offset: int = 0) -> list[Node]:
    nodes = []
    for i in range(offset, offset + count):
        ip = f"10.1.{i // 250}.{i % 250 + 1}"
        cvm.register_instance([ip], vpc_id, instance_id=f"ins-{i:04d}")
        nodes.append(Node(ip, labels=NODE_LABELS))
    return nodes


def _registered(clb: CLBAdapter, port: int) -> set:
    for lb_id in clb.load_balancer_ids():
        for raw in clb.raw_listeners(lb_id):
            if raw["Port"] == port:
                return {(t["InstanceId"], t["Port"]) for t in raw["Targets"]}
    return set()


class TestIdempotence:
    @pytest.mark.asyncio
    async def test_second_pass_makes_no_mutations(self):
        container, cvm, clb = _make_env()
        provider = container.cloud_provider
        nodes = _nodes(cvm, 4)

        first = await provider.ensure_load_balancer("c", _service(), nodes)
        mutations = clb.mutation_count()
        second = await provider.ensure_load_balancer("c", _service(), nodes)

        assert first == second
        assert clb.mutation_count() == mutations

    @pytest.mark.asyncio
    async def test_idempotent_with_cold_cache(self):
        container, cvm, clb = _make_env()
        provider = container.cloud_provider
        nodes = _nodes(cvm, 4)
        await provider.ensure_load_balancer("c", _service(), nodes)
        mutations = clb.mutation_count()

        cold = create_container(container.config, cvm, clb, TKERouteAdapter())
        await cold.cloud_provider.ensure_load_balancer("c", _service(), nodes)

        assert clb.mutation_count() == mutations

    @pytest.mark.asyncio
    async def test_aborted_pass_is_finished_by_next(self):
        container, cvm, clb = _make_env()
        provider = container.cloud_provider
        nodes = _nodes(cvm, 2)
        clb.fail_next("DescribeTargets", "InternalError")

        with pytest.raises(CloudAPIError):
            await provider.ensure_load_balancer("c", _service(), nodes)
        await provider.ensure_load_balancer("c", _service(), nodes)

        assert clb.count("CreateLoadBalancer") == 1
        assert clb.count("CreateListener") == 2
        assert _registered(clb, 80) == {("ins-0000", 30080), ("ins-0001", 30080)}


class TestBatching:
    @pytest.mark.asyncio
    @pytest.mark.parametrize("count", [1, 5, 23, 41])
    async def test_query_and_register_counts(self, count):
        container, cvm, clb = _make_env()
        service = _service(ports=[ServicePort("http", 80, 30080)])

        await container.cloud_provider.ensure_load_balancer("c", service, _nodes(cvm, count))

        assert cvm.count("DescribeInstances") == math.ceil(count / 5)
        assert clb.count("RegisterTargets") == math.ceil(count / 20)
        assert len(_registered(clb, 80)) == count


class TestFiltering:
    @pytest.mark.asyncio
    async def test_nodes_outside_vpc_never_registered(self):
        container, cvm, clb = _make_env()
        inside = _nodes(cvm, 2)
        outside = _nodes(cvm, 2, vpc_id="vpc-peer", offset=100)

        await container.cloud_provider.ensure_load_balancer("c", _service(), inside + outside)

        assert _registered(clb, 80) == {("ins-0000", 30080), ("ins-0001", 30080)}

    @pytest.mark.asyncio
    async def test_listener_set_diff(self):
        container, cvm, clb = _make_env()
        provider = container.cloud_provider
        nodes = _nodes(cvm, 1)
        await provider.ensure_load_balancer("c", _service(), nodes)

        changed = _service(ports=[ServicePort("http", 80, 30080), ServicePort("alt", 8080, 30880)])
        await provider.ensure_load_balancer("c", changed, nodes)

        ports = {raw["Port"] for lb_id in clb.load_balancer_ids() for raw in clb.raw_listeners(lb_id)}
        assert ports == {80, 8080}
        assert _registered(clb, 8080) == {("ins-0000", 30880)}


class TestUpdateFlow:
    @pytest.mark.asyncio
    async def test_node_removal(self):
        container, cvm, clb = _make_env()
        provider = container.cloud_provider
        nodes = _nodes(cvm, 3)
        await provider.ensure_load_balancer("c", _service(), nodes)

        await provider.update_load_balancer("c", _service(), nodes[:1])

        assert _registered(clb, 80) == {("ins-0000", 30080)}
        assert _registered(clb, 443) == {("ins-0000", 30443)}

    @pytest.mark.asyncio
    async def test_deregister_calls_chunked_at_twenty(self):
        container, cvm, clb = _make_env()
        provider = container.cloud_provider
        service = _service(ports=[ServicePort("http", 80, 30080)])
        nodes = _nodes(cvm, 45)
        await provider.ensure_load_balancer("c", service, nodes)

        await provider.update_load_balancer("c", service, nodes[:2])

        assert clb.count("DeregisterTargets") == 3
        assert _registered(clb, 80) == {("ins-0000", 30080), ("ins-0001", 30080)}


class TestRejections:
    @pytest.mark.asyncio
    async def test_session_affinity_rejected_before_any_call(self):
        container, cvm, clb = _make_env()
        with pytest.raises(ValidationError):
            await container.cloud_provider.ensure_load_balancer(
                "c", _service(session_affinity="ClientIP"), _nodes(cvm, 1)
            )
        assert clb.requests == []
        assert cvm.requests == []

    @pytest.mark.asyncio
    async def test_delete_missing_lb(self):
        container, _, clb = _make_env()
        await container.cloud_provider.ensure_load_balancer_deleted("c", _service())
        assert clb.requests == ["DescribeLoadBalancers"]

    @pytest.mark.asyncio
    async def test_ambiguous_ownership_is_never_resolved(self):
        container, cvm, clb = _make_env()
        service = _service()
        for name in ("dup-a", "dup-b"):
            clb.add_load_balancer(LoadBalancerSpec(
                name=name,
                type=LoadBalancerType.PUBLIC,
                vpc_id=VPC,
                tags={"k8s-service-id": service.uid},
            ))

        assert await container.cloud_provider.get_load_balancer("c", service) == (None, False)
        with pytest.raises(LoadBalancerNotFoundError):
            await container.cloud_provider.ensure_load_balancer("c", service, _nodes(cvm, 1))
        assert clb.count("DeleteLoadBalancer") == 0


class TestLifecycle:
    @pytest.mark.asyncio
    async def test_create_get_delete(self):
        container, cvm, clb = _make_env()
        provider = container.cloud_provider
        service = _service()

        assert provider.get_load_balancer_name("c", service) == f"{CLUSTER}_shop_frontend"
        status = await provider.ensure_load_balancer("c", service, _nodes(cvm, 1))
        assert await provider.get_load_balancer("c", service) == (status, True)

        await provider.ensure_load_balancer_deleted("c", service)
        assert await provider.get_load_balancer("c", service) == (None, False)
        assert clb.load_balancer_ids() == []


class TestNodesAndRoutes:
    @pytest.mark.asyncio
    async def test_node_metadata(self):
        container, cvm, _ = _make_env()
        provider = container.cloud_provider
        cvm.register_instance(["10.2.0.1"], VPC, instance_id="ins-meta", zone="zone-a", public_ips=["8.8.4.4"])

        addresses = await provider.node_addresses("10.2.0.1")
        assert [(a.type, a.address) for a in addresses] == [
            (NodeAddressType.INTERNAL_IP, "10.2.0.1"),
            (NodeAddressType.EXTERNAL_IP, "8.8.4.4"),
        ]
        assert await provider.instance_id("10.2.0.1") == "/zone-a/ins-meta"
        assert await provider.external_id("10.2.0.1") == "ins-meta"
        assert await provider.instance_type("10.2.0.1") == "S5.MEDIUM4"
        assert await provider.instance_type_by_provider_id("tencentcloud://zone-a/ins-meta") == "S5.MEDIUM4"
        assert await provider.node_addresses_by_provider_id("tencentcloud://zone-a/ins-meta") == addresses
        assert await provider.instance_exists_by_provider_id("tencentcloud://zone-a/ins-meta") is True
        assert await provider.instance_shutdown_by_provider_id("tencentcloud://zone-a/ins-meta") is False
        assert await provider.instance_exists_by_provider_id("tencentcloud://zone-a/ins-gone") is False

    @pytest.mark.asyncio
    async def test_routes(self):
        container, _, _ = _make_env()
        provider = container.cloud_provider
        route = Route("10.1.0.1", "10.1.0.1", "172.16.3.0/24")

        await provider.create_route("c", "node-1", route)
        assert await provider.list_routes("c") == [route]
        await provider.delete_route("c", route)
        assert await provider.list_routes("c") == []
