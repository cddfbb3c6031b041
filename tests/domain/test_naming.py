"""Tests for load balancer naming."""

from lbwarden.domain.services.naming import load_balancer_name
from lbwarden.domain.value_objects.service import Service


def _service(name: str, namespace: str = "default", uid: str = "1234abcd-5678-90ef") -> Service:
    return Service(namespace=namespace, name=name, uid=uid)


class TestLoadBalancerName:
    def test_short_name(self):
        assert load_balancer_name("cls-abc", _service("web")) == "cls-abc_default_web"

    def test_exactly_sixty_kept(self):
        svc = _service("n" * 55, namespace="ns")
        name = load_balancer_name("p", svc)
        assert len(name) == 60
        assert name == "p_ns_" + "n" * 55

    def test_long_name_truncated(self):
        svc = _service("x" * 60)
        name = load_balancer_name("cls-abc", svc)
        full = "cls-abc_default_" + "x" * 60
        assert len(name) == 59
        assert name == full[:50] + "_1234abcd"

    def test_truncation_distinguishes_services(self):
        a = load_balancer_name("cls", _service("y" * 70, uid="aaaaaaaa-1"))
        b = load_balancer_name("cls", _service("y" * 70, uid="bbbbbbbb-1"))
        assert a != b
