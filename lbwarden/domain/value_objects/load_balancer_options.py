"""
Load Balancer Options Value Object

Architectural Intent:
- Typed view of the per-service annotations recognised by the reconciler
- Parsed once per reconciliation pass, with every default applied in one place
- Call sites read fields, never raw annotation strings

Recognised annotations (all optional):
- visibility: public | private (default private; unknown values fall back to private)
- internal subnet id: required only when the load balancer is private, checked
  by the reconciler when it creates or validates the load balancer
- node label key / value: backend node selector (default kubernetes.io/role=node)
- five health-check parameters, each independently overridable
"""

from __future__ import annotations
from dataclasses import dataclass, field
from enum import Enum
from typing import Mapping, Optional
import logging

from lbwarden.domain.errors import ValidationError

logger = logging.getLogger(__name__)

_PREFIX = "service.beta.kubernetes.io/tencentcloud-loadbalancer-"

ANNOTATION_TYPE = _PREFIX + "type"
ANNOTATION_INTERNAL_SUBNET_ID = _PREFIX + "type-internal-subnet-id"
ANNOTATION_NODE_LABEL_KEY = _PREFIX + "node-label-key"
ANNOTATION_NODE_LABEL_VALUE = _PREFIX + "node-label-value"
ANNOTATION_HEALTH_CHECK_SWITCH = _PREFIX + "health-check-switch"
ANNOTATION_HEALTH_CHECK_TIMEOUT = _PREFIX + "health-check-timeout"
ANNOTATION_HEALTH_CHECK_INTERVAL = _PREFIX + "health-check-interval-time"
ANNOTATION_HEALTH_CHECK_HEALTH_NUM = _PREFIX + "health-check-health-num"
ANNOTATION_HEALTH_CHECK_UNHEALTH_NUM = _PREFIX + "health-check-un-health-num"

DEFAULT_NODE_LABEL_KEY = "kubernetes.io/role"
DEFAULT_NODE_LABEL_VALUE = "node"


class Visibility(Enum):
    PUBLIC = "public"
    PRIVATE = "private"


@dataclass(frozen=True)
class HealthCheck:
    enabled: bool = True
    timeout: int = 2
    interval: int = 5
    healthy_threshold: int = 3
    unhealthy_threshold: int = 3


@dataclass(frozen=True)
class NodeSelector:
    key: str = DEFAULT_NODE_LABEL_KEY
    value: str = DEFAULT_NODE_LABEL_VALUE

    def matches(self, labels: Mapping[str, str]) -> bool:
        return self.key in labels and labels[self.key] == self.value

    def __str__(self) -> str:
        return f"{self.key}={self.value}"


@dataclass(frozen=True)
class LoadBalancerOptions:
    visibility: Visibility = Visibility.PRIVATE
    subnet_id: Optional[str] = None
    node_selector: NodeSelector = field(default_factory=NodeSelector)
    health_check: HealthCheck = field(default_factory=HealthCheck)

    @property
    def is_private(self) -> bool:
        return self.visibility == Visibility.PRIVATE

    def require_subnet(self) -> str:
        """Return the private subnet id, failing when a private LB has none."""
        if self.subnet_id is None:
            raise ValidationError("subnet must be specified for private loadBalancer")
        return self.subnet_id

    @staticmethod
    def from_annotations(annotations: Mapping[str, str]) -> "LoadBalancerOptions":
        raw_visibility = annotations.get(ANNOTATION_TYPE, Visibility.PRIVATE.value)
        try:
            visibility = Visibility(raw_visibility)
        except ValueError:
            logger.warning(
                "Unknown load balancer type %r, falling back to %s",
                raw_visibility,
                Visibility.PRIVATE.value,
            )
            visibility = Visibility.PRIVATE

        selector = NodeSelector(
            key=annotations.get(ANNOTATION_NODE_LABEL_KEY, DEFAULT_NODE_LABEL_KEY),
            value=annotations.get(ANNOTATION_NODE_LABEL_VALUE, DEFAULT_NODE_LABEL_VALUE),
        )

        defaults = HealthCheck()
        switch = _int_annotation(annotations, ANNOTATION_HEALTH_CHECK_SWITCH, 1)
        if switch not in (0, 1):
            raise ValidationError(
                f"annotation {ANNOTATION_HEALTH_CHECK_SWITCH} must be 0 or 1, got {switch}"
            )
        health_check = HealthCheck(
            enabled=switch == 1,
            timeout=_int_annotation(annotations, ANNOTATION_HEALTH_CHECK_TIMEOUT, defaults.timeout),
            interval=_int_annotation(annotations, ANNOTATION_HEALTH_CHECK_INTERVAL, defaults.interval),
            healthy_threshold=_int_annotation(
                annotations, ANNOTATION_HEALTH_CHECK_HEALTH_NUM, defaults.healthy_threshold
            ),
            unhealthy_threshold=_int_annotation(
                annotations, ANNOTATION_HEALTH_CHECK_UNHEALTH_NUM, defaults.unhealthy_threshold
            ),
        )

        return LoadBalancerOptions(
            visibility=visibility,
            subnet_id=annotations.get(ANNOTATION_INTERNAL_SUBNET_ID),
            node_selector=selector,
            health_check=health_check,
        )


def _int_annotation(annotations: Mapping[str, str], key: str, default: int) -> int:
    raw = annotations.get(key)
    if raw is None:
        return default
    try:
        value = int(raw.strip())
    except ValueError:
        raise ValidationError(f"annotation {key} must be an integer, got {raw!r}") from None
    if value < 0:
        raise ValidationError(f"annotation {key} must not be negative, got {value}")
    return value
