"""
Domain Services Package

Architectural Intent:
- Contains pure domain logic used by the reconciler
"""

from lbwarden.domain.services.naming import load_balancer_name
from lbwarden.domain.services.reconciliation_planner import (
    ListenerPlan,
    TargetPlan,
    chunked,
    plan_listeners,
    plan_targets,
)

__all__ = [
    "ListenerPlan",
    "TargetPlan",
    "chunked",
    "load_balancer_name",
    "plan_listeners",
    "plan_targets",
]
