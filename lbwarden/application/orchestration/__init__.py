"""
Orchestration Package

Architectural Intent:
- Coordinates asynchronous remote work issued by the reconciler
"""

from lbwarden.application.orchestration.task_tracker import TaskTracker

__all__ = ["TaskTracker"]
