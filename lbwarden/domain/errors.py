"""
Domain Errors

Architectural Intent:
- Single exception taxonomy shared by every layer
- NotFound errors carry control-flow meaning (a node is gone, a load balancer
  must be created) and are never logged as failures by callers
- Remote API errors are propagated unchanged; only the task tracker retries
"""

from typing import Optional


class LBWardenError(Exception):
    """Base class for all lbwarden errors."""


class NotFoundError(LBWardenError):
    """A remote resource is absent."""


class InstanceNotFoundError(NotFoundError):
    def __init__(self, identifier: str = "") -> None:
        super().__init__(f"instance not found: {identifier}" if identifier else "instance not found")
        self.identifier = identifier


class LoadBalancerNotFoundError(NotFoundError):
    def __init__(self, name: str = "") -> None:
        super().__init__(f"load balancer not found: {name}" if name else "load balancer not found")
        self.name = name


class CloudAPIError(LBWardenError):
    """Transport or service-reported error from the remote cloud."""

    def __init__(self, code: str, message: str, request_id: Optional[str] = None) -> None:
        super().__init__(f"[{code}] {message}")
        self.code = code
        self.message = message
        self.request_id = request_id

    @property
    def is_not_found(self) -> bool:
        return self.code in NOT_FOUND_CODES or self.code.endswith(".NotFound")


# Remote error codes meaning "the resource does not exist".
NOT_FOUND_CODES = frozenset({
    "ResourceNotFound",
    "InvalidInstanceId.NotFound",
    "InvalidParameterValue.InstanceIdNotFound",
})


class ValidationError(LBWardenError):
    """Desired state cannot be reconciled until the input is fixed."""


class ProviderIDFormatError(ValidationError):
    def __init__(self, provider_id: str) -> None:
        super().__init__(f"invalid format for providerId {provider_id}")
        self.provider_id = provider_id


class TaskError(LBWardenError):
    """An asynchronous remote task could not be confirmed."""

    def __init__(self, task_id: str, message: str) -> None:
        super().__init__(message)
        self.task_id = task_id


class TaskTimeoutError(TaskError):
    def __init__(self, task_id: str, attempts: int) -> None:
        super().__init__(task_id, f"task {task_id} did not finish after {attempts} polls")
        self.attempts = attempts


class UnexpectedTaskStatusError(TaskError):
    def __init__(self, task_id: str, status: int) -> None:
        super().__init__(task_id, f"task {task_id} returned unexpected status {status}")
        self.status = status


class ConfigError(LBWardenError):
    pass
