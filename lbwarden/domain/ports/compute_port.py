"""
Compute Port

Architectural Intent:
- Port interface for the remote compute service
- Only the read side is needed: instances are looked up, never provisioned

Design Decisions:
- Filters are passed in the remote wire form ({"private-ip-address": [...]})
  so adapters do not re-derive them; the remote caps each filter at a small
  number of values and callers are responsible for chunking
"""

from typing import Protocol, runtime_checkable

from lbwarden.domain.entities.instance import Instance

FILTER_PRIVATE_IP = "private-ip-address"
FILTER_INSTANCE_ID = "instance-id"


@runtime_checkable
class ComputePort(Protocol):
    """Port for compute instance lookups."""

    async def describe_instances(self, filters: dict[str, list[str]]) -> list[Instance]:
        """Return instances matching all filters. Raises CloudAPIError."""
        ...
