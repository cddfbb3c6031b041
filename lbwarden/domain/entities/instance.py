"""
Instance Entity

Architectural Intent:
- Snapshot of a remote compute instance as of the query that produced it
- Never merged across calls; a fresh query produces a fresh snapshot
"""

from dataclasses import dataclass

RUNNING = "RUNNING"


@dataclass(frozen=True)
class Instance:
    instance_id: str
    vpc_id: str
    zone: str = ""
    instance_type: str = ""
    private_ips: tuple[str, ...] = ()
    public_ips: tuple[str, ...] = ()
    state: str = RUNNING

    @property
    def is_running(self) -> bool:
        return self.state == RUNNING

    def has_private_ip(self, ip: str) -> bool:
        return ip in self.private_ips
