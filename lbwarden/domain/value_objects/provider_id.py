"""
Provider ID Value Object

Parses provider-qualified instance ids of the form
``<provider>://<zone>/<instanceId>``. The form produced by ``instance_id``
(``/<zone>/<instanceId>`` appended to the scheme, giving three slashes) is
accepted as well.
"""

from dataclasses import dataclass

from lbwarden.domain.errors import ProviderIDFormatError


@dataclass(frozen=True)
class ProviderID:
    provider: str
    zone: str
    instance_id: str

    def __str__(self) -> str:
        return f"{self.provider}://{self.zone}/{self.instance_id}"

    @staticmethod
    def parse(provider_id: str, provider: str) -> "ProviderID":
        scheme = f"{provider}://"
        if not provider_id.startswith(scheme):
            raise ProviderIDFormatError(provider_id)

        path = provider_id[len(scheme):]
        if path.startswith("/"):
            path = path[1:]
        parts = path.split("/")
        if len(parts) != 2 or not all(parts):
            raise ProviderIDFormatError(provider_id)

        zone, instance_id = parts
        return ProviderID(provider=provider, zone=zone, instance_id=instance_id)
