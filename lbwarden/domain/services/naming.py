"""
Load Balancer Naming

The remote caps load balancer names at 60 characters. Longer computed names
keep their first 50 characters and gain ``_`` plus the first 8 characters of
the service uid, 59 characters in total.
"""

from lbwarden.domain.value_objects.service import Service

MAX_NAME_LENGTH = 60
TRUNCATED_PREFIX_LENGTH = 50
UID_SUFFIX_LENGTH = 8


def load_balancer_name(prefix: str, service: Service) -> str:
    name = f"{prefix}_{service.namespace}_{service.name}"
    if len(name) > MAX_NAME_LENGTH:
        name = f"{name[:TRUNCATED_PREFIX_LENGTH]}_{service.uid[:UID_SUFFIX_LENGTH]}"
    return name
