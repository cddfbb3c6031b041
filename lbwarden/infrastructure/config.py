"""
Configuration Module

Architectural Intent:
- Centralized configuration loading from a JSON config blob
- Provides typed access to all lbwarden settings
- Cloud settings fall back to environment variables when the blob leaves
  them empty; all seven are required and loading fails closed
- Tuning values (cache TTL, poll budget, batch sizes) default to the remote
  API's limits and may be overridden per section

Design Decisions:
- Config is a frozen dataclass for immutability after load
- Nested config sections map to sub-dataclasses
- Injected into every component at construction; nothing reads process-wide
  mutable defaults
"""

from __future__ import annotations
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional
import dataclasses
import json
import logging
import os

from lbwarden.domain.errors import ConfigError

logger = logging.getLogger(__name__)

CLOUD_ENV_PREFIX = "TENCENTCLOUD_CLOUD_CONTROLLER_MANAGER"

# Field name -> environment variable suffix used when the blob leaves it empty.
_CLOUD_ENV_VARS = {
    "region": "REGION",
    "vpc_id": "VPC_ID",
    "clb_name_prefix": "CLB_NAME_PREFIX",
    "tag_key": "CLB_TAG_KEY",
    "secret_id": "SECRET_ID",
    "secret_key": "SECRET_KEY",
    "cluster_route_table": "CLUSTER_ROUTE_TABLE",
}

_ENV_SECTIONS = ("tuning",)
_ENV_TOP_LEVEL = ("log_level", "provider_name")


@dataclass(frozen=True)
class CloudConfig:
    """Remote cloud account settings."""
    region: str = ""
    vpc_id: str = ""
    clb_name_prefix: str = ""
    tag_key: str = ""
    secret_id: str = field(default="", repr=False)
    secret_key: str = field(default="", repr=False)
    cluster_route_table: str = ""
    service_tag_key: str = "k8s-service-id"

    def check(self) -> None:
        for name in _CLOUD_ENV_VARS:
            value = getattr(self, name)
            if not isinstance(value, str) or not value.strip():
                logger.error("Config value %r is empty", name)
                raise ConfigError(f"'{name}' config is null")


@dataclass(frozen=True)
class TuningConfig:
    """Remote API limits and polling budget."""
    cache_ttl_seconds: float = 60.0
    task_poll_attempts: int = 30
    task_poll_interval_seconds: float = 1.0
    instance_query_batch: int = 5
    target_batch: int = 20


@dataclass(frozen=True)
class ControllerConfig:
    """Root configuration for the lbwarden controller."""
    cloud: CloudConfig = field(default_factory=CloudConfig)
    tuning: TuningConfig = field(default_factory=TuningConfig)
    provider_name: str = "tencentcloud"
    log_level: str = "WARNING"


def _env_override(data: dict, prefix: str = "LBWARDEN") -> dict:
    """Override section values with environment variables.

    Environment variables follow the pattern PREFIX_SECTION_KEY.
    For example: LBWARDEN_TUNING_TARGET_BATCH=10, LBWARDEN_LOG_LEVEL=DEBUG
    """
    for key, value in os.environ.items():
        if not key.startswith(f"{prefix}_"):
            continue
        name = key[len(prefix) + 1:].lower()
        section, _, field_name = name.partition("_")
        if section in _ENV_SECTIONS and field_name:
            section_data = data.get(section)
            if not isinstance(section_data, dict):
                section_data = {}
                data[section] = section_data
            section_data[field_name] = value
        elif name in _ENV_TOP_LEVEL:
            data[name] = value
    return data


def _cloud_env_fallback(data: dict) -> dict:
    """Fill cloud values the blob left empty from the controller env vars."""
    for name, suffix in _CLOUD_ENV_VARS.items():
        if not str(data.get(name) or "").strip():
            env_value = os.environ.get(f"{CLOUD_ENV_PREFIX}_{suffix}", "")
            if env_value:
                data[name] = env_value
    return data


def _parse_config_file(path: Path) -> dict:
    """Parse a JSON config file. Returns empty dict on failure."""
    try:
        with open(path) as f:
            data = json.load(f)
    except FileNotFoundError:
        logger.debug("Config file not found: %s", path)
        return {}
    except json.JSONDecodeError as e:
        logger.warning("Invalid config file %s: %s", path, e)
        return {}
    if not isinstance(data, dict):
        logger.warning("Config file %s does not hold a JSON object", path)
        return {}
    return data


def _build_sub_config(cls, data: dict):
    """Build a sub-config dataclass from a dict, ignoring unknown keys."""
    valid_fields = {f.name for f in dataclasses.fields(cls)}
    filtered = {k: v for k, v in data.items() if k in valid_fields}

    # Convert env strings to the declared numeric types
    for f in dataclasses.fields(cls):
        if f.name in filtered and isinstance(filtered[f.name], str):
            try:
                if f.type == "int":
                    filtered[f.name] = int(filtered[f.name])
                elif f.type == "float":
                    filtered[f.name] = float(filtered[f.name])
            except ValueError:
                raise ConfigError(
                    f"'{f.name}' must be a {f.type}, got {filtered[f.name]!r}"
                ) from None

    return cls(**filtered)


def parse_config(data: dict, env_prefix: str = "LBWARDEN") -> ControllerConfig:
    """Build and validate a ControllerConfig from an already-decoded blob."""
    data = _env_override(dict(data), env_prefix)
    cloud_data = _cloud_env_fallback(
        {k: v for k, v in data.items() if not isinstance(v, dict)}
    )

    config = ControllerConfig(
        cloud=_build_sub_config(CloudConfig, cloud_data),
        tuning=_build_sub_config(TuningConfig, data.get("tuning", {})),
        provider_name=data.get("provider_name", "tencentcloud"),
        log_level=data.get("log_level", "WARNING"),
    )
    config.cloud.check()
    return config


def load_config(
    path: Optional[str] = None,
    env_prefix: str = "LBWARDEN",
) -> ControllerConfig:
    """Load configuration from file and environment variables.

    Priority for cloud settings (highest to lowest):
    1. Config file values
    2. TENCENTCLOUD_CLOUD_CONTROLLER_MANAGER_* environment variables

    Priority for tuning settings:
    1. Environment variables (LBWARDEN_TUNING_KEY)
    2. Config file values
    3. Defaults

    Raises ConfigError when any required cloud setting is still empty.
    """
    config_path = Path(path) if path else Path("lbwarden.json")
    return parse_config(_parse_config_file(config_path), env_prefix)
