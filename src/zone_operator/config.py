"""
Configuration loading and validation for the zone operator.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

__all__ = [
    "DEFAULT_CONFIG_PATH",
    "PROJECT_ROOT",
    "AWSConfig",
    "ConfigError",
    "ControllerConfig",
    "KubeConfig",
    "OperatorConfig",
    "load_config",
    "parse_config",
]

logger = logging.getLogger(__name__)

# Project root directory (two levels up from the package directory)
PROJECT_ROOT = os.path.dirname(
    os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
)

# Default config path, relative to the project root
DEFAULT_CONFIG_PATH = os.path.join(PROJECT_ROOT, "config", "config.yaml")

_IN_CLUSTER_TOKEN = "/var/run/secrets/kubernetes.io/serviceaccount/token"


class ConfigError(Exception):
    """Raised when the configuration file is missing or invalid."""


@dataclass
class AWSConfig:
    """Route 53 client settings."""

    region: str = "us-west-2"
    profile: str = ""
    max_attempts: int = 3
    vpc_id: str = ""
    vpc_region: str = ""


@dataclass
class KubeConfig:
    """API server connection and resource coordinates."""

    api_url: str = "https://kubernetes.default.svc"
    token: str = ""
    token_file: str = _IN_CLUSTER_TOKEN
    ca_file: str = ""
    namespace: str = ""
    group: str = "dns.zone"
    version: str = "v1alpha1"
    plural: str = "dnszones"

    def __repr__(self) -> str:
        """Redact the token in repr output."""
        token_display = self.token[:4] + "..." if self.token else "(empty)"
        return (
            f"KubeConfig(api_url={self.api_url!r}, token={token_display!r}, "
            f"namespace={self.namespace!r})"
        )


@dataclass
class ControllerConfig:
    resync_seconds: float = 30
    max_backoff_seconds: float = 300
    pass_timeout_seconds: float = 120


@dataclass
class OperatorConfig:
    aws: AWSConfig = field(default_factory=AWSConfig)
    kubernetes: KubeConfig = field(default_factory=KubeConfig)
    controller: ControllerConfig = field(default_factory=ControllerConfig)


def _section(cfg: dict, name: str) -> dict[str, Any]:
    value = cfg.get(name) or {}
    if not isinstance(value, dict):
        raise ConfigError(f"{name} must be a mapping")
    return value


def _positive(section: dict, key: str, default: float, label: str) -> float:
    value = section.get(key, default)
    if isinstance(value, bool) or not isinstance(value, (int, float)) or value <= 0:
        raise ConfigError(f"{label}.{key} must be a positive number, got {value!r}")
    return value


def _read_token(kube: KubeConfig) -> str:
    """Resolve the API token: env override, then config value, then token file."""
    env_token = os.environ.get("ZONE_OPERATOR_KUBE_TOKEN", "")
    if env_token:
        return env_token
    if kube.token:
        return kube.token
    if kube.token_file and os.path.isfile(kube.token_file):
        with open(kube.token_file, encoding="utf-8") as fh:
            return fh.read().strip()
    return ""


def parse_config(cfg: dict) -> OperatorConfig:
    """Build an ``OperatorConfig`` from a parsed YAML mapping.

    Raises:
        ConfigError: On malformed sections, placeholder tokens or bad intervals.
    """
    aws_raw = _section(cfg, "aws")
    kube_raw = _section(cfg, "kubernetes")
    ctrl_raw = _section(cfg, "controller")

    region = os.environ.get("AWS_REGION") or aws_raw.get("region", "us-west-2")
    aws = AWSConfig(
        region=region,
        profile=aws_raw.get("profile", "") or "",
        max_attempts=int(_positive(aws_raw, "max_attempts", 3, "aws")),
        vpc_id=aws_raw.get("vpc_id", "") or "",
        vpc_region=aws_raw.get("vpc_region", "") or region,
    )

    kube = KubeConfig(
        api_url=kube_raw.get("api_url", "https://kubernetes.default.svc"),
        token=kube_raw.get("token", "") or "",
        token_file=kube_raw.get("token_file", _IN_CLUSTER_TOKEN) or "",
        ca_file=kube_raw.get("ca_file", "") or "",
        namespace=kube_raw.get("namespace", "") or "",
        group=kube_raw.get("group", "dns.zone"),
        version=kube_raw.get("version", "v1alpha1"),
        plural=kube_raw.get("plural", "dnszones"),
    )
    if not kube.api_url:
        raise ConfigError("kubernetes.api_url must not be empty")
    kube.token = _read_token(kube)
    if kube.token.startswith("your-") or kube.token == "REPLACE_WITH_YOUR_TOKEN":
        raise ConfigError("Placeholder value in config: kubernetes.token")

    controller = ControllerConfig(
        resync_seconds=_positive(ctrl_raw, "resync_seconds", 30, "controller"),
        max_backoff_seconds=_positive(ctrl_raw, "max_backoff_seconds", 300, "controller"),
        pass_timeout_seconds=_positive(ctrl_raw, "pass_timeout_seconds", 120, "controller"),
    )

    return OperatorConfig(aws=aws, kubernetes=kube, controller=controller)


def load_config(config_path: str) -> OperatorConfig:
    """Load and validate the YAML configuration file.

    Raises:
        ConfigError: If the config file is missing, empty or invalid.
    """
    path = Path(config_path)
    if not path.exists():
        raise ConfigError(
            f"Config file not found: {config_path}\n"
            "Copy config/config.yaml.example to config/config.yaml and fill in your values."
        )

    with open(path, "r", encoding="utf-8") as f:
        try:
            cfg = yaml.safe_load(f)
        except yaml.YAMLError as exc:
            raise ConfigError(f"Config file is not valid YAML: {exc}") from exc

    if not cfg:
        raise ConfigError(f"Config file is empty: {config_path}")
    if not isinstance(cfg, dict):
        raise ConfigError(f"Config file must contain a mapping: {config_path}")

    operator_cfg = parse_config(cfg)
    logger.debug("Config loaded from %s", config_path)
    return operator_cfg
