"""Configuration for the advisory handler."""

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Union

import yaml

DEFAULT_SUBJECT = "errata.activity.status"

ENV_PREFIX = "ADVISORY_HANDLER_"


class ConfigError(Exception):
    """Raised when a configuration file cannot be used."""


@dataclass
class HandlerConfig:
    """Configuration for the advisory handler service."""

    # Publishers selected per advisory status
    build_publisher_name: str = "atlas-build"
    build_publisher_version: str = "1.0"
    release_publisher_name: str = "atlas-release"
    release_publisher_version: str = "1.0"

    # Upstream services
    errata_url: Optional[str] = None
    koji_url: Optional[str] = None
    http_timeout: float = 30.0

    # Downstream collaborators (None = in-process fallbacks)
    sink_url: Optional[str] = None
    notifier_webhook_url: Optional[str] = None
    notifier_retry_count: int = 2

    # Ingress
    subject: str = DEFAULT_SUBJECT
    worker_count: int = 4  # concurrent notifications
    queue_size: int = 1000  # max pending notifications
    drain_timeout: float = 10.0  # seconds to wait on shutdown

    # Logging
    log_level: str = "INFO"

    @classmethod
    def from_dict(cls, data: dict) -> "HandlerConfig":
        """Create config from dictionary, applying environment overrides."""
        return cls(
            build_publisher_name=_env("BUILD_PUBLISHER_NAME")
            or data.get("build_publisher_name", "atlas-build"),
            build_publisher_version=_env("BUILD_PUBLISHER_VERSION")
            or str(data.get("build_publisher_version", "1.0")),
            release_publisher_name=_env("RELEASE_PUBLISHER_NAME")
            or data.get("release_publisher_name", "atlas-release"),
            release_publisher_version=_env("RELEASE_PUBLISHER_VERSION")
            or str(data.get("release_publisher_version", "1.0")),
            errata_url=_env("ERRATA_URL") or data.get("errata_url"),
            koji_url=_env("KOJI_URL") or data.get("koji_url"),
            http_timeout=float(data.get("http_timeout", 30.0)),
            sink_url=_env("SINK_URL") or data.get("sink_url"),
            notifier_webhook_url=_env("NOTIFIER_URL") or data.get("notifier_webhook_url"),
            notifier_retry_count=int(data.get("notifier_retry_count", 2)),
            subject=data.get("subject", DEFAULT_SUBJECT),
            worker_count=int(data.get("worker_count", 4)),
            queue_size=int(data.get("queue_size", 1000)),
            drain_timeout=float(data.get("drain_timeout", 10.0)),
            log_level=_env("LOG_LEVEL") or data.get("log_level", "INFO"),
        )

    def to_dict(self) -> dict:
        """Convert config to dictionary."""
        return {
            "build_publisher_name": self.build_publisher_name,
            "build_publisher_version": self.build_publisher_version,
            "release_publisher_name": self.release_publisher_name,
            "release_publisher_version": self.release_publisher_version,
            "errata_url": self.errata_url,
            "koji_url": self.koji_url,
            "http_timeout": self.http_timeout,
            "sink_url": self.sink_url,
            "notifier_webhook_url": self.notifier_webhook_url,
            "notifier_retry_count": self.notifier_retry_count,
            "subject": self.subject,
            "worker_count": self.worker_count,
            "queue_size": self.queue_size,
            "drain_timeout": self.drain_timeout,
            "log_level": self.log_level,
        }


def _env(name: str) -> Optional[str]:
    return os.environ.get(ENV_PREFIX + name) or None


def load_config(path: Optional[Union[str, Path]] = None) -> HandlerConfig:
    """Load configuration from a YAML file.

    Args:
        path: Path to the YAML file. A missing path or file yields the
            defaults (with environment overrides applied).

    Returns:
        HandlerConfig instance.

    Raises:
        ConfigError: If the file is not valid YAML or not a mapping.
    """
    if path is None or not Path(path).exists():
        return HandlerConfig.from_dict({})

    try:
        data = yaml.safe_load(Path(path).read_text(encoding="utf-8"))
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML in {path}: {e}") from e

    if data is None:
        data = {}
    if not isinstance(data, dict):
        raise ConfigError(f"Configuration in {path} must be a mapping")

    return HandlerConfig.from_dict(data)
