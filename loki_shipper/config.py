"""Configuration module — frozen dataclass, normalization, and env loader."""

import dataclasses
import os
from dataclasses import dataclass, field

from loki_shipper.levels import LogLevel, parse_level

DEFAULT_BATCH_SIZE = 100
DEFAULT_MIN_WAIT_TIME = 1.0
DEFAULT_MAX_WAIT_TIME = 10.0
DEFAULT_MIN_LEVEL = LogLevel.INFO
DEFAULT_REQUEST_TIMEOUT = 10.0


def _parse_bool(value: str) -> bool:
    return value.strip().lower() in ("true", "1", "yes")


def _parse_labels(value: str) -> dict[str, str]:
    """Parse "job=api,env=prod" into a label dict. Blank items are skipped."""
    labels = {}
    for item in value.split(","):
        item = item.strip()
        if not item:
            continue
        if "=" not in item:
            raise ValueError(f"Invalid label {item!r}, expected key=value")
        key, val = item.split("=", 1)
        labels[key.strip()] = val.strip()
    return labels


@dataclass(frozen=True)
class ClientConfig:
    url: str = "http://localhost:3100"
    labels: dict[str, str] = field(default_factory=dict)
    batch_size: int = DEFAULT_BATCH_SIZE
    min_wait_time: float = DEFAULT_MIN_WAIT_TIME
    max_wait_time: float = DEFAULT_MAX_WAIT_TIME
    min_level: LogLevel | None = DEFAULT_MIN_LEVEL
    group_by_level: bool = True
    request_timeout: float = DEFAULT_REQUEST_TIMEOUT


def normalize_config(config: ClientConfig) -> ClientConfig:
    """Return a copy of *config* with zero-valued fields replaced by defaults.

    An unset (None) min_level becomes INFO. Labels are copied so later changes
    to the caller's dict do not leak into the client.
    """
    if not config.url:
        raise ValueError("url must not be empty")
    for name in ("batch_size", "min_wait_time", "max_wait_time", "request_timeout"):
        if getattr(config, name) < 0:
            raise ValueError(f"{name} must be >= 0")

    return dataclasses.replace(
        config,
        labels=dict(config.labels),
        batch_size=config.batch_size or DEFAULT_BATCH_SIZE,
        min_wait_time=config.min_wait_time or DEFAULT_MIN_WAIT_TIME,
        max_wait_time=config.max_wait_time or DEFAULT_MAX_WAIT_TIME,
        min_level=LogLevel(config.min_level) if config.min_level is not None else DEFAULT_MIN_LEVEL,
        request_timeout=config.request_timeout or DEFAULT_REQUEST_TIMEOUT,
    )


def load_config(environ=None) -> ClientConfig:
    """Build ClientConfig from environment variables with sensible defaults."""
    env = os.environ if environ is None else environ
    return ClientConfig(
        url=env.get("LOKI_URL", ClientConfig.url),
        labels=_parse_labels(env.get("LOKI_LABELS", "")),
        batch_size=int(env.get("BATCH_SIZE", ClientConfig.batch_size)),
        min_wait_time=float(env.get("MIN_WAIT_TIME", ClientConfig.min_wait_time)),
        max_wait_time=float(env.get("MAX_WAIT_TIME", ClientConfig.max_wait_time)),
        min_level=parse_level(env.get("MIN_LEVEL", "info")),
        group_by_level=_parse_bool(env.get("GROUP_BY_LEVEL", "true")),
        request_timeout=float(env.get("REQUEST_TIMEOUT", ClientConfig.request_timeout)),
    )
