"""Configuration loading for conflict checks and recurring generation."""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Dict, Tuple

import yaml

from rota.exceptions import ConfigError

logger = logging.getLogger(__name__)

ACTIVE_STATUSES: Tuple[str, ...] = ("PLANNED", "ASSIGNED", "IN_PROGRESS", "SUBMITTED")


@dataclass(frozen=True)
class SchedulingConfig:
    """
    Tunable defaults shared by every checker and the recurring generator.

    Attributes:
        default_duration_minutes: Duration assumed for jobs without an estimate
        overlap_window_hours: Padding around the proposed interval used to
            pre-filter candidate jobs before the exact overlap test
        active_statuses: Job statuses counted for overlap and workload
        default_days_ahead: Horizon used when generation is called without one
        max_workers: Thread pool size for concurrent checks
        db_url: SQLAlchemy database URL
    """

    default_duration_minutes: int = 120
    overlap_window_hours: float = 3.0
    active_statuses: Tuple[str, ...] = field(default=ACTIVE_STATUSES)
    default_days_ahead: int = 7
    max_workers: int = 4
    db_url: str = "sqlite:///rota.db"

    def duration_or_default(self, minutes: int | None) -> int:
        """Apply the default-duration rule (missing or zero means default)."""
        return minutes or self.default_duration_minutes

    def hours_or_default(self, minutes: int | None) -> float:
        return self.duration_or_default(minutes) / 60.0


DEFAULT_CONFIG = SchedulingConfig()


def _validate(cfg: SchedulingConfig) -> SchedulingConfig:
    if cfg.default_duration_minutes <= 0:
        raise ConfigError("default_duration_minutes must be positive")
    if cfg.overlap_window_hours < 0:
        raise ConfigError("overlap_window_hours must not be negative")
    if cfg.default_days_ahead < 0:
        raise ConfigError("default_days_ahead must not be negative")
    if cfg.max_workers < 1:
        raise ConfigError("max_workers must be at least 1")
    if not cfg.active_statuses:
        raise ConfigError("active_statuses must list at least one status")
    return cfg


def config_from_dict(data: Dict) -> SchedulingConfig:
    """Build a validated config from a plain mapping, ignoring unknown keys."""
    known = {f.name for f in fields(SchedulingConfig)}
    kwargs = {}
    for key, value in (data or {}).items():
        if key not in known:
            logger.warning("Ignoring unknown config key %r", key)
            continue
        kwargs[key] = value

    if "active_statuses" in kwargs:
        kwargs["active_statuses"] = tuple(str(s).upper() for s in kwargs["active_statuses"])

    try:
        cfg = SchedulingConfig(**kwargs)
    except TypeError as e:
        raise ConfigError(f"Invalid configuration: {e}") from e
    return _validate(cfg)


def load_config(path: str | Path | None = None) -> SchedulingConfig:
    """
    Load configuration from a YAML or JSON file.

    Args:
        path: Config file path; None returns the defaults

    Returns:
        Validated SchedulingConfig

    Raises:
        ConfigError: If the file is missing, unparsable or holds invalid values
    """
    if path is None:
        return DEFAULT_CONFIG

    path = Path(path)
    if not path.exists():
        raise ConfigError(f"Config file not found: {path}")

    text = path.read_text()
    try:
        if path.suffix.lower() == ".json":
            data = json.loads(text)
        else:
            data = yaml.safe_load(text)
    except (json.JSONDecodeError, yaml.YAMLError) as e:
        raise ConfigError(f"Could not parse {path}: {e}") from e

    if data is not None and not isinstance(data, dict):
        raise ConfigError(f"Config root in {path} must be a mapping")

    # Allow settings nested under a top-level "rota" key
    if data and isinstance(data.get("rota"), dict):
        data = data["rota"]

    cfg = config_from_dict(data or {})
    logger.debug("Loaded config from %s: %s", path, cfg)
    return cfg
