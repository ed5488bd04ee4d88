"""
Run configuration and YAML loading.

Every setting has a dataclass default; a YAML file only needs the keys it
overrides. Unknown keys are rejected so typos fail loudly.

Example config.yaml:

    seed: 7
    store_count: 100
    group_count: 5
    weeks: [38, 39, 40]
    thresholds:
      streaming_max: 100
    capacity:
      bytes_per_record: 1500
"""

from __future__ import annotations

from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Any

import yaml

from .capacity import CapacityConfig, ScalingThresholds
from .errors import ConfigurationError
from .generation import EntityCatalog, default_catalog


@dataclass
class GeneratorConfig:
    """Settings for one dataset build."""

    seed: int = 42
    store_count: int = 50
    group_count: int = 5
    weeks: list[int] = field(default_factory=lambda: [36, 37, 38, 39, 40])
    current_week: int | None = None  # None: latest of weeks
    banner: str = "FreshMart"
    products_per_store: int | None = None  # None: full catalog
    chunk_size: int | None = None  # None: chosen by scaling strategy
    workers: int = 1  # Parallel chunk generation when > 1
    thresholds: ScalingThresholds = field(default_factory=ScalingThresholds)
    capacity: CapacityConfig = field(default_factory=CapacityConfig)

    def __post_init__(self) -> None:
        if not self.weeks:
            raise ConfigurationError("weeks must not be empty")
        if self.current_week is None:
            self.current_week = max(self.weeks)
        if self.products_per_store is not None and self.products_per_store < 1:
            raise ConfigurationError("products_per_store must be positive")

    def build_catalog(self) -> EntityCatalog:
        """Default catalog for this banner, trimmed to products_per_store."""
        catalog = default_catalog(banner=self.banner)
        if self.products_per_store is not None:
            if self.products_per_store > catalog.products_per_store:
                raise ConfigurationError(
                    f"products_per_store {self.products_per_store} exceeds catalog "
                    f"size {catalog.products_per_store}"
                )
            catalog = catalog.with_products(catalog.products[: self.products_per_store])
        return catalog


def _build(cls: type, values: dict[str, Any], section: str) -> Any:
    known = {f.name for f in fields(cls)}
    unknown = set(values) - known
    if unknown:
        raise ConfigurationError(f"Unknown {section} keys: {sorted(unknown)}")
    try:
        return cls(**values)
    except TypeError as e:
        raise ConfigurationError(f"Invalid {section} section: {e}") from e


def config_from_dict(data: dict[str, Any]) -> GeneratorConfig:
    """
    Build a GeneratorConfig from plain data (e.g. parsed YAML).

    Raises:
        ConfigurationError: On unknown keys or invalid values
    """
    if not isinstance(data, dict):
        raise ConfigurationError("Config must be a mapping")
    values = dict(data)
    thresholds = values.pop("thresholds", None) or {}
    capacity = values.pop("capacity", None) or {}
    values["thresholds"] = _build(ScalingThresholds, thresholds, "thresholds")
    values["capacity"] = _build(CapacityConfig, capacity, "capacity")
    return _build(GeneratorConfig, values, "config")


def load_config(path: str | Path) -> GeneratorConfig:
    """
    Load a GeneratorConfig from a YAML file.

    Args:
        path: YAML file; an empty file yields all defaults

    Raises:
        ConfigurationError: If the file is missing, malformed or has unknown keys
    """
    path = Path(path)
    try:
        with open(path) as f:
            data = yaml.safe_load(f)
    except FileNotFoundError:
        raise ConfigurationError(f"Config file not found: {path}") from None
    except yaml.YAMLError as e:
        raise ConfigurationError(f"Invalid YAML in {path}: {e}") from e
    return config_from_dict(data or {})
