"""Fitness configuration for the PrimeFold evaluator."""

from __future__ import annotations

import json
from dataclasses import asdict, dataclass, field, fields
from pathlib import Path
from typing import Any, Mapping

DEFAULT_AREA_THRESHOLD = 0.15

METRIC_NAMES = ("area_coverage", "separation", "contrast", "significance", "specificity")

# Accepted alternative spellings of metric names in configuration files.
_METRIC_ALIASES = {
    "areaCoverage": "area_coverage",
    "area": "area_coverage",
}


@dataclass
class MetricConfig:
    """Settings for one fitness component."""

    enabled: bool = True
    weight: float = 0.0
    threshold: float | None = None

    def __post_init__(self):
        if self.weight < 0:
            raise ValueError(f"weight must be >= 0, got {self.weight}")
        if self.threshold is not None and not 0.0 <= self.threshold <= 1.0:
            raise ValueError(f"threshold must be in [0, 1], got {self.threshold}")

    def merged(self, overrides: Mapping[str, Any]) -> MetricConfig:
        """Return a copy with the given fields replaced."""
        values = asdict(self)
        for key in ("enabled", "weight", "threshold"):
            if key in overrides:
                values[key] = overrides[key]
        return MetricConfig(
            enabled=bool(values["enabled"]),
            weight=float(values["weight"]),
            threshold=None if values["threshold"] is None else float(values["threshold"]),
        )


@dataclass
class FitnessConfig:
    """Which PrimeFold components are scored, and with what weight.

    Area coverage also carries the gate threshold: a candidate whose
    coverage falls below it is scored on coverage alone.
    """

    area_coverage: MetricConfig = field(
        default_factory=lambda: MetricConfig(True, 0.50, DEFAULT_AREA_THRESHOLD)
    )
    separation: MetricConfig = field(default_factory=lambda: MetricConfig(True, 0.25))
    contrast: MetricConfig = field(default_factory=lambda: MetricConfig(True, 0.20))
    significance: MetricConfig = field(default_factory=lambda: MetricConfig(True, 0.10))
    specificity: MetricConfig = field(default_factory=lambda: MetricConfig(True, 0.05))

    @property
    def area_threshold(self) -> float:
        threshold = self.area_coverage.threshold
        return DEFAULT_AREA_THRESHOLD if threshold is None else threshold

    def metric(self, name: str) -> MetricConfig:
        return getattr(self, name)

    def enabled_metrics(self) -> list[str]:
        return [name for name in METRIC_NAMES if self.metric(name).enabled]

    def to_dict(self) -> dict:
        return {f.name: asdict(getattr(self, f.name)) for f in fields(self)}

    @classmethod
    def from_dict(cls, data: Mapping[str, Mapping[str, Any]] | None) -> FitnessConfig:
        """Build a config, falling back to defaults for anything missing.

        Metric names may be given in snake_case or camelCase.

        Raises:
            ValueError: For unknown metric names or invalid values.
        """
        config = cls()
        if not data:
            return config

        for key, overrides in data.items():
            name = _METRIC_ALIASES.get(key, key)
            if name not in METRIC_NAMES:
                raise ValueError(f"Unknown fitness metric: {key!r}")
            if not isinstance(overrides, Mapping):
                raise ValueError(f"Settings for {key!r} must be a mapping")
            setattr(config, name, config.metric(name).merged(overrides))
        return config

    @classmethod
    def from_json(cls, path: str | Path) -> FitnessConfig:
        with open(path) as f:
            return cls.from_dict(json.load(f))
