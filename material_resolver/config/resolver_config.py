"""Resolver Configuration - Single Source of Truth (SSOT)

Policies that govern how material drafts are finalized: the global default
temperature, how temperatures are matched to tabulated data, how duplicate
constituents are treated and how tightly derived totals are checked.

Import Policy:
    from material_resolver.config.resolver_config import ResolverConfig

DO NOT use: from material_resolver.config.resolver_config import *
"""

from __future__ import annotations

import math
from dataclasses import dataclass, replace

from material_resolver.config.defaults import (
    DEFAULT_CONSISTENCY_RTOL,
    DEFAULT_DUPLICATE_POLICY,
    DEFAULT_TEMPERATURE,
    DEFAULT_TEMPERATURE_POLICY,
    DEFAULT_TEMPERATURE_TOLERANCE,
)
from material_resolver.config.enums import DuplicatePolicy, TemperaturePolicy
from material_resolver.config.yaml_loader import get_default


@dataclass(frozen=True)
class ResolverConfig:
    """Finalization policies for material drafts.

    Attributes:
        default_temperature: Temperature [K] used by materials that give none
        temperature_policy: EXACT or NEAREST matching of tabulated temperatures
        temperature_tolerance: Largest accepted distance [K] under NEAREST
        duplicate_policy: REJECT or MERGE a nuclide declared twice
        consistency_rtol: Relative tolerance of the total-vs-sum check

    """

    default_temperature: float = DEFAULT_TEMPERATURE
    temperature_policy: TemperaturePolicy = TemperaturePolicy(DEFAULT_TEMPERATURE_POLICY)
    temperature_tolerance: float = DEFAULT_TEMPERATURE_TOLERANCE
    duplicate_policy: DuplicatePolicy = DuplicatePolicy(DEFAULT_DUPLICATE_POLICY)
    consistency_rtol: float = DEFAULT_CONSISTENCY_RTOL

    def validate(self) -> list[str]:
        """Validate the configuration.

        Returns:
            List of error messages (empty if valid)

        """
        errors = []

        if not math.isfinite(self.default_temperature) or self.default_temperature <= 0:
            errors.append(
                f"default_temperature must be a positive number of kelvin, "
                f"got {self.default_temperature}"
            )
        if not math.isfinite(self.temperature_tolerance) or self.temperature_tolerance < 0:
            errors.append(
                f"temperature_tolerance must be >= 0, got {self.temperature_tolerance}"
            )
        if not (0 < self.consistency_rtol < 1):
            errors.append(
                f"consistency_rtol must be in (0, 1), got {self.consistency_rtol}"
            )
        if not isinstance(self.temperature_policy, TemperaturePolicy):
            errors.append(f"temperature_policy must be a TemperaturePolicy, got {self.temperature_policy!r}")
        if not isinstance(self.duplicate_policy, DuplicatePolicy):
            errors.append(f"duplicate_policy must be a DuplicatePolicy, got {self.duplicate_policy!r}")

        return errors

    def with_overrides(self, **kwargs) -> "ResolverConfig":
        """Return a copy with the given fields replaced."""
        return replace(self, **kwargs)

    @classmethod
    def from_dict(cls, data: dict) -> "ResolverConfig":
        """Create a config from the nested layout used by defaults.yaml."""
        temperature = data.get("temperature", {}) or {}
        composition = data.get("composition", {}) or {}
        return cls(
            default_temperature=float(temperature.get("default", DEFAULT_TEMPERATURE)),
            temperature_policy=TemperaturePolicy(
                temperature.get("policy", DEFAULT_TEMPERATURE_POLICY)
            ),
            temperature_tolerance=float(
                temperature.get("tolerance", DEFAULT_TEMPERATURE_TOLERANCE)
            ),
            duplicate_policy=DuplicatePolicy(
                composition.get("duplicate_policy", DEFAULT_DUPLICATE_POLICY)
            ),
            consistency_rtol=float(
                composition.get("consistency_rtol", DEFAULT_CONSISTENCY_RTOL)
            ),
        )

    def to_dict(self) -> dict:
        return {
            "temperature": {
                "default": self.default_temperature,
                "policy": self.temperature_policy.value,
                "tolerance": self.temperature_tolerance,
            },
            "composition": {
                "duplicate_policy": self.duplicate_policy.value,
                "consistency_rtol": self.consistency_rtol,
            },
        }

    @classmethod
    def from_defaults(cls) -> "ResolverConfig":
        """Create a config from defaults.yaml, falling back to defaults.py."""
        return cls(
            default_temperature=float(
                get_default("temperature.default", DEFAULT_TEMPERATURE)
            ),
            temperature_policy=TemperaturePolicy(
                get_default("temperature.policy", DEFAULT_TEMPERATURE_POLICY)
            ),
            temperature_tolerance=float(
                get_default("temperature.tolerance", DEFAULT_TEMPERATURE_TOLERANCE)
            ),
            duplicate_policy=DuplicatePolicy(
                get_default("composition.duplicate_policy", DEFAULT_DUPLICATE_POLICY)
            ),
            consistency_rtol=float(
                get_default("composition.consistency_rtol", DEFAULT_CONSISTENCY_RTOL)
            ),
        )
