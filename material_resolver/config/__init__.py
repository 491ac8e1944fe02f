"""Configuration Module - Single Source of Truth for Resolver Policies

Default Configuration (loaded from defaults.yaml):
    from material_resolver.config import get_default, get_defaults

    T = get_default('temperature.default')

Recommended Usage:
    from material_resolver.config import ResolverConfig, create_validated_config
    from material_resolver.config.enums import TemperaturePolicy

    config = create_validated_config(temperature_policy=TemperaturePolicy.NEAREST)

Import Policy:
    DO NOT use: from material_resolver.config import *

Submodules:
    enums: Unit tags and policies (FractionUnit, DensityUnit, DuplicatePolicy, ...)
    yaml_loader: YAML configuration loader (get_default, get_defaults)
    resolver_config: ResolverConfig dataclass
    validation: validate_config, create_validated_config
"""

from material_resolver.config.enums import (
    DensityUnit,
    DuplicatePolicy,
    FractionUnit,
    MaterialState,
    TemperaturePolicy,
    UnitClass,
)
# Import YAML loader functions first (no circular dependencies)
from material_resolver.config.yaml_loader import get_default, get_defaults, reload_defaults
from material_resolver.config.resolver_config import ResolverConfig
from material_resolver.config.validation import (
    ConfigurationError,
    create_validated_config,
    validate_config,
)


__all__ = [
    # Enums
    "FractionUnit",
    "DensityUnit",
    "UnitClass",
    "DuplicatePolicy",
    "TemperaturePolicy",
    "MaterialState",
    # Config classes
    "ResolverConfig",
    "create_validated_config",
    # Validation
    "ConfigurationError",
    "validate_config",
    # YAML defaults access
    "get_default",
    "get_defaults",
    "reload_defaults",
]
