"""Checks applied to a ResolverConfig before any material is finalized.

Import Policy:
    from material_resolver.config.validation import validate_config, create_validated_config
"""

from typing import List, Tuple

from material_resolver.config.resolver_config import ResolverConfig


class ConfigurationError(ValueError):
    """A resolver configuration has one or more invalid fields.

    Attributes:
        problems: One message per invalid field

    """

    def __init__(self, problems: List[str]):
        self.problems = list(problems)
        listing = "; ".join(self.problems)
        super().__init__(f"invalid resolver configuration ({len(self.problems)} error(s)): {listing}")


def validate_config(config: ResolverConfig, raise_on_error: bool = True) -> Tuple[bool, List[str]]:
    """Run ``config.validate()`` and report the outcome.

    Returns:
        ``(True, [])`` for a usable config, otherwise ``(False, problems)``
        when ``raise_on_error`` is False

    Raises:
        ConfigurationError: If the config is invalid and ``raise_on_error`` is True

    """
    problems = config.validate()
    if problems and raise_on_error:
        raise ConfigurationError(problems)
    return not problems, problems


def create_validated_config(**overrides) -> ResolverConfig:
    """Defaults from defaults.yaml with ``overrides`` applied, checked before return.

    Example:
        >>> config = create_validated_config(temperature_policy=TemperaturePolicy.NEAREST)
    """
    config = ResolverConfig.from_defaults().with_overrides(**overrides)
    validate_config(config)
    return config
