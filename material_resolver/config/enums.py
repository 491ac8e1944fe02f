"""
Configuration Enums for Material Resolution

This module defines all enumeration types used by the resolver: constituent
units, bulk density units, and resolution policies.

Import Policy:
    from material_resolver.config.enums import FractionUnit, DensityUnit, DuplicatePolicy

DO NOT use: from material_resolver.config.enums import *
"""

from enum import Enum


def _normalize_tag(tag: str) -> str:
    return tag.strip().lower().replace(" ", "").replace("³", "3").replace("^", "")


class UnitClass(Enum):
    """Whether a constituent unit is relative to the material total.

    Options:
        RELATIVE: Fractions, renormalized across the material (needs a bulk density)
        ABSOLUTE: Partial densities, converted directly
    """
    RELATIVE = "relative"
    ABSOLUTE = "absolute"


class FractionUnit(Enum):
    """Unit tag attached to each constituent of a material.

    Options:
        ATOM_FRACTION: Relative abundance by atom count ("ao")
        WEIGHT_FRACTION: Relative abundance by mass ("wo")
        ATOM_DENSITY: Partial atomic density [atoms/barn-cm]
        MASS_DENSITY: Partial mass density [g/cm³]

    Note:
        The unit is always given explicitly. The sign of a value never
        selects between atom and weight fractions.
    """
    ATOM_FRACTION = "ao"
    WEIGHT_FRACTION = "wo"
    ATOM_DENSITY = "atom/b-cm"
    MASS_DENSITY = "g/cm3"

    @property
    def unit_class(self) -> UnitClass:
        if self in (FractionUnit.ATOM_FRACTION, FractionUnit.WEIGHT_FRACTION):
            return UnitClass.RELATIVE
        return UnitClass.ABSOLUTE

    @property
    def is_relative(self) -> bool:
        return self.unit_class is UnitClass.RELATIVE

    @classmethod
    def parse(cls, tag: "str | FractionUnit") -> "FractionUnit":
        """Parse a unit tag such as 'ao', 'atom_fraction' or 'atom/b-cm'."""
        if isinstance(tag, cls):
            return tag
        key = _normalize_tag(tag)
        try:
            return _FRACTION_ALIASES[key]
        except KeyError:
            valid = ", ".join(sorted(_FRACTION_ALIASES))
            raise ValueError(f"Unknown constituent unit '{tag}'. Valid: {valid}") from None


_FRACTION_ALIASES = {
    "ao": FractionUnit.ATOM_FRACTION,
    "atom_fraction": FractionUnit.ATOM_FRACTION,
    "atom-fraction": FractionUnit.ATOM_FRACTION,
    "wo": FractionUnit.WEIGHT_FRACTION,
    "weight_fraction": FractionUnit.WEIGHT_FRACTION,
    "weight-fraction": FractionUnit.WEIGHT_FRACTION,
    "atom/b-cm": FractionUnit.ATOM_DENSITY,
    "atom_density": FractionUnit.ATOM_DENSITY,
    "atom-density": FractionUnit.ATOM_DENSITY,
    "g/cm3": FractionUnit.MASS_DENSITY,
    "g/cc": FractionUnit.MASS_DENSITY,
    "mass_density": FractionUnit.MASS_DENSITY,
    "mass-density": FractionUnit.MASS_DENSITY,
}


class DensityUnit(Enum):
    """Unit of the bulk density of a material.

    Options:
        G_PER_CM3: Mass density [g/cm³]
        KG_PER_M3: Mass density [kg/m³]
        ATOM_PER_B_CM: Atomic density [atoms/barn-cm]
        ATOM_PER_CM3: Atomic density [atoms/cm³]
        SUM: Density is the sum of the absolute constituent densities

    Note:
        SUM is the only bulk unit compatible with absolute constituents.
    """
    G_PER_CM3 = "g/cm3"
    KG_PER_M3 = "kg/m3"
    ATOM_PER_B_CM = "atom/b-cm"
    ATOM_PER_CM3 = "atom/cm3"
    SUM = "sum"

    @property
    def is_mass(self) -> bool:
        return self in (DensityUnit.G_PER_CM3, DensityUnit.KG_PER_M3)

    @classmethod
    def parse(cls, tag: "str | DensityUnit") -> "DensityUnit":
        """Parse a bulk density unit such as 'g/cc' or 'atom/b-cm'."""
        if isinstance(tag, cls):
            return tag
        key = _normalize_tag(tag)
        try:
            return _DENSITY_ALIASES[key]
        except KeyError:
            valid = ", ".join(sorted(_DENSITY_ALIASES))
            raise ValueError(f"Unknown density unit '{tag}'. Valid: {valid}") from None


_DENSITY_ALIASES = {
    "g/cm3": DensityUnit.G_PER_CM3,
    "g/cc": DensityUnit.G_PER_CM3,
    "kg/m3": DensityUnit.KG_PER_M3,
    "atom/b-cm": DensityUnit.ATOM_PER_B_CM,
    "atom/barn-cm": DensityUnit.ATOM_PER_B_CM,
    "atom/cm3": DensityUnit.ATOM_PER_CM3,
    "atom/cc": DensityUnit.ATOM_PER_CM3,
    "sum": DensityUnit.SUM,
}


class DuplicatePolicy(Enum):
    """How a second declaration of the same nuclide is handled.

    Options:
        REJECT: Raise DuplicateConstituentError (default)
        MERGE: Add the values together when both use the same unit tag

    Note:
        A duplicate is never silently overwritten. MERGE still rejects a
        duplicate declared with a different unit tag.
    """
    REJECT = "reject"
    MERGE = "merge"


class TemperaturePolicy(Enum):
    """How a material temperature is matched against tabulated data.

    Options:
        EXACT: Cross sections must exist at the resolved temperature (default)
        NEAREST: Use the nearest tabulated temperature within the tolerance
    """
    EXACT = "exact"
    NEAREST = "nearest"


class MaterialState(Enum):
    """Lifecycle of a material draft.

    Options:
        DRAFT: Mutable, accepting constituents and property changes
        FINALIZED: Immutable, derived totals computed, data bound
    """
    DRAFT = "draft"
    FINALIZED = "finalized"
