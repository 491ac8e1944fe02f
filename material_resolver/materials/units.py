"""Unit normalization for material constituents.

Converts constituent values in any accepted unit into atomic densities in
atoms/barn-cm, the single internal unit used by the transport kernel.

Unit classes:
    RELATIVE (atom fraction 'ao', weight fraction 'wo'):
        Renormalized across the whole material, then scaled by the bulk
        density. Requires a bulk density.
    ABSOLUTE (atom density 'atom/b-cm', partial mass density 'g/cm3'):
        Converted directly, one constituent at a time.

Formulas:
    x_i   = f_i / sum(f)                    atom fractions
    x_i   = (w_i / M_i) / sum(w / M)        from weight fractions
    M_eff = sum(x_i * M_i)                  [g/mol]
    N     = rho * N_A / M_eff * 1e-24       [atoms/b-cm] from rho [g/cm³]
    N_i   = x_i * N
    N_i   = rho_i * N_A / M_i * 1e-24       partial mass density rho_i [g/cm³]

All functions take and return numpy float64 arrays ordered like the
composition table; molar masses are fetched by the caller.
"""

from __future__ import annotations

from typing import Iterable, Optional, Sequence

import numpy as np

from material_resolver.config.enums import DensityUnit, FractionUnit, UnitClass
from material_resolver.core.constants import AVOGADRO, BARN_CM2, KG_M3_TO_G_CM3
from material_resolver.core.errors import (
    InconsistentUnitMixError,
    InvalidConstituentError,
    InvalidPropertyError,
    UnderspecifiedDensityError,
)


# ===================================================================
# Unit classification
# ===================================================================

def classify_units(units: Iterable[FractionUnit]) -> UnitClass:
    """Determine the unit class shared by all constituents of a material.

    Raises:
        InvalidConstituentError: If there are no constituents
        InconsistentUnitMixError: If relative and absolute units are mixed,
            or atom and weight fractions are mixed

    """
    units = set(units)
    if not units:
        raise InvalidConstituentError("material has no constituents")

    classes = {unit.unit_class for unit in units}
    if len(classes) > 1:
        relative = sorted(u.value for u in units if u.is_relative)
        absolute = sorted(u.value for u in units if not u.is_relative)
        raise InconsistentUnitMixError(
            f"cannot mix relative units ({', '.join(relative)}) with "
            f"absolute units ({', '.join(absolute)}) in one material"
        )

    if {FractionUnit.ATOM_FRACTION, FractionUnit.WEIGHT_FRACTION} <= units:
        raise InconsistentUnitMixError(
            "cannot mix atom fractions (ao) and weight fractions (wo) in one material"
        )

    return classes.pop()


def check_bulk_density(unit_class: UnitClass, bulk_unit: Optional[DensityUnit]) -> None:
    """Check that the bulk density unit fits the constituent unit class.

    Raises:
        UnderspecifiedDensityError: Relative fractions without a usable bulk density
        InconsistentUnitMixError: Absolute constituents with an explicit bulk density

    """
    if unit_class is UnitClass.RELATIVE:
        if bulk_unit is None or bulk_unit is DensityUnit.SUM:
            raise UnderspecifiedDensityError(
                "relative fractions require a bulk density "
                "(g/cm3, kg/m3, atom/b-cm or atom/cm3)"
            )
    elif bulk_unit is not None and bulk_unit is not DensityUnit.SUM:
        raise InconsistentUnitMixError(
            f"absolute constituent densities cannot be combined with a bulk "
            f"density in {bulk_unit.value}; use 'sum' or omit the density"
        )


# ===================================================================
# Fraction algebra
# ===================================================================

def normalize_fractions(values: Sequence[float]) -> np.ndarray:
    """Scale fractions so they sum to 1.

    Raises:
        InvalidConstituentError: If the fractions sum to zero

    """
    values = np.asarray(values, dtype=np.float64)
    total = values.sum()
    if not total > 0.0:
        raise InvalidConstituentError(
            f"fractions sum to {total}; at least one constituent must be non-zero"
        )
    return values / total


def weight_to_atom_fractions(weights: Sequence[float], molar_masses: Sequence[float]) -> np.ndarray:
    """Convert weight fractions to normalized atom fractions."""
    weights = np.asarray(weights, dtype=np.float64)
    molar_masses = np.asarray(molar_masses, dtype=np.float64)
    return normalize_fractions(weights / molar_masses)


def atom_to_weight_fractions(atoms: Sequence[float], molar_masses: Sequence[float]) -> np.ndarray:
    """Convert atom fractions to normalized weight fractions."""
    atoms = np.asarray(atoms, dtype=np.float64)
    molar_masses = np.asarray(molar_masses, dtype=np.float64)
    return normalize_fractions(atoms * molar_masses)


def effective_molar_mass(atom_fractions: Sequence[float], molar_masses: Sequence[float]) -> float:
    """Atom-fraction weighted mean molar mass [g/mol]."""
    x = normalize_fractions(atom_fractions)
    return float(np.dot(x, np.asarray(molar_masses, dtype=np.float64)))


# ===================================================================
# Density conversions
# ===================================================================

def mass_to_atom_density(mass_density, molar_mass):
    """Convert g/cm³ to atoms/b-cm. Works on scalars and arrays."""
    return mass_density * AVOGADRO / molar_mass * BARN_CM2


def atom_to_mass_density(atom_density, molar_mass):
    """Convert atoms/b-cm to g/cm³. Works on scalars and arrays."""
    return atom_density * molar_mass / (AVOGADRO * BARN_CM2)


def bulk_to_atom_density(value: float, unit: DensityUnit, molar_mass: float) -> float:
    """Convert a bulk density to atoms/b-cm.

    Args:
        value: Bulk density in ``unit``
        unit: Bulk density unit (not SUM)
        molar_mass: Effective molar mass of the mixture [g/mol], used for
            mass densities only

    Raises:
        InvalidPropertyError: If the density is not a positive finite number
        UnderspecifiedDensityError: If unit is SUM

    """
    if value is None or not np.isfinite(value) or value <= 0.0:
        raise InvalidPropertyError(f"bulk density must be positive, got {value}")

    if unit is DensityUnit.G_PER_CM3:
        return float(mass_to_atom_density(value, molar_mass))
    if unit is DensityUnit.KG_PER_M3:
        return float(mass_to_atom_density(value * KG_M3_TO_G_CM3, molar_mass))
    if unit is DensityUnit.ATOM_PER_B_CM:
        return float(value)
    if unit is DensityUnit.ATOM_PER_CM3:
        return float(value * BARN_CM2)
    raise UnderspecifiedDensityError(
        f"bulk density in '{unit.value}' cannot scale relative fractions"
    )


# ===================================================================
# Resolution
# ===================================================================

def resolve_relative(
    fractions: Sequence[float],
    unit: FractionUnit,
    molar_masses: Sequence[float],
    bulk_density: Optional[float],
    bulk_unit: Optional[DensityUnit],
) -> np.ndarray:
    """Resolve relative fractions into atomic densities [atoms/b-cm].

    The returned densities sum to the bulk density expressed in atoms/b-cm.

    Args:
        fractions: Raw atom or weight fractions (any positive scale)
        unit: ATOM_FRACTION or WEIGHT_FRACTION, shared by all constituents
        molar_masses: Molar mass per constituent [g/mol]
        bulk_density: Material density in ``bulk_unit``
        bulk_unit: Unit of the material density

    """
    check_bulk_density(UnitClass.RELATIVE, bulk_unit)

    if unit is FractionUnit.ATOM_FRACTION:
        x = normalize_fractions(fractions)
    elif unit is FractionUnit.WEIGHT_FRACTION:
        x = weight_to_atom_fractions(fractions, molar_masses)
    else:
        raise InconsistentUnitMixError(f"'{unit.value}' is not a relative unit")

    m_eff = float(np.dot(x, np.asarray(molar_masses, dtype=np.float64)))
    total = bulk_to_atom_density(bulk_density, bulk_unit, m_eff)
    return x * total


def resolve_absolute(
    values: Sequence[float],
    units: Sequence[FractionUnit],
    molar_masses: Sequence[float],
) -> np.ndarray:
    """Resolve absolute constituent densities into atoms/b-cm."""
    values = np.asarray(values, dtype=np.float64)
    molar_masses = np.asarray(molar_masses, dtype=np.float64)
    is_mass = np.array([u is FractionUnit.MASS_DENSITY for u in units], dtype=bool)

    if any(u.is_relative for u in units):
        raise InconsistentUnitMixError("relative units passed to absolute resolution")

    return np.where(is_mass, mass_to_atom_density(values, molar_masses), values)
