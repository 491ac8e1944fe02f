"""Composition table: the nuclides of one material and their densities.

A table starts out collecting raw constituent declarations (value + unit
tag) in insertion order. ``finalize`` runs the unit normalizer once and
freezes the table into a tuple of :class:`NuclideEntry` plus a read-only
density array, both in the original insertion order so tallies and output
stay reproducible.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import Iterator, Mapping, Optional

import numpy as np

from material_resolver.config.defaults import DEFAULT_CONSISTENCY_RTOL
from material_resolver.config.enums import DensityUnit, DuplicatePolicy, FractionUnit, UnitClass
from material_resolver.core.errors import (
    DuplicateConstituentError,
    InvalidConstituentError,
    MaterialError,
    MaterialStateError,
)
from material_resolver.materials.units import (
    check_bulk_density,
    classify_units,
    resolve_absolute,
    resolve_relative,
)
from material_resolver.nuclear_data.service import ThermalLawHandle

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class NuclideEntry:
    """One resolved constituent of a finalized material.

    Attributes:
        nuclide: Nuclide identifier (e.g. 'U235')
        atom_density: Atomic density [atoms/b-cm]
        thermal_law: Bound thermal-scattering table, if any
        data_temperature: Temperature of the bound cross sections [K]
        trace: Zero-density placeholder kept for depletion bookkeeping

    """

    nuclide: str
    atom_density: float
    thermal_law: Optional[ThermalLawHandle] = None
    data_temperature: Optional[float] = None
    trace: bool = False

    def __post_init__(self):
        if not math.isfinite(self.atom_density) or self.atom_density < 0:
            raise InvalidConstituentError(
                f"atomic density must be >= 0, got {self.atom_density}",
                nuclide=self.nuclide,
            )
        if self.atom_density == 0 and not self.trace:
            raise InvalidConstituentError(
                "atomic density of zero is only allowed for trace constituents",
                nuclide=self.nuclide,
            )

    def to_dict(self) -> dict:
        data = {
            "nuclide": self.nuclide,
            "atom_density": self.atom_density,
        }
        if self.thermal_law is not None:
            data["thermal_law"] = self.thermal_law.name
            data["thermal_law_temperature"] = self.thermal_law.temperature
        if self.data_temperature is not None:
            data["data_temperature"] = self.data_temperature
        if self.trace:
            data["trace"] = True
        return data


@dataclass
class Constituent:
    """A constituent as declared, before unit resolution."""

    nuclide: str
    value: float
    unit: FractionUnit
    thermal_law: Optional[str] = None
    trace: bool = False


class CompositionTable:
    """Insertion-ordered, duplicate-safe table of material constituents.

    Lifecycle:
        - add(...) while pending
        - finalize(...) resolves densities and freezes the table
        - entries(), total_atomic_density(), atom_densities afterwards

    A duplicate nuclide is merged (DuplicatePolicy.MERGE, same unit only)
    or rejected; it is never overwritten.
    """

    def __init__(self, duplicate_policy: DuplicatePolicy = DuplicatePolicy.REJECT):
        self.duplicate_policy = duplicate_policy
        self._constituents: dict[str, Constituent] = {}
        self._entries: tuple[NuclideEntry, ...] | None = None
        self._densities: np.ndarray | None = None
        self._total: float | None = None

    # -- building -------------------------------------------------------------

    def add(
        self,
        nuclide: str,
        raw_fraction: float,
        unit: FractionUnit | str = FractionUnit.ATOM_FRACTION,
        thermal_law: Optional[str] = None,
        trace: bool = False,
    ) -> Constituent:
        """Append a constituent, or merge it into an existing one.

        Args:
            nuclide: Nuclide identifier
            raw_fraction: Value in ``unit``; must be >= 0, and 0 only for traces
            unit: Constituent unit tag
            thermal_law: Name of a thermal-scattering table for this nuclide
            trace: Mark a zero-valued placeholder

        Raises:
            MaterialStateError: If the table is already finalized
            InvalidConstituentError: If the value is invalid
            DuplicateConstituentError: If the nuclide exists and cannot be merged

        """
        self._require_pending()
        unit = FractionUnit.parse(unit)

        if not isinstance(nuclide, str) or not nuclide.strip():
            raise InvalidConstituentError(f"nuclide name must be a non-empty string, got {nuclide!r}")
        nuclide = nuclide.strip()

        try:
            value = float(raw_fraction)
        except (TypeError, ValueError):
            raise InvalidConstituentError(
                f"value must be a number, got {raw_fraction!r}", nuclide=nuclide,
            ) from None
        if not math.isfinite(value) or value < 0:
            raise InvalidConstituentError(
                f"value must be a finite number >= 0, got {raw_fraction}", nuclide=nuclide,
            )
        if trace and value != 0:
            raise InvalidConstituentError(
                f"trace constituents must have value 0, got {value}", nuclide=nuclide,
            )
        if value == 0 and not trace:
            raise InvalidConstituentError(
                "value of zero is only allowed for constituents marked as trace",
                nuclide=nuclide,
            )

        existing = self._constituents.get(nuclide)
        if existing is None:
            constituent = Constituent(nuclide, value, unit, thermal_law, trace)
            self._constituents[nuclide] = constituent
            return constituent

        return self._merge(existing, value, unit, thermal_law, trace)

    def _merge(
        self,
        existing: Constituent,
        value: float,
        unit: FractionUnit,
        thermal_law: Optional[str],
        trace: bool,
    ) -> Constituent:
        nuclide = existing.nuclide
        if self.duplicate_policy is DuplicatePolicy.REJECT:
            raise DuplicateConstituentError("declared more than once", nuclide=nuclide)
        if existing.unit is not unit:
            raise DuplicateConstituentError(
                f"declared as '{existing.unit.value}' and '{unit.value}'; "
                "only identical units can be merged",
                nuclide=nuclide,
            )
        if thermal_law is not None and existing.thermal_law not in (None, thermal_law):
            raise DuplicateConstituentError(
                f"declared with thermal laws '{existing.thermal_law}' and '{thermal_law}'",
                nuclide=nuclide,
            )

        existing.value += value
        existing.trace = existing.trace and trace
        if thermal_law is not None:
            existing.thermal_law = thermal_law
        logger.warning(f"Merged duplicate constituent {nuclide} ({unit.value}): {existing.value}")
        return existing

    def set_thermal_law(self, nuclide: str, law: str) -> None:
        """Attach a thermal-scattering table name to an existing constituent."""
        self._require_pending()
        constituent = self._constituents.get(nuclide)
        if constituent is None:
            raise InvalidConstituentError(
                f"cannot assign thermal law '{law}' to a nuclide not in the material",
                nuclide=nuclide,
            )
        if constituent.thermal_law not in (None, law):
            raise InvalidConstituentError(
                f"already bound to thermal law '{constituent.thermal_law}', cannot add '{law}'",
                nuclide=nuclide,
            )
        constituent.thermal_law = law

    # -- inspection -----------------------------------------------------------

    def __len__(self) -> int:
        return len(self._constituents)

    def __contains__(self, nuclide: str) -> bool:
        return nuclide in self._constituents

    @property
    def nuclides(self) -> tuple[str, ...]:
        return tuple(self._constituents)

    @property
    def constituents(self) -> tuple[Constituent, ...]:
        return tuple(self._constituents.values())

    @property
    def is_finalized(self) -> bool:
        return self._entries is not None

    def unit_class(self) -> UnitClass:
        """Unit class shared by all constituents (raises on an inconsistent mix)."""
        return classify_units(c.unit for c in self._constituents.values())

    def check_units(self, bulk_unit: Optional[DensityUnit]) -> UnitClass:
        """Validate the unit mix against the bulk density unit before any lookup."""
        unit_class = self.unit_class()
        check_bulk_density(unit_class, bulk_unit)
        return unit_class

    # -- finalization ---------------------------------------------------------

    def finalize(
        self,
        bulk_density: Optional[float],
        bulk_unit: Optional[DensityUnit],
        molar_masses: Mapping[str, float],
        data_temperatures: Optional[Mapping[str, float]] = None,
        thermal_laws: Optional[Mapping[str, ThermalLawHandle]] = None,
        consistency_rtol: float = DEFAULT_CONSISTENCY_RTOL,
    ) -> np.ndarray:
        """Resolve every constituent to atoms/b-cm and freeze the table.

        Args:
            bulk_density: Material density, required for relative units
            bulk_unit: Unit of ``bulk_density`` (SUM or None for absolute units)
            molar_masses: Molar mass per nuclide [g/mol]
            data_temperatures: Temperature of the bound cross sections per nuclide
            thermal_laws: Bound thermal-law handle per nuclide
            consistency_rtol: Relative tolerance between the array total and
                the sum of the entries

        Returns:
            Read-only array of atomic densities in insertion order

        Raises:
            InconsistentUnitMixError: Relative and absolute units mixed
            UnderspecifiedDensityError: Relative units without a bulk density
            MaterialError: If the total disagrees with the sum of the entries.
                The table stays pending after any failure.

        """
        self._require_pending()
        unit_class = self.check_units(bulk_unit)

        constituents = list(self._constituents.values())
        values = [c.value for c in constituents]
        masses = np.array([molar_masses[c.nuclide] for c in constituents], dtype=np.float64)

        if unit_class is UnitClass.RELATIVE:
            densities = resolve_relative(
                values, constituents[0].unit, masses, bulk_density, bulk_unit,
            )
        else:
            densities = resolve_absolute(values, [c.unit for c in constituents], masses)

        data_temperatures = data_temperatures or {}
        thermal_laws = thermal_laws or {}
        entries = tuple(
            NuclideEntry(
                nuclide=c.nuclide,
                atom_density=float(n),
                thermal_law=thermal_laws.get(c.nuclide),
                data_temperature=data_temperatures.get(c.nuclide),
                trace=c.trace,
            )
            for c, n in zip(constituents, densities)
        )

        densities = np.ascontiguousarray(densities, dtype=np.float64)
        total = float(densities.sum())
        entry_sum = math.fsum(e.atom_density for e in entries)
        if total < 0 or not math.isclose(total, entry_sum, rel_tol=consistency_rtol, abs_tol=0.0):
            raise MaterialError(
                f"total atomic density {total!r} disagrees with the sum of its "
                f"entries {entry_sum!r}"
            )

        densities.setflags(write=False)
        self._entries = entries
        self._densities = densities
        self._total = total
        return densities

    # -- finalized access -----------------------------------------------------

    def entries(self) -> Iterator[NuclideEntry]:
        """Iterate over resolved entries in insertion order.

        Each call returns a fresh iterator.
        """
        self._require_finalized()
        return iter(self._entries)

    @property
    def atom_densities(self) -> np.ndarray:
        self._require_finalized()
        return self._densities

    def total_atomic_density(self) -> float:
        """Sum of constituent atomic densities [atoms/b-cm]."""
        self._require_finalized()
        return self._total

    def _require_pending(self) -> None:
        if self._entries is not None:
            raise MaterialStateError("composition is finalized and can no longer change")

    def _require_finalized(self) -> None:
        if self._entries is None:
            raise MaterialStateError("composition has not been finalized")
