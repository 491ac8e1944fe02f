"""Typed material declarations consumed by the resolver.

These are the already-parsed input structures: whatever reads the problem
description produces :class:`MaterialSpec` values (directly or through
``from_dict``), and the registry turns them into finalized records.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Optional

from material_resolver.config.enums import DensityUnit, FractionUnit
from material_resolver.config.resolver_config import ResolverConfig
from material_resolver.core.constants import VOLUME_UNSET


def _require(data: dict, key: str, what: str):
    try:
        return data[key]
    except KeyError:
        raise ValueError(f"{what} is missing required key '{key}'") from None


@dataclass
class ConstituentSpec:
    """Single nuclide in a material declaration.

    Attributes:
        nuclide: Nuclide identifier (e.g. 'H1', 'U235')
        fraction: Value in ``unit``
        unit: Explicit unit tag; never inferred from the sign of ``fraction``
        thermal_law: Thermal-scattering table for this nuclide, if any
        trace: Zero-valued placeholder for depletion bookkeeping

    """

    nuclide: str
    fraction: float
    unit: FractionUnit = FractionUnit.ATOM_FRACTION
    thermal_law: Optional[str] = None
    trace: bool = False

    def __post_init__(self):
        self.unit = FractionUnit.parse(self.unit)

    def to_dict(self) -> dict:
        data = {
            "nuclide": self.nuclide,
            "fraction": self.fraction,
            "unit": self.unit.value,
        }
        if self.thermal_law is not None:
            data["thermal_law"] = self.thermal_law
        if self.trace:
            data["trace"] = True
        return data

    @classmethod
    def from_dict(cls, data: dict) -> "ConstituentSpec":
        return cls(
            nuclide=_require(data, "nuclide", "constituent"),
            fraction=_require(data, "fraction", f"constituent '{data.get('nuclide')}'"),
            unit=data.get("unit", FractionUnit.ATOM_FRACTION),
            thermal_law=data.get("thermal_law"),
            trace=bool(data.get("trace", False)),
        )


@dataclass
class MaterialSpec:
    """Declarative description of one material.

    Attributes:
        id: Unique positive identifier
        constituents: Nuclides with values and unit tags
        name: Human-readable name
        density: Bulk density in ``density_units`` (None for absolute constituents)
        density_units: Bulk density unit
        temperature: Default temperature [K]; None inherits the global default
        volume: Volume [cm³]; None if unknown
        depletable: Whether depletion tracks this material
        thermal_scattering: Thermal-scattering tables applying to any
            matching constituent

    """

    id: int
    constituents: List[ConstituentSpec] = field(default_factory=list)
    name: str = ""
    density: Optional[float] = None
    density_units: DensityUnit = DensityUnit.G_PER_CM3
    temperature: Optional[float] = None
    volume: Optional[float] = None
    depletable: bool = False
    thermal_scattering: List[str] = field(default_factory=list)

    def __post_init__(self):
        self.density_units = DensityUnit.parse(self.density_units)

    def to_draft(self, config: Optional[ResolverConfig] = None):
        """Build a MaterialDraft holding this declaration."""
        # Imported here: record imports descriptor for MaterialDraft.from_spec
        from material_resolver.materials.record import MaterialDraft

        return MaterialDraft.from_spec(self, config=config)

    def to_dict(self) -> dict:
        data = {
            "id": self.id,
            "name": self.name,
            "constituents": [c.to_dict() for c in self.constituents],
        }
        if self.density is not None or self.density_units is DensityUnit.SUM:
            data["density"] = self.density
            data["density_units"] = self.density_units.value
        if self.temperature is not None:
            data["temperature"] = self.temperature
        if self.volume is not None:
            data["volume"] = self.volume
        if self.depletable:
            data["depletable"] = True
        if self.thermal_scattering:
            data["thermal_scattering"] = list(self.thermal_scattering)
        return data

    @classmethod
    def from_dict(cls, data: dict) -> "MaterialSpec":
        """Create a declaration from a dictionary.

        Expected format:
            id: 1
            name: water
            density: 1.0
            density_units: g/cm3
            temperature: 293.6
            constituents:
              - {nuclide: H1, fraction: 2.0, unit: ao}
              - {nuclide: O16, fraction: 1.0, unit: ao}
            thermal_scattering: [c_H_in_H2O]

        Raises:
            ValueError: If a required key is missing or a unit is unknown

        """
        material_id = _require(data, "id", "material")
        constituents = _require(data, "constituents", f"material {material_id}")
        if not isinstance(constituents, list):
            raise ValueError(f"material {material_id}: 'constituents' must be a list")

        temperature = data.get("temperature")
        if temperature is not None and temperature < 0:
            temperature = None

        volume = data.get("volume")
        if volume is not None and volume == VOLUME_UNSET:
            volume = None

        return cls(
            id=material_id,
            constituents=[ConstituentSpec.from_dict(c) for c in constituents],
            name=data.get("name", ""),
            density=data.get("density"),
            density_units=data.get("density_units", DensityUnit.G_PER_CM3),
            temperature=temperature,
            volume=volume,
            depletable=bool(data.get("depletable", False)),
            thermal_scattering=list(data.get("thermal_scattering", [])),
        )
