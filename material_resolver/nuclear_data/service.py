"""Nuclide data service for material finalization.

The resolver never reads cross sections itself. It asks a data service three
questions per nuclide: its molar mass, whether cross sections exist at a
temperature, and which thermal-scattering table applies. Anything that
implements :class:`NuclideDataService` can be plugged in; :class:`NuclideLibrary`
is the in-memory implementation used by the CLI and the tests.

Thermal-law handles are cached per (law, tabulated temperature), so every
material bound to the same table at the same temperature shares one handle
object for the whole run.
"""

from __future__ import annotations

import inspect
import logging
import math
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Iterable, Optional, Protocol, Tuple, runtime_checkable

import numpy as np
import yaml

from material_resolver.core.constants import TEMPERATURE_MATCH_EPS
from material_resolver.core.errors import MissingNuclideDataError

logger = logging.getLogger(__name__)

# Bundled data file shipped with the package
DEFAULT_LIBRARY_PATH = Path(__file__).parent / "nuclides.yaml"


# ===================================================================
# Interface
# ===================================================================

@dataclass(frozen=True)
class ThermalLawHandle:
    """Lightweight reference to one thermal-scattering table at one temperature.

    Attributes:
        name: Table identifier (e.g. 'c_H_in_H2O')
        temperature: Tabulated temperature the handle is bound to [K]
        nuclides: Nuclides the table applies to

    """

    name: str
    temperature: float
    nuclides: Tuple[str, ...]


@runtime_checkable
class NuclideDataService(Protocol):
    """Lookup service supplying nuclide data for a (nuclide, temperature) pair.

    Only these three methods are required. A service may additionally
    accept a ``law`` keyword in ``thermal_scattering_law`` to select one
    table among several, and may provide ``available_temperatures(nuclide)``
    for nearest-temperature matching; see :func:`find_thermal_law` and
    :func:`tabulated_temperatures`.
    """

    def molar_mass(self, nuclide: str) -> float:
        """Molar mass [g/mol]; raises MissingNuclideDataError if unknown."""
        ...

    def has_cross_sections(self, nuclide: str, temperature: float) -> bool:
        ...

    def thermal_scattering_law(
        self,
        nuclide: str,
        temperature: float,
    ) -> Optional[ThermalLawHandle]:
        ...


def _accepts_law_keyword(lookup) -> bool:
    try:
        parameters = inspect.signature(lookup).parameters
    except (TypeError, ValueError):
        return False
    return "law" in parameters or any(
        p.kind is inspect.Parameter.VAR_KEYWORD for p in parameters.values()
    )


def find_thermal_law(
    service: NuclideDataService,
    nuclide: str,
    temperature: float,
    law: str,
) -> Optional[ThermalLawHandle]:
    """Handle of the table ``law`` for ``nuclide``, or None if the service has none.

    Services whose ``thermal_scattering_law`` takes a ``law`` keyword are
    asked for that table; others are asked for their table for the nuclide,
    which is accepted only if it carries the requested name.
    """
    lookup = service.thermal_scattering_law
    if _accepts_law_keyword(lookup):
        handle = lookup(nuclide, temperature, law=law)
    else:
        handle = lookup(nuclide, temperature)
    if handle is None or getattr(handle, "name", None) != law:
        return None
    return handle


def tabulated_temperatures(service: NuclideDataService, nuclide: str) -> Tuple[float, ...]:
    """Temperatures the service lists for ``nuclide``; empty if it cannot list them."""
    listing = getattr(service, "available_temperatures", None)
    if listing is None:
        return ()
    return tuple(float(t) for t in listing(nuclide))


# ===================================================================
# Data records
# ===================================================================

@dataclass(frozen=True)
class NuclideData:
    """Tabulated data for a single nuclide.

    Attributes:
        name: Nuclide identifier (e.g. 'U235')
        molar_mass: Molar mass [g/mol]
        temperatures: Temperatures with cross sections [K], ascending

    """

    name: str
    molar_mass: float
    temperatures: Tuple[float, ...]

    def __post_init__(self):
        if not self.name:
            raise ValueError("Nuclide name must not be empty")
        if not (self.molar_mass > 0 and math.isfinite(self.molar_mass)):
            raise ValueError(f"Molar mass must be positive: {self.name} M={self.molar_mass}")
        if any(t <= 0 for t in self.temperatures):
            raise ValueError(f"Temperatures must be positive: {self.name} {self.temperatures}")
        object.__setattr__(self, "temperatures", tuple(sorted(float(t) for t in self.temperatures)))

    def nearest_temperature(self, temperature: float) -> Optional[float]:
        """Closest tabulated temperature, or None if nothing is tabulated."""
        return _nearest(self.temperatures, temperature)


@dataclass(frozen=True)
class ThermalLaw:
    """A thermal-scattering table and the temperatures it is tabulated at."""

    name: str
    nuclides: Tuple[str, ...]
    temperatures: Tuple[float, ...]

    def __post_init__(self):
        if not self.nuclides:
            raise ValueError(f"Thermal law '{self.name}' applies to no nuclide")
        if not self.temperatures:
            raise ValueError(f"Thermal law '{self.name}' has no temperatures")
        object.__setattr__(self, "nuclides", tuple(self.nuclides))
        object.__setattr__(self, "temperatures", tuple(sorted(float(t) for t in self.temperatures)))


def _nearest(temperatures: Tuple[float, ...], temperature: float) -> Optional[float]:
    if not temperatures:
        return None
    grid = np.asarray(temperatures, dtype=np.float64)
    return float(grid[np.argmin(np.abs(grid - temperature))])


# ===================================================================
# In-memory library
# ===================================================================

@dataclass
class NuclideLibrary:
    """In-memory nuclide data service.

    Cross sections are matched exactly (to within TEMPERATURE_MATCH_EPS);
    thermal-scattering tables are bound at their nearest tabulated
    temperature.

    Example:
        >>> lib = NuclideLibrary.from_dict({"nuclides": {"Fe56": {"molar_mass": 55.935}}})
        >>> lib.has_cross_sections("Fe56", 293.6)
        True
    """

    nuclides: Dict[str, NuclideData] = field(default_factory=dict)
    thermal_laws: Dict[str, ThermalLaw] = field(default_factory=dict)
    _handles: Dict[Tuple[str, float], ThermalLawHandle] = field(
        default_factory=dict, init=False, repr=False,
    )

    def __post_init__(self):
        for law in self.thermal_laws.values():
            missing = [n for n in law.nuclides if n not in self.nuclides]
            if missing:
                raise ValueError(
                    f"Thermal law '{law.name}' refers to unknown nuclides: {', '.join(missing)}"
                )

    # -- service interface ---------------------------------------------------

    def molar_mass(self, nuclide: str) -> float:
        return self._get(nuclide).molar_mass

    def has_cross_sections(self, nuclide: str, temperature: float) -> bool:
        data = self.nuclides.get(nuclide)
        if data is None:
            return False
        nearest = data.nearest_temperature(temperature)
        return nearest is not None and abs(nearest - temperature) <= TEMPERATURE_MATCH_EPS

    def available_temperatures(self, nuclide: str) -> Tuple[float, ...]:
        return self._get(nuclide).temperatures

    def thermal_scattering_law(
        self,
        nuclide: str,
        temperature: float,
        law: Optional[str] = None,
    ) -> Optional[ThermalLawHandle]:
        """Handle for the thermal law applying to ``nuclide`` near ``temperature``.

        Args:
            nuclide: Nuclide identifier
            temperature: Material temperature [K]
            law: Specific table requested; if None the first table listing
                the nuclide is used

        Returns:
            Shared ThermalLawHandle, or None if no table applies

        """
        if law is not None:
            table = self.thermal_laws.get(law)
            if table is None or nuclide not in table.nuclides:
                return None
        else:
            table = next(
                (t for t in self.thermal_laws.values() if nuclide in t.nuclides), None,
            )
            if table is None:
                return None

        tabulated = _nearest(table.temperatures, temperature)
        key = (table.name, tabulated)
        handle = self._handles.get(key)
        if handle is None:
            handle = ThermalLawHandle(table.name, tabulated, table.nuclides)
            self._handles[key] = handle
            logger.debug(f"Bound thermal law {table.name} at {tabulated} K")
        return handle

    # -- helpers --------------------------------------------------------------

    def __contains__(self, nuclide: str) -> bool:
        return nuclide in self.nuclides

    def __len__(self) -> int:
        return len(self.nuclides)

    def list_nuclides(self) -> list[str]:
        return list(self.nuclides.keys())

    def list_thermal_laws(self) -> list[str]:
        return list(self.thermal_laws.keys())

    def _get(self, nuclide: str) -> NuclideData:
        try:
            return self.nuclides[nuclide]
        except KeyError:
            raise MissingNuclideDataError(
                "not found in the nuclear data library", nuclide=nuclide,
            ) from None

    # -- construction ---------------------------------------------------------

    @classmethod
    def from_dict(cls, data: dict, default_temperatures: Iterable[float] = (293.6,)) -> "NuclideLibrary":
        """Create a library from the layout used by nuclides.yaml.

        Nuclides without a ``temperatures`` list get ``default_temperatures``.
        """
        nuclides = {}
        for name, entry in (data.get("nuclides") or {}).items():
            nuclides[name] = NuclideData(
                name=name,
                molar_mass=float(entry["molar_mass"]),
                temperatures=tuple(entry.get("temperatures", default_temperatures)),
            )

        thermal_laws = {}
        for name, entry in (data.get("thermal_scattering") or {}).items():
            thermal_laws[name] = ThermalLaw(
                name=name,
                nuclides=tuple(entry["nuclides"]),
                temperatures=tuple(entry["temperatures"]),
            )

        return cls(nuclides=nuclides, thermal_laws=thermal_laws)

    @classmethod
    def from_yaml(cls, yaml_path: str | Path) -> "NuclideLibrary":
        """Load a library from a YAML file.

        Raises:
            FileNotFoundError: If file doesn't exist
            ValueError: If YAML format is invalid

        """
        path = Path(yaml_path)
        if not path.exists():
            raise FileNotFoundError(f"Nuclide library not found: {yaml_path}")

        with open(path, encoding="utf-8") as f:
            data = yaml.safe_load(f)

        if not isinstance(data, dict) or "nuclides" not in data:
            raise ValueError("YAML must contain 'nuclides' key")

        library = cls.from_dict(data)
        logger.info(
            f"Loaded {len(library.nuclides)} nuclides and "
            f"{len(library.thermal_laws)} thermal laws from {path}"
        )
        return library

    @classmethod
    def default(cls) -> "NuclideLibrary":
        """Load the library bundled with the package."""
        return cls.from_yaml(DEFAULT_LIBRARY_PATH)
