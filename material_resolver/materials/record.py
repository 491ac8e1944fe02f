"""Material draft and finalized material record.

A :class:`MaterialDraft` collects constituents and properties while the
problem is being set up. ``finalize`` validates it, resolves every density,
binds nuclear data at the material temperature and returns an immutable
:class:`MaterialRecord`. There is no way back: once finalized, the draft
rejects further changes and the record is never modified again, so any
number of transport workers can read it without locking.

State machine:
    DRAFT --add_nuclide / set_density / set_temperature / ...--> DRAFT
    DRAFT --finalize() ok--> FINALIZED
    DRAFT --finalize() fails--> DRAFT (last_error set, nothing retried)
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field
from typing import Dict, Iterable, Optional, Tuple

import numpy as np

from material_resolver.config.enums import (
    DensityUnit,
    FractionUnit,
    MaterialState,
    TemperaturePolicy,
)
from material_resolver.config.resolver_config import ResolverConfig
from material_resolver.core.constants import (
    BARN_CM2,
    TEMPERATURE_UNSET,
    VOLUME_UNSET,
)
from material_resolver.core.errors import (
    DuplicateIdentifierError,
    InvalidConstituentError,
    InvalidPropertyError,
    MaterialError,
    MaterialStateError,
    MissingNuclideDataError,
)
from material_resolver.materials.composition import CompositionTable, NuclideEntry
from material_resolver.materials.descriptor import MaterialSpec
from material_resolver.materials.units import atom_to_mass_density
from material_resolver.nuclear_data.service import (
    NuclideDataService,
    ThermalLawHandle,
    find_thermal_law,
    tabulated_temperatures,
)

logger = logging.getLogger(__name__)


# ===================================================================
# Finalized record
# ===================================================================

@dataclass(frozen=True, eq=False)
class MaterialRecord:
    """Immutable runtime representation of a material.

    Attributes:
        id: Unique positive identifier
        name: Human-readable name
        volume: Volume [cm³], VOLUME_UNSET (-1) if unknown
        temperature: Temperature as declared [K], negative if inherited
        resolved_temperature: Temperature used for data binding [K]
        depletable: Whether depletion tracks this material
        entries: Resolved constituents in insertion order
        nuclides: Nuclide identifiers, same order as ``entries``
        atom_densities: Read-only atomic densities [atoms/b-cm], same order
        molar_masses: Read-only molar masses [g/mol], same order
        total_atomic_density: Sum of ``atom_densities`` [atoms/b-cm]
        total_mass_density: Sum of N_i * M_i / N_A [g/cm³]
        effective_molar_mass: Atom-weighted mean molar mass [g/mol]
        density: Bulk density as declared (None for absolute constituents)
        density_units: Unit of ``density``

    """

    id: int
    name: str
    volume: float
    temperature: float
    resolved_temperature: float
    depletable: bool
    entries: Tuple[NuclideEntry, ...]
    nuclides: Tuple[str, ...]
    atom_densities: np.ndarray
    molar_masses: np.ndarray
    total_atomic_density: float
    total_mass_density: float
    effective_molar_mass: float
    density: Optional[float] = None
    density_units: Optional[DensityUnit] = None
    _positions: Dict[str, int] = field(init=False, repr=False)

    def __post_init__(self):
        object.__setattr__(
            self, "_positions", {name: i for i, name in enumerate(self.nuclides)},
        )

    def __len__(self) -> int:
        return len(self.entries)

    def __contains__(self, nuclide: str) -> bool:
        return nuclide in self._positions

    @property
    def has_volume(self) -> bool:
        return self.volume != VOLUME_UNSET

    @property
    def has_thermal_scattering(self) -> bool:
        return any(e.thermal_law is not None for e in self.entries)

    def index_of(self, nuclide: str) -> int:
        """Position of ``nuclide`` in ``entries`` and ``atom_densities``."""
        try:
            return self._positions[nuclide]
        except KeyError:
            raise KeyError(f"Nuclide '{nuclide}' not in material {self.id}") from None

    def atom_density(self, nuclide: str) -> float:
        """Atomic density of one nuclide [atoms/b-cm]."""
        return float(self.atom_densities[self.index_of(nuclide)])

    def atom_fractions(self) -> np.ndarray:
        if self.total_atomic_density == 0:
            return np.zeros_like(self.atom_densities)
        return self.atom_densities / self.total_atomic_density

    def weight_fractions(self) -> np.ndarray:
        if self.total_mass_density == 0:
            return np.zeros_like(self.atom_densities)
        mass = atom_to_mass_density(self.atom_densities, self.molar_masses)
        return mass / self.total_mass_density

    @property
    def total_atoms(self) -> float:
        """Number of atoms in the material volume."""
        return self.total_atomic_density / BARN_CM2 * self._require_volume()

    @property
    def mass(self) -> float:
        """Mass of the material volume [g]."""
        return self.total_mass_density * self._require_volume()

    def _require_volume(self) -> float:
        if not self.has_volume:
            raise InvalidPropertyError("volume is not set", material_id=self.id)
        return self.volume

    def to_dict(self) -> dict:
        """Convert the record to a dictionary for reporting."""
        return {
            "id": self.id,
            "name": self.name,
            "volume": self.volume,
            "temperature": self.temperature,
            "resolved_temperature": self.resolved_temperature,
            "depletable": self.depletable,
            "total_atomic_density": self.total_atomic_density,
            "total_mass_density": self.total_mass_density,
            "effective_molar_mass": self.effective_molar_mass,
            "nuclides": [e.to_dict() for e in self.entries],
        }


# ===================================================================
# Draft
# ===================================================================

class MaterialDraft:
    """Mutable material under construction.

    Example:
        >>> draft = MaterialDraft(2, name="water")
        >>> draft.add_nuclide("H1", 2.0, "ao")
        >>> draft.add_nuclide("O16", 1.0, "ao")
        >>> draft.set_density(1.0, "g/cm3")
        >>> record = draft.finalize(NuclideLibrary.default())
    """

    def __init__(
        self,
        material_id: int,
        name: str = "",
        config: Optional[ResolverConfig] = None,
    ):
        self.config = config if config is not None else ResolverConfig.from_defaults()
        self.id = material_id
        self.name = name
        self.state = MaterialState.DRAFT
        self.last_error: Optional[Exception] = None
        self.record: Optional[MaterialRecord] = None
        # Service and policies the record was resolved with
        self.data_service: Optional[NuclideDataService] = None
        self.finalized_config: Optional[ResolverConfig] = None

        self._volume = VOLUME_UNSET
        self._temperature = TEMPERATURE_UNSET
        self._density: Optional[float] = None
        self._density_unit: Optional[DensityUnit] = None
        self._depletable = False
        self._composition = CompositionTable(self.config.duplicate_policy)
        self._deferred_laws: list[str] = []

    def __repr__(self) -> str:
        return (
            f"MaterialDraft(id={self.id}, name={self.name!r}, "
            f"state={self.state.value}, nuclides={len(self._composition)})"
        )

    # -- properties -----------------------------------------------------------

    @property
    def is_finalized(self) -> bool:
        return self.state is MaterialState.FINALIZED

    @property
    def composition(self) -> CompositionTable:
        return self._composition

    @property
    def volume(self) -> float:
        return self._volume

    @property
    def temperature(self) -> float:
        return self._temperature

    @property
    def density(self) -> Optional[float]:
        return self._density

    @property
    def density_unit(self) -> Optional[DensityUnit]:
        return self._density_unit

    # -- mutators -------------------------------------------------------------

    def set_name(self, name: str) -> None:
        self._require_draft()
        self.name = name

    def set_density(self, value: Optional[float], unit: DensityUnit | str = DensityUnit.G_PER_CM3) -> None:
        """Set the bulk density.

        Args:
            value: Density in ``unit`` (ignored for 'sum')
            unit: g/cm3, kg/m3, atom/b-cm, atom/cm3 or sum

        """
        self._require_draft()
        unit = DensityUnit.parse(unit)
        self._density_unit = unit
        self._density = None if unit is DensityUnit.SUM or value is None else float(value)

    def set_temperature(self, kelvin: Optional[float]) -> None:
        """Set the default temperature; None or a negative value inherits the global default."""
        self._require_draft()
        self._temperature = TEMPERATURE_UNSET if kelvin is None else float(kelvin)

    def set_volume(self, cm3: Optional[float]) -> None:
        """Set the volume [cm³]; None marks it unknown."""
        self._require_draft()
        self._volume = VOLUME_UNSET if cm3 is None else float(cm3)

    def set_depletable(self, depletable: bool = True) -> None:
        self._require_draft()
        self._depletable = bool(depletable)

    def add_nuclide(
        self,
        nuclide: str,
        fraction: float,
        unit: FractionUnit | str = FractionUnit.ATOM_FRACTION,
        thermal_law: Optional[str] = None,
        trace: bool = False,
    ) -> None:
        """Add a constituent; see CompositionTable.add."""
        self._require_draft()
        try:
            self._composition.add(nuclide, fraction, unit, thermal_law=thermal_law, trace=trace)
        except MaterialError as exc:
            raise exc.with_context(material_id=self.id) from exc

    def add_s_alpha_beta(self, law: str, nuclides: Optional[Iterable[str]] = None) -> None:
        """Attach a thermal-scattering table.

        Args:
            law: Table name known to the data service (e.g. 'c_H_in_H2O')
            nuclides: Constituents the table applies to. If None, every
                constituent the data service lists for the table is bound at
                finalization.

        """
        self._require_draft()
        if nuclides is None:
            if law not in self._deferred_laws:
                self._deferred_laws.append(law)
            return
        for nuclide in nuclides:
            try:
                self._composition.set_thermal_law(nuclide, law)
            except MaterialError as exc:
                raise exc.with_context(material_id=self.id) from exc

    # -- finalization ---------------------------------------------------------

    def finalize(
        self,
        data_service: NuclideDataService,
        *,
        existing_ids: Iterable[int] = (),
        config: Optional[ResolverConfig] = None,
    ) -> MaterialRecord:
        """Validate the draft and produce the immutable record.

        Args:
            data_service: Source of molar masses, cross-section availability
                and thermal-scattering tables
            existing_ids: Identifiers already in use
            config: Policies to apply (defaults to the draft's config)

        Returns:
            The finalized MaterialRecord (also stored as ``self.record``)

        Raises:
            MaterialStateError: If the draft is already finalized
            MaterialError: Any validation or resolution failure, with the
                material id attached. The draft stays in DRAFT state.
            Exception: Whatever the data service raises is recorded in
                ``last_error`` and re-raised unchanged.

        """
        self._require_draft()
        config = config if config is not None else self.config

        try:
            record = self._build(data_service, existing_ids, config)
        except MaterialError as exc:
            if exc.material_id is None:
                error = exc.with_context(material_id=self.id)
                self.last_error = error
                logger.debug(f"Finalization of material {self.id} failed: {error}")
                raise error from exc
            self.last_error = exc
            logger.debug(f"Finalization of material {self.id} failed: {exc}")
            raise
        except Exception as exc:
            # Failures inside a data service are not MaterialErrors
            self.last_error = exc
            logger.debug(f"Finalization of material {self.id} failed: {exc!r}")
            raise

        self.record = record
        self.last_error = None
        self.data_service = data_service
        self.finalized_config = config
        self.state = MaterialState.FINALIZED
        logger.debug(
            f"Finalized material {record.id} ({len(record)} nuclides, "
            f"N={record.total_atomic_density:.6e} atoms/b-cm, "
            f"rho={record.total_mass_density:.6e} g/cm3, T={record.resolved_temperature} K)"
        )
        return record

    def _build(
        self,
        data_service: NuclideDataService,
        existing_ids: Iterable[int],
        config: ResolverConfig,
    ) -> MaterialRecord:
        self._validate_properties(existing_ids)
        temperature = self._resolve_temperature(config)

        # Unit consistency first: it needs no data lookup
        self._composition.check_units(self._density_unit)

        molar_masses: dict[str, float] = {}
        data_temperatures: dict[str, float] = {}
        for nuclide in self._composition.nuclides:
            try:
                molar_masses[nuclide] = float(data_service.molar_mass(nuclide))
            except MaterialError as exc:
                raise exc.with_context(nuclide=nuclide) from exc
            data_temperatures[nuclide] = self._match_temperature(
                data_service, nuclide, temperature, config,
            )

        thermal_laws = self._bind_thermal_laws(data_service, data_temperatures)

        densities = self._composition.finalize(
            self._density,
            self._density_unit,
            molar_masses,
            data_temperatures=data_temperatures,
            thermal_laws=thermal_laws,
            consistency_rtol=config.consistency_rtol,
        )
        entries = tuple(self._composition.entries())
        nuclides = self._composition.nuclides

        masses = np.array([molar_masses[n] for n in nuclides], dtype=np.float64)
        masses.setflags(write=False)

        total = self._composition.total_atomic_density()
        total_mass = float(np.sum(atom_to_mass_density(densities, masses)))
        m_eff = float(np.dot(densities, masses) / total) if total > 0 else 0.0

        return MaterialRecord(
            id=self.id,
            name=self.name,
            volume=self._volume,
            temperature=self._temperature,
            resolved_temperature=temperature,
            depletable=self._depletable,
            entries=entries,
            nuclides=nuclides,
            atom_densities=densities,
            molar_masses=masses,
            total_atomic_density=total,
            total_mass_density=total_mass,
            effective_molar_mass=m_eff,
            density=self._density,
            density_units=self._density_unit,
        )

    def _validate_properties(self, existing_ids: Iterable[int]) -> None:
        if isinstance(self.id, bool) or not isinstance(self.id, (int, np.integer)) or self.id <= 0:
            raise InvalidPropertyError(f"identifier must be a positive integer, got {self.id!r}")
        if self.id in set(existing_ids):
            raise DuplicateIdentifierError("identifier is already registered")

        if not math.isfinite(self._volume) or (self._volume < 0 and self._volume != VOLUME_UNSET):
            raise InvalidPropertyError(
                f"volume must be >= 0 or {VOLUME_UNSET} (unset), got {self._volume}"
            )
        if not math.isfinite(self._temperature) or self._temperature == 0:
            raise InvalidPropertyError(
                f"temperature must be positive, or negative to inherit the default, "
                f"got {self._temperature}"
            )
        if len(self._composition) == 0:
            raise InvalidConstituentError("material has no constituents")

    def _resolve_temperature(self, config: ResolverConfig) -> float:
        if self._temperature < 0:
            return float(config.default_temperature)
        return self._temperature

    @staticmethod
    def _match_temperature(
        data_service: NuclideDataService,
        nuclide: str,
        temperature: float,
        config: ResolverConfig,
    ) -> float:
        if data_service.has_cross_sections(nuclide, temperature):
            return temperature

        available = tabulated_temperatures(data_service, nuclide)
        listing = ", ".join(f"{t:g}" for t in available) or "none"
        if config.temperature_policy is TemperaturePolicy.NEAREST and available:
            nearest = min(available, key=lambda t: abs(t - temperature))
            if abs(nearest - temperature) <= config.temperature_tolerance:
                logger.warning(
                    f"No {nuclide} cross sections at {temperature} K; "
                    f"using nearest tabulated temperature {nearest} K"
                )
                return float(nearest)
            raise MissingNuclideDataError(
                f"no cross sections within {config.temperature_tolerance} K of "
                f"{temperature} K (available: {listing})",
                nuclide=nuclide,
            )

        raise MissingNuclideDataError(
            f"no cross sections at {temperature} K (available: {listing})",
            nuclide=nuclide,
        )

    def _bind_thermal_laws(
        self,
        data_service: NuclideDataService,
        data_temperatures: Dict[str, float],
    ) -> Dict[str, ThermalLawHandle]:
        requested = {
            c.nuclide: c.thermal_law
            for c in self._composition.constituents
            if c.thermal_law is not None
        }

        for law in self._deferred_laws:
            matched = [
                nuclide for nuclide in self._composition.nuclides
                if find_thermal_law(data_service, nuclide, data_temperatures[nuclide], law) is not None
            ]
            if not matched:
                raise MissingNuclideDataError(
                    f"thermal scattering law '{law}' applies to no constituent of the material"
                )
            for nuclide in matched:
                if requested.get(nuclide, law) != law:
                    raise InvalidConstituentError(
                        f"bound to both '{requested[nuclide]}' and '{law}'", nuclide=nuclide,
                    )
                requested[nuclide] = law

        handles = {}
        for nuclide, law in requested.items():
            handle = find_thermal_law(data_service, nuclide, data_temperatures[nuclide], law)
            if handle is None:
                raise MissingNuclideDataError(
                    f"thermal scattering law '{law}' is not available near "
                    f"{data_temperatures[nuclide]} K",
                    nuclide=nuclide,
                )
            handles[nuclide] = handle
        return handles

    def _require_draft(self) -> None:
        if self.state is MaterialState.FINALIZED:
            raise MaterialStateError("material is finalized and immutable", material_id=self.id)

    # -- construction ---------------------------------------------------------

    @classmethod
    def from_spec(cls, spec: MaterialSpec, config: Optional[ResolverConfig] = None) -> "MaterialDraft":
        """Create a draft from a typed material declaration."""
        draft = cls(spec.id, name=spec.name, config=config)
        if spec.density is not None or spec.density_units is DensityUnit.SUM:
            draft.set_density(spec.density, spec.density_units)
        draft.set_temperature(spec.temperature)
        draft.set_volume(spec.volume)
        draft.set_depletable(spec.depletable)
        for c in spec.constituents:
            draft.add_nuclide(c.nuclide, c.fraction, c.unit, thermal_law=c.thermal_law, trace=c.trace)
        for law in spec.thermal_scattering:
            draft.add_s_alpha_beta(law)
        return draft
