"""Material registry: finalized materials indexed for the transport phase.

Runtime API:
    - register(draft) -> int              finalize and insert, returns runtime index
    - lookup(material_id) -> int          stable identifier -> runtime index
    - get(index) -> MaterialRecord        constant-time hot-path accessor
    - total_atomic_density(index) -> float
    - nuclide_entries(index) -> tuple of NuclideEntry
    - seal()                              freeze before transport begins

Runtime indices are dense and zero-based in registration order. Geometry
cells store these integers, never the records themselves.

There is no process-wide registry: create one per run and pass it to
whatever needs it.
"""

from __future__ import annotations

import logging
import math
from pathlib import Path
from typing import Iterable, Iterator, Mapping, Optional

import yaml

from material_resolver.config.resolver_config import ResolverConfig
from material_resolver.config.validation import validate_config
from material_resolver.core.constants import VOID_MATERIAL, VOLUME_UNSET
from material_resolver.core.errors import (
    DuplicateIdentifierError,
    MaterialError,
    MaterialStateError,
    RegistrySealedError,
    UnknownMaterialError,
)
from material_resolver.materials.composition import NuclideEntry
from material_resolver.materials.descriptor import MaterialSpec
from material_resolver.materials.record import MaterialDraft, MaterialRecord
from material_resolver.nuclear_data.service import NuclideDataService

logger = logging.getLogger(__name__)

# Cell material values that mean "no material"
_VOID_NAMES = ("void", "none", "")


class MaterialRegistry:
    """Collection of finalized materials for one run.

    Validation on register:
        - Registry not sealed
        - Identifier unique and positive
        - Draft finalizes (units, densities, nuclear data)
    """

    def __init__(
        self,
        data_service: NuclideDataService,
        config: Optional[ResolverConfig] = None,
    ):
        """Initialize an empty registry.

        Args:
            data_service: Nuclear data consulted when drafts are finalized
            config: Finalization policies (defaults.yaml when omitted)

        Raises:
            ConfigurationError: If the config is invalid

        """
        self.data_service = data_service
        self.config = config if config is not None else ResolverConfig.from_defaults()
        validate_config(self.config)

        self._index: dict[int, int] = {}
        self._records: list[MaterialRecord] = []
        self._sealed = False

    # -- registration ---------------------------------------------------------

    def register(self, draft: MaterialDraft) -> int:
        """Finalize a draft and insert it.

        Args:
            draft: Material draft. An already finalized draft is inserted as is,
                provided it was finalized with this registry's data service
                and configuration.

        Returns:
            Runtime index of the new material

        Raises:
            RegistrySealedError: If the registry is sealed
            MaterialStateError: If the draft was finalized with another data
                service or configuration
            DuplicateIdentifierError: If the identifier is taken; the earlier
                material is left untouched
            MaterialError: Any finalization failure

        """
        if self._sealed:
            raise RegistrySealedError(
                "registry is sealed; no materials can be added", material_id=draft.id,
            )

        if draft.is_finalized:
            record = draft.record
            if draft.data_service is not self.data_service or draft.finalized_config != self.config:
                raise MaterialStateError(
                    "material was finalized with another data service or configuration; "
                    "register the draft unfinalized",
                    material_id=record.id,
                )
            if record.id in self._index:
                raise DuplicateIdentifierError("identifier is already registered", material_id=record.id)
        else:
            record = draft.finalize(
                self.data_service, existing_ids=self._index.keys(), config=self.config,
            )

        index = len(self._records)
        self._records.append(record)
        self._index[record.id] = index
        logger.debug(f"Registered material {record.id} at index {index}")
        return index

    def register_spec(self, spec: MaterialSpec) -> int:
        """Build a draft from a declaration and register it."""
        return self.register(MaterialDraft.from_spec(spec, config=self.config))

    def register_all(self, specs: Iterable[MaterialSpec]) -> list[int]:
        """Register several declarations in order; stops at the first failure."""
        return [self.register_spec(spec) for spec in specs]

    def load_from_yaml(self, yaml_path: str | Path) -> list[int]:
        """Register every material declared in a YAML file.

        Expected format:
            materials:
              - id: 1
                name: water
                density: 1.0
                density_units: g/cm3
                constituents:
                  - {nuclide: H1, fraction: 2.0, unit: ao}
                  - {nuclide: O16, fraction: 1.0, unit: ao}
                thermal_scattering: [c_H_in_H2O]

        All declarations are parsed before any is registered, so a malformed
        file registers nothing.

        Raises:
            FileNotFoundError: If file doesn't exist
            ValueError: If YAML format is invalid
            MaterialError: If a material fails to finalize

        """
        path = Path(yaml_path)
        if not path.exists():
            raise FileNotFoundError(f"Material file not found: {yaml_path}")

        with open(path, encoding="utf-8") as f:
            data = yaml.safe_load(f)

        if not isinstance(data, dict) or "materials" not in data:
            raise ValueError("YAML must contain 'materials' key")

        specs = [MaterialSpec.from_dict(entry) for entry in data["materials"]]
        indices = self.register_all(specs)
        logger.info(f"Loaded {len(indices)} materials from {path}")
        return indices

    # -- lifecycle ------------------------------------------------------------

    def seal(self) -> None:
        """Freeze the registry; later register() calls fail.

        Raises:
            MaterialError: If any registered record violates an invariant

        """
        if self._sealed:
            return
        errors = self.validate_all()
        if errors:
            raise MaterialError(
                f"Registry validation failed with {len(errors)} error(s):\n"
                + "\n".join(f"  - {err}" for err in errors)
            )
        self._sealed = True
        logger.info(f"Sealed material registry with {len(self._records)} materials")

    @property
    def sealed(self) -> bool:
        return self._sealed

    def validate_all(self) -> list[str]:
        """Re-check the invariants of every registered material.

        Returns:
            List of validation error messages (empty if all valid)

        """
        errors = []
        for index, record in enumerate(self._records):
            if self._index.get(record.id) != index:
                errors.append(f"material {record.id}: index map out of sync")
            if record.total_atomic_density < 0:
                errors.append(
                    f"material {record.id}: negative total atomic density "
                    f"{record.total_atomic_density}"
                )
            entry_sum = math.fsum(e.atom_density for e in record.entries)
            if not math.isclose(
                record.total_atomic_density, entry_sum,
                rel_tol=self.config.consistency_rtol, abs_tol=0.0,
            ):
                errors.append(
                    f"material {record.id}: total {record.total_atomic_density} "
                    f"!= sum of entries {entry_sum}"
                )
            if record.volume < 0 and record.volume != VOLUME_UNSET:
                errors.append(f"material {record.id}: invalid volume {record.volume}")
        return errors

    # -- queries --------------------------------------------------------------

    def lookup(self, material_id: int) -> int:
        """Runtime index of a material.

        Raises:
            UnknownMaterialError: If no material has this identifier

        """
        try:
            return self._index[material_id]
        except KeyError:
            raise UnknownMaterialError(
                "no such material; registered: "
                + (", ".join(str(i) for i in self._index) or "none"),
                material_id=material_id,
            ) from None

    def get(self, index: int) -> MaterialRecord:
        """Record at a runtime index obtained from this registry.

        Raises:
            IndexError: If the index is negative (VOID_MATERIAL included) or
                past the last material

        """
        if not 0 <= index < len(self._records):
            if index == VOID_MATERIAL:
                raise IndexError("void cells have no material record")
            raise IndexError(
                f"material index {index} out of range (0..{len(self._records) - 1})"
            )
        return self._records[index]

    def get_by_id(self, material_id: int) -> MaterialRecord:
        return self._records[self.lookup(material_id)]

    def total_atomic_density(self, index: int) -> float:
        return self.get(index).total_atomic_density

    def nuclide_entries(self, index: int) -> tuple[NuclideEntry, ...]:
        return self.get(index).entries

    def resolve_cells(self, cell_materials: Mapping[int, Optional[int | str]]) -> dict[int, int]:
        """Translate cell material references into runtime indices.

        Args:
            cell_materials: Cell id -> material id, or None / 'void' for void cells

        Returns:
            Cell id -> runtime index (VOID_MATERIAL for void cells)

        Raises:
            UnknownMaterialError: If a cell refers to an unregistered material

        """
        resolved = {}
        for cell_id, material_id in cell_materials.items():
            if material_id is None or (
                isinstance(material_id, str) and material_id.strip().lower() in _VOID_NAMES
            ):
                resolved[cell_id] = VOID_MATERIAL
                continue
            try:
                resolved[cell_id] = self.lookup(int(material_id))
            except UnknownMaterialError as exc:
                raise UnknownMaterialError(
                    f"referenced by cell {cell_id} but never defined",
                    material_id=exc.material_id,
                ) from None
        return resolved

    # -- container protocol ---------------------------------------------------

    def __len__(self) -> int:
        return len(self._records)

    def __iter__(self) -> Iterator[MaterialRecord]:
        return iter(self._records)

    def __contains__(self, material_id: int) -> bool:
        return material_id in self._index

    def ids(self) -> list[int]:
        """Material identifiers in registration order."""
        return list(self._index.keys())

    @property
    def records(self) -> tuple[MaterialRecord, ...]:
        return tuple(self._records)

    def summary(self) -> list[dict]:
        """Dictionaries describing every material, in registration order."""
        return [record.to_dict() for record in self._records]
