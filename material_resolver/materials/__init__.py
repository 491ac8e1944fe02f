"""Material system: unit normalization, composition tables, records, registry.

Module structure:
    units: Unit Normalizer (fractions and densities -> atoms/barn-cm)
    composition: NuclideEntry and CompositionTable
    descriptor: ConstituentSpec and MaterialSpec (typed declarations)
    record: MaterialDraft and MaterialRecord
    registry: MaterialRegistry

Example usage:
    >>> from material_resolver.materials import MaterialDraft, MaterialRegistry
    >>> from material_resolver.nuclear_data import NuclideLibrary
    >>> registry = MaterialRegistry(NuclideLibrary.default())
    >>> draft = MaterialDraft(1, name="iron")
    >>> draft.add_nuclide("Fe56", 1.0, "wo")
    >>> draft.set_density(10.0, "g/cm3")
    >>> index = registry.register(draft)
    >>> registry.seal()
    >>> registry.total_atomic_density(index)
    0.10766...
"""

from .composition import CompositionTable, Constituent, NuclideEntry
from .descriptor import ConstituentSpec, MaterialSpec
from .record import MaterialDraft, MaterialRecord
from .registry import MaterialRegistry

__all__ = [
    # Composition
    "CompositionTable",
    "Constituent",
    "NuclideEntry",
    # Declarations
    "ConstituentSpec",
    "MaterialSpec",
    # Records
    "MaterialDraft",
    "MaterialRecord",
    # Registry
    "MaterialRegistry",
]
