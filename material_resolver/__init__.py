"""Material Composition Resolver for Monte Carlo particle transport.

Turns declarative material descriptions (nuclides in atom or weight
fractions or absolute densities, a bulk density, a temperature) into
normalized, immutable records for the transport kernel: atomic densities in
atoms/barn-cm, totals, and nuclear data bound at the material temperature.

Key Principles:
- One internal unit: atoms/barn-cm
- Explicit unit tags; the sign of a value never selects a unit
- Insertion order preserved for reproducible output
- Records are immutable once finalized; the registry is sealed before transport

Version: 1.0
"""

__version__ = "1.0"

from material_resolver.config import (
    DensityUnit,
    DuplicatePolicy,
    FractionUnit,
    ResolverConfig,
    TemperaturePolicy,
)
from material_resolver.core.errors import (
    DuplicateConstituentError,
    DuplicateIdentifierError,
    InconsistentUnitMixError,
    InvalidConstituentError,
    InvalidPropertyError,
    MaterialError,
    MaterialStateError,
    MissingNuclideDataError,
    RegistrySealedError,
    UnderspecifiedDensityError,
    UnknownMaterialError,
)
from material_resolver.materials import (
    CompositionTable,
    ConstituentSpec,
    MaterialDraft,
    MaterialRecord,
    MaterialRegistry,
    MaterialSpec,
    NuclideEntry,
)
from material_resolver.nuclear_data import (
    NuclideDataService,
    NuclideLibrary,
    ThermalLawHandle,
)

__all__ = [
    # Version
    "__version__",
    # Configuration
    "DensityUnit",
    "DuplicatePolicy",
    "FractionUnit",
    "ResolverConfig",
    "TemperaturePolicy",
    # Materials
    "CompositionTable",
    "ConstituentSpec",
    "MaterialDraft",
    "MaterialRecord",
    "MaterialRegistry",
    "MaterialSpec",
    "NuclideEntry",
    # Nuclear data
    "NuclideDataService",
    "NuclideLibrary",
    "ThermalLawHandle",
    # Errors
    "MaterialError",
    "UnderspecifiedDensityError",
    "DuplicateConstituentError",
    "DuplicateIdentifierError",
    "UnknownMaterialError",
    "MissingNuclideDataError",
    "InconsistentUnitMixError",
    "RegistrySealedError",
    "InvalidConstituentError",
    "InvalidPropertyError",
    "MaterialStateError",
]
