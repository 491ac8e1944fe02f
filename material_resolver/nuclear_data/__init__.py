"""Nuclear data lookup service consumed during material finalization.

Module structure:
    service: NuclideDataService protocol, NuclideData, ThermalLawHandle
             and the in-memory NuclideLibrary

Example usage:
    >>> from material_resolver.nuclear_data import NuclideLibrary
    >>> library = NuclideLibrary.default()
    >>> library.molar_mass("O16")
    15.99491461957
"""

from .service import (
    NuclideData,
    NuclideDataService,
    NuclideLibrary,
    ThermalLaw,
    ThermalLawHandle,
    find_thermal_law,
    tabulated_temperatures,
)

__all__ = [
    "NuclideDataService",
    "NuclideData",
    "ThermalLaw",
    "ThermalLawHandle",
    "NuclideLibrary",
    "find_thermal_law",
    "tabulated_temperatures",
]
