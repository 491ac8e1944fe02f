"""Pytest configuration and shared fixtures for material_resolver tests."""

import pytest

from material_resolver.config.resolver_config import ResolverConfig
from material_resolver.materials.record import MaterialDraft
from material_resolver.materials.registry import MaterialRegistry
from material_resolver.nuclear_data.service import NuclideLibrary


# Molar masses [g/mol] used throughout the tests
M_H1 = 1.00782503223
M_O16 = 15.99491461957
M_FE56 = 55.935
M_U235 = 235.0439301
M_U238 = 238.0507884
M_C12 = 12.0

LIBRARY_DATA = {
    "nuclides": {
        "H1": {"molar_mass": M_H1, "temperatures": [293.6, 600.0, 900.0]},
        "O16": {"molar_mass": M_O16, "temperatures": [293.6, 600.0, 900.0]},
        "Fe56": {"molar_mass": M_FE56, "temperatures": [293.6, 600.0, 900.0]},
        "U235": {"molar_mass": M_U235, "temperatures": [293.6, 600.0, 900.0]},
        "U238": {"molar_mass": M_U238, "temperatures": [293.6, 600.0, 900.0]},
        "C12": {"molar_mass": M_C12, "temperatures": [293.6, 600.0]},
    },
    "thermal_scattering": {
        "c_H_in_H2O": {"nuclides": ["H1"], "temperatures": [294.0, 350.0, 600.0]},
        "c_Graphite": {"nuclides": ["C12"], "temperatures": [296.0, 600.0]},
    },
}


@pytest.fixture
def library():
    """Small in-memory nuclide library."""
    return NuclideLibrary.from_dict(LIBRARY_DATA)


@pytest.fixture
def config():
    """Default resolver configuration (exact temperatures, reject duplicates)."""
    return ResolverConfig()


@pytest.fixture
def registry(library, config):
    """Empty registry bound to the test library."""
    return MaterialRegistry(library, config=config)


@pytest.fixture
def water_draft(config):
    """Water given as H1:O16 = 2:1 atom fractions at 1.0 g/cm3."""
    draft = MaterialDraft(2, name="water", config=config)
    draft.add_nuclide("H1", 2.0, "ao")
    draft.add_nuclide("O16", 1.0, "ao")
    draft.set_density(1.0, "g/cm3")
    return draft


@pytest.fixture
def iron_draft(config):
    """Pure Fe56 at 10 g/cm3."""
    draft = MaterialDraft(1, name="iron", config=config)
    draft.add_nuclide("Fe56", 1.0, "wo")
    draft.set_density(10.0, "g/cm3")
    return draft
