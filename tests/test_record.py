"""Tests for material_resolver.materials.record (draft finalization and records)."""

import numpy as np
import pytest
from numpy.testing import assert_allclose

from material_resolver.config.enums import (
    DensityUnit,
    DuplicatePolicy,
    MaterialState,
    TemperaturePolicy,
)
from material_resolver.config.resolver_config import ResolverConfig
from material_resolver.core.constants import AVOGADRO, TEMPERATURE_UNSET, VOLUME_UNSET
from material_resolver.core.errors import (
    DuplicateConstituentError,
    DuplicateIdentifierError,
    InconsistentUnitMixError,
    InvalidConstituentError,
    InvalidPropertyError,
    MaterialStateError,
    MissingNuclideDataError,
    UnderspecifiedDensityError,
)
from material_resolver.materials.descriptor import ConstituentSpec, MaterialSpec
from material_resolver.materials.record import MaterialDraft, MaterialRecord
from material_resolver.nuclear_data.service import NuclideDataService, ThermalLawHandle


class TestExampleScenarios:
    """Reference materials with hand-computed densities."""

    def test_iron_mass_density(self, iron_draft, library):
        """Fe56 at 10 g/cm3: N = 10 / 55.935 * N_A * 1e-24 ~ 0.1077 atoms/b-cm."""
        record = iron_draft.finalize(library)
        expected = 10.0 / 55.935 * AVOGADRO * 1e-24
        assert record.total_atomic_density == pytest.approx(expected, rel=1e-12)
        assert record.total_atomic_density == pytest.approx(0.1077, rel=1e-3)
        assert record.total_mass_density == pytest.approx(10.0, rel=1e-12)

    def test_water_atom_fractions(self, water_draft, library):
        record = water_draft.finalize(library)
        assert_allclose(record.atom_fractions(), [2.0 / 3.0, 1.0 / 3.0], rtol=1e-12)
        # Per formula unit: 3 * M_eff is the water molar mass
        assert 3.0 * record.effective_molar_mass == pytest.approx(18.015, rel=1e-3)
        expected = 1.0 * AVOGADRO / record.effective_molar_mass * 1e-24
        assert record.total_atomic_density == pytest.approx(expected, rel=1e-9)
        assert record.total_mass_density == pytest.approx(1.0, rel=1e-12)

    def test_atom_fraction_and_atom_density_mix(self, config, library):
        draft = MaterialDraft(3, config=config)
        draft.add_nuclide("H1", 2.0, "ao")
        draft.add_nuclide("O16", 0.033, "atom/b-cm")
        with pytest.raises(InconsistentUnitMixError) as excinfo:
            draft.finalize(library)
        assert excinfo.value.material_id == 3

    def test_weight_fraction_round_trip(self, config, library):
        """100 wo at rho equals the single-nuclide atom-density declaration."""
        by_weight = MaterialDraft(10, config=config)
        by_weight.add_nuclide("Fe56", 100.0, "wo")
        by_weight.set_density(7.874, "g/cm3")
        record_w = by_weight.finalize(library)

        by_atoms = MaterialDraft(11, config=config)
        by_atoms.add_nuclide("Fe56", record_w.total_atomic_density, "atom/b-cm")
        record_a = by_atoms.finalize(library)

        assert record_a.atom_density("Fe56") == pytest.approx(record_w.atom_density("Fe56"), rel=1e-12)
        assert record_a.total_mass_density == pytest.approx(7.874, rel=1e-12)

    def test_mass_density_constituent_matches_weight_fraction(self, config, library):
        partial = MaterialDraft(12, config=config)
        partial.add_nuclide("Fe56", 10.0, "g/cm3")
        partial.set_density(None, "sum")
        a = partial.finalize(library)

        fraction = MaterialDraft(13, config=config)
        fraction.add_nuclide("Fe56", 1.0, "wo")
        fraction.set_density(10.0, "g/cm3")
        b = fraction.finalize(library)

        assert a.total_atomic_density == pytest.approx(b.total_atomic_density, rel=1e-12)


class TestDerivedTotals:
    @pytest.mark.parametrize("unit,density", [
        ("g/cm3", 10.4),
        ("kg/m3", 10400.0),
        ("atom/b-cm", 0.0232),
        ("atom/cm3", 2.32e22),
    ])
    def test_total_equals_entry_sum(self, config, library, unit, density):
        draft = MaterialDraft(5, config=config)
        draft.add_nuclide("U235", 4.5, "wo")
        draft.add_nuclide("U238", 95.5, "wo")
        draft.set_density(density, unit)
        record = draft.finalize(library)
        assert record.total_atomic_density == pytest.approx(
            sum(e.atom_density for e in record.entries), rel=1e-9,
        )
        assert record.total_atomic_density == pytest.approx(np.sum(record.atom_densities), rel=1e-12)

    def test_atom_density_bulk_is_reproduced(self, config, library):
        draft = MaterialDraft(6, config=config)
        for nuclide, fraction in [("H1", 0.4), ("C12", 0.35), ("O16", 0.25)]:
            draft.add_nuclide(nuclide, fraction, "ao")
        draft.set_density(0.0912, "atom/b-cm")
        record = draft.finalize(library)
        assert record.total_atomic_density == pytest.approx(0.0912, rel=1e-9)

    def test_weight_fractions(self, config, library):
        draft = MaterialDraft(7, config=config)
        draft.add_nuclide("U235", 0.2, "wo")
        draft.add_nuclide("U238", 0.8, "wo")
        draft.set_density(19.0, "g/cm3")
        record = draft.finalize(library)
        assert_allclose(record.weight_fractions(), [0.2, 0.8], rtol=1e-12)

    def test_volume_derived_quantities(self, iron_draft, library):
        iron_draft.set_volume(2.0)
        record = iron_draft.finalize(library)
        assert record.has_volume
        assert record.mass == pytest.approx(20.0, rel=1e-12)
        assert record.total_atoms == pytest.approx(record.total_atomic_density * 1e24 * 2.0, rel=1e-12)

    def test_volume_unset(self, iron_draft, library):
        record = iron_draft.finalize(library)
        assert record.volume == VOLUME_UNSET
        assert not record.has_volume
        with pytest.raises(InvalidPropertyError, match="volume"):
            record.mass

    def test_all_trace_absolute_material(self, config, library):
        draft = MaterialDraft(8, config=config)
        draft.add_nuclide("U235", 0.0, "atom/b-cm", trace=True)
        record = draft.finalize(library)
        assert record.total_atomic_density == 0.0
        assert record.effective_molar_mass == 0.0
        assert_allclose(record.atom_fractions(), [0.0])


class TestRecordAccess:
    def test_record_is_immutable(self, water_draft, library):
        record = water_draft.finalize(library)
        with pytest.raises(AttributeError):
            record.total_atomic_density = 1.0
        with pytest.raises(ValueError):
            record.atom_densities[0] = 1.0
        with pytest.raises(ValueError):
            record.molar_masses[0] = 1.0
        assert isinstance(record.entries, tuple)

    def test_order_and_lookup(self, water_draft, library):
        record = water_draft.finalize(library)
        assert record.nuclides == ("H1", "O16")
        assert record.index_of("O16") == 1
        assert "H1" in record
        assert len(record) == 2
        with pytest.raises(KeyError, match="U235"):
            record.atom_density("U235")

    def test_to_dict(self, water_draft, library):
        data = water_draft.finalize(library).to_dict()
        assert data["id"] == 2
        assert data["name"] == "water"
        assert [n["nuclide"] for n in data["nuclides"]] == ["H1", "O16"]


class TestTemperature:
    def test_inherits_default(self, water_draft, library):
        record = water_draft.finalize(library)
        assert record.temperature == TEMPERATURE_UNSET
        assert record.resolved_temperature == pytest.approx(293.6)
        assert all(e.data_temperature == pytest.approx(293.6) for e in record.entries)

    def test_explicit_temperature(self, water_draft, library):
        water_draft.set_temperature(600.0)
        record = water_draft.finalize(library)
        assert record.resolved_temperature == 600.0

    def test_config_default_temperature(self, water_draft, library):
        record = water_draft.finalize(library, config=ResolverConfig(default_temperature=900.0))
        assert record.resolved_temperature == 900.0

    def test_exact_policy_missing_temperature(self, water_draft, library):
        water_draft.set_temperature(605.0)
        with pytest.raises(MissingNuclideDataError, match="605") as excinfo:
            water_draft.finalize(library)
        assert excinfo.value.nuclide == "H1"
        assert excinfo.value.material_id == 2

    def test_nearest_policy_within_tolerance(self, water_draft, library):
        water_draft.set_temperature(605.0)
        config = ResolverConfig(temperature_policy=TemperaturePolicy.NEAREST, temperature_tolerance=10.0)
        record = water_draft.finalize(library, config=config)
        assert record.resolved_temperature == 605.0
        assert all(e.data_temperature == 600.0 for e in record.entries)

    def test_nearest_policy_outside_tolerance(self, water_draft, library):
        water_draft.set_temperature(700.0)
        config = ResolverConfig(temperature_policy=TemperaturePolicy.NEAREST, temperature_tolerance=10.0)
        with pytest.raises(MissingNuclideDataError, match="within"):
            water_draft.finalize(library, config=config)

    def test_zero_temperature_rejected(self, water_draft, library):
        water_draft.set_temperature(0.0)
        with pytest.raises(InvalidPropertyError, match="temperature"):
            water_draft.finalize(library)


class TestThermalScattering:
    def test_per_nuclide_law(self, config, library):
        draft = MaterialDraft(20, config=config)
        draft.add_nuclide("H1", 2.0, "ao", thermal_law="c_H_in_H2O")
        draft.add_nuclide("O16", 1.0, "ao")
        draft.set_density(1.0)
        record = draft.finalize(library)
        h1, o16 = record.entries
        assert h1.thermal_law.name == "c_H_in_H2O"
        assert h1.thermal_law.temperature == 294.0
        assert o16.thermal_law is None
        assert record.has_thermal_scattering

    def test_material_level_law(self, water_draft, library):
        water_draft.add_s_alpha_beta("c_H_in_H2O")
        record = water_draft.finalize(library)
        assert record.entries[0].thermal_law.name == "c_H_in_H2O"
        assert record.entries[1].thermal_law is None

    def test_explicit_nuclide_list(self, water_draft, library):
        water_draft.add_s_alpha_beta("c_H_in_H2O", nuclides=["H1"])
        record = water_draft.finalize(library)
        assert record.entries[0].thermal_law.name == "c_H_in_H2O"

    def test_handles_shared_between_materials(self, config, library):
        records = []
        for material_id in (21, 22):
            draft = MaterialDraft(material_id, config=config)
            draft.add_nuclide("H1", 2.0, "ao", thermal_law="c_H_in_H2O")
            draft.add_nuclide("O16", 1.0, "ao")
            draft.set_density(1.0)
            records.append(draft.finalize(library))
        assert records[0].entries[0].thermal_law is records[1].entries[0].thermal_law

    def test_unknown_law(self, water_draft, library):
        water_draft.add_s_alpha_beta("c_H_in_ZrH", nuclides=["H1"])
        with pytest.raises(MissingNuclideDataError, match="c_H_in_ZrH"):
            water_draft.finalize(library)

    def test_law_matching_no_constituent(self, water_draft, library):
        water_draft.add_s_alpha_beta("c_Graphite")
        with pytest.raises(MissingNuclideDataError, match="no constituent"):
            water_draft.finalize(library)


class TestStateMachine:
    def test_success_transitions_to_finalized(self, water_draft, library):
        assert water_draft.state is MaterialState.DRAFT
        record = water_draft.finalize(library)
        assert water_draft.state is MaterialState.FINALIZED
        assert water_draft.record is record
        assert isinstance(record, MaterialRecord)

    def test_finalized_draft_rejects_changes(self, water_draft, library):
        water_draft.finalize(library)
        with pytest.raises(MaterialStateError):
            water_draft.add_nuclide("U235", 1.0, "ao")
        with pytest.raises(MaterialStateError):
            water_draft.set_density(2.0)
        with pytest.raises(MaterialStateError):
            water_draft.set_temperature(600.0)
        with pytest.raises(MaterialStateError):
            water_draft.finalize(library)

    def test_failure_keeps_draft(self, config, library):
        draft = MaterialDraft(30, config=config)
        draft.add_nuclide("H1", 1.0, "ao")
        with pytest.raises(UnderspecifiedDensityError) as excinfo:
            draft.finalize(library)
        assert draft.state is MaterialState.DRAFT
        assert draft.record is None
        assert draft.last_error is excinfo.value
        assert excinfo.value.material_id == 30

        # Still a draft: can be completed and finalized explicitly
        draft.set_density(0.07, "atom/b-cm")
        record = draft.finalize(library)
        assert draft.last_error is None
        assert record.total_atomic_density == pytest.approx(0.07)

    def test_missing_nuclide(self, config, library):
        draft = MaterialDraft(31, config=config)
        draft.add_nuclide("Pu239", 1.0, "ao")
        draft.set_density(19.8)
        with pytest.raises(MissingNuclideDataError) as excinfo:
            draft.finalize(library)
        assert excinfo.value.nuclide == "Pu239"
        assert excinfo.value.material_id == 31

    def test_duplicate_identifier(self, water_draft, library):
        with pytest.raises(DuplicateIdentifierError):
            water_draft.finalize(library, existing_ids=[1, 2])

    @pytest.mark.parametrize("material_id", [0, -3, 1.5, True, "7"])
    def test_invalid_identifier(self, config, library, material_id):
        draft = MaterialDraft(material_id, config=config)
        draft.add_nuclide("H1", 0.06, "atom/b-cm")
        with pytest.raises(InvalidPropertyError, match="identifier"):
            draft.finalize(library)

    @pytest.mark.parametrize("volume", [-2.0, float("nan")])
    def test_invalid_volume(self, water_draft, library, volume):
        water_draft.set_volume(volume)
        with pytest.raises(InvalidPropertyError, match="volume"):
            water_draft.finalize(library)

    def test_zero_volume_allowed(self, water_draft, library):
        water_draft.set_volume(0.0)
        assert water_draft.finalize(library).volume == 0.0

    def test_empty_material(self, config, library):
        with pytest.raises(InvalidConstituentError, match="no constituents"):
            MaterialDraft(32, config=config).finalize(library)

    def test_add_error_carries_material_id(self, config):
        draft = MaterialDraft(33, config=config)
        draft.add_nuclide("H1", 1.0, "ao")
        with pytest.raises(DuplicateConstituentError) as excinfo:
            draft.add_nuclide("H1", 1.0, "ao")
        assert excinfo.value.material_id == 33
        assert excinfo.value.nuclide == "H1"

    def test_merge_policy_from_config(self, library):
        draft = MaterialDraft(34, config=ResolverConfig(duplicate_policy=DuplicatePolicy.MERGE))
        draft.add_nuclide("H1", 1.0, "ao")
        draft.add_nuclide("O16", 1.0, "ao")
        draft.add_nuclide("H1", 1.0, "ao")
        draft.set_density(1.0)
        record = draft.finalize(library)
        assert_allclose(record.atom_fractions(), [2.0 / 3.0, 1.0 / 3.0], rtol=1e-12)

    def test_absolute_constituents_with_bulk_density(self, config, library):
        draft = MaterialDraft(35, config=config)
        draft.add_nuclide("H1", 0.06, "atom/b-cm")
        draft.set_density(1.0, DensityUnit.G_PER_CM3)
        with pytest.raises(InconsistentUnitMixError):
            draft.finalize(library)


class TestFromSpec:
    def test_builds_equivalent_draft(self, config, library):
        spec = MaterialSpec(
            id=40,
            name="fuel",
            density=10.4,
            density_units="g/cc",
            temperature=900.0,
            volume=12.5,
            depletable=True,
            constituents=[
                ConstituentSpec("U235", 4.5, "wo"),
                ConstituentSpec("U238", 95.5, "wo"),
            ],
        )
        record = MaterialDraft.from_spec(spec, config=config).finalize(library)
        assert record.name == "fuel"
        assert record.depletable is True
        assert record.volume == 12.5
        assert record.resolved_temperature == 900.0
        assert record.total_mass_density == pytest.approx(10.4, rel=1e-12)
        assert record.density_units is DensityUnit.G_PER_CM3


class ThreeMethodService:
    """Data service offering only molar masses, cross-section checks and one S(a,b) table."""

    MASSES = {"H1": 1.00782503223, "O16": 15.99491461957}

    def __init__(self):
        self.water_law = ThermalLawHandle("c_H_in_H2O", 294.0, ("H1",))

    def molar_mass(self, nuclide):
        try:
            return self.MASSES[nuclide]
        except KeyError:
            raise MissingNuclideDataError("unknown nuclide", nuclide=nuclide) from None

    def has_cross_sections(self, nuclide, temperature):
        return nuclide in self.MASSES and temperature == 293.6

    def thermal_scattering_law(self, nuclide, temperature):
        return self.water_law if nuclide == "H1" else None


class TestMinimalDataService:
    def test_satisfies_protocol(self):
        assert isinstance(ThreeMethodService(), NuclideDataService)

    def test_thermal_law_bound_by_name(self, config):
        service = ThreeMethodService()
        draft = MaterialDraft(50, config=config)
        draft.add_nuclide("H1", 2.0, "ao", thermal_law="c_H_in_H2O")
        draft.add_nuclide("O16", 1.0, "ao")
        draft.set_density(1.0)
        record = draft.finalize(service)
        assert record.entries[0].thermal_law is service.water_law
        assert record.entries[1].thermal_law is None

    def test_material_level_law(self, water_draft):
        water_draft.add_s_alpha_beta("c_H_in_H2O")
        record = water_draft.finalize(ThreeMethodService())
        assert record.entries[0].thermal_law.name == "c_H_in_H2O"

    def test_other_law_name_not_accepted(self, water_draft):
        water_draft.add_s_alpha_beta("c_H_in_CH2", nuclides=["H1"])
        with pytest.raises(MissingNuclideDataError, match="c_H_in_CH2") as excinfo:
            water_draft.finalize(ThreeMethodService())
        assert excinfo.value.material_id == 2
        assert excinfo.value.nuclide == "H1"
        assert water_draft.last_error is excinfo.value

    def test_nearest_without_temperature_listing(self, water_draft):
        water_draft.set_temperature(605.0)
        config = ResolverConfig(temperature_policy=TemperaturePolicy.NEAREST)
        with pytest.raises(MissingNuclideDataError, match="605") as excinfo:
            water_draft.finalize(ThreeMethodService(), config=config)
        assert excinfo.value.material_id == 2
        assert excinfo.value.nuclide == "H1"
        assert water_draft.last_error is excinfo.value
        assert water_draft.state is MaterialState.DRAFT

    def test_service_failure_recorded(self, water_draft):
        class BrokenService(ThreeMethodService):
            def molar_mass(self, nuclide):
                raise RuntimeError("data files unavailable")

        with pytest.raises(RuntimeError, match="unavailable") as excinfo:
            water_draft.finalize(BrokenService())
        assert water_draft.last_error is excinfo.value
        assert water_draft.state is MaterialState.DRAFT
