import numpy as np
import pytest

from openthermo.io.record import Atom, ElectronicLevel, MolecularRecord
from openthermo.jobs.thermochemistry.dispatcher import load_record
from openthermo.jobs.thermochemistry.postprocess import (
    apply_external_energy,
    apply_imagreal,
    apply_masses,
    default_electronic_levels,
    postprocess,
)
from openthermo.jobs.thermochemistry.settings import (
    ThermochemistryJobSettings,
)
from openthermo.utils.utils import InvalidConfiguration


@pytest.fixture()
def water_record():
    return MolecularRecord(
        atoms=(
            Atom("O", (0.0, 0.0, 0.1173)),
            Atom("H", (0.0, 0.7572, -0.4692)),
            Atom("H", (0.0, -0.7572, -0.4692)),
        ),
        frequencies=(-30.0, -250.0, 1595.1, 3657.4, 3756.2),
        energy=-76.4,
        multiplicity=1,
        source="water.log",
    )


class TestMasses:
    def test_element_average(self, water_record):
        record = apply_masses(water_record, 1)
        assert np.allclose(record.masses, [15.999, 1.008, 1.008], atol=1e-3)

    def test_most_abundant_isotope(self, water_record):
        record = apply_masses(water_record, 2)
        assert np.allclose(
            record.masses, [15.9949146, 1.0078250, 1.0078250], atol=1e-6
        )

    def test_file_masses_kept(self, gaussian_water_output):
        record = apply_masses(load_record(gaussian_water_output), 3)
        assert np.allclose(record.masses, [15.99491, 1.00783, 1.00783])

    def test_file_masses_missing_fall_back(self, water_record, caplog):
        record = apply_masses(water_record, 3)
        assert np.allclose(record.masses, [15.999, 1.008, 1.008], atol=1e-3)
        assert "No atomic masses found" in caplog.text

    def test_unknown_mass_mode(self, water_record):
        with pytest.raises(InvalidConfiguration):
            apply_masses(water_record, 7)


class TestElectronicLevels:
    def test_ground_level_degeneracy_is_multiplicity(self, water_record):
        triplet = water_record.replace(multiplicity=3)
        record = default_electronic_levels(triplet)
        assert record.electronic_levels == (ElectronicLevel(0.0, 3),)

    def test_existing_levels_kept(self, water_record):
        levels = (ElectronicLevel(0.0, 2), ElectronicLevel(0.1, 2))
        record = default_electronic_levels(
            water_record.replace(electronic_levels=levels)
        )
        assert record.electronic_levels == levels

    def test_degeneracy_must_be_positive(self):
        with pytest.raises(ValueError):
            ElectronicLevel(0.0, 0)


class TestOverrides:
    def test_external_energy_replaces_energy(self, water_record):
        assert apply_external_energy(water_record, -76.5).energy == -76.5
        assert apply_external_energy(water_record, 0.0).energy == -76.4

    def test_imagreal_threshold(self, water_record):
        record = apply_imagreal(water_record, 50.0)
        assert record.frequencies == (30.0, -250.0, 1595.1, 3657.4, 3756.2)
        assert record.num_imaginary == 1

    def test_imagreal_disabled(self, water_record):
        assert apply_imagreal(water_record, 0.0) is water_record


class TestPostprocess:
    def test_postprocess_applies_settings(self, water_record, caplog):
        settings = ThermochemistryJobSettings(
            mass_mode=2,
            external_energy=-76.0,
            imagreal=40.0,
            point_group="c2v",
        )
        record = postprocess(water_record, settings)
        assert record.energy == -76.0
        assert record.point_group_hint == "c2v"
        assert record.electronic_levels == (ElectronicLevel(0.0, 1),)
        assert record.num_imaginary == 1
        assert "imaginary frequencies" in caplog.text
        # the loaded record is not modified
        assert water_record.energy == -76.4
        assert water_record.atoms[0].mass is None
