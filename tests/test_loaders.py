import os

import numpy as np
import pytest

from openthermo.io.loaders import (
    Cp2kLoader,
    GamessLoader,
    GaussianLoader,
    NWChemLoader,
    OrcaLoader,
    QChemLoader,
    VaspLoader,
    XtbLoader,
    loader_for,
)
from openthermo.utils.constants import bohr_to_angstrom
from openthermo.utils.io import ProgramKind
from openthermo.utils.utils import LoadFailure

WATER_SYMBOLS = ["O", "H", "H"]


class TestGaussianLoader:
    def test_reads_water(self, gaussian_water_output):
        record = GaussianLoader(gaussian_water_output).load()
        assert record.program == ProgramKind.GAUSSIAN
        assert record.symbols == WATER_SYMBOLS
        assert record.num_atoms == 3
        assert np.allclose(record.positions[1], [0.0, 0.7572, -0.4692])
        assert np.isclose(record.energy, -76.4089533)
        assert record.multiplicity == 1
        assert np.allclose(
            record.frequencies, [1595.1234, 3657.4321, 3756.2222]
        )
        assert record.source == gaussian_water_output

    def test_reads_masses_printed_in_file(self, gaussian_water_output):
        record = GaussianLoader(gaussian_water_output).load()
        assert record.has_file_masses
        assert np.allclose(record.masses, [15.99491, 1.00783, 1.00783])

    def test_no_masses_printed(self, gaussian_h2_output):
        record = GaussianLoader(gaussian_h2_output).load()
        assert not record.has_file_masses
        assert record.symbols == ["H", "H"]

    def test_triplet_multiplicity(self, gaussian_triplet_o2_output):
        record = GaussianLoader(gaussian_triplet_o2_output).load()
        assert record.multiplicity == 3

    def test_single_atom_has_no_frequencies(self, gaussian_he_output):
        record = GaussianLoader(gaussian_he_output).load()
        assert record.symbols == ["He"]
        assert record.frequencies == ()

    def test_malformed_coordinate_raises_load_failure(
        self, gaussian_malformed_output
    ):
        with pytest.raises(LoadFailure) as excinfo:
            GaussianLoader(gaussian_malformed_output).load()
        assert gaussian_malformed_output in str(excinfo.value)


class TestXtbLoader:
    def test_missing_energy_defaults_to_zero(self, xtb_g98_output, caplog):
        record = XtbLoader(xtb_g98_output).load()
        assert record.program == ProgramKind.XTB
        assert record.energy == 0.0
        assert len(record.frequencies) == 3
        assert "No electronic energy" in caplog.text


class TestOrcaLoader:
    def test_reads_water(self, orca_water_output):
        record = OrcaLoader(orca_water_output).load()
        assert record.symbols == WATER_SYMBOLS
        assert np.isclose(record.energy, -76.4089533)
        # zero translational and rotational entries are dropped
        assert np.allclose(record.frequencies, [1595.12, 3657.43, 3756.22])
        assert np.allclose(record.masses, [15.999, 1.008, 1.008])

    def test_falls_back_to_energy_only(self, orca_energy_only_output, caplog):
        record = OrcaLoader(orca_energy_only_output).load()
        assert record.frequencies == ()
        assert np.isclose(record.energy, -76.4089533)
        assert record.num_atoms == 3
        assert "without frequencies" in caplog.text


class TestNWChemLoader:
    def test_reads_water(self, nwchem_water_output):
        record = NWChemLoader(nwchem_water_output).load()
        assert record.symbols == WATER_SYMBOLS
        assert np.isclose(record.energy, -76.4089533)
        assert np.allclose(record.frequencies, [1595.12, 3657.43, 3756.22])
        # Fortran D exponents
        assert np.allclose(record.masses, [15.99491, 1.007825, 1.007825])


class TestQChemLoader:
    def test_reads_water(self, qchem_water_output):
        record = QChemLoader(qchem_water_output).load()
        assert record.symbols == WATER_SYMBOLS
        assert np.isclose(record.energy, -76.4089533)
        assert record.multiplicity == 1
        assert np.allclose(record.frequencies, [1595.12, 3657.43, 3756.22])
        assert np.allclose(record.masses, [15.99491, 1.00783, 1.00783])


class TestGamessLoader:
    def test_imaginary_mode_is_negative(self, gamess_water_ts_output):
        record = GamessLoader(gamess_water_ts_output).load()
        assert record.symbols == WATER_SYMBOLS
        # modes 2-7 are translations and rotations
        assert np.allclose(record.frequencies, [-120.50, 3657.43, 3756.22])
        assert record.num_imaginary == 1

    def test_bohr_coordinates_converted(self, gamess_water_ts_output):
        record = GamessLoader(gamess_water_ts_output).load()
        assert np.isclose(
            record.positions[1][1], 1.4309010 * bohr_to_angstrom
        )
        assert np.isclose(record.energy, -76.4089533)


class TestCp2kLoader:
    def test_reads_water(self, cp2k_water_output):
        record = Cp2kLoader(cp2k_water_output).load()
        assert record.symbols == WATER_SYMBOLS
        assert np.isclose(record.energy, -17.15349731)
        assert np.allclose(record.frequencies, [1595.12, 3657.43, 3756.22])
        assert np.allclose(record.masses, [15.9994, 1.0079, 1.0079])


class TestVaspLoader:
    def test_reads_co(self, vasp_co_output):
        record = VaspLoader(vasp_co_output).load()
        assert record.symbols == ["C", "O"]
        assert np.allclose(record.positions[1], [5.0, 5.0, 5.565])
        assert np.isclose(record.energy, -14.8031 / 27.211386, rtol=1e-5)
        assert record.multiplicity == 1
        assert np.allclose(record.frequencies, [2131.17, -4.002743])
        assert np.allclose(record.masses, [12.011, 16.0])


class TestLoaderRegistry:
    @pytest.mark.parametrize(
        "program, loader_cls",
        [
            (ProgramKind.GAUSSIAN, GaussianLoader),
            (ProgramKind.XTB, XtbLoader),
            (ProgramKind.ORCA, OrcaLoader),
            (ProgramKind.GAMESS, GamessLoader),
            (ProgramKind.NWCHEM, NWChemLoader),
            (ProgramKind.CP2K, Cp2kLoader),
            (ProgramKind.VASP, VaspLoader),
            (ProgramKind.QCHEM, QChemLoader),
        ],
    )
    def test_loader_for_program(self, program, loader_cls, tmp_path):
        filename = os.path.join(str(tmp_path), "any.out")
        assert type(loader_for(program, filename)) is loader_cls

    def test_no_loader_for_checkpoint(self, tmp_path):
        with pytest.raises(LoadFailure):
            loader_for(ProgramKind.CHECKPOINT, str(tmp_path / "a.otm"))
