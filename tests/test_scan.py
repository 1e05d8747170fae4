import os

import numpy as np
import pytest

from openthermo.analysis.symmetry import analyze_geometry
from openthermo.analysis.thermochemistry import ThermochemistryCalculator
from openthermo.io.record import Atom, MolecularRecord
from openthermo.jobs.thermochemistry.parallel import MemoryMonitor
from openthermo.jobs.thermochemistry.postprocess import postprocess
from openthermo.jobs.thermochemistry.scan import (
    SCQ_HEADER,
    UHG_HEADER,
    ScanOrchestrator,
    format_scq_row,
    format_uhg_row,
    scan_axis,
    scan_grid,
    write_tables,
    write_vibcon,
)
from openthermo.jobs.thermochemistry.settings import (
    ThermochemistryJobSettings,
)
from openthermo.utils.utils import InvalidConfiguration, OutputWriteFailure


@pytest.fixture()
def calculator():
    """Calculator of a record with 30 vibrational modes."""
    settings = ThermochemistryJobSettings(low_vib_treatment="grimme")
    record = MolecularRecord(
        atoms=(
            Atom("O", (0.0, 0.0, 0.1173)),
            Atom("H", (0.0, 0.7572, -0.4692)),
            Atom("H", (0.0, -0.7572, -0.4692)),
        ),
        frequencies=tuple(np.linspace(25.0, 3500.0, 30)),
        energy=-76.4,
        source="many_modes.log",
    )
    record = analyze_geometry(postprocess(record, settings))
    return ThermochemistryCalculator(record, settings)


class TestScanAxis:
    def test_inclusive_range(self):
        temperatures = scan_axis(200.0, 400.0, 25.0)
        assert len(temperatures) == 9
        assert temperatures[0] == 200.0
        assert temperatures[-1] == 400.0
        assert temperatures == sorted(temperatures)

    def test_number_of_points_truncates(self):
        assert scan_axis(1.0, 2.0, 0.3) == pytest.approx([1.0, 1.3, 1.6, 1.9])

    @pytest.mark.parametrize("step", [0.0, -25.0])
    def test_step_must_be_positive(self, step):
        with pytest.raises(InvalidConfiguration):
            scan_axis(200.0, 400.0, step)

    def test_empty_range(self):
        with pytest.raises(InvalidConfiguration):
            scan_axis(400.0, 200.0, 25.0)

    def test_grid_from_settings(self):
        settings = ThermochemistryJobSettings(
            temperature_low=200.0,
            temperature_high=400.0,
            temperature_step=100.0,
            pressure=2.0,
        )
        temperatures, pressures = scan_grid(settings)
        assert temperatures == [200.0, 300.0, 400.0]
        assert pressures == [2.0]


class TestScanOrchestrator:
    def test_rows_in_grid_order(self, calculator):
        orchestrator = ScanOrchestrator(
            calculator, [200.0, 300.0], [1.0, 2.0, 3.0], threads=2
        )
        rows = orchestrator.run()
        assert [(r.temperature, r.pressure) for r in rows] == [
            (200.0, 1.0),
            (200.0, 2.0),
            (200.0, 3.0),
            (300.0, 1.0),
            (300.0, 2.0),
            (300.0, 3.0),
        ]

    def test_strategies_give_identical_tables(self, calculator):
        temperatures = scan_axis(200.0, 400.0, 25.0)
        pressures = [1.0, 5.0]
        tables = {}
        for strategy in ("points", "modes"):
            rows = ScanOrchestrator(
                calculator,
                temperatures,
                pressures,
                threads=4,
                strategy=strategy,
            ).run()
            tables[strategy] = (
                [format_uhg_row(row) for row in rows],
                [format_scq_row(row) for row in rows],
            )
        assert tables["points"] == tables["modes"]
        assert len(tables["points"][0]) == 18

    def test_serial_and_parallel_agree(self, calculator):
        temperatures = [250.0, 300.0, 350.0]
        serial = ScanOrchestrator(calculator, temperatures, [1.0]).run()
        parallel = ScanOrchestrator(
            calculator, temperatures, [1.0], threads=3
        ).run()
        assert serial == parallel

    def test_auto_strategy(self, calculator):
        assert (
            ScanOrchestrator(
                calculator, [200.0, 300.0, 400.0], [1.0], threads=2
            ).select_strategy()
            == "points"
        )
        # one point, 30 modes: at least 8 modes per thread
        assert (
            ScanOrchestrator(
                calculator, [300.0], [1.0], threads=2
            ).select_strategy()
            == "modes"
        )
        assert (
            ScanOrchestrator(
                calculator, [300.0], [1.0], threads=8
            ).select_strategy()
            == "points"
        )

    def test_unknown_strategy(self, calculator):
        with pytest.raises(InvalidConfiguration):
            ScanOrchestrator(calculator, [300.0], [1.0], strategy="random")

    def test_runs_serially_above_memory_ceiling(self, calculator, caplog):
        memory = MemoryMonitor(max_memory_mb=0)
        rows = ScanOrchestrator(
            calculator, [200.0, 300.0], [1.0], threads=2, memory=memory
        ).run()
        assert len(rows) == 2
        assert "running serially" in caplog.text
        # the reservation is released
        assert memory.current_usage == 0
        assert memory.peak_usage > 0


class TestScanOutput:
    def test_write_tables(self, calculator, tmp_path):
        temperatures = scan_axis(200.0, 400.0, 25.0)
        rows = ScanOrchestrator(calculator, temperatures, [1.0]).run()
        basename = os.path.join(str(tmp_path), "water")
        uhg, scq = write_tables(basename, rows)
        assert uhg == f"{basename}.UHG"
        assert scq == f"{basename}.SCq"
        with open(uhg) as f:
            contents = f.read()
        assert contents.startswith(UHG_HEADER)
        lines = contents[len(UHG_HEADER) :].splitlines()
        assert len(lines) == 9
        assert [float(line.split()[0]) for line in lines] == temperatures
        with open(scq) as f:
            assert f.read().startswith(SCQ_HEADER)

    def test_table_row_units(self, calculator):
        row = calculator.compute(298.15, 1.0)
        fields = format_uhg_row(row).split()
        assert float(fields[0]) == 298.15
        assert np.isclose(
            float(fields[2]), row.u_corr / 4184.0, atol=1e-3
        )
        assert np.isclose(float(fields[5]), row.u_total, atol=1e-6)
        fields = format_scq_row(row).split()
        assert np.isclose(float(fields[2]), row.entropy / 4.184, atol=1e-3)

    def test_write_failure(self, calculator, tmp_path):
        rows = [calculator.compute(298.15, 1.0)]
        basename = os.path.join(str(tmp_path), "missing", "water")
        with pytest.raises(OutputWriteFailure):
            write_tables(basename, rows)

    def test_write_vibcon(self, calculator, tmp_path):
        rows = [calculator.compute(t, 1.0) for t in (200.0, 300.0)]
        filename = write_vibcon(os.path.join(str(tmp_path), "water"), rows)
        with open(filename) as f:
            contents = f.read()
        assert contents.count("T = ") == 2
        assert "P = 1.000 atm" in contents
