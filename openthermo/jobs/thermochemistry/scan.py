"""
Temperature and pressure scans.

``ScanOrchestrator`` evaluates a calculator over a (T, P) grid, either
computing grid points concurrently or computing points one after the
other while splitting the vibrational modes of each point into chunks
evaluated concurrently. Both give the same numbers; only the order of
work differs. Rows are always returned in grid order, temperature
outer and pressure inner, and written to ``<basename>.UHG`` and
``<basename>.SCq``.
"""

import logging

import numpy as np
from joblib import Parallel, delayed

from openthermo.analysis.lowfreq import ModeContributions
from openthermo.analysis.thermochemistry import ThermoData
from openthermo.utils.utils import InvalidConfiguration, OutputWriteFailure

logger = logging.getLogger(__name__)

# smallest chunk of modes worth a thread of its own
MIN_MODES_PER_CHUNK = 8
# ModeContributions holds seven float64 arrays
BYTES_PER_MODE = 7 * 8

UHG_HEADER = (
    "Ucorr, Hcorr and Gcorr are in kcal/mol; U, H and G are in a.u.\n\n"
    "     T(K)      P(atm)  Ucorr     Hcorr     Gcorr            U"
    "                H                G\n"
)
SCQ_HEADER = (
    "S, CV and CP are in cal/mol/K; q(V=0)/NA and q(bot)/NA are "
    "unitless\n\n"
    "    T(K)       P(atm)    S         CV        CP        q(V=0)/NA"
    "      q(bot)/NA\n"
)
VIBCON_HEADER = (
    " Mode  Freq(cm^-1)  ZPE(kcal/mol)  U(T)-U(0)(kcal/mol)"
    "  S(cal/mol/K)  CV(cal/mol/K)\n"
)


def scan_axis(low, high, step):
    """
    Grid values from ``low`` to ``high`` inclusive.

    The number of points is int((high - low) / step) + 1.

    Raises:
        InvalidConfiguration: If ``step`` is not positive.
    """
    if step <= 0:
        raise InvalidConfiguration(
            f"Scan step must be positive, got {step} (range {low} to {high})"
        )
    num_points = int((high - low) / step) + 1
    if num_points < 1:
        raise InvalidConfiguration(
            f"Empty scan range: from {low} to {high} with step {step}"
        )
    return [low + i * step for i in range(num_points)]


def scan_grid(settings):
    """
    Temperatures and pressures of the run.

    An axis without a step holds the single temperature or pressure of
    the settings.
    """
    if settings.temperature_step != 0:
        temperatures = scan_axis(
            settings.temperature_low,
            settings.temperature_high,
            settings.temperature_step,
        )
    else:
        temperatures = [settings.temperature]
    if settings.pressure_step != 0:
        pressures = scan_axis(
            settings.pressure_low,
            settings.pressure_high,
            settings.pressure_step,
        )
    else:
        pressures = [settings.pressure]
    return temperatures, pressures


class ScanOrchestrator:
    """
    Evaluate a calculator over a (T, P) grid.

    Args:
        calculator (ThermochemistryCalculator): Calculator of one record.
        temperatures (list[float]): Temperatures in K.
        pressures (list[float]): Pressures in atm.
        threads (int): Thread budget of this scan.
        strategy (str): "points", "modes" or "auto".
        memory (MemoryMonitor, optional): Memory budget; a scan whose
            per-mode results do not fit runs serially.
    """

    STRATEGIES = ("auto", "points", "modes")

    def __init__(
        self,
        calculator,
        temperatures,
        pressures,
        threads=1,
        strategy="auto",
        memory=None,
    ):
        if strategy not in self.STRATEGIES:
            raise InvalidConfiguration(
                f"Unknown scan strategy: {strategy}. Choose from "
                f"{list(self.STRATEGIES)}"
            )
        self.calculator = calculator
        self.temperatures = list(temperatures)
        self.pressures = list(pressures)
        self.threads = max(1, int(threads))
        self.strategy = strategy
        self.memory = memory

    @property
    def grid(self):
        return [(t, p) for t in self.temperatures for p in self.pressures]

    @property
    def num_points(self):
        return len(self.temperatures) * len(self.pressures)

    @property
    def estimated_bytes(self):
        return self.num_points * max(1, self.calculator.num_modes) * (
            BYTES_PER_MODE
        )

    def select_strategy(self):
        """
        Strategy used by ``run``.

        ``auto`` parallelizes over grid points when there are at least as
        many points as threads, over mode chunks when every thread gets a
        reasonable chunk of modes, and over points otherwise.
        """
        if self.strategy != "auto":
            return self.strategy
        if self.num_points >= self.threads:
            return "points"
        if self.calculator.num_modes >= self.threads * MIN_MODES_PER_CHUNK:
            return "modes"
        return "points"

    def _workers(self):
        if self.memory is None:
            return self.threads
        if not self.memory.can_allocate(self.estimated_bytes):
            logger.warning(
                "Scan results exceed the memory ceiling; running serially."
            )
            return 1
        return self.threads

    def _run_points(self, n_jobs):
        return Parallel(n_jobs=n_jobs, backend="threading")(
            delayed(self.calculator.compute)(t, p) for t, p in self.grid
        )

    def _chunked_modes(self, temperature, n_jobs):
        wavenumbers = self.calculator.wavenumbers
        num_chunks = max(
            1, min(n_jobs, len(wavenumbers) // MIN_MODES_PER_CHUNK)
        )
        chunks = np.array_split(wavenumbers, num_chunks)
        parts = Parallel(n_jobs=n_jobs, backend="threading")(
            delayed(self.calculator.mode_contributions)(temperature, chunk)
            for chunk in chunks
        )
        return ModeContributions.concatenate(parts)

    def _run_modes(self, n_jobs):
        rows = []
        for t in self.temperatures:
            # mode contributions do not depend on pressure
            modes = self._chunked_modes(t, n_jobs)
            for p in self.pressures:
                rows.append(self.calculator.compute(t, p, modes=modes))
        return rows

    def run(self):
        """
        Returns:
            list[ThermoData]: One entry per grid point, in grid order.
        """
        strategy = self.select_strategy()
        n_jobs = self._workers()
        logger.info(
            f"Scanning {self.num_points} (T, P) points with strategy "
            f"'{strategy}' on {n_jobs} threads"
        )
        if self.memory is None:
            return self._run(strategy, n_jobs)
        with self.memory.reserve(self.estimated_bytes):
            return self._run(strategy, n_jobs)

    def _run(self, strategy, n_jobs):
        if strategy == "modes":
            return self._run_modes(n_jobs)
        return self._run_points(n_jobs)


def format_uhg_row(data):
    return (
        f"{data.temperature:10.3f}{data.pressure:10.3f}"
        f"{ThermoData.to_kcal_per_mol(data.u_corr):10.3f}"
        f"{ThermoData.to_kcal_per_mol(data.h_corr):10.3f}"
        f"{ThermoData.to_kcal_per_mol(data.g_corr):10.3f}"
        f"{data.u_total:17.6f}{data.h_total:17.6f}{data.g_total:17.6f}\n"
    )


def format_scq_row(data):
    return (
        f"{data.temperature:10.3f}{data.pressure:10.3f}"
        f"{ThermoData.to_cal_per_mol_k(data.entropy):10.3f}"
        f"{ThermoData.to_cal_per_mol_k(data.cv):10.3f}"
        f"{ThermoData.to_cal_per_mol_k(data.cp):10.3f}"
        f"{data.q_v0_per_molecule:16.6e}{data.q_bot_per_molecule:16.6e}\n"
    )


def _write(filename, header, lines):
    try:
        with open(filename, "w") as f:
            f.write(header)
            f.writelines(lines)
    except OSError as e:
        raise OutputWriteFailure(
            f"Failed to create scanning output file {filename}: {e}"
        ) from e


def write_tables(basename, rows):
    """
    Write ``<basename>.UHG`` and ``<basename>.SCq``.

    Args:
        basename (str): Output path without extension.
        rows (list[ThermoData]): Scan results in grid order.

    Returns:
        list[str]: Paths of the written files.

    Raises:
        OutputWriteFailure: If a file cannot be written.
    """
    uhg_filename = f"{basename}.UHG"
    scq_filename = f"{basename}.SCq"
    _write(uhg_filename, UHG_HEADER, [format_uhg_row(row) for row in rows])
    _write(scq_filename, SCQ_HEADER, [format_scq_row(row) for row in rows])
    logger.info(
        f"Thermochemical properties at {len(rows)} (T, P) points written "
        f"to {uhg_filename} and {scq_filename}"
    )
    return [uhg_filename, scq_filename]


def format_mode_rows(modes):
    """Per-mode contribution lines in kcal/mol and cal/mol/K."""
    lines = []
    for i in range(modes.num_modes):
        lines.append(
            f"{i + 1:5d}{modes.wavenumbers[i]:13.2f}"
            f"{ThermoData.to_kcal_per_mol(modes.zpe[i]):15.6f}"
            f"{ThermoData.to_kcal_per_mol(modes.thermal_energy[i]):21.6f}"
            f"{ThermoData.to_cal_per_mol_k(modes.entropy[i]):14.6f}"
            f"{ThermoData.to_cal_per_mol_k(modes.heat_capacity[i]):15.6f}\n"
        )
    return lines


def write_vibcon(basename, rows):
    """
    Write the contribution of every vibrational mode at each (T, P)
    point to ``<basename>.vibcon``.
    """
    filename = f"{basename}.vibcon"
    lines = []
    for row in rows:
        lines.append(
            f"\nT = {row.temperature:.3f} K, P = {row.pressure:.3f} atm\n"
        )
        lines.append(VIBCON_HEADER)
        lines.extend(format_mode_rows(row.modes))
    _write(filename, "Contributions of individual vibrational modes\n", lines)
    logger.info(f"Vibrational mode contributions written to {filename}")
    return filename
