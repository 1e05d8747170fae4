"""
Per-file and batch processing of thermochemistry inputs.

``process_file`` takes one input from dispatch to written output and
never raises: every failure becomes a failed ``ThermoResult`` naming the
file. ``process_batch`` runs several files on a thread pool, keeps the
results in input order and reports every failed file without stopping
the others.
"""

import logging
import os
from dataclasses import dataclass, field
from multiprocessing.pool import ThreadPool
from typing import List, Optional

from openthermo.analysis.lowfreq import make_treatment
from openthermo.analysis.symmetry import analyze_geometry
from openthermo.analysis.thermochemistry import (
    BoltzmannEnsemble,
    ThermochemistryCalculator,
)
from openthermo.io.checkpoint import checkpoint_filename, write_checkpoint
from openthermo.jobs.thermochemistry import report
from openthermo.jobs.thermochemistry.dispatcher import (
    dispatch,
    load_record,
    read_manifest,
)
from openthermo.jobs.thermochemistry.parallel import (
    ErrorCollector,
    ResourceGovernor,
)
from openthermo.jobs.thermochemistry.postprocess import postprocess
from openthermo.jobs.thermochemistry.scan import (
    ScanOrchestrator,
    scan_grid,
    write_tables,
    write_vibcon,
)
from openthermo.utils.io import ProgramKind
from openthermo.utils.utils import OutputWriteFailure, ThermochemistryError

logger = logging.getLogger(__name__)


@dataclass
class ThermoResult:
    """
    Outcome of processing one file or a batch.

    Attributes:
        success (bool): Every processed file succeeded.
        error_message (str): Failure description naming the file(s).
        output_files (list[str]): Files written by successful runs.
        exit_code (int): 0 on success, 1 on failure.
        data (list): ThermoData of each (T, P) point; for a batch, one
            entry per successful file at its first point.
        errors (list[str]): Errors collected while processing.
        warnings (list[str]): Warnings collected while processing.
        record (MolecularRecord): Analyzed record of a single file.
        source (str): Input path of a single file.
        file_results (list[ThermoResult]): Per-file results of a batch,
            in input order.
    """

    success: bool = False
    error_message: str = ""
    output_files: List[str] = field(default_factory=list)
    exit_code: int = 1
    data: list = field(default_factory=list)
    errors: List[str] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)
    record: Optional[object] = None
    source: str = ""
    file_results: list = field(default_factory=list, repr=False)

    def __post_init__(self):
        self.exit_code = 0 if self.success else 1


def _output_basename(path):
    return os.path.splitext(path)[0]


def _failed(path, message, errors=None, warnings=None, output_files=None):
    logger.error(f"Error processing {path}: {message}")
    return ThermoResult(
        success=False,
        error_message=f"Error processing {path}: {message}",
        output_files=list(output_files or []),
        errors=list(errors or [message]),
        warnings=list(warnings or []),
        source=path,
    )


def _forward(collector, governor):
    """Copy a file's warnings to the shared collector and return them."""
    warnings = collector.warnings
    for warning in warnings:
        governor.collector.add_warning(warning)
    return warnings


def _run_record(path, kind, settings, governor, collector, output_files):
    """Analyze one loaded input and write its outputs."""
    record = load_record(path, kind)
    record = postprocess(record, settings)
    record = analyze_geometry(record)
    report.log_geometry(record, settings.prtlevel)

    if settings.outotm:
        if kind == ProgramKind.CHECKPOINT:
            logger.info(f"{path} is a checkpoint; not rewriting it.")
        else:
            output_files.append(
                write_checkpoint(record, checkpoint_filename(record))
            )

    treatment = make_treatment(settings, collector)
    if settings.prtlevel >= 1:
        treatment.log_references()
    calculator = ThermochemistryCalculator(record, settings, treatment)
    basename = _output_basename(path)

    if settings.is_scan:
        temperatures, pressures = scan_grid(settings)
        threads = min(settings.threads or governor.threads, governor.threads)
        orchestrator = ScanOrchestrator(
            calculator,
            temperatures,
            pressures,
            threads=threads,
            strategy=settings.scan_strategy,
            memory=governor.memory,
        )
        rows = orchestrator.run()
        output_files.extend(write_tables(basename, rows))
    else:
        rows = [calculator.compute(settings.temperature, settings.pressure)]
        if settings.prtlevel >= 1:
            report.log_thermo(rows[0])

    if settings.prtvib == 1:
        for row in rows:
            report.log_mode_contributions(row)
    elif settings.prtvib == -1:
        output_files.append(write_vibcon(basename, rows))
    elif settings.prtlevel >= 3:
        report.log_mode_contributions(rows[0], level=logging.DEBUG)
    return record, rows


def process_file(path, settings, governor=None, cancellation=None):
    """
    Process one input file.

    A batch manifest is expanded and handed to ``process_manifest``.

    Args:
        path (str): Program output, ``.otm`` checkpoint or manifest.
        settings (ThermochemistryJobSettings): Job settings.
        governor (ResourceGovernor, optional): Shared budgets of the
            invocation; a private one is created when omitted.
        cancellation (CancellationToken, optional): Checked before the
            file is opened. Defaults to the governor's token.

    Returns:
        ThermoResult: Outcome; never raises for a failing file.
    """
    if governor is None:
        governor = ResourceGovernor(
            threads=settings.threads, memory_mb=settings.memory_mb
        )
    cancellation = cancellation or governor.cancellation
    if cancellation.cancelled:
        return _failed(path, "cancelled before processing")

    collector = ErrorCollector()
    output_files = []
    try:
        settings.validate()
        kind = dispatch(path)
        if kind == ProgramKind.MANIFEST:
            return process_manifest(path, settings, governor)
        logger.info(f"Processing {path}")
        with governor.file_handles:
            record, rows = _run_record(
                path, kind, settings, governor, collector, output_files
            )
    except ThermochemistryError as e:
        governor.collector.add_error(f"{path}: {e}")
        return _failed(
            path,
            str(e),
            warnings=_forward(collector, governor),
            output_files=output_files,
        )
    except Exception as e:
        logger.exception(f"Unexpected error while processing {path}")
        governor.collector.add_error(f"{path}: {e}")
        return _failed(
            path,
            f"Unexpected error: {e}",
            warnings=_forward(collector, governor),
            output_files=output_files,
        )

    return ThermoResult(
        success=True,
        output_files=output_files,
        data=rows,
        warnings=_forward(collector, governor),
        record=record,
        source=path,
    )


def _merge_results(paths, results):
    """One result for a batch; succeeds only if every file did."""
    error_message = ""
    output_files = []
    errors = []
    warnings = []
    for path, result in zip(paths, results):
        warnings.extend(result.warnings)
        if result.success:
            output_files.extend(result.output_files)
        else:
            message = result.errors[0] if result.errors else ""
            error_message += f"File {path}: {message}\n"
            errors.append(f"File {path}: {message}")
    return ThermoResult(
        success=not errors,
        error_message=error_message,
        output_files=output_files,
        data=[r.data[0] for r in results if r.success and r.data],
        errors=errors,
        warnings=warnings,
        file_results=list(results),
    )


def process_batch(paths, settings, governor=None):
    """
    Process several files concurrently.

    Files run on a thread pool sized by the governor; the remaining
    threads are given to each file's scan. A failing file never stops
    the batch and the outputs of successful files are kept.

    Args:
        paths (list[str]): Input files.
        settings (ThermochemistryJobSettings): Settings for every file.
        governor (ResourceGovernor, optional): Shared budgets.

    Returns:
        ThermoResult: Batch outcome with results in input order.
    """
    paths = list(paths)
    if governor is None:
        governor = ResourceGovernor(
            threads=settings.threads, memory_mb=settings.memory_mb
        )
    if not paths:
        return ThermoResult(
            success=False, error_message="No input files to process"
        )
    num_workers, inner_threads = governor.split_threads(len(paths))
    file_settings = settings.copy()
    file_settings.threads = inner_threads
    logger.info(
        f"Processing {len(paths)} files on {num_workers} threads "
        f"({inner_threads} threads per file)"
    )

    def run(path):
        return process_file(path, file_settings, governor)

    if num_workers == 1:
        results = [run(path) for path in paths]
    else:
        with ThreadPool(num_workers) as pool:
            results = pool.map(run, paths)

    result = _merge_results(paths, results)
    if result.success:
        logger.info(f"All {len(paths)} files processed successfully.")
    else:
        logger.error(
            f"{len(result.errors)} of {len(paths)} files failed:\n"
            f"{result.error_message}"
        )
    return result


def write_ensemble(filename, ensemble):
    try:
        with open(filename, "w") as f:
            f.write("\n".join(ensemble.to_lines()) + "\n")
    except OSError as e:
        raise OutputWriteFailure(
            f"Cannot write ensemble file {filename}: {e}"
        ) from e
    logger.info(f"Boltzmann ensemble written to {filename}")
    return filename


def process_manifest(path, settings, governor=None):
    """
    Process the files listed in a manifest at a single (T, P) point and
    write their Boltzmann-weighted summary to ``<manifest>.ensemble``.
    """
    try:
        paths = read_manifest(path)
    except ThermochemistryError as e:
        return _failed(path, str(e))
    ensemble_settings = settings.copy()
    if settings.is_scan:
        logger.warning(
            "Temperature and pressure scans are not applied to the files "
            f"of manifest {path}; using T = {settings.temperature} K and "
            f"P = {settings.pressure} atm."
        )
        ensemble_settings.temperature_step = 0.0
        ensemble_settings.pressure_step = 0.0
    result = process_batch(paths, ensemble_settings, governor)
    members = [r for r in result.file_results if r.success and r.data]
    if not members:
        return result
    ensemble = BoltzmannEnsemble(
        [r.source for r in members], [r.data[0] for r in members]
    )
    for line in ensemble.to_lines():
        logger.info(line)
    try:
        result.output_files.append(
            write_ensemble(f"{_output_basename(path)}.ensemble", ensemble)
        )
    except OutputWriteFailure as e:
        logger.error(str(e))
        result.success = False
        result.exit_code = 1
        result.error_message += f"File {path}: {e}\n"
        result.errors.append(f"File {path}: {e}")
    return result
