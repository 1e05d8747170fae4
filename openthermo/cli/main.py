"""CLI interface for openthermo."""

import functools
import logging
import os
import signal

import click

from openthermo.cli.logger import logger_options, setup_logging
from openthermo.jobs.thermochemistry import report
from openthermo.jobs.thermochemistry.parallel import ResourceGovernor
from openthermo.jobs.thermochemistry.runner import (
    process_batch,
    process_file,
)
from openthermo.jobs.thermochemistry.settings import (
    SCAN_STRATEGIES,
    ThermochemistryJobSettings,
)
from openthermo.utils.cluster import thread_env_request
from openthermo.utils.io import find_output_files_in_directory
from openthermo.utils.utils import InvalidConfiguration

logger = logging.getLogger(__name__)

SETTINGS_FILENAME = "settings.yaml"
DISCOVERED_SUFFIXES = (".log", ".out", ".output")
TREATMENTS = ("harmonic", "truhlar", "grimme", "minenkov", "headgordon")


def click_thermochemistry_options(f):
    """
    Settings options. Every option defaults to None so that only the
    options given on the command line override ``settings.yaml``.
    """

    @click.option(
        "-T",
        "--temperature",
        default=None,
        type=float,
        help="Temperature in Kelvin.  [default: 298.15]",
    )
    @click.option(
        "-P",
        "--pressure",
        default=None,
        type=float,
        help="Pressure in atm.  [default: 1.0]",
    )
    @click.option(
        "--temperature-scan",
        default=None,
        nargs=3,
        type=float,
        help="Temperature scan: LOW HIGH STEP in Kelvin.",
    )
    @click.option(
        "--pressure-scan",
        default=None,
        nargs=3,
        type=float,
        help="Pressure scan: LOW HIGH STEP in atm.",
    )
    @click.option(
        "--scale-zpe",
        default=None,
        type=float,
        help="Frequency scale factor for the ZPE.",
    )
    @click.option(
        "--scale-heat",
        default=None,
        type=float,
        help="Frequency scale factor for U(T)-U(0).",
    )
    @click.option(
        "--scale-entropy",
        default=None,
        type=float,
        help="Frequency scale factor for S(T) and q.",
    )
    @click.option(
        "--scale-cv",
        default=None,
        type=float,
        help="Frequency scale factor for CV.",
    )
    @click.option(
        "-l",
        "--low-vib-treatment",
        default=None,
        type=click.Choice(TREATMENTS, case_sensitive=False),
        help="Treatment of low-frequency modes.  [default: harmonic]",
    )
    @click.option(
        "--ravib",
        default=None,
        type=float,
        help="Frequencies below this value (cm^-1) are raised to it in "
        "Truhlar's treatment.",
    )
    @click.option(
        "--intpvib",
        default=None,
        type=float,
        help="Interpolation threshold (cm^-1) of the Grimme, Minenkov and "
        "Head-Gordon treatments.",
    )
    @click.option(
        "--bav",
        "bav_preset",
        default=None,
        type=click.Choice(["grimme", "qchem"], case_sensitive=False),
        help="Average moment of inertia preset of the free rotor; only the "
        "Head-Gordon treatment honors 'qchem'.",
    )
    @click.option(
        "--hg-energy/--no-hg-energy",
        default=None,
        help="Damp the ZPE and U of low modes in the Head-Gordon treatment.",
    )
    @click.option(
        "--ipmode",
        default=None,
        type=click.IntRange(0, 1),
        help="1 ignores translation and rotation (condensed phase).",
    )
    @click.option(
        "--imagreal",
        default=None,
        type=float,
        help="Treat imaginary frequencies with |v| below this value "
        "(cm^-1) as real.",
    )
    @click.option(
        "--mass-mode",
        default=None,
        type=click.IntRange(1, 3),
        help="Atomic masses: 1 element average, 2 most abundant isotope, "
        "3 read from the output file.",
    )
    @click.option(
        "--point-group",
        default=None,
        type=str,
        help="Expected point group, e.g. C2v.",
    )
    @click.option(
        "--outotm/--no-outotm",
        default=None,
        help="Write a .otm checkpoint of each input.",
    )
    @click.option(
        "--prtvib",
        default=None,
        type=click.IntRange(-1, 1),
        help="Per-mode contributions: 1 to the log, -1 to <basename>.vibcon.",
    )
    @click.option(
        "-E",
        "--external-energy",
        default=None,
        type=float,
        help="Electronic energy in Hartree replacing the loaded energy.",
    )
    @click.option(
        "-n",
        "--threads",
        default=None,
        type=click.IntRange(min=0),
        help="Number of threads, 0 for automatic.",
    )
    @click.option(
        "--memory",
        "memory_mb",
        default=None,
        type=click.IntRange(min=0),
        help="Memory ceiling in MB, 0 for automatic.",
    )
    @click.option(
        "--scan-strategy",
        default=None,
        type=click.Choice(SCAN_STRATEGIES, case_sensitive=False),
        help="Parallelize scans over grid points or over modes.",
    )
    @click.option(
        "--no-settings",
        is_flag=True,
        default=False,
        help=f"Ignore {SETTINGS_FILENAME} in the working directory.",
    )
    @functools.wraps(f)
    def wrapper_common_options(*args, **kwargs):
        return f(*args, **kwargs)

    return wrapper_common_options


def settings_from_options(options, no_settings=False, directory="."):
    """
    Settings from ``settings.yaml`` (unless disabled) overridden by the
    options given on the command line.
    """
    settings_file = os.path.join(directory, SETTINGS_FILENAME)
    if not no_settings and os.path.isfile(settings_file):
        logger.info(f"Reading settings from {settings_file}")
        settings = ThermochemistryJobSettings.from_yaml(settings_file)
    else:
        settings = ThermochemistryJobSettings()

    overrides = {}
    temperature_scan = options.pop("temperature_scan", None)
    if temperature_scan:
        low, high, step = temperature_scan
        overrides.update(
            temperature_low=low, temperature_high=high, temperature_step=step
        )
    pressure_scan = options.pop("pressure_scan", None)
    if pressure_scan:
        low, high, step = pressure_scan
        overrides.update(
            pressure_low=low, pressure_high=high, pressure_step=step
        )
    overrides.update({k: v for k, v in options.items() if v is not None})
    if overrides:
        settings = settings.merge(overrides)
    if not settings.threads:
        settings.threads = thread_env_request()
    return settings


@click.command(name="openthermo")
@click.argument("filenames", nargs=-1, type=click.Path())
@click_thermochemistry_options
@logger_options
@click.pass_context
def entry_point(
    ctx, filenames, no_settings, debug, stream, logfile, prtlevel, **options
):
    """
    Statistical thermochemistry from quantum chemistry output files.

    FILENAMES are Gaussian, ORCA, GAMESS-US, NWChem, CP2K, VASP, xtb or
    Q-Chem output files, .otm checkpoints or .list/.txt manifests. Without
    FILENAMES, all .log, .out and .output files in the working directory
    are processed.

    Examples:
    `openthermo water.log -T 373.15`
    prints the thermochemistry of water at 373.15 K.

    `openthermo water.log --temperature-scan 200 400 25`
    writes water.UHG and water.SCq with 9 temperatures.
    """
    if prtlevel is not None:
        options["prtlevel"] = prtlevel
    setup_logging(
        debug=debug,
        stream=stream,
        logfile=logfile,
        prtlevel=prtlevel if prtlevel is not None else 1,
    )
    try:
        settings = settings_from_options(options, no_settings=no_settings)
        settings.validate()
    except InvalidConfiguration as e:
        raise click.BadParameter(str(e)) from e
    setup_logging(
        debug=debug, stream=stream, logfile=logfile, prtlevel=settings.prtlevel
    )
    report.log_parameters(settings)

    filenames = list(filenames)
    if not filenames:
        filenames = find_output_files_in_directory(
            os.getcwd(), suffixes=DISCOVERED_SUFFIXES
        )
        if not filenames:
            raise click.UsageError(
                "No input files given and no .log/.out/.output files found "
                "in the working directory."
            )
        logger.info(f"Found {len(filenames)} output files to process")

    governor = ResourceGovernor(
        threads=settings.threads, memory_mb=settings.memory_mb
    )

    def cancel(signum, frame):
        logger.warning("Interrupted; remaining files will be skipped.")
        governor.cancellation.cancel()

    previous_handler = signal.signal(signal.SIGINT, cancel)
    try:
        if len(filenames) == 1:
            result = process_file(filenames[0], settings, governor)
        else:
            result = process_batch(filenames, settings, governor)
    finally:
        signal.signal(signal.SIGINT, previous_handler)

    for warning in result.warnings:
        logger.debug(f"Warning: {warning}")
    if result.success:
        for output_file in result.output_files:
            logger.info(f"Written: {output_file}")
    else:
        click.echo(result.error_message, err=True)
    ctx.exit(result.exit_code)


def main():  # pragma: no cover
    """
    Entry point of the `$ openthermo` console script.
    """
    entry_point(obj={})


if __name__ == "__main__":  # pragma: no cover
    main()
