"""
Program output loaders.

Importing this package registers one loader per supported program;
``loader_for`` picks the loader for a detected ``ProgramKind``.
"""

from .base import OutputLoader
from .cp2k import Cp2kLoader
from .gamess import GamessLoader
from .gaussian import GaussianLoader, XtbLoader
from .nwchem import NWChemLoader
from .orca import OrcaLoader
from .qchem import QChemLoader
from .vasp import VaspLoader

# Dynamically collect all loader subclasses
loaders = OutputLoader.subclasses()


def loader_for(program, filename):
    """Loader instance for ``program`` reading ``filename``."""
    return OutputLoader.from_program(program, filename)


__all__ = [
    "Cp2kLoader",
    "GamessLoader",
    "GaussianLoader",
    "NWChemLoader",
    "OrcaLoader",
    "OutputLoader",
    "QChemLoader",
    "VaspLoader",
    "XtbLoader",
    "loader_for",
    "loaders",
]
