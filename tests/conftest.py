import os
import textwrap

import pytest

from openthermo.jobs.thermochemistry.settings import (
    ThermochemistryJobSettings,
)

############ Synthetic program outputs ##################
# Water at a B3LYP-like geometry; frequencies in cm^-1.
WATER_FREQUENCIES = [1595.1234, 3657.4321, 3756.2222]
WATER_ENERGY = -76.4089533


def gaussian_output(
    atoms,
    frequencies,
    energy=WATER_ENERGY,
    multiplicity=1,
    masses=None,
    banner="Entering Gaussian System, Link 0=g16",
):
    """Minimal Gaussian 16 log with the sections the loader reads."""
    lines = [
        f" {banner}",
        " Gaussian 16:  ES64L-G16RevC.01  3-Jul-2019",
        f" Charge =  0 Multiplicity = {multiplicity}",
        "                         Standard orientation:",
        " " + "-" * 69,
        " Center     Atomic      Atomic             Coordinates (Angstroms)",
        " Number     Number       Type             X           Y           Z",
        " " + "-" * 69,
    ]
    for i, (number, x, y, z) in enumerate(atoms):
        lines.append(
            f" {i + 1:6d} {number:10d} {0:11d} {x:15.6f} {y:11.6f} {z:11.6f}"
        )
    lines.append(" " + "-" * 69)
    lines.append(
        f" SCF Done:  E(RB3LYP) =  {energy:.7f}     A.U. after   10 cycles"
    )
    if frequencies:
        lines.append(
            " Harmonic frequencies (cm**-1), IR intensities (KM/Mole), "
            "Raman scattering"
        )
        for start in range(0, len(frequencies), 3):
            chunk = frequencies[start : start + 3]
            lines.append(
                " " * 20
                + "".join(f"{start + j + 1:23d}" for j in range(len(chunk)))
            )
            lines.append(
                " Frequencies -- " + "".join(f"{f:23.4f}" for f in chunk)
            )
            lines.append(
                " Red. masses -- " + "".join(f"{1.08:23.4f}" for _ in chunk)
            )
    lines.append(" - Thermochemistry -")
    lines.append(" Temperature   298.150 Kelvin.  Pressure   1.00000 Atm.")
    if masses:
        for i, ((number, *_), mass) in enumerate(zip(atoms, masses)):
            lines.append(
                f" Atom {i + 1:5d} has atomic number {number:2d} and mass "
                f"{mass:10.5f}"
            )
    lines.append(" Normal termination of Gaussian 16")
    return "\n".join(lines) + "\n"


WATER_ATOMS = [
    (8, 0.000000, 0.000000, 0.117300),
    (1, 0.000000, 0.757200, -0.469200),
    (1, 0.000000, -0.757200, -0.469200),
]
H2_ATOMS = [
    (1, 0.000000, 0.000000, 0.371500),
    (1, 0.000000, 0.000000, -0.371500),
]
HE_ATOMS = [(2, 0.000000, 0.000000, 0.000000)]


def write_file(directory, name, contents):
    path = os.path.join(str(directory), name)
    with open(path, "w") as f:
        f.write(contents)
    return path


@pytest.fixture()
def gaussian_water_output(tmp_path):
    return write_file(
        tmp_path,
        "water.log",
        gaussian_output(
            WATER_ATOMS,
            WATER_FREQUENCIES,
            masses=[15.99491, 1.00783, 1.00783],
        ),
    )


@pytest.fixture()
def gaussian_h2_output(tmp_path):
    return write_file(
        tmp_path,
        "h2.log",
        gaussian_output(H2_ATOMS, [4416.8], energy=-1.1795),
    )


@pytest.fixture()
def gaussian_he_output(tmp_path):
    return write_file(
        tmp_path, "he.log", gaussian_output(HE_ATOMS, [], energy=-2.9070)
    )


@pytest.fixture()
def gaussian_triplet_o2_output(tmp_path):
    return write_file(
        tmp_path,
        "o2.log",
        gaussian_output(
            [(8, 0.0, 0.0, 0.6035), (8, 0.0, 0.0, -0.6035)],
            [1642.3],
            energy=-150.3201,
            multiplicity=3,
        ),
    )


@pytest.fixture()
def gaussian_malformed_output(tmp_path):
    """Gaussian banner, but a coordinate that is not a number."""
    contents = gaussian_output(WATER_ATOMS, WATER_FREQUENCIES).replace(
        "0.757200", "0.75x200", 1
    )
    return write_file(tmp_path, "broken.log", contents)


@pytest.fixture()
def gaussian_no_atoms_output(tmp_path):
    return write_file(
        tmp_path, "empty.log", gaussian_output([], [], energy=-1.0)
    )


@pytest.fixture()
def xtb_g98_output(tmp_path):
    contents = gaussian_output(
        WATER_ATOMS, WATER_FREQUENCIES, banner="xtb version 6.6.1"
    )
    # g98.out written by xtb holds no SCF energy
    contents = "\n".join(
        line for line in contents.splitlines() if "SCF Done" not in line
    )
    return write_file(tmp_path, "g98.out", contents + "\n")


ORCA_WATER = textwrap.dedent(
    """\
                                 *****************
                                 * O   R   C   A *
                                 *****************

    Your ORCA version: 5.0.4
     Multiplicity           Mult            ....    1

    ---------------------------------
    CARTESIAN COORDINATES (ANGSTROEM)
    ---------------------------------
      O      0.000000    0.000000    0.117300
      H      0.000000    0.757200   -0.469200
      H      0.000000   -0.757200   -0.469200

    ----------------------------
    CARTESIAN COORDINATES (A.U.)
    ----------------------------
      NO LB      ZA    FRAG     MASS         X           Y           Z
       0 O     8.0000    0    15.999    0.000000    0.000000    0.221665
       1 H     1.0000    0     1.008    0.000000    1.430901   -0.886659
       2 H     1.0000    0     1.008    0.000000   -1.430901   -0.886659

    -------------------------   --------------------
    FINAL SINGLE POINT ENERGY       -76.408953300000
    -------------------------   --------------------

    -----------------------
    VIBRATIONAL FREQUENCIES
    -----------------------

    Scaling factor for frequencies =  1.000000000 (already applied!)

       0:         0.00 cm**-1
       1:         0.00 cm**-1
       2:         0.00 cm**-1
       3:         0.00 cm**-1
       4:         0.00 cm**-1
       5:         0.00 cm**-1
       6:      1595.12 cm**-1
       7:      3657.43 cm**-1
       8:      3756.22 cm**-1

    ------------
    NORMAL MODES
    ------------
    """
)


@pytest.fixture()
def orca_water_output(tmp_path):
    return write_file(tmp_path, "water_orca.out", ORCA_WATER)


@pytest.fixture()
def orca_energy_only_output(tmp_path):
    """Frequency section is corrupt; the energy is still usable."""
    contents = ORCA_WATER.replace("1595.12 cm**-1", "****** cm**-1")
    return write_file(tmp_path, "water_sp.out", contents)


NWCHEM_WATER = textwrap.dedent(
    """\
     Northwest Computational Chemistry Package (NWChem) 7.0.2

     Output coordinates in angstroms (scale by  1.889725989 to convert)

      No.  Tag   Charge        X             Y             Z
     ---- ----- -------- ------------- ------------- -------------
        1 O       8.0000    0.00000000    0.00000000    0.11730000
        2 H       1.0000    0.00000000    0.75720000   -0.46920000
        3 H       1.0000    0.00000000   -0.75720000   -0.46920000

          Spin multiplicity:     1

          Total DFT energy =      -76.408953300000

     Atom information
     -------------------------------------------------------------
        atom  #       X             Y             Z          mass
     -------------------------------------------------------------
        O     1  0.00000D+00  0.00000D+00  2.21665D-01  1.5994910D+01
        H     2  0.00000D+00  1.43090D+00 -8.86659D-01  1.0078250D+00
        H     3  0.00000D+00 -1.43090D+00 -8.86659D-01  1.0078250D+00
     -------------------------------------------------------------

             (Projected Frequencies expressed in cm-1)

                  1         2         3         4         5         6

     P.Frequency  0.00      0.00      0.00      0.00      0.00      0.00

                  7         8         9

     P.Frequency  1595.12   3657.43   3756.22
    """
)


@pytest.fixture()
def nwchem_water_output(tmp_path):
    return write_file(tmp_path, "water_nwchem.out", NWCHEM_WATER)


QCHEM_WATER = textwrap.dedent(
    """\
                      Welcome to Q-Chem
         A Quantum Leap Into The Future Of Chemistry

    $molecule
    0 1
    O  0.000000  0.000000  0.117300
    H  0.000000  0.757200 -0.469200
    H  0.000000 -0.757200 -0.469200
    $end

                 Standard Nuclear Orientation (Angstroms)
        I     Atom           X                Y                Z
     ----------------------------------------------------------------
        1      O       0.0000000000     0.0000000000     0.1173000000
        2      H       0.0000000000     0.7572000000    -0.4692000000
        3      H       0.0000000000    -0.7572000000    -0.4692000000
     ----------------------------------------------------------------
     Total energy in the final basis set =      -76.4089533000

     ****************************************************************
     **                  VIBRATIONAL ANALYSIS                      **
     ****************************************************************
    VIBRATIONAL ANALYSIS

     Mode:                 1                2                3
     Frequency:      1595.12          3657.43          3756.22

     Element O Has Mass 15.99491
     Element H Has Mass 1.00783
     Element H Has Mass 1.00783
    """
)


@pytest.fixture()
def qchem_water_output(tmp_path):
    return write_file(tmp_path, "water_qchem.out", QCHEM_WATER)


# Water transition-state-like output: one imaginary mode (120.50 I)
# and modes 2 to 7 taken as translations and rotations.
GAMESS_WATER_TS = textwrap.dedent(
    """\
          ******************************************************
          *         GAMESS VERSION = 30 SEP 2021 (R2)          *
          ******************************************************

     SPIN MULTIPLICITY                =    1

     ATOM      ATOMIC                      COORDINATES (BOHR)
               CHARGE         X                   Y                   Z
     O           8.0         0.0000000000        0.0000000000    0.2216650000
     H           1.0         0.0000000000        1.4309010000   -0.8866590000
     H           1.0         0.0000000000       -1.4309010000   -0.8866590000

          FINAL R-B3LYP ENERGY IS      -76.4089533000 AFTER  10 ITERATIONS

     ATOMIC WEIGHTS (AMU)

        1     O                15.99491
        2     H                 1.00783
        3     H                 1.00783

          FREQUENCIES IN CM**-1, IR INTENSITIES IN DEBYE**2/AMU-ANGSTROM**2

     MODES 2 TO 7 ARE TAKEN AS ROTATIONS AND TRANSLATIONS.

                            1           2           3           4           5
       FREQUENCY:       120.50 I      3.10        2.20        1.10        0.50
                            6           7           8           9
       FREQUENCY:         0.40        0.90     3657.43     3756.22
    """
)


@pytest.fixture()
def gamess_water_ts_output(tmp_path):
    return write_file(tmp_path, "water_gamess.log", GAMESS_WATER_TS)


CP2K_WATER = textwrap.dedent(
    """\
     CP2K| version string:                               CP2K version 9.1
     DFT| Multiplicity                                                  1

     MODULE QUICKSTEP: ATOMIC COORDINATES IN angstrom

      Atom Kind Element     X          Y          Z        Z(eff)    Mass

         1    1 O     8  0.000000   0.000000   0.117300   6.0000  15.9994
         2    2 H     1  0.000000   0.757200  -0.469200   1.0000   1.0079
         3    2 H     1  0.000000  -0.757200  -0.469200   1.0000   1.0079

     ENERGY| Total FORCE_EVAL ( QS ) energy [a.u.]:        -17.153497310000

     VIB|Frequency (cm^-1)      1595.120000      3657.430000      3756.220000
    """
)


@pytest.fixture()
def cp2k_water_output(tmp_path):
    return write_file(tmp_path, "water_cp2k.out", CP2K_WATER)


# CO in a box with one spurious imaginary mode.
VASP_CO = textwrap.dedent(
    """\
     vasp.6.3.0 18Jan22 (build Feb 01 2022 11:32:43) complex
     POTCAR:    PAW_PBE C 08Apr2002
     POTCAR:    PAW_PBE O 08Apr2002
       VRHFIN =C: s2p2
       POMASS =   12.011; ZVAL   =    4.000    mass and valenz
       VRHFIN =O: s2p4
       POMASS =   16.000; ZVAL   =    6.000    mass and valenz
       ions per type =               1   1
     number of electron       10.0000000 magnetization       0.0000000

     POSITION                                       TOTAL-FORCE (eV/Angst)
     ------------------------------------------------------------------
          5.00000      5.00000      4.43500     0.000000  0.000000  0.0012
          5.00000      5.00000      5.56500     0.000000  0.000000 -0.0012
     ------------------------------------------------------------------

       free  energy   TOTEN  =       -14.80310000 eV

     Eigenvectors and eigenvalues of the dynamical matrix
     ----------------------------------------------------

       1 f  =  63.890000 THz  401.433 2PiTHz 2131.170000 cm-1  264.231 meV
       2 f/i=   0.120000 THz    0.754 2PiTHz    4.002743 cm-1    0.496 meV

     Eigenvectors after division by SQRT(mass)
    """
)


@pytest.fixture()
def vasp_co_output(tmp_path):
    return write_file(tmp_path, "OUTCAR", VASP_CO)


@pytest.fixture()
def unknown_output(tmp_path):
    return write_file(
        tmp_path, "notes.log", "Nothing to see here.\nJust text.\n"
    )


############ Settings ##################
@pytest.fixture()
def thermo_settings():
    """Defaults with console output kept short."""
    return ThermochemistryJobSettings(prtlevel=0, threads=1)
