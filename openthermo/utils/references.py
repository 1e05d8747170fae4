"""
Reference strings and citations for the low-frequency treatments.

Printed in the run summary when the matching treatment is active.
"""

qrrho_header = (
    "   "
    + "-" * 78
    + "\n"
    + "   "
    + " " * 17
    + "Quasi-Rigid-Rotor-Harmonic-Oscillator Scheme"
    + "\n"
    + "   "
    + "-" * 78
    + "\n"
)

head_gordon_damping_function_ref = (
    "   - Damping function: Chai and Head-Gordon\n"
    + "     REF: Chai, J.-D.; Head-Gordon, M. Phys. Chem. Chem. Phys. 2008, 10, 6615-6620\n"
)

grimme_quasi_rrho_entropy_ref = (
    "   - Grimme's quasi-RRHO entropy:\n"
    + "     REF: Grimme, S. Chem. Eur. J. 2012, 18, 9955-9964\n"
)

truhlar_quasi_rrho_entropy_ref = (
    "   - Truhlar's raised low frequencies:\n"
    + "     REF: Ribeiro, R. F.; Marenich, A. V.; Cramer, C. J; Truhlar, D. G. J. Phys. Chem. B 2011, 115, 14556-14562\n"
)

minenkov_quasi_rrho_ref = (
    "   - Minenkov's interpolation of entropy and internal energy:\n"
    + "     REF: Minenkov, Y. et al.\n"
)

head_gordon_quasi_rrho_enthalpy_ref = (
    "   - Head-Gordon's quasi-RRHO enthalpy:\n"
    + "     REF: Li, Y.; Gomes, J.; Sharada, S. M.; Bell, A. T.; Head-Gordon, M. J. Phys. Chem. C 2015, 119, 1840-1850\n"
)
