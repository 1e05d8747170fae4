"""
Geometry helpers: center of mass and inertia tensor.
"""

import logging

import numpy as np

logger = logging.getLogger(__name__)


def center_of_mass(mass, coords):
    """Mass-weighted center of a set of coordinates."""
    mass = np.asarray(mass, dtype=float)
    coords = np.asarray(coords, dtype=float)
    return np.average(coords, axis=0, weights=mass)


def calculate_moments_of_inertia(mass, coords):
    """
    Calculate the moment of inertia tensor and principal moments of inertia.

    Parameters
    ----------
    mass : array-like
        Atomic masses corresponding to each coordinate. Must have same
        length as coords array.
    coords : array-like
        Nx3 array of atomic coordinates in Cartesian space.

    Returns
    -------
    moi_tensor : np.ndarray
        3x3 moment of inertia tensor about the center of mass, in units
        of mass * length^2 of the inputs.
    evals : np.ndarray
        Principal moments of inertia sorted in ascending order.
    evecs : np.ndarray
        Principal axes as row vectors, in the order of ``evals``.
    """
    mass = np.asarray(mass, dtype=float)
    coords = np.asarray(coords, dtype=float)

    shifted_coords = coords - center_of_mass(mass, coords)

    # I = sum_k m_k (r_k^2 * 1 - r_k r_k^T)
    r2 = np.sum(shifted_coords**2, axis=1)
    moi_tensor = np.eye(3) * np.sum(mass * r2) - np.einsum(
        "k,ki,kj->ij", mass, shifted_coords, shifted_coords
    )

    evals, evecs = np.linalg.eigh(moi_tensor)
    # eigh returns columns; transpose to row vectors as in ASE
    return moi_tensor, evals, evecs.transpose()
