from math import pi

import numpy as np
from typing import Union


def radius_to_volume(radius: float) -> float:
    """
    Convert the radius of a spherical particle to its volume.

    Args:
        radius: The radius of the particle in cm

    Returns:
        The volume of the particle in cm^3
    """
    return (4 * pi / 3) * radius**3


def volume_fraction_to_concentration(volume_fraction: float,
                                     monomer_volume: float) -> float:
    """
    Convert the volume fraction occupied by monomers into a number
    concentration.

    Args:
        volume_fraction: The fraction of the bulk volume occupied by monomers
        monomer_volume: The volume of a single monomer in cm^3

    Returns:
        The number concentration of monomers in cm^-3
    """
    return volume_fraction / monomer_volume


def count_to_concentration(
        count: Union[float, np.ndarray],
        bulk_volume: float) -> Union[float, np.ndarray]:
    """
    Convert a number of particles into a number concentration.

    Args:
        count: The number of particles
        bulk_volume: The bulk volume of the system in cm^3

    Returns:
        The number concentration in cm^-3
    """
    return np.asarray(count) / bulk_volume


def concentration_to_count(
        concentration: Union[float, np.ndarray],
        bulk_volume: float) -> Union[float, np.ndarray]:
    """
    Convert a number concentration into a number of particles.

    Args:
        concentration: The number concentration in cm^-3
        bulk_volume: The bulk volume of the system in cm^3

    Returns:
        The number of particles
    """
    return np.asarray(concentration) * bulk_volume
