import numpy as np
from typing import Callable, Union

ArrayLike = Union[float, np.ndarray]


def additive_kernel(volume_i: ArrayLike, volume_j: ArrayLike,
                    bulk_volume: float, coefficient: float) -> ArrayLike:
    """
    Collision rate proportional to the combined volume of the two clusters.

    The rate is divided by the bulk volume since coagulation is a
    bi-molecular reaction and the network is written in terms of counts.

    Args:
        volume_i (float, np.array): volume of the first cluster in cm^3
        volume_j (float, np.array): volume of the second cluster in cm^3
        bulk_volume (float): bulk volume of the system in cm^3
        coefficient (float): collision frequency constant B in s^-1

    Returns:
        (float, np.array): rate constant in s^-1
    """
    return coefficient * (volume_i + volume_j) / bulk_volume


def constant_kernel(volume_i: ArrayLike, volume_j: ArrayLike,
                    bulk_volume: float, coefficient: float) -> ArrayLike:
    """
    Size independent collision rate.

    Args:
        volume_i (float, np.array): volume of the first cluster in cm^3
        volume_j (float, np.array): volume of the second cluster in cm^3
        bulk_volume (float): bulk volume of the system in cm^3
        coefficient (float): collision volume rate C in cm^3 s^-1

    Returns:
        (float, np.array): rate constant in s^-1
    """
    return np.full(np.broadcast(volume_i, volume_j).shape,
                   coefficient / bulk_volume)


KERNELS = {'additive': additive_kernel, 'constant': constant_kernel}


def get_kernel(kernel: str) -> Callable:
    """
    Resolve a kernel name to the kernel function.

    Args:
        kernel (str): one of 'additive' or 'constant'

    Returns:
        Callable: the kernel function
    """
    try:
        return KERNELS[kernel.lower()]
    except (KeyError, AttributeError):
        raise ValueError(f'Unrecognized kernel {kernel!r}. '
                         f'Expected one of {list(KERNELS.keys())}')


def get_rate_constants(pairs: np.ndarray, monomer_volume: float,
                       bulk_volume: float, kernel: str,
                       coefficient: float) -> np.ndarray:
    """
    Evaluate the kernel for every reactant pair.

    Args:
        pairs (np.ndarray): (n, 2) array of reactant cluster sizes
        monomer_volume (float): volume of a monomer in cm^3
        bulk_volume (float): bulk volume of the system in cm^3
        kernel (str): the name of the kernel law
        coefficient (float): the kernel specific constant (B or C)

    Returns:
        np.ndarray: the rate constant of each pair, in s^-1
    """
    kernel_fn = get_kernel(kernel)

    if not monomer_volume > 0 or not np.isfinite(monomer_volume):
        raise ValueError(f'Invalid monomer volume {monomer_volume}')
    if not bulk_volume > 0 or not np.isfinite(bulk_volume):
        raise ValueError(f'Invalid bulk volume {bulk_volume}')
    if not np.isfinite(coefficient) or coefficient < 0:
        raise ValueError(f'Kernel coefficient must be finite and non-negative, '
                         f'received {coefficient}')

    pairs = np.asarray(pairs, dtype=int).reshape(-1, 2)
    volume_i = monomer_volume * pairs[:, 0]
    volume_j = monomer_volume * pairs[:, 1]
    rates = np.asarray(kernel_fn(volume_i, volume_j, bulk_volume, coefficient),
                       dtype=float)

    invalid = ~np.isfinite(rates) | (rates < 0)
    if np.any(invalid):
        i, j = pairs[np.argmax(invalid)]
        raise ValueError(f'Kernel produced an invalid rate for pair ({i}, {j})')

    return rates
