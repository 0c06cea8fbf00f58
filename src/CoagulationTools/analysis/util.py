from typing import Optional, Sequence, Tuple

import numpy as np
from scipy.special import gamma

from CoagulationTools.inputs.coagulation import CoagulationKinetics
from CoagulationTools.util.conversions import concentration_to_count


def additive_kernel_solution(cluster_sizes: Sequence[int], t: np.ndarray,
                             initial_concentration: float,
                             monomer_volume: float,
                             coefficient: float) -> np.ndarray:
    """
    Exact solution of the Smoluchowski equation for the additive kernel
    K(i, j) = B * V0 * (i + j), starting from monomers only.

    Args:
        cluster_sizes: the cluster sizes k to evaluate
        t: times in s
        initial_concentration: monomer concentration N0 at t=0 in cm^-3
        monomer_volume: monomer volume V0 in cm^3
        coefficient: collision frequency B in s^-1

    Returns:
        np.ndarray: (len(t), len(cluster_sizes)) array of concentrations
            in cm^-3
    """
    k = np.asarray(cluster_sizes, dtype=float)[None, :]
    t = np.asarray(t, dtype=float)[:, None]

    phi = 1 - np.exp(-coefficient * initial_concentration * monomer_volume * t)
    return (initial_concentration * (1 - phi) * np.power(k * phi, k - 1) /
            gamma(k + 1) * np.exp(-k * phi))


def constant_kernel_solution(cluster_sizes: Sequence[int], t: np.ndarray,
                             initial_concentration: float,
                             coefficient: float) -> np.ndarray:
    """
    Exact solution of the Smoluchowski equation for the constant kernel
    K(i, j) = C, starting from monomers only.

    Args:
        cluster_sizes: the cluster sizes k to evaluate
        t: times in s
        initial_concentration: monomer concentration N0 at t=0 in cm^-3
        coefficient: collision volume rate C in cm^3 s^-1

    Returns:
        np.ndarray: (len(t), len(cluster_sizes)) array of concentrations
            in cm^-3
    """
    k = np.asarray(cluster_sizes, dtype=float)[None, :]
    t = np.asarray(t, dtype=float)[:, None]

    phi = coefficient * initial_concentration * t
    return 4 * initial_concentration * np.power(phi, k - 1) / np.power(
        phi + 2, k + 1)


def get_analytical_solution(
        kinetics: CoagulationKinetics,
        t: np.ndarray,
        cluster_sizes: Optional[Sequence[int]] = None) -> np.ndarray:
    """
    The exact cluster counts for the kernel and parameters of a
    CoagulationKinetics object.

    Note: the solutions are for an untruncated system. They agree with the
    network only while clusters larger than max_cluster_size are rare.

    Args:
        kinetics: the configuration to evaluate
        t: times in s
        cluster_sizes: the cluster sizes to evaluate. Defaults to all sizes
            tracked by the network

    Returns:
        np.ndarray: (len(t), len(cluster_sizes)) array of cluster counts
    """
    if cluster_sizes is None:
        cluster_sizes = np.arange(1, kinetics.max_cluster_size + 1)

    if kinetics.kernel == 'additive':
        concentrations = additive_kernel_solution(
            cluster_sizes, t, kinetics.initial_concentration,
            kinetics.monomer_volume, kinetics.additive_coefficient)
    else:
        concentrations = constant_kernel_solution(
            cluster_sizes, t, kinetics.initial_concentration,
            kinetics.constant_coefficient)
    return concentration_to_count(concentrations, kinetics.bulk_volume)


def get_total_mass(populations: np.ndarray) -> np.ndarray:
    """
    Total number of monomer units in each state. The last axis of
    populations is the cluster size axis, starting at monomers.
    """
    populations = np.asarray(populations)
    return populations @ np.arange(1, populations.shape[-1] + 1)


def get_total_clusters(populations: np.ndarray) -> np.ndarray:
    return np.asarray(populations).sum(-1)


def average_populations(
        populations: np.ndarray) -> Tuple[np.ndarray, np.ndarray]:
    """
    Mean and standard deviation over an ensemble of trajectories.

    Args:
        populations: (num_sims, T, N) array of cluster counts

    Returns:
        Tuple[np.ndarray, np.ndarray]: the (T, N) mean and standard deviation
    """
    populations = np.asarray(populations, dtype=float)
    return populations.mean(0), populations.std(0)
