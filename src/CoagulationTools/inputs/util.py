from math import factorial
from typing import Dict, List, Sequence, Tuple

import numpy as np

from CoagulationTools.inputs.network import Reaction


def get_num_reactions(max_cluster_size: int) -> int:
    """
    Closed form for the number of coagulation reactions between clusters
    whose combined size does not exceed max_cluster_size.
    """
    if max_cluster_size < 2:
        return 0
    n = max_cluster_size // 2
    if max_cluster_size % 2 == 0:
        return n * (n + 1) - n
    else:
        return n * (n + 1)


def get_reactant_pairs(max_cluster_size: int) -> np.ndarray:
    """
    Enumerate every pair of cluster sizes (i, j), i <= j, that can coagulate
    into a cluster no larger than max_cluster_size.

    The pairs are grouped by the size of the product (i + j), and ordered by
    i within each group. Each unordered pair appears exactly once.

    Args:
        max_cluster_size (int): The largest cluster size tracked

    Returns:
        np.ndarray: (n_reactions, 2) array of reactant cluster sizes
    """
    pairs = []
    for product_size in range(2, max_cluster_size + 1):
        for i in range(1, product_size // 2 + 1):
            pairs.append((i, product_size - i))
    return np.array(pairs, dtype=int).reshape(-1, 2)


def get_species(max_cluster_size: int) -> Dict[int, dict]:
    species = {}
    for i in range(max_cluster_size):
        species[i] = {'species_id': i, 'cluster_size': i + 1}
    return species


def get_initial_populations(max_cluster_size: int,
                            initial_monomer_count: int) -> np.ndarray:
    """
    All of the mass starts as monomers, every larger cluster starts empty.
    """
    initial_populations = np.zeros(max_cluster_size, dtype=int)
    initial_populations[0] = initial_monomer_count
    return initial_populations


def get_symmetry_factor(reactants: Sequence[Tuple[int, int]],
                        combinatoric_ratelaws: bool = True) -> float:
    """
    Multiplier for the rate law of a reaction.

    With combinatoric rate laws the rate is divided by the factorial of each
    stoichiometric coefficient, so a collision between two clusters of the
    same size proceeds at k * x^2 / 2 (deterministic) and k * n * (n - 1) / 2
    (stochastic).

    Args:
        reactants: Pairs of (cluster size, stoichiometric coefficient)
        combinatoric_ratelaws: Whether to apply the factorial correction

    Returns:
        float: the symmetry factor
    """
    if not combinatoric_ratelaws:
        return 1.0
    return 1.0 / np.prod([factorial(coeff) for _, coeff in reactants])


def get_coagulation_reactions(
        pairs: np.ndarray,
        rate_constants: np.ndarray,
        combinatoric_ratelaws: bool = True) -> List[Reaction]:
    """
    Assemble one reaction per reactant pair.

    A collision of two clusters of the same size i consumes two of them
    (2 X_i --> X_2i). A collision of different sizes consumes one of each
    (X_i + X_j --> X_i+j). The kernel rate constant is used unchanged.

    Args:
        pairs (np.ndarray): (n, 2) array of reactant cluster sizes
        rate_constants (np.ndarray): kernel rate constant of each pair
        combinatoric_ratelaws (bool): Whether to scale self collisions by 1/2

    Returns:
        List[Reaction]: the coagulation reactions
    """
    pairs = np.asarray(pairs, dtype=int).reshape(-1, 2)
    rate_constants = np.asarray(rate_constants, dtype=float).reshape(-1)
    if len(pairs) != len(rate_constants):
        raise ValueError(
            f'Expected one rate constant per pair. Received {len(pairs)} '
            f'pairs and {len(rate_constants)} rate constants')

    reactions = []
    for reaction_id, ((i, j), rate) in enumerate(zip(pairs, rate_constants)):
        if i == j:
            reactants = [(i, 2)]
        else:
            reactants = [(i, 1), (j, 1)]
        products = [(i + j, 1)]

        reactions.append(
            Reaction(reaction_id,
                     reactants,
                     products,
                     rate,
                     symmetry_factor=get_symmetry_factor(
                         reactants, combinatoric_ratelaws)))
    return reactions

