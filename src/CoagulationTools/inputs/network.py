from collections import namedtuple
from typing import List, Optional, Sequence, Tuple

import numpy as np
from monty.json import MSONable

from CoagulationTools.util.conversions import count_to_concentration

JumpChannel = namedtuple('JumpChannel', [
    'reactant_indices', 'product_indices', 'reactant_stoich', 'product_stoich',
    'rate_constant', 'symmetry_factor'
])


class Reaction(MSONable):
    """
    Class to represent a single coagulation reaction.

    The rate constant is the one produced by the kernel and is never modified.
    The identical particle correction lives in the symmetry factor, which is
    set once when the network is assembled. The deterministic rate law is
    ``rate_constant * symmetry_factor * prod(x_s ** c_s)`` and the propensity
    is ``rate_constant * symmetry_factor * prod(n_s! / (n_s - c_s)!)``.

    Args:
        reaction_id (int): Index of the reaction in the network
        reactants (Sequence[Tuple[int, int]]): Pairs of
            (cluster size, stoichiometric coefficient)
        products (Sequence[Tuple[int, int]]): Pairs of
            (cluster size, stoichiometric coefficient)
        rate_constant (float): The rate constant in s^-1
        symmetry_factor (float): Multiplier applied to the rate law. 0.5 for
            collisions between identical clusters when combinatoric rate laws
            are used, 1 otherwise.
    """

    def __init__(self,
                 reaction_id: int,
                 reactants: Sequence[Tuple[int, int]],
                 products: Sequence[Tuple[int, int]],
                 rate_constant: float,
                 symmetry_factor: Optional[float] = 1.0):
        self.reaction_id = int(reaction_id)
        self.reactants = tuple((int(size), int(coeff)) for size, coeff in reactants)
        self.products = tuple((int(size), int(coeff)) for size, coeff in products)
        self.rate_constant = float(rate_constant)
        self.symmetry_factor = float(symmetry_factor)

    @property
    def reactant_mass(self) -> int:
        """
        Total number of monomer units consumed by the reaction.
        """
        return sum([size * coeff for size, coeff in self.reactants])

    @property
    def product_mass(self) -> int:
        """
        Total number of monomer units produced by the reaction.
        """
        return sum([size * coeff for size, coeff in self.products])

    @property
    def order(self) -> int:
        return sum([coeff for _, coeff in self.reactants])

    @property
    def is_self_collision(self) -> bool:
        return len(self.reactants) == 1 and self.reactants[0][1] == 2

    @property
    def rate_expression(self) -> str:
        terms = [
            f'X{size}' if coeff == 1 else f'X{size}^{coeff}'
            for size, coeff in self.reactants
        ]
        if self.symmetry_factor != 1:
            terms.insert(0, f'{self.symmetry_factor:g}')
        return '*'.join([f'k{self.reaction_id}'] + terms)

    def _key(self) -> tuple:
        return (self.reaction_id, self.reactants, self.products,
                self.rate_constant, self.symmetry_factor)

    def __eq__(self, other) -> bool:
        if not isinstance(other, Reaction):
            return NotImplemented
        return self._key() == other._key()

    def __hash__(self) -> int:
        return hash(self._key())

    def __str__(self) -> str:

        def _side(species):
            return ' + '.join([
                f'X{size}' if coeff == 1 else f'{coeff}X{size}'
                for size, coeff in species
            ])

        return (f'{_side(self.reactants)} --> {_side(self.products)} '
                f'({self.rate_constant})')

    def __repr__(self) -> str:
        return self.__str__()


class ReactionNetwork(MSONable):
    """
    An immutable coagulation network: the reactions between clusters of size
    1..N along with the initial cluster counts.

    The network is validated on construction, so a ReactionNetwork either
    exists completely or raises. Every reaction must be a bimolecular
    collision between tracked clusters that conserves the number of monomer
    units.

    Args:
        reactions (Sequence[Reaction]): The reactions, ordered by reaction_id
        max_cluster_size (int): The largest cluster size tracked
        initial_populations (Sequence[int]): The count of each cluster size
            at t=0. Index 0 is the monomer.
        bulk_volume (float): The bulk volume of the system in cm^3. Used to
            convert between counts and concentrations.
    """

    def __init__(self,
                 reactions: Sequence[Reaction],
                 max_cluster_size: int,
                 initial_populations: Sequence[int],
                 bulk_volume: Optional[float] = 1.0):
        if max_cluster_size < 1:
            raise ValueError(
                f'max_cluster_size must be at least 1, received {max_cluster_size}')
        if not bulk_volume > 0 or not np.isfinite(bulk_volume):
            raise ValueError(f'Invalid bulk volume {bulk_volume}')

        initial_populations = np.array(initial_populations)
        if initial_populations.shape != (max_cluster_size, ):
            raise ValueError(
                f'Supplied population is invalid. Expected length of '
                f'{max_cluster_size}, received shape '
                f'{initial_populations.shape}')
        if np.any(initial_populations < 0) or np.any(
                initial_populations != np.round(initial_populations)):
            raise ValueError(
                'Initial populations must be non-negative integers')

        for reaction in reactions:
            self._check_reaction(reaction, max_cluster_size)

        self.reactions = tuple(reactions)
        self.max_cluster_size = int(max_cluster_size)
        self.bulk_volume = float(bulk_volume)

        self.initial_populations = initial_populations.astype(int)
        self.initial_populations.setflags(write=False)

        n_reactions = len(self.reactions)
        self._rate_constants = np.array(
            [reaction.rate_constant for reaction in self.reactions],
            dtype=float)
        self._symmetry_factors = np.array(
            [reaction.symmetry_factor for reaction in self.reactions],
            dtype=float)

        # 0-indexed species of the two colliding clusters. For a self
        # collision both entries point to the same species.
        self._collision_indices = np.zeros((n_reactions, 2), dtype=int)
        reactant_matrix = np.zeros((n_reactions, self.max_cluster_size),
                                   dtype=int)
        product_matrix = np.zeros((n_reactions, self.max_cluster_size),
                                  dtype=int)
        for n, reaction in enumerate(self.reactions):
            indices = []
            for size, coeff in reaction.reactants:
                indices.extend([size - 1] * coeff)
                reactant_matrix[n, size - 1] += coeff
            for size, coeff in reaction.products:
                product_matrix[n, size - 1] += coeff
            self._collision_indices[n] = indices

        self._self_collision = (self._collision_indices[:, 0] ==
                                self._collision_indices[:, 1]).astype(int)
        self._scaled_rate_constants = (self._rate_constants *
                                       self._symmetry_factors)

        self.reactant_matrix = reactant_matrix
        self.product_matrix = product_matrix
        self.stoichiometry_matrix = product_matrix - reactant_matrix
        for array in (self._rate_constants, self._symmetry_factors,
                      self._collision_indices, self._scaled_rate_constants,
                      self.reactant_matrix, self.product_matrix,
                      self.stoichiometry_matrix):
            array.setflags(write=False)

    @staticmethod
    def _check_reaction(reaction: Reaction, max_cluster_size: int):
        if reaction.order != 2:
            raise ValueError(
                f'Reaction {reaction} is not a collision between two clusters')
        sizes = [size for size, _ in reaction.reactants + reaction.products]
        if min(sizes) < 1 or max(sizes) > max_cluster_size:
            raise ValueError(
                f'Reaction {reaction} involves an untracked cluster size')
        if reaction.reactant_mass != reaction.product_mass:
            raise ValueError(
                f'Reaction {reaction} does not conserve the number of monomers')
        if not np.isfinite(reaction.rate_constant) or reaction.rate_constant < 0:
            raise ValueError(
                f'Reaction {reaction} has an invalid rate constant')
        if not reaction.symmetry_factor > 0:
            raise ValueError(
                f'Reaction {reaction} has an invalid symmetry factor')

    @property
    def species(self) -> Tuple[int]:
        """
        The cluster sizes tracked by the network, in population order.
        """
        return tuple(range(1, self.max_cluster_size + 1))

    @property
    def n_species(self) -> int:
        return self.max_cluster_size

    @property
    def n_reactions(self) -> int:
        return len(self.reactions)

    @property
    def rate_constants(self) -> np.ndarray:
        return self._rate_constants

    @property
    def symmetry_factors(self) -> np.ndarray:
        return self._symmetry_factors

    @property
    def initial_concentrations(self) -> np.ndarray:
        """
        The initial number concentration of each cluster size in cm^-3.
        """
        return count_to_concentration(self.initial_populations,
                                      self.bulk_volume)

    @property
    def concentration_rate_constants(self) -> np.ndarray:
        """
        Rate constants of the deterministic form in cm^3 s^-1, for rate laws
        written in number concentrations. The kernel rate constants act on
        counts, so they are scaled back up by the bulk volume.
        """
        return self._rate_constants * self.bulk_volume

    @property
    def rate_expressions(self) -> List[Tuple[str, str]]:
        """
        Named mass action rate laws of the deterministic form, one per
        reaction. ``k{n}`` refers to ``concentration_rate_constants[n]`` and
        ``X{s}`` to the number concentration of clusters of size s, so the
        expressions pair with ``initial_concentrations``.
        """
        return [(f'r{reaction.reaction_id}', reaction.rate_expression)
                for reaction in self.reactions]

    @property
    def jump_channels(self) -> List[JumpChannel]:
        """
        The discrete form of the network. Species indices are 0-indexed
        positions in the population vector.

        The propensity of a channel is
        ``rate_constant * symmetry_factor * prod(n! / (n - stoich)!)``
        over its reactants.
        """
        channels = []
        for reaction in self.reactions:
            channels.append(
                JumpChannel(
                    reactant_indices=tuple(
                        [size - 1 for size, _ in reaction.reactants]),
                    product_indices=tuple(
                        [size - 1 for size, _ in reaction.products]),
                    reactant_stoich=tuple(
                        [coeff for _, coeff in reaction.reactants]),
                    product_stoich=tuple(
                        [coeff for _, coeff in reaction.products]),
                    rate_constant=reaction.rate_constant,
                    symmetry_factor=reaction.symmetry_factor))
        return channels

    def reaction_rates(self, populations: np.ndarray) -> np.ndarray:
        """
        Evaluate the deterministic mass action rate of every reaction.

        Args:
            populations (np.ndarray): continuous cluster counts

        Returns:
            np.ndarray: the rate of each reaction in events/s
        """
        populations = np.asarray(populations, dtype=float)
        i, j = self._collision_indices.T
        return self._scaled_rate_constants * populations[i] * populations[j]

    def concentration_reaction_rates(self,
                                     concentrations: np.ndarray) -> np.ndarray:
        """
        Evaluate the rate expressions for number concentrations.

        Args:
            concentrations (np.ndarray): cluster concentrations in cm^-3

        Returns:
            np.ndarray: the rate of each reaction in cm^-3 s^-1
        """
        concentrations = np.asarray(concentrations, dtype=float)
        i, j = self._collision_indices.T
        return (self._scaled_rate_constants * self.bulk_volume *
                concentrations[i] * concentrations[j])

    def propensities(self, populations: np.ndarray) -> np.ndarray:
        """
        Evaluate the propensity of every reaction channel for an integer
        state. Collisions between identical clusters use n * (n - 1), so a
        channel with a single cluster has no propensity.

        Args:
            populations (np.ndarray): integer cluster counts

        Returns:
            np.ndarray: the propensity of each channel in 1/s
        """
        populations = np.asarray(populations)
        i, j = self._collision_indices.T
        return self._scaled_rate_constants * populations[i] * (
            populations[j] - self._self_collision)

    def as_dict(self) -> dict:
        return {
            '@module': self.__class__.__module__,
            '@class': self.__class__.__name__,
            'reactions': [reaction.as_dict() for reaction in self.reactions],
            'max_cluster_size': self.max_cluster_size,
            'initial_populations': self.initial_populations.tolist(),
            'bulk_volume': self.bulk_volume
        }

    @classmethod
    def from_dict(cls, d: dict) -> 'ReactionNetwork':
        reactions = [Reaction.from_dict(reaction) for reaction in d['reactions']]
        return cls(reactions, d['max_cluster_size'], d['initial_populations'],
                   d['bulk_volume'])

    def __eq__(self, other) -> bool:
        if not isinstance(other, ReactionNetwork):
            return NotImplemented
        return (self.reactions == other.reactions
                and self.max_cluster_size == other.max_cluster_size
                and self.bulk_volume == other.bulk_volume
                and np.array_equal(self.initial_populations,
                                   other.initial_populations))

    def __hash__(self) -> int:
        return hash((self.reactions, self.max_cluster_size, self.bulk_volume,
                     tuple(self.initial_populations.tolist())))


def dNdt_from_populations(populations: np.ndarray, t: float,
                          network: ReactionNetwork) -> np.ndarray:
    """
    Right hand side of the mean-field rate equations, in the argument order
    expected by scipy.integrate.odeint.
    """
    return network.reaction_rates(populations) @ network.stoichiometry_matrix


def dCdt_from_concentrations(concentrations: np.ndarray, t: float,
                             network: ReactionNetwork) -> np.ndarray:
    """
    Rate equations written in number concentrations. Integrating from
    network.initial_concentrations gives the populations divided by the
    bulk volume.
    """
    return (network.concentration_reaction_rates(concentrations)
            @ network.stoichiometry_matrix)
