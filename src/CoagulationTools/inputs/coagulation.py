import warnings
from typing import List, Optional, Sequence, Union

import numpy as np
from monty.json import MSONable
from scipy.integrate import odeint

from CoagulationTools.inputs.kernels import get_kernel, get_rate_constants
from CoagulationTools.inputs.network import (ReactionNetwork,
                                             dNdt_from_populations)
from CoagulationTools.inputs.util import (get_coagulation_reactions,
                                          get_initial_populations,
                                          get_reactant_pairs, get_species)
from CoagulationTools.util.constants import (
    ADDITIVE_KERNEL_COEFFICIENT, CONSTANT_KERNEL_COEFFICIENT,
    INITIAL_MONOMER_COUNT, KERNEL_TIME_SPANS, MAX_CLUSTER_SIZE,
    MONOMER_RADIUS_CGS, MONOMER_VOLUME_FRACTION, NUM_SAVE_POINTS)
from CoagulationTools.util.conversions import (
    radius_to_volume, volume_fraction_to_concentration)


def _is_finite(value) -> bool:
    try:
        return bool(np.isfinite(value))
    except TypeError:
        return False


def _check_positive(name: str, value: float):
    if not _is_finite(value) or not value > 0:
        raise ValueError(
            f'{name} must be finite and positive, received {value!r}')


def _check_non_negative(name: str, value: float):
    if not _is_finite(value) or value < 0:
        raise ValueError(
            f'{name} must be finite and non-negative, received {value!r}')


def _check_positive_integer(name: str, value: int):
    if not _is_finite(value) or int(value) != value or value < 1:
        raise ValueError(
            f'{name} must be a positive integer, received {value!r}')


class CoagulationKinetics(MSONable):
    """
    Discrete Smoluchowski coagulation of monomers into clusters of up to
    max_cluster_size monomer units.

    The object holds the configuration. The reaction network is built from
    it the first time it is requested and is never modified afterwards.

    REFERENCES:
        (1) Smoluchowski, M. Versuch einer mathematischen Theorie der
            Koagulationskinetik kolloider Lösungen.
            Z. Phys. Chem. 1917, 92, 129–168.
        (2) Gillespie, D. T. The Stochastic Coalescence Model for Cloud
            Droplet Growth. J. Atmos. Sci. 1972, 29, 1496–1510.
    """

    def __init__(self,
                 max_cluster_size: int = MAX_CLUSTER_SIZE,
                 kernel: str = 'additive',
                 monomer_radius: float = MONOMER_RADIUS_CGS,
                 monomer_volume_fraction: float = MONOMER_VOLUME_FRACTION,
                 initial_monomer_count: int = INITIAL_MONOMER_COUNT,
                 additive_coefficient: float = ADDITIVE_KERNEL_COEFFICIENT,
                 constant_coefficient: float = CONSTANT_KERNEL_COEFFICIENT,
                 combinatoric_ratelaws: bool = True):
        """
        :param max_cluster_size: the largest cluster size tracked. Collisions
            that would form a larger cluster are not part of the network
        :param kernel: the collision kernel, 'additive' or 'constant'
        :param monomer_radius: radius of a monomer in cm
        :param monomer_volume_fraction: fraction of the bulk volume occupied by
            monomers at t=0. Sets the initial monomer concentration
        :param initial_monomer_count: number of monomers at t=0. Together with
            the concentration this sets the bulk volume
        :param additive_coefficient: collision frequency B of the additive
            kernel in s^-1
        :param constant_coefficient: collision volume rate C of the constant
            kernel in cm^3 s^-1
        :param combinatoric_ratelaws: scale the rate of collisions between
            identical clusters by 1/2
        """
        _check_positive_integer('max_cluster_size', max_cluster_size)
        get_kernel(kernel)
        _check_positive('monomer_radius', monomer_radius)
        _check_positive('monomer_volume_fraction', monomer_volume_fraction)
        if not monomer_volume_fraction < 1:
            raise ValueError(
                f'Invalid monomer volume fraction {monomer_volume_fraction}')
        _check_positive_integer('initial_monomer_count', initial_monomer_count)
        _check_non_negative('additive_coefficient', additive_coefficient)
        _check_non_negative('constant_coefficient', constant_coefficient)

        self.max_cluster_size = int(max_cluster_size)
        self.kernel = kernel.lower()
        self.monomer_radius = monomer_radius
        self.monomer_volume_fraction = monomer_volume_fraction
        self.initial_monomer_count = int(initial_monomer_count)
        self.additive_coefficient = additive_coefficient
        self.constant_coefficient = constant_coefficient
        self.combinatoric_ratelaws = combinatoric_ratelaws

        self._network = None

    @property
    def monomer_volume(self) -> float:
        """
        Volume of a monomer in cm^3.
        """
        return radius_to_volume(self.monomer_radius)

    @property
    def initial_concentration(self) -> float:
        """
        Number concentration of monomers at t=0 in cm^-3.
        """
        return volume_fraction_to_concentration(self.monomer_volume_fraction,
                                                self.monomer_volume)

    @property
    def bulk_volume(self) -> float:
        """
        Bulk volume of the system in cm^3.
        """
        return self.initial_monomer_count / self.initial_concentration

    @property
    def kernel_coefficient(self) -> float:
        if self.kernel == 'additive':
            return self.additive_coefficient
        return self.constant_coefficient

    @property
    def default_t_span(self) -> tuple:
        return (0.0, KERNEL_TIME_SPANS[self.kernel])

    @property
    def species(self) -> dict:
        return get_species(self.max_cluster_size)

    @property
    def reactant_pairs(self) -> np.ndarray:
        return get_reactant_pairs(self.max_cluster_size)

    @property
    def rate_constants(self) -> np.ndarray:
        return self.reaction_network.rate_constants

    @property
    def is_built(self) -> bool:
        return self._network is not None

    @property
    def reaction_network(self) -> ReactionNetwork:
        """
        The network built from this configuration. Built on first access.
        """
        if self._network is None:
            self._network = self.build()
        return self._network

    def build(self) -> ReactionNetwork:
        """
        Enumerate the reactant pairs, evaluate the kernel and assemble the
        reaction network. Every call starts from the configuration, so two
        calls return equal networks.

        Returns:
            ReactionNetwork: the assembled network
        """
        pairs = get_reactant_pairs(self.max_cluster_size)
        rate_constants = get_rate_constants(pairs, self.monomer_volume,
                                            self.bulk_volume, self.kernel,
                                            self.kernel_coefficient)
        reactions = get_coagulation_reactions(pairs, rate_constants,
                                              self.combinatoric_ratelaws)
        if len(reactions) == 0:
            warnings.warn(
                f'No coagulation reactions are possible with '
                f'max_cluster_size={self.max_cluster_size}')

        return ReactionNetwork(
            reactions,
            self.max_cluster_size,
            get_initial_populations(self.max_cluster_size,
                                    self.initial_monomer_count),
            bulk_volume=self.bulk_volume)

    def get_initial_populations(
            self,
            initial_populations: Optional[Union[Sequence[float],
                                                str]] = 'monomers'
    ) -> np.ndarray:
        if isinstance(initial_populations, str):
            if initial_populations == 'monomers':
                return self.reaction_network.initial_populations.astype(float)
            raise ValueError(
                "Invalid argument supplied for: initial_populations")

        initial_populations = np.asarray(initial_populations, dtype=float)
        if initial_populations.shape != (self.max_cluster_size, ):
            raise ValueError(
                f'Supplied population is invalid. Expected length of '
                f'{self.max_cluster_size}, received shape '
                f'{initial_populations.shape}')
        return initial_populations

    def run_kinetics(
            self,
            initial_populations: Optional[Union[Sequence[float],
                                                str]] = 'monomers',
            t: List[float] = None) -> np.ndarray:
        """
        Integrate the mean-field rate equations of the network.

        Args:
            initial_populations: cluster counts at t[0], or 'monomers' to
                start from the configured monomer count
            t: times at which to report the populations. Defaults to 31
                evenly spaced points over the kernel's default time span.

        Returns:
            np.ndarray: (len(t), max_cluster_size) array of cluster counts
        """
        if t is None:
            t = np.linspace(*self.default_t_span, NUM_SAVE_POINTS)

        initial_populations = self.get_initial_populations(initial_populations)

        return odeint(dNdt_from_populations,
                      initial_populations,
                      t,
                      args=(self.reaction_network, ))
