import logging
from typing import Optional, Sequence, Tuple, Union

import numpy as np
from joblib import Parallel, delayed

from CoagulationTools.inputs.network import ReactionNetwork
from CoagulationTools.util.constants import NUM_SAVE_POINTS


class SSARunner:
    """
    Samples trajectories of a ReactionNetwork with Gillespie's direct method.

    The runner only reads the jump channels of the network (the rate
    constants, symmetry factors and stoichiometry), so the stochastic and
    deterministic forms share the same kinetics.

    REFERENCE:
        Gillespie, D. T. Exact Stochastic Simulation of Coupled Chemical
        Reactions. J. Phys. Chem. 1977, 81, 2340–2361.
    """

    def __init__(self, network: ReactionNetwork):
        self.network = network

    def get_save_times(self,
                       t_span: Tuple[float, float],
                       saveat: Optional[Union[int, Sequence[float]]] = None
                       ) -> np.ndarray:
        if t_span[1] < t_span[0]:
            raise ValueError(f'Invalid time span {t_span}')

        if saveat is None:
            saveat = NUM_SAVE_POINTS
        if isinstance(saveat, (int, np.integer)):
            if saveat < 1:
                raise ValueError('At least one save point is required')
            return np.linspace(t_span[0], t_span[1], saveat)

        save_times = np.asarray(saveat, dtype=float)
        if save_times.ndim != 1 or len(save_times) == 0:
            raise ValueError('saveat must be a non-empty sequence of times')
        if np.any(np.diff(save_times) < 0):
            raise ValueError('saveat must be sorted in increasing order')
        if save_times[0] < t_span[0] or save_times[-1] > t_span[1]:
            raise ValueError(f'saveat must lie within the time span {t_span}')
        return save_times

    def run(self,
            t_span: Tuple[float, float] = (0, 1),
            saveat: Optional[Union[int, Sequence[float]]] = None,
            seed: Optional[int] = None,
            initial_populations: Optional[Sequence[int]] = None
            ) -> Tuple[np.ndarray, np.ndarray]:
        """
        Run a single stochastic simulation.

        :param t_span: (start, end) of the simulation in s
        :param saveat: number of evenly spaced save points over t_span, or the
            explicit times at which to record the state
        :param seed: seed for the random number generator. The same seed
            always yields the same trajectory
        :param initial_populations: integer cluster counts at t_span[0].
            Defaults to the initial populations of the network
        :return: the save times and a (len(t), n_species) array of the
            cluster counts at those times
        """
        save_times = self.get_save_times(t_span, saveat)

        if initial_populations is None:
            initial_populations = self.network.initial_populations
        state = np.array(initial_populations, dtype=np.int64)
        if state.shape != (self.network.n_species, ):
            raise ValueError(
                f'Supplied population is invalid. Expected length of '
                f'{self.network.n_species}, received shape {state.shape}')
        if np.any(state < 0):
            raise ValueError('Initial populations must be non-negative')

        rng = np.random.default_rng(seed)
        stoichiometry = self.network.stoichiometry_matrix
        populations = np.zeros((len(save_times), self.network.n_species),
                               dtype=np.int64)

        logging.info(f'Running SSA with seed {seed} over t_span={t_span}')

        t = t_span[0]
        save_i = 0
        n_events = 0
        while save_i < len(save_times):
            propensities = self.network.propensities(state)
            total_propensity = propensities.sum()
            if total_propensity > 0:
                t_next = t + rng.exponential(1 / total_propensity)
            else:
                # No channel can fire, the state is frozen
                t_next = np.inf

            # The state is constant until the next event
            while save_i < len(save_times) and save_times[save_i] < t_next:
                populations[save_i] = state
                save_i += 1
            if save_i == len(save_times):
                break

            cumulative = np.cumsum(propensities)
            channel = np.searchsorted(cumulative,
                                      rng.uniform(0, total_propensity),
                                      side='right')
            channel = min(channel, len(cumulative) - 1)

            state += stoichiometry[channel]
            if np.any(state < 0):
                raise RuntimeError('Inconsistent simulation state encountered. '
                                   f'Channel {channel} produced a negative '
                                   'cluster count')
            t = t_next
            n_events += 1

        logging.info(f'SSA with seed {seed} finished after {n_events} events')
        return save_times, populations

    def run_ensemble(self,
                     num_sims: int = 10,
                     base_seed: int = 1000,
                     n_jobs: int = 1,
                     **kwargs) -> Tuple[np.ndarray, np.ndarray]:
        """
        Run independent simulations with the seeds
        [base_seed, base_seed+1, ..., base_seed+num_sims-1].

        :param num_sims: number of simulations
        :param base_seed: seed of the first simulation
        :param n_jobs: number of concurrent workers
        :param kwargs: passed on to SSARunner.run
        :return: the save times and a (num_sims, len(t), n_species) array of
            the cluster counts
        """
        if num_sims < 1:
            raise ValueError('num_sims must be at least 1')

        results = Parallel(n_jobs=n_jobs)(
            delayed(run_ssa)(self.network, seed=base_seed + i, **kwargs)
            for i in range(num_sims))

        t = results[0][0]
        populations = np.stack([result[1] for result in results])
        return t, populations


def run_ssa(network: ReactionNetwork, **kwargs) -> Tuple[np.ndarray, np.ndarray]:
    return SSARunner(network).run(**kwargs)
