from CoagulationTools.inputs.coagulation import CoagulationKinetics
from CoagulationTools.simulation.util import (run_one_coagulation,
                                              save_data_to_hdf5)
from CoagulationTools.util.constants import (INITIAL_MONOMER_COUNT,
                                             MAX_CLUSTER_SIZE, NUM_SAVE_POINTS)
from maggma.core import Builder
from h5py import File

from typing import Iterator, Optional


class CoagulationEnsemble(Builder):
    """
    Builder that runs an ensemble of stochastic coagulation simulations, one
    per seed, and writes every trajectory to an hdf5 file.
    """

    def __init__(self,
                 num_sims: int,
                 max_cluster_size: int = MAX_CLUSTER_SIZE,
                 kernel: str = 'additive',
                 initial_monomer_count: int = INITIAL_MONOMER_COUNT,
                 t_end: Optional[float] = None,
                 n_save_points: int = NUM_SAVE_POINTS,
                 method: str = 'ssa',
                 base_seed: int = 1000,
                 output_file: str = 'out.h5',
                 max_data_per_group: int = 100000,
                 kinetics_args: Optional[dict] = None):
        if kinetics_args is None:
            kinetics_args = {}

        self.num_sims = num_sims
        self.method = method
        self.t_end = t_end
        self.n_save_points = n_save_points
        self.base_seed = base_seed
        self.output_file = output_file
        self.max_data_per_group = max_data_per_group

        # Build the network up front so an invalid configuration fails here
        self.kinetics = CoagulationKinetics(
            max_cluster_size=max_cluster_size,
            kernel=kernel,
            initial_monomer_count=initial_monomer_count,
            **kinetics_args)
        self.network = self.kinetics.reaction_network

        self._file = None

        super().__init__(sources=[], targets=[], chunk_size=1000)
        self.logger.info(
            f'Built a network of {self.network.n_reactions} reactions')

    def connect(self):
        # Since we aren't using stores, do nothing
        return

    @property
    def file(self):
        if self._file is None:
            self._file = File(self.output_file, 'w')
        return self._file

    def get_items(self) -> Iterator[tuple]:
        for sample_id in range(self.num_sims):
            yield (sample_id, self.base_seed + sample_id)

    def process_item(self, item: tuple) -> tuple:
        sample_id, seed = item
        self.logger.info(f'Running sample {sample_id} with seed {seed}')
        output = run_one_coagulation(self.kinetics,
                                     method=self.method,
                                     t_end=self.t_end,
                                     n_save_points=self.n_save_points,
                                     seed=seed)

        group_id = int(sample_id // self.max_data_per_group)
        data_id = int(sample_id % self.max_data_per_group)
        return (group_id, data_id, output)

    def update_targets(self, items: list) -> None:
        for item in items:
            group_id, data_id, output = item
            save_data_to_hdf5(self.file, group_id, data_id, output)

    def finalize(self):
        if self._file is not None:
            self._file.close()
            self._file = None
        super().finalize()
