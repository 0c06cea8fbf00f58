from CoagulationTools.inputs import CoagulationKinetics
from CoagulationTools.core import SSARunner
from CoagulationTools.simulation import (get_coagulation_parser,
                                         get_metadata, run_and_save_one,
                                         save_data_to_hdf5)
from CoagulationTools.simulation.runner import CoagulationEnsemble

import h5py
import numpy as np
import logging

if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)

    parser = get_coagulation_parser()
    args = parser.parse_args()

    if args.method == 'ssa' and args.num_workers == 1:
        # Run the samples one after another through the builder
        builder = CoagulationEnsemble(
            num_sims=args.num_sims,
            max_cluster_size=args.max_cluster_size,
            kernel=args.kernel,
            initial_monomer_count=args.initial_monomer_count,
            t_end=args.t_end,
            n_save_points=args.n_save_points,
            method=args.method,
            base_seed=args.base_seed,
            output_file=args.output_file,
            max_data_per_group=args.max_data_per_group)
        builder.run()
    else:
        kinetics = CoagulationKinetics(
            max_cluster_size=args.max_cluster_size,
            kernel=args.kernel,
            initial_monomer_count=args.initial_monomer_count)
        t_end = args.t_end
        if t_end is None:
            t_end = kinetics.default_t_span[1]

        with h5py.File(args.output_file, 'w') as hf:
            if args.method == 'ode':
                # The rate equations are deterministic, one solution is enough
                run_and_save_one(kinetics,
                                 group_id=0,
                                 data_id=0,
                                 sample_id=0,
                                 file=hf,
                                 method=args.method,
                                 t_end=t_end,
                                 n_save_points=args.n_save_points)
            else:
                # Sample concurrently and write the trajectories afterwards
                runner = SSARunner(kinetics.reaction_network)
                t, populations = runner.run_ensemble(
                    num_sims=args.num_sims,
                    base_seed=args.base_seed,
                    n_jobs=args.num_workers,
                    t_span=(0, t_end),
                    saveat=np.linspace(0, t_end, args.n_save_points))
                for i, _populations in enumerate(populations):
                    metadata = get_metadata(kinetics, args.method,
                                            args.base_seed + i, float(t[-1]))
                    save_data_to_hdf5(hf,
                                      i // args.max_data_per_group,
                                      i % args.max_data_per_group, {
                                          'metadata': metadata,
                                          't': t,
                                          'populations': _populations
                                      })
