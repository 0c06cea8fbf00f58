from CoagulationTools.core import SSARunner
from CoagulationTools.inputs.coagulation import CoagulationKinetics
from CoagulationTools.util.constants import (INITIAL_MONOMER_COUNT,
                                             MAX_CLUSTER_SIZE, NUM_SAVE_POINTS)

import numpy as np

from datetime import datetime
from typing import Optional
import argparse
import json
import h5py

import logging


def get_coagulation_parser():
    parser = argparse.ArgumentParser()

    parser.add_argument('-N',
                        '--max_cluster_size',
                        help='The largest cluster size tracked by the network',
                        type=int,
                        default=MAX_CLUSTER_SIZE)
    parser.add_argument('-k',
                        '--kernel',
                        help='The collision kernel',
                        type=str,
                        choices=['additive', 'constant'],
                        default='additive')
    parser.add_argument('-u',
                        '--initial_monomer_count',
                        help='The number of monomers at t=0',
                        type=int,
                        default=INITIAL_MONOMER_COUNT)
    parser.add_argument(
        '-t',
        '--t_end',
        help=('The length of the simulation in s.'
              ' Defaults to the time span of the chosen kernel'),
        type=float,
        default=None)
    parser.add_argument('-p',
                        '--n_save_points',
                        help='The number of evenly spaced save points',
                        type=int,
                        default=NUM_SAVE_POINTS)

    # add optional arguments
    parser.add_argument('-m',
                        '--method',
                        help='Solve the rate equations or sample the jumps',
                        type=str,
                        choices=['ssa', 'ode'],
                        default='ssa')
    parser.add_argument('-n',
                        '--num_sims',
                        help='The number of stochastic simulations to run',
                        type=int,
                        default=1)
    parser.add_argument('-s',
                        '--base_seed',
                        help='The seed of the first stochastic simulation',
                        type=int,
                        default=1000)
    parser.add_argument('-j',
                        '--num_workers',
                        help='Number of concurrent workers',
                        type=int,
                        default=1)
    parser.add_argument(
        '-o',
        '--output_file',
        help='The output file to save the data to',
        type=str,
        default=f'{datetime.now().strftime("%Y%m%d_%H_%M_%S_%f")}.h5')
    parser.add_argument(
        '-g',
        '--max_data_per_group',
        help='The maximum number of data points to write to each hdf5 group',
        type=int,
        default=100000)

    return parser


def get_metadata(kinetics: CoagulationKinetics, method: str,
                 seed: Optional[int], simulation_time: float) -> dict:
    return {
        'method': method,
        'seed': seed,
        'simulation_time': simulation_time,
        'kinetics': kinetics.as_dict(),
        'n_reactions': kinetics.reaction_network.n_reactions
    }


def run_one_coagulation(kinetics: CoagulationKinetics,
                        method: str = 'ssa',
                        t_end: Optional[float] = None,
                        n_save_points: int = NUM_SAVE_POINTS,
                        seed: Optional[int] = None):
    """
    Run one simulation of a coagulation network.

    Args:
        kinetics: the coagulation configuration
        method: 'ssa' to sample one trajectory with the direct method, 'ode'
            to integrate the mean-field rate equations
        t_end: the end of the simulation in s. Defaults to the time span of
            the kernel
        n_save_points: the number of evenly spaced save points
        seed: the seed of the stochastic simulation

    Returns:
        dict: the metadata, save times and cluster counts
    """
    if t_end is None:
        t_end = kinetics.default_t_span[1]
    t = np.linspace(0, t_end, n_save_points)

    if method == 'ssa':
        runner = SSARunner(kinetics.reaction_network)
        t, populations = runner.run(t_span=(0, t_end), saveat=t, seed=seed)
    elif method == 'ode':
        populations = kinetics.run_kinetics('monomers', t)
    else:
        raise ValueError(f'Unrecognized method {method!r}. '
                         "Expected one of ['ssa', 'ode']")

    out_dict = {
        'metadata': get_metadata(kinetics, method, seed, float(t[-1]))
    }
    out_dict['t'] = t
    out_dict['populations'] = populations

    return out_dict


def run_and_save_one(kinetics: CoagulationKinetics, group_id: int,
                     data_id: int, sample_id: int, file: h5py.File, **kwargs):
    logging.info(f'Running Sample {sample_id}')
    out_dict = run_one_coagulation(kinetics, **kwargs)

    save_data_to_hdf5(file, group_id, data_id, out_dict)

    return out_dict


def save_data_to_hdf5(file: h5py.File, group_id: int, data_i: int, data: dict):
    worker_group = file.require_group(f'group_{group_id}')
    data_group = worker_group.create_group(f'data_{data_i}')
    data_group.create_dataset('metadata', data=json.dumps(data['metadata']))
    data_group.create_dataset('t', data=data['t'])
    data_group.create_dataset('populations', data=data['populations'])


def load_data_from_hdf5(file: h5py.File, group_id: int, data_i: int):
    data = file[f'group_{group_id}/data_{data_i}']

    out_dict = {}
    out_dict['metadata'] = json.loads(data['metadata'][()])
    out_dict['t'] = data['t'][()]
    out_dict['populations'] = data['populations'][()]

    return out_dict
