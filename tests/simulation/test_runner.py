from CoagulationTools.simulation.runner import CoagulationEnsemble
from CoagulationTools.simulation.util import (get_coagulation_parser,
                                              load_data_from_hdf5)
from h5py import File
import numpy as np
import pytest


def test_runner(tmp_path):
    args = get_coagulation_parser().parse_args([
        '-N', '8', '-u', '1000', '-t', '100', '-p', '11', '-n', '3', '-g', '2',
        '-o', f'{tmp_path}/out.h5'
    ])
    kwargs = vars(args)
    kwargs.pop('num_workers')
    builder = CoagulationEnsemble(**kwargs)
    assert builder.num_sims == 3
    assert builder.network.n_reactions == 16

    items = list(builder.get_items())
    assert items == [(0, 1000), (1, 1001), (2, 1002)]

    builder.run()

    data_points = []
    with File(tmp_path / 'out.h5', 'r') as f:
        assert len(f['group_0']) == 2
        assert len(f['group_1']) == 1
        for i in range(0, len(f['group_0'])):
            data_points.append(load_data_from_hdf5(f, 0, i))
        data_points.append(load_data_from_hdf5(f, 1, 0))
    assert len(data_points) == 3

    assert [d['metadata']['seed'] for d in data_points] == [1000, 1001, 1002]
    for data in data_points:
        assert data['populations'].shape == (11, 8)
        assert np.all(data['populations'] @ np.arange(1, 9) == 1000)


def test_runner_defaults():
    builder = CoagulationEnsemble(10)
    assert builder.num_sims == 10
    assert builder.kinetics.kernel == 'additive'
    assert builder.kinetics.max_cluster_size == 10
    assert builder.network.n_reactions == 25
    assert len(list(builder.get_items())) == 10

    builder = CoagulationEnsemble(
        2, kernel='constant', kinetics_args={'constant_coefficient': 1e-3})
    assert builder.kinetics.kernel_coefficient == pytest.approx(1e-3)


def test_runner_invalid_configuration():
    with pytest.raises(ValueError):
        CoagulationEnsemble(1, kernel='multiplicative')
    with pytest.raises(ValueError):
        CoagulationEnsemble(1, max_cluster_size=0)
