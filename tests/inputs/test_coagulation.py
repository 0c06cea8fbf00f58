from CoagulationTools.inputs import (CoagulationKinetics, ReactionNetwork,
                                     dCdt_from_concentrations)
from CoagulationTools.analysis import get_total_mass
from scipy.integrate import odeint
from monty.serialization import loadfn
from pathlib import Path
import numpy as np
import pytest

MODULE_DIR = Path(__file__).absolute().parent
TEST_FILE_DIR = MODULE_DIR / '..' / 'test_files' / 'coagulation'


@pytest.fixture
def additive_kinetics():
    config = loadfn(TEST_FILE_DIR / 'additive_config.json')
    return CoagulationKinetics(**config)


@pytest.fixture
def constant_kinetics():
    config = loadfn(TEST_FILE_DIR / 'constant_config.json')
    return CoagulationKinetics(**config)


def test_default_parameters():
    kinetics = CoagulationKinetics()
    assert kinetics.max_cluster_size == 10
    assert kinetics.kernel == 'additive'
    assert kinetics.monomer_volume == pytest.approx(4.18879e-9, rel=1e-5)
    assert kinetics.initial_concentration == pytest.approx(238.732, rel=1e-5)
    assert kinetics.bulk_volume == pytest.approx(41.8879, rel=1e-5)
    assert kinetics.kernel_coefficient == pytest.approx(1.53e3)
    assert kinetics.default_t_span == (0.0, 2000.0)

    kinetics = CoagulationKinetics(kernel='CONSTANT')
    assert kinetics.kernel == 'constant'
    assert kinetics.kernel_coefficient == pytest.approx(1.84e-4)
    assert kinetics.default_t_span == (0.0, 350.0)


def test_build(additive_kinetics):
    assert not additive_kinetics.is_built
    network = additive_kinetics.reaction_network
    assert additive_kinetics.is_built
    assert isinstance(network, ReactionNetwork)

    # The network is built once
    assert additive_kinetics.reaction_network is network

    assert network.n_reactions == 25
    assert network.n_species == 10
    assert network.initial_populations.tolist() == [10000] + [0] * 9
    assert network.bulk_volume == pytest.approx(additive_kinetics.bulk_volume)

    pairs = additive_kinetics.reactant_pairs
    assert np.allclose(additive_kinetics.rate_constants,
                       1.53e-7 * pairs.sum(1),
                       rtol=1e-5)


def test_small_network():
    kinetics = CoagulationKinetics(max_cluster_size=4, kernel='constant')
    network = kinetics.reaction_network

    assert [str(reaction).split(' (')[0] for reaction in network.reactions] == [
        '2X1 --> X2', 'X1 + X2 --> X3', 'X1 + X3 --> X4', '2X2 --> X4'
    ]
    assert np.all(network.rate_constants == network.rate_constants[0])


def test_build_is_deterministic(additive_kinetics):
    network_1 = additive_kinetics.build()
    network_2 = additive_kinetics.build()
    assert network_1 is not network_2
    assert network_1 == network_2
    assert network_1.reactions == network_2.reactions
    assert np.array_equal(network_1.rate_constants, network_2.rate_constants)

    other = CoagulationKinetics.from_dict(additive_kinetics.as_dict())
    assert not other.is_built
    assert other.build() == network_1


def test_serialization(constant_kinetics):
    d = constant_kinetics.as_dict()
    assert d['kernel'] == 'constant'
    assert d['constant_coefficient'] == pytest.approx(1.84e-4)

    kinetics = CoagulationKinetics.from_dict(d)
    assert kinetics.build() == constant_kinetics.build()


def test_invalid_configuration():
    with pytest.raises(ValueError):
        CoagulationKinetics(kernel='multiplicative')
    with pytest.raises(ValueError):
        CoagulationKinetics(max_cluster_size=0)
    with pytest.raises(ValueError):
        CoagulationKinetics(max_cluster_size=2.5)
    with pytest.raises(ValueError):
        CoagulationKinetics(monomer_radius=-1e-3)
    with pytest.raises(ValueError):
        CoagulationKinetics(initial_monomer_count=0)
    with pytest.raises(ValueError):
        CoagulationKinetics(additive_coefficient=-1)
    with pytest.raises(ValueError):
        CoagulationKinetics(monomer_radius=np.inf)
    with pytest.raises(ValueError):
        CoagulationKinetics(monomer_radius=None)
    with pytest.raises(ValueError):
        CoagulationKinetics(monomer_volume_fraction=np.nan)
    with pytest.raises(ValueError):
        CoagulationKinetics(monomer_volume_fraction=1.5)
    with pytest.raises(ValueError):
        CoagulationKinetics(additive_coefficient=None)
    with pytest.raises(ValueError):
        CoagulationKinetics(constant_coefficient=np.inf)
    with pytest.raises(ValueError):
        CoagulationKinetics(initial_monomer_count=np.inf)
    with pytest.raises(ValueError):
        CoagulationKinetics(max_cluster_size=None)


def test_no_reactions():
    kinetics = CoagulationKinetics(max_cluster_size=1)
    with pytest.warns(UserWarning):
        network = kinetics.reaction_network
    assert network.n_reactions == 0
    assert network.initial_populations.tolist() == [10000]


def test_combinatoric_ratelaws():
    kinetics = CoagulationKinetics(max_cluster_size=4)
    assert kinetics.reaction_network.symmetry_factors.tolist() == [
        0.5, 1, 1, 0.5
    ]

    kinetics = CoagulationKinetics(max_cluster_size=4,
                                   combinatoric_ratelaws=False)
    assert kinetics.reaction_network.symmetry_factors.tolist() == [1, 1, 1, 1]


def test_run_kinetics(additive_kinetics):
    t = np.linspace(0, 2000, 31)
    populations = additive_kinetics.run_kinetics('monomers', t)

    assert populations.shape == (31, 10)
    assert np.allclose(populations[0], [10000] + [0] * 9)
    assert np.allclose(get_total_mass(populations), 10000, rtol=1e-6)

    # Monomers are only consumed
    assert np.all(np.diff(populations[:, 0]) <= 0)

    populations = additive_kinetics.run_kinetics()
    assert populations.shape == (31, 10)


@pytest.mark.parametrize('kinetics_name',
                         ['additive_kinetics', 'constant_kinetics'])
def test_concentration_rate_equations(kinetics_name, request):
    kinetics = request.getfixturevalue(kinetics_name)
    network = kinetics.reaction_network
    t = np.linspace(0, 10, 3)

    assert np.allclose(network.concentration_rate_constants,
                       network.rate_constants * kinetics.bulk_volume)

    # The exported rate expressions pair with the initial concentrations
    concentrations = odeint(dCdt_from_concentrations,
                            network.initial_concentrations,
                            t,
                            args=(network, ))
    expected = kinetics.run_kinetics('monomers', t) / kinetics.bulk_volume
    assert np.allclose(concentrations, expected, rtol=1e-5, atol=1e-6)
    assert concentrations[-1, 0] < concentrations[0, 0]


def test_run_kinetics_initial_populations(additive_kinetics):
    initial_populations = [5000, 2500] + [0] * 8
    populations = additive_kinetics.run_kinetics(initial_populations,
                                                 [0, 10, 20])
    assert np.allclose(populations[0], initial_populations)
    assert np.allclose(get_total_mass(populations), 10000)

    with pytest.raises(ValueError):
        additive_kinetics.run_kinetics([10000, 0], [0, 10])

    with pytest.raises(ValueError):
        additive_kinetics.run_kinetics('ground_state', [0, 10])
