import math

import numpy as np
import pytest

from genome import random_genome
from neural_network import NeuralNet
from neuron import Neuron, NeuronKind, Direction
from neuron_provider import GeneticNeuronProvider, RandomNeuronProvider
from tests.helpers import ListProvider, grid_of


def sig(x):
    return 1.0 / (1.0 + math.exp(-x))


def test_rejects_empty_grid():
    with pytest.raises(ValueError):
        NeuralNet(0, 3)


def test_every_cell_has_eight_neighbours_on_large_grids():
    net = NeuralNet(4, 5)
    for _, _, neuron in net.cells():
        assert len(neuron.connections) == 8
        assert all(c.weight == 0.5 for c in neuron.connections)


def test_small_grids_never_self_connect():
    net = NeuralNet(1, 1)
    assert net.get_cell_at(0, 0).connections == []
    net = NeuralNet(2, 2)
    for _, _, neuron in net.cells():
        assert len(neuron.connections) == 3
        assert neuron.connection_to(neuron) is None


def test_edges_wrap_around():
    net = NeuralNet(3, 3)
    corner = net.get_cell_at(0, 0)
    assert corner.connection_to(net.get_cell_at(2, 2)) is not None
    assert corner.connection_to(net.get_cell_at(0, 2)) is not None
    assert corner.connection_to(net.get_cell_at(2, 0)) is not None


def test_get_cell_at_out_of_range():
    net = NeuralNet(2, 3)
    with pytest.raises(ValueError):
        net.get_cell_at(2, 0)
    with pytest.raises(ValueError):
        net.get_cell_at(0, -1)


def test_two_phase_tick_uses_pre_tick_values():
    net = NeuralNet(2, 2)
    net.get_cell_at(0, 0).stimulate(1.0)
    net.fire_and_update()

    acts = net.activations()
    assert acts[0, 0] == pytest.approx(sig(1.0))
    # every other cell only saw zero activations during the fire phase
    for r, c in [(0, 1), (1, 0), (1, 1)]:
        assert acts[r, c] == 0.5
    assert np.all(acts != 0.0)

    net.fire_and_update()
    expected = sig(0.5 * (sig(1.0) + 0.5 + 0.5))
    assert net.get_cell_at(1, 1).activation == pytest.approx(expected)
    assert net.get_cell_at(0, 0).activation == pytest.approx(sig(0.5 * 1.5))


def test_update_all_weights_uses_post_tick_activations():
    net = NeuralNet(2, 2)
    net.get_cell_at(0, 0).stimulate(1.0)
    net.fire_and_update()
    net.update_all_weights(0.1)
    src = net.get_cell_at(0, 0)
    assert src.connection_to(net.get_cell_at(1, 1)).weight == pytest.approx(
        min(1.0, 0.5 + sig(1.0) - 0.5))


def test_seeded_network_is_reproducible():
    def run():
        genome = random_genome(100, np.random.default_rng(1234))
        net = NeuralNet(10, 10, GeneticNeuronProvider(genome))
        net.get_cell_at(5, 5).stimulate(-1.0)
        net.fire_and_update()
        return net.activations()

    first, second = run(), run()
    assert first.shape == (10, 10)
    assert np.all(np.isfinite(first))
    assert np.array_equal(first, second)


def test_short_genome_is_reused_cyclically():
    from genome import encode_gene
    genome = [encode_gene(NeuronKind.MOTOR), encode_gene(NeuronKind.SENSORY)]
    net = NeuralNet(2, 3, GeneticNeuronProvider(genome))
    assert net.kinds().tolist() == [[6, 7, 6], [7, 6, 7]]


def test_neurons_of_kind_in_row_major_order():
    kinds = [NeuronKind.MOTOR, NeuronKind.REGULAR, NeuronKind.MOTOR, NeuronKind.SENSORY]
    neurons = [Neuron(k) for k in kinds]
    net = NeuralNet(2, 2, ListProvider(neurons))
    assert net.neurons_of_kind(NeuronKind.MOTOR) == [neurons[0], neurons[2]]
    assert net.position_of(neurons[3]) == (1, 1)
    assert net.position_of(Neuron()) is None


def test_relay_target_position():
    net = NeuralNet(3, 3, grid_of(NeuronKind.RELAY, 9, relay_direction=int(Direction.RIGHT)))
    assert net.relay_target_position(0, 0) == (0, 1)
    assert net.relay_target_position(1, 2) == (1, 0)
    assert net.relay_target_position(0, 0) is not None
    assert NeuralNet(3, 3).relay_target_position(0, 0) is None


def test_connection_strength_from():
    net = NeuralNet(3, 3)
    assert net.get_connection_strength_from(1, 1, Direction.UP_LEFT) == 0.5
    net1 = NeuralNet(1, 1)
    assert net1.get_connection_strength_from(0, 0, Direction.UP) == 0.0


def test_random_provider_validates_percentages():
    with pytest.raises(ValueError):
        RandomNeuronProvider(0.6, 0.6)
    with pytest.raises(ValueError):
        RandomNeuronProvider(-0.1, 0.2)
    provider = RandomNeuronProvider(0.3, 0.3, rng=np.random.default_rng(0))
    net = NeuralNet(5, 5, provider)
    counts = net.kind_counts()
    assert sum(counts.values()) == 25
    assert set(k for k, v in counts.items() if v) <= {"REGULAR", "INHIBITORY", "SINE"}


def test_genetic_provider_rejects_empty_genome():
    with pytest.raises(ValueError):
        GeneticNeuronProvider([])


def test_summary_lists_kinds():
    text = NeuralNet(2, 2).summary()
    assert "2x2" in text
    assert "REGULAR" in text
