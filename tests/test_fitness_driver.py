import threading
from dataclasses import replace

import numpy as np
import pytest

from fitness_driver import GeneticFitnessDriver
from genetic_pool import GeneticPool
from genome import encode_gene
from navigation import NavigationSimulation
from neural_network import NeuralNet
from neuron import NeuronKind
from world import World

# north-heading motor; numerator bits 152 give a sigmoid peak just under 1,
# so a resting neuron (input 0) stays below the 0.5 move threshold
NORTH_MOTOR = encode_gene(NeuronKind.MOTOR, action_id=0x00,
                          exp_delta_bits=128, numerator_bits=152)


def driver_with_world(params, world):
    driver = GeneticFitnessDriver(params, verbose=False)
    driver.worlds = [world]
    return driver


def test_world_templates_are_built(small_params):
    driver = GeneticFitnessDriver(small_params, verbose=False)
    assert len(driver.worlds) == 2
    assert all(w.width == 12 and w.height == 12 for w in driver.worlds)
    assert len(driver.pool) == 6


def test_dead_genome_never_moves_and_scores_zero(small_params):
    driver = GeneticFitnessDriver(small_params, verbose=False)
    genome = [encode_gene(NeuronKind.DEAD)] * 9
    assert driver.get_fitness(genome, np.random.default_rng(0)) == 0.0


def test_walking_into_walls_is_penalised(small_params):
    params = replace(small_params, num_moves_per_test=5, num_worlds_to_test=1,
                     cost_of_not_moving=0.1, error_weight=1.0)
    world = World(3, 60)
    world.create_filled_rectangle(0, 0, 2, 59)
    world.set_wall(1, 59, False)
    driver = driver_with_world(params, world)

    # tick 1 leaves every motor at 0.5 (idle); ticks 2-5 each push the agent
    # 9 cells north (one per motor), landing on walls
    score = driver.get_fitness([NORTH_MOTOR] * 9, np.random.default_rng(0))
    assert score == pytest.approx((5 - 4 * 1.0 - 0.1) / 5)


def test_leaving_the_world_scores_zero(small_params):
    params = replace(small_params, num_moves_per_test=5, num_worlds_to_test=1)
    driver = driver_with_world(params, World(3, 3))
    assert driver.get_fitness([NORTH_MOTOR] * 9, np.random.default_rng(0)) == 0.0


def test_min_score_floors_fitness(small_params):
    params = replace(small_params, num_moves_per_test=5, num_worlds_to_test=1,
                     min_score=0.5)
    world = World(3, 60)
    world.create_filled_rectangle(0, 0, 2, 59)
    world.set_wall(1, 59, False)
    driver = driver_with_world(params, world)
    assert driver.get_fitness([NORTH_MOTOR] * 9, np.random.default_rng(0)) == 0.0


def test_drive_runs_every_epoch(small_params):
    driver = GeneticFitnessDriver(small_params, verbose=False)
    seen = []
    assert driver.drive(on_epoch_complete=lambda e, s: seen.append(e)) is True
    assert seen == [0, 1]
    assert [s["epoch"] for s in driver.stats] == [0, 1]
    for stats in driver.stats:
        assert 0.0 <= stats["mean"] <= stats["best"] <= 1.0
        assert stats["policy"] in ("evolve", "reinitialize")
        assert 0.0 <= stats["diversity"] <= 1.0
    assert len(driver.pool) == small_params.num_genes
    assert driver.best_genome is not None
    assert isinstance(driver.best_network, NeuralNet)
    assert driver.best_trail


def test_drive_is_reproducible_for_any_worker_count(small_params):
    def run(workers):
        driver = GeneticFitnessDriver(replace(small_params, max_workers=workers),
                                      verbose=False)
        driver.drive()
        return ([(s["best"], s["mean"]) for s in driver.stats],
                driver.pool.get_all_genomes())

    assert run(1) == run(3)


def test_nothing_scoring_reinitializes_the_pool(small_params):
    params = replace(small_params, min_score=2.0)
    driver = GeneticFitnessDriver(params, verbose=False)
    driver.drive()
    assert [s["policy"] for s in driver.stats] == ["reinitialize"] * 2
    assert driver.best_score == 0.0
    assert driver.pool.get_fitness_scores() == [0.0] * params.num_genes


def test_cancelled_before_start_leaves_pool_untouched(small_params):
    pool = GeneticPool(3, 3, 6, rng=np.random.default_rng(1))
    genomes = pool.get_all_genomes()
    driver = GeneticFitnessDriver(small_params, existing_pool=pool, verbose=False)
    cancel = threading.Event()
    cancel.set()
    assert driver.drive(cancel_event=cancel) is False
    assert driver.stats == []
    assert pool.get_all_genomes() == genomes
    assert pool.get_fitness_scores() == [0.0] * 6


def test_cancel_mid_epoch_does_not_commit_scores(small_params):
    driver = GeneticFitnessDriver(small_params, verbose=False)
    genomes = driver.pool.get_all_genomes()
    cancel = threading.Event()
    real = driver.get_fitness
    calls = []

    def cancelling(genome, rng=None):
        calls.append(1)
        if len(calls) == 3:
            cancel.set()
        return real(genome, rng)

    driver.get_fitness = cancelling
    assert driver.drive(cancel_event=cancel) is False
    assert len(calls) == 3
    assert driver.pool.get_all_genomes() == genomes
    assert driver.pool.get_fitness_scores() == [0.0] * 6


def test_helpers(small_params):
    driver = GeneticFitnessDriver(small_params, verbose=False)
    net = driver.get_random_neural_network()
    assert (net.rows, net.cols) == (3, 3)
    assert driver.get_random_world() in driver.worlds

    sim, agent = driver.create_simulation_with_agent()
    assert isinstance(sim, NavigationSimulation)
    x, y = sim.get_agent_position(agent)
    assert not sim.world.is_wall(x, y)
    sim.step()

    sim, agent = driver.create_simulation_with_agent(net)
    assert agent.neural_net is net


def test_verbose_prints_epoch_lines(small_params, capsys):
    GeneticFitnessDriver(small_params, verbose=True).drive()
    out = capsys.readouterr().out
    assert "Epoch     0" in out
    assert "Evolution complete" in out
