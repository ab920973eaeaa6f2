from dataclasses import replace

import pytest

from genetic_pool import GeneticPool
from genetic_world import (GeneticWorldRun, PHASE_CANCELLED, PHASE_CONTINUING,
                           PHASE_DONE)
from navigation import NavigationSimulation
from neural_network import NeuralNet


def test_inline_run_builds_live_simulation(small_params):
    epochs = []
    run = GeneticWorldRun(small_params, on_epoch_complete=lambda e, s: epochs.append(e))
    run.setup(start=False)

    snap = run.snapshot()
    assert epochs == [0, 1]
    assert snap["running"] is False
    assert snap["phase"] == PHASE_DONE
    assert snap["current_epoch"] == snap["total_epochs"] == 2
    assert isinstance(snap["best_network"], NeuralNet)
    assert isinstance(snap["network"], NeuralNet)
    assert isinstance(snap["simulation"], NavigationSimulation)
    assert snap["best_score"] == run.driver.best_score

    run.iterate(3)
    assert run.simulation.step_count == 3


def test_background_run_and_join(small_params):
    run = GeneticWorldRun(small_params)
    run.setup()
    assert run.join(timeout=60)
    assert run.snapshot()["current_epoch"] == 2
    assert not run.snapshot()["running"]


def test_cancel_stops_a_long_run(small_params):
    run = GeneticWorldRun(replace(small_params, num_epochs=10_000))
    run.setup()
    run.cancel()
    assert run.join(timeout=60)
    snap = run.snapshot()
    assert snap["phase"] == PHASE_CANCELLED
    assert snap["running"] is False
    assert snap["current_epoch"] < 10_000
    assert snap["simulation"] is None


def test_interrupt_during_inline_run_clears_running(small_params):
    def interrupt(epoch, stats):
        raise KeyboardInterrupt

    run = GeneticWorldRun(small_params, on_epoch_complete=interrupt)
    with pytest.raises(KeyboardInterrupt):
        run.setup(start=False)
    snap = run.snapshot()
    assert snap["running"] is False
    assert snap["phase"] == PHASE_DONE
    assert snap["error"] is None


def test_callback_error_is_recorded(small_params):
    def fail(epoch, stats):
        raise RuntimeError("boom")

    run = GeneticWorldRun(small_params, on_epoch_complete=fail)
    with pytest.raises(RuntimeError):
        run.setup(start=False)
    snap = run.snapshot()
    assert snap["running"] is False
    assert snap["error"] == "boom"


def test_existing_pool_is_continued(small_params):
    pool = GeneticPool(3, 3, small_params.num_genes)
    phases = []
    run = GeneticWorldRun(small_params, existing_pool=pool,
                          on_epoch_complete=lambda e, s: phases.append(run.snapshot()["phase"]))
    run.setup(start=False)
    assert run.driver.pool is pool
    assert phases == [PHASE_CONTINUING] * 2


def test_use_best_genome_needs_a_run(small_params):
    run = GeneticWorldRun(small_params)
    with pytest.raises(RuntimeError):
        run.use_best_genome()
    run.iterate()
    assert run.snapshot()["simulation"] is None


def test_invalid_params_are_rejected(small_params):
    with pytest.raises(ValueError):
        GeneticWorldRun(replace(small_params, elite_size=6))
