"""
Run lifecycle for NeuroGrid.

A GeneticWorldRun evolves brains on a background thread, then builds a
live network + navigation simulation from the best genome found. Front
ends (CLI, HTTP server) poll `snapshot()` and may `cancel()` at any time.
"""

import threading

from config import GeneticWorldParams
from fitness_driver import GeneticFitnessDriver
from neural_network import NeuralNet
from neuron_provider import GeneticNeuronProvider

PHASE_INITIALIZING = "Initializing genetic algorithm..."
PHASE_RUNNING      = "Running genetic algorithm..."
PHASE_CONTINUING   = "Continuing evolution of existing gene pool..."
PHASE_NETWORK      = "Creating neural network..."
PHASE_SIMULATION   = "Setting up navigation simulation..."
PHASE_DONE         = ""
PHASE_CANCELLED    = "Cancelled"


class GeneticWorldRun:
    """
    One cancellable evolution run plus the live simulation of its winner.
    """

    def __init__(self, params: GeneticWorldParams = None, existing_pool=None,
                 on_epoch_complete=None, verbose: bool = False):
        self.params = params if params is not None else GeneticWorldParams()
        self.params.validate()
        self.existing_pool     = existing_pool
        self.on_epoch_complete = on_epoch_complete
        self.verbose           = verbose

        self.driver     = None
        self.network    = None
        self.simulation = None
        self.agent      = None

        self._lock       = threading.Lock()
        self._cancel_evt = threading.Event()
        self._thread     = None
        self._status = {
            "current_epoch": 0,
            "total_epochs":  self.params.num_epochs,
            "best_score":    0.0,
            "best_network":  None,
            "phase":         PHASE_DONE,
            "running":       False,
            "error":         None,
        }

    # ──────────────────────────────────────────────────────────────────────────
    # Lifecycle
    # ──────────────────────────────────────────────────────────────────────────

    def setup(self, start: bool = True):
        """Begin the run on a background thread (or inline if start=False)."""
        if self._thread is not None and self._thread.is_alive():
            raise RuntimeError("Run already in progress")
        self._set(running=True, phase=PHASE_INITIALIZING)
        if start:
            self._thread = threading.Thread(target=self._run, daemon=True)
            self._thread.start()
        else:
            self._run()

    def cancel(self):
        """Stop at the next genome boundary. A cancelled run stays cancelled."""
        self._cancel_evt.set()

    def join(self, timeout: float = None) -> bool:
        """Wait for the background thread; True once it has finished."""
        if self._thread is None:
            return True
        self._thread.join(timeout)
        return not self._thread.is_alive()

    @property
    def cancelled(self) -> bool:
        return self._cancel_evt.is_set()

    def snapshot(self) -> dict:
        with self._lock:
            data = dict(self._status)
        data["network"]    = self.network
        data["simulation"] = self.simulation
        return data

    # ──────────────────────────────────────────────────────────────────────────
    # After the run
    # ──────────────────────────────────────────────────────────────────────────

    def use_best_genome(self):
        """Rebuild the live network + simulation from the best genome."""
        if self.driver is None or self.driver.best_genome is None:
            raise RuntimeError("No genome has been evaluated yet")
        p = self.params
        self._set(phase=PHASE_NETWORK)
        self.network = NeuralNet(p.brain_size_x, p.brain_size_y,
                                 GeneticNeuronProvider(self.driver.best_genome))
        self._set(phase=PHASE_SIMULATION)
        self.simulation, self.agent = self.driver.create_simulation_with_agent(self.network)
        self._set(phase=PHASE_DONE)

    def iterate(self, steps: int = 1):
        """Advance the live simulation; no-op until one exists."""
        if self.simulation is None:
            return
        for _ in range(steps):
            self.simulation.step()

    # ──────────────────────────────────────────────────────────────────────────

    def _run(self):
        try:
            self.driver = GeneticFitnessDriver(
                self.params, existing_pool=self.existing_pool,
                seed=self.params.seed, verbose=self.verbose)
            self._set(phase=PHASE_CONTINUING if self.existing_pool is not None
                      else PHASE_RUNNING)

            finished = self.driver.drive(on_epoch_complete=self._epoch_done,
                                         cancel_event=self._cancel_evt)
            if not finished:
                self._set(phase=PHASE_CANCELLED, running=False)
                return

            self.use_best_genome()
        except Exception as exc:
            self._set(error=str(exc))
            raise
        finally:
            # also reached on KeyboardInterrupt from an inline run
            with self._lock:
                self._status["running"] = False
                if self._status["phase"] != PHASE_CANCELLED:
                    self._status["phase"] = PHASE_DONE

    def _epoch_done(self, epoch: int, stats: dict):
        self._set(current_epoch=epoch + 1,
                  best_score=self.driver.best_score,
                  best_network=self.driver.best_network)
        if self.on_epoch_complete:
            self.on_epoch_complete(epoch, stats)

    def _set(self, **fields):
        with self._lock:
            self._status.update(fields)
