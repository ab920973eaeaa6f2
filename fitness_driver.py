"""
Fitness Driver for NeuroGrid.

Runs the evolutionary loop over a GeneticPool:
  for each epoch:
    1. Score every genome by letting its brain navigate a few walled worlds
    2. Commit all scores to the pool at once
    3. Track the best genome / network seen so far
    4. Evolve the pool (or start over if nothing scored above zero)
    5. Log stats
"""

import threading
import time
from concurrent.futures import ThreadPoolExecutor

import numpy as np

from agent import NeuralAgent
from config import GeneticWorldParams, PRINT_INTERVAL
from genetic_pool import GeneticPool
from genome import genome_similarity
from navigation import NavigationSimulation
from neural_network import NeuralNet
from neuron_provider import GeneticNeuronProvider
from world import World


class GeneticFitnessDriver:
    """
    Evolves grid brains that move around without walking into walls.
    """

    def __init__(self, params: GeneticWorldParams = None, existing_pool: GeneticPool = None,
                 seed: int = None, verbose: bool = True):
        self.params  = params if params is not None else GeneticWorldParams()
        self.params.validate()
        self.verbose = verbose

        if seed is None:
            seed = self.params.seed
        self.rng = np.random.default_rng(seed)

        p = self.params
        if existing_pool is not None:
            self.pool = existing_pool
        else:
            self.pool = GeneticPool(
                p.brain_size_x, p.brain_size_y, p.num_genes,
                mutation_rate   = p.mutation_rate,
                pruning_rate    = p.pruning_rate,
                tournament_size = p.tournament_size,
                rng             = self.rng,
            )

        self.worlds = [
            World.random_world(
                p.world_width, p.world_height,
                wall_density     = p.wall_density,
                min_room_size    = p.min_room_size,
                max_room_size    = p.max_room_size,
                num_rooms        = p.num_rooms,
                num_random_walls = p.num_random_walls,
                rng              = self.rng,
            )
            for _ in range(p.num_worlds)
        ]

        # History
        self.epoch        = 0
        self.stats        = []          # list of dicts, one per epoch
        self.best_score   = 0.0
        self.best_genome  = None
        self.best_network = None
        self.best_trail   = []          # positions of the best genome's last test

    # ──────────────────────────────────────────────────────────────────────────
    # Fitness
    # ──────────────────────────────────────────────────────────────────────────

    def get_fitness(self, genome: list, rng=None) -> float:
        """Mean navigation score of `genome` over a sample of world templates."""
        if rng is None:
            rng = np.random.default_rng()
        p = self.params

        total = 0.0
        for _ in range(p.num_worlds_to_test):
            world = self.worlds[int(rng.integers(0, len(self.worlds)))]
            score, _ = self._test_in_world(genome, world, rng)
            total += score

        fitness = total / p.num_worlds_to_test
        if fitness < p.min_score:
            return 0.0
        return fitness

    def _test_in_world(self, genome: list, world: World, rng):
        """Score one world; returns (score, trail of (x, y) positions)."""
        p = self.params
        network = NeuralNet(p.brain_size_x, p.brain_size_y,
                            GeneticNeuronProvider(genome))
        agent = NeuralAgent(network, p.learning_rate)
        sim = NavigationSimulation(world)
        sim.add_agent(agent, world.get_random_empty_cell(rng))

        trail      = [tuple(sim.get_agent_position(agent))]
        idle_cost  = 0.0
        moved      = False
        for _ in range(p.num_moves_per_test):
            before = sim.get_agent_position(agent)
            sim.step()
            after = sim.get_agent_position(agent)
            trail.append(tuple(after))

            if sim.is_agent_out_of_bounds(agent):
                return 0.0, trail
            if after == before:
                idle_cost += p.cost_of_not_moving
            else:
                moved = True

        if not moved:
            return 0.0, trail
        moves = p.num_moves_per_test
        raw = moves - p.error_weight * sim.error_count - idle_cost
        return max(raw, 0.0) / moves, trail

    # ──────────────────────────────────────────────────────────────────────────
    # Evolution loop
    # ──────────────────────────────────────────────────────────────────────────

    def drive(self, on_epoch_complete=None, cancel_event: threading.Event = None):
        """
        Run `num_epochs` epochs. `on_epoch_complete(epoch, stats)` is called
        after each finished epoch. Returns False if cancelled, else True.
        """
        p = self.params
        for epoch in range(p.num_epochs):
            if cancel_event is not None and cancel_event.is_set():
                return False
            self.epoch = epoch
            t0 = time.time()

            scores = self._evaluate_pool(cancel_event)
            if scores is None:
                return False

            for i, score in enumerate(scores):
                self.pool.set_fitness(i, score)
            stats = self._compute_stats(epoch, scores)

            best_idx = self.pool.best_index()
            if scores[best_idx] > self.best_score or self.best_genome is None:
                self.best_score   = scores[best_idx]
                self.best_genome  = list(self.pool.get_genome(best_idx))
                self.best_network = NeuralNet(p.brain_size_x, p.brain_size_y,
                                              GeneticNeuronProvider(self.best_genome))
                self.best_trail   = self._best_trail()

            if stats["best"] <= 0.0:
                self.pool.reinitialize(p.num_genes)
                stats["policy"] = "reinitialize"
            else:
                self.pool.evolve(p.num_genes, p.elite_size, p.new_gene_probability)
                stats["policy"] = "evolve"

            stats["elapsed_s"] = round(time.time() - t0, 3)
            self.stats.append(stats)
            self._print_stats(epoch, stats)

            if on_epoch_complete:
                on_epoch_complete(epoch, stats)

        if self.verbose:
            print("\n=== Evolution complete ===")
        return True

    def _evaluate_pool(self, cancel_event):
        """Score every genome; None if cancelled before all were scored."""
        genomes = self.pool.get_all_genomes()
        # seeds drawn in index order so any worker count gives the same result
        seeds = self.rng.integers(0, 2**63, size=len(genomes))

        def evaluate(index):
            if cancel_event is not None and cancel_event.is_set():
                return None
            return self.get_fitness(genomes[index], np.random.default_rng(int(seeds[index])))

        if self.params.max_workers > 1:
            with ThreadPoolExecutor(max_workers=self.params.max_workers) as executor:
                scores = list(executor.map(evaluate, range(len(genomes))))
        else:
            scores = []
            for i in range(len(genomes)):
                score = evaluate(i)
                if score is None:
                    return None
                scores.append(score)

        if any(s is None for s in scores):
            return None
        return scores

    def _best_trail(self) -> list:
        rng = np.random.default_rng(0)
        world = self.worlds[0]
        _, trail = self._test_in_world(self.best_genome, world, rng)
        return trail

    # ──────────────────────────────────────────────────────────────────────────
    # Helpers
    # ──────────────────────────────────────────────────────────────────────────

    def get_random_neural_network(self) -> NeuralNet:
        """Network for a genome from the top 10% of the pool."""
        return NeuralNet(self.params.brain_size_x, self.params.brain_size_y,
                         self.pool.get_random_provider())

    def get_random_world(self) -> World:
        return self.worlds[int(self.rng.integers(0, len(self.worlds)))]

    def create_simulation_with_agent(self, network: NeuralNet = None):
        """Navigation simulation with one agent on a random empty cell."""
        if network is None:
            network = self.get_random_neural_network()
        world = self.get_random_world()
        sim = NavigationSimulation(world)
        agent = NeuralAgent(network, self.params.learning_rate)
        sim.add_agent(agent, world.get_random_empty_cell(self.rng))
        return sim, agent

    # ──────────────────────────────────────────────────────────────────────────
    # Stats
    # ──────────────────────────────────────────────────────────────────────────

    def _compute_stats(self, epoch: int, scores: list) -> dict:
        arr = np.asarray(scores, dtype=np.float64)
        return {
            "epoch":     epoch,
            "pool_size": len(scores),
            "best":      float(np.nanmax(arr)) if len(arr) else 0.0,
            "mean":      float(np.nanmean(arr)) if len(arr) else 0.0,
            "scored":    int(np.sum(arr > 0)),
            "diversity": self._genetic_diversity(self.pool.get_all_genomes()),
        }

    def _genetic_diversity(self, genomes: list, sample: int = 20) -> float:
        """
        Estimate genetic diversity as average pairwise dissimilarity.
        Returns value 0 (identical) → 1 (maximally diverse).
        """
        if len(genomes) < 2:
            return 0.0
        sampled = genomes[:sample]
        total, count = 0.0, 0
        for i in range(len(sampled)):
            for j in range(i + 1, len(sampled)):
                total += 1.0 - genome_similarity(sampled[i], sampled[j])
                count += 1
        return total / count if count else 0.0

    def _print_stats(self, epoch: int, stats: dict):
        if not self.verbose:
            return
        if epoch % PRINT_INTERVAL == 0 or epoch < 5:
            print(
                f"Epoch {epoch:>5}  |  "
                f"best {stats['best']:.3f}  |  "
                f"mean {stats['mean']:.3f}  |  "
                f"scored {stats['scored']:>4}/{stats['pool_size']:<4}  |  "
                f"diversity {stats['diversity']:.3f}  |  "
                f"{stats['policy']:<12}  |  "
                f"{stats['elapsed_s']:.2f}s"
            )
