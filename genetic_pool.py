"""
Genetic pool for NeuroGrid.

Holds a population of genomes (one 64-bit gene per brain cell) together
with a fitness score per genome. A generation step:
  1. copies the elite (highest fitness, NaN excluded) unchanged
  2. fills the rest with fresh random genomes or with children of two
     tournament-selected parents (crossover → mutation → pruning)
  3. resets every fitness score to zero
"""

import math

import numpy as np

from config import MUTATION_RATE, PRUNING_RATE, TOURNAMENT_SIZE
from genome import random_genome, crossover, mutate_genome, prune_genome
from neuron_provider import GeneticNeuronProvider


class GeneticPool:

    def __init__(self, rows: int, cols: int, pool_size: int,
                 mutation_rate: float = MUTATION_RATE,
                 pruning_rate: float = PRUNING_RATE,
                 tournament_size: int = TOURNAMENT_SIZE,
                 rng=None):
        if rows < 1 or cols < 1 or pool_size < 1:
            raise ValueError("rows, cols and pool_size must all be at least 1")
        if not 0.0 <= mutation_rate <= 1.0:
            raise ValueError(f"Mutation rate must be between 0 and 1, got {mutation_rate}")
        if not 0.0 <= pruning_rate <= 1.0:
            raise ValueError(f"Pruning rate must be between 0 and 1, got {pruning_rate}")
        self.rows            = rows
        self.cols            = cols
        self.mutation_rate   = mutation_rate
        self.pruning_rate    = pruning_rate
        self.tournament_size = tournament_size
        self.rng             = rng if rng is not None else np.random.default_rng()

        self._pool    = [self.generate_genome() for _ in range(pool_size)]
        self._fitness = [0.0] * pool_size

    # ──────────────────────────────────────────────────────────────────────────
    # Accessors
    # ──────────────────────────────────────────────────────────────────────────

    @property
    def pool_size(self) -> int:
        return len(self._pool)

    @property
    def genome_length(self) -> int:
        return self.rows * self.cols

    def __len__(self):
        return len(self._pool)

    def get_genome(self, index: int) -> list:
        self._check_index(index)
        return self._pool[index]

    def get_all_genomes(self) -> list:
        return list(self._pool)

    def get_fitness(self, index: int) -> float:
        self._check_index(index)
        return self._fitness[index]

    def get_fitness_scores(self) -> list:
        return list(self._fitness)

    def set_fitness(self, index: int, fitness: float):
        self._check_index(index)
        if fitness < 0:
            raise ValueError(f"Fitness must be non-negative, got {fitness}")
        self._fitness[index] = float(fitness)

    def best_index(self) -> int:
        """Index of the fittest genome (NaN ignored, ties → first)."""
        return max(range(len(self._fitness)), key=lambda i: self._rank(i))

    def for_each_provider(self, action):
        """Call action(index, GeneticNeuronProvider) for every genome."""
        for i, genome in enumerate(self._pool):
            action(i, GeneticNeuronProvider(genome))

    def get_random_provider(self) -> GeneticNeuronProvider:
        """Provider for a genome drawn uniformly from the top 10% by fitness."""
        top = sorted(range(len(self._pool)), key=lambda i: -self._rank(i))
        top = top[:max(1, len(self._pool) // 10)]
        pick = top[int(self.rng.integers(0, len(top)))]
        return GeneticNeuronProvider(self._pool[pick])

    # ──────────────────────────────────────────────────────────────────────────
    # Operators
    # ──────────────────────────────────────────────────────────────────────────

    def generate_genome(self) -> list:
        return random_genome(self.genome_length, self.rng)

    def crossover(self, parent1_index: int, parent2_index: int) -> list:
        """Single-point crossover of two pool members."""
        if not (0 <= parent1_index < len(self._pool) and 0 <= parent2_index < len(self._pool)):
            raise ValueError("Parent indices out of bounds")
        return crossover(self._pool[parent1_index], self._pool[parent2_index], self.rng)

    def mutate_genome(self, genome: list) -> list:
        return mutate_genome(genome, self.mutation_rate, self.rng)

    def prune(self, genome: list) -> list:
        return prune_genome(genome, self.pruning_rate, self.rng)

    def tournament_select(self, tournament_size: int = None) -> int:
        """Index of the fittest of a random sample of the pool."""
        size = tournament_size if tournament_size is not None else self.tournament_size
        size = max(1, min(size, len(self._pool)))
        contenders = self.rng.choice(len(self._pool), size=size, replace=False)
        return int(max(contenders, key=lambda i: self._rank(int(i))))

    def elite_indices(self, elite_size: int) -> list:
        ranked = [i for i in range(len(self._fitness)) if not math.isnan(self._fitness[i])]
        ranked.sort(key=lambda i: -self._fitness[i])
        return ranked[:elite_size]

    # ──────────────────────────────────────────────────────────────────────────
    # Generations
    # ──────────────────────────────────────────────────────────────────────────

    def evolve(self, generation_size: int, elite_size: int = 2,
               new_gene_probability: float = 0.1):
        """
        Replace the whole population with a new generation of
        `generation_size` genomes and reset all fitness scores.
        """
        if elite_size >= generation_size:
            raise ValueError(
                f"Elite size ({elite_size}) must be less than generation size ({generation_size})")
        if elite_size < 0:
            raise ValueError(f"Elite size must not be negative, got {elite_size}")

        new_pool = [list(self._pool[i]) for i in self.elite_indices(elite_size)]

        while len(new_pool) < generation_size:
            if self.rng.random() < new_gene_probability:
                child = self.generate_genome()
            else:
                p1 = self.tournament_select()
                p2 = self.tournament_select()
                child = self.crossover(p1, p2)
                child = self.mutate_genome(child)
                child = self.prune(child)
            new_pool.append(child)

        self._pool    = new_pool
        self._fitness = [0.0] * generation_size

    def reinitialize(self, pool_size: int = None):
        """Throw the population away and start over with random genomes."""
        size = pool_size if pool_size is not None else len(self._pool)
        self._pool    = [self.generate_genome() for _ in range(size)]
        self._fitness = [0.0] * size

    # ──────────────────────────────────────────────────────────────────────────

    def _rank(self, index: int) -> float:
        f = self._fitness[index]
        return -math.inf if math.isnan(f) else f

    def _check_index(self, index: int):
        if not 0 <= index < len(self._pool):
            raise ValueError(f"Index {index} out of bounds for pool of {len(self._pool)}")
