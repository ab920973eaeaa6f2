"""
NeuroGrid Configuration
All tunable parameters for evolving grid brains that navigate wall worlds.
"""

from dataclasses import dataclass, fields, asdict

# ─── Brain ────────────────────────────────────────────────────────────────────
BRAIN_SIZE_X   = 10     # neuron grid rows
BRAIN_SIZE_Y   = 10     # neuron grid columns
LEARNING_RATE  = 0.1    # fallback rate for neurons without their own

# ─── Population ───────────────────────────────────────────────────────────────
NUM_GENES            = 20     # genomes in the pool
NUM_EPOCHS           = 10     # evaluate → evolve cycles per run
ELITE_SIZE           = 5      # genomes copied unchanged each generation
TOURNAMENT_SIZE      = 3      # genomes sampled per parent pick
MUTATION_RATE        = 0.1    # probability a single bit flips
PRUNING_RATE         = 0.05   # probability a gene is turned into a dead neuron
NEW_GENE_PROBABILITY = 0.1    # chance a child slot gets a fresh random genome

# ─── World ────────────────────────────────────────────────────────────────────
WORLD_WIDTH      = 100    # grid cells east-west
WORLD_HEIGHT     = 100    # grid cells north-south
WALL_DENSITY     = 0.001  # chance any free cell becomes a wall
NUM_ROOMS        = 2
NUM_RANDOM_WALLS = 2
MIN_ROOM_SIZE    = 8
MAX_ROOM_SIZE    = 20
NUM_WORLDS       = 5      # world templates generated per run

# ─── Fitness ──────────────────────────────────────────────────────────────────
NUM_MOVES_PER_TEST = 100   # simulation steps per world test
NUM_WORLDS_TO_TEST = 3     # worlds each genome is scored in
COST_OF_NOT_MOVING = 0.1   # penalty for every step without movement
ERROR_WEIGHT       = 1.0   # penalty for every step spent on a wall
MIN_SCORE          = 0.0   # scores below this count as zero

# ─── Execution ────────────────────────────────────────────────────────────────
MAX_WORKERS = 1            # threads used to score genomes within an epoch

# ─── Output / Logging ─────────────────────────────────────────────────────────
SAVE_DIR       = "output"  # directory for saved images and charts
LOG_CSV        = True      # write per-epoch CSV log
PRINT_INTERVAL = 10        # print a stats line every N epochs


# Sensor / motor ID bytes are split into eight 32-wide compass bands.
DIRECTION_LABELS = {
    0: "N",
    1: "NE",
    2: "E",
    3: "SE",
    4: "S",
    5: "SW",
    6: "W",
    7: "NW",
}


@dataclass
class GeneticWorldParams:
    """Everything a genetic navigation run needs, with module defaults."""

    brain_size_x:         int   = BRAIN_SIZE_X
    brain_size_y:         int   = BRAIN_SIZE_Y
    num_genes:            int   = NUM_GENES
    mutation_rate:        float = MUTATION_RATE
    elite_size:           int   = ELITE_SIZE
    num_epochs:           int   = NUM_EPOCHS
    new_gene_probability: float = NEW_GENE_PROBABILITY
    world_width:          int   = WORLD_WIDTH
    world_height:         int   = WORLD_HEIGHT
    wall_density:         float = WALL_DENSITY
    num_rooms:            int   = NUM_ROOMS
    num_random_walls:     int   = NUM_RANDOM_WALLS
    num_moves_per_test:   int   = NUM_MOVES_PER_TEST
    num_worlds_to_test:   int   = NUM_WORLDS_TO_TEST
    cost_of_not_moving:   float = COST_OF_NOT_MOVING
    error_weight:         float = ERROR_WEIGHT
    min_score:            float = MIN_SCORE
    pruning_rate:         float = PRUNING_RATE
    learning_rate:        float = LEARNING_RATE
    num_worlds:           int   = NUM_WORLDS
    min_room_size:        int   = MIN_ROOM_SIZE
    max_room_size:        int   = MAX_ROOM_SIZE
    tournament_size:      int   = TOURNAMENT_SIZE
    max_workers:          int   = MAX_WORKERS
    seed:                 int   = None

    # camelCase names used by the GUI / HTTP front-ends
    _CAMEL = {
        "brainSizeX":         "brain_size_x",
        "brainSizeY":         "brain_size_y",
        "numGenes":           "num_genes",
        "mutationRate":       "mutation_rate",
        "eliteSize":          "elite_size",
        "numEpochs":          "num_epochs",
        "newGeneProbability": "new_gene_probability",
        "worldWidth":         "world_width",
        "worldHeight":        "world_height",
        "wallDensity":        "wall_density",
        "numRooms":           "num_rooms",
        "numRandomWalls":     "num_random_walls",
        "numMovesPerTest":    "num_moves_per_test",
        "numWorldsToTest":    "num_worlds_to_test",
        "costOfNotMoving":    "cost_of_not_moving",
        "errorWeight":        "error_weight",
        "minScore":           "min_score",
        "pruningRate":        "pruning_rate",
        "learningRate":       "learning_rate",
        "numWorlds":          "num_worlds",
        "minRoomSize":        "min_room_size",
        "maxRoomSize":        "max_room_size",
        "tournamentSize":     "tournament_size",
        "maxWorkers":         "max_workers",
        "seed":               "seed",
    }

    @classmethod
    def from_dict(cls, data: dict) -> "GeneticWorldParams":
        """
        Build params from a dict keyed by camelCase or snake_case names.
        Unknown keys are ignored; values are coerced to the field's type.
        """
        names = {f.name: f for f in fields(cls)}
        kwargs = {}
        for key, value in (data or {}).items():
            name = cls._CAMEL.get(key, key)
            if name not in names or value is None:
                continue
            default = names[name].default
            if isinstance(default, bool):
                kwargs[name] = bool(value)
            elif isinstance(default, int):
                kwargs[name] = int(value)
            elif isinstance(default, float):
                kwargs[name] = float(value)
            else:
                kwargs[name] = int(value)   # seed
        params = cls(**kwargs)
        params.validate()
        return params

    def as_dict(self, camel: bool = False) -> dict:
        data = asdict(self)
        if camel:
            snake_to_camel = {v: k for k, v in self._CAMEL.items()}
            data = {snake_to_camel[k]: v for k, v in data.items()}
        return data

    def validate(self):
        """Raise ValueError for settings no run could use."""
        for name in ("brain_size_x", "brain_size_y", "num_genes", "world_width",
                     "world_height", "num_moves_per_test", "num_worlds_to_test",
                     "num_worlds", "tournament_size", "max_workers"):
            if getattr(self, name) < 1:
                raise ValueError(f"{name} must be at least 1, got {getattr(self, name)}")
        for name in ("num_epochs", "num_rooms", "num_random_walls", "elite_size"):
            if getattr(self, name) < 0:
                raise ValueError(f"{name} must not be negative, got {getattr(self, name)}")
        for name in ("mutation_rate", "new_gene_probability", "wall_density",
                     "pruning_rate", "learning_rate"):
            value = getattr(self, name)
            if not 0.0 <= value <= 1.0:
                raise ValueError(f"{name} must be between 0 and 1, got {value}")
        if self.elite_size >= self.num_genes:
            raise ValueError(
                f"elite_size ({self.elite_size}) must be less than num_genes ({self.num_genes})")
        if not 1 <= self.min_room_size <= self.max_room_size:
            raise ValueError("room sizes must satisfy 1 <= min_room_size <= max_room_size")
        if self.cost_of_not_moving < 0 or self.error_weight < 0 or self.min_score < 0:
            raise ValueError("fitness weights and min_score must not be negative")
