"""
Genome encoding / decoding for NeuroGrid.

Each gene is a 64-bit unsigned integer describing one neuron of the grid:

 Bits  0-3  : weight update    (0=additive difference, 1=strength based, else 0)
 Bits  4-7  : neuron kind      (value mod number of kinds)
 Bits  8-10 : relay direction  (index into the 8 grid directions)
 Bits 11-18 : action id        (motor neurons)
 Bits 19-26 : sensor id        (sensory neurons)
 Bits 27-35 : blink period     (2 + value, blinker neurons)
              threshold        (value / 511, threshold neurons)
 Bits 34-43 : learning rate    (value / 1024, clamped to 0..1)
 Bits 44-51 : sigmoid exponent delta        (7.0 → 13.0)
 Bits 52-59 : sigmoid numerator multiplier  (-5.0 → 5.0)

Fields overlap on purpose: each one reads its own bits and only the fields
that matter for the decoded kind are used.
"""

import numpy as np

from neuron import NeuronKind, NUM_NEURON_KINDS, WeightUpdate

GENE_BITS = 64
GENE_MASK = (1 << GENE_BITS) - 1

KIND_SHIFT = 4
KIND_MASK  = 0xF << KIND_SHIFT

_BIT_WEIGHTS = np.left_shift(np.uint64(1), np.arange(GENE_BITS, dtype=np.uint64))

# ──────────────────────────────────────────────────────────────────────────────
# Gene helpers
# ──────────────────────────────────────────────────────────────────────────────

def decode_gene(gene: int) -> dict:
    """Unpack a 64-bit int into the neuron it describes."""
    gene = int(gene) & GENE_MASK

    strategy  =  gene        & 0xF
    kind      = (gene >> 4)  & 0xF
    relay_dir = (gene >> 8)  & 0x7
    action_id = (gene >> 11) & 0xFF
    sensor_id = (gene >> 19) & 0xFF
    period    = (gene >> 27) & 0x1FF
    rate      = (gene >> 34) & 0x3FF
    exp_delta = (gene >> 44) & 0xFF
    numerator = (gene >> 52) & 0xFF

    if strategy == WeightUpdate.STRENGTH_BASED:
        weight_update = WeightUpdate.STRENGTH_BASED
    else:
        weight_update = WeightUpdate.ADDITIVE_DIFFERENCE

    return {
        "weight_update":   weight_update,
        "kind":            NeuronKind(kind % NUM_NEURON_KINDS),
        "relay_direction": relay_dir,
        "action_id":       action_id,
        "sensor_id":       sensor_id,
        "blink_period":    2 + period,
        "threshold":       period / 511.0,
        "learning_rate":   min(1.0, max(0.0, rate / 1024.0)),
        "sigmoid_exp_delta": 7.0 + exp_delta * (6.0 / 255.0),
        "sigmoid_numerator_multiplier":
            min(5.0, max(-5.0, numerator * (10.0 / 255.0) - 5.0)),
    }


def encode_gene(kind: int,
                weight_update: int = 0,
                relay_direction: int = 0,
                action_id: int = 0,
                sensor_id: int = 0,
                period_bits: int = 0,
                rate_bits: int = 0,
                exp_delta_bits: int = 0,
                numerator_bits: int = 0) -> int:
    """
    Pack raw field values back into a 64-bit int.
    Fields are ORed together, so overlapping period/rate bits combine.
    """
    gene  = (weight_update   & 0xF)
    gene |= (kind            & 0xF)   << 4
    gene |= (relay_direction & 0x7)   << 8
    gene |= (action_id       & 0xFF)  << 11
    gene |= (sensor_id       & 0xFF)  << 19
    gene |= (period_bits     & 0x1FF) << 27
    gene |= (rate_bits       & 0x3FF) << 34
    gene |= (exp_delta_bits  & 0xFF)  << 44
    gene |= (numerator_bits  & 0xFF)  << 52
    return gene & GENE_MASK


def with_kind(gene: int, kind: int) -> int:
    """Return gene with its neuron-kind field replaced."""
    return (int(gene) & ~KIND_MASK & GENE_MASK) | ((int(kind) & 0xF) << KIND_SHIFT)


# ──────────────────────────────────────────────────────────────────────────────
# Genome-level operations
# ──────────────────────────────────────────────────────────────────────────────

def random_genome(size: int, rng=None) -> list:
    """Generate a random genome as a list of 64-bit ints."""
    if rng is None:
        rng = np.random.default_rng()
    raw = rng.integers(0, GENE_MASK, size=size, dtype=np.uint64, endpoint=True)
    return [int(g) for g in raw]


def mutate_genome(genome: list, rate: float, rng=None) -> list:
    """
    Flip individual bits with probability `rate` per bit.
    Each 64-bit gene has 64 bits → expected flips ≈ rate * 64 per gene.
    """
    if rng is None:
        rng = np.random.default_rng()
    if not genome:
        return []
    flips = rng.random((len(genome), GENE_BITS)) < rate
    masks = (flips.astype(np.uint64) * _BIT_WEIGHTS).sum(axis=1, dtype=np.uint64)
    return [(int(gene) ^ int(mask)) & GENE_MASK for gene, mask in zip(genome, masks)]


def crossover_at(genome_a: list, genome_b: list, split: int) -> list:
    """Genes [0:split] from parent A and [split:] from parent B."""
    return list(genome_a[:split]) + list(genome_b[split:])


def crossover(genome_a: list, genome_b: list, rng=None) -> list:
    """
    Single-point crossover: pick a random split point in [0, len(A)),
    take genes [0:split] from parent A and [split:] from parent B.
    """
    if rng is None:
        rng = np.random.default_rng()
    size = len(genome_a)
    split = int(rng.integers(0, size)) if size else 0
    return crossover_at(genome_a, genome_b, split)


def prune_genome(genome: list, rate: float, rng=None) -> list:
    """
    Turn genes into dead neurons with probability `rate` per gene,
    leaving lesions in the grid.
    """
    if rng is None:
        rng = np.random.default_rng()
    hits = rng.random(len(genome)) < rate
    return [with_kind(gene, NeuronKind.DEAD) if hit else int(gene)
            for gene, hit in zip(genome, hits)]


def genome_similarity(genome_a: list, genome_b: list) -> float:
    """Genetic similarity (0..1) based on fraction of identical bits."""
    if not genome_a or not genome_b:
        return 0.0
    total_bits = 0
    matching   = 0
    for a, b in zip(genome_a, genome_b):
        xor = (int(a) ^ int(b)) & GENE_MASK
        matching   += GENE_BITS - bin(xor).count('1')
        total_bits += GENE_BITS
    return matching / total_bits if total_bits else 1.0
