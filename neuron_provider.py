"""
Neuron providers hand out one neuron per grid cell while a NeuralNet is
being built. The genetic provider reads its genome cyclically, so a genome
shorter than the grid is simply reused from the start.
"""

import numpy as np

from genome import decode_gene
from neuron import Neuron, NeuronKind, WeightUpdate


def neuron_from_fields(fields: dict) -> Neuron:
    """Build the neuron described by a decoded gene."""
    return Neuron(
        kind=fields["kind"],
        weight_update=fields["weight_update"],
        learning_rate=fields["learning_rate"],
        sigmoid_exp_delta=fields["sigmoid_exp_delta"],
        sigmoid_numerator_multiplier=fields["sigmoid_numerator_multiplier"],
        action_id=fields["action_id"],
        sensor_id=fields["sensor_id"],
        blink_period=fields["blink_period"],
        threshold=fields["threshold"],
        relay_direction=fields["relay_direction"],
    )


class GeneticNeuronProvider:
    """Builds neurons from a genome, one gene per call."""

    def __init__(self, genome: list):
        if len(genome) == 0:
            raise ValueError("Genome must contain at least one gene")
        self.genome = list(genome)
        self._pointer = 0

    def get_neuron(self) -> Neuron:
        gene = self.genome[self._pointer]
        self._pointer += 1
        if self._pointer >= len(self.genome):
            self._pointer = 0
        return neuron_from_fields(decode_gene(gene))

    def reset(self):
        self._pointer = 0


class DefaultNeuronProvider:
    """Every cell is a regular neuron."""

    def __init__(self, weight_update: WeightUpdate = WeightUpdate.ADDITIVE_DIFFERENCE):
        self.weight_update = weight_update

    def get_neuron(self) -> Neuron:
        return Neuron(NeuronKind.REGULAR, self.weight_update)


class RandomNeuronProvider:
    """
    Random mix of regular, inhibitory, sine and fixed-weight neurons.
    Whatever the three percentages leave over is regular.
    """

    def __init__(self, inhibitory_pct: float, sine_pct: float,
                 fixed_weight_pct: float = 0.0,
                 weight_update: WeightUpdate = WeightUpdate.ADDITIVE_DIFFERENCE,
                 rng=None):
        if min(inhibitory_pct, sine_pct, fixed_weight_pct) < 0:
            raise ValueError("All percentages must be between 0 and 1")
        total = inhibitory_pct + sine_pct + fixed_weight_pct
        if total > 1.0:
            raise ValueError(f"Percentages must sum to 1.0 or less, but sum to {total}")
        self.inhibitory_pct   = inhibitory_pct
        self.sine_pct         = sine_pct
        self.fixed_weight_pct = fixed_weight_pct
        self.weight_update    = weight_update
        self.rng = rng if rng is not None else np.random.default_rng()

    def get_neuron(self) -> Neuron:
        regular = 1.0 - self.inhibitory_pct - self.sine_pct - self.fixed_weight_pct
        r = self.rng.random()
        if r < regular:
            kind = NeuronKind.REGULAR
        elif r < regular + self.inhibitory_pct:
            kind = NeuronKind.INHIBITORY
        elif r < regular + self.inhibitory_pct + self.sine_pct:
            kind = NeuronKind.SINE
        else:
            kind = NeuronKind.FIXED_WEIGHT
        return Neuron(kind, self.weight_update)
