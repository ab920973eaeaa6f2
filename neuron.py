"""
Neurons for NeuroGrid.

Every cell of a grid brain is a Neuron tagged with a NeuronKind. A tick
drives three operations in a fixed global order:

  1. fire()              push weight * f(activation) into each connection target
  2. apply_stimulation() commit the pending input into the visible activation
  3. update_connection_weights(rate)  adapt outgoing weights

What each step does depends on the kind, looked up in the dispatch tables at
the bottom of this module.
"""

import math
from enum import IntEnum


class NeuronKind(IntEnum):
    """Neuron variants, numbered in gene-selector order."""
    REGULAR       = 0
    INHIBITORY    = 1
    SINE          = 2
    FIXED_WEIGHT  = 3
    RELAY         = 4
    DEAD          = 5
    MOTOR         = 6
    SENSORY       = 7
    BLINKER       = 8
    PAIN_RECEPTOR = 9
    THRESHOLD     = 10


NUM_NEURON_KINDS = len(NeuronKind)


class WeightUpdate(IntEnum):
    ADDITIVE_DIFFERENCE = 0
    STRENGTH_BASED      = 1


class Direction(IntEnum):
    """The 8 grid neighbours of a cell, with (row, col) offsets."""
    UP         = 0
    DOWN       = 1
    LEFT       = 2
    RIGHT      = 3
    UP_LEFT    = 4
    UP_RIGHT   = 5
    DOWN_LEFT  = 6
    DOWN_RIGHT = 7

    @property
    def offsets(self):
        return _DIRECTION_OFFSETS[self]


_DIRECTION_OFFSETS = {
    Direction.UP:         (-1,  0),
    Direction.DOWN:       ( 1,  0),
    Direction.LEFT:       ( 0, -1),
    Direction.RIGHT:      ( 0,  1),
    Direction.UP_LEFT:    (-1, -1),
    Direction.UP_RIGHT:   (-1,  1),
    Direction.DOWN_LEFT:  ( 1, -1),
    Direction.DOWN_RIGHT: ( 1,  1),
}

SINE_TIME_STEP      = 0.1
DEFAULT_EXP_DELTA   = 10.0
DEFAULT_NUMERATOR   = 1.0
_MAX_EXPONENT       = 700.0     # keeps math.exp finite


class Connection:
    """Outgoing link to another neuron. The target is not owned."""
    __slots__ = ("neuron", "weight")

    def __init__(self, neuron, weight: float):
        self.neuron = neuron
        self.weight = weight

    def __repr__(self):
        return f"Connection({self.neuron.kind.name}, weight={self.weight:+.3f})"


class Neuron:
    """
    A single grid cell.

    Kind-specific fields are only meaningful for their kind: action_id for
    motors, sensor_id for sensory neurons, blink_period for blinkers,
    threshold for threshold neurons, relay_direction for relays.
    """
    __slots__ = (
        "kind", "weight_update", "learning_rate",
        "sigmoid_exp_delta", "sigmoid_numerator_multiplier",
        "connections", "action_id", "sensor_id", "blink_period",
        "threshold", "relay_direction", "_value", "_pending", "_turn_count", "_time",
        "_relay_target",
    )

    def __init__(self, kind: NeuronKind = NeuronKind.REGULAR,
                 weight_update: WeightUpdate = WeightUpdate.ADDITIVE_DIFFERENCE,
                 learning_rate: float = None,
                 sigmoid_exp_delta: float = DEFAULT_EXP_DELTA,
                 sigmoid_numerator_multiplier: float = DEFAULT_NUMERATOR,
                 action_id: int = 0,
                 sensor_id: int = 0,
                 blink_period: int = 2,
                 threshold: float = 0.5,
                 relay_direction: int = 0):
        if kind == NeuronKind.THRESHOLD and not 0.0 <= threshold <= 1.0:
            raise ValueError(
                f"Threshold must be between 0 and 1, value passed was {threshold}")
        if kind == NeuronKind.BLINKER and blink_period < 0:
            raise ValueError(f"Blink period must not be negative, got {blink_period}")

        self.kind          = NeuronKind(kind)
        self.weight_update = WeightUpdate(weight_update)
        self.learning_rate = learning_rate
        self.sigmoid_exp_delta            = sigmoid_exp_delta
        self.sigmoid_numerator_multiplier = sigmoid_numerator_multiplier
        self.connections   = []
        self.action_id     = action_id & 0xFF
        self.sensor_id     = sensor_id & 0xFF
        self.blink_period  = blink_period
        self.threshold     = threshold
        self.relay_direction = Direction(relay_direction & 0x7)
        self._value        = 0.0
        self._pending      = 0.0
        self._turn_count   = 0
        self._time         = 0.0
        self._relay_target = None

    # ──────────────────────────────────────────────────────────────────────────
    # State
    # ──────────────────────────────────────────────────────────────────────────

    @property
    def activation(self) -> float:
        return _ACTIVATION[self.kind](self)

    @property
    def pending_stimulation(self) -> float:
        return self._pending

    @property
    def turn_count(self) -> int:
        return self._turn_count

    @property
    def relay_target(self):
        return self._relay_target

    def sigmoid(self, x: float) -> float:
        z = -x * self.sigmoid_exp_delta / DEFAULT_EXP_DELTA
        z = max(-_MAX_EXPONENT, min(_MAX_EXPONENT, z))
        return self.sigmoid_numerator_multiplier / (1.0 + math.exp(z))

    # ──────────────────────────────────────────────────────────────────────────
    # Wiring
    # ──────────────────────────────────────────────────────────────────────────

    def connect(self, neuron, strength: float = 1.0):
        """
        Add an outgoing connection. Strength must lie in [-1, 1]; connecting
        to an already connected neuron keeps the original weight.
        """
        if not -1.0 <= strength <= 1.0:
            raise ValueError(f"Connection strength must be between -1 and 1, got {strength}")
        if self.connection_to(neuron) is None:
            self.connections.append(Connection(neuron, strength))

    def connection_to(self, neuron):
        for c in self.connections:
            if c.neuron is neuron:
                return c
        return None

    def initial_weight(self, direction: Direction) -> float:
        """Weight this neuron wants on a fresh connection in `direction`."""
        return _STARTING_WEIGHT[self.weight_update]

    def set_relay_target(self, neuron):
        if self.connection_to(neuron) is None:
            raise ValueError("Target neuron must be connected first")
        self._relay_target = neuron

    def reset(self):
        """Clear activation, pending input and internal clocks."""
        self._value = 0.0
        self._pending = 0.0
        self._turn_count = 0
        self._time = 0.0

    # ──────────────────────────────────────────────────────────────────────────
    # Tick operations
    # ──────────────────────────────────────────────────────────────────────────

    def stimulate(self, value: float):
        """Input arriving from another neuron."""
        _STIMULATE[self.kind](self, value)

    def stimulate_from_environment(self, value: float):
        """Input arriving from the world (the only input sensory/pain cells take)."""
        if self.kind != NeuronKind.DEAD:
            self._pending += value

    def fire(self):
        _FIRE[self.kind](self)

    def apply_stimulation(self):
        _APPLY[self.kind](self)

    def update_connection_weights(self, learning_rate: float):
        if self.learning_rate is not None:
            learning_rate = self.learning_rate
        _UPDATE_WEIGHTS[self.kind](self, learning_rate)

    def __repr__(self):
        extra = ""
        if self.kind == NeuronKind.MOTOR:
            extra = f"actionId={self.action_id}, "
        elif self.kind == NeuronKind.SENSORY:
            extra = f"sensorId={self.sensor_id}, "
        elif self.kind == NeuronKind.BLINKER:
            extra = f"period={self.blink_period}, "
        elif self.kind == NeuronKind.THRESHOLD:
            extra = f"threshold={self.threshold:.3f}, "
        return (f"{self.kind.name.title().replace('_', '')}Neuron("
                f"{extra}value={self.activation:.4f}, "
                f"connections={len(self.connections)})")


# ──────────────────────────────────────────────────────────────────────────────
# Weight update strategies
# ──────────────────────────────────────────────────────────────────────────────

def _clamp_weight(w: float) -> float:
    return max(-1.0, min(1.0, w))


def additive_difference(source: Neuron, target: Neuron,
                        current: float, learning_rate: float) -> float:
    """w' = w + (source activation - target activation)"""
    return _clamp_weight(current + (source.activation - target.activation))


def strength_based(source: Neuron, target: Neuron,
                   current: float, learning_rate: float) -> float:
    """w' = w + rate * max(source activation, target activation)"""
    return _clamp_weight(
        current + learning_rate * max(source.activation, target.activation))


WEIGHT_UPDATE_FUNCTIONS = {
    WeightUpdate.ADDITIVE_DIFFERENCE: additive_difference,
    WeightUpdate.STRENGTH_BASED:      strength_based,
}

_STARTING_WEIGHT = {
    WeightUpdate.ADDITIVE_DIFFERENCE: 0.5,
    WeightUpdate.STRENGTH_BASED:      0.0,
}


# ──────────────────────────────────────────────────────────────────────────────
# Per-kind behaviour
# ──────────────────────────────────────────────────────────────────────────────

def _value(n):
    return n._value


def _sine_value(n):
    return math.sin(n._time)


def _blink_value(n):
    return 1.0 if n._turn_count == n.blink_period else 0.0


def _zero(n):
    return 0.0


def _accumulate(n, value):
    n._pending += value


def _ignore(n, value=None):
    pass


def _fire_with(signal):
    def fire(n):
        s = signal(n)
        for c in n.connections:
            c.neuron.stimulate(c.weight * s)
    return fire


def _fire_relay(n):
    a = n.activation
    for c in n.connections:
        if c.neuron is n._relay_target:
            c.neuron.stimulate(c.weight * a)
        else:
            c.neuron.stimulate(0.0)


def _commit_sigmoid(n):
    n._value = n.sigmoid(n._pending)
    n._pending = 0.0


def _commit_threshold(n):
    n._value = 1.0 if n._pending >= n.threshold else 0.0
    n._pending = 0.0


def _advance_blinker(n):
    n._turn_count += 1
    if n._turn_count > n.blink_period:
        n._turn_count = 0
    n._pending = 0.0


def _advance_sine(n):
    n._time += SINE_TIME_STEP
    n._pending = 0.0


def _update_weights(n, learning_rate):
    update = WEIGHT_UPDATE_FUNCTIONS[n.weight_update]
    for c in n.connections:
        c.weight = update(n, c.neuron, c.weight, learning_rate)


_fire_activation = _fire_with(lambda n: n.activation)

_ACTIVATION = {
    NeuronKind.REGULAR:       _value,
    NeuronKind.INHIBITORY:    _value,
    NeuronKind.SINE:          _sine_value,
    NeuronKind.FIXED_WEIGHT:  _value,
    NeuronKind.RELAY:         _value,
    NeuronKind.DEAD:          _zero,
    NeuronKind.MOTOR:         _value,
    NeuronKind.SENSORY:       _value,
    NeuronKind.BLINKER:       _blink_value,
    NeuronKind.PAIN_RECEPTOR: _value,
    NeuronKind.THRESHOLD:     _value,
}

_STIMULATE = {
    NeuronKind.REGULAR:       _accumulate,
    NeuronKind.INHIBITORY:    _accumulate,
    NeuronKind.SINE:          _ignore,
    NeuronKind.FIXED_WEIGHT:  _accumulate,
    NeuronKind.RELAY:         _accumulate,
    NeuronKind.DEAD:          _ignore,
    NeuronKind.MOTOR:         _accumulate,
    NeuronKind.SENSORY:       _ignore,
    NeuronKind.BLINKER:       _accumulate,
    NeuronKind.PAIN_RECEPTOR: _ignore,
    NeuronKind.THRESHOLD:     _accumulate,
}

_FIRE = {
    NeuronKind.REGULAR:       _fire_activation,
    NeuronKind.INHIBITORY:    _fire_with(lambda n: -n.activation),
    NeuronKind.SINE:          _fire_activation,
    NeuronKind.FIXED_WEIGHT:  _fire_activation,
    NeuronKind.RELAY:         _fire_relay,
    NeuronKind.DEAD:          _ignore,
    NeuronKind.MOTOR:         _fire_activation,
    NeuronKind.SENSORY:       _fire_activation,
    NeuronKind.BLINKER:       _fire_activation,
    NeuronKind.PAIN_RECEPTOR: _fire_with(lambda n: 1.0),
    NeuronKind.THRESHOLD:     _fire_activation,
}

_APPLY = {
    NeuronKind.REGULAR:       _commit_sigmoid,
    NeuronKind.INHIBITORY:    _commit_sigmoid,
    NeuronKind.SINE:          _advance_sine,
    NeuronKind.FIXED_WEIGHT:  _commit_sigmoid,
    NeuronKind.RELAY:         _commit_sigmoid,
    NeuronKind.DEAD:          _ignore,
    NeuronKind.MOTOR:         _commit_sigmoid,
    NeuronKind.SENSORY:       _commit_sigmoid,
    NeuronKind.BLINKER:       _advance_blinker,
    NeuronKind.PAIN_RECEPTOR: _commit_sigmoid,
    NeuronKind.THRESHOLD:     _commit_threshold,
}

_UPDATE_WEIGHTS = {
    NeuronKind.REGULAR:       _update_weights,
    NeuronKind.INHIBITORY:    _update_weights,
    NeuronKind.SINE:          _update_weights,
    NeuronKind.FIXED_WEIGHT:  _ignore,
    NeuronKind.RELAY:         _update_weights,
    NeuronKind.DEAD:          _ignore,
    NeuronKind.MOTOR:         _update_weights,
    NeuronKind.SENSORY:       _update_weights,
    NeuronKind.BLINKER:       _update_weights,
    NeuronKind.PAIN_RECEPTOR: _update_weights,
    NeuronKind.THRESHOLD:     _update_weights,
}

for _table in (_ACTIVATION, _STIMULATE, _FIRE, _APPLY, _UPDATE_WEIGHTS):
    _missing = set(NeuronKind) - set(_table)
    if _missing:
        raise RuntimeError(f"no behaviour registered for {sorted(k.name for k in _missing)}")
