"""
Neural agent for NeuroGrid.

An agent wraps one grid brain. Every iteration it:
  1. Ticks the network (fire → apply)
  2. Updates the connection weights from the new activations
  3. Runs the actions registered against individual neurons (e.g. move
     when a motor neuron is active)
"""

from neural_network import NeuralNet
from neuron import NeuronKind


class NeuralAgent:
    """
    Decision maker driven by a NeuralNet.
    """

    def __init__(self, neural_net: NeuralNet, learning_rate: float = 0.1):
        self.neural_net    = neural_net
        self.learning_rate = learning_rate
        self._actions      = []      # (neuron, callable) in registration order

    def iterate(self):
        """Perform one iteration of the neural network."""
        self.neural_net.fire_and_update()
        self.neural_net.update_all_weights(self.learning_rate)
        for neuron, action in self._actions:
            action(neuron)

    def add_neuron_action(self, neuron, action):
        """Call `action(neuron)` after every iteration."""
        self._actions.append((neuron, action))

    def clear_actions(self):
        self._actions = []

    # ──────────────────────────────────────────────────────────────────────────
    # Neuron lookup (row-major order)
    # ──────────────────────────────────────────────────────────────────────────

    def find_motor_neurons(self, id_filter=None) -> list:
        return [n for n in self.neural_net.neurons_of_kind(NeuronKind.MOTOR)
                if id_filter is None or id_filter(n.action_id)]

    def find_sensory_neurons(self, id_filter=None) -> list:
        return [n for n in self.neural_net.neurons_of_kind(NeuronKind.SENSORY)
                if id_filter is None or id_filter(n.sensor_id)]

    def find_pain_receptor_neurons(self) -> list:
        return self.neural_net.neurons_of_kind(NeuronKind.PAIN_RECEPTOR)
