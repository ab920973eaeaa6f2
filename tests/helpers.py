from neuron import Neuron


class ListProvider:
    """Hands out prepared neurons in row-major order."""

    def __init__(self, neurons):
        self.neurons = list(neurons)

    def get_neuron(self):
        return self.neurons.pop(0)


def grid_of(kind, count, **kwargs):
    return ListProvider(Neuron(kind, **kwargs) for _ in range(count))
