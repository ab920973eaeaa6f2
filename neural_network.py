"""
Grid Neural Network for NeuroGrid.

A rows x cols toroidal grid of neurons. Every cell connects to its 8
neighbours, wrapping around the edges (row and column wrap independently).

Tick (per simulation step):
  1. fire_and_update()       every cell fires from the pre-tick state, then
                             every cell commits what it received
  2. update_all_weights(r)   every cell adapts its outgoing weights from the
                             post-tick activations
"""

import numpy as np

from neuron import Direction, NeuronKind
from neuron_provider import DefaultNeuronProvider


class NeuralNet:
    """
    Grid brain built cell by cell (row-major) from a neuron provider.
    Connectivity is fixed once constructed.
    """

    def __init__(self, rows: int, cols: int, provider=None):
        if rows < 1 or cols < 1:
            raise ValueError(f"Grid must be at least 1x1, got {rows}x{cols}")
        self.rows = rows
        self.cols = cols
        provider = provider if provider is not None else DefaultNeuronProvider()

        self._grid = [[provider.get_neuron() for _ in range(cols)]
                      for _ in range(rows)]
        # position lookup for display code (neurons don't know where they are)
        self._positions = {
            id(self._grid[r][c]): (r, c)
            for r in range(rows) for c in range(cols)
        }
        self._wire()

    # ──────────────────────────────────────────────────────────────────────────

    def _neighbour(self, row: int, col: int, direction: Direction):
        dr, dc = direction.offsets
        return (row + dr) % self.rows, (col + dc) % self.cols

    def _wire(self):
        for r, c, neuron in self.cells():
            for direction in Direction:
                nr, nc = self._neighbour(r, c, direction)
                if (nr, nc) == (r, c):
                    continue       # 1-wide grids would wrap onto themselves
                neuron.connect(self._grid[nr][nc], neuron.initial_weight(direction))

            if neuron.kind == NeuronKind.RELAY:
                nr, nc = self._neighbour(r, c, neuron.relay_direction)
                if (nr, nc) != (r, c):
                    neuron.set_relay_target(self._grid[nr][nc])

    # ──────────────────────────────────────────────────────────────────────────
    # Tick
    # ──────────────────────────────────────────────────────────────────────────

    def fire_and_update(self):
        """Fire every cell, then commit every cell. Order within a phase is row-major."""
        for row in self._grid:
            for neuron in row:
                neuron.fire()
        for row in self._grid:
            for neuron in row:
                neuron.apply_stimulation()

    def update_all_weights(self, learning_rate: float):
        for row in self._grid:
            for neuron in row:
                neuron.update_connection_weights(learning_rate)

    # ──────────────────────────────────────────────────────────────────────────
    # Lookup
    # ──────────────────────────────────────────────────────────────────────────

    def get_cell_at(self, row: int, col: int):
        if not (0 <= row < self.rows and 0 <= col < self.cols):
            raise ValueError(f"Cell ({row}, {col}) outside {self.rows}x{self.cols} grid")
        return self._grid[row][col]

    def cells(self):
        """Yield (row, col, neuron) in row-major order."""
        for r in range(self.rows):
            for c in range(self.cols):
                yield r, c, self._grid[r][c]

    def neurons_of_kind(self, kind: NeuronKind) -> list:
        return [n for _, _, n in self.cells() if n.kind == kind]

    def position_of(self, neuron):
        """(row, col) of a neuron in this grid, or None."""
        return self._positions.get(id(neuron))

    def relay_target_position(self, row: int, col: int):
        """Grid position a relay cell forwards to, or None."""
        neuron = self.get_cell_at(row, col)
        if neuron.relay_target is None:
            return None
        return self.position_of(neuron.relay_target)

    def get_connection_strength_from(self, row: int, col: int,
                                     direction: Direction) -> float:
        """Weight of the connection from (row, col) towards `direction`."""
        neuron = self.get_cell_at(row, col)
        nr, nc = self._neighbour(row, col, direction)
        connection = neuron.connection_to(self._grid[nr][nc])
        return connection.weight if connection is not None else 0.0

    # ──────────────────────────────────────────────────────────────────────────
    # Snapshots
    # ──────────────────────────────────────────────────────────────────────────

    def activations(self) -> np.ndarray:
        """float64 array of shape (rows, cols) with the current activations."""
        return np.array([[n.activation for n in row] for row in self._grid],
                        dtype=np.float64)

    def kinds(self) -> np.ndarray:
        return np.array([[int(n.kind) for n in row] for row in self._grid],
                        dtype=np.int8)

    def kind_counts(self) -> dict:
        counts = {kind.name: 0 for kind in NeuronKind}
        for _, _, n in self.cells():
            counts[n.kind.name] += 1
        return counts

    def summary(self) -> str:
        lines = [f"NeuralNet ({self.rows}x{self.cols})"]
        for name, count in self.kind_counts().items():
            if count:
                lines.append(f"  {name:<14} {count:>5}")
        return "\n".join(lines)
