"""
Navigation simulation for NeuroGrid.

Agents live at (x, y) positions in a wall World. Sensory and motor neurons
are bound to compass directions by their ID byte: the 256 values are split
into eight bands of 32 (N, NE, E, SE, S, SW, W, NW).

Every step, per agent:
  1. Sensory neurons get 1.0 if the neighbouring cell in their direction is
     a wall, else 0.0
  2. The agent iterates its brain
  3. Motor neurons above MOTOR_THRESHOLD each push the agent
     max_movement_delta cells in their direction; the pushes add up
  4. Pain receptors get 1.0 if the agent ended up on a wall
"""

from collections import namedtuple

from config import DIRECTION_LABELS

AgentPosition = namedtuple("AgentPosition", ["x", "y"])

# compass band → (dx, dy); y grows southwards
COMPASS = [(0, -1), (1, -1), (1, 0), (1, 1), (0, 1), (-1, 1), (-1, 0), (-1, -1)]
BAND_WIDTH = 0x20

MOTOR_THRESHOLD = 0.5


def direction_band(id_byte: int) -> int:
    """Compass band (0=N … 7=NW) an 8-bit sensor/action ID belongs to."""
    return (int(id_byte) & 0xFF) // BAND_WIDTH


def band_label(id_byte: int) -> str:
    return DIRECTION_LABELS[direction_band(id_byte)]


class NavigationSimulation:
    """
    Steps neural agents through a shared, read-only World.
    """

    def __init__(self, world, max_movement_delta: int = 1):
        self.world = world
        self.max_movement_delta = max_movement_delta
        self.error_count = 0
        self.step_count  = 0
        self._agents     = []
        self._positions  = {}     # id(agent) → AgentPosition
        self._moves      = {}     # id(agent) → [dx, dy] collected this step
        self._sensors    = {}     # id(agent) → [(neuron, dx, dy)]
        self._pain       = {}     # id(agent) → [pain receptors]

    # ──────────────────────────────────────────────────────────────────────────
    # Agents
    # ──────────────────────────────────────────────────────────────────────────

    def add_agent(self, agent, position=(0, 0)):
        self._agents.append(agent)
        self._positions[id(agent)] = AgentPosition(*position)
        self._moves[id(agent)] = [0, 0]
        self._setup_agent(agent)

    def remove_agent(self, agent) -> bool:
        if agent not in self._agents:
            return False
        self._agents.remove(agent)
        self._positions.pop(id(agent), None)
        self._moves.pop(id(agent), None)
        self._sensors.pop(id(agent), None)
        self._pain.pop(id(agent), None)
        agent.clear_actions()
        return True

    def get_agents(self) -> list:
        return list(self._agents)

    def get_agent_position(self, agent):
        return self._positions.get(id(agent))

    def set_agent_position(self, agent, position) -> bool:
        if agent not in self._agents:
            return False
        self._positions[id(agent)] = AgentPosition(*position)
        return True

    def is_agent_on_wall(self, agent) -> bool:
        pos = self.get_agent_position(agent)
        return pos is not None and self.world.is_wall(pos.x, pos.y)

    def is_agent_out_of_bounds(self, agent) -> bool:
        pos = self.get_agent_position(agent)
        return pos is not None and not (0 <= pos.x < self.world.width
                                        and 0 <= pos.y < self.world.height)

    # ──────────────────────────────────────────────────────────────────────────
    # Wiring
    # ──────────────────────────────────────────────────────────────────────────

    def _setup_agent(self, agent):
        moves = self._moves[id(agent)]
        delta = self.max_movement_delta

        def push(dx, dy):
            def action(neuron):
                if neuron.activation > MOTOR_THRESHOLD:
                    moves[0] += dx * delta
                    moves[1] += dy * delta
            return action

        for neuron in agent.find_motor_neurons():
            dx, dy = COMPASS[direction_band(neuron.action_id)]
            agent.add_neuron_action(neuron, push(dx, dy))

        self._sensors[id(agent)] = [
            (neuron, *COMPASS[direction_band(neuron.sensor_id)])
            for neuron in agent.find_sensory_neurons()
        ]
        self._pain[id(agent)] = agent.find_pain_receptor_neurons()

    def _sense(self, agent):
        pos = self._positions[id(agent)]
        for neuron, dx, dy in self._sensors[id(agent)]:
            wall = self.world.is_wall(pos.x + dx, pos.y + dy)
            neuron.stimulate_from_environment(1.0 if wall else 0.0)

    # ──────────────────────────────────────────────────────────────────────────
    # Step
    # ──────────────────────────────────────────────────────────────────────────

    def step(self):
        """Advance every agent by one brain iteration and apply its moves."""
        for agent in self._agents:
            moves = self._moves[id(agent)]
            moves[0] = moves[1] = 0

            self._sense(agent)
            agent.iterate()

            dx, dy = moves
            if dx or dy:
                pos = self._positions[id(agent)]
                self._positions[id(agent)] = AgentPosition(pos.x + dx, pos.y + dy)

            if self.is_agent_on_wall(agent):
                self.error_count += 1
                for neuron in self._pain[id(agent)]:
                    neuron.stimulate_from_environment(1.0)

        self.step_count += 1

    def snapshot(self) -> dict:
        """Read-only view for display code."""
        return {
            "step":      self.step_count,
            "errors":    self.error_count,
            "positions": [tuple(self._positions[id(a)]) for a in self._agents],
        }
