"""
World Grid for NeuroGrid.

The world is a fixed-size 2-D grid of walls. Anything outside the grid
counts as wall. Random worlds are built in three passes, each of which
only ever adds walls:
  1. rectangular rooms
  2. diagonal wall lines
  3. scattered single walls (wall density)
"""

import numpy as np

from config import WORLD_WIDTH, WORLD_HEIGHT


class NoEmptyCellError(RuntimeError):
    """Raised when every cell of a world is a wall."""


class World:
    """
    Boolean wall grid, indexed [y][x].
    """

    def __init__(self, width: int = WORLD_WIDTH, height: int = WORLD_HEIGHT):
        if width < 1 or height < 1:
            raise ValueError(f"World must be at least 1x1, got {width}x{height}")
        self.width  = width
        self.height = height
        self._grid  = np.zeros((height, width), dtype=bool)

    # ──────────────────────────────────────────────────────────────────────────
    # Cells
    # ──────────────────────────────────────────────────────────────────────────

    def is_wall(self, x: int, y: int) -> bool:
        if not self._in_bounds(x, y):
            return True
        return bool(self._grid[y, x])

    def set_wall(self, x: int, y: int, is_wall: bool = True):
        """Set or clear a wall; out-of-bounds cells are ignored."""
        if self._in_bounds(x, y):
            self._grid[y, x] = is_wall

    def create_wall_line(self, x1: int, y1: int, x2: int, y2: int):
        """Straight wall from (x1, y1) to (x2, y2), both ends included."""
        dx = x2 - x1
        dy = y2 - y1
        steps = max(abs(dx), abs(dy))
        if steps == 0:
            self.set_wall(x1, y1)
            return
        for i in range(steps + 1):
            self.set_wall(x1 + dx * i // steps, y1 + dy * i // steps)

    def create_wall_rectangle(self, x1: int, y1: int, x2: int, y2: int):
        """Outline of a room with corners (x1, y1) and (x2, y2)."""
        self.create_wall_line(x1, y1, x2, y1)
        self.create_wall_line(x1, y2, x2, y2)
        self.create_wall_line(x1, y1, x1, y2)
        self.create_wall_line(x2, y1, x2, y2)

    def create_filled_rectangle(self, x1: int, y1: int, x2: int, y2: int):
        x1, x2 = sorted((x1, x2))
        y1, y2 = sorted((y1, y2))
        x1, x2 = max(0, x1), min(self.width - 1, x2)
        y1, y2 = max(0, y1), min(self.height - 1, y2)
        if x1 > x2 or y1 > y2:
            return
        self._grid[y1:y2 + 1, x1:x2 + 1] = True

    def scatter_walls(self, density: float, rng=None):
        """Turn every free cell into a wall with probability `density`."""
        if rng is None:
            rng = np.random.default_rng()
        self._grid |= rng.random(self._grid.shape) < density

    # ──────────────────────────────────────────────────────────────────────────
    # Queries
    # ──────────────────────────────────────────────────────────────────────────

    def get_random_empty_cell(self, rng=None):
        """Return (x, y) of a random non-wall cell."""
        if rng is None:
            rng = np.random.default_rng()
        free = np.argwhere(~self._grid)
        if len(free) == 0:
            raise NoEmptyCellError(
                f"No empty cell in {self.width}x{self.height} world")
        y, x = free[int(rng.integers(0, len(free)))]
        return int(x), int(y)

    def wall_fraction(self) -> float:
        return float(self._grid.mean())

    def snapshot(self) -> np.ndarray:
        """Copy of the wall grid, shape (height, width)."""
        return self._grid.copy()

    # ──────────────────────────────────────────────────────────────────────────
    # Generation
    # ──────────────────────────────────────────────────────────────────────────

    @classmethod
    def random_world(cls, width: int = WORLD_WIDTH, height: int = WORLD_HEIGHT,
                     wall_density: float = 0.001,
                     min_room_size: int = 8, max_room_size: int = 20,
                     num_rooms: int = 2, num_random_walls: int = 2,
                     rng=None) -> "World":
        if rng is None:
            rng = np.random.default_rng()
        if not 0.0 <= wall_density <= 1.0:
            raise ValueError(f"wall_density must be between 0 and 1, got {wall_density}")
        if not 1 <= min_room_size <= max_room_size:
            raise ValueError("room sizes must satisfy 1 <= min_room_size <= max_room_size")

        world = cls(width, height)

        for _ in range(num_rooms):
            room_w = int(rng.integers(min_room_size, max_room_size, endpoint=True))
            room_h = int(rng.integers(min_room_size, max_room_size, endpoint=True))
            x1 = int(rng.integers(0, max(1, width - room_w + 1)))
            y1 = int(rng.integers(0, max(1, height - room_h + 1)))
            world.create_wall_rectangle(x1, y1, x1 + room_w - 1, y1 + room_h - 1)

        for _ in range(num_random_walls):
            length = int(rng.integers(min_room_size, max_room_size, endpoint=True))
            x1 = int(rng.integers(0, width))
            y1 = int(rng.integers(0, height))
            sx = 1 if rng.random() < 0.5 else -1
            sy = 1 if rng.random() < 0.5 else -1
            world.create_wall_line(x1, y1, x1 + sx * length, y1 + sy * length)

        world.scatter_walls(wall_density, rng)
        return world

    # ──────────────────────────────────────────────────────────────────────────

    def _in_bounds(self, x: int, y: int) -> bool:
        return 0 <= x < self.width and 0 <= y < self.height
