import pytest

from config import GeneticWorldParams


@pytest.fixture
def small_params():
    return GeneticWorldParams(
        brain_size_x=3, brain_size_y=3,
        num_genes=6, elite_size=1, num_epochs=2,
        world_width=12, world_height=12,
        num_rooms=1, num_random_walls=1,
        min_room_size=3, max_room_size=5,
        wall_density=0.01,
        num_moves_per_test=8, num_worlds_to_test=2, num_worlds=2,
        seed=99,
    )
