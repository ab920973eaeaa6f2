import pytest

from config import GeneticWorldParams, NUM_GENES


def test_defaults_are_valid():
    params = GeneticWorldParams()
    params.validate()
    assert params.num_genes == NUM_GENES
    assert params.seed is None


def test_from_dict_accepts_camel_and_snake_case():
    params = GeneticWorldParams.from_dict({
        "brainSizeX": "4", "brain_size_y": 5, "mutationRate": 0.2,
        "numGenes": 10, "eliteSize": 2, "seed": 7, "unknownKey": 1,
    })
    assert params.brain_size_x == 4
    assert params.brain_size_y == 5
    assert params.mutation_rate == 0.2
    assert params.num_genes == 10
    assert params.elite_size == 2
    assert params.seed == 7


def test_from_dict_none_keeps_default():
    assert GeneticWorldParams.from_dict({"numGenes": None}).num_genes == NUM_GENES
    assert GeneticWorldParams.from_dict(None) == GeneticWorldParams()


def test_as_dict_round_trips_through_camel_case():
    params = GeneticWorldParams(num_genes=12, elite_size=3, seed=1)
    camel = params.as_dict(camel=True)
    assert camel["numGenes"] == 12
    assert "num_genes" not in camel
    assert GeneticWorldParams.from_dict(camel) == params
    assert params.as_dict()["elite_size"] == 3


@pytest.mark.parametrize("changes", [
    {"num_genes": 5, "elite_size": 5},
    {"brain_size_x": 0},
    {"mutation_rate": 1.5},
    {"wall_density": -0.1},
    {"min_room_size": 9, "max_room_size": 4},
    {"num_epochs": -1},
    {"error_weight": -1.0},
    {"max_workers": 0},
])
def test_validate_rejects_bad_settings(changes):
    data = GeneticWorldParams().as_dict()
    data.update(changes)
    with pytest.raises(ValueError):
        GeneticWorldParams.from_dict(data)
