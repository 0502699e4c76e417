import pytest

from viral_spread.population import Individual, build_population, reset_population


def test_new_individual_is_susceptible():
    p = Individual(3, 5)
    assert p.infection_day == -1
    assert p.death_day == -1
    assert not p.is_infected
    assert p.is_alive
    assert p.last_contagious_day == -1
    assert not p.is_contagious(0)


def test_contagious_window():
    p = Individual(0, 5)
    p.infection_day = 2
    assert p.is_infected
    assert p.last_contagious_day == 7
    assert p.is_contagious(2)
    assert p.is_contagious(7)
    assert not p.is_contagious(8)


def test_death_does_not_change_infection():
    p = Individual(0, 4)
    p.infection_day = 1
    p.death_day = 3
    assert not p.is_alive
    assert p.is_infected
    # contagious is a property of the infection window alone
    assert p.is_contagious(3)


@pytest.mark.parametrize("ind_id, duration", [(-1, 5), (0, 0), (2, -4)])
def test_invalid_construction_rejected(ind_id, duration):
    with pytest.raises(ValueError):
        Individual(ind_id, duration)


def test_build_and_reset_population():
    population = build_population(150, 7)
    assert len(population) == 150
    assert [p.id for p in population] == list(range(150))
    assert all(p.contagious_duration == 7 for p in population)

    population[4].infection_day = 0
    population[4].death_day = 2
    population[9].infection_day = 1
    reset_population(population)
    assert all(p.infection_day == -1 and p.death_day == -1 for p in population)
