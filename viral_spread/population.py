"""
viral_spread/population.py

Contains:
- Individual, a single member of the simulated population
- build_population, which creates the population for a parameter set
- reset_population, which clears epidemic state before a trial
"""
from __future__ import annotations
from dataclasses import dataclass, field
from typing import List


@dataclass
class Individual:
    """
    A member of the population. id and contagious_duration are fixed at creation;
    infection_day and death_day are the only epidemic state and are -1 when unset
    """
    id: int
    contagious_duration: int
    infection_day: int = field(default = -1, compare = False)
    death_day: int = field(default = -1, compare = False)

    def __post_init__(self):
        if int(self.id) < 0:
            raise ValueError(f"id cannot be less than 0 (got {self.id})")
        if int(self.contagious_duration) <= 0:
            raise ValueError(f"contagious_duration cannot be less than 1 (got {self.contagious_duration})")
        self.id = int(self.id)
        self.contagious_duration = int(self.contagious_duration)

    @property
    def last_contagious_day(self) -> int:
        if self.infection_day < 0:
            return self.infection_day
        return self.infection_day + self.contagious_duration

    def is_contagious(self, day: int) -> bool:
        return self.infection_day >= 0 and self.last_contagious_day >= day

    @property
    def is_infected(self) -> bool:
        return self.infection_day >= 0

    @property
    def is_alive(self) -> bool:
        return self.death_day < 0

    def reset(self) -> None:
        """Return to never infected, alive"""
        self.infection_day = -1
        self.death_day = -1


def build_population(size: int, contagious_duration: int) -> List[Individual]:
    """
    Create `size` individuals with ids 0..size-1 sharing one contagious duration
    """
    size = int(size)
    if size < 0:
        raise ValueError("population size cannot be negative")
    return [Individual(idx, contagious_duration) for idx in range(size)]


def reset_population(population: List[Individual]) -> None:
    for person in population:
        person.reset()
