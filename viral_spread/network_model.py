"""
network_model.py

Contains:
- ModelParameters / DefaultModelParams, the parameter set for a model run
- EpidemicModel, which runs a single outbreak trial over a fixed contact graph
"""

from __future__ import annotations
from typing import TypedDict, List, Dict, Any, Optional, Sequence
import numpy as np

from viral_spread.population import Individual, reset_population
from viral_spread.graph.graph_utils import ContactGraph
from viral_spread.recorder.recorder import DailyResult, DailyResultRecorder


class ModelParameters(TypedDict):
    # Population Params
    population: int
    neighbors: int #max neighborhood size

    # Epi Params
    contagious_days: int
    contacts_per_day: int
    transmission_prob: float #per contact
    mortality_rate: float #over the full contagious period

    # Simulation Settings
    simulation_duration: int  # days
    n_trials: int
    seed: int
    run_name: str #prefix for output files
    save_data_files: bool
    save_plots: bool
    display_plots: bool

DefaultModelParams: ModelParameters = {
    #Population Parameters
    "population": 1000,
    "neighbors": 40,

    #Epidemic Parameters
    "contagious_days": 10,
    "contacts_per_day": 10,
    "transmission_prob": 0.05,
    "mortality_rate": 0.01,

    #Simulation Settings
    "simulation_duration": 60,
    "n_trials": 10,
    "seed": 2026,
    "run_name": "viral_spread",
    "save_data_files": False,
    "save_plots": False,
    "display_plots": False,
}

#-----Outbreak Model-------
class EpidemicModel:
    def __init__(
        self,
        population: Sequence[Individual],
        graph: ContactGraph,
        params: ModelParameters = DefaultModelParams,
        *,
        rng = None,
        seed: Optional[int] = None):
        """
        Unpack parameters and set up storage for a trial

        Individuals are addressed by position, which must match their id and the graph's
        node index.

        kwargs:
        - rng: optional np.random.Generator for randomness
        - seed: optional int seed if rng is None
        """
        self.params = dict(params)
        self.population = population
        self.graph = graph
        self.N = len(population)
        if graph.N != self.N:
            raise ValueError(f"Graph has {graph.N} nodes but population has {self.N} individuals")
        self.Tmax = int(self.params.get("simulation_duration", 60))
        self.contacts_per_day = int(self.params["contacts_per_day"])
        self.transmission_prob = float(self.params["transmission_prob"])
        self.mortality_rate = float(self.params["mortality_rate"])

        #choose RNG: explicit rng > seed arg > params['seed']
        if rng is not None:
            self.rng = rng
        elif seed is not None:
            self.rng = np.random.default_rng(int(seed))
        else:
            self.rng = np.random.default_rng(int(self.params["seed"]))

        self.recorder = DailyResultRecorder(init_day_cap = max(1, self.Tmax))
        self.current_day = 0
        self.seed_individual: Optional[int] = None

    def _initialize_states(self):
        """
        Clear infection/death days on every individual and the trial's recorded days
        """
        reset_population(self.population)
        self.current_day = 0
        self.seed_individual = None
        self.recorder.reset()

    def seed_infection(self) -> int:
        """Infect one uniformly random individual on day 0"""
        ind = int(self.rng.integers(0, self.N))
        self.population[ind].infection_day = 0
        self.seed_individual = ind
        return ind

    def transmission_step(self, day: int) -> int:
        """
        Every alive, contagious individual contacts contacts_per_day random neighbors and
        infects each not-yet-infected one with probability transmission_prob.

        Individuals are visited in population order against the live state, so someone
        infected earlier in the pass can already transmit later in the same pass.

        Returns: number of new infections
        """
        if self.contacts_per_day <= 0:
            return 0

        population = self.population
        graph = self.graph
        rng = self.rng
        prob = self.transmission_prob
        n_contacts = self.contacts_per_day
        new_infections = 0

        for person in population:
            if not (person.is_contagious(day) and person.is_alive):
                continue
            for contact_ind in graph.random_neighbors(person.id, n_contacts, rng).tolist():
                contact = population[contact_ind]
                if contact.is_infected:
                    continue
                if rng.random() < prob:
                    contact.infection_day = day
                    new_infections += 1
        return new_infections

    def mortality_step(self, day: int) -> int:
        """
        Each alive, contagious individual dies today with probability
        mortality_rate / contagious_duration, a flat daily hazard over the contagious period

        Returns: number of deaths
        """
        if self.mortality_rate <= 0:
            return 0

        rng = self.rng
        deaths = 0
        for person in self.population:
            if not (person.is_contagious(day) and person.is_alive):
                continue
            hazard = self.mortality_rate / person.contagious_duration
            if rng.random() < hazard:
                person.death_day = day
                deaths += 1
        return deaths

    def record_snapshot(self, day: int) -> DailyResult:
        """
        Count today's infected, contagious and died. Contagious counts only living
        individuals inside their window; someone who died while contagious is reported
        in died and no longer in contagious
        """
        contagious = 0
        infected = 0
        died = 0
        for person in self.population:
            alive = person.is_alive
            if person.is_infected:
                infected += 1
                if alive and person.is_contagious(day):
                    contagious += 1
            if not alive:
                died += 1
        self.recorder.append(contagious, infected, died)
        return DailyResult(contagious, infected, died)

    def step(self) -> DailyResult:
        """
        Advance one day: seed (day 0 only), transmission, mortality, snapshot
        """
        day = self.current_day
        if day == 0:
            self.seed_infection()
        self.transmission_step(day)
        self.mortality_step(day)
        result = self.record_snapshot(day)
        self.current_day += 1
        return result

    def simulate(self) -> List[DailyResult]:
        """
        Run one trial from a freshly reset population

        Returns: one DailyResult per simulated day
        """
        self._initialize_states()
        for _ in range(self.Tmax):
            self.step()
        return self.recorder.results()

    def epi_outcomes(self) -> Dict[str, Any]:
        """
        Summarize the last simulated trial:
        - total_infected, total_died
        - attack_rate, case_fatality_rate
        - peak_contagious and day_of_peak_contagious
        - extinction_day (first day nobody is contagious, None if the outbreak outlives the horizon)
        """
        if self.recorder.n_days == 0:
            raise ValueError("Trial not completed; run simulate() before computing outcomes")

        snap = self.recorder.snapshot_compact(copy = False)
        contagious = snap["contagious"]
        total_infected = int(snap["infected"][-1])
        total_died = int(snap["died"][-1])
        zero_days = np.where(contagious == 0)[0]

        return {
            "seed_individual": self.seed_individual,
            "total_infected": total_infected,
            "total_died": total_died,
            "attack_rate": total_infected / float(self.N),
            "case_fatality_rate": (total_died / float(total_infected)) if total_infected > 0 else np.nan,
            "peak_contagious": int(contagious.max()),
            "day_of_peak_contagious": int(np.argmax(contagious)),
            "extinction_day": int(zero_days[0]) if zero_days.size else None,
        }
