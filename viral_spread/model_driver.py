"""
viral_spread/model_driver.py

Driver utilities to build the population and run repeated EpidemicModel trials

Functions:
- prepare_population(params, rng = None) -> (population, graph)
- run_single_trial(population, graph, params, seed = None) -> (daily results, outcomes)
- run_trials(population, graph, params, seed = None, parallel = False, ...) -> TrialAggregator
"""
from __future__ import annotations
import os
import logging
import concurrent.futures
from copy import deepcopy
from typing import Dict, List, Optional, Any, Callable, Tuple, Union
import numpy as np
import pandas as pd

from viral_spread.population import Individual, build_population
from viral_spread.graph.graph_utils import ContactGraph, build_contact_graph
from viral_spread.network_model import EpidemicModel, ModelParameters
from viral_spread.recorder.recorder import DailyResult

logger = logging.getLogger(__name__)

SeedLike = Union[int, np.random.SeedSequence]


class TrialAggregator:
    """
    Running per-day totals across trials. The first trial is stored as-is, every later
    trial is added day by day; totals are never divided here, use means() or divide by
    n_trials when presenting.
    """
    def __init__(self):
        self.totals: List[DailyResult] = []
        self.n_trials = 0
        self.trial_outcomes: List[Dict[str, Any]] = []

    def add_trial(self, daily: List[DailyResult], outcomes: Optional[Dict[str, Any]] = None) -> None:
        if self.n_trials == 0:
            self.totals = [DailyResult(r.contagious, r.infected, r.died) for r in daily]
        else:
            if len(daily) != len(self.totals):
                raise ValueError(f"Trial has {len(daily)} days, expected {len(self.totals)}")
            for day_ind, result in enumerate(daily):
                self.totals[day_ind] += result
        if outcomes is not None:
            row = dict(outcomes)
            row.setdefault("trial", self.n_trials)
            self.trial_outcomes.append(row)
        self.n_trials += 1

    @property
    def n_days(self) -> int:
        return len(self.totals)

    def means(self) -> List[Dict[str, float]]:
        if self.n_trials == 0:
            return []
        return [r.scaled(self.n_trials) for r in self.totals]

    def outcomes_dataframe(self) -> pd.DataFrame:
        return pd.DataFrame(self.trial_outcomes)


def prepare_population(params: ModelParameters, rng: Optional[np.random.Generator] = None) -> Tuple[List[Individual], ContactGraph]:
    """
    Create the population and its contact graph; both are reused by every trial
    """
    if rng is None:
        rng = np.random.default_rng(int(params["seed"]))
    population = build_population(params["population"], params["contagious_days"])
    graph = build_contact_graph(population, params["neighbors"], rng = rng)
    return population, graph


def run_single_trial(
    population: List[Individual],
    graph: ContactGraph,
    params: ModelParameters,
    seed: Optional[SeedLike] = None,
    rng: Optional[np.random.Generator] = None,
) -> Tuple[List[DailyResult], Dict[str, Any]]:
    """
    Instantiates an EpidemicModel, simulates one trial and returns its daily results and outcomes
    """
    if rng is None and seed is not None:
        rng = np.random.default_rng(seed)
    model = EpidemicModel(population, graph, params, rng = rng)
    daily = model.simulate()
    return daily, model.epi_outcomes()


def _trial_seeds(n_trials: int, seed: Optional[int], rng: Optional[np.random.Generator]) -> List[np.random.SeedSequence]:
    """
    One independent SeedSequence per trial; identical for sequential and parallel runs
    """
    if rng is not None:
        base = np.random.SeedSequence(int(rng.integers(0, 2**63)))
    elif seed is not None:
        base = np.random.SeedSequence(int(seed))
    else:
        base = np.random.SeedSequence()
    return base.spawn(n_trials)


def _run_trial_job(
    trial_ind: int,
    population: List[Individual],
    graph: ContactGraph,
    params: ModelParameters,
    seed_seq: np.random.SeedSequence,
) -> Tuple[int, List[DailyResult], Dict[str, Any]]:
    """
    Worker function executed in a child process. The population arrives as a private copy,
    so per-individual state is never shared between trials
    """
    daily, outcomes = run_single_trial(population, graph, params, seed = seed_seq)
    return trial_ind, daily, outcomes


def run_trials(
    population: List[Individual],
    graph: ContactGraph,
    params: ModelParameters,
    *,
    seed: Optional[int] = None,
    rng: Optional[np.random.Generator] = None,
    n_trials: Optional[int] = None,
    parallel: bool = False,
    max_workers: Optional[int] = None,
    progress: Optional[Callable[[int, TrialAggregator], None]] = None,
) -> TrialAggregator:
    """
    Run n_trials independent trials over the same population and graph and sum their
    daily results.

    Each trial gets its own generator spawned from the base seed (rng > seed > params['seed']),
    so a parallel run returns exactly what the sequential run with the same seed returns.
    If parallel = True, trials are dispatched to a ProcessPoolExecutor and folded into the
    totals in trial order once each one has finished.

    progress(trial_index, aggregator) is called after each trial is added.
    """
    params = deepcopy(params)
    n_trials = int(n_trials if n_trials is not None else params.get("n_trials", 1))
    if n_trials <= 0:
        raise ValueError("n_trials must be >= 1")
    if seed is None and rng is None:
        seed = params.get("seed")
    seeds = _trial_seeds(n_trials, seed, rng)

    aggregator = TrialAggregator()

    #Sequential execution path
    if not parallel:
        for trial_ind, seed_seq in enumerate(seeds):
            daily, outcomes = run_single_trial(population, graph, params, seed = seed_seq)
            aggregator.add_trial(daily, outcomes)
            logger.debug("Finished trial %d/%d", trial_ind + 1, n_trials)
            if progress is not None:
                progress(trial_ind, aggregator)
        return aggregator

    #Parallel execution path
    if max_workers is None:
        cpu_count = os.cpu_count() or 1
        max_workers = min(n_trials, cpu_count)

    finished: Dict[int, Tuple[List[DailyResult], Dict[str, Any]]] = {}
    next_trial = 0
    with concurrent.futures.ProcessPoolExecutor(max_workers = max_workers) as exe:
        futures = {
            exe.submit(_run_trial_job, trial_ind, population, graph, params, seed_seq): trial_ind
            for trial_ind, seed_seq in enumerate(seeds)
        }
        for fut in concurrent.futures.as_completed(futures):
            trial_ind, daily, outcomes = fut.result()
            finished[trial_ind] = (daily, outcomes)
            logger.debug("Worker finished trial %d/%d", trial_ind + 1, n_trials)

            #fold in every trial that is next in order
            while next_trial in finished:
                daily, outcomes = finished.pop(next_trial)
                aggregator.add_trial(daily, outcomes)
                if progress is not None:
                    progress(next_trial, aggregator)
                next_trial += 1

    return aggregator
