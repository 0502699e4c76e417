"""
viral_spread/cli.py

Command line entry point: parse and validate a parameter set, build the population and
contact graph, run the trials and report/export the averaged daily results
"""
from __future__ import annotations
import argparse
import logging
import os
import sys
from typing import List, Optional

import matplotlib.pyplot as plt

from viral_spread.network_model import DefaultModelParams, ModelParameters
from viral_spread.model_driver import prepare_population, run_trials
from viral_spread import analysis_tools

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    d = DefaultModelParams
    parser = argparse.ArgumentParser(prog = "viral-spread", description = "Viral propagation simulator")
    parser.add_argument("-p", "--population", type = int, default = d["population"], help = "Number of people to simulate")
    parser.add_argument("-n", "--neighbors", type = int, default = d["neighbors"], help = "Maximum size of a neighborhood")
    parser.add_argument("-c", "--contagious", type = int, default = d["contagious_days"], help = "Days contagious")
    parser.add_argument("-i", "--interactions", type = int, default = d["contacts_per_day"], help = "Interactions per day")
    parser.add_argument("-t", "--transmission", type = float, default = d["transmission_prob"],
                        help = "Chance of transmitting virus per contact (decimal %%; 0.1 = 10%%)")
    parser.add_argument("-m", "--mortality", type = float, default = d["mortality_rate"],
                        help = "Mortality rate (decimal %%; 0.01 = 1%%)")
    parser.add_argument("-d", "--days", type = int, default = d["simulation_duration"], help = "Days to simulate")
    parser.add_argument("-s", "--simulations", type = int, default = d["n_trials"], help = "Simulations to run")
    parser.add_argument("--seed", type = int, default = d["seed"], help = "Random seed")
    parser.add_argument("--workers", type = int, default = None,
                        help = "Run simulations in parallel on this many processes")
    parser.add_argument("-o", "--output", default = None, help = "Excel file name for results (.xlsx added)")
    parser.add_argument("--csv", default = None, help = "CSV file name for per-day results")
    parser.add_argument("--plot", default = None, help = "Folder to save a plot of the daily results in")
    parser.add_argument("-v", "--verbose", action = "store_true", help = "Debug logging")
    return parser


def args_to_params(args: argparse.Namespace) -> ModelParameters:
    params = DefaultModelParams.copy()
    params.update({
        "population": args.population,
        "neighbors": args.neighbors,
        "contagious_days": args.contagious,
        "contacts_per_day": args.interactions,
        "transmission_prob": args.transmission,
        "mortality_rate": args.mortality,
        "simulation_duration": args.days,
        "n_trials": args.simulations,
        "seed": args.seed,
    })
    return params


def validate_params(params: ModelParameters) -> List[str]:
    """
    Check parameter ranges before anything is built

    Returns: list of error messages, empty when the parameters are valid
    """
    errors = []
    if params["population"] < 100:
        errors.append("Population must be >= 100")
    if params["neighbors"] < 1:
        errors.append("Neighborhood size must be >= 1")
    if params["contagious_days"] < 1:
        errors.append("Contagious period must be >= 1 day")
    if params["contacts_per_day"] < 0:
        errors.append("Interactions per day must be >= 0")
    if not 0 <= params["transmission_prob"] <= 1:
        errors.append("Chance of transmitting virus per contact must be >=0 and <= 1")
    if not 0 <= params["mortality_rate"] <= 1:
        errors.append("Mortality rate must be >= 0 and <= 1")
    if params["simulation_duration"] < 1:
        errors.append("Days to simulate must be >= 1")
    if params["n_trials"] < 1:
        errors.append("Number of simulations must be >= 1")
    return errors


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level = logging.DEBUG if args.verbose else logging.WARNING,
        format = "%(asctime)s %(name)s %(levelname)s: %(message)s",
    )

    params = args_to_params(args)
    errors = validate_params(params)
    if errors:
        parser.error("; ".join(errors))

    print(analysis_tools.format_assumptions(params))

    print("Configuring population...")
    print("Configuring neighborhoods...")
    population, graph = prepare_population(params)
    logger.info("Graph summary: %s", graph.summary(with_diameter = False))

    n_trials = params["n_trials"]

    def report(trial_ind, aggregator):
        print(analysis_tools.format_trial_progress(trial_ind, aggregator.totals, n_trials))

    aggregator = run_trials(
        population, graph, params,
        seed = params["seed"],
        parallel = args.workers is not None and args.workers > 1,
        max_workers = args.workers,
        progress = report,
    )

    print()
    print(analysis_tools.format_daily_table(aggregator.totals, aggregator.n_trials))

    outcome_summary = analysis_tools.summarize_outcomes(aggregator.outcomes_dataframe())
    if outcome_summary:
        logger.info("Outcome summary: %s", outcome_summary)

    if args.output:
        path = analysis_tools.export_to_excel(args.output, params, aggregator.totals, aggregator.n_trials)
        print(f"Results written to {path}")
    if args.csv:
        path = analysis_tools.export_to_csv(args.csv, aggregator.totals, aggregator.n_trials)
        print(f"Results written to {path}")
    if args.plot:
        df = analysis_tools.results_to_dataframe(aggregator.totals, aggregator.n_trials)
        fig = analysis_tools.plot_daily_results(
            df,
            results_folder = args.plot,
            suffix = f"_{params['run_name']}",
            save_plots = True,
        )
        plt.close(fig)
        print(f"Plot written to {os.path.join(args.plot, 'daily_results_' + params['run_name'] + '.png')}")

    return 0


if __name__ == "__main__":
    sys.exit(main())
