from typing import Dict, List, Optional, Any
import os
import numpy as np
import pandas as pd
import matplotlib.pyplot as plt

from viral_spread.recorder.recorder import DailyResult

#parameter key -> label used in the summary sheet and console tables
PARAM_LABELS = {
    "population": "Population",
    "neighbors": "Number of Neighbors",
    "contagious_days": "Days Contagious",
    "contacts_per_day": "Contacts per day",
    "transmission_prob": "Chance of transmitting infection per contact",
    "mortality_rate": "Mortality Rate",
    "simulation_duration": "Days to simulate",
    "n_trials": "Simulations to run",
}

RESULT_COLUMNS = ["Day", "Infected", "Contagious", "Died"]


def results_to_dataframe(totals: List[DailyResult], n_trials: int) -> pd.DataFrame:
    """
    Per-day mean results across trials, days numbered from 1

    Args:
        totals (List[DailyResult]): per-day sums across trials
        n_trials (int): number of trials summed into totals

    Returns:
        pd.DataFrame: columns Day, Infected, Contagious, Died
    """
    n_trials = int(n_trials)
    if n_trials <= 0:
        raise ValueError("n_trials must be >= 1")
    rows = []
    for day_ind, result in enumerate(totals):
        mean = result.scaled(n_trials)
        rows.append((day_ind + 1, mean["infected"], mean["contagious"], mean["died"]))
    return pd.DataFrame(rows, columns = RESULT_COLUMNS)


def params_to_dataframe(params: Dict[str, Any]) -> pd.DataFrame:
    """Name/Value rows for the inputs of a run, in summary-sheet order"""
    rows = [(label, params[key]) for key, label in PARAM_LABELS.items() if key in params]
    return pd.DataFrame(rows, columns = ["Name", "Value"])


def export_to_excel(path: str, params: Dict[str, Any], totals: List[DailyResult], n_trials: int) -> str:
    """
    Write a workbook with a 'summary' sheet of inputs and a 'results' sheet of per-day means

    Returns: the path written (.xlsx appended if missing)
    """
    if not path.lower().endswith(".xlsx"):
        path = path + ".xlsx"
    parent = os.path.dirname(os.path.abspath(path))
    os.makedirs(parent, exist_ok = True)

    summary_df = params_to_dataframe(params)
    results_df = results_to_dataframe(totals, n_trials)
    with pd.ExcelWriter(path, engine = "openpyxl") as writer:
        summary_df.to_excel(writer, sheet_name = "summary", index = False, header = False)
        results_df.to_excel(writer, sheet_name = "results", index = False)
    return path


def export_to_csv(path: str, totals: List[DailyResult], n_trials: int) -> str:
    if not path.lower().endswith(".csv"):
        path = path + ".csv"
    parent = os.path.dirname(os.path.abspath(path))
    os.makedirs(parent, exist_ok = True)
    results_to_dataframe(totals, n_trials).to_csv(path, index = False)
    return path


def _render_table(df: pd.DataFrame, title: Optional[str] = None) -> str:
    table = df.to_string(index = False)
    width = max(len(line) for line in table.splitlines()) if table else 0
    out = ""
    if title:
        out += f"{title}\n"
    out += "=" * width + "\n"
    out += table + "\n"
    return out


def format_assumptions(params: Dict[str, Any]) -> str:
    """Console table of the run's inputs"""
    rows = [
        ("Iterations to run", f"{params['n_trials']:,}"),
        ("Population", f"{params['population']:,}"),
        ("Neighborhood size", f"{params['neighbors']:,}"),
        ("Infectious period, days", f"{params['contagious_days']:,}"),
        ("Contacts per day", f"{params['contacts_per_day']:,}"),
        ("Chance of passing on infection per contact", f"{100 * params['transmission_prob']:.1f}%"),
        ("Mortality rate", f"{100 * params['mortality_rate']:.1f}%"),
    ]
    df = pd.DataFrame(rows, columns = ["Assumption", "Value"])
    return _render_table(df, "Viral Propagation Simulation")


def format_trial_progress(trial_ind: int, totals: List[DailyResult], n_trials: int) -> str:
    """
    One-line progress after trial_ind finished: last-day running totals divided by the
    total number of trials, so the figures grow toward the final mean
    """
    last = totals[-1] if totals else DailyResult()
    return (
        f"Run #{trial_ind + 1:>4d}  "
        f"Infected {last.infected / n_trials:>10,.0f}  "
        f"Contagious {last.contagious / n_trials:>10,.0f}  "
        f"Died {last.died / n_trials:>8,.0f}"
    )


def format_daily_table(totals: List[DailyResult], n_trials: int) -> str:
    df = results_to_dataframe(totals, n_trials)
    for col in ["Infected", "Contagious", "Died"]:
        df[col] = df[col].map(lambda v: f"{v:,.0f}")
    return _render_table(df, f"Average of {n_trials} simulation(s)")


def plot_daily_results(
    df: pd.DataFrame,
    title: str = "Viral Propagation Simulation",
    results_folder: Optional[str] = None,
    suffix: Optional[str] = None,
    save_plots: bool = False,
    display_plots: bool = False,
):
    """
    Plot mean infected, contagious and died curves

    Args:
        df: output of results_to_dataframe
        results_folder: folder to save 'daily_results{suffix}.png' in when save_plots
    Returns:
        the matplotlib figure
    """
    fig, (ax1, ax2) = plt.subplots(2, 1, figsize = (10, 8), sharex = True)

    ax1.plot(df["Day"], df["Infected"], label = "Ever Infected", color = "orange", linewidth = 2)
    ax1.plot(df["Day"], df["Contagious"], label = "Contagious", color = "red", linewidth = 2)
    ax1.plot(df["Day"], df["Died"], label = "Died", color = "black", linewidth = 2, linestyle = "--")
    ax1.set_ylabel("Mean Number of People")
    ax1.set_title(title, fontweight = "bold")
    ax1.legend(loc = "best")
    ax1.grid(True, alpha = 0.3)

    #daily new infections (derivative)
    new_infections = df["Infected"].diff().fillna(df["Infected"].iloc[0] if len(df) else 0)
    ax2.bar(df["Day"], new_infections, color = "orange", label = "New Infections")
    ax2.set_xlabel("Day")
    ax2.set_ylabel("Mean New Infections")
    ax2.grid(axis = "y", alpha = 0.5)

    plt.tight_layout()
    if save_plots:
        folder = results_folder if results_folder is not None else os.getcwd()
        os.makedirs(folder, exist_ok = True)
        plotpath = os.path.join(folder, "daily_results")
        if suffix:
            plotpath = plotpath + suffix
        fig.savefig(f"{plotpath}.png")

    if display_plots:
        plt.show()
    return fig


def summarize_outcomes(outcomes: pd.DataFrame) -> Dict[str, float]:
    """Mean/sd of per-trial outcomes (attack rate, deaths, peak)"""
    if outcomes.empty:
        return {}
    summary = {}
    for col in ["attack_rate", "total_infected", "total_died", "peak_contagious"]:
        if col in outcomes.columns:
            vals = outcomes[col].to_numpy(dtype = float)
            summary[f"{col}_mean"] = float(np.mean(vals))
            summary[f"{col}_sd"] = float(np.std(vals))
    return summary
