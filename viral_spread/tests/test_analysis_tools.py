import numpy as np
import pandas as pd
import pytest

from viral_spread import analysis_tools
from viral_spread.network_model import DefaultModelParams
from viral_spread.recorder.recorder import DailyResult


@pytest.fixture
def totals():
    # three trials summed
    return [DailyResult(3, 3, 0), DailyResult(9, 12, 3), DailyResult(6, 15, 6)]


def test_results_to_dataframe(totals):
    df = analysis_tools.results_to_dataframe(totals, 3)
    assert list(df.columns) == ["Day", "Infected", "Contagious", "Died"]
    assert df["Day"].tolist() == [1, 2, 3]
    assert df["Infected"].tolist() == [1.0, 4.0, 5.0]
    assert df["Contagious"].tolist() == [1.0, 3.0, 2.0]
    assert df["Died"].tolist() == [0.0, 1.0, 2.0]
    with pytest.raises(ValueError):
        analysis_tools.results_to_dataframe(totals, 0)


def test_params_to_dataframe():
    df = analysis_tools.params_to_dataframe(DefaultModelParams)
    assert df["Name"].tolist() == list(analysis_tools.PARAM_LABELS.values())
    assert df.set_index("Name").loc["Population", "Value"] == DefaultModelParams["population"]


def test_export_to_excel(totals, tmp_path):
    path = analysis_tools.export_to_excel(str(tmp_path / "results"), DefaultModelParams, totals, 3)
    assert path.endswith(".xlsx")
    sheets = pd.read_excel(path, sheet_name = None, header = None)
    assert set(sheets.keys()) == {"summary", "results"}
    summary = sheets["summary"]
    assert summary.iloc[0, 0] == "Population"
    assert summary.shape[0] == len(analysis_tools.PARAM_LABELS)
    results = pd.read_excel(path, sheet_name = "results")
    assert list(results.columns) == ["Day", "Infected", "Contagious", "Died"]
    assert results["Infected"].tolist() == [1.0, 4.0, 5.0]


def test_export_to_csv(totals, tmp_path):
    path = analysis_tools.export_to_csv(str(tmp_path / "sub" / "daily"), totals, 3)
    df = pd.read_csv(path)
    assert len(df) == 3
    assert df["Died"].tolist() == [0.0, 1.0, 2.0]


def test_console_tables(totals):
    text = analysis_tools.format_assumptions(DefaultModelParams)
    assert "Population" in text
    assert "5.0%" in text
    line = analysis_tools.format_trial_progress(0, totals, 3)
    assert line.startswith("Run #")
    table = analysis_tools.format_daily_table(totals, 3)
    assert "Contagious" in table
    assert len(table.strip().splitlines()) == 2 + 1 + len(totals)


def test_plot_daily_results(totals, tmp_path, monkeypatch):
    import matplotlib.pyplot as plt
    monkeypatch.setattr(plt, "show", lambda: None)
    df = analysis_tools.results_to_dataframe(totals, 3)
    fig = analysis_tools.plot_daily_results(df, results_folder = str(tmp_path), suffix = "_test", save_plots = True, display_plots = True)
    plt.close(fig)
    assert (tmp_path / "daily_results_test.png").exists()


def test_summarize_outcomes():
    df = pd.DataFrame({"attack_rate": [0.5, 0.7], "total_died": [1, 3]})
    summary = analysis_tools.summarize_outcomes(df)
    assert summary["attack_rate_mean"] == pytest.approx(0.6)
    assert summary["total_died_sd"] == pytest.approx(np.std([1, 3]))
    assert analysis_tools.summarize_outcomes(pd.DataFrame()) == {}
