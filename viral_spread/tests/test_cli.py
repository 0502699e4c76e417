import pandas as pd
import pytest

from viral_spread import cli
from viral_spread.network_model import DefaultModelParams


def test_defaults_map_to_params():
    args = cli.build_parser().parse_args([])
    params = cli.args_to_params(args)
    for key in ["population", "neighbors", "contagious_days", "contacts_per_day",
                "transmission_prob", "mortality_rate", "simulation_duration", "n_trials", "seed"]:
        assert params[key] == DefaultModelParams[key]
    assert cli.validate_params(params) == []


@pytest.mark.parametrize("argv, message", [
    (["-p", "99"], "Population must be >= 100"),
    (["-n", "0"], "Neighborhood size must be >= 1"),
    (["-c", "0"], "Contagious period must be >= 1 day"),
    (["-i", "-1"], "Interactions per day must be >= 0"),
    (["-t", "1.5"], "Chance of transmitting virus per contact must be >=0 and <= 1"),
    (["-m", "-0.1"], "Mortality rate must be >= 0 and <= 1"),
    (["-d", "0"], "Days to simulate must be >= 1"),
    (["-s", "0"], "Number of simulations must be >= 1"),
])
def test_validation_messages(argv, message):
    params = cli.args_to_params(cli.build_parser().parse_args(argv))
    assert cli.validate_params(params) == [message]


def test_invalid_arguments_exit(capsys):
    with pytest.raises(SystemExit) as exc:
        cli.main(["-p", "10", "-s", "0"])
    assert exc.value.code == 2
    err = capsys.readouterr().err
    assert "Population must be >= 100" in err
    assert "Number of simulations must be >= 1" in err


def test_main_runs_and_exports(tmp_path, capsys):
    out_xlsx = tmp_path / "run"
    out_csv = tmp_path / "run.csv"
    plot_dir = tmp_path / "plots"
    code = cli.main([
        "-p", "100", "-n", "5", "-c", "3", "-i", "2", "-t", "0.3", "-m", "0.05",
        "-d", "8", "-s", "2", "--seed", "4",
        "-o", str(out_xlsx), "--csv", str(out_csv), "--plot", str(plot_dir),
    ])
    assert code == 0
    stdout = capsys.readouterr().out
    assert "Viral Propagation Simulation" in stdout
    assert "Run #   1" in stdout and "Run #   2" in stdout

    results = pd.read_excel(str(out_xlsx) + ".xlsx", sheet_name = "results")
    assert len(results) == 8
    assert pd.read_csv(out_csv)["Day"].tolist() == list(range(1, 9))
    assert any(p.suffix == ".png" for p in plot_dir.iterdir())
