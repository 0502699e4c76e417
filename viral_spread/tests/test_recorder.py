import pytest

from viral_spread.recorder.recorder import DailyResult, DailyResultRecorder


def test_recorder_basic():
    """Basic functional checks for DailyResultRecorder"""
    rec = DailyResultRecorder(init_day_cap = 2)
    rec.append(1, 1, 0)
    rec.append(4, 5, 0)
    # grows past the initial capacity
    rec.append(2, 6, 1)
    assert rec.n_days == 3
    assert rec.day_cap >= 3

    snap = rec.snapshot_compact(copy = True)
    assert snap["contagious"].tolist() == [1, 4, 2]
    assert snap["infected"].tolist() == [1, 5, 6]
    assert snap["died"].tolist() == [0, 0, 1]
    assert rec.results() == [DailyResult(1, 1, 0), DailyResult(4, 5, 0), DailyResult(2, 6, 1)]


def test_recorder_reset_keeps_copied_snapshot():
    rec = DailyResultRecorder(init_day_cap = 4)
    rec.append(1, 1, 0)
    snap = rec.snapshot_compact(copy = True)
    rec.reset()
    assert rec.n_days == 0
    rec.append(7, 7, 7)
    assert snap["contagious"].tolist() == [1]
    assert rec.results() == [DailyResult(7, 7, 7)]


def test_recorder_invalid_capacity():
    with pytest.raises(ValueError):
        DailyResultRecorder(init_day_cap = 0)


def test_daily_result_arithmetic():
    total = DailyResult(1, 2, 3)
    total += DailyResult(1, 1, 1)
    assert total == DailyResult(2, 3, 4)
    assert total.scaled(2) == {"contagious": 1.0, "infected": 1.5, "died": 2.0}
    with pytest.raises(ValueError):
        total.scaled(0)

