from __future__ import annotations
from dataclasses import dataclass
from typing import Dict, List
import numpy as np


@dataclass
class DailyResult:
    """
    Aggregate counts for one simulated day. Summed in place across trials; divide by the
    number of trials (scaled) only when presenting the mean
    """
    contagious: int = 0
    infected: int = 0
    died: int = 0

    def accumulate(self, other: "DailyResult") -> "DailyResult":
        self.contagious += other.contagious
        self.infected += other.infected
        self.died += other.died
        return self

    def __iadd__(self, other: "DailyResult") -> "DailyResult":
        return self.accumulate(other)

    def scaled(self, divisor: float) -> Dict[str, float]:
        if divisor <= 0:
            raise ValueError("divisor must be positive")
        return {
            "contagious": self.contagious / divisor,
            "infected": self.infected / divisor,
            "died": self.died / divisor,
        }


class DailyResultRecorder:
    """
    Object to record the daily snapshot of a single trial. Stores per-day arrays of
    contagious, infected and died counts, preallocated for the simulation horizon and
    grown if more days are appended.
    Methods:
    - append(contagious, infected, died)
    - reset() to reuse the recorder for the next trial
    - snapshot_compact(copy = True) -> dict of numpy arrays (sliced to used length)
    - results() -> list of DailyResult
    """
    def __init__(self, init_day_cap: int = 64):
        if int(init_day_cap) <= 0:
            raise ValueError("init_day_cap must be >= 1")
        self.day_cap = int(init_day_cap)
        self._alloc_arrays()
        self.reset()

    def _alloc_arrays(self):
        self.contagious = np.empty(self.day_cap, dtype = np.int64)
        self.infected = np.empty(self.day_cap, dtype = np.int64)
        self.died = np.empty(self.day_cap, dtype = np.int64)

    def reset(self):
        self.n_days = 0

    def _grow(self, min_extra = 1):
        if self.n_days + min_extra <= self.day_cap:
            return
        newcap = max(self.day_cap * 2, self.n_days + min_extra)
        def grow(arr):
            new = np.empty(newcap, dtype = arr.dtype)
            new[: self.n_days] = arr[: self.n_days]
            return new

        self.contagious = grow(self.contagious)
        self.infected = grow(self.infected)
        self.died = grow(self.died)
        self.day_cap = newcap

    def append(self, contagious: int, infected: int, died: int):
        self._grow(1)
        i = self.n_days
        self.contagious[i] = contagious
        self.infected[i] = infected
        self.died[i] = died
        self.n_days += 1

    def snapshot_compact(self, copy: bool = True) -> Dict[str, np.ndarray]:
        """
        Returns a dict of np.arrays sliced to used lengths

        Args:
            copy (bool): If true, arrays are copied and stay valid after the recorder is reused
        """
        used = slice(0, self.n_days)
        if copy:
            return {
                "contagious": self.contagious[used].copy(),
                "infected": self.infected[used].copy(),
                "died": self.died[used].copy(),
            }
        return {
            "contagious": self.contagious[used],
            "infected": self.infected[used],
            "died": self.died[used],
        }

    def results(self) -> List[DailyResult]:
        return [
            DailyResult(int(c), int(i), int(d))
            for c, i, d in zip(self.contagious[: self.n_days], self.infected[: self.n_days], self.died[: self.n_days])
        ]
