"""Processor settings and run statistics."""

from __future__ import annotations

import math
from dataclasses import dataclass

DEFAULT_K0 = 1
DEFAULT_K1 = 2
DEFAULT_K2 = 3
DEFAULT_R = 8
DEFAULT_F = 4


@dataclass(frozen=True)
class ProcessorConfig:
    """Processor settings.

    ``r`` is the number of result buses (and the retire width), ``k0``, ``k1``
    and ``k2`` the number of functional units of each class, and ``f`` the
    fetch width.
    """

    r: int = DEFAULT_R
    k0: int = DEFAULT_K0
    k1: int = DEFAULT_K1
    k2: int = DEFAULT_K2
    f: int = DEFAULT_F

    def __post_init__(self) -> None:
        for name in ("r", "k0", "k1", "k2", "f"):
            value = getattr(self, name)
            if value < 0:
                raise ValueError(f"{name} must not be negative, got {value}")

    @property
    def scheduling_queue_size(self) -> int:
        """Capacity of the scheduling queue: two entries per functional unit."""
        return 2 * (self.k0 + self.k1 + self.k2)


def _ratio(numerator: float, denominator: int) -> float:
    if denominator == 0:
        return math.nan if numerator == 0 else math.inf
    return numerator / denominator


@dataclass
class ProcessorStats:
    """Statistics gathered over a simulation run."""

    avg_inst_retired: float = 0.0
    avg_inst_fired: float = 0.0
    avg_disp_size: float = 0.0
    max_disp_size: int = 0
    retired_instruction: int = 0
    cycle_count: int = 0

    @property
    def run_time(self) -> int:
        """Cycles counted as run time: the final cycle is excluded."""
        return self.cycle_count - 1

    def finalize(
        self,
        dispatch_queue_total: int,
        retired: int,
        cycle_count: int,
        max_dispatch_size: int,
    ) -> "ProcessorStats":
        """Fill in the totals and the per-cycle averages, and return self.

        Averages are taken over ``cycle_count - 1`` cycles.
        """
        if cycle_count < 1:
            raise ValueError(f"cycle_count must be at least 1, got {cycle_count}")
        self.cycle_count = cycle_count
        self.retired_instruction = retired
        self.max_disp_size = max_dispatch_size
        cycles = cycle_count - 1
        self.avg_disp_size = _ratio(dispatch_queue_total, cycles)
        self.avg_inst_fired = _ratio(retired, cycles)
        self.avg_inst_retired = _ratio(retired, cycles)
        return self