"""Text report of a simulation run: settings, per-instruction stage times
and summary statistics."""

from __future__ import annotations

from pathlib import Path
from typing import Mapping

from .config import ProcessorConfig, ProcessorStats
from .simulator import StageTimes

STAGE_HEADER = "INST\tFETCH\tDISP\tSCHED\tEXEC\tSTATE"


def format_settings(config: ProcessorConfig) -> str:
    """The processor settings block."""
    lines = [
        "Processor Settings",
        f"R: {config.r}",
        f"k0: {config.k0}",
        f"k1: {config.k1}",
        f"k2: {config.k2}",
        f"F: {config.f}",
    ]
    return "\n".join(lines) + "\n"


def format_stage_table(stage_times: Mapping[int, StageTimes]) -> str:
    """One row per instruction, ordered by tag, with one-based cycle numbers."""
    rows = [STAGE_HEADER]
    for tag in sorted(stage_times):
        times = stage_times[tag]
        stages = (times.fetch, times.dispatch, times.schedule, times.execute, times.retire)
        rows.append("\t".join([str(tag), *(str(cycle + 1) for cycle in stages)]))
    return "\n".join(rows) + "\n"


def format_statistics(stats: ProcessorStats) -> str:
    """The summary statistics block; run time excludes the final cycle."""
    lines = [
        "Processor stats:",
        f"Total instructions: {stats.retired_instruction}",
        f"Avg Dispatch queue size: {stats.avg_disp_size:.6f}",
        f"Maximum Dispatch queue size: {stats.max_disp_size}",
        f"Avg inst fired per cycle: {stats.avg_inst_fired:.6f}",
        f"Avg inst retired per cycle: {stats.avg_inst_retired:.6f}",
        f"Total run time (cycles): {stats.run_time}",
    ]
    return "\n".join(lines) + "\n"


def format_report(
    config: ProcessorConfig,
    stats: ProcessorStats,
    stage_times: Mapping[int, StageTimes],
) -> str:
    """The whole report as text."""
    return (
        format_settings(config)
        + "\n"
        + format_stage_table(stage_times)
        + "\n"
        + format_statistics(stats)
    )


def write_report(
    path: str | Path,
    config: ProcessorConfig,
    stats: ProcessorStats,
    stage_times: Mapping[int, StageTimes],
) -> Path:
    """Write the report to ``path``, replacing any existing file."""
    target = Path(path)
    with target.open("w", encoding="utf-8") as handle:
        handle.write(format_report(config, stats, stage_times))
    return target