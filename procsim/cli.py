"""Command-line entry point: run a trace and report the results."""

from __future__ import annotations

import argparse
import re
import sys
from typing import IO, Sequence

from .config import (
    DEFAULT_F,
    DEFAULT_K0,
    DEFAULT_K1,
    DEFAULT_K2,
    DEFAULT_R,
    ProcessorConfig,
    ProcessorStats,
)
from .report import format_settings, write_report
from .simulator import simulate
from .trace import read_trace

REPORT_PATH = "result_test.output"

_LEADING_INT = re.compile(r"\s*([+-]?\d+)")


def _leading_int(text: str) -> int:
    """Parse the leading integer of ``text``; text without one counts as 0."""
    match = _LEADING_INT.match(text)
    return int(match.group(1)) if match else 0


class _Parser(argparse.ArgumentParser):
    def error(self, message: str) -> None:  # type: ignore[override]
        self.print_help()
        raise SystemExit(0)


def build_parser() -> argparse.ArgumentParser:
    """The argument parser; bad options print the help text and exit with 0."""
    parser = _Parser(prog="procsim", usage="procsim [OPTIONS]", add_help=False)
    parser.add_argument("-j", dest="k0", type=_leading_int, default=DEFAULT_K0,
                        metavar="k0", help="Number of k0 FUs")
    parser.add_argument("-k", dest="k1", type=_leading_int, default=DEFAULT_K1,
                        metavar="k1", help="Number of k1 FUs")
    parser.add_argument("-l", dest="k2", type=_leading_int, default=DEFAULT_K2,
                        metavar="k2", help="Number of k2 FUs")
    parser.add_argument("-f", dest="f", type=_leading_int, default=DEFAULT_F,
                        metavar="N", help="Number of instructions to fetch")
    parser.add_argument("-r", dest="r", type=_leading_int, default=DEFAULT_R,
                        metavar="R", help="Number of result buses")
    parser.add_argument("-i", dest="trace", default=None,
                        metavar="traces/file.trace", help="Trace file (default: stdin)")
    parser.add_argument("-h", dest="help", action="store_true",
                        help="This helpful output")
    return parser


def _print_statistics(stats: ProcessorStats) -> None:
    print("Processor stats:")
    print(f"Total instructions: {stats.retired_instruction}")
    print(f"Avg Dispatch queue size: {stats.avg_disp_size:.6f}")
    print(f"Maximum Dispatch queue size: {stats.max_disp_size}")
    print(f"Avg inst fired per cycle: {stats.avg_inst_fired:.6f}")
    print(f"Avg inst retired per cycle: {stats.avg_inst_retired:.6f}")
    print(f"Total run time (cycles): {stats.cycle_count}")


def _run(config: ProcessorConfig, stream: IO[str]) -> int:
    try:
        stats, stage_times = simulate(config, read_trace(stream))
    except ValueError as exc:
        print(f"procsim: {exc}", file=sys.stderr)
        return 1
    write_report(REPORT_PATH, config, stats, stage_times)
    _print_statistics(stats)
    return 0


def main(argv: Sequence[str] | None = None) -> int:
    """Run the simulator on a trace and print the settings and statistics."""
    parser = build_parser()
    args = parser.parse_args(argv)
    if args.help:
        parser.print_help()
        return 0

    stream: IO[str] = sys.stdin
    if args.trace is not None:
        try:
            stream = open(args.trace, encoding="utf-8")
        except OSError:
            print(f"Failed to open {args.trace} for reading", file=sys.stderr)
            parser.print_help()
            return 0

    try:
        try:
            config = ProcessorConfig(r=args.r, k0=args.k0, k1=args.k1, k2=args.k2, f=args.f)
        except ValueError as exc:
            print(f"procsim: {exc}", file=sys.stderr)
            return 1
        print(format_settings(config))
        return _run(config, stream)
    finally:
        if stream is not sys.stdin:
            stream.close()


if __name__ == "__main__":
    raise SystemExit(main())