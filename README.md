# procsim

A cycle-level simulator of an out-of-order processor built around Tomasulo's
algorithm. It reads an instruction trace and runs each instruction through the
fetch, dispatch, schedule, execute and retire stages. It reports the cycle in
which each instruction entered each stage, together with summary statistics.

Each cycle runs the stages in reverse pipeline order: update and retire,
execute, schedule, dispatch, fetch. Instructions fetched in one cycle are
dispatched in the next. An instruction finishes executing in the cycle it
fires. Its functional unit stays busy until an instruction of the same class
retires. The scheduling queue holds two entries per functional unit.

## Installation

```
pip install .
```

## Trace format

A trace is a whitespace-separated stream of records. Each record has five
fields:

```
<address in hex> <op code> <destination register> <source register 1> <source register 2>
```

An op code of `0`, `1` or `2` picks the functional-unit class (k0, k1 or k2).
An op code of `-1` runs on class k1. A register of `-1`, or any register
outside 0–127, counts as "no register".

```
ab120024 0 1 2 3
ab120028 1 4 1 3
ab12002c -1 -1 4 -1
```

Records need not sit one per line. Reading stops at the end of input, at an
incomplete final record, or at the first record that cannot be parsed.
`procsim.trace.parse_line` parses a single line strictly and raises
`TraceFormatError` if the line is malformed.

## Command line

```
procsim -r 8 -j 1 -k 2 -l 3 -f 4 < traces/sample.trace
procsim -i traces/sample.trace
```

Options:

- `-j K0` number of k0 functional units (default 1)
- `-k K1` number of k1 functional units (default 2)
- `-l K2` number of k2 functional units (default 3)
- `-f N` instructions fetched per cycle (default 4)
- `-r R` number of result buses, which is also the retire width (default 8)
- `-i FILE` read the trace from FILE instead of standard input
- `-h` show help

Numeric options take the leading integer of their value. A value with no
leading integer counts as 0. An unknown option, or a trace file that cannot be
opened, prints the help text and exits with status 0.

The command prints the processor settings and statistics to standard output.
It also writes a full report, including the per-instruction stage table, to
`result_test.output` in the current directory.

The printed "Total run time" is the cycle count. In the report file, the run
time and all averages leave out the final cycle.

The command exits with status 1 and writes a message to standard error in
these cases:

- a setting is negative;
- `-r` is 0;
- the trace holds an unsupported op code;
- the trace uses a functional-unit class that has no units;
- the trace is empty.

## Library use

```python
from procsim.config import ProcessorConfig
from procsim.trace import read_trace
from procsim.simulator import Simulator
from procsim.report import format_report

config = ProcessorConfig()
with open("traces/sample.trace") as stream:
    sim = Simulator(config, read_trace(stream))
    sim.run()

stats = sim.stats()
print(stats.retired_instruction, stats.cycle_count)
print(format_report(config, stats, sim.stage_times))
```

- `simulate(config, records)` from `procsim.simulator` runs a whole trace. It
  returns the statistics together with a mapping from tag to `StageTimes`.
- `Simulator.step()` advances one cycle at a time and returns `True` once the
  pipeline has drained.
- `procsim.report` offers these functions:
  - `format_settings`
  - `format_stage_table`
  - `format_statistics`
  - `format_report`
  - `write_report(path, config, stats, stage_times)`
- Every 1000 cycles, progress is logged at INFO level on the
  `procsim.simulator` logger.