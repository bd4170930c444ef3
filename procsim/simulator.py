"""Cycle-level simulation of an out-of-order, Tomasulo-style pipeline.

Every cycle runs the stages in reverse pipeline order: state update and
retirement, execution, scheduling, dispatch and finally fetch. Instructions
fetched in one cycle are dispatched in the next. Execution completes in the
cycle an instruction fires. Functional units stay busy until an instruction
of their class retires.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Iterable, Iterator

from .config import ProcessorConfig, ProcessorStats
from .trace import TraceRecord

logger = logging.getLogger(__name__)

_REGISTER_COUNT = 128
_FU_CLASSES = (0, 1, 2)
_PROGRESS_INTERVAL = 1000


@dataclass
class StageTimes:
    """The cycle in which an instruction entered each pipeline stage."""

    fetch: int = 0
    dispatch: int = 0
    schedule: int = 0
    execute: int = 0
    retire: int = 0


@dataclass(eq=False)
class Instruction:
    """An instruction in flight, with its reservation-station state."""

    tag: int
    record: TraceRecord
    src_ready: list[bool] = field(default_factory=lambda: [False, False])
    src_tag: list[int] = field(default_factory=lambda: [0, 0])
    issued: bool = False
    executed: bool = False
    retired: bool = False
    just_retired: bool = False
    safe_to_delete: bool = False

    @property
    def fu_class(self) -> int:
        """Functional-unit class; op code -1 runs on class 1 units."""
        op = self.record.op_code
        return 1 if op == -1 else op

    @property
    def operands_ready(self) -> bool:
        """True when both source operands are available."""
        return all(self.src_ready) and not any(self.src_tag)

    def _wake(self, index: int) -> None:
        self.src_ready[index] = True
        self.src_tag[index] = 0


class Simulator:
    """Runs a trace through the pipeline one cycle at a time."""

    def __init__(self, config: ProcessorConfig, records: Iterable[TraceRecord]):
        if config.r < 1:
            raise ValueError(f"r must be at least 1, got {config.r}")
        self.config = config
        self._records: Iterator[TraceRecord] = iter(records)
        self.cycle = 0
        self.finished = False
        self.stage_times: dict[int, StageTimes] = {}
        self._next_tag = 1
        self._dispatch_ready = False
        self._fetch_buf: list[Instruction] = []
        self._dispatch_q: list[Instruction] = []
        self._sched_q: list[Instruction] = []
        self._rob: list[Instruction] = []
        self._retire_buffer: list[int] = []
        self._broadcast_tags: set[int] = set()
        self._prev_retired_tags: set[int] = set()
        self._delete_now: list[Instruction] = []
        self._delete_next: list[Instruction] = []
        self._units: dict[int, list[int]] = {
            0: [0] * config.k0,
            1: [0] * config.k1,
            2: [0] * config.k2,
        }
        self._dispatch_queue_max = 0
        self._dispatch_queue_total = 0
        self._retired = 0

    def fetch(self) -> None:
        """Read up to ``f`` instructions from the trace into the fetch buffer."""
        for _ in range(self.config.f):
            record = next(self._records, None)
            if record is None:
                break
            inst = Instruction(self._next_tag, record)
            if inst.fu_class not in _FU_CLASSES:
                raise ValueError(
                    f"instruction {inst.tag}: unsupported op code {record.op_code}"
                )
            if not self._units[inst.fu_class]:
                raise ValueError(
                    f"instruction {inst.tag}: no functional units of class "
                    f"k{inst.fu_class}"
                )
            self._next_tag += 1
            self.stage_times[inst.tag] = StageTimes(fetch=self.cycle)
            self._fetch_buf.append(inst)

    def _resolve_sources(self, inst: Instruction) -> None:
        for j, reg in enumerate(inst.record.src_reg):
            producer = None
            if 0 <= reg < _REGISTER_COUNT:
                for candidate in self._rob:
                    if candidate.record.dest_reg == reg and not candidate.retired:
                        producer = candidate
            if producer is None or producer.executed:
                inst.src_ready[j] = True
                inst.src_tag[j] = 0
            else:
                inst.src_ready[j] = False
                inst.src_tag[j] = producer.tag

    def dispatch(self) -> None:
        """Move fetched instructions into the dispatch queue and the ROB."""
        for inst in self._fetch_buf[: self.config.f]:
            self._resolve_sources(inst)
            self._dispatch_q.append(inst)
            self._rob.append(inst)
            self.stage_times[inst.tag].dispatch = self.cycle
        self._fetch_buf.clear()
        size = len(self._dispatch_q)
        self._dispatch_queue_max = max(self._dispatch_queue_max, size)
        self._dispatch_queue_total += size

    def schedule(self) -> None:
        """Move instructions from the dispatch queue into the scheduling queue."""
        capacity = self.config.scheduling_queue_size
        free = max(0, capacity - len(self._sched_q))
        moving = self._dispatch_q[:free]
        del self._dispatch_q[: len(moving)]
        for inst in moving:
            self.stage_times[inst.tag].schedule = self.cycle
            self._sched_q.append(inst)

    def execute(self) -> None:
        """Fire ready instructions onto free units, class by class, oldest first."""
        fired: list[int] = []
        for fu_class in _FU_CLASSES:
            units = self._units[fu_class]
            for inst in self._sched_q:
                if inst.issued or inst.fu_class != fu_class:
                    continue
                if not inst.operands_ready:
                    continue
                try:
                    slot = units.index(0)
                except ValueError:
                    continue
                units[slot] = 1
                inst.issued = True
                inst.executed = True
                fired.append(inst.tag)
                self._broadcast_tags.add(inst.tag)
                self.stage_times[inst.tag].execute = self.cycle
        self._retire_buffer.extend(sorted(fired))

    def _retire(self) -> None:
        width = self.config.r
        candidates = sorted(self._retire_buffer[:width])
        by_tag = {inst.tag: inst for inst in self._rob}
        count = 0
        for tag in candidates:
            inst = by_tag.get(tag)
            if inst is None or not inst.executed or inst.retired:
                continue
            inst.retired = True
            inst.just_retired = True
            inst.safe_to_delete = True
            self.stage_times[tag].retire = self.cycle
            self._retired += 1
            units = self._units[inst.fu_class]
            for slot, busy in enumerate(units):
                if busy:
                    units[slot] = 0
                    break
            self._retire_buffer.remove(tag)
            count += 1
            if count >= width:
                break

    def update(self) -> None:
        """Retire finished instructions, free their units and wake dependents."""
        self._retire()

        live = {inst.tag for inst in self._rob}
        live.update(inst.tag for inst in self._sched_q)
        for inst in self._sched_q:
            for j in (0, 1):
                tag = inst.src_tag[j]
                if inst.src_ready[j] or tag == 0:
                    continue
                if tag in self._broadcast_tags:
                    inst._wake(j)
                elif tag not in live and 0 < tag < self._next_tag:
                    inst._wake(j)

        for inst in self._sched_q:
            for j in (0, 1):
                tag = inst.src_tag[j]
                if not inst.src_ready[j] and tag and tag in self._prev_retired_tags:
                    inst._wake(j)

        self._prev_retired_tags = {
            inst.tag for inst in self._sched_q if inst.just_retired
        }
        for inst in self._sched_q:
            inst.just_retired = False

    def _collect_retired(self) -> None:
        self._delete_next.extend(
            inst
            for inst in self._sched_q
            if inst.executed and inst.retired and inst.safe_to_delete
        )
        for inst in self._delete_now:
            if inst in self._sched_q:
                self._sched_q.remove(inst)
                if inst in self._rob:
                    self._rob.remove(inst)
        self._delete_now, self._delete_next = self._delete_next, []

    def step(self) -> bool:
        """Simulate one cycle. Return True once the pipeline has drained."""
        if self.finished:
            return True
        self._broadcast_tags = set()
        self.update()
        self.execute()
        self.schedule()
        if self._dispatch_ready:
            self.dispatch()
        self.fetch()
        self._dispatch_ready = True

        if not (self._dispatch_q or self._sched_q or self._rob or self._fetch_buf):
            self.finished = True
            return True

        self._collect_retired()
        self.cycle += 1
        if self.cycle % _PROGRESS_INTERVAL == 0:
            logger.info(
                "Cycle %d: ROB=%d, DISP_Q=%d, SCHED_Q=%d, RETIRED=%d",
                self.cycle,
                len(self._rob),
                len(self._dispatch_q),
                len(self._sched_q),
                self._retired,
            )
        return False

    def run(self) -> ProcessorStats:
        """Run until the trace is exhausted and the pipeline is empty."""
        while not self.step():
            pass
        return self.stats()

    def stats(self) -> ProcessorStats:
        """Statistics of the run so far.

        Raises ValueError when no cycle has completed, as the averages are
        taken over ``cycle_count - 1`` cycles.
        """
        return ProcessorStats().finalize(
            dispatch_queue_total=self._dispatch_queue_total,
            retired=self._retired,
            cycle_count=self.cycle,
            max_dispatch_size=self._dispatch_queue_max,
        )


def simulate(
    config: ProcessorConfig, records: Iterable[TraceRecord]
) -> tuple[ProcessorStats, dict[int, StageTimes]]:
    """Run a whole trace and return its statistics and per-tag stage times."""
    simulator = Simulator(config, records)
    stats = simulator.run()
    return stats, simulator.stage_times