"""Reading instruction traces.

A trace is a whitespace-separated stream of records. Each record has five
fields: a hexadecimal instruction address, the operation code, the
destination register and two source registers. A register of ``-1`` means
the operand is not used.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import IO, Iterable, Iterator

_ADDRESS_MASK = 0xFFFFFFFF
_FIELDS = 5


class TraceFormatError(ValueError):
    """Raised when a trace record cannot be parsed."""


@dataclass(frozen=True)
class TraceRecord:
    """One instruction as it appears in a trace."""

    address: int
    op_code: int
    dest_reg: int
    src_reg: tuple[int, int]


def _parse_hex(token: str) -> int:
    if "_" in token:
        raise TraceFormatError(f"invalid address {token!r}")
    try:
        return int(token, 16) & _ADDRESS_MASK
    except ValueError:
        raise TraceFormatError(f"invalid address {token!r}") from None


def _parse_int(token: str, field: str) -> int:
    if "_" in token:
        raise TraceFormatError(f"invalid {field} {token!r}")
    try:
        return int(token, 10)
    except ValueError:
        raise TraceFormatError(f"invalid {field} {token!r}") from None


def _record_from_tokens(tokens: list[str]) -> TraceRecord:
    address = _parse_hex(tokens[0])
    op_code = _parse_int(tokens[1], "op code")
    dest = _parse_int(tokens[2], "destination register")
    src0 = _parse_int(tokens[3], "source register")
    src1 = _parse_int(tokens[4], "source register")
    return TraceRecord(address, op_code, dest, (src0, src1))


def parse_line(line: str) -> TraceRecord:
    """Parse a single trace line holding exactly one record."""
    tokens = line.split()
    if len(tokens) != _FIELDS:
        raise TraceFormatError(
            f"expected {_FIELDS} fields, got {len(tokens)}: {line.strip()!r}"
        )
    return _record_from_tokens(tokens)


def _tokens(stream: Iterable[str]) -> Iterator[str]:
    for line in stream:
        yield from line.split()


def read_trace(stream: IO[str] | Iterable[str]) -> Iterator[TraceRecord]:
    """Yield the records of a trace.

    Fields are read as a token stream, so records need not sit one per line.
    Reading ends at the end of input, at an incomplete final record, or at the
    first record that cannot be parsed.
    """
    pending: list[str] = []
    for token in _tokens(stream):
        pending.append(token)
        if len(pending) == _FIELDS:
            try:
                record = _record_from_tokens(pending)
            except TraceFormatError:
                return
            pending = []
            yield record