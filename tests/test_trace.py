import io

import pytest

from procsim.trace import TraceFormatError, TraceRecord, parse_line, read_trace


def test_parse_line_fields():
    record = parse_line("ab120024 1 5 -1 7\n")
    assert record.address == 0xAB120024
    assert record.op_code == 1
    assert record.dest_reg == 5
    assert record.src_reg == (-1, 7)


def test_parse_line_accepts_hex_prefix():
    assert parse_line("0x10 0 1 2 3").address == parse_line("10 0 1 2 3").address


def test_parse_line_negative_opcode():
    record = parse_line("ff -1 -1 4 4")
    assert record.op_code == -1
    assert record.dest_reg == -1


def test_address_wraps_to_32_bits():
    record = parse_line("1ffffffff 0 0 0 0")
    assert record.address == 0xFFFFFFFF


@pytest.mark.parametrize(
    "line",
    ["", "10 1 2 3", "10 1 2 3 4 5", "zz 1 2 3 4", "10 x 2 3 4", "10 1 2 3 4.5", "1_0 1 2 3 4"],
)
def test_parse_line_rejects_malformed(line):
    with pytest.raises(TraceFormatError):
        parse_line(line)


def test_trace_format_error_is_value_error():
    with pytest.raises(ValueError):
        parse_line("bad")


def test_read_trace_round_trip():
    records = [
        TraceRecord(0x1000, 0, 1, (2, 3)),
        TraceRecord(0x1004, 2, -1, (1, -1)),
        TraceRecord(0x1008, -1, 4, (-1, -1)),
    ]
    text = "".join(
        f"{r.address:x} {r.op_code} {r.dest_reg} {r.src_reg[0]} {r.src_reg[1]}\n"
        for r in records
    )
    assert list(read_trace(io.StringIO(text))) == records


def test_read_trace_ignores_line_boundaries_and_blank_lines():
    text = "10 1 2\n3 4\n\n20 0 5 6 7\n"
    result = list(read_trace(io.StringIO(text)))
    assert [r.address for r in result] == [0x10, 0x20]
    assert result[0].src_reg == (3, 4)


def test_read_trace_stops_at_malformed_record():
    text = "10 1 2 3 4\nzz 1 2 3 4\n20 1 2 3 4\n"
    result = list(read_trace(io.StringIO(text)))
    assert len(result) == 1
    assert result[0].address == 0x10


def test_read_trace_drops_incomplete_tail():
    result = list(read_trace(["10 1 2 3 4 20 1"]))
    assert len(result) == 1


def test_read_trace_empty():
    assert list(read_trace(io.StringIO(""))) == []


def test_records_are_immutable():
    record = parse_line("10 1 2 3 4")
    with pytest.raises(AttributeError):
        record.op_code = 2
    assert record.op_code == 1
    assert record == parse_line("10 1 2 3 4")