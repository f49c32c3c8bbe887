import numpy as np
import pytest

from conus.automaton import (
    RULE_30, RULE_90, RULE_110, RULE_184,
    ElementaryAutomaton, Rule, generate, iter_rows, next_state,
)
from conus.errors import CapacityError, ConfigurationError, EngineStateError, SinkError
from conus.sinks import MemorySink, RowSink

RULE_30_STEPS_4 = [
    "000010000",
    "000111000",
    "001100100",
    "011011110",
    "110010001",
]


def as_bits(row):
    return "".join("1" if cell else "0" for cell in row)


def reference_step(row, rule):
    """Cell-by-cell step with dead padding, for cross-checking the vectorized engine."""
    n = len(row)
    out = []
    for i in range(n):
        left = row[i - 1] if i > 0 else False
        right = row[i + 1] if i < n - 1 else False
        out.append(next_state(rule, left, row[i], right))
    return out


def test_next_state_exhaustive():
    for rule in range(256):
        for idx in range(8):
            left, center, right = bool(idx & 4), bool(idx & 2), bool(idx & 1)
            expected = (rule >> (left * 4 + center * 2 + right)) & 1 == 1
            assert next_state(rule, left, center, right) == expected
            assert Rule(rule).next_state(left, center, right) == expected


def test_rule_table_matches_next_state():
    rule = Rule(110)
    table = rule.table
    assert table.dtype == bool
    assert table.shape == (8,)
    for idx in range(8):
        assert table[idx] == next_state(110, bool(idx & 4), bool(idx & 2), bool(idx & 1))


@pytest.mark.parametrize(
    "text,code",
    [("30", 30), ("R30", 30), ("rule110", 110), (" r0 ", 0), ("255", 255), ("0030", 30)],
)
def test_rule_from_string(text, code):
    assert Rule.from_string(text).code == code


@pytest.mark.parametrize("text", ["256", "-1", "abc", "", "R", "3.5", "1000", "9" * 5000])
def test_rule_from_string_rejects(text):
    with pytest.raises(ConfigurationError):
        Rule.from_string(text)


def test_rule_rejects_out_of_range():
    with pytest.raises(ConfigurationError):
        Rule(256)
    with pytest.raises(ConfigurationError):
        Rule(-1)
    with pytest.raises(ConfigurationError):
        Rule(True)


def test_rule_notation():
    rule = Rule(30)
    assert rule.to_string() == "R30"
    assert rule.to_bits() == "00011110"
    assert rule.lambda_parameter() == 0.5
    assert Rule(0).lambda_parameter() == 0.0
    assert Rule(255).lambda_parameter() == 1.0


def test_steps_zero_emits_single_true_row():
    sink = MemorySink()
    assert generate(RULE_30, 0, sink) == 1
    assert len(sink) == 1
    assert sink.rows[0].tolist() == [True]


@pytest.mark.parametrize("steps", [1, 2, 7, 20])
def test_row_count_and_width(steps):
    sink = MemorySink()
    generate(RULE_110, steps, sink)
    assert len(sink) == steps + 1
    assert sink.indices == list(range(steps + 1))
    assert all(len(row) == 2 * steps + 1 for row in sink.rows)
    assert sink.finished


def test_rule_30_fixture():
    sink = MemorySink()
    generate(RULE_30, 4, sink)
    assert [as_bits(row) for row in sink.rows] == RULE_30_STEPS_4


def test_rule_0_dies_out():
    sink = MemorySink()
    generate(0, 6, sink)
    assert sink.rows[0].sum() == 1
    for row in sink.rows[1:]:
        assert not row.any()


def test_rule_255_fills_every_row():
    sink = MemorySink()
    generate(255, 6, sink)
    for row in sink.rows[1:]:
        assert row.all()


def test_rule_90_sierpinski():
    history = MemorySink()
    generate(RULE_90, 3, history)
    assert [as_bits(row) for row in history.rows] == [
        "0001000",
        "0010100",
        "0100010",
        "1010101",
    ]


@pytest.mark.parametrize("rule", [1, RULE_30, 45, 73, RULE_90, RULE_110, 150, RULE_184, 225])
def test_engine_matches_reference(rule):
    steps = 12
    expected = [False] * (2 * steps + 1)
    expected[steps] = True
    for _, row in iter_rows(rule, steps):
        assert row.tolist() == expected
        expected = reference_step(expected, rule)


def test_left_edge_reads_padding_as_dead():
    # Rule 2 (bit 1) only lets 001 become alive; a wrap would light the last cell
    ca = ElementaryAutomaton(Rule(2), 1)
    ca._current[:] = [True, False, False]
    ca._initialized = True
    ca.step()
    assert as_bits(ca.current_row()) == "000"


def test_right_edge_reads_padding_as_dead():
    # Rule 16 (bit 4) only lets 100 become alive: the right edge cell sees 1,0,pad
    ca = ElementaryAutomaton(Rule(16), 1)
    ca._current[:] = [False, True, False]
    ca._initialized = True
    ca.step()
    assert as_bits(ca.current_row()) == "001"
    ca.step()
    # Cell 2 alive, its right neighbor is padding; a wrap would light cell 0
    assert as_bits(ca.current_row()) == "000"


def test_current_row_is_idempotent_and_read_only():
    ca = ElementaryAutomaton(30, 5)
    ca.init()
    ca.step()
    first = ca.current_row().copy()
    second = ca.current_row()
    assert np.array_equal(first, second)
    with pytest.raises(ValueError):
        second[0] = True


def test_init_resets_state():
    ca = ElementaryAutomaton(30, 3)
    ca.init()
    ca.step()
    ca.step()
    assert ca.generation == 2
    ca.init()
    assert ca.generation == 0
    assert as_bits(ca.current_row()) == "0001000"
    assert ca.population() == 1


def test_step_before_init_fails():
    ca = ElementaryAutomaton(30, 3)
    assert not ca.current_row().any()
    with pytest.raises(EngineStateError):
        ca.step()


def test_buffers_are_swapped_not_reallocated():
    ca = ElementaryAutomaton(30, 4)
    buffers = {id(ca._current), id(ca._next)}
    ca.init()
    for _ in range(4):
        ca.step()
        assert {id(ca._current), id(ca._next)} == buffers


def test_negative_steps_rejected():
    with pytest.raises(ConfigurationError):
        ElementaryAutomaton(30, -1)


def test_capacity_error_on_overflowing_width():
    import sys
    with pytest.raises(CapacityError):
        ElementaryAutomaton(30, sys.maxsize)


class FailingSink(RowSink):
    def __init__(self, fail_at, exc):
        self.fail_at = fail_at
        self.exc = exc
        self.seen = []
        self.finished = False

    def accept(self, row_index, row):
        self.seen.append(row_index)
        if row_index == self.fail_at:
            raise self.exc

    def finish(self):
        self.finished = True


def test_sink_error_stops_generation():
    sink = FailingSink(2, OSError("disk full"))
    with pytest.raises(SinkError) as excinfo:
        generate(30, 10, sink)
    assert excinfo.value.row_index == 2
    assert isinstance(excinfo.value.__cause__, OSError)
    assert sink.seen == [0, 1, 2]
    assert not sink.finished


def test_sink_error_passes_through_unchanged():
    error = SinkError("encoder failed", 0)
    sink = FailingSink(0, error)
    with pytest.raises(SinkError) as excinfo:
        generate(30, 3, sink)
    assert excinfo.value is error
    assert sink.seen == [0]
