"""1D elementary cellular automaton engine using Wolfram rule numbers."""

import sys
from dataclasses import dataclass
from typing import Iterator, Tuple, Union

import numpy as np

from .errors import CapacityError, ConfigurationError, EngineStateError, SinkError


def next_state(rule: Union[int, "Rule"], left: bool, center: bool, right: bool) -> bool:
    """Next state of a cell given its neighborhood and an 8-bit rule code."""
    code = rule.code if isinstance(rule, Rule) else rule
    idx = (4 if left else 0) | (2 if center else 0) | (1 if right else 0)
    return (code >> idx) & 1 == 1


@dataclass(frozen=True)
class Rule:
    """Elementary rule in Wolfram numbering (e.g., R30, R110)."""
    code: int  # Bit b is the next state for neighborhood b

    def __post_init__(self):
        if isinstance(self.code, bool) or not isinstance(self.code, (int, np.integer)):
            raise ConfigurationError(f"Rule must be an integer, got {self.code!r}", self.code)
        if not 0 <= self.code <= 255:
            raise ConfigurationError(
                f"Rule must be a number between 0 and 255, got {self.code}", self.code
            )
        object.__setattr__(self, "code", int(self.code))

    @classmethod
    def from_string(cls, rule_str: str) -> "Rule":
        """Parse rule from string like '30', 'R30' or 'rule30'."""
        text = rule_str.strip().upper().replace(" ", "")
        if text.startswith("RULE"):
            text = text[4:]
        elif text.startswith("R"):
            text = text[1:]

        # 0-255 has at most three significant digits
        if not text.isdecimal() or len(text.lstrip("0")) > 3:
            raise ConfigurationError(
                f"Rule must be a number between 0 and 255, got {rule_str!r}", rule_str
            )
        value = int(text.lstrip("0") or "0")
        if value > 255:
            raise ConfigurationError(
                f"Rule must be a number between 0 and 255, got {rule_str!r}", rule_str
            )
        return cls(code=value)

    def to_string(self) -> str:
        """Convert to standard notation like 'R30'."""
        return f"R{self.code}"

    def to_bits(self) -> str:
        """Lookup table as bits, neighborhood 111 first."""
        return f"{self.code:08b}"

    @property
    def table(self) -> np.ndarray:
        """Boolean lookup table indexed by left<<2 | center<<1 | right."""
        return np.array([(self.code >> i) & 1 for i in range(8)], dtype=bool)

    def next_state(self, left: bool, center: bool, right: bool) -> bool:
        """Next state of a cell with this neighborhood."""
        return next_state(self.code, left, center, right)

    def lambda_parameter(self) -> float:
        """Calculate Langton's lambda parameter (fraction of transitions to alive state)."""
        return bin(self.code).count("1") / 8.0


def _as_rule(rule: Union[int, Rule]) -> Rule:
    return rule if isinstance(rule, Rule) else Rule(rule)


class ElementaryAutomaton:
    """Two fixed-width rows grown from a single active cell, padded with dead cells."""

    def __init__(self, rule: Union[int, Rule], steps: int):
        self.rule = _as_rule(rule)
        if isinstance(steps, bool) or not isinstance(steps, (int, np.integer)):
            raise ConfigurationError(f"Steps must be an integer, got {steps!r}", steps)
        if steps < 0:
            raise ConfigurationError(
                f"Steps must be a number bigger than or equal to zero, got {steps}", steps
            )
        self.steps = int(steps)

        # The light cone spreads one cell per step, so 2n+1 never reaches the padding
        width = 2 * self.steps + 1
        if width > sys.maxsize:
            raise CapacityError(f"Row width {width} for {self.steps} steps exceeds addressable size")
        self.width = width

        try:
            self._current = np.zeros(width, dtype=bool)
            self._next = np.zeros(width, dtype=bool)
            self._index = np.zeros(width, dtype=np.uint8)
        except (MemoryError, ValueError) as e:
            raise CapacityError(f"Cannot allocate rows of width {width}: {e}") from e

        self._table = self.rule.table
        self._initialized = False
        self.generation = 0

    def init(self):
        """Reset to row 0: only the center cell alive."""
        self._current.fill(False)
        self._current[self.steps] = True
        self._initialized = True
        self.generation = 0

    def step(self):
        """Advance simulation by one generation."""
        if not self._initialized:
            raise EngineStateError("init() must be called before step()")

        cur = self._current
        index = self._index

        # Neighborhood code per cell; cells beyond either edge read as dead
        index[:] = cur
        index <<= 1
        index[1:] |= cur[:-1].astype(np.uint8) << 2
        index[:-1] |= cur[1:]

        np.take(self._table, index, out=self._next)
        self._current, self._next = self._next, self._current
        self.generation += 1

    def current_row(self) -> np.ndarray:
        """Read-only view of the current row. Copy it to keep it past the next step."""
        view = self._current.view()
        view.flags.writeable = False
        return view

    def population(self) -> int:
        """Count live cells in the current row."""
        return int(np.count_nonzero(self._current))


def iter_rows(rule: Union[int, Rule], steps: int) -> Iterator[Tuple[int, np.ndarray]]:
    """Yield (row_index, row) for rows 0..steps, one row alive at a time."""
    ca = ElementaryAutomaton(rule, steps)
    ca.init()
    yield 0, ca.current_row()
    for i in range(1, ca.steps + 1):
        ca.step()
        yield i, ca.current_row()


def generate(rule: Union[int, Rule], steps: int, sink) -> int:
    """Feed every row to sink.accept in order, then finish the sink.

    Returns:
        Number of rows emitted (steps + 1).

    Raises:
        SinkError: when the sink fails; no later rows are offered.
    """
    emitted = 0
    for row_index, row in iter_rows(rule, steps):
        try:
            sink.accept(row_index, row)
        except SinkError:
            raise
        except (OSError, ValueError) as e:
            raise SinkError(f"Failed to write row {row_index}: {e}", row_index) from e
        emitted += 1

    try:
        sink.finish()
    except SinkError:
        raise
    except (OSError, ValueError) as e:
        raise SinkError(f"Failed to finish output: {e}") from e
    return emitted


# Some well-known rules for testing
RULE_30 = Rule(30)
RULE_90 = Rule(90)
RULE_110 = Rule(110)
RULE_184 = Rule(184)
