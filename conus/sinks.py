"""Output sinks that consume automaton rows in emission order."""

from typing import List, Optional

import numpy as np

from .errors import SinkError
from .png import PngStreamWriter

FILLED_GLYPH = "█"
BLANK_GLYPH = " "


class RowSink:
    """Accepts rows one at a time. Rows are views reused by the engine; copy what you keep."""

    def accept(self, row_index: int, row: np.ndarray):
        raise NotImplementedError

    def finish(self):
        """Called once after the last row."""


class AsciiSink(RowSink):
    """Text art: one glyph per cell, one line per row."""

    def __init__(self, stream, filled: str = FILLED_GLYPH, blank: str = BLANK_GLYPH):
        self.stream = stream
        self.filled = filled
        self.blank = blank

    def render_row(self, row: np.ndarray) -> str:
        glyphs = np.where(row, self.filled, self.blank)
        return "".join(glyphs.tolist())

    def accept(self, row_index: int, row: np.ndarray):
        self.stream.write(self.render_row(row) + "\n")
        self.stream.flush()


class BitmapSink(RowSink):
    """1-bit grayscale PNG of size (2*steps+1) x (steps+1), streamed row by row."""

    def __init__(self, stream, steps: int):
        self.width = 2 * steps + 1
        self.height = steps + 1
        self.writer = PngStreamWriter(stream, self.width, self.height)
        self._expected_index = 0

    def accept(self, row_index: int, row: np.ndarray):
        if row_index != self._expected_index:
            raise SinkError(
                f"Rows must arrive in order: expected {self._expected_index}, got {row_index}",
                row_index,
            )
        if len(row) != self.width:
            raise SinkError(f"Row {row_index} has width {len(row)}, expected {self.width}", row_index)

        # Live cells are the foreground (bit 1), packed most significant bit first
        packed = np.packbits(np.asarray(row, dtype=bool)).tobytes()
        self.writer.write_row(packed)
        self._expected_index += 1

    def finish(self):
        self.writer.finish()


class MemorySink(RowSink):
    """Keeps copies of every row, e.g. for analysis or tests."""

    def __init__(self, limit: Optional[int] = None):
        self.limit = limit
        self.rows: List[np.ndarray] = []
        self.indices: List[int] = []
        self.finished = False

    def accept(self, row_index: int, row: np.ndarray):
        if self.limit is not None and len(self.rows) >= self.limit:
            raise SinkError(f"Memory sink holds at most {self.limit} rows", row_index)
        self.rows.append(np.array(row, dtype=bool, copy=True))
        self.indices.append(row_index)

    def finish(self):
        self.finished = True

    def as_array(self) -> np.ndarray:
        """History as a (rows, width) boolean array."""
        if not self.rows:
            return np.zeros((0, 0), dtype=bool)
        return np.stack(self.rows)

    def __len__(self):
        return len(self.rows)
