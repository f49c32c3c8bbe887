"""conus - Generate elementary cellular automata diagrams as text art or 1-bit PNG."""

__version__ = "1.0"

from .automaton import (
    RULE_30, RULE_90, RULE_110, RULE_184,
    ElementaryAutomaton, Rule, generate, iter_rows, next_state,
)
from .errors import CapacityError, ConfigurationError, ConusError, EngineStateError, SinkError
from .sinks import AsciiSink, BitmapSink, MemorySink, RowSink

__all__ = [
    "RULE_30", "RULE_90", "RULE_110", "RULE_184",
    "ElementaryAutomaton", "Rule", "generate", "iter_rows", "next_state",
    "ConusError", "ConfigurationError", "CapacityError", "SinkError", "EngineStateError",
    "AsciiSink", "BitmapSink", "MemorySink", "RowSink",
]
