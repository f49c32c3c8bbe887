"""Run configuration built from command-line arguments."""

from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from .automaton import Rule
from .errors import ConfigurationError
from .sinks import BLANK_GLYPH, FILLED_GLYPH

FORMATS = ("text", "png")
DEFAULT_FORMAT = "text"
MAX_STEPS = 2 ** 32 - 1


def parse_rule(value) -> Rule:
    """Parse a rule number 0-255, also accepting 'R30' or 'rule30'."""
    if isinstance(value, Rule):
        return value
    if isinstance(value, int):
        return Rule(value)
    return Rule.from_string(str(value))


def parse_steps(value) -> int:
    text = str(value).strip()
    if not text.isdecimal():
        raise ConfigurationError(
            f"Steps must be a number bigger than or equal to zero, got {value!r}", value
        )
    if len(text.lstrip("0")) > len(str(MAX_STEPS)):
        raise ConfigurationError(f"Steps must be at most {MAX_STEPS}, got {value!r}", value)
    steps = int(text.lstrip("0") or "0")
    if steps > MAX_STEPS:
        raise ConfigurationError(f"Steps must be at most {MAX_STEPS}, got {value!r}", value)
    return steps


def parse_format(value: Optional[str]) -> str:
    if value is None:
        return DEFAULT_FORMAT
    fmt = value.strip().lower()
    if fmt not in FORMATS:
        raise ConfigurationError(
            f"Unknown output format {value!r}, choose from: {', '.join(FORMATS)}", value
        )
    return fmt


def parse_glyph(value: str, name: str) -> str:
    if len(value) != 1:
        raise ConfigurationError(f"{name} glyph must be a single character, got {value!r}", value)
    return value


@dataclass
class RunConfig:
    """Validated settings for one generation run."""
    rule: Rule
    steps: int
    output: Optional[Path] = None  # None writes to standard output
    output_format: str = DEFAULT_FORMAT
    filled: str = FILLED_GLYPH
    blank: str = BLANK_GLYPH
    verbose: bool = False

    @property
    def width(self) -> int:
        return 2 * self.steps + 1

    @property
    def height(self) -> int:
        return self.steps + 1

    @classmethod
    def from_args(cls, args) -> "RunConfig":
        """Validate argparse results; raises ConfigurationError on bad input."""
        return cls(
            rule=parse_rule(args.rule),
            steps=parse_steps(args.steps),
            output=Path(args.output) if args.output else None,
            output_format=parse_format(args.format),
            filled=parse_glyph(args.filled, "Filled"),
            blank=parse_glyph(args.blank, "Blank"),
            verbose=args.verbose,
        )
