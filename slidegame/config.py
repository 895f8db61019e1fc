"""
Board dimensions for a slide game session.
"""

from dataclasses import dataclass

from numpy import integer as np_integer

MIN_SIZE = 2
MAX_SIZE = 100
DEFAULT_SIZE = 4


class BoardSizeError(ValueError):
    """Raised when a board dimension is not an integer in [MIN_SIZE, MAX_SIZE]."""


def validate_dimension(name: str, value: int) -> int:
    if isinstance(value, bool) or not isinstance(value, (int, np_integer)):
        raise BoardSizeError(f"{name} must be an integer, got {value!r}")
    if not MIN_SIZE <= value <= MAX_SIZE:
        raise BoardSizeError(f"{name} must be between {MIN_SIZE} and {MAX_SIZE}, got {value}")
    return int(value)


@dataclass(frozen=True)
class BoardConfig:
    """Validated row and column counts for one game session."""

    rows: int = DEFAULT_SIZE
    columns: int = DEFAULT_SIZE

    def __post_init__(self):
        object.__setattr__(self, "rows", validate_dimension("rows", self.rows))
        object.__setattr__(self, "columns", validate_dimension("columns", self.columns))

    @property
    def shape(self):
        return (self.rows, self.columns)
