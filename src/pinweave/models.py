"""
Pydantic data models for pinweave run results.

Everything handed from the optimizer to the renderer and the CLI goes
through these validated models.
"""

from enum import Enum
from typing import List, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, field_validator


class ScoringPolicy(str, Enum):
    """How a candidate line is scored against the raster state."""
    DARKNESS = "darkness"
    COLOR_ERROR = "color_error"
    ACCURACY = "accuracy"


class ColorPath(BaseModel):
    """Ordered pin indices visited by one thread, with its color."""
    pins: List[int] = Field(default_factory=lambda: [0])
    color: Tuple[int, int, int] = (0, 0, 0)

    model_config = ConfigDict(extra="forbid")

    @field_validator("color")
    @classmethod
    def _check_color(cls, value):
        if any(c < 0 or c > 255 for c in value):
            raise ValueError(f"color channels must be within 0..255, got {value}")
        return value

    @property
    def line_count(self):
        return max(len(self.pins) - 1, 0)

    @property
    def hex_color(self):
        return "#{:02x}{:02x}{:02x}".format(*self.color)

    def segments(self):
        """Consecutive (from_pin, to_pin) pairs."""
        return list(zip(self.pins[:-1], self.pins[1:]))


class Move(BaseModel):
    """One accepted line, in acceptance order."""
    path_index: int
    from_pin: int
    to_pin: int
    score: float

    model_config = ConfigDict(extra="forbid")


class OptimizationResult(BaseModel):
    """Output of a greedy run."""
    policy: ScoringPolicy
    paths: List[ColorPath] = Field(default_factory=list)
    moves: List[Move] = Field(default_factory=list)
    halted: bool = False
    halt_iteration: Optional[int] = None

    model_config = ConfigDict(extra="forbid")

    @property
    def lines_drawn(self):
        return len(self.moves)


class RunReport(BaseModel):
    """Everything a full pipeline run produced."""
    source_path: str
    size: int
    pins: List[Tuple[float, float]] = Field(default_factory=list)
    palette: List[Tuple[int, int, int]] = Field(default_factory=list)
    result: OptimizationResult
    output_path: Optional[str] = None

    model_config = ConfigDict(extra="forbid")
