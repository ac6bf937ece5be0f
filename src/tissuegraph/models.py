"""
Pydantic data models for the tissue graph.

Entities live in index-addressed arenas owned by a TissueGraph; every cross
reference (vertex, bond, cell, conjugate) is an arena index.
"""

from enum import Enum
from typing import Any, Dict, List, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field


class Severity(str, Enum):
    """Severity levels for consistency checks."""
    ERROR = "error"
    WARN = "warn"
    INFO = "info"


class Vertex(BaseModel):
    """A junction of three or more regions, possibly spanning several pixels."""
    index: int
    pixels: List[Tuple[int, int]] = Field(default_factory=list)
    position: Tuple[float, float] = (0.0, 0.0)  # (row, col) centroid of pixels
    bonds: List[int] = Field(default_factory=list)  # outgoing, clockwise
    margin: bool = False

    model_config = ConfigDict(extra="forbid")


class DirectedBond(BaseModel):
    """An oriented boundary segment between two vertices."""
    index: int
    tail: int
    head: int
    cell: Optional[int] = None  # None on the exterior side
    conjugate: Optional[int] = None
    left_label: int  # label code of the bounded region
    right_label: int  # label code across the boundary
    pixels: List[Tuple[int, int]] = Field(default_factory=list)  # interior path
    margin: bool = False

    model_config = ConfigDict(extra="forbid")

    @property
    def exterior(self):
        return self.cell is None


class Cell(BaseModel):
    """A region and its closed perimeter cycle."""
    index: int
    label: int
    bonds: List[int] = Field(default_factory=list)
    area: int = 0
    centroid: Tuple[float, float] = (0.0, 0.0)
    margin: bool = False
    dividing: bool = False

    model_config = ConfigDict(extra="forbid")


class ConsistencyViolation(BaseModel):
    """A structural invariant that does not hold in a built graph."""
    rule_id: str
    severity: Severity
    message: str
    evidence: Dict[str, Any] = Field(default_factory=dict)

    model_config = ConfigDict(extra="forbid")


class ConsistencyReport(BaseModel):
    """Every violation found by one consistency check."""
    violations: List[ConsistencyViolation] = Field(default_factory=list)
    checked_rules: List[str] = Field(default_factory=list)

    model_config = ConfigDict(extra="forbid")

    @property
    def has_errors(self):
        """Check if any errors exist."""
        return any(v.severity == Severity.ERROR for v in self.violations)

    @property
    def error_count(self):
        """Count of error-level violations."""
        return sum(1 for v in self.violations if v.severity == Severity.ERROR)

    @property
    def warning_count(self):
        """Count of warning-level violations."""
        return sum(1 for v in self.violations if v.severity == Severity.WARN)

    def by_rule(self, rule_id):
        return [v for v in self.violations if v.rule_id == rule_id]
