"""
Core speclint components.

This package provides diagnostics, source positions and shared type
definitions used by every checker.
"""

from speclint.core.diagnostics import (
    Diagnostic,
    DiagnosticCollector,
    LintMessage,
    Location,
    NodeLocation,
    RawLocation,
    Sink,
)
from speclint.core.locations import SourceText, offset_to_line_column, skip_trivia
from speclint.core.types import LineColumn, NodeId, Offset, RuleKind

__all__ = [
    "Diagnostic",
    "DiagnosticCollector",
    "LintMessage",
    "Location",
    "NodeLocation",
    "RawLocation",
    "Sink",
    "SourceText",
    "offset_to_line_column",
    "skip_trivia",
    "LineColumn",
    "NodeId",
    "Offset",
    "RuleKind",
]
