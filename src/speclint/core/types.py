"""
Core type definitions for speclint.

This module contains type aliases shared across the document, algorithm and
grammar analyzers.
"""

from typing import Literal

NodeId = int

Offset = int

LineColumn = tuple[int, int]

RuleKind = Literal["syntax-directed operation", "early error"]
