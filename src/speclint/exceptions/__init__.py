"""
speclint exception classes.

This package provides all exception types used throughout speclint for
consistent error handling and reporting.
"""

from speclint.exceptions.core import (
    ClosureSyntaxError,
    EarlyErrorsShapeError,
    InternalInvariantError,
    MalformedGrammarError,
    SpecLintError,
)

__all__ = [
    "SpecLintError",
    "EarlyErrorsShapeError",
    "ClosureSyntaxError",
    "MalformedGrammarError",
    "InternalInvariantError",
]
