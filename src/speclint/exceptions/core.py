"""
Exception classes for speclint.

This module defines the exception types raised while analyzing a document.
Structural failures (`EarlyErrorsShapeError`, `ClosureSyntaxError`) are caught
at the boundary of the smallest enclosing unit of work and turned into
diagnostics. `MalformedGrammarError` and `InternalInvariantError` signal
programming errors and propagate to the caller.
"""

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from speclint.document.nodes import Element


class SpecLintError(Exception):
    """Base exception for all speclint errors."""

    pass


class EarlyErrorsShapeError(SpecLintError):
    """Raised when an Early Errors clause does not alternate grammars and lists."""

    def __init__(self, element: "Element", reason: str):
        """
        Initialize the exception.

        Params:
            element: The child element where the unexpected shape was found
                (or the clause itself when nothing was found)
            reason: Description of the shape problem
        """
        self.element = element
        self.reason = reason
        super().__init__(f"unrecognized structure for early errors: {reason}")


class ClosureSyntaxError(SpecLintError):
    """Raised when an abstract closure's parameter or capture list is malformed."""

    def __init__(self, offset: int, expected: str):
        """
        Initialize the exception.

        Params:
            offset: Offset in the algorithm source of the offending token
            expected: What should have appeared at that offset
        """
        self.offset = offset
        self.expected = expected
        super().__init__(f"expected to find {expected} here")


class MalformedGrammarError(SpecLintError):
    """Raised when a grammar tree handed over by the compiler is structurally impossible."""

    def __init__(self, construct: str, reason: str):
        """
        Initialize the exception.

        Params:
            construct: The grammar construct that is malformed
            reason: What is wrong with it
        """
        self.construct = construct
        self.reason = reason
        super().__init__(f"Malformed {construct}: {reason}")


class InternalInvariantError(SpecLintError):
    """Raised when speclint itself reaches a state it should never reach."""

    def __init__(self, message: str):
        """
        Initialize the exception.

        Params:
            message: Description of the broken invariant
        """
        super().__init__(f"speclint has a bug: {message}")
