"""
speclint - Static analysis for specification documents

speclint checks the pseudocode algorithms and grammar fragments embedded in
specification markup for formatting, scoping and consistency problems.
"""

from importlib.metadata import version

from speclint.core.diagnostics import Diagnostic, LintMessage
from speclint.document.html_tree import parse_document
from speclint.lint import lint
from speclint.models import LintConfig

__version__ = version("speclint")

__all__ = [
    "__version__",
    "lint",
    "parse_document",
    "LintConfig",
    "LintMessage",
    "Diagnostic",
]
