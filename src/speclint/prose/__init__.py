"""
Prose checks that do not need the embedded-language parsers.

This package provides the spelling, header format and tag checkers.
"""

from speclint.prose.headers import check_header, check_headers
from speclint.prose.spelling import MATCHERS, SpellingMatcher, check_sources, check_spelling
from speclint.prose.tags import check_tags

__all__ = [
    "check_header",
    "check_headers",
    "MATCHERS",
    "SpellingMatcher",
    "check_sources",
    "check_spelling",
    "check_tags",
]
