"""
Spelling and whitespace checking.

A single composed pattern is tried against each source first; only when it
hits are the individual patterns run to find every offending position.
"""

import re
from collections.abc import Sequence
from dataclasses import dataclass

from speclint.core.diagnostics import DiagnosticCollector, RawLocation
from speclint.core.locations import SourceText, offset_to_line_column
from speclint.exceptions import InternalInvariantError

RULE_ID = "spelling"


@dataclass(frozen=True)
class SpellingMatcher:
    """A forbidden pattern and the message explaining it. No backreferences."""

    pattern: str
    message: str


MATCHERS = (
    SpellingMatcher(r"(?i:\*this\* object)", 'Prefer "*this* value"'),
    SpellingMatcher(r"(?i:1's complement)", "Prefer \"one's complement\""),
    SpellingMatcher(r"(?i:2's complement)", "Prefer \"two's complement\""),
    SpellingMatcher(
        r"\*0\*",
        'The Number value 0 should be written "*+0*", to unambiguously exclude "*-0*"',
    ),
    SpellingMatcher(r"(?i:behavior)", 'ECMA-262 uses Oxford spelling ("behaviour")'),
    SpellingMatcher(r"[Tt]he empty string", 'Prefer "the empty String"'),
    SpellingMatcher(r"[ \t]+\n", "Trailing spaces are not allowed"),
    SpellingMatcher(r"(?<=\n\n)\n", "No more than one blank line is allowed"),
    SpellingMatcher(r"\r", "Only Unix-style (LF) linebreaks are allowed"),
    SpellingMatcher(
        r"(?<=\b[Ss]tep )\d|(?<=\b[Ss]teps )\d",
        "Prefer using labeled steps and <emu-xref> tags over hardcoding step numbers",
    ),
)

COMPOSED = re.compile("|".join(f"(?:{m.pattern})" for m in MATCHERS))
COMPILED = tuple((re.compile(m.pattern), m.message) for m in MATCHERS)


def check_spelling(source: SourceText, diagnostics: DiagnosticCollector) -> int:
    """
    Scan one source for forbidden spellings.

    Params:
        source: Source to scan
        diagnostics: Collector receiving violations

    Returns:
        Number of problems found

    Raises:
        InternalInvariantError: If the composed pattern hits but no individual
            pattern does
    """
    text = source.text
    if COMPOSED.search(text) is None:
        return 0

    found = 0
    for pattern, message in COMPILED:
        for match in pattern.finditer(text):
            line, column = offset_to_line_column(text, match.start())
            diagnostics.add(RULE_ID, message, RawLocation(line, column, source.name))
            found += 1
    if found == 0:
        raise InternalInvariantError(
            "the spell checker reported an error, but could not find one"
        )
    return found


def check_sources(
    sources: Sequence[SourceText], diagnostics: DiagnosticCollector
) -> int:
    return sum(check_spelling(source, diagnostics) for source in sources)
