"""
Step classifier and line-style contract.

Every ordered step is classified by its leading text into one category, and
each category fixes how the step's line has to end depending on whether the
step has substeps:

- `If foo, bar.` / `If foo, then` + substeps / `If foo, bar; then` + substeps
- `Else if ...` as `If`
- `Else, baz.` / `Else,` + substeps
- `Repeat,` / `Repeat, while foo,` / `Repeat, until foo,` + substeps
- `For each foo, bar.` / `For each foo, do` + substeps
- `NOTE: Something.` / `Assert: Something.` / `Other.` / `Other:` + substeps
"""

import json
import re
from enum import Enum
from typing import assert_never

from speclint.algorithms.steps import (
    Comment,
    Fragment,
    ListItem,
    OpaqueTag,
    OrderedList,
    Pipe,
    Star,
    StepReporter,
    Tag,
    Text,
    Tilde,
    Variable,
)

RULE_ID = "algorithm-line-style"


class StepCategory(Enum):
    """Category of an algorithm step, by leading keyword."""

    IF = "if"
    ELSE = "else"
    REPEAT = "repeat"
    FOR_EACH = "for each"
    FREEFORM = "freeform"


_CATEGORY_PATTERNS = (
    (StepCategory.IF, re.compile(r"^(?:If |Else if)")),
    (StepCategory.ELSE, re.compile(r"^Else")),
    (StepCategory.REPEAT, re.compile(r"^Repeat")),
    (StepCategory.FOR_EACH, re.compile(r"^For each")),
)

_WRAPPERS = (("<mark>", "</mark>"), ("<ins>", "</ins>"), ("<del>", "</del>"))

_ENDS_STATEMENT = re.compile(r"(?:\.|\.\))$")
_ENDS_STATEMENT_OR_COLON = re.compile(r"(?:\.|\.\)|:)$")
_TRAILING_PARENTHETICAL = re.compile(r"\.\s*\([^()]*\)$")


def classify(initial_text: str) -> StepCategory:
    """Return the category of a step whose first text is `initial_text`."""
    for category, pattern in _CATEGORY_PATTERNS:
        if pattern.match(initial_text):
            return category
    return StepCategory.FREEFORM


def fragment_kind(fragment: Fragment) -> str:
    """Human-readable name of a fragment's kind, for messages."""
    if isinstance(fragment, Text):
        return "text"
    elif isinstance(fragment, Variable):
        return "variable"
    elif isinstance(fragment, Tilde):
        return "enum"
    elif isinstance(fragment, Pipe):
        return "nonterminal"
    elif isinstance(fragment, Star):
        return "literal"
    elif isinstance(fragment, Tag):
        return "tag"
    elif isinstance(fragment, OpaqueTag):
        return "opaque tag"
    elif isinstance(fragment, Comment):
        return "comment"
    else:
        assert_never(fragment)


def _is_wrapped(first: Fragment, last: Fragment) -> bool:
    return (
        isinstance(first, Tag)
        and isinstance(last, Tag)
        and (first.contents, last.contents) in _WRAPPERS
    )


def check_line_style(step: ListItem, source: str, report: StepReporter) -> None:
    """
    Check one ordered step against its category's line-ending contract.

    Params:
        step: The step to check
        source: Algorithm source the step's offsets point into
        report: Receives `(rule_id, message, offset)` for each violation
    """
    contents = step.contents
    first_index = 0
    last_index = len(contents) - 1

    while first_index < last_index and _is_wrapped(
        contents[first_index], contents[last_index]
    ):
        first_index += 1
        last_index -= 1

    while first_index <= last_index and isinstance(contents[first_index], Tag):
        first_index += 1
    if first_index > last_index:
        report(RULE_ID, "expected line to contain non-tag elements", step.start)
        return

    first = contents[first_index]
    last = contents[last_index]

    if isinstance(last, Tag) and last.contents == "</figure>":
        _check_figure_line(contents, last_index, report)
        return

    has_substeps = step.sublist is not None

    if isinstance(last, OpaqueTag) and re.match(r"^\s*<pre>", last.contents):
        if has_substeps:
            report(
                RULE_ID,
                "lines ending in <pre> tags must not have substeps",
                contents[0].start,
            )
        return

    if not isinstance(last, Text):
        report(
            RULE_ID,
            f"expected line to end with text (found {fragment_kind(last)})",
            last.start,
        )
        return

    initial_text = first.contents if isinstance(first, Text) else ""
    category = classify(initial_text)
    ending = last.contents
    found = json.dumps(ending)

    if category is StepCategory.IF:
        if has_substeps:
            if isinstance(step.sublist, OrderedList):
                end = re.search(r"[,;] then$", ending)
                if end is None:
                    report(
                        RULE_ID,
                        f'expected "If" with substeps to end with ", then" (found {found})',
                        last.end,
                    )
                elif end.group()[0] == ";" and not any(
                    isinstance(c, Text) and "," in c.contents for c in contents
                ):
                    report(
                        RULE_ID,
                        'expected "If" with substeps to end with ", then" rather than '
                        '"; then" when there are no other commas',
                        last.end - 6,
                    )
            elif not ending.endswith(":"):
                report(
                    RULE_ID,
                    f'expected "If" with list to end with ":" (found {found})',
                    last.end,
                )
        else:
            line_source = source[first.start : last.end]
            if_then = re.match(r"^If[^,\n]+, then ", line_source)
            if if_then is not None:
                report(
                    RULE_ID,
                    'single-line "If" steps should not have a "then"',
                    first.start + len(if_then.group()) - 5,
                )
            if not _ENDS_STATEMENT_OR_COLON.search(ending):
                report(
                    RULE_ID,
                    f'expected "If" without substeps to end with "." or ":" (found {found})',
                    last.end,
                )

    elif category is StepCategory.ELSE:
        if initial_text.startswith("Else, if"):
            report(RULE_ID, 'prefer "Else if" over "Else, if"', first.start + len("Else"))
        if has_substeps:
            if len(contents) == 1 and first.contents == "Else,":
                return
            if not ending.endswith(","):
                report(
                    RULE_ID,
                    f'expected "Else" with substeps to end with "," (found {found})',
                    last.end,
                )
        elif not _ENDS_STATEMENT_OR_COLON.search(ending):
            report(
                RULE_ID,
                f'expected "Else" without substeps to end with "." or ":" (found {found})',
                last.end,
            )

    elif category is StepCategory.REPEAT:
        if not has_substeps:
            report(RULE_ID, 'expected "Repeat" to have substeps', contents[0].start)
        if len(contents) == 1 and first.contents == "Repeat,":
            return
        if not re.match(r"^Repeat, (?:while|until) ", initial_text):
            report(
                RULE_ID,
                'expected "Repeat" to start with "Repeat, while " or "Repeat, until " '
                f"(found {json.dumps(initial_text)})",
                contents[0].start,
            )
        if not ending.endswith(","):
            report(RULE_ID, 'expected "Repeat" to end with ","', last.end)

    elif category is StepCategory.FOR_EACH:
        if has_substeps:
            if not ending.endswith(", do"):
                report(
                    RULE_ID,
                    f'expected "For each" with substeps to end with ", do" (found {found})',
                    last.end,
                )
        elif not _ENDS_STATEMENT.search(ending):
            report(
                RULE_ID,
                f'expected "For each" without substeps to end with "." (found {found})',
                last.end,
            )

    elif category is StepCategory.FREEFORM:
        _check_note_and_assert(first, initial_text, report)
        if has_substeps:
            if not ending.endswith(":"):
                report(
                    RULE_ID,
                    "expected freeform line with substeps to end with "
                    f'":" (found {found})',
                    last.end,
                )
        elif not (
            _ENDS_STATEMENT.search(ending) or _TRAILING_PARENTHETICAL.search(ending)
        ):
            report(
                RULE_ID,
                f'expected freeform line to end with "." (found {found})',
                last.end,
            )

    else:
        assert_never(category)


def _check_figure_line(
    contents: tuple[Fragment, ...], last_index: int, report: StepReporter
) -> None:
    # scan backward past the balanced <figure>...</figure> block
    depth = 1
    index = last_index - 1
    while depth > 0:
        if index < 0:
            report(RULE_ID, "could not find matching <figure> tag", contents[0].start)
            return
        fragment = contents[index]
        if isinstance(fragment, Tag):
            if fragment.contents == "<figure>":
                depth -= 1
            elif fragment.contents == "</figure>":
                depth += 1
        index -= 1
    if index < 0:
        report(RULE_ID, "could not find matching <figure> tag", contents[0].start)
        return

    before = contents[index]
    if not isinstance(before, Text):
        report(
            RULE_ID,
            f"expected line to end with text (found {fragment_kind(before)})",
            before.start,
        )
        return
    if not re.search(r":\s*$", before.contents):
        report(RULE_ID, 'expected line with figure to end with ":"', before.end)


def _check_note_and_assert(
    first: Fragment, initial_text: str, report: StepReporter
) -> None:
    lowercase_clause = re.match(r"^(NOTE|Assert): [a-z]", initial_text)
    if lowercase_clause is not None:
        kind = lowercase_clause.group(1)
        report(
            RULE_ID,
            f'the clause after "{kind}:" should begin with a capital letter',
            first.start + len(kind) + 2,
        )
    if re.match(r"^NOTE:", initial_text, re.IGNORECASE) and not initial_text.startswith(
        "NOTE:"
    ):
        report(RULE_ID, '"NOTE:" should be fully capitalized', first.start)
    if re.match(r"^Assert:", initial_text, re.IGNORECASE) and not initial_text.startswith(
        "Assert:"
    ):
        report(RULE_ID, '"Assert:" should be capitalized', first.start)
