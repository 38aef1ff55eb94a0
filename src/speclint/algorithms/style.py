"""
Per-step style rules.

Each rule looks at one ordered step (and, for if/else consistency, the step
after it) and reports through a `StepReporter`. Line-ending contracts live in
`speclint.algorithms.classifier`; numbering is checked per list.
"""

import json
import re

import inflection

from speclint.algorithms.classifier import check_line_style
from speclint.algorithms.expressions import ParsedSteps, first_text
from speclint.algorithms.steps import (
    ListItem,
    OrderedList,
    StepReporter,
    Text,
    Tilde,
    UnorderedList,
    Variable,
)
from speclint.models import LintConfig


def check_step_attributes(step: ListItem, config: LintConfig, report: StepReporter) -> None:
    for attr in step.attrs:
        if attr.key not in config.known_step_attributes:
            report(
                "unknown-step-attribute",
                f"unknown step attribute {json.dumps(attr.key)}",
                attr.start,
            )


def check_step_label(step: ListItem, config: LintConfig, report: StepReporter) -> None:
    label = step.attribute("id")
    if label is not None and not label.value.startswith(config.step_label_prefix):
        report(
            "algorithm-step-labels",
            f'step labels should start with "{config.step_label_prefix}"',
            label.value_start,
        )


def suggest_enum_spelling(text: str) -> str:
    """
    Suggest the kebab-cased spelling of an enum atom.

    Params:
        text: Atom contents, e.g. `NormalCompletion` or `not found`

    Returns:
        Lowercase, hyphen-separated spelling, e.g. `normal-completion`
    """
    words = inflection.dasherize(inflection.underscore(text.strip()))
    return re.sub(r"[\s-]+", "-", words)


def check_enum_casing(step: ListItem, report: StepReporter) -> None:
    for fragment in step.contents:
        if not isinstance(fragment, Tilde):
            continue
        text = fragment.contents
        if any(c.isupper() or c.isspace() or c == "_" for c in text):
            report(
                "enum-casing",
                "enum values should be lowercase and kebab-cased "
                f'(expected "~{suggest_enum_spelling(text)}~")',
                fragment.start + 1,
            )


def check_for_each_element(step: ListItem, report: StepReporter) -> None:
    if len(step.contents) < 2:
        return
    first, second = step.contents[0], step.contents[1]
    if isinstance(first, Text) and first.contents == "For each " and isinstance(
        second, Variable
    ):
        report(
            "for-each-element",
            'expected "for each" to have a type name or "element" before the loop variable',
            second.start,
        )


def check_if_else_consistency(
    step: ListItem, parent: OrderedList, parsed: ParsedSteps, report: StepReporter
) -> None:
    """
    Check that an `If` and the `Else` right after it agree on having substeps.

    Params:
        step: A step of `parent`
        parent: The ordered list holding `step`
        parsed: Parsed step expressions
        report: Violation receiver
    """
    seq = parsed.get(step)
    if seq is None:
        return
    head = first_text(seq)
    if head is None or not re.match(r"^(?:If|Else if)\b", head.contents):
        return
    index = parent.items.index(step)
    if index >= len(parent.items) - 1:
        return
    next_step = parent.items[index + 1]
    next_seq = parsed.get(next_step)
    if next_seq is None:
        return
    next_head = first_text(next_seq)
    if next_head is None or not re.match(r"^(?:Else|Otherwise)\b", next_head.contents):
        return
    if step.sublist is not None and next_step.sublist is None:
        report(
            "if-else-consistency",
            '"Else" steps should be multiline whenever their corresponding "If" is',
            next_head.start,
        )
    elif step.sublist is None and next_step.sublist is not None:
        report(
            "if-else-consistency",
            '"If" steps should be multiline whenever their corresponding "Else" is',
            head.start,
        )


def check_step_numbering(tree: OrderedList, report: StepReporter) -> None:
    """
    Check that every ordered step is numbered `1.`.

    A top-level list starting from a number other than 1 is exempt, so that
    algorithms continuing an earlier one can say where they pick up.
    """
    _check_numbering(tree, 0, tree.start == 1, report)


def _check_numbering(
    steps: OrderedList | UnorderedList, depth: int, top_level_is_one: bool, report
) -> None:
    checked = isinstance(steps, OrderedList) and (depth > 0 or top_level_is_one)
    for step in steps.items:
        if checked and step.marker != "1.":
            report(
                "algorithm-step-numbering",
                f"expected step number to be \"1.\" (found {json.dumps(step.marker)})",
                step.start,
            )
        if step.sublist is not None:
            child_depth = depth + 1 if isinstance(step.sublist, OrderedList) else depth
            _check_numbering(step.sublist, child_depth, top_level_is_one, report)


def check_step(
    step: ListItem,
    parent: OrderedList,
    source: str,
    parsed: ParsedSteps,
    config: LintConfig,
    report: StepReporter,
) -> None:
    """Run every per-step style rule on one ordered step."""
    check_line_style(step, source, report)
    check_step_attributes(step, config, report)
    check_step_label(step, config, report)
    check_enum_casing(step, report)
    check_for_each_element(step, report)
    check_if_else_consistency(step, parent, parsed, report)
