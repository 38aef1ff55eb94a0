"""
Tests for per-step style rules.

This module tests step attributes and labels, enum casing, "For each"
element naming, If/Else consistency and step numbering.
"""

import textwrap

import pytest

from speclint.algorithms.expressions import FragmentSeqParser
from speclint.algorithms.steps import OrderedList, iter_steps
from speclint.algorithms.style import (
    check_enum_casing,
    check_for_each_element,
    check_if_else_consistency,
    check_step,
    check_step_attributes,
    check_step_label,
    check_step_numbering,
    suggest_enum_spelling,
)
from speclint.models import LintConfig


@pytest.fixture
def parse_outline(algorithm_parser):
    def parse(outline: str):
        source = textwrap.dedent(outline).lstrip("\n")
        return source, algorithm_parser.parse_algorithm(source)

    return parse


class TestStepAttributes:
    """Tests for step attribute checks."""

    def test_unknown_attribute(self, parse_outline, reports):
        """Test unknown keys are reported at the key."""
        source, tree = parse_outline('1. [foo="bar"] Return 1.\n')
        check_step_attributes(tree.items[0], LintConfig(), reports)
        assert reports == [("unknown-step-attribute", 'unknown step attribute "foo"', 4)]

    def test_known_attributes(self, parse_outline, reports):
        """Test the configured attributes pass."""
        source, tree = parse_outline(
            '1. [id="step-a", fence-effects="user-code", declared="x"] Return 1.\n'
        )
        check_step_attributes(tree.items[0], LintConfig(), reports)
        assert reports == []

    def test_configured_attributes(self, parse_outline, reports):
        """Test extra attributes can be allowed."""
        source, tree = parse_outline('1. [foo="bar"] Return 1.\n')
        config = LintConfig(known_step_attributes={"foo"})
        check_step_attributes(tree.items[0], config, reports)
        assert reports == []


class TestStepLabels:
    """Tests for step label checks."""

    def test_label_without_prefix(self, parse_outline, reports):
        """Test labels must start with the prefix; reported at the value."""
        source, tree = parse_outline('1. [id="foo"] Return 1.\n')
        check_step_label(tree.items[0], LintConfig(), reports)
        [(rule, message, offset)] = reports
        assert rule == "algorithm-step-labels"
        assert message == 'step labels should start with "step-"'
        assert source[offset:].startswith('foo"')

    def test_label_with_prefix(self, parse_outline, reports):
        """Test prefixed labels pass."""
        source, tree = parse_outline('1. [id="step-foo"] Return 1.\n')
        check_step_label(tree.items[0], LintConfig(), reports)
        assert reports == []

    def test_custom_prefix(self, parse_outline, reports):
        """Test the prefix comes from the config."""
        source, tree = parse_outline('1. [id="step-foo"] Return 1.\n')
        check_step_label(tree.items[0], LintConfig(step_label_prefix="label-"), reports)
        assert reports.messages == ['step labels should start with "label-"']


class TestEnumCasing:
    """Tests for enum casing."""

    @pytest.mark.parametrize(
        "atom,expected",
        [
            ("NormalCompletion", "normal-completion"),
            ("not found", "not-found"),
            ("SYNC", "sync"),
            ("start_index", "start-index"),
            ("Done", "done"),
        ],
    )
    def test_suggestions(self, atom, expected):
        """Test suggested spellings are lowercase kebab case."""
        assert suggest_enum_spelling(atom) == expected

    def test_mixed_case_atom(self, parse_outline, reports):
        """Test a capitalized atom is reported inside the tildes."""
        source, tree = parse_outline("1. Return ~Done~.\n")
        check_enum_casing(tree.items[0], reports)
        [(rule, message, offset)] = reports
        assert rule == "enum-casing"
        assert message == 'enum values should be lowercase and kebab-cased (expected "~done~")'
        assert source[offset:].startswith("Done~")

    def test_spaced_atom(self, parse_outline, reports):
        """Test spaces in an atom are reported."""
        source, tree = parse_outline("1. Return ~not found~.\n")
        check_enum_casing(tree.items[0], reports)
        assert reports.messages == [
            'enum values should be lowercase and kebab-cased (expected "~not-found~")'
        ]

    def test_kebab_atoms_pass(self, parse_outline, reports):
        """Test lowercase kebab atoms are fine."""
        source, tree = parse_outline("1. Return ~done~ or ~not-found~.\n")
        check_enum_casing(tree.items[0], reports)
        assert reports == []


class TestForEachElement:
    """Tests for the "For each" element rule."""

    def test_loop_variable_right_after_for_each(self, parse_outline, reports):
        """Test a bare loop variable is reported."""
        source, tree = parse_outline("1. For each _x_ of _list_, do\n  1. Return _x_.\n")
        check_for_each_element(tree.items[0], reports)
        [(rule, _, offset)] = reports
        assert rule == "for-each-element"
        assert source[offset:].startswith("_x_")

    def test_named_loop_variable(self, parse_outline, reports):
        """Test a type name or "element" before the variable passes."""
        source, tree = parse_outline(
            "1. For each element _x_ of _list_, do\n  1. Return _x_.\n"
        )
        check_for_each_element(tree.items[0], reports)
        assert reports == []


class TestIfElseConsistency:
    """Tests for If/Else substep consistency."""

    def check(self, parse_outline, reports, outline: str):
        source, tree = parse_outline(outline)
        parser = FragmentSeqParser()
        parsed = {step: parser.parse_step(step, source) for step, _ in iter_steps(tree)}
        for step, parent in iter_steps(tree):
            if isinstance(parent, OrderedList):
                check_if_else_consistency(step, parent, parsed, reports)
        return source

    def test_multiline_if_single_line_else(self, parse_outline, reports):
        """Test a single-line Else after a multiline If is reported at the Else."""
        source = self.check(
            parse_outline,
            reports,
            "1. If _a_, then\n  1. Return 1.\n1. Else, return 2.\n",
        )
        [(rule, message, offset)] = reports
        assert rule == "if-else-consistency"
        assert message == '"Else" steps should be multiline whenever their corresponding "If" is'
        assert source[offset:].startswith("Else")

    def test_single_line_if_multiline_else(self, parse_outline, reports):
        """Test a multiline Else after a single-line If is reported at the If."""
        source = self.check(
            parse_outline,
            reports,
            "1. If _a_, return 1.\n1. Else,\n  1. Return 2.\n",
        )
        [(_, message, offset)] = reports
        assert message == '"If" steps should be multiline whenever their corresponding "Else" is'
        assert source[offset:].startswith("If")

    def test_otherwise_counts_as_else(self, parse_outline, reports):
        """Test "Otherwise" steps are held to the same rule."""
        self.check(
            parse_outline,
            reports,
            "1. If _a_, then\n  1. Return 1.\n1. Otherwise, return 2.\n",
        )
        assert reports.rules == ["if-else-consistency"]

    def test_consistent_steps(self, parse_outline, reports):
        """Test matching shapes pass."""
        self.check(
            parse_outline,
            reports,
            "1. If _a_, return 1.\n1. Else, return 2.\n"
            "1. If _b_, then\n  1. Return 3.\n1. Else,\n  1. Return 4.\n",
        )
        assert reports == []


class TestStepNumbering:
    """Tests for step numbering."""

    def test_steps_numbered_one(self, parse_outline, reports):
        """Test every step written `1.` passes."""
        source, tree = parse_outline("1. Return 1.\n1. Return 2.\n")
        check_step_numbering(tree, reports)
        assert reports == []

    def test_hardcoded_number(self, parse_outline, reports):
        """Test other numbers are reported at the marker."""
        source, tree = parse_outline("1. Return 1.\n2. Return 2.\n")
        check_step_numbering(tree, reports)
        [(rule, message, offset)] = reports
        assert rule == "algorithm-step-numbering"
        assert message == 'expected step number to be "1." (found "2.")'
        assert source[offset:].startswith("2. Return 2.")

    def test_continuing_algorithm(self, parse_outline, reports):
        """Test a top-level list may continue from another number."""
        source, tree = parse_outline("3. Return 1.\n4. Return 2.\n")
        check_step_numbering(tree, reports)
        assert reports == []

    def test_nested_lists_are_always_checked(self, parse_outline, reports):
        """Test the exemption covers only the top-level list."""
        source, tree = parse_outline("3. Do this:\n  2. Return 1.\n")
        check_step_numbering(tree, reports)
        assert reports.messages == ['expected step number to be "1." (found "2.")']


class TestCheckStep:
    """Tests for running every rule on one step."""

    def test_rules_are_independent(self, parse_outline, reports):
        """Test one step can break several rules at once."""
        source, tree = parse_outline('1. [id="x"] Return ~Done~\n')
        step = tree.items[0]
        parsed = {step: FragmentSeqParser().parse_step(step, source)}
        check_step(step, tree, source, parsed, LintConfig(), reports)
        assert sorted(reports.rules) == [
            "algorithm-line-style",
            "algorithm-step-labels",
            "enum-casing",
        ]
