"""
Tests for right-hand side matching.

This module tests the asymmetric matching of fragment right-hand sides
against canonical ones: optional symbols and assertions on the canonical
side may be skipped, everything else must line up.
"""

import pytest

from speclint.exceptions import MalformedGrammarError
from speclint.grammar.matching import can_be_empty, rhs_matches, symbol_matches
from speclint.grammar.model import (
    Argument,
    ButNotSymbol,
    EmptyAssertion,
    LookaheadAssertion,
    NoLineTerminatorHere,
    Nonterminal,
    OneOfList,
    OneOfSymbol,
    RightHandSide,
    Terminal,
)


def rhs(*symbols):
    return RightHandSide(tuple(symbols))


A = Nonterminal("A")
B = Nonterminal("B")
C = Nonterminal("C")
D = Nonterminal("D")
OPTIONAL_B = Nonterminal("B", optional=True)


class TestOptionality:
    """Tests for optional canonical symbols."""

    def test_reflexive(self):
        """Test a right-hand side matches itself."""
        body = rhs(Terminal("return"), A, Terminal(";"))
        assert rhs_matches(body, body)

    def test_optional_symbol_present(self):
        """Test `A B C` matches canonical `A B? C`."""
        assert rhs_matches(rhs(A, B, C), rhs(A, OPTIONAL_B, C))

    def test_optional_symbol_absent(self):
        """Test `A C` matches canonical `A B? C`."""
        assert rhs_matches(rhs(A, C), rhs(A, OPTIONAL_B, C))

    def test_unknown_symbol(self):
        """Test `A D C` does not match canonical `A B? C`."""
        assert not rhs_matches(rhs(A, D, C), rhs(A, OPTIONAL_B, C))

    def test_required_symbol_absent(self):
        """Test required canonical symbols cannot be skipped."""
        assert not rhs_matches(rhs(A, C), rhs(A, B, C))

    def test_extra_fragment_symbol(self):
        """Test the fragment cannot add symbols."""
        assert not rhs_matches(rhs(A, B, C), rhs(A, C))

    def test_optional_fragment_symbol_is_not_skippable(self):
        """Test matching is asymmetric."""
        assert not rhs_matches(rhs(A, C), rhs(A, B, C))
        assert not rhs_matches(rhs(A, OPTIONAL_B, C), rhs(A, C))

    def test_skipped_optional_with_same_name(self):
        """Test `A B` matches canonical `A? A B` by skipping the optional."""
        assert rhs_matches(rhs(A, B), rhs(Nonterminal("A", optional=True), A, B))


class TestAssertions:
    """Tests for lookahead and line terminator assertions."""

    def test_canonical_restriction_may_be_left_out(self):
        """Test canonical `[no LineTerminator here]` is optional in fragments."""
        canonical = rhs(Terminal("return"), NoLineTerminatorHere(), A, Terminal(";"))
        assert rhs_matches(rhs(Terminal("return"), A, Terminal(";")), canonical)

    def test_restriction_matches_restriction(self):
        """Test a fragment restriction matches a canonical one."""
        body = rhs(Terminal("return"), NoLineTerminatorHere(), A)
        assert rhs_matches(body, body)

    def test_lookahead_may_be_left_out(self):
        """Test canonical lookaheads are optional in fragments."""
        canonical = rhs(LookaheadAssertion("∉ { `{` }"), A, Terminal(";"))
        assert rhs_matches(rhs(A, Terminal(";")), canonical)


class TestSymbols:
    """Tests for matching single symbols."""

    def test_terminals_compare_text(self):
        """Test terminals match on their text."""
        assert symbol_matches(Terminal("a"), Terminal("a"))
        assert not symbol_matches(Terminal("a"), Terminal("b"))

    def test_kinds_must_agree(self):
        """Test a terminal never matches a nonterminal."""
        assert not symbol_matches(Terminal("A"), A)

    def test_fragment_without_arguments(self):
        """Test a fragment may leave out the argument list."""
        canonical = Nonterminal("A", (Argument("?", "Yield"),))
        assert symbol_matches(A, canonical)

    def test_arguments_must_agree(self):
        """Test written arguments must match the canonical ones exactly."""
        yield_argument = Nonterminal("A", (Argument("?", "Yield"),))
        plus_yield = Nonterminal("A", (Argument("+", "Yield"),))
        assert symbol_matches(yield_argument, yield_argument)
        assert not symbol_matches(yield_argument, plus_yield)
        assert not symbol_matches(yield_argument, A)

    def test_but_not(self):
        """Test "but not" symbols match part by part."""
        left = ButNotSymbol(A, B)
        assert symbol_matches(left, ButNotSymbol(A, B))
        assert not symbol_matches(left, ButNotSymbol(A, C))

    def test_empty_but_not_is_malformed(self):
        """Test a "but not" without a right side is rejected."""
        with pytest.raises(MalformedGrammarError):
            symbol_matches(ButNotSymbol(A, None), ButNotSymbol(A, B))

    def test_one_of_symbol(self):
        """Test "one of" symbols compare every alternative."""
        assert symbol_matches(OneOfSymbol((A, B)), OneOfSymbol((A, B)))
        assert not symbol_matches(OneOfSymbol((A, B)), OneOfSymbol((A,)))
        with pytest.raises(MalformedGrammarError):
            symbol_matches(OneOfSymbol(None), OneOfSymbol((A,)))


class TestEmpty:
    """Tests for `[empty]` right-hand sides."""

    def test_empty_matches_empty(self):
        """Test `[empty]` matches `[empty]`."""
        assert rhs_matches(rhs(EmptyAssertion()), rhs(EmptyAssertion()))

    def test_empty_matches_all_optional(self):
        """Test `[empty]` matches a canonical side that can be empty."""
        assert rhs_matches(rhs(EmptyAssertion()), rhs(OPTIONAL_B))
        assert can_be_empty((OPTIONAL_B, NoLineTerminatorHere()))

    def test_empty_does_not_match_required(self):
        """Test `[empty]` does not match required symbols."""
        assert not rhs_matches(rhs(EmptyAssertion()), rhs(A))

    def test_empty_with_content_is_malformed(self):
        """Test `[empty]` cannot be followed by symbols."""
        with pytest.raises(MalformedGrammarError, match="empty assertions"):
            rhs_matches(rhs(EmptyAssertion(), A), rhs(A))

    def test_rhs_without_symbols_is_malformed(self):
        """Test a right-hand side must have content."""
        with pytest.raises(MalformedGrammarError, match="RHS must have content"):
            rhs_matches(rhs(), rhs(A))


class TestOneOfLists:
    """Tests for `one of` production bodies."""

    def test_same_terminals(self):
        """Test one-of lists match on identical terminals."""
        assert rhs_matches(OneOfList(("a", "b")), OneOfList(("a", "b")))

    def test_different_terminals(self):
        """Test one-of lists with other terminals do not match."""
        assert not rhs_matches(OneOfList(("a", "b")), OneOfList(("a", "c")))
        assert not rhs_matches(OneOfList(("a",)), OneOfList(("a", "b")))

    def test_list_against_rhs(self):
        """Test a one-of list never matches a right-hand side."""
        assert not rhs_matches(OneOfList(("a",)), rhs(Terminal("a")))
        assert not rhs_matches(rhs(Terminal("a")), OneOfList(("a",)))

    def test_missing_terminals_is_malformed(self):
        """Test a one-of list must have terminals."""
        with pytest.raises(MalformedGrammarError):
            rhs_matches(OneOfList(None), OneOfList(("a",)))
