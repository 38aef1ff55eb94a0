"""
Structural matching of right-hand sides.

Matching is asymmetric: `rhs_matches(fragment, canonical)` lets the canonical
side carry extra assertions and optional symbols that the fragment leaves
out, but not the other way round. So a canonical `A B? C` matches both
`A B C` and `A C`, while `A D C` matches neither.
"""

from collections.abc import Sequence
from typing import assert_never

from speclint.exceptions import MalformedGrammarError
from speclint.grammar.model import (
    Argument,
    Body,
    ButNotSymbol,
    EmptyAssertion,
    LookaheadAssertion,
    NoLineTerminatorHere,
    Nonterminal,
    OneOfList,
    OneOfSymbol,
    ProseAssertion,
    RightHandSide,
    Symbol,
    Terminal,
)


def rhs_matches(a: Body, b: Body) -> bool:
    """
    Check whether fragment body `a` is a reading of canonical body `b`.

    Params:
        a: Body from a one-off grammar fragment
        b: Body from the canonical grammar

    Returns:
        True if `a` matches `b`

    Raises:
        MalformedGrammarError: If either body is structurally impossible
    """
    if isinstance(a, RightHandSide):
        if not isinstance(b, RightHandSide):
            return False
        if not a.symbols or not b.symbols:
            raise MalformedGrammarError("right-hand side", "RHS must have content")
        if isinstance(a.symbols[0], EmptyAssertion):
            if len(a.symbols) > 1:
                raise MalformedGrammarError(
                    "right-hand side", "empty assertions should not have other content"
                )
            return isinstance(b.symbols[0], EmptyAssertion) or can_be_empty(b.symbols)
        return symbol_span_matches(a.symbols, b.symbols)
    elif isinstance(a, OneOfList):
        if not isinstance(b, OneOfList):
            return False
        return one_of_list_matches(a, b)
    else:
        assert_never(a)


def symbol_span_matches(a: Sequence[Symbol], b: Sequence[Symbol]) -> bool:
    if not a:
        return can_be_empty(b)
    # on a failed head match, fall back to skipping an optional canonical symbol
    for j, symbol in enumerate(b):
        if symbol_matches(a[0], symbol) and symbol_span_matches(a[1:], b[j + 1 :]):
            return True
        if not can_skip_symbol(symbol):
            return False
    return False


def can_be_empty(b: Sequence[Symbol]) -> bool:
    return all(can_skip_symbol(symbol) for symbol in b)


def can_skip_symbol(symbol: Symbol) -> bool:
    """Assertions and optional symbols may be absent from a fragment."""
    if isinstance(symbol, (NoLineTerminatorHere, LookaheadAssertion, ProseAssertion)):
        return True
    if isinstance(symbol, (Terminal, Nonterminal)):
        return symbol.optional
    return False


def symbol_matches(a: Symbol, b: Symbol) -> bool:
    if type(a) is not type(b):
        return False
    if isinstance(a, Terminal):
        return a.text == b.text
    elif isinstance(a, Nonterminal):
        if a.arguments is not None:
            if b.arguments is None:
                return False
            if not argument_list_matches(a.arguments, b.arguments):
                return False
        return a.name == b.name
    elif isinstance(a, ButNotSymbol):
        if a.right is None or b.right is None:
            raise MalformedGrammarError('"but not" symbol', "cannot be empty")
        return symbol_matches(a.left, b.left) and symbol_matches(a.right, b.right)
    elif isinstance(a, OneOfSymbol):
        if a.symbols is None or b.symbols is None:
            raise MalformedGrammarError('"one of" symbol', "cannot be empty")
        return len(a.symbols) == len(b.symbols) and all(
            symbol_matches(x, y) for x, y in zip(a.symbols, b.symbols)
        )
    elif isinstance(
        a, (EmptyAssertion, LookaheadAssertion, ProseAssertion, NoLineTerminatorHere)
    ):
        return True
    else:
        assert_never(a)


def argument_list_matches(a: Sequence[Argument], b: Sequence[Argument]) -> bool:
    return len(a) == len(b) and all(
        x.operator == y.operator and x.name == y.name for x, y in zip(a, b)
    )


def one_of_list_matches(a: OneOfList, b: OneOfList) -> bool:
    if a.terminals is None or b.terminals is None:
        raise MalformedGrammarError("one-of list", "must have terminals")
    return len(a.terminals) == len(b.terminals) and all(
        x == y for x, y in zip(a.terminals, b.terminals)
    )
