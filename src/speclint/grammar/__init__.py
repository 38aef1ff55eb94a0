"""
Grammar model, matching and consistency checking.

This package provides the trees a grammar compiler produces, the asymmetric
right-hand-side matcher and the checker comparing quoted fragments with the
canonical grammar.
"""

from speclint.grammar.consistency import GrammarConsistencyChecker, check_grammar
from speclint.grammar.matching import (
    can_be_empty,
    can_skip_symbol,
    rhs_matches,
    symbol_matches,
    symbol_span_matches,
)
from speclint.grammar.model import (
    Argument,
    Body,
    ButNotSymbol,
    CompiledGrammar,
    Constraints,
    EmptyAssertion,
    GrammarCompiler,
    GrammarDiagnostic,
    GrammarSource,
    LookaheadAssertion,
    NoLineTerminatorHere,
    Nonterminal,
    OneOfList,
    OneOfSymbol,
    Parameter,
    Production,
    ProseAssertion,
    RightHandSide,
    Symbol,
    Terminal,
)

__all__ = [
    "GrammarConsistencyChecker",
    "check_grammar",
    "can_be_empty",
    "can_skip_symbol",
    "rhs_matches",
    "symbol_matches",
    "symbol_span_matches",
    "Argument",
    "Body",
    "ButNotSymbol",
    "CompiledGrammar",
    "Constraints",
    "EmptyAssertion",
    "GrammarCompiler",
    "GrammarDiagnostic",
    "GrammarSource",
    "LookaheadAssertion",
    "NoLineTerminatorHere",
    "Nonterminal",
    "OneOfList",
    "OneOfSymbol",
    "Parameter",
    "Production",
    "ProseAssertion",
    "RightHandSide",
    "Symbol",
    "Terminal",
]
