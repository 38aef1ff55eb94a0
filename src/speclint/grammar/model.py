"""
Grammar notation trees.

These are the shapes a grammar compiler hands back: productions made of
right-hand sides, which are sequences of symbols. Every node carries `pos`,
the offset in its grammar source where the node (including any leading
whitespace) begins.
"""

from collections.abc import Sequence
from dataclasses import dataclass, field
from typing import Literal, Protocol, Union

from speclint.core.locations import offset_to_line_column
from speclint.core.types import LineColumn


@dataclass(frozen=True)
class Terminal:
    """A literal token, e.g. `` `(` ``."""

    text: str
    optional: bool = False
    pos: int = 0


@dataclass(frozen=True)
class Argument:
    """A grammar argument such as `+In`, `?Yield` or `~Await`."""

    operator: Literal["+", "~", "?"]
    name: str


@dataclass(frozen=True)
class Nonterminal:
    """
    A reference to another production.

    `arguments` is None when the reference has no argument list at all.
    """

    name: str
    arguments: tuple[Argument, ...] | None = None
    optional: bool = False
    pos: int = 0


@dataclass(frozen=True)
class ButNotSymbol:
    """`left but not right`; `right` is None when the compiler found nothing."""

    left: "Symbol"
    right: "Symbol | None"
    pos: int = 0


@dataclass(frozen=True)
class OneOfSymbol:
    """`one of a b c` inside a right-hand side."""

    symbols: tuple["Symbol", ...] | None
    pos: int = 0


@dataclass(frozen=True)
class NoLineTerminatorHere:
    pos: int = 0


@dataclass(frozen=True)
class LookaheadAssertion:
    text: str = ""
    pos: int = 0


@dataclass(frozen=True)
class ProseAssertion:
    text: str = ""
    pos: int = 0


@dataclass(frozen=True)
class EmptyAssertion:
    pos: int = 0


Symbol = Union[
    Terminal,
    Nonterminal,
    ButNotSymbol,
    OneOfSymbol,
    NoLineTerminatorHere,
    LookaheadAssertion,
    ProseAssertion,
    EmptyAssertion,
]


@dataclass(frozen=True)
class Constraints:
    """A parameter guard such as `[+Yield]` in front of a right-hand side."""

    text: str
    pos: int = 0


@dataclass(frozen=True)
class RightHandSide:
    symbols: tuple[Symbol, ...]
    constraints: Constraints | None = None
    pos: int = 0


@dataclass(frozen=True)
class OneOfList:
    """A production body written `one of` followed by terminals."""

    terminals: tuple[str, ...] | None
    pos: int = 0


Body = Union[RightHandSide, OneOfList]


@dataclass(frozen=True)
class Parameter:
    name: str
    pos: int = 0


@dataclass(frozen=True)
class Production:
    """
    One production as written in one source.

    Params:
        name: Left-hand side nonterminal
        parameters: Grammar parameters, e.g. `[Yield, Await]`
        bodies: Right-hand sides in source order
        pos: Offset of the production in its source
        source_index: Index of the source in the compiled set
    """

    name: str
    parameters: tuple[Parameter, ...] = ()
    bodies: tuple[Body, ...] = ()
    pos: int = 0
    source_index: int = 0


@dataclass(frozen=True)
class GrammarSource:
    """A named piece of grammar text handed to the compiler."""

    name: str
    text: str


@dataclass(frozen=True)
class GrammarDiagnostic:
    """
    A problem the compiler found.

    Unused-parameter diagnostics name the production and parameter they are
    about, so that uses of the parameter elsewhere can suppress them.
    """

    code: int | str
    message: str
    source_index: int = 0
    pos: int = 0
    production: str | None = None
    parameter: str | None = None
    is_unused_parameter: bool = False


@dataclass(frozen=True)
class CompiledGrammar:
    sources: tuple[GrammarSource, ...]
    productions: tuple[Production, ...] = ()
    diagnostics: tuple[GrammarDiagnostic, ...] = field(default=())

    def position_at(self, source_index: int, pos: int) -> LineColumn:
        """Return the 1-based (line, column) of `pos` in one source."""
        return offset_to_line_column(self.sources[source_index].text, pos)

    def productions_by_name(self) -> dict[str, list[Body]]:
        """Merge every body of every production, keyed by name."""
        merged: dict[str, list[Body]] = {}
        for production in self.productions:
            merged.setdefault(production.name, []).extend(production.bodies)
        return merged


class GrammarCompiler(Protocol):
    """Compiles grammar sources into productions and diagnostics."""

    def compile(
        self, sources: Sequence[GrammarSource], *, check: bool = True
    ) -> CompiledGrammar: ...
