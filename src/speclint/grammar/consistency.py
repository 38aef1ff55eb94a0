"""
Grammar consistency checking.

The canonical grammar is spread over every `<emu-grammar type="definition">`
in the document. Syntax-directed operations and Early Errors clauses quote
pieces of it; each quoted fragment is compiled on its own and every one of
its right-hand sides must match some canonical right-hand side of the same
production. Fragments may not carry `[no LineTerminator here]` restrictions
or parameter guards.
"""

import logging
from collections.abc import Sequence

from speclint.core.diagnostics import DiagnosticCollector, NodeLocation
from speclint.core.locations import offset_to_line_column, skip_trivia
from speclint.document.collector import GrammarFragment, GrammarWithRules
from speclint.document.nodes import DocumentLocator, Element
from speclint.grammar.matching import rhs_matches
from speclint.grammar.model import (
    Body,
    CompiledGrammar,
    GrammarCompiler,
    GrammarDiagnostic,
    GrammarSource,
    NoLineTerminatorHere,
    RightHandSide,
)

logger = logging.getLogger(__name__)


def _fragment_location(element: Element, text: str, pos: int) -> NodeLocation:
    line, column = offset_to_line_column(text, skip_trivia(text, pos))
    return NodeLocation(element, line, column)


class GrammarConsistencyChecker:
    """
    Checks quoted grammar fragments against the canonical grammar.

    Responsibilities:
      - Compile the canonical grammar and forward its diagnostics.
      - Hold back unused-parameter diagnostics until the fragments that might
        use the parameter have been seen.
      - Match every fragment right-hand side against the canonical ones.
      - Reject restrictions and guards in fragments.
    """

    def __init__(
        self,
        compiler: GrammarCompiler,
        locator: DocumentLocator,
        diagnostics: DiagnosticCollector,
    ):
        self.compiler = compiler
        self.locator = locator
        self.diagnostics = diagnostics

    def check(
        self,
        canonical: Sequence[GrammarFragment],
        associations: Sequence[GrammarWithRules],
    ) -> CompiledGrammar:
        """
        Check every association against the canonical grammar.

        Params:
            canonical: Canonical grammar fragments in document order
            associations: SDO and Early Errors grammar associations

        Returns:
            The compiled canonical grammar
        """
        sources = [GrammarSource(str(i), f.source) for i, f in enumerate(canonical)]
        grammar = self.compiler.compile(sources, check=True)
        logger.debug(
            "compiled canonical grammar: %d productions from %d sources",
            len(grammar.productions),
            len(sources),
        )

        unused: dict[str, dict[str, GrammarDiagnostic]] = {}
        for diagnostic in grammar.diagnostics:
            if diagnostic.is_unused_parameter and diagnostic.production and diagnostic.parameter:
                unused.setdefault(diagnostic.production, {})[diagnostic.parameter] = diagnostic
            else:
                self._report_canonical(canonical, grammar, diagnostic)

        productions = grammar.productions_by_name()
        for association in associations:
            self._check_association(association, productions, unused)

        for by_parameter in unused.values():
            for diagnostic in by_parameter.values():
                self._report_canonical(canonical, grammar, diagnostic)
        return grammar

    def _report_canonical(
        self,
        canonical: Sequence[GrammarFragment],
        grammar: CompiledGrammar,
        diagnostic: GrammarDiagnostic,
    ) -> None:
        line, column = grammar.position_at(diagnostic.source_index, diagnostic.pos)
        self.diagnostics.add(
            f"grammar:{diagnostic.code}",
            diagnostic.message,
            NodeLocation(canonical[diagnostic.source_index].element, line, column),
        )

    def _check_association(
        self,
        association: GrammarWithRules,
        canonical: dict[str, list[Body]],
        unused: dict[str, dict[str, GrammarDiagnostic]],
    ) -> None:
        element = association.grammar
        text = association.source
        kind = association.kind
        fragment = self.compiler.compile([GrammarSource("fragment", text)], check=False)

        for name, bodies in fragment.productions_by_name().items():
            production = next(p for p in fragment.productions if p.name == name)
            canonical_bodies = canonical.get(name)
            if canonical_bodies is None:
                self.diagnostics.add(
                    "undefined-nonterminal",
                    f"Could not find a definition for LHS in {kind}",
                    _fragment_location(element, text, production.pos),
                )
                continue

            for body in bodies:
                if not any(rhs_matches(body, c) for c in canonical_bodies):
                    self.diagnostics.add(
                        "undefined-nonterminal",
                        f"Could not find a production matching RHS in {kind}",
                        _fragment_location(element, text, body.pos),
                    )
                if isinstance(body, RightHandSide):
                    self._check_restrictions(element, text, kind, body)

            held = unused.get(name)
            if held:
                for parameter in list(held):
                    if any(
                        f"[{parameter}]" in self._inner_markup(rule)
                        for rule in association.rules
                    ):
                        del held[parameter]

    def _check_restrictions(
        self, element: Element, text: str, kind: str, body: RightHandSide
    ) -> None:
        for symbol in body.symbols:
            if isinstance(symbol, NoLineTerminatorHere):
                self.diagnostics.add(
                    "NLTH-in-SDO",
                    f'Productions referenced in {kind}s should not include "no '
                    'LineTerminator here" restrictions',
                    _fragment_location(element, text, symbol.pos),
                )
        if body.constraints is not None:
            self.diagnostics.add(
                "guard-in-SDO",
                f"productions referenced in {kind}s should not be gated on grammar "
                "parameters",
                _fragment_location(element, text, body.constraints.pos),
            )

    def _inner_markup(self, element: Element) -> str:
        location = self.locator.locate(element)
        if location is not None and location.inner_text is not None:
            return location.inner_text
        return element.text_content()


def check_grammar(
    locator: DocumentLocator,
    compiler: GrammarCompiler,
    diagnostics: DiagnosticCollector,
    canonical: Sequence[GrammarFragment],
    associations: Sequence[GrammarWithRules],
) -> CompiledGrammar:
    """Run the grammar consistency checker once."""
    return GrammarConsistencyChecker(compiler, locator, diagnostics).check(
        canonical, associations
    )
