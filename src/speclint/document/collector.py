"""
Document collector.

A single walk over the document tree that sorts the nodes later checkers
care about into `NodeGroups`: clause headers, the canonical grammar, grammar
fragments associated with syntax-directed operations or early errors, and
algorithm blocks. Each record gets a `node_id` in document order, which
later passes use to key their side tables.
"""

import logging
from dataclasses import dataclass, field

from speclint.core.diagnostics import DiagnosticCollector, NodeLocation
from speclint.core.types import NodeId, RuleKind
from speclint.document.nodes import DocumentLocator, Element
from speclint.exceptions import EarlyErrorsShapeError
from speclint.models import LintConfig

logger = logging.getLogger(__name__)

CLAUSE_TAGS = frozenset({"emu-clause", "emu-annex", "emu-intro"})

SDO_KIND: RuleKind = "syntax-directed operation"
EARLY_ERROR_KIND: RuleKind = "early error"


@dataclass(frozen=True)
class HeaderRecord:
    """An `h1` heading a clause, with `<del>` content removed."""

    node_id: NodeId
    element: Element
    contents: str


@dataclass(frozen=True)
class GrammarFragment:
    """A canonical grammar element and its raw source."""

    node_id: NodeId
    element: Element
    source: str


@dataclass(frozen=True)
class GrammarWithRules:
    """
    A grammar fragment paired with the rules that use it.

    For a syntax-directed operation `rules` holds the one `emu-alg`; for an
    early error it holds one or more `ul` lists.
    """

    node_id: NodeId
    grammar: Element
    source: str
    rules: tuple[Element, ...]
    kind: RuleKind


@dataclass(frozen=True)
class AlgorithmBlock:
    node_id: NodeId
    element: Element
    in_excluded_annex: bool


@dataclass(frozen=True)
class NodeGroups:
    """Everything the collector found. `failed` stops downstream analysis."""

    headers: tuple[HeaderRecord, ...] = ()
    canonical_grammar: tuple[GrammarFragment, ...] = ()
    sdos: tuple[GrammarWithRules, ...] = ()
    early_errors: tuple[GrammarWithRules, ...] = ()
    algorithms: tuple[AlgorithmBlock, ...] = ()
    failed: bool = False

    @property
    def associations(self) -> tuple[GrammarWithRules, ...]:
        return self.sdos + self.early_errors


@dataclass(frozen=True)
class WalkContext:
    in_excluded_annex: bool = False


@dataclass
class _Accumulator:
    headers: list[HeaderRecord] = field(default_factory=list)
    canonical_grammar: list[GrammarFragment] = field(default_factory=list)
    sdos: list[GrammarWithRules] = field(default_factory=list)
    early_errors: list[GrammarWithRules] = field(default_factory=list)
    algorithms: list[AlgorithmBlock] = field(default_factory=list)
    failed: bool = False
    next_id: int = 0

    def new_id(self) -> NodeId:
        node_id = self.next_id
        self.next_id += 1
        return node_id


class DocumentCollector:
    """
    Collects node groups from a document tree.

    Responsibilities:
      - Track whether the walk is inside the excluded annex.
      - Validate the grammar/list alternation of Early Errors clauses.
      - Slice grammar sources out of the document text.
      - Report missing grammar close tags and malformed Early Errors clauses.
    """

    def __init__(
        self,
        locator: DocumentLocator,
        diagnostics: DiagnosticCollector,
        config: LintConfig | None = None,
    ):
        self.locator = locator
        self.diagnostics = diagnostics
        self.config = config or LintConfig()

    def collect(self, root: Element) -> NodeGroups:
        """
        Walk the tree under `root` once.

        Params:
            root: Document root element

        Returns:
            Frozen node groups; `failed` is set when the document's structure
            prevents grammar, algorithm and header analysis
        """
        acc = _Accumulator()
        try:
            self._visit(root, WalkContext(), acc)
        except EarlyErrorsShapeError as e:
            logger.warning("early errors collection aborted: %s", e)
            self.diagnostics.add("early-error-shape", str(e), NodeLocation(e.element))
            return NodeGroups(failed=True)
        return NodeGroups(
            headers=tuple(acc.headers),
            canonical_grammar=tuple(acc.canonical_grammar),
            sdos=tuple(acc.sdos),
            early_errors=tuple(acc.early_errors),
            algorithms=tuple(acc.algorithms),
            failed=acc.failed,
        )

    def _visit(self, node: Element, context: WalkContext, acc: _Accumulator) -> None:
        if (
            node.tag == "emu-annex"
            and node.get_attribute("id") == self.config.excluded_annex_id
        ):
            context = WalkContext(in_excluded_annex=True)

        if node.tag in CLAUSE_TAGS:
            self._visit_clause(node, context, acc)
        elif node.tag == "emu-grammar" and not context.in_excluded_annex:
            self._visit_grammar(node, acc)

        if node.tag == "emu-alg" and node.get_attribute("type") != "example":
            acc.algorithms.append(
                AlgorithmBlock(acc.new_id(), node, context.in_excluded_annex)
            )

        for child in node.element_children():
            self._visit(child, context, acc)

    def _visit_clause(
        self, node: Element, context: WalkContext, acc: _Accumulator
    ) -> None:
        first = node.first_element_child
        if first is None or first.tag != "h1":
            return
        contents = first.text_content(skip=("del",))
        acc.headers.append(HeaderRecord(acc.new_id(), first, contents))
        if (
            not context.in_excluded_annex
            and contents.strip() == self.config.early_errors_header
        ):
            self._collect_early_errors(node, acc)

    def _collect_early_errors(self, clause: Element, acc: _Accumulator) -> None:
        grammar: Element | None = None
        lists: list[Element] = []
        pairs: list[tuple[Element, list[Element]]] = []
        for child in clause.element_children():
            if child.tag == "emu-grammar":
                if grammar is not None:
                    if not lists:
                        raise EarlyErrorsShapeError(
                            child,
                            "multiple consecutive <emu-grammar>s without intervening "
                            "<ul> of errors",
                        )
                    pairs.append((grammar, lists))
                grammar = child
                lists = []
            elif child.tag == "ul":
                if grammar is None:
                    raise EarlyErrorsShapeError(
                        child, "<ul> without preceding <emu-grammar>"
                    )
                lists.append(child)
        if grammar is None:
            raise EarlyErrorsShapeError(clause, "no <emu-grammar>")
        if not lists:
            raise EarlyErrorsShapeError(grammar, "no <ul> of errors")
        pairs.append((grammar, lists))

        for grammar, lists in pairs:
            source = self._grammar_source(grammar, acc)
            if source is not None:
                acc.early_errors.append(
                    GrammarWithRules(
                        acc.new_id(), grammar, source, tuple(lists), EARLY_ERROR_KIND
                    )
                )

    def _visit_grammar(self, node: Element, acc: _Accumulator) -> None:
        grammar_type = node.get_attribute("type")
        if grammar_type == "definition":
            source = self._grammar_source(node, acc)
            if source is not None:
                acc.canonical_grammar.append(
                    GrammarFragment(acc.new_id(), node, source)
                )
        elif grammar_type != "example":
            following = node.next_element_sibling
            if following is not None and following.tag == "emu-alg":
                source = self._grammar_source(node, acc)
                if source is not None:
                    acc.sdos.append(
                        GrammarWithRules(
                            acc.new_id(), node, source, (following,), SDO_KIND
                        )
                    )

    def _grammar_source(self, node: Element, acc: _Accumulator) -> str | None:
        location = self.locator.locate(node)
        inner = location.inner_text if location is not None else None
        if inner is None:
            self.diagnostics.add(
                "missing-close-tag",
                "could not find closing tag for emu-grammar",
                NodeLocation(node),
            )
            acc.failed = True
        return inner
