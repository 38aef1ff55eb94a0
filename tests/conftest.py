"""
Shared test fixtures and utilities for the speclint test suite.

The embedded-language parsers are collaborators of speclint, so the tests
supply small stand-ins for them:

- `OutlineAlgorithmParser` reads `1.` / `*` step outlines, nesting by
  indentation, with an optional leading `[key="value"]` attribute block.
- `OutlineGrammarCompiler` reads one production per header line
  (`Name[Params] :`), with right-hand sides on the same or following lines.
"""

import re
import textwrap
from collections.abc import Sequence
from typing import NamedTuple

import pytest

from speclint import lint, parse_document
from speclint.algorithms.expressions import FragmentSeqParser
from speclint.algorithms.steps import (
    Comment,
    ListItem,
    OpaqueTag,
    OrderedList,
    ParseFailure,
    Pipe,
    Star,
    StepAttribute,
    Tag,
    Text,
    Tilde,
    UnorderedList,
    Variable,
    iter_steps,
)
from speclint.core.diagnostics import DiagnosticCollector
from speclint.document.nodes import Element
from speclint.grammar.model import (
    Argument,
    CompiledGrammar,
    Constraints,
    EmptyAssertion,
    GrammarDiagnostic,
    GrammarSource,
    LookaheadAssertion,
    NoLineTerminatorHere,
    Nonterminal,
    OneOfList,
    Parameter,
    Production,
    RightHandSide,
    Terminal,
)

STEP_LINE = re.compile(r"^(?P<indent> *)(?P<marker>\d+\.|\*) (?P<body>.*)$")
ATTRIBUTE_BLOCK = re.compile(r"^\[(?P<attrs>[^\]]*)\] ")
ATTRIBUTE = re.compile(r'(?P<key>[\w-]+)="(?P<value>[^"]*)"')
FRAGMENT = re.compile(
    r"(?P<comment><!--.*?-->)"
    r"|(?P<opaque><pre\b.*?</pre>)"
    r"|(?P<tag></?[a-zA-Z][\w-]*(?:\s[^>]*)?>)"
    r"|(?P<variable>(?<!\w)_(?P<name>[A-Za-z][A-Za-z0-9]*)_(?!\w))"
    r"|(?P<tilde>~(?P<atom>[^~\n]+)~)"
    r"|(?P<pipe>\|(?P<nonterminal>[A-Za-z][A-Za-z0-9]*)\|)"
    r"|(?P<star>\*(?P<literal>[^*\n]+)\*)"
)


def tokenize_step(body: str, base: int) -> tuple:
    """Split one step's text into fragments with offsets relative to `base`."""
    fragments = []
    cursor = 0
    for match in FRAGMENT.finditer(body):
        if match.start() > cursor:
            fragments.append(Text(body[cursor : match.start()], base + cursor, base + match.start()))
        start, end = base + match.start(), base + match.end()
        if match.group("comment"):
            fragments.append(Comment(match.group(), start, end))
        elif match.group("opaque"):
            fragments.append(OpaqueTag(match.group(), start, end))
        elif match.group("tag"):
            fragments.append(Tag(match.group(), start, end))
        elif match.group("variable"):
            fragments.append(Variable(match.group("name"), start, end))
        elif match.group("tilde"):
            fragments.append(Tilde(match.group("atom"), start, end))
        elif match.group("pipe"):
            fragments.append(Pipe(match.group("nonterminal"), start, end))
        else:
            fragments.append(Star(match.group("literal"), start, end))
        cursor = match.end()
    if cursor < len(body):
        fragments.append(Text(body[cursor:], base + cursor, base + len(body)))
    return tuple(fragments)


class OutlineAlgorithmParser:
    """Step outline parser standing in for the pseudocode parser."""

    def __init__(self):
        self.calls = 0

    def parse_algorithm(self, source: str) -> OrderedList | ParseFailure:
        self.calls += 1
        stack: list[tuple[int, OrderedList | UnorderedList]] = []
        root = None
        offset = 0
        for line in source.splitlines(keepends=True):
            line_start = offset
            offset += len(line)
            content = line.rstrip("\n")
            if not content.strip():
                continue
            match = STEP_LINE.match(content)
            if match is None:
                return ParseFailure("expected a step", line_start)

            indent = len(match.group("indent"))
            marker = match.group("marker")
            ordered = marker != "*"
            if not stack or indent > stack[-1][0]:
                steps = OrderedList(start=int(marker[:-1])) if ordered else UnorderedList()
                if stack:
                    stack[-1][1].items[-1].sublist = steps
                else:
                    root = steps
                stack.append((indent, steps))
            else:
                while stack and indent < stack[-1][0]:
                    stack.pop()
                if not stack or indent != stack[-1][0]:
                    return ParseFailure("inconsistent indentation", line_start)

            body = match.group("body")
            body_start = line_start + match.start("body")
            attrs = ()
            block = ATTRIBUTE_BLOCK.match(body)
            if block is not None:
                attrs = tuple(
                    StepAttribute(
                        a.group("key"),
                        a.group("value"),
                        body_start + 1 + a.start(),
                        body_start + 1 + a.end(),
                    )
                    for a in ATTRIBUTE.finditer(block.group("attrs"))
                )
                body_start += block.end()
                body = body[block.end() :]

            stack[-1][1].items.append(
                ListItem(
                    contents=tokenize_step(body, body_start),
                    attrs=attrs,
                    marker=marker,
                    start=line_start + indent,
                    end=body_start + len(body),
                )
            )

        if not isinstance(root, OrderedList):
            return ParseFailure("expected an ordered list", 0)
        return root


PRODUCTION_HEADER = re.compile(
    r"^(?P<indent>\s*)(?P<name>[A-Z][A-Za-z0-9]*)(?:\[(?P<params>[^\]]*)\])? :+(?P<rest>.*)$"
)
GRAMMAR_TOKEN = re.compile(
    r"`(?P<terminal>[^`]+)`(?P<terminal_optional>\?)?"
    r"|\[no LineTerminator here\]"
    r"|\[lookahead (?P<lookahead>[^\]]*)\]"
    r"|\[empty\]"
    r"|\[(?P<guard>[+~][A-Za-z]+)\]"
    r"|(?P<nonterminal>[A-Z][A-Za-z0-9]*)(?:\[(?P<args>[^\]]*)\])?(?P<nonterminal_optional>\?)?"
)


def _grammar_symbols(text: str, base: int):
    symbols = []
    constraints = None
    for match in GRAMMAR_TOKEN.finditer(text):
        pos = base + match.start()
        token = match.group()
        if match.group("terminal") is not None:
            symbols.append(
                Terminal(match.group("terminal"), bool(match.group("terminal_optional")), pos)
            )
        elif token.startswith("[no LineTerminator"):
            symbols.append(NoLineTerminatorHere(pos))
        elif match.group("lookahead") is not None:
            symbols.append(LookaheadAssertion(match.group("lookahead"), pos))
        elif token == "[empty]":
            symbols.append(EmptyAssertion(pos))
        elif match.group("guard") is not None:
            constraints = Constraints(match.group("guard"), pos)
        else:
            arguments = None
            if match.group("args") is not None:
                arguments = tuple(
                    Argument(a.strip()[0], a.strip()[1:])
                    for a in match.group("args").split(",")
                )
            symbols.append(
                Nonterminal(
                    match.group("nonterminal"),
                    arguments,
                    bool(match.group("nonterminal_optional")),
                    pos,
                )
            )
    return tuple(symbols), constraints


def _body(text: str, base: int):
    stripped = text.strip()
    if stripped.startswith("one of "):
        return OneOfList(tuple(stripped[len("one of ") :].split()), base)
    symbols, constraints = _grammar_symbols(text, base)
    return RightHandSide(symbols, constraints, base)


class OutlineGrammarCompiler:
    """
    Grammar compiler standing in for the grammar notation compiler.

    With `check=True` it reports each production parameter that no argument
    (`?Param`) or guard (`[+Param]`) of that production refers to.
    """

    def __init__(self):
        self.compiled: list[tuple[tuple[str, ...], bool]] = []

    def compile(self, sources: Sequence[GrammarSource], *, check: bool = True) -> CompiledGrammar:
        self.compiled.append((tuple(s.text for s in sources), check))
        productions = []
        diagnostics = []
        for index, source in enumerate(sources):
            for production in self._parse(source.text, index):
                productions.append(production)
                if check:
                    diagnostics.extend(self._unused_parameters(production))
        return CompiledGrammar(tuple(sources), tuple(productions), tuple(diagnostics))

    @staticmethod
    def _parse(text: str, index: int) -> list[Production]:
        productions = []
        current = None
        offset = 0
        for line in text.splitlines(keepends=True):
            line_start = offset
            offset += len(line)
            if not line.strip():
                continue
            header = PRODUCTION_HEADER.match(line.rstrip("\n"))
            if header is not None:
                parameters = ()
                if header.group("params"):
                    parameters = tuple(
                        Parameter(p.strip(), line_start + header.start("params"))
                        for p in header.group("params").split(",")
                    )
                current = {
                    "name": header.group("name"),
                    "parameters": parameters,
                    "bodies": [],
                    "pos": line_start,
                }
                productions.append(current)
                if header.group("rest").strip():
                    current["bodies"].append(
                        _body(header.group("rest"), line_start + header.start("rest"))
                    )
            elif current is not None:
                current["bodies"].append(_body(line.rstrip("\n"), line_start))
        return [
            Production(
                p["name"], p["parameters"], tuple(p["bodies"]), p["pos"], index
            )
            for p in productions
        ]

    @staticmethod
    def _unused_parameters(production: Production) -> list[GrammarDiagnostic]:
        referenced = set()
        for body in production.bodies:
            if not isinstance(body, RightHandSide):
                continue
            if body.constraints is not None:
                referenced.add(body.constraints.text[1:])
            for symbol in body.symbols:
                if isinstance(symbol, Nonterminal) and symbol.arguments:
                    referenced.update(a.name for a in symbol.arguments if a.operator == "?")
        return [
            GrammarDiagnostic(
                code="unused-parameter",
                message=f"Parameter '{p.name}' is unused.",
                source_index=production.source_index,
                pos=p.pos,
                production=production.name,
                parameter=p.name,
                is_unused_parameter=True,
            )
            for p in production.parameters
            if p.name not in referenced
        ]


def algorithm_document(steps: str, *, prose: str = "", alg_attrs: str = "") -> str:
    """Wrap a step outline in a clause, ready for `parse_document`."""
    steps = textwrap.dedent(steps).strip("\n")
    indented = textwrap.indent(steps, "  ")
    prose_line = f"  <p>{prose}</p>\n" if prose else ""
    return (
        '<emu-clause id="sec-example">\n'
        "  <h1>Example ( )</h1>\n"
        f"{prose_line}"
        f"  <emu-alg{alg_attrs}>\n{indented}\n  </emu-alg>\n"
        "</emu-clause>\n"
    )


@pytest.fixture
def algorithm_parser():
    return OutlineAlgorithmParser()


@pytest.fixture
def grammar_compiler():
    return OutlineGrammarCompiler()


@pytest.fixture
def lint_source(algorithm_parser, grammar_compiler):
    """Lint markup with the outline collaborators.

    Usage:
        def test_something(lint_source):
            messages = lint_source("<emu-clause>...</emu-clause>")
    """

    def run(text: str, **kwargs):
        document = parse_document(textwrap.dedent(text).lstrip("\n"), name="spec.html")
        return lint(
            document,
            algorithm_parser=algorithm_parser,
            grammar_compiler=grammar_compiler,
            **kwargs,
        )

    return run


@pytest.fixture
def lint_steps(lint_source):
    """Lint a step outline wrapped in a clause; returns the messages."""

    def run(steps: str, **kwargs):
        prose = kwargs.pop("prose", "")
        alg_attrs = kwargs.pop("alg_attrs", "")
        return lint_source(algorithm_document(steps, prose=prose, alg_attrs=alg_attrs), **kwargs)

    return run


class BuiltAlgorithm(NamedTuple):
    element: Element
    source: str
    tree: OrderedList | ParseFailure
    parsed: dict


class StepReports(list):
    """Records `(rule_id, message, offset)` reports from step checks."""

    def __call__(self, rule_id: str, message: str, offset: int) -> None:
        self.append((rule_id, message, offset))

    @property
    def messages(self) -> list[str]:
        return [message for _, message, _ in self]

    @property
    def rules(self) -> list[str]:
        return [rule for rule, _, _ in self]


@pytest.fixture
def reports():
    return StepReports()


@pytest.fixture
def build_algorithm(algorithm_parser):
    """Parse a step outline wrapped in a clause.

    Returns the `emu-alg` element, its source, the step tree and the parsed
    step expressions.
    """

    def build(steps: str, *, prose: str = "") -> BuiltAlgorithm:
        document = parse_document(algorithm_document(steps, prose=prose))
        element = document.find_all("emu-alg")[0]
        source = document.locate(element).inner_text
        tree = algorithm_parser.parse_algorithm(source)
        parsed = {}
        if isinstance(tree, OrderedList):
            parser = FragmentSeqParser()
            parsed = {step: parser.parse_step(step, source) for step, _ in iter_steps(tree)}
        return BuiltAlgorithm(element, source, tree, parsed)

    return build


class NullLocator:
    """Locator that knows no elements; for collectors fed only raw locations."""

    def locate(self, element):
        return None


@pytest.fixture
def raw_collector():
    return DiagnosticCollector(NullLocator())
