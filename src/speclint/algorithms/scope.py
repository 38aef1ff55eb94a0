"""
Use-def checking for algorithm variables.

Algorithm variables follow unusual scoping rules:

- A name declared anywhere in a list stays visible to every later step,
  including steps after the `If`/`Else` branch that declared it.
- Each ordered list level keeps a strict set of names declared there with a
  plain `Let`; declaring one of those again at the same level is an error.
  Loop variables, existentials and `declared="..."` names may shadow.
- A `For each` loop variable is only visible inside its own step.
- An abstract closure gets an independent scope holding its parameters and
  explicitly captured names only.
"""

import json
import re
from collections.abc import Iterable, Iterator, Sequence
from dataclasses import dataclass
from enum import Enum

from speclint.algorithms.expressions import (
    NonterminalItem,
    ParenItem,
    ParsedSteps,
    RecordSpecItem,
    SeqItem,
    TextItem,
    VariableItem,
)
from speclint.algorithms.steps import ListItem, OrderedList, StepReporter, UnorderedList
from speclint.document.collector import CLAUSE_TAGS
from speclint.document.nodes import Element
from speclint.exceptions import ClosureSyntaxError


class VarKind(Enum):
    """How a name entered the scope."""

    PARAMETER = "parameter"
    VARIABLE = "variable"
    LOOP_VARIABLE = "loop variable"
    CLOSURE_PARAMETER = "abstract closure parameter"
    CLOSURE_CAPTURE = "abstract closure capture"
    ATTRIBUTE_DECLARATION = "attribute declaration"


REPORTED_WHEN_UNUSED = frozenset(
    {
        VarKind.VARIABLE,
        VarKind.LOOP_VARIABLE,
        VarKind.CLOSURE_CAPTURE,
        VarKind.ATTRIBUTE_DECLARATION,
    }
)

SEEDED_NAME = re.compile(r"(?:(?<=_)|\b)_([a-zA-Z0-9]+)_(?=\b|_)")
EXISTENTIAL = re.compile(
    r"\b(?:for any |for some |there exists |there is |there does not exist )(\w+ )?$"
)
LET_BE = re.compile(r"\blet (?:each of )?$", re.IGNORECASE)
BRANCH_STEP = re.compile(r"^(?:If|Else|Otherwise)\b")
CLOSURE_HEADER = re.compile(r" performs the following steps (?:atomically )?when called:$")
LIST_SEPARATORS = (", ", ", and ", " and ")

WITH_PARAMETERS = " with parameters "
THAT_CAPTURES = " that captures "
AND_PERFORMS = " and performs "


@dataclass
class Binding:
    """
    One declared name.

    `anchor` is the offset of the declaring token, None for names seeded
    from prose, which are never reported.
    """

    kind: VarKind
    used: bool = False
    anchor: int | None = None


class Scope:
    """A flat name map plus a stack of strict declaration sets."""

    def __init__(self, report: StepReporter, preseeded: Iterable[str] = ()):
        self.report = report
        self.vars: dict[str, Binding] = {}
        self._strict: list[set[str]] = [set()]
        for name in preseeded:
            self.declare(name, None, VarKind.PARAMETER)

    def declared(self, name: str) -> bool:
        return name in self.vars

    def push(self) -> None:
        self._strict.append(set())

    def pop(self) -> None:
        self._strict.pop()

    def declare(
        self,
        name: str,
        anchor: int | None,
        kind: VarKind = VarKind.VARIABLE,
        *,
        strict: bool = False,
    ) -> bool:
        """
        Declare `name`, keeping any existing binding.

        Params:
            name: Variable name
            anchor: Offset of the declaring token
            kind: Kind of the new binding
            strict: True for a plain `Let`, which may not redeclare a name
                already in the current level's strict set

        Returns:
            True if the name was not visible before
        """
        if name in self.vars:
            if strict:
                if name in self._strict[-1] and anchor is not None:
                    self.report(
                        "re-declaration",
                        f"{json.dumps(name)} is already declared",
                        anchor,
                    )
                self._strict[-1].add(name)
            return False
        self.vars[name] = Binding(kind, anchor=anchor)
        if strict:
            self._strict[-1].add(name)
        return True

    def undeclare(self, name: str) -> None:
        self.vars.pop(name, None)
        for strict in self._strict:
            strict.discard(name)

    def use(self, name: str, offset: int) -> None:
        binding = self.vars.get(name)
        if binding is None:
            self.report(
                "use-before-def",
                f"could not find a preceding declaration for {json.dumps(name)}",
                offset,
            )
            return
        binding.used = True

    def report_unused(self, capture_rule: str = "unused-declaration") -> None:
        """Report every reportable binding that was never used."""
        for name, binding in self.vars.items():
            if binding.used or binding.anchor is None:
                continue
            if binding.kind not in REPORTED_WHEN_UNUSED:
                continue
            if binding.kind is VarKind.CLOSURE_CAPTURE and capture_rule == "unused-capture":
                self.report(
                    "unused-capture",
                    f"closure captures {json.dumps(name)}, but never uses it",
                    binding.anchor,
                )
            else:
                self.report(
                    "unused-declaration",
                    f"{json.dumps(name)} is declared here, but never referred to",
                    binding.anchor,
                )


def iter_variables(items: Sequence[SeqItem]) -> Iterator[VariableItem]:
    """Yield every variable in `items`, descending into groups."""
    for item in items:
        if isinstance(item, VariableItem):
            yield item
        elif isinstance(item, (ParenItem, RecordSpecItem)):
            yield from iter_variables(item.items)


def previous_or_parent(element: Element, stop_at: Element | None) -> Element | None:
    if element is stop_at:
        return None
    previous = element.previous_element_sibling
    if previous is not None:
        return previous
    if element.parent is None:
        return None
    return previous_or_parent(element.parent, stop_at)


def names_from_preceding_prose(algorithm: Element) -> list[str]:
    """
    Collect variable-shaped names from prose before `algorithm` in its clause.

    Walks previous siblings and ancestors up to the enclosing clause,
    ignoring algorithms and anything containing one.

    Params:
        algorithm: The `emu-alg` element

    Returns:
        Names in the order they were found
    """
    clause = algorithm.parent
    while clause is not None and clause.tag not in CLAUSE_TAGS:
        clause = clause.parent

    names = []
    preceding = previous_or_parent(algorithm, clause)
    while preceding is not None:
        if preceding.tag != "emu-alg" and not preceding.contains_tag("emu-alg"):
            # <del>_x_</del><ins>_y_</ins> has text content `_x__y_`
            names.extend(m.group(1) for m in SEEDED_NAME.finditer(preceding.text_content()))
        preceding = previous_or_parent(preceding, clause)
    return names


class ScopeChecker:
    """
    Checks declarations and uses of one algorithm's variables.

    Params:
        parsed: Parsed expressions of every step of the algorithm
        report: Receives `(rule_id, message, offset)`
        preseeded: Names visible in every scope, closures included
    """

    def __init__(
        self, parsed: ParsedSteps, report: StepReporter, preseeded: Sequence[str] = ()
    ):
        self.parsed = parsed
        self.report = report
        self.preseeded = tuple(preseeded)

    def check(self, algorithm: Element, tree: OrderedList) -> None:
        scope = Scope(self.report, self.preseeded)
        for name in names_from_preceding_prose(algorithm):
            scope.declare(name, None, VarKind.PARAMETER)
        self.walk(tree, scope)
        scope.report_unused()

    def walk(self, steps: OrderedList | UnorderedList, scope: Scope) -> None:
        if isinstance(steps, UnorderedList):
            for step in steps.items:
                for variable in iter_variables(self.parsed[step].items):
                    scope.use(variable.name, variable.start)
                if step.sublist is not None:
                    self.walk(step.sublist, scope)
            return

        scope.push()
        for step in steps.items:
            self._walk_step(step, scope)
        scope.pop()

    def _walk_step(self, step: ListItem, scope: Scope) -> None:
        items = self.parsed[step].items
        self._declare_from_attribute(step, scope)

        loop_variable = self._loop_variable(items)
        loop_is_new = False
        if loop_variable is not None:
            loop_is_new = scope.declare(
                loop_variable.name, loop_variable.start, VarKind.LOOP_VARIABLE
            )

        last_text = next((i for i in reversed(items) if isinstance(i, TextItem)), None)
        if last_text is not None and CLOSURE_HEADER.search(last_text.contents):
            self._walk_closure(step, items, scope)
            return

        declared_here = self._declare_from_text(items, scope)
        if loop_variable is not None:
            declared_here.add(loop_variable.start)
        for variable in iter_variables(items):
            if variable.start not in declared_here:
                scope.use(variable.name, variable.start)

        if step.sublist is not None:
            self.walk(step.sublist, scope)

        if loop_variable is not None and loop_is_new:
            binding = scope.vars.get(loop_variable.name)
            if binding is not None and not binding.used:
                self.report(
                    "unused-declaration",
                    f"{json.dumps(loop_variable.name)} is declared here, but never referred to",
                    loop_variable.start,
                )
            scope.undeclare(loop_variable.name)

    def _declare_from_attribute(self, step: ListItem, scope: Scope) -> None:
        attr = step.attribute("declared")
        if attr is None:
            return
        for raw in attr.value.split(","):
            name = raw.strip()
            if not name:
                continue
            found = re.search(rf"\b{re.escape(name)}\b", attr.value)
            anchor = attr.value_start + (found.start() if found else 0)
            if scope.declared(name):
                self.report(
                    "unnecessary-declared-var",
                    f"{json.dumps(name)} is already declared and does not need an "
                    "explict annotation",
                    anchor,
                )
            else:
                scope.declare(name, anchor, VarKind.ATTRIBUTE_DECLARATION)

    @staticmethod
    def _loop_variable(items: Sequence[SeqItem]) -> VariableItem | None:
        if not items:
            return None
        head = items[0]
        if not isinstance(head, TextItem) or not head.contents.startswith("For each "):
            return None
        index = 1
        if index < len(items) and isinstance(items[index], (NonterminalItem, RecordSpecItem)):
            index += 1
            following = items[index] if index < len(items) else None
            if isinstance(following, TextItem) and not following.contents.strip():
                index += 1
        candidate = items[index] if index < len(items) else None
        return candidate if isinstance(candidate, VariableItem) else None

    def _declare_from_text(
        self, items: Sequence[SeqItem], scope: Scope, in_branch: bool | None = None
    ) -> set[int]:
        """
        Declare names introduced by `Let ... be`, `such that` and existentials.

        Parenthesized and braced groups are scanned as well, so
        "(for some integer _k_)" declares _k_.

        Params:
            items: Items of a step or of a group within it
            scope: Scope receiving the declarations
            in_branch: Whether the enclosing step is an `If`/`Else` branch;
                worked out from `items` when omitted

        Returns:
            Start offsets of the declaring variable tokens
        """
        declared_here: set[int] = set()
        if in_branch is None:
            head = items[0] if items else None
            in_branch = isinstance(head, TextItem) and bool(BRANCH_STEP.match(head.contents))

        for item in items:
            if isinstance(item, (ParenItem, RecordSpecItem)):
                declared_here |= self._declare_from_text(item.items, scope, in_branch)

        for index in range(1, len(items)):
            part = items[index]
            if not isinstance(part, VariableItem):
                continue

            previous = items[index - 1]
            if isinstance(previous, TextItem) and EXISTENTIAL.search(previous.contents):
                scope.declare(part.name, part.start)
                declared_here.add(part.start)
                continue

            following = items[index + 1] if index + 1 < len(items) else None
            if not isinstance(following, TextItem):
                continue
            is_such_that = following.contents.startswith(" such that ")
            is_be = following.contents.startswith(" be ")
            if not (is_such_that or is_be):
                continue

            # collect a comma/"and"-separated list of names, scanning backward
            names = [part]
            cursor = index - 1
            while cursor >= 1:
                separator = items[cursor]
                if not isinstance(separator, TextItem):
                    break
                if separator.contents not in LIST_SEPARATORS:
                    break
                candidate = items[cursor - 1]
                if not isinstance(candidate, VariableItem):
                    break
                names.append(candidate)
                cursor -= 2
            names.reverse()

            current = items[cursor] if cursor >= 0 else None
            if not isinstance(current, TextItem):
                continue
            if is_such_that and not re.search(r"(?: of | in )", current.contents):
                for variable in names:
                    scope.declare(variable.name, variable.start)
                    declared_here.add(variable.start)
            elif is_be and LET_BE.search(current.contents):
                for variable in names:
                    scope.declare(variable.name, variable.start, strict=not in_branch)
                    declared_here.add(variable.start)
        return declared_here

    def _walk_closure(
        self, step: ListItem, items: Sequence[SeqItem], scope: Scope
    ) -> None:
        head = items[0] if items else None
        if (
            isinstance(head, TextItem)
            and head.contents == "Let "
            and len(items) > 1
            and isinstance(items[1], VariableItem)
        ):
            scope.declare(items[1].name, items[1].start, strict=True)

        try:
            parameters = self._closure_parameters(items)
            captures = self._closure_captures(items)
        except ClosureSyntaxError as e:
            self.report("bad-ac", str(e), e.offset)
            return

        closure_scope = Scope(self.report, self.preseeded)
        for parameter in parameters:
            closure_scope.declare(parameter.name, parameter.start, VarKind.CLOSURE_PARAMETER)
        for capture in captures:
            scope.use(capture.name, capture.start)
            closure_scope.declare(capture.name, capture.start, VarKind.CLOSURE_CAPTURE)

        if isinstance(step.sublist, OrderedList):
            self.walk(step.sublist, closure_scope)
            closure_scope.report_unused(capture_rule="unused-capture")

    @staticmethod
    def _closure_parameters(items: Sequence[SeqItem]) -> list[VariableItem]:
        """
        Read the `with parameters (_a_, _b_)` list of a closure header.

        Raises:
            ClosureSyntaxError: If the list is missing or malformed
        """
        for index, item in enumerate(items):
            if isinstance(item, TextItem) and WITH_PARAMETERS in item.contents:
                break
        else:
            return []

        phrase_end = item.start + item.contents.index(WITH_PARAMETERS) + len(WITH_PARAMETERS)
        group = items[index + 1] if index + 1 < len(items) else None
        if not item.contents.endswith(WITH_PARAMETERS) or not isinstance(group, ParenItem):
            raise ClosureSyntaxError(phrase_end, "a parenthesized list of parameter names")

        parameters = []
        for position, member in enumerate(group.items):
            if position % 2 == 0:
                if not isinstance(member, VariableItem):
                    raise ClosureSyntaxError(member.start, "a parameter name")
                parameters.append(member)
            elif not (isinstance(member, TextItem) and member.contents == ", "):
                raise ClosureSyntaxError(member.start, '", "')
        if group.items and not isinstance(group.items[-1], VariableItem):
            raise ClosureSyntaxError(group.end - 1, "a parameter name")
        return parameters

    @staticmethod
    def _closure_captures(items: Sequence[SeqItem]) -> list[VariableItem]:
        """
        Read the `that captures _x_ and _y_ and performs` list of a closure header.

        Raises:
            ClosureSyntaxError: If the list is malformed
        """
        for index, item in enumerate(items):
            if isinstance(item, TextItem) and item.contents.endswith(THAT_CAPTURES):
                break
        else:
            return []

        captures = []
        cursor = index + 1
        while True:
            if cursor >= len(items):
                raise ClosureSyntaxError(items[-1].end, "a capture name")
            capture = items[cursor]
            if not isinstance(capture, VariableItem):
                raise ClosureSyntaxError(capture.start, "a capture name")
            captures.append(capture)
            cursor += 1
            separator = items[cursor] if cursor < len(items) else None
            if isinstance(separator, TextItem):
                if AND_PERFORMS in separator.contents:
                    return captures
                if separator.contents in LIST_SEPARATORS:
                    cursor += 1
                    continue
            raise ClosureSyntaxError(
                separator.start if separator is not None else capture.end, '", "'
            )


def check_scope(
    algorithm: Element,
    tree: OrderedList,
    parsed: ParsedSteps,
    report: StepReporter,
    preseeded: Sequence[str] = (),
) -> None:
    """Run the scope checker over one algorithm."""
    ScopeChecker(parsed, report, preseeded).check(algorithm, tree)
