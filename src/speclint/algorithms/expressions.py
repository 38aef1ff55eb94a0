"""
Parsed step expressions.

A `Seq` is the structured reading of one step's fragments: text is split at
parentheses and record braces into nested groups, figures are collapsed into
a single item, and markup that carries no meaning (tags, comments, deleted
text) is dropped. Each step is parsed once; the results live in a
`ParsedSteps` side table shared by the step rules and the scope checker.
"""

import re
from dataclasses import dataclass
from typing import Protocol, Union, assert_never

from speclint.algorithms.steps import (
    Comment,
    Fragment,
    ListItem,
    OpaqueTag,
    ParseFailure,
    Pipe,
    Star,
    Tag,
    Text,
    Tilde,
    Variable,
)


@dataclass(frozen=True)
class TextItem:
    contents: str
    start: int
    end: int


@dataclass(frozen=True)
class VariableItem:
    name: str
    start: int
    end: int


@dataclass(frozen=True)
class EnumItem:
    contents: str
    start: int
    end: int


@dataclass(frozen=True)
class NonterminalItem:
    name: str
    start: int
    end: int


@dataclass(frozen=True)
class PassThroughItem:
    """A fragment with no structure of its own, such as a `*literal*`."""

    fragment: Fragment
    start: int
    end: int


@dataclass(frozen=True)
class FigureItem:
    start: int
    end: int


@dataclass(frozen=True)
class ParenItem:
    """A parenthesized group; offsets include the parentheses."""

    items: tuple["SeqItem", ...]
    start: int
    end: int


@dataclass(frozen=True)
class RecordSpecItem:
    """A braced record group such as `{ [[Value]]: _v_ }`."""

    items: tuple["SeqItem", ...]
    start: int
    end: int


SeqItem = Union[
    TextItem,
    VariableItem,
    EnumItem,
    NonterminalItem,
    PassThroughItem,
    FigureItem,
    ParenItem,
    RecordSpecItem,
]


@dataclass(frozen=True)
class Seq:
    items: tuple[SeqItem, ...]


ParsedSteps = dict[ListItem, Seq]


class StepExpressionParser(Protocol):
    """Turns a step's fragments into a `Seq`."""

    def parse_step(self, step: ListItem, source: str) -> Seq | ParseFailure: ...


_GROUPING = re.compile(r"[(){}]")
_CLOSERS = {"(": ")", "{": "}"}


def _tag_name(fragment: Fragment) -> str | None:
    if not isinstance(fragment, Tag):
        return None
    match = re.match(r"<(/?[a-zA-Z][\w-]*)", fragment.contents)
    return match.group(1).lower() if match else None


class FragmentSeqParser:
    """
    Default step expression parser.

    Lifts fragments into `Seq` items and groups `( ... )` and `{ ... }` into
    nested items. An unbalanced group is a parse failure.
    """

    def parse_step(self, step: ListItem, source: str) -> Seq | ParseFailure:
        # each frame: (opening char, opening offset, items so far)
        stack: list[tuple[str, int, list[SeqItem]]] = [("", 0, [])]
        fragments = step.contents
        index = 0
        while index < len(fragments):
            fragment = fragments[index]
            index += 1
            items = stack[-1][2]
            if isinstance(fragment, Text):
                failure = self._add_text(fragment, stack)
                if failure is not None:
                    return failure
            elif isinstance(fragment, Variable):
                items.append(VariableItem(fragment.name, fragment.start, fragment.end))
            elif isinstance(fragment, Tilde):
                items.append(EnumItem(fragment.contents, fragment.start, fragment.end))
            elif isinstance(fragment, Pipe):
                items.append(NonterminalItem(fragment.name, fragment.start, fragment.end))
            elif isinstance(fragment, Star):
                items.append(PassThroughItem(fragment, fragment.start, fragment.end))
            elif isinstance(fragment, Tag):
                name = _tag_name(fragment)
                if name in ("del", "figure"):
                    closing = f"/{name}"
                    end = fragment.end
                    while index < len(fragments) and _tag_name(fragments[index]) != closing:
                        index += 1
                    if index < len(fragments):
                        end = fragments[index].end
                        index += 1
                    if name == "figure":
                        items.append(FigureItem(fragment.start, end))
            elif isinstance(fragment, (OpaqueTag, Comment)):
                continue
            else:
                assert_never(fragment)

        if len(stack) > 1:
            opening, offset, _ = stack[-1]
            return ParseFailure(f"unclosed {opening!r}", offset)
        return Seq(tuple(stack[0][2]))

    @staticmethod
    def _append_text(items: list[SeqItem], contents: str, start: int) -> None:
        if not contents:
            return
        end = start + len(contents)
        if items and isinstance(items[-1], TextItem) and items[-1].end == start:
            previous = items[-1]
            items[-1] = TextItem(previous.contents + contents, previous.start, end)
        else:
            items.append(TextItem(contents, start, end))

    def _add_text(
        self, fragment: Text, stack: list[tuple[str, int, list[SeqItem]]]
    ) -> ParseFailure | None:
        cursor = 0
        for match in _GROUPING.finditer(fragment.contents):
            char = match.group()
            offset = fragment.start + match.start()
            self._append_text(
                stack[-1][2], fragment.contents[cursor : match.start()], fragment.start + cursor
            )
            cursor = match.end()
            if char in _CLOSERS:
                stack.append((char, offset, []))
                continue
            opening, opening_offset, items = stack[-1]
            if _CLOSERS.get(opening) != char:
                return ParseFailure(f"unexpected {char!r}", offset)
            stack.pop()
            group = ParenItem if opening == "(" else RecordSpecItem
            stack[-1][2].append(group(tuple(items), opening_offset, offset + 1))
        self._append_text(
            stack[-1][2], fragment.contents[cursor:], fragment.start + cursor
        )
        return None


def first_text(seq: Seq) -> TextItem | None:
    """Return the first item when it is text."""
    if seq.items and isinstance(seq.items[0], TextItem):
        return seq.items[0]
    return None
