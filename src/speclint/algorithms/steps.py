"""
Algorithm step trees.

An algorithm parser turns the source of an `emu-alg` element into an
`OrderedList` of `ListItem` steps. Each step holds a sequence of fragments
(text, variables, enum atoms, tags, ...) whose offsets point into the
algorithm source. The trees are produced by an external parser and are never
mutated here.
"""

from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Optional, Protocol, Union


@dataclass(frozen=True)
class Text:
    """Plain text."""

    contents: str
    start: int
    end: int


@dataclass(frozen=True)
class Variable:
    """A variable reference, written `_name_`."""

    name: str
    start: int
    end: int


@dataclass(frozen=True)
class Tilde:
    """An enum atom, written `~name~`."""

    contents: str
    start: int
    end: int


@dataclass(frozen=True)
class Pipe:
    """A nonterminal reference, written `|Name|`."""

    name: str
    start: int
    end: int


@dataclass(frozen=True)
class Star:
    """A literal value, written `*value*`."""

    contents: str
    start: int
    end: int


@dataclass(frozen=True)
class Tag:
    """An inline start or end tag such as `<ins>` or `</figure>`."""

    contents: str
    start: int
    end: int


@dataclass(frozen=True)
class OpaqueTag:
    """A block of markup kept verbatim, such as a `<pre>` element."""

    contents: str
    start: int
    end: int


@dataclass(frozen=True)
class Comment:
    contents: str
    start: int
    end: int


Fragment = Union[Text, Variable, Tilde, Pipe, Star, Tag, OpaqueTag, Comment]


@dataclass(frozen=True)
class StepAttribute:
    """
    A `key="value"` attribute in a step's leading `[...]` block.

    `start` is the offset of the key.
    """

    key: str
    value: str
    start: int
    end: int

    @property
    def value_start(self) -> int:
        return self.start + len(self.key) + 2


@dataclass(eq=False)
class ListItem:
    """
    One algorithm step.

    Steps hash by identity so they can key the parsed-step side table.

    Params:
        contents: Fragments of the step's own line
        sublist: Nested steps, if any
        attrs: Attributes in source order
        marker: The step marker, e.g. `1.` for ordered steps, `*` otherwise
        start: Offset of the marker
        end: Offset just past the last fragment
    """

    contents: tuple[Fragment, ...]
    sublist: Optional["OrderedList | UnorderedList"] = None
    attrs: tuple[StepAttribute, ...] = ()
    marker: str = "1."
    start: int = 0
    end: int = 0

    @property
    def id(self) -> str | None:
        for attr in self.attrs:
            if attr.key == "id":
                return attr.value
        return None

    def attribute(self, key: str) -> StepAttribute | None:
        for attr in self.attrs:
            if attr.key == key:
                return attr
        return None


@dataclass(eq=False)
class OrderedList:
    items: list[ListItem] = field(default_factory=list)
    start: int = 1


@dataclass(eq=False)
class UnorderedList:
    items: list[ListItem] = field(default_factory=list)


@dataclass(frozen=True)
class ParseFailure:
    """A collaborator could not parse its input."""

    message: str
    offset: int


StepReporter = Callable[[str, str, int], None]
"""Receives `(rule_id, message, offset into the algorithm source)`."""


class AlgorithmParser(Protocol):
    """Turns algorithm source into a step tree."""

    def parse_algorithm(self, source: str) -> OrderedList | ParseFailure: ...


def iter_steps(steps: OrderedList | UnorderedList):
    """Yield `(step, containing list)` pairs depth-first in source order."""
    for step in steps.items:
        yield step, steps
        if step.sublist is not None:
            yield from iter_steps(step.sublist)
