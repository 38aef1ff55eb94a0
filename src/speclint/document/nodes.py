"""
Document tree model.

The analyzer walks an already-built tree of `Element` and `TextNode` values.
Elements know their tag, attributes, parent and children; where an element
sits in the source text is answered separately by a `DocumentLocator`, so the
tree itself stays free of location bookkeeping.
"""

from collections.abc import Iterator, Sequence
from dataclasses import dataclass, field
from typing import Optional, Protocol

from speclint.core.locations import SourceText


@dataclass(eq=False)
class TextNode:
    """Character data between tags."""

    text: str
    parent: Optional["Element"] = None


@dataclass(eq=False)
class Element:
    """
    An element of the document tree.

    Elements compare and hash by identity so they can key side tables.

    Params:
        tag: Lowercase tag name (`#document` for the root)
        attrs: Attribute map; valueless attributes map to None
        parent: Enclosing element, None for the root
        children: Child elements and text nodes in document order
    """

    tag: str
    attrs: dict[str, str | None] = field(default_factory=dict)
    parent: Optional["Element"] = None
    children: list["Element | TextNode"] = field(default_factory=list)

    def __repr__(self) -> str:
        element_id = self.attrs.get("id")
        suffix = f' id="{element_id}"' if element_id else ""
        return f"<{self.tag}{suffix}>"

    def has_attribute(self, name: str) -> bool:
        return name in self.attrs

    def get_attribute(self, name: str) -> str | None:
        return self.attrs.get(name)

    def element_children(self) -> list["Element"]:
        return [c for c in self.children if isinstance(c, Element)]

    @property
    def first_element_child(self) -> Optional["Element"]:
        for child in self.children:
            if isinstance(child, Element):
                return child
        return None

    @property
    def next_element_sibling(self) -> Optional["Element"]:
        if self.parent is None:
            return None
        siblings = self.parent.element_children()
        index = siblings.index(self)
        return siblings[index + 1] if index + 1 < len(siblings) else None

    @property
    def previous_element_sibling(self) -> Optional["Element"]:
        if self.parent is None:
            return None
        siblings = self.parent.element_children()
        index = siblings.index(self)
        return siblings[index - 1] if index > 0 else None

    def iter_descendants(self) -> Iterator["Element"]:
        """Yield every descendant element in document order."""
        for child in self.element_children():
            yield child
            yield from child.iter_descendants()

    def contains_tag(self, tag: str) -> bool:
        return any(d.tag == tag for d in self.iter_descendants())

    def text_content(self, skip: Sequence[str] = ()) -> str:
        """
        Concatenate all descendant text.

        Params:
            skip: Tag names whose subtrees contribute no text

        Returns:
            The text content of this element
        """
        parts = []
        for child in self.children:
            if isinstance(child, TextNode):
                parts.append(child.text)
            elif child.tag not in skip:
                parts.append(child.text_content(skip))
        return "".join(parts)


@dataclass(frozen=True)
class Span:
    """Half-open [start, end) character range in a source."""

    start: int
    end: int


@dataclass(frozen=True)
class ElementLocation:
    """
    Where an element's tags sit in its source.

    Params:
        source: The source the element was parsed from
        start_tag: Span of the start tag
        end_tag: Span of the end tag, None when it could not be found
    """

    source: SourceText
    start_tag: Span
    end_tag: Span | None

    @property
    def inner_text(self) -> str | None:
        """Raw markup between the tags, None without an end tag."""
        if self.end_tag is None:
            return None
        return self.source.text[self.start_tag.end : self.end_tag.start]


class DocumentLocator(Protocol):
    """Document location service: maps elements back to source text."""

    def locate(self, element: Element) -> ElementLocation | None:
        """Return the element's location, or None if it has no source."""
        ...


class Document(DocumentLocator, Protocol):
    """A built document tree together with its sources."""

    @property
    def root(self) -> Element: ...

    @property
    def sources(self) -> Sequence[SourceText]: ...
