"""
HTML-backed document tree.

Builds an `Element` tree from markup with `html.parser` and records the
offsets of every start and end tag so diagnostics can be mapped back to the
source. Only the well-formedness the analyzer relies on is tracked: an end
tag closes the nearest open element with the same name, implicitly leaving
any elements opened after it without an end tag.
"""

import logging
from collections.abc import Sequence
from html.parser import HTMLParser

from speclint.core.locations import SourceText
from speclint.document.nodes import Element, ElementLocation, Span, TextNode

logger = logging.getLogger(__name__)

VOID_ELEMENTS = frozenset(
    {
        "area",
        "base",
        "br",
        "col",
        "embed",
        "hr",
        "img",
        "input",
        "link",
        "meta",
        "param",
        "source",
        "track",
        "wbr",
    }
)


class HtmlDocument:
    """
    A parsed document: the element tree plus tag locations.

    Params:
        root: The `#document` element
        source: The source the tree was parsed from
        locations: Tag locations keyed by element
    """

    def __init__(
        self,
        root: Element,
        source: SourceText,
        locations: dict[Element, ElementLocation],
    ):
        self._root = root
        self._source = source
        self._locations = locations

    @property
    def root(self) -> Element:
        return self._root

    @property
    def sources(self) -> Sequence[SourceText]:
        return (self._source,)

    def locate(self, element: Element) -> ElementLocation | None:
        return self._locations.get(element)

    def find_all(self, tag: str) -> list[Element]:
        """Return every element with the given tag, in document order."""
        return [e for e in self._root.iter_descendants() if e.tag == tag]


class _TreeBuilder(HTMLParser):
    """Incremental tree builder recording tag spans."""

    def __init__(self, source: SourceText):
        super().__init__(convert_charrefs=True)
        self.source = source
        self.root = Element("#document")
        self.locations: dict[Element, ElementLocation] = {}
        self._open: list[Element] = [self.root]

    def _tag_start(self) -> int:
        line, column = self.getpos()
        return self.source.offset_of(line, column)

    def _open_element(self, tag: str, attrs: list[tuple[str, str | None]]) -> Element:
        parent = self._open[-1]
        element = Element(tag, dict(attrs), parent)
        parent.children.append(element)
        start = self._tag_start()
        raw = self.get_starttag_text() or ""
        self.locations[element] = ElementLocation(
            self.source, Span(start, start + len(raw)), None
        )
        return element

    def _close(self, element: Element, end_tag: Span) -> None:
        location = self.locations[element]
        self.locations[element] = ElementLocation(
            location.source, location.start_tag, end_tag
        )

    def handle_starttag(self, tag, attrs):
        element = self._open_element(tag, attrs)
        if tag in VOID_ELEMENTS:
            start_tag = self.locations[element].start_tag
            self._close(element, Span(start_tag.end, start_tag.end))
            return
        self._open.append(element)

    def handle_startendtag(self, tag, attrs):
        element = self._open_element(tag, attrs)
        start_tag = self.locations[element].start_tag
        self._close(element, Span(start_tag.end, start_tag.end))

    def handle_endtag(self, tag):
        for depth in range(len(self._open) - 1, 0, -1):
            if self._open[depth].tag == tag:
                break
        else:
            if tag not in VOID_ELEMENTS:
                logger.debug("ignoring unmatched end tag </%s>", tag)
            return
        start = self._tag_start()
        end = self.source.text.index(">", start) + 1
        self._close(self._open[depth], Span(start, end))
        del self._open[depth:]

    def handle_data(self, data):
        parent = self._open[-1]
        parent.children.append(TextNode(data, parent))


def parse_document(text: str, name: str = "<main>") -> HtmlDocument:
    """
    Parse markup into a located element tree.

    Params:
        text: Full document source
        name: Display name used in raw-location diagnostics

    Returns:
        HtmlDocument with every element's tag spans recorded
    """
    source = SourceText(name, text)
    builder = _TreeBuilder(source)
    builder.feed(text)
    builder.close()
    return HtmlDocument(builder.root, source, builder.locations)
