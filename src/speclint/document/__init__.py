"""
Document tree, locations and node collection.

This package provides the element tree the checkers walk, the HTML-backed
tree builder and the collector that groups nodes for later analysis.
"""

from speclint.document.collector import (
    AlgorithmBlock,
    DocumentCollector,
    GrammarFragment,
    GrammarWithRules,
    HeaderRecord,
    NodeGroups,
    WalkContext,
)
from speclint.document.html_tree import HtmlDocument, parse_document
from speclint.document.nodes import (
    Document,
    DocumentLocator,
    Element,
    ElementLocation,
    Span,
    TextNode,
)

__all__ = [
    "AlgorithmBlock",
    "DocumentCollector",
    "GrammarFragment",
    "GrammarWithRules",
    "HeaderRecord",
    "NodeGroups",
    "WalkContext",
    "HtmlDocument",
    "parse_document",
    "Document",
    "DocumentLocator",
    "Element",
    "ElementLocation",
    "Span",
    "TextNode",
]
