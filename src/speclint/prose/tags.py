"""
Tag checking: unknown `emu-*` elements, stray `oldid` attributes and
elements whose closing tag is missing.
"""

from speclint.core.diagnostics import DiagnosticCollector, NodeLocation
from speclint.document.html_tree import VOID_ELEMENTS
from speclint.document.nodes import DocumentLocator, Element
from speclint.models import LintConfig


def check_tags(
    root: Element,
    locator: DocumentLocator,
    diagnostics: DiagnosticCollector,
    config: LintConfig | None = None,
) -> None:
    """
    Check every element below `root`.

    Params:
        root: Document root
        locator: Document location service
        diagnostics: Collector receiving violations
        config: Lint settings providing the known `emu-*` tags
    """
    config = config or LintConfig()
    for element in root.iter_descendants():
        name = element.tag.lower()
        if name.startswith("emu-") and name not in config.known_emu_tags:
            diagnostics.add(
                "valid-tags", f'unknown "emu-" tag "{name}"', NodeLocation(element)
            )

        if element.has_attribute("oldid"):
            diagnostics.add(
                "valid-tags",
                '"oldid" isn\'t a thing; did you mean "oldids"?',
                NodeLocation(element),
            )

        if name not in VOID_ELEMENTS:
            location = locator.locate(element)
            if location is not None and location.end_tag is None:
                diagnostics.add(
                    "missing-closing-tag",
                    "element is missing its closing tag",
                    NodeLocation(element),
                )
