"""
Header format checking.

Clause headers that declare an operation, such as
`Runtime Semantics: Evaluation ( _x_ [ , _y_ ] )`, must follow a small
grammar of names and parameter lists.
"""

import html
import json
import re
from collections.abc import Sequence

from speclint.core.diagnostics import DiagnosticCollector, NodeLocation
from speclint.core.locations import offset_to_line_column
from speclint.document.collector import HeaderRecord
from speclint.document.nodes import DocumentLocator

RULE_ID = "header-format"

NAME_PATTERNS = (
    # Runtime Semantics: Foo
    re.compile(r"^(Runtime|Static) Semantics: [A-Z][A-Za-z0-9/]*\s*$"),
    # Number::foo
    re.compile(r"^[A-Z][A-Za-z0-9]*::[a-z][A-Za-z0-9]*\s*$"),
    # [[GetOwnProperty]]
    re.compile(r"^\[\[[A-Z][A-Za-z0-9]*\]\]\s*$"),
    # _NativeError_
    re.compile(r"^_[A-Z][A-Za-z0-9]*_\s*$"),
    # CreateForInIterator, Object.fromEntries, Array.prototype [ @@iterator ]
    re.compile(
        r"^[A-Za-z][A-Za-z0-9]*(\.[A-Za-z][A-Za-z0-9]*)*( \[ @@[a-z][a-zA-Z]+ \])?\s*$"
    ),
    # %ForInIteratorPrototype%.next, %TypedArray%.prototype [ @@iterator ]
    re.compile(
        r"^%[A-Z][A-Za-z0-9]*%(\.[A-Za-z][A-Za-z0-9]*)*( \[ @@[a-z][a-zA-Z]+ \])?\s*$"
    ),
)

PARAMETER_PATTERNS = (
    # Foo ( )
    re.compile(r"^ $"),
    # Object ( . . . )
    re.compile(r"^ \. \. \. $"),
    # String.raw ( _template_, ..._substitutions_ )
    re.compile(r"^ (_[A-Za-z0-9]+_, )*\.\.\._[A-Za-z0-9]+_ $"),
    # Function ( _p1_, _p2_, &hellip; , _pn_, _body_ )
    re.compile(r"^ (_[A-Za-z0-9]+_, )*… (, _[A-Za-z0-9]+_)+ $"),
    # Example ( _foo_ [ , _bar_ ] ), Example ( [ _foo_ ] )
    re.compile(
        r"^ (\[ )?_[A-Za-z0-9]+_(, _[A-Za-z0-9]+_)*"
        r"( \[ , _[A-Za-z0-9]+_(, _[A-Za-z0-9]+_)*)*( \])* $"
    ),
)


MARKUP_TOKEN = re.compile(
    r"(?P<comment><!--.*?-->)"
    r"|(?P<tag></?(?P<name>[A-Za-z][\w-]*)[^>]*>)"
    r"|(?P<charref>&(?:#[0-9]+|#[xX][0-9a-fA-F]+|[A-Za-z][A-Za-z0-9]*);)"
    r"|(?P<char>.)",
    re.DOTALL,
)


def markup_offset(markup: str, text_offset: int) -> int:
    """
    Map an offset in header text back into the header's raw markup.

    Header text leaves out tags, comments and `<del>` content, and has
    character references decoded; this walks the markup the same way.

    Params:
        markup: Raw markup between the `h1` tags
        text_offset: Offset into the header text

    Returns:
        Offset of the same character in `markup`
    """
    counted = 0
    deleted = 0
    for token in MARKUP_TOKEN.finditer(markup):
        if token.group("comment"):
            continue
        if token.group("tag"):
            if token.group("name").lower() == "del":
                deleted += -1 if token.group().startswith("</") else 1
            continue
        if deleted > 0:
            continue
        width = len(html.unescape(token.group())) if token.group("charref") else 1
        if counted + width > text_offset:
            return token.start()
        counted += width
    return len(markup)


def _location(
    header: HeaderRecord, offset: int, locator: DocumentLocator | None
) -> NodeLocation:
    location = locator.locate(header.element) if locator is not None else None
    markup = location.inner_text if location is not None else None
    if markup is None:
        line, column = offset_to_line_column(header.contents, offset)
    else:
        line, column = offset_to_line_column(markup, markup_offset(markup, offset))
    return NodeLocation(header.element, line, column)


def check_header(
    header: HeaderRecord,
    diagnostics: DiagnosticCollector,
    locator: DocumentLocator | None = None,
) -> None:
    """
    Check one header, reporting at most one name and one parameter problem.

    Params:
        header: Collected header record
        diagnostics: Collector receiving violations
        locator: Maps header offsets back to the markup; without one they
            are taken relative to the header text
    """
    contents = header.contents
    if not re.search(r"\(.*\)$", contents) or re.search(
        r" Operator \( `[^`]+` \)$", contents
    ):
        return

    open_paren = contents.index("(")
    name = contents[:open_paren]
    params = contents[open_paren + 1 : -1]

    if not re.search(r"\S $", name):
        diagnostics.add(
            RULE_ID,
            "expected header to have a single space before the argument list",
            _location(header, max(len(name) - 1, 0), locator),
        )
    elif not any(p.search(name) for p in NAME_PATTERNS):
        diagnostics.add(
            RULE_ID,
            "expected operation to have a name like 'Example', 'Runtime Semantics: "
            f"Foo', 'Example.prop', etc, but found {json.dumps(name)}",
            _location(header, 0, locator),
        )

    balanced = params.count("[") == params.count("]")
    if not (balanced and any(p.search(params) for p in PARAMETER_PATTERNS)):
        diagnostics.add(
            RULE_ID,
            "expected parameter list to look like '( _a_ [ , _b_ ] )', "
            "'( _foo_, _bar_, ..._baz_ )', '( _foo_, … , _bar_ )', or '( . . . )'",
            _location(header, len(name), locator),
        )


def check_headers(
    headers: Sequence[HeaderRecord],
    diagnostics: DiagnosticCollector,
    locator: DocumentLocator | None = None,
) -> None:
    for header in headers:
        check_header(header, diagnostics, locator)
