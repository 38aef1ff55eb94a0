"""
Diagnostic records and the collector every checker reports into.

Checkers produce `Diagnostic` values whose location is either relative to an
element of the document tree or raw (an absolute position in one source).
The `DiagnosticCollector` resolves those locations through the document
locator, drops disabled rules, and stably sorts the result by line and column
before handing it to a sink.
"""

from collections.abc import Callable, Iterable
from typing import TYPE_CHECKING

from attrs import frozen

from speclint.exceptions import InternalInvariantError

if TYPE_CHECKING:
    from speclint.document.nodes import DocumentLocator, Element


@frozen
class NodeLocation:
    """
    Position relative to an element's content.

    `line` and `column` are 1-based and count from the first character after
    the element's start tag. When both are None the location is the start tag
    itself.
    """

    element: "Element"
    line: int | None = None
    column: int | None = None


@frozen
class RawLocation:
    """Absolute 1-based position in a named source."""

    line: int
    column: int
    file: str | None = None


Location = NodeLocation | RawLocation


@frozen
class Diagnostic:
    """A single rule violation as reported by a checker."""

    rule_id: str
    message: str
    location: Location


@frozen
class LintMessage:
    """A resolved diagnostic, ready for display."""

    rule_id: str
    message: str
    line: int
    column: int
    file: str | None = None
    node_type: str | None = None

    def __str__(self) -> str:
        prefix = f"{self.file}:" if self.file else ""
        return f"{prefix}{self.line}:{self.column} {self.message} ({self.rule_id})"


Sink = Callable[[LintMessage], None]


class DiagnosticCollector:
    """
    Append-only accumulator of diagnostics for one lint run.

    Responsibilities:
      - Accept diagnostics from every checker in any order.
      - Drop diagnostics whose rule is disabled.
      - Resolve element-relative locations into absolute ones.
      - Emit the resolved messages stably sorted by (line, column).
    """

    def __init__(
        self, locator: "DocumentLocator", disabled_rules: Iterable[str] = ()
    ):
        self._locator = locator
        self._disabled = frozenset(disabled_rules)
        self._diagnostics: list[Diagnostic] = []

    def __len__(self) -> int:
        return len(self._diagnostics)

    @property
    def diagnostics(self) -> tuple[Diagnostic, ...]:
        return tuple(self._diagnostics)

    def report(self, diagnostic: Diagnostic) -> None:
        """Record a diagnostic unless its rule is disabled."""
        if diagnostic.rule_id in self._disabled:
            return
        self._diagnostics.append(diagnostic)

    def add(self, rule_id: str, message: str, location: Location) -> None:
        """Shorthand for `report(Diagnostic(...))`."""
        self.report(Diagnostic(rule_id=rule_id, message=message, location=location))

    def resolve(self, diagnostic: Diagnostic) -> LintMessage:
        """
        Turn a diagnostic into a `LintMessage` with absolute coordinates.

        Params:
            diagnostic: Diagnostic to resolve

        Returns:
            LintMessage with 1-based line and column in the element's source

        Raises:
            InternalInvariantError: If an element-relative location cannot be
                located in any source
        """
        location = diagnostic.location
        if isinstance(location, RawLocation):
            return LintMessage(
                rule_id=diagnostic.rule_id,
                message=diagnostic.message,
                line=location.line,
                column=location.column,
                file=location.file,
                node_type="text",
            )

        element_location = self._locator.locate(location.element)
        if element_location is None:
            raise InternalInvariantError(
                f"diagnostic {diagnostic.rule_id!r} points at <{location.element.tag}>, "
                "which has no source location"
            )
        source = element_location.source
        if location.line is None or location.column is None:
            line, column = source.line_column(element_location.start_tag.start)
        else:
            content_line, content_column = source.line_column(
                element_location.start_tag.end
            )
            if location.line == 1:
                line = content_line
                column = content_column + location.column - 1
            else:
                line = content_line + location.line - 1
                column = location.column
        return LintMessage(
            rule_id=diagnostic.rule_id,
            message=diagnostic.message,
            line=line,
            column=column,
            file=source.name,
            node_type=location.element.tag,
        )

    def messages(self) -> list[LintMessage]:
        """Return every resolved message, stably sorted by (line, column)."""
        resolved = [self.resolve(d) for d in self._diagnostics]
        return sorted(resolved, key=lambda m: (m.line, m.column))

    def flush(self, sink: Sink) -> list[LintMessage]:
        """Emit the sorted messages to `sink` and return them."""
        messages = self.messages()
        for message in messages:
            sink(message)
        return messages
