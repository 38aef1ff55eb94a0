"""
Source text and position helpers.

Every position speclint reports is 1-based in both line and column. Parsers
and the document locator hand over 0-based character offsets; the helpers
here convert between the two.
"""

from bisect import bisect_right
from dataclasses import dataclass, field

from speclint.core.types import LineColumn


def offset_to_line_column(text: str, offset: int) -> LineColumn:
    """
    Convert a 0-based offset into a 1-based (line, column) pair.

    Params:
        text: The text the offset points into
        offset: Character offset, may equal len(text)

    Returns:
        Tuple of 1-based line and column
    """
    line = text.count("\n", 0, offset) + 1
    line_start = text.rfind("\n", 0, offset) + 1
    return line, offset - line_start + 1


def skip_trivia(text: str, pos: int) -> int:
    """Advance past whitespace starting at pos."""
    while pos < len(text) and text[pos].isspace():
        pos += 1
    return pos


@dataclass(frozen=True)
class SourceText:
    """
    A named source file with a precomputed line table.

    Params:
        name: Display name of the source (file path or import name)
        text: Full source text
    """

    name: str
    text: str
    _line_starts: tuple[int, ...] = field(init=False, repr=False, compare=False)

    def __post_init__(self):
        """Build the line start table once."""
        starts = [0]
        index = self.text.find("\n")
        while index != -1:
            starts.append(index + 1)
            index = self.text.find("\n", index + 1)
        object.__setattr__(self, "_line_starts", tuple(starts))

    def line_column(self, offset: int) -> LineColumn:
        """Return the 1-based (line, column) of a 0-based offset."""
        line_index = bisect_right(self._line_starts, offset) - 1
        return line_index + 1, offset - self._line_starts[line_index] + 1

    def offset_of(self, line: int, column: int) -> int:
        """
        Return the offset of a 1-based line and 0-based column.

        This is the convention of `html.parser.HTMLParser.getpos`.
        """
        return self._line_starts[line - 1] + column
