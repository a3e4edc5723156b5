import itertools
from typing import NamedTuple, List, Optional


class SourcePosition(
    NamedTuple(
        "SourcePosition",
        [
            ("uri", str),
            ("abspath", str),
            ("line", int),
            ("column", int),
            ("end_line", int),
            ("end_column", int),
            ("offset", int),
            ("end_offset", int),
        ],
    )
):
    """
    Source position attached to AST nodes and exceptions; NamedTuple of ``uri`` the filename/URI
    passed to :func:`WDLAST.parse_source` or :func:`WDLAST.parse_file`; ``abspath`` the absolute
    filename/URI; one-based int positions ``line`` ``end_line`` ``column`` ``end_column``; and
    zero-based UTF-8 byte offsets ``offset`` (inclusive) and ``end_offset`` (exclusive)
    """


class SourceText:
    """
    Source text being parsed, which converts the character positions reported by lark into
    ``SourcePosition`` spans with byte offsets
    """

    text: str
    uri: str
    abspath: str
    _line_starts: List[int]
    _byte_offsets: Optional[List[int]]

    def __init__(self, text: str, uri: str = "(buffer)", abspath: str = "(buffer)") -> None:
        self.text = text
        self.uri = uri
        self.abspath = abspath
        self._line_starts = [0] + [i + 1 for i, c in enumerate(text) if c == "\n"]
        self._byte_offsets = None
        if not text.isascii():
            self._byte_offsets = list(
                itertools.accumulate((len(c.encode("utf-8")) for c in text), initial=0)
            )

    def byte_offset(self, char_pos: int) -> int:
        char_pos = max(0, min(char_pos, len(self.text)))
        if self._byte_offsets is None:
            return char_pos
        return self._byte_offsets[char_pos]

    def char_pos(self, line: int, column: int) -> int:
        "character position of one-based line & column"
        line = max(1, min(line, len(self._line_starts)))
        return self._line_starts[line - 1] + max(column, 1) - 1

    def line_column(self, char_pos: int):
        "one-based line & column of a character position"
        char_pos = max(0, min(char_pos, len(self.text)))
        lo, hi = 0, len(self._line_starts)
        while hi - lo > 1:
            mid = (lo + hi) // 2
            if self._line_starts[mid] <= char_pos:
                lo = mid
            else:
                hi = mid
        return (lo + 1, char_pos - self._line_starts[lo] + 1)

    def span(self, start_pos: int, end_pos: int) -> SourcePosition:
        "span between two character positions (end exclusive)"
        line, column = self.line_column(start_pos)
        end_line, end_column = self.line_column(end_pos)
        return SourcePosition(
            uri=self.uri,
            abspath=self.abspath,
            line=line,
            column=column,
            end_line=end_line,
            end_column=end_column,
            offset=self.byte_offset(start_pos),
            end_offset=self.byte_offset(end_pos),
        )

    def position(self, meta) -> SourcePosition:
        """
        span of a lark ``Meta`` or ``Token``; an empty production (no tokens) gets a zero-length
        span at the start of the text
        """
        if getattr(meta, "empty", False):
            return self.span(0, 0)
        return SourcePosition(
            uri=self.uri,
            abspath=self.abspath,
            line=meta.line,
            column=meta.column,
            end_line=meta.end_line,
            end_column=meta.end_column,
            offset=self.byte_offset(meta.start_pos),
            end_offset=self.byte_offset(meta.end_pos),
        )

    def __str__(self) -> str:
        return self.text


def join(first: SourcePosition, last: SourcePosition) -> SourcePosition:
    "span from the start of ``first`` through the end of ``last``"
    return first._replace(
        end_line=last.end_line, end_column=last.end_column, end_offset=last.end_offset
    )
