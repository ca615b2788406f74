"""
Table detector

Recognizes the three Markdown table dialects the notes format accepts:

    simple:   A    B    C          pipe:   | A | B |        block:  +---+---+
              ---  ---  ---                |---|--:|                | A | B |
              1    2    3                  | 1 | 2 |                +===+===+
                                                                    | 1 | 2 |
                                                                    +---+---+

Separator lines never reach any output stream: they are swallowed and
replaced with the comment marker so the blank-line rule does not close the
table early.
"""

import re
from typing import List, Optional, TYPE_CHECKING

from ..models.scan import Directive, EnvKind, TableType
from .log import LOG
from .multiplexer import FROM_SOURCE

if TYPE_CHECKING:
    from .scanner import Scanner


MARKER = "%"

SIMPLE_SEPARATOR_RE = re.compile(r"^\s*:?-{2,}:?(?:\s+:?-{2,}:?)+\s*$")
SINGLE_SEPARATOR_RE = re.compile(r"^\s*:?-{2,}:?\s*$")
PIPE_CELL_RE = re.compile(r"^\s*:?-+:?\s*$")
BLOCK_RULE_RE = re.compile(r"^\+-")
BLOCK_HEADER_RULE_RE = re.compile(r"^\+=")
EMPTY_HEADER_RE = re.compile(r"^[|\s]*$")


def cells_split(line: str, table_type: TableType) -> List[str]:
    """Split a table row into stripped cells"""
    if table_type is TableType.SIMPLE:
        return re.split(r"\s{2,}", line.strip())
    return [cell.strip() for cell in line.strip().strip("|").split("|")]


def simpleSeparator_is(line: str) -> bool:
    return SIMPLE_SEPARATOR_RE.match(line) is not None


def singleSeparator_is(line: str) -> bool:
    """One dash run: the separator of a one-column simple table"""
    return SINGLE_SEPARATOR_RE.match(line) is not None


def pipeSeparator_is(line: str) -> bool:
    stripped = line.strip()
    if not stripped.startswith("|"):
        return False
    cells = stripped.strip("|").split("|")
    return all(PIPE_CELL_RE.match(cell) for cell in cells)


def colspec_make(cells: List[str]) -> str:
    """
    Build a tabular column spec from alignment markers.

    Example:
        >>> colspec_make(["---", ":--", "--:", ":-:"])
        '{llrc}'
    """
    spec = ""
    for cell in cells:
        cell = cell.strip()
        if cell.startswith(":") and cell.endswith(":"):
            spec += "c"
        elif cell.endswith(":"):
            spec += "r"
        else:
            spec += "l"
    return "{" + spec + "}"


def row_format(cells: List[str]) -> str:
    return " & ".join(cells) + " \\\\"


class TableDetector:
    """
    Classifies lines against the table dialects and opens tabular frames

    Args:
        scanner: Scanner that owns the state, multiplexer, environment
            stack, transformer and source lines
    """

    def __init__(self, scanner: "Scanner") -> None:
        self.scanner = scanner

    @property
    def state(self):
        return self.scanner.state

    def detect(self, line: str) -> str:
        """
        Inspect the current line and update the table state.

        Args:
            line: The inline-transformed current line

        Returns:
            MARKER for swallowed lines, otherwise the line unchanged
        """
        state = self.state
        raw = state.raw_line

        if state.table_header_pending:
            state.table_header_pending = False
            self.header_emit(line)
            return self.swallow(keep_source=True)

        if state.table_type is TableType.NONE:
            if simpleSeparator_is(raw) or (singleSeparator_is(raw) and self.header_precedes()):
                return self.simple_start(raw)
            if raw.lstrip().startswith("|"):
                return self.pipe_start(line, raw)
            if BLOCK_RULE_RE.match(raw):
                return self.block_start(raw)
            return line

        if state.table_type is TableType.BLOCK:
            if BLOCK_RULE_RE.match(raw):
                LOG(f"line {state.line_number}: end of block table", level=2)
                self.scanner.envs.close(" % end of block table")
                return self.swallow()
            if BLOCK_HEADER_RULE_RE.match(raw):
                return self.swallow()
            return line

        if state.table_type is TableType.PIPE and pipeSeparator_is(raw):
            return self.swallow()

        if state.table_type is TableType.SIMPLE and (simpleSeparator_is(raw) or singleSeparator_is(raw)):
            return self.swallow()

        return line

    def header_precedes(self) -> bool:
        """True if the previous source line is text that can head a table"""
        previous = self.scanner.line_previous()
        if previous is None or not previous.strip():
            return False
        return self.scanner.registry.get(Directive.fromLine(previous).key) is None

    def swallow(self, keep_source: bool = False) -> str:
        """
        Replace the current line with MARKER.

        Args:
            keep_source: Header lines keep their source text in the
                portable stream; separators and rules do not
        """
        if keep_source:
            self.scanner.mux.portable_emit(FROM_SOURCE)
        return MARKER

    def table_open(self, table_type: TableType, colspec: str) -> None:
        LOG(f"line {self.state.line_number}: found {table_type.value} table {colspec}", level=2)
        self.scanner.envs.open(EnvKind.TABULAR, content=colspec)
        self.state.table_type = table_type

    def header_emit(self, header: str) -> bool:
        """
        Emit a header row followed by the header/body rule.

        Returns:
            False if the header was empty and nothing was emitted
        """
        if not header.strip() or EMPTY_HEADER_RE.match(header):
            LOG(f"line {self.state.line_number}: table without header", level=2)
            return False
        cells = cells_split(header, self.state.table_type)
        self.scanner.mux.emit(row_format(cells) + "\n\\midrule\n", portable=None)
        return True

    def simple_start(self, raw: str) -> str:
        """
        Separator under a simple table header: the header is the previous line.
        """
        previous = self.scanner.line_previous()
        header = ""
        if previous is not None and previous.strip():
            header = self.scanner.transformer.transform(previous, self.state).line
            self.scanner.mux.retract(self.state.line_number - 1)

        self.table_open(TableType.SIMPLE, colspec_make(raw.split()))
        self.header_emit(header)
        return self.swallow()

    def pipe_start(self, line: str, raw: str) -> str:
        """
        First pipe line: either the separator (header follows), the header
        (separator follows) or a body row of a headerless table.
        """
        if pipeSeparator_is(raw):
            self.table_open(TableType.PIPE, colspec_make(raw.strip().strip("|").split("|")))
            self.state.table_header_pending = True
            return self.swallow()

        following: Optional[str] = self.scanner.line_peek(1)
        if following is not None and pipeSeparator_is(following):
            self.table_open(TableType.PIPE, colspec_make(following.strip().strip("|").split("|")))
            self.header_emit(line)
            return self.swallow(keep_source=True)

        columns = len(cells_split(raw, TableType.PIPE))
        self.table_open(TableType.PIPE, "{" + "l" * columns + "}")
        return line

    def block_start(self, raw: str) -> str:
        columns = max(raw.strip().count("+") - 1, 1)
        self.table_open(TableType.BLOCK, "{" + "l" * columns + "}")
        self.state.table_header_pending = True
        return self.swallow()
