"""
Line scanner and directive dispatcher

Reads a notes source once, top to bottom. Each line is inline-transformed,
checked against the table dialects and then dispatched on its leading key;
lines with no directive key are prose, list items or table rows. All
visible output goes through the Multiplexer into three buffers.
"""

import re
from datetime import date
from pathlib import Path
from typing import List, Optional

from ..config.settings import AppSettings, appsettings
from ..models.document import DocumentMeta, OutputBuffers, ScanResult
from ..models.scan import Directive, EnvKind, ScanState, Scope, TableType
from .directives import DirectiveRegistry
from .environments import REASON_END, EnvironmentManager
from .graphics import GraphicsRegistry
from .inline import InlineTransformer
from .log import LOG, WARN
from .multiplexer import Multiplexer
from .tables import TableDetector, cells_split, row_format


TEX_MARKUP_RE = re.compile(r"\\\w+|\$[^$]+\$")
INDENTED_ITEM_RE = re.compile(r"^(?P<indent>\s+)(?P<marker>-|\d+\.)(?:\s+|$)(?P<text>.*)$")

# Directive keys that read as cell text while a detected table is open;
# every other directive is dispatched as usual
TABLE_ROW_KEYS = ("T", "X", "N", "D", "Z", "-", "1.", ":", "i", "n", "d", "q", "t")


class Scanner:
    """
    Single-pass interpreter for the notes markup

    Args:
        source: Complete source document
        base_dir: Directory images are resolved against
        settings: Application settings
        today: Date used for the year check (defaults to today)
        registry: Directive registry (a fresh one by default)

    Example:
        >>> result = Scanner("s Introduction\\n- one\\n").scan()
        >>> result.meta.slides_count
        1
    """

    def __init__(
        self,
        source: str,
        base_dir: Path | str = ".",
        settings: AppSettings = appsettings,
        today: Optional[date] = None,
        registry: Optional[DirectiveRegistry] = None,
    ) -> None:
        self.lines: List[str] = source.expandtabs(4).splitlines()
        self.base_dir = Path(base_dir)
        self.settings = settings
        self.today = today or date.today()
        self.registry = registry or DirectiveRegistry()
        self.transformer = InlineTransformer(settings)
        self.state_reset()

    def state_reset(self) -> None:
        """Fresh state, buffers and stack for a new scan"""
        self.state = ScanState()
        self.meta = DocumentMeta()
        self.buffers = OutputBuffers()
        self.graphics = GraphicsRegistry(self.settings)
        self.citations: List[str] = []
        self.mux = Multiplexer(self.state, self.buffers, self.settings)
        self.envs = EnvironmentManager(self.state, self.mux, self.meta, self.settings)
        self.tables = TableDetector(self)

    def line_previous(self) -> Optional[str]:
        """Raw source line before the current one"""
        index = self.state.line_number - 2
        return self.lines[index] if index >= 0 else None

    def line_peek(self, offset: int = 1) -> Optional[str]:
        """Raw source line `offset` lines after the current one"""
        index = self.state.line_number - 1 + offset
        return self.lines[index] if 0 <= index < len(self.lines) else None

    def scan(self) -> ScanResult:
        """
        Interpret the whole document.

        Returns:
            ScanResult with metadata, buffers, graphics and final state

        Raises:
            FatalError: Year mismatch, missing image, scope conflict or a
                bad directive value
        """
        self.state_reset()
        LOG(f"Scanning {len(self.lines)} lines", level=2)

        for number, raw in enumerate(self.lines, start=1):
            self.line_process(number, raw)

        if self.state.scope is not Scope.BOTH:
            WARN(f"{self.state.scope.value}-only region not closed before end of document", self.state.line_number)
            self.state.scope = Scope.BOTH
        if self.state.leave_alone:
            WARN("verbatim region not closed before end of document", self.state.line_number)
            self.state.leave_alone = False

        self.envs.frames_closeAll(REASON_END)

        self.meta.has_citations = self.state.has_citations
        LOG(
            f"Scan complete: {self.meta.slides_count} frames, "
            f"{len(self.buffers.notes)} notes / {len(self.buffers.slides)} slides fragments, "
            f"{len(self.graphics)} images",
            level=2,
        )
        return ScanResult(
            meta=self.meta,
            buffers=self.buffers,
            graphics=self.graphics,
            state=self.state,
            citations=list(self.citations),
        )

    def citations_latch(self, keys: List[str]) -> None:
        for key in keys:
            if key not in self.citations:
                self.citations.append(key)
        if not self.state.has_citations:
            self.state.has_citations = True
            LOG(f"line {self.state.line_number}: document has citations", level=2)

    def line_process(self, number: int, raw: str) -> None:
        """Transform, classify and dispatch one source line"""
        state = self.state
        state.line_number = number
        state.raw_line = raw

        if state.pure_markdown and TEX_MARKUP_RE.search(raw):
            state.pure_markdown = False
            LOG(f"line {number}: found TeX markup: {raw}", level=3)
        if "\\cite" in raw:
            self.citations_latch([])

        result = self.transformer.transform(raw, state)
        line = result.line
        if result.citations:
            self.citations_latch(result.citations)
        if result.center_image:
            self.envs.open(EnvKind.CENTER, reason=" % centred image")

        line = self.tables.detect(line)

        directive = Directive.fromLine(line)
        spec = self.registry.spec_get(directive.key)
        in_rows = state.table_type is not TableType.NONE and line.strip()
        if spec is None or (in_rows and spec.key in TABLE_ROW_KEYS):
            self.line_default(line)
            return

        LOG(f"line {number}: directive '{directive.key}'", level=3)
        spec.handler(self, directive)

    def line_default(self, line: str) -> None:
        """
        Lines with no directive key: table rows, indented list items,
        prose, or blank lines (which close the innermost environment).
        """
        state = self.state

        if state.table_type is not TableType.NONE and line.strip():
            self.mux.emit(row_format(cells_split(line, state.table_type)) + "\n")
            return

        item = INDENTED_ITEM_RE.match(line)
        if item:
            marker = item.group("marker")
            kind = EnvKind.ITEMIZE if marker == "-" else EnvKind.ENUMERATE
            depth = self.envs.depth_fromIndent(len(item.group("indent")))
            self.envs.item_add(kind, item.group("text"), depth)
            return

        text = line.strip()
        if text:
            self.mux.emit(text + "\n")
            return

        if self.envs.closable():
            self.envs.close(" % closed by blank line detector")
            self.mux.portable_add("")
        else:
            self.mux.emit("\n")
