"""
Environment stack manager

Keeps the stack of open structural frames (sections, lists, tables,
centring, quotes) and emits their opening and closing boilerplate through
the multiplexer. Also infers list nesting from item indentation.
"""

import math
import re
from typing import List, Optional

from ..config.settings import AppSettings, appsettings
from ..models.document import DocumentMeta
from ..models.scan import Environment, EnvKind, LIST_KINDS, ScanState, Scope, TableType, Target
from .log import LOG, WARN
from .multiplexer import ADMITS, Multiplexer


OPENERS = {
    EnvKind.ITEMIZE: "\\begin{{itemize}}{reason}\n",
    EnvKind.ENUMERATE: "\\begin{{enumerate}}{reason}\n",
    EnvKind.DESCRIPTION: "\\begin{{description}}{reason}\n",
    EnvKind.TABULAR: "\\begin{{tabular}}{content}{reason}\n\\toprule\n",
    EnvKind.CENTER: "\\begin{{center}}{reason}\n",
    EnvKind.QUOTE: "\\begin{{quote}}{reason}\n",
}

CLOSERS = {
    EnvKind.ITEMIZE: "\\end{{itemize}}{reason}\n",
    EnvKind.ENUMERATE: "\\end{{enumerate}}{reason}\n",
    EnvKind.DESCRIPTION: "\\end{{description}}{reason}\n",
    EnvKind.TABULAR: "\\bottomrule\n\\end{{tabular}}{reason}\n",
    EnvKind.CENTER: "\\end{{center}}{reason}\n",
    EnvKind.QUOTE: "\\end{{quote}}{reason}\n",
}

# Frames that do not change the indentation level
FLAT_KINDS = (EnvKind.SECTION, EnvKind.ITEM)

STYLE_RE = re.compile(r"^(?P<title>.*?)\s*(?P<style>\[[^\]]*\])\s*$")
LABEL_RE = re.compile(r"^\[\s(\S+?)\s\]\s+")

REASON_DETECTOR = "  % auto-opened by list detector"
REASON_INDENTER = "  % auto-opened by auto-indenter"
REASON_DEDENT = " % auto-closed by auto-indenter"
REASON_SECTION = " % auto-closed by new section"
REASON_PAGE = " % auto-closed by page break"
REASON_END = " % auto-closed at end of document"


class EnvironmentManager:
    """
    Push/pop of structural frames with matching boilerplate

    Args:
        state: Scan state (indent level, table and list flags)
        mux: Multiplexer used for every emission
        meta: Document metadata (slide count)
        settings: Application settings (list depth limit, bullet label)
    """

    def __init__(
        self,
        state: ScanState,
        mux: Multiplexer,
        meta: DocumentMeta,
        settings: AppSettings = appsettings,
    ) -> None:
        self.state = state
        self.mux = mux
        self.meta = meta
        self.settings = settings
        self.stack: List[Environment] = []

    def __len__(self) -> int:
        return len(self.stack)

    def top(self) -> Optional[Environment]:
        return self.stack[-1] if self.stack else None

    def open(self, kind: EnvKind, content: str = "", reason: str = "", paired: bool = False) -> Environment:
        """
        Push a frame and emit its opening boilerplate under the current scope.

        A tabular first opens the center frame that holds it.

        Args:
            kind: Frame kind
            content: Column spec for tabular, text for quote
            reason: Trailing TeX comment for the opener

        Returns:
            The pushed frame
        """
        if kind is EnvKind.TABULAR:
            self.open(EnvKind.CENTER, paired=True)
            self.state.in_table = True

        frame = Environment(
            kind=kind,
            content=content,
            indent_delta=0 if kind in FLAT_KINDS else 1,
            scope=self.state.scope,
            paired=paired,
        )

        opener = OPENERS.get(kind)
        if opener is not None:
            fragment = opener.format(content=content, reason=reason)
            if kind is EnvKind.QUOTE and content:
                fragment += content + "\n"
            self.mux.emit(fragment, portable=None)

        if kind in LIST_KINDS:
            self.state.list_type = kind

        self.stack.append(frame)
        self.state.indent_level += frame.indent_delta
        LOG(f"line {self.state.line_number}: opened {kind.value} (depth {len(self.stack)})", level=3)
        return frame

    def close(self, reason: str = "") -> Optional[Environment]:
        """
        Pop the innermost frame and emit its closing boilerplate.

        The closer goes out under the scope the frame was opened in, so
        notes and slides stay balanced. Popping an empty stack, or a frame
        with no closing form, is reported and skipped.

        Returns:
            The popped frame, or None if the stack was empty
        """
        if not self.stack:
            WARN("no open environment to close", self.state.line_number)
            return None

        frame = self.stack.pop()
        self.state.indent_level = max(self.state.indent_level - frame.indent_delta, 0)
        LOG(f"line {self.state.line_number}: closing {frame.kind.value}{reason}", level=3)

        if frame.kind is EnvKind.SECTION:
            return frame

        closer = CLOSERS.get(frame.kind)
        if closer is None:
            WARN(f"environment '{frame.kind.value}' has no closing form", self.state.line_number)
            return frame

        with self.mux.scoped(frame.scope, check=False):
            self.mux.emit(closer.format(reason=reason), portable=None)

            if frame.kind is EnvKind.ITEMIZE and self.state.custom_label:
                self.mux.emit(f"\\renewcommand\\labelitemi{{{self.settings.default_item_label}}}\n", portable=None)
                self.state.custom_label = False

        if frame.kind is EnvKind.TABULAR:
            self.state.in_table = False
            self.state.table_type = TableType.NONE
            self.state.table_header_pending = False
            top = self.top()
            if top is not None and top.kind is EnvKind.CENTER and top.paired:
                self.close(reason)

        return frame

    def frames_closeAll(self, reason: str = "") -> int:
        """
        Drain the stack.

        Returns:
            Number of frames closed
        """
        count = 0
        while self.stack:
            self.close(reason)
            count += 1
        return count

    def closable(self) -> bool:
        """True if there is a frame a blank line or `e` may close"""
        top = self.top()
        return top is not None and top.kind is not EnvKind.SECTION

    def listDepth(self) -> int:
        return sum(1 for frame in self.stack if frame.kind in LIST_KINDS)

    def section_open(self, content: str, slides_only: bool = False) -> None:
        """
        Close everything, then start a new section.

        Notes receive a numbered \\section heading; slides receive the end
        of the previous frame and the start of a new one with its title and
        an optional style taken from a trailing [...] tag.

        Args:
            content: Section title, optionally followed by [frame style]
            slides_only: Heading from [soh]; unstyled frames are not numbered
        """
        self.frames_closeAll(REASON_SECTION)

        title, style = content.strip(), ""
        match = STYLE_RE.match(title)
        if match:
            title, style = match.group("title"), match.group("style")

        slides_only = slides_only or self.state.scope is Scope.SLIDES_ONLY
        if slides_only and not style:
            style = "[noframenumbering]"

        if self.state.scope is Scope.NOTES_ONLY:
            WARN(f"section '{title}' inside a notes-only region: no slide frame emitted", self.state.line_number)

        scope = Scope.SLIDES_ONLY if slides_only else self.state.scope
        with self.mux.scoped(scope):
            self.mux.portable_add(f"# {title}")
            self.mux.emit_to(Target.NOTES, f"\n\\section{{{title}}}\n\\normalsize\n")
            self.mux.emit_to(
                Target.SLIDES,
                f"\\end{{frame}}\n\n\\begin{{frame}}{style}\\frametitle{{{title}}}\n",
            )

        self.meta.slides_count += 1
        self.open(EnvKind.SECTION, content=title)

    def depth_fromIndent(self, spaces: int) -> int:
        """
        Map leading spaces of a list item to a nesting depth.

        <4 spaces is depth 0, 4-8 is depth 1, 9-12 depth 2, each further
        four spaces one more. Depths beyond settings.max_list_depth are
        clamped with a warning.
        """
        if spaces < 4:
            depth = 0
        elif spaces <= 8:
            depth = 1
        else:
            depth = math.ceil((spaces - 4) / 4)

        limit = self.settings.max_list_depth
        if depth > limit:
            WARN(
                f"list item nested {depth} levels deep, limit is {limit}: clamped",
                self.state.line_number,
            )
            depth = limit
        return depth

    def item_add(self, kind: Optional[EnvKind], text: str, depth: int, label: Optional[str] = None) -> None:
        """
        Add a list item at a nesting depth.

        First opens list frames until `depth` is reached, or closes frames
        until it is; then emits the item.

        Args:
            kind: List kind from the item marker, None to reuse list_type
            text: Item text with the marker stripped
            depth: Nesting depth (0 is a top-level list)
            label: Description term for \\item[label]
        """
        explicit = kind is not None
        kind = kind or self.state.list_type
        wanted = depth + 1

        narrow = self.narrowestList()
        if narrow is not None:
            LOG(f"line {self.state.line_number}: reopening {narrow.kind.value} under {self.state.scope.value} scope", level=3)
            while any(frame is narrow for frame in self.stack):
                self.close(" % reopened for a wider scope")

        while self.listDepth() > wanted:
            self.close(REASON_DEDENT)

        innermost = self.innermostList()
        if (
            explicit
            and innermost is not None
            and innermost is self.top()
            and innermost.kind is not kind
            and self.listDepth() == wanted
        ):
            self.close(" % list type changed")

        while self.listDepth() < wanted:
            reason = REASON_DETECTOR if self.listDepth() == 0 else REASON_INDENTER
            self.open(kind, reason=reason)

        if kind is EnvKind.ITEMIZE:
            custom = LABEL_RE.match(text)
            if custom:
                self.mux.emit(f"\\renewcommand\\labelitemi{{{custom.group(1)}}}\n", portable=None)
                self.state.custom_label = True
                text = text[custom.end():]

        if label is not None:
            item = f"\\item[{label}] {text}".rstrip()
        else:
            item = f"\\item {text}".rstrip()
        self.mux.emit(item + "\n")

    def narrowestList(self) -> Optional[Environment]:
        """
        Outermost open list whose streams miss one the current scope writes to.

        An item there would reach a stream where its list was never opened.
        """
        wanted = set(ADMITS[self.state.scope])
        for frame in self.stack:
            if frame.kind in LIST_KINDS and not wanted <= set(ADMITS[frame.scope]):
                return frame
        return None

    def innermostList(self) -> Optional[Environment]:
        for frame in reversed(self.stack):
            if frame.kind in LIST_KINDS:
                return frame
        return None
