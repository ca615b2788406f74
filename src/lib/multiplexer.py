"""
Output stream multiplexer

The only writer of the three output buffers. Fragments are indented for
the current nesting depth and routed into the notes and/or slides stream
according to the visibility scope in force; a Markdown form of the
originating source line goes to the portable stream.
"""

import re
from contextlib import contextmanager
from typing import Iterator, Optional, Union

from ..config.settings import AppSettings, appsettings
from ..models.document import OutputBuffers
from ..models.scan import ScanState, Scope, Target
from .errors import ScopeConflictError
from .log import LOG


class _FromSource:
    """Sentinel: derive the portable form from the current source line"""

    def __repr__(self) -> str:
        return "FROM_SOURCE"


FROM_SOURCE = _FromSource()

Portable = Union[str, None, _FromSource]

# Processing-instruction tags, with their long aliases
TAGS = (
    "so", "slidesonly", "sos", "sof", "sol", "son", "sot", "soh",
    "no", "notesonly", "nos",
    "sob", "slidesonlybegin", "soe", "slidesonlyend",
    "nob", "notesonlybegin", "noe", "notesonlyend",
    "bv", "ev", "preamble",
)
TAG_RE = re.compile(r"^\s*\[(?:" + "|".join(TAGS) + r")\](?=\s|$)\s?")

ADMITS = {
    Scope.BOTH: (Target.NOTES, Target.SLIDES),
    Scope.NOTES_ONLY: (Target.NOTES,),
    Scope.SLIDES_ONLY: (Target.SLIDES,),
}


def portableForm_make(raw: str) -> str:
    """
    Strip a leading processing-instruction tag from a source line.

    Example:
        >>> portableForm_make("[so] Only on the slides")
        'Only on the slides'
    """
    return TAG_RE.sub("", raw, count=1).rstrip()


class Multiplexer:
    """
    Routes fragments into the notes, slides and portable buffers

    Args:
        state: Scan state (scope, indent level, line number, raw line)
        buffers: Buffers to write
        settings: Application settings (indent width)
    """

    def __init__(
        self,
        state: ScanState,
        buffers: OutputBuffers,
        settings: AppSettings = appsettings,
    ) -> None:
        self.state = state
        self.buffers = buffers
        self.settings = settings

    def indent_apply(self, fragment: str) -> str:
        """Prefix every non-blank line of a fragment with the current indent"""
        pad = self.settings.indent_make(self.state.indent_level)
        if not pad:
            return fragment
        return "".join(
            pad + part if part.strip() else part
            for part in fragment.splitlines(keepends=True)
        )

    def admits(self, target: Target) -> bool:
        return target in ADMITS[self.state.scope]

    def emit(self, fragment: str, portable: Portable = FROM_SOURCE) -> None:
        """
        Append a fragment to every stream the current scope admits.

        Args:
            fragment: Typeset text, usually newline-terminated
            portable: Markdown form for the portable stream; FROM_SOURCE
                derives it from the raw source line, None adds nothing
        """
        indented = self.indent_apply(fragment)
        for target in ADMITS[self.state.scope]:
            self.buffers.buffer_get(target).append(indented, self.state.line_number)
        self.portable_emit(portable)

    def emit_to(self, target: Target, fragment: str, portable: Portable = None) -> bool:
        """
        Append a fragment to a single stream, if the scope admits it.

        Returns:
            True if the fragment was written
        """
        self.portable_emit(portable)
        if not self.admits(target):
            LOG(
                f"line {self.state.line_number}: {target.value} fragment skipped "
                f"in {self.state.scope.value} scope",
                level=3,
            )
            return False
        self.buffers.buffer_get(target).append(
            self.indent_apply(fragment), self.state.line_number
        )
        return True

    def portable_emit(self, portable: Portable) -> None:
        if portable is None:
            return
        if isinstance(portable, _FromSource):
            raw = self.state.raw_line
            if raw.lstrip().startswith("%"):
                return
            portable = portableForm_make(raw)
        self.portable_add(portable)

    def portable_add(self, text: str) -> None:
        """
        Append a line to the portable stream.

        Notes-only material and consecutive duplicates are dropped.
        """
        if self.state.scope is Scope.NOTES_ONLY:
            return
        lines = self.buffers.portable
        if lines and lines[-1] == text:
            return
        lines.append(text)

    def retract(self, line_number: int) -> int:
        """
        Withdraw the notes and slides fragments of a source line.

        Returns:
            Number of fragments removed across both buffers
        """
        removed = self.buffers.notes.retract(line_number)
        removed += self.buffers.slides.retract(line_number)
        if removed:
            LOG(f"retracted {removed} fragment(s) of line {line_number}", level=3)
        return removed

    def scope_enter(self, scope: Scope, check: bool = True) -> Scope:
        """
        Switch the visibility scope.

        Args:
            scope: New scope
            check: Refuse a direct notes-only <-> slides-only switch

        Returns:
            The previous scope

        Raises:
            ScopeConflictError: Both narrowed scopes would be in force at once
        """
        previous = self.state.scope
        if check and {previous, scope} == {Scope.NOTES_ONLY, Scope.SLIDES_ONLY}:
            raise ScopeConflictError(
                f"cannot enter {scope.value}-only scope inside a {previous.value}-only region",
                self.state.line_number,
            )
        self.state.scope = scope
        return previous

    @contextmanager
    def scoped(self, scope: Scope, check: bool = True) -> Iterator[Scope]:
        """
        Run a block under a scope, restoring the previous one afterwards.

        Example:
            with mux.scoped(Scope.SLIDES_ONLY):
                mux.emit("\\\\small\\n")
        """
        previous = self.scope_enter(scope, check=check)
        try:
            yield scope
        finally:
            self.state.scope = previous
