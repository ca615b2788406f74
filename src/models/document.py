"""
Document-level data models

Metadata collected from directives, the three tagged output buffers, and
the result records handed from the scanner to the renderers and from the
renderers to the report stage.
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Optional, Tuple, TYPE_CHECKING

from .scan import ScanState, Target

if TYPE_CHECKING:
    from ..lib.graphics import GraphicsRegistry


@dataclass
class DocumentMeta:
    """
    Metadata set by directives (T, X, N, Z, [preamble])

    Attributes:
        lecture_title: Title of this lecture (T)
        course_code: Course code (X)
        course_name: Course name (N)
        date: Date string as written (Z)
        preamble: Extra preamble lines shared by notes and slides
        has_citations: Document-wide citations latch
        slides_count: Number of section frames opened
        source: Untransformed T, X, N and Z values for the portable export
    """
    lecture_title: str = ""
    course_code: str = ""
    course_name: str = ""
    date: str = ""
    preamble: str = ""
    has_citations: bool = False
    slides_count: int = 0
    source: Dict[str, str] = field(default_factory=dict)


class OutputBuffer:
    """
    Append-only sequence of text fragments with per-line retraction

    Every fragment is tagged with the source line that produced it, so
    the fragments of a line can be withdrawn when a later line turns out
    to reinterpret it (description terms, simple table headers).
    """

    def __init__(self, name: str) -> None:
        self.name = name
        self.entries: List[Tuple[int, str]] = []

    def append(self, fragment: str, tag: int) -> None:
        self.entries.append((tag, fragment))

    def retract(self, tag: int) -> int:
        """
        Remove all fragments carrying a tag.

        Returns:
            Number of fragments removed
        """
        kept = [entry for entry in self.entries if entry[0] != tag]
        removed = len(self.entries) - len(kept)
        self.entries = kept
        return removed

    @property
    def fragments(self) -> List[str]:
        return [fragment for _, fragment in self.entries]

    def text(self) -> str:
        return "".join(self.fragments)

    def __len__(self) -> int:
        return len(self.entries)

    def __repr__(self) -> str:
        return f"OutputBuffer(name='{self.name}', fragments={len(self.entries)})"


@dataclass
class OutputBuffers:
    """
    The three parallel output streams of a scan

    notes and slides hold typeset fragments; portable holds plain
    Markdown lines (without newlines).
    """
    notes: OutputBuffer = field(default_factory=lambda: OutputBuffer("notes"))
    slides: OutputBuffer = field(default_factory=lambda: OutputBuffer("slides"))
    portable: List[str] = field(default_factory=list)

    def buffer_get(self, target: Target) -> OutputBuffer:
        if target is Target.NOTES:
            return self.notes
        if target is Target.SLIDES:
            return self.slides
        raise ValueError(f"No typeset buffer for target '{target.value}'")

    def portableText_get(self) -> str:
        return "\n".join(self.portable) + "\n" if self.portable else ""


@dataclass
class ScanResult:
    """Everything a finished scan hands to the renderers"""
    meta: DocumentMeta
    buffers: OutputBuffers
    graphics: "GraphicsRegistry"
    state: ScanState
    citations: List[str] = field(default_factory=list)


@dataclass
class TargetResult:
    """
    Outcome of rendering one output target

    Attributes:
        target: Which target this is
        artifact: Path of the written source artifact (.tex or .md)
        success: False if writing or formatting failed
        formatted: True if the external formatter ran
        output: Path of the formatted output (pdf/html) if any
        message: Short failure description
    """
    target: Target
    artifact: Optional[Path] = None
    success: bool = False
    formatted: bool = False
    output: Optional[Path] = None
    message: str = ""
    extras: Dict[str, str] = field(default_factory=dict)
