"""
Scan-time data models

Types shared by the line scanner and the components it drives: visibility
scopes, table dialects, environment frames, the per-document ScanState and
the parsed Directive of a single line.
"""

from enum import Enum
from dataclasses import dataclass, field
from typing import List, Optional


class Scope(Enum):
    """
    Visibility scope of an output fragment

    Exactly one scope is in force at any instant of a scan.
    """
    BOTH = "both"
    NOTES_ONLY = "notes"
    SLIDES_ONLY = "slides"


class Target(Enum):
    """Output targets produced from one source document"""
    NOTES = "notes"
    SLIDES = "slides"
    PORTABLE = "portable"


class TableType(Enum):
    """Table dialects recognized by the table detector"""
    NONE = "none"
    SIMPLE = "simple"
    PIPE = "pipe"
    BLOCK = "block"


class EnvKind(Enum):
    """Kinds of structural frame held on the environment stack"""
    SECTION = "section"
    ITEMIZE = "itemize"
    ENUMERATE = "enumerate"
    DESCRIPTION = "description"
    TABULAR = "tabular"
    CENTER = "center"
    QUOTE = "quote"
    ITEM = "item"


LIST_KINDS = (EnvKind.ITEMIZE, EnvKind.ENUMERATE, EnvKind.DESCRIPTION)


@dataclass
class Environment:
    """
    One frame on the environment stack

    Attributes:
        kind: Frame kind
        content: Optional payload (column spec for tabular, text for quote)
        indent_delta: Indentation levels added while the frame is open
        scope: Scope in force when the frame was opened; its closer is
            emitted under the same scope
        paired: True for a center frame opened on behalf of a tabular
    """
    kind: EnvKind
    content: str = ""
    indent_delta: int = 1
    scope: Scope = Scope.BOTH
    paired: bool = False


@dataclass
class ScanState:
    """
    Mutable state of one document scan

    Created fresh by every Scanner.scan() call and passed explicitly to
    the multiplexer, environment manager, table detector and directive
    handlers.
    """
    line_number: int = 0
    indent_level: int = 0
    table_type: TableType = TableType.NONE
    in_table: bool = False
    has_citations: bool = False
    list_type: EnvKind = EnvKind.ITEMIZE
    scope: Scope = Scope.BOTH
    leave_alone: bool = False
    table_header_pending: bool = False
    custom_label: bool = False
    col2_width: str = ""
    mp_height: str = ""
    pure_markdown: bool = True
    raw_line: str = ""


@dataclass
class Directive:
    """
    A (key, value) pair parsed from one input line

    The key is everything before the first space, the value is the
    stripped remainder.  Keys beginning with '#' other than '#' itself
    are comments and collapse to '#%'.

    Example:
        >>> Directive.fromLine("s Introduction [plain]")
        Directive(key='s', value='Introduction [plain]')
    """
    key: str
    value: str = ""

    @classmethod
    def fromLine(cls, line: str) -> "Directive":
        key, _, value = line.partition(" ")
        if key.startswith("#") and key != "#":
            key = "#%"
        return cls(key=key, value=value.strip())


@dataclass
class TransformResult:
    """
    Result of running the inline transforms over one line

    Attributes:
        line: Transformed line
        citations: Citation keys found on the line, in order of appearance
        center_image: True if an image asked to be centred
        matched: Names of the rules that changed the line
    """
    line: str
    citations: List[str] = field(default_factory=list)
    center_image: bool = False
    matched: List[str] = field(default_factory=list)

    @property
    def changed(self) -> bool:
        return bool(self.matched)


@dataclass
class GraphicSpec:
    """
    Parsed form of a `g name[n1,n2,extra]` image directive

    Attributes:
        name: Image name as written (extension optional)
        notes_scale: Scale for the notes document, None for unscaled
        slides_scale: Scale for the slides deck, None for unscaled
        extra: Remaining arguments passed verbatim to \\includegraphics
    """
    name: str
    notes_scale: Optional[str] = None
    slides_scale: Optional[str] = None
    extra: str = ""
