"""
Directive implementations for snp

Each directive handles one line-initial key: metadata keys update the
document record, structural keys drive the environment stack, scope keys
switch visibility, layout keys emit minipage scaffolding.
Uses DirectiveSpec for metadata and dispatch.
"""

import re
from typing import Callable, Dict, Optional, TYPE_CHECKING

from ..models.directives import DirectiveSpec, DirectiveCategory
from ..models.scan import Directive, EnvKind, Scope, Target
from .environments import REASON_PAGE
from .errors import DirectiveValueError, YearMismatchError
from .graphics import graphicSpec_parse, includeGraphics_make
from .log import LOG, WARN, verbosity_raise

if TYPE_CHECKING:
    from .scanner import Scanner


Handler = Callable[["Scanner", Directive], None]

YEAR_AFTER_COMMA_RE = re.compile(r",\s*(\d{4})\b[^,]*$")
YEAR_RE = re.compile(r"\b(\d{4})\b")

SIZE_COMMANDS = {
    "[so]": "",
    "[sos]": "\\small\n",
    "[sof]": "\\footnotesize\n",
    "[sol]": "\\Large\n",
    "[son]": "\\normalsize\n",
    "[sot]": "\\scriptsize\n",
    "[nos]": "\\small\n",
}


def year_extract(date: str) -> Optional[int]:
    """
    Find the declared year in a date string.

    The year after the last comma wins; otherwise the last four-digit
    number in the string.

    Example:
        >>> year_extract("Monday 14 October, 2024")
        2024
    """
    match = YEAR_AFTER_COMMA_RE.search(date)
    if match:
        return int(match.group(1))
    years = YEAR_RE.findall(date)
    return int(years[-1]) if years else None


class DirectiveRegistry:
    """
    Registry of directive specifications and handlers

    Maps directive keys to DirectiveSpec objects containing metadata
    and dispatch handlers.
    """

    def __init__(self) -> None:
        """Initialize the directive registry and register all built-in directives"""
        self.specs: Dict[str, DirectiveSpec] = {}
        self.families: list[DirectiveSpec] = []
        self.metadataDirectives_register()
        self.structuralDirectives_register()
        self.listDirectives_register()
        self.scopeDirectives_register()
        self.layoutDirectives_register()
        self.commentDirectives_register()

    def register(self, spec: DirectiveSpec) -> None:
        """Register a directive specification"""
        self.specs[spec.key] = spec
        for alias in spec.aliases:
            self.specs[alias] = spec
        if spec.pattern:
            self.families.append(spec)

    def spec_get(self, key: str) -> Optional[DirectiveSpec]:
        """
        Get directive specification by key

        Falls back to pattern families (e.g. numbered list markers).
        """
        if key in self.specs:
            return self.specs[key]

        for spec in self.families:
            if spec.matches(key):
                return spec

        return None

    def get(self, key: str) -> Optional[Handler]:
        """Get directive handler by key, or None for prose lines"""
        spec = self.spec_get(key)
        return spec.handler if spec else None

    def directives_listByCategory(self, category: DirectiveCategory) -> list[DirectiveSpec]:
        """Get all directives in a category (aliases listed once)"""
        seen: list[DirectiveSpec] = []
        for spec in self.specs.values():
            if spec.category == category and spec not in seen:
                seen.append(spec)
        return seen

    def metadataDirectives_register(self) -> None:
        """Register directives that set document metadata"""

        def source_record(scanner: "Scanner", name: str) -> None:
            scanner.meta.source[name] = Directive.fromLine(scanner.state.raw_line.strip()).value

        def title_handler(scanner: "Scanner", directive: Directive) -> None:
            scanner.meta.lecture_title = directive.value
            source_record(scanner, "lecture_title")

        def code_handler(scanner: "Scanner", directive: Directive) -> None:
            scanner.meta.course_code = directive.value
            source_record(scanner, "course_code")

        def name_handler(scanner: "Scanner", directive: Directive) -> None:
            scanner.meta.course_name = directive.value
            source_record(scanner, "course_name")

        def debug_handler(scanner: "Scanner", directive: Directive) -> None:
            """Handle D n - raise the debug level for the rest of the run"""
            try:
                level = int(directive.value)
            except ValueError:
                raise DirectiveValueError(
                    f"could not interpret '{directive.value}' as a debug level",
                    scanner.state.line_number,
                )
            verbosity_raise(level)
            LOG(f"debug level set to {level}", level=1)

        def date_handler(scanner: "Scanner", directive: Directive) -> None:
            """Handle Z date - store the date and check its year against today"""
            scanner.meta.date = directive.value
            source_record(scanner, "date")
            declared = year_extract(directive.value)
            if declared is None:
                WARN(f"no year found in date '{directive.value}'", scanner.state.line_number)
                return
            if declared != scanner.today.year:
                raise YearMismatchError(
                    f"the source file says the year is {declared} "
                    f"but the system says it is {scanner.today.year}",
                    scanner.state.line_number,
                )
            LOG(f"year {declared} agrees with the system date", level=2)

        def preamble_handler(scanner: "Scanner", directive: Directive) -> None:
            scanner.meta.preamble += "\n" + directive.value

        self.register(DirectiveSpec(
            key="T",
            category=DirectiveCategory.METADATA,
            description="Lecture title",
            handler=title_handler,
            examples=["T Sorting algorithms"],
        ))
        self.register(DirectiveSpec(
            key="X",
            category=DirectiveCategory.METADATA,
            description="Course code",
            handler=code_handler,
            examples=["X CS101"],
        ))
        self.register(DirectiveSpec(
            key="N",
            category=DirectiveCategory.METADATA,
            description="Course name",
            handler=name_handler,
            examples=["N Introduction to Programming"],
        ))
        self.register(DirectiveSpec(
            key="D",
            category=DirectiveCategory.METADATA,
            description="Debug level (integer)",
            handler=debug_handler,
            examples=["D 2"],
        ))
        self.register(DirectiveSpec(
            key="Z",
            category=DirectiveCategory.METADATA,
            description="Date; its year must be the current year",
            handler=date_handler,
            examples=["Z Monday 14 October, 2024"],
        ))
        self.register(DirectiveSpec(
            key="[preamble]",
            category=DirectiveCategory.METADATA,
            description="Append a line to the shared document preamble",
            handler=preamble_handler,
            examples=["[preamble] \\usepackage{tikz}"],
        ))

    def structuralDirectives_register(self) -> None:
        """Register section, list, quote, table, image and page directives"""

        def section_handler(scanner: "Scanner", directive: Directive) -> None:
            """Handle s/# - new section in notes, new frame in slides"""
            scanner.envs.section_open(directive.value)

        def slidesHeading_handler(scanner: "Scanner", directive: Directive) -> None:
            """Handle [soh] - a frame that only exists in the slides"""
            scanner.envs.section_open(directive.value, slides_only=True)

        def listOpen_handler(kind: EnvKind) -> Handler:
            def handler(scanner: "Scanner", directive: Directive) -> None:
                scanner.envs.open(kind)
            return handler

        def close_handler(scanner: "Scanner", directive: Directive) -> None:
            """Handle e - close the innermost environment"""
            if not scanner.envs.closable():
                WARN("'e' with no open environment", scanner.state.line_number)
                return
            scanner.envs.close(" % manually closed")

        def pageBreak_handler(scanner: "Scanner", directive: Directive) -> None:
            """Handle p - close everything and start a new page in the notes"""
            scanner.envs.frames_closeAll(REASON_PAGE)
            if scanner.state.scope is Scope.SLIDES_ONLY:
                WARN("page break inside a slides-only region ignored", scanner.state.line_number)
                return
            with scanner.mux.scoped(Scope.NOTES_ONLY):
                scanner.mux.emit("\n\\newpage\n", portable=None)

        def quote_handler(scanner: "Scanner", directive: Directive) -> None:
            scanner.envs.open(EnvKind.QUOTE, content=directive.value)
            scanner.mux.portable_add(f"> {directive.value}" if directive.value else ">")

        def table_handler(scanner: "Scanner", directive: Directive) -> None:
            """Handle t colspec - explicit tabular with user-written rows"""
            colspec = directive.value or "{l}"
            if not colspec.startswith("{"):
                colspec = "{" + colspec + "}"
            scanner.envs.open(EnvKind.TABULAR, content=colspec)

        def graphics_handler(scanner: "Scanner", directive: Directive) -> None:
            """Handle g name[n1,n2,extra] - image with per-target scales"""
            line_number = scanner.state.line_number
            spec = graphicSpec_parse(directive.value, line_number)
            filename, path = scanner.graphics.resolve(spec.name, scanner.base_dir, line_number)
            scanner.graphics.register(filename, path.stat().st_size)

            scanner.mux.portable_add(f"![]({filename})")
            scanner.mux.emit_to(
                Target.NOTES, includeGraphics_make(filename, spec.notes_scale, spec.extra) + "\n"
            )
            scanner.mux.emit_to(
                Target.SLIDES, includeGraphics_make(filename, spec.slides_scale, spec.extra) + "\n"
            )

        self.register(DirectiveSpec(
            key="s",
            category=DirectiveCategory.STRUCTURAL,
            description="New section (notes) and frame (slides), optional [frame style]",
            handler=section_handler,
            aliases=["#"],
            examples=["s Merge sort [fragile]", "# Merge sort"],
        ))
        self.register(DirectiveSpec(
            key="[soh]",
            category=DirectiveCategory.STRUCTURAL,
            description="Slides-only heading",
            handler=slidesHeading_handler,
            examples=["[soh] Questions?"],
        ))
        self.register(DirectiveSpec(
            key="i",
            category=DirectiveCategory.STRUCTURAL,
            description="Open an itemize list",
            handler=listOpen_handler(EnvKind.ITEMIZE),
        ))
        self.register(DirectiveSpec(
            key="n",
            category=DirectiveCategory.STRUCTURAL,
            description="Open an enumerate list",
            handler=listOpen_handler(EnvKind.ENUMERATE),
        ))
        self.register(DirectiveSpec(
            key="d",
            category=DirectiveCategory.STRUCTURAL,
            description="Open a description list",
            handler=listOpen_handler(EnvKind.DESCRIPTION),
        ))
        self.register(DirectiveSpec(
            key="e",
            category=DirectiveCategory.STRUCTURAL,
            description="Close the innermost environment",
            handler=close_handler,
        ))
        self.register(DirectiveSpec(
            key="p",
            category=DirectiveCategory.STRUCTURAL,
            description="Page break in the notes",
            handler=pageBreak_handler,
        ))
        self.register(DirectiveSpec(
            key="q",
            category=DirectiveCategory.STRUCTURAL,
            description="Open a quote",
            handler=quote_handler,
            examples=["q Premature optimization is the root of all evil."],
        ))
        self.register(DirectiveSpec(
            key="t",
            category=DirectiveCategory.STRUCTURAL,
            description="Open a table with an explicit column spec",
            handler=table_handler,
            examples=["t {lrr}"],
        ))
        self.register(DirectiveSpec(
            key="g",
            category=DirectiveCategory.STRUCTURAL,
            description="Image: name[notes scale,slides scale,extra args]",
            handler=graphics_handler,
            examples=["g diagram[0.5,0.8]", "g photo[0.4,0.4,angle=90]"],
        ))

    def listDirectives_register(self) -> None:
        """Register list item markers"""

        def bullet_handler(scanner: "Scanner", directive: Directive) -> None:
            scanner.envs.item_add(EnvKind.ITEMIZE, directive.value, 0)

        def numbered_handler(scanner: "Scanner", directive: Directive) -> None:
            scanner.envs.item_add(EnvKind.ENUMERATE, directive.value, 0)

        def description_handler(scanner: "Scanner", directive: Directive) -> None:
            """Handle ': definition' - the term is the previous source line"""
            previous = scanner.line_previous()
            term: Optional[str] = ""
            if previous is not None and previous.lstrip().startswith(":"):
                # another definition of the same term
                term = None
            elif previous is not None and previous.strip():
                term = scanner.transformer.transform(previous.strip(), scanner.state).line
                scanner.mux.retract(scanner.state.line_number - 1)
            else:
                WARN("description item without a term on the previous line", scanner.state.line_number)
            scanner.envs.item_add(EnvKind.DESCRIPTION, directive.value, 0, label=term)

        self.register(DirectiveSpec(
            key="-",
            category=DirectiveCategory.LIST,
            description="Bullet item; '- [ sym ] text' sets a custom bullet",
            handler=bullet_handler,
            examples=["- first point", "- [ $\\star$ ] starred point"],
        ))
        self.register(DirectiveSpec(
            key="1.",
            category=DirectiveCategory.LIST,
            description="Numbered item (any N.)",
            handler=numbered_handler,
            pattern=r"\d+\.",
            examples=["1. first step"],
        ))
        self.register(DirectiveSpec(
            key=":",
            category=DirectiveCategory.LIST,
            description="Description item; the term is the previous line",
            handler=description_handler,
            examples=["Stack", ": last in, first out"],
        ))

    def scopeDirectives_register(self) -> None:
        """Register visibility scope directives"""

        def oneLine_handler(scope: Scope, size: str) -> Handler:
            def handler(scanner: "Scanner", directive: Directive) -> None:
                with scanner.mux.scoped(scope):
                    scanner.mux.emit(size + directive.value + "\n")
            return handler

        def regionBegin_handler(scope: Scope) -> Handler:
            def handler(scanner: "Scanner", directive: Directive) -> None:
                scanner.mux.scope_enter(scope)
                LOG(f"line {scanner.state.line_number}: {scope.value}-only region begins", level=2)
                if directive.value:
                    scanner.mux.emit(directive.value + "\n")
            return handler

        def regionEnd_handler(scope: Scope) -> Handler:
            def handler(scanner: "Scanner", directive: Directive) -> None:
                if scanner.state.scope is not scope:
                    WARN(f"end of {scope.value}-only region that was never begun", scanner.state.line_number)
                    return
                if directive.value:
                    scanner.mux.emit(directive.value + "\n")
                scanner.mux.scope_enter(Scope.BOTH)
                LOG(f"line {scanner.state.line_number}: {scope.value}-only region ends", level=2)
            return handler

        def verbatimBegin_handler(scanner: "Scanner", directive: Directive) -> None:
            scanner.state.leave_alone = True

        def verbatimEnd_handler(scanner: "Scanner", directive: Directive) -> None:
            scanner.state.leave_alone = False

        for key, description, aliases in (
            ("[so]", "Slides-only line", ["[slidesonly]"]),
            ("[sos]", "Slides-only line in small type", []),
            ("[sof]", "Slides-only line in footnote size", []),
            ("[sol]", "Slides-only line in Large type", []),
            ("[son]", "Slides-only line in normal size", []),
            ("[sot]", "Slides-only line in script size", []),
        ):
            self.register(DirectiveSpec(
                key=key,
                category=DirectiveCategory.SCOPE,
                description=description,
                handler=oneLine_handler(Scope.SLIDES_ONLY, SIZE_COMMANDS[key]),
                aliases=aliases,
            ))

        self.register(DirectiveSpec(
            key="[no]",
            category=DirectiveCategory.SCOPE,
            description="Notes-only line",
            handler=oneLine_handler(Scope.NOTES_ONLY, ""),
            aliases=["[notesonly]"],
        ))
        self.register(DirectiveSpec(
            key="[nos]",
            category=DirectiveCategory.SCOPE,
            description="Notes-only line in small type",
            handler=oneLine_handler(Scope.NOTES_ONLY, SIZE_COMMANDS["[nos]"]),
        ))
        self.register(DirectiveSpec(
            key="[sob]",
            category=DirectiveCategory.SCOPE,
            description="Begin slides-only region",
            handler=regionBegin_handler(Scope.SLIDES_ONLY),
            aliases=["[slidesonlybegin]"],
        ))
        self.register(DirectiveSpec(
            key="[soe]",
            category=DirectiveCategory.SCOPE,
            description="End slides-only region",
            handler=regionEnd_handler(Scope.SLIDES_ONLY),
            aliases=["[slidesonlyend]"],
        ))
        self.register(DirectiveSpec(
            key="[nob]",
            category=DirectiveCategory.SCOPE,
            description="Begin notes-only region",
            handler=regionBegin_handler(Scope.NOTES_ONLY),
            aliases=["[notesonlybegin]"],
        ))
        self.register(DirectiveSpec(
            key="[noe]",
            category=DirectiveCategory.SCOPE,
            description="End notes-only region",
            handler=regionEnd_handler(Scope.NOTES_ONLY),
            aliases=["[notesonlyend]"],
        ))
        self.register(DirectiveSpec(
            key="[bv]",
            category=DirectiveCategory.SCOPE,
            description="Begin verbatim region (ampersands left alone)",
            handler=verbatimBegin_handler,
        ))
        self.register(DirectiveSpec(
            key="[ev]",
            category=DirectiveCategory.SCOPE,
            description="End verbatim region",
            handler=verbatimEnd_handler,
        ))

    def layoutDirectives_register(self) -> None:
        """Register the two-column minipage layout"""

        def columnsBegin_handler(scanner: "Scanner", directive: Directive) -> None:
            """Handle tcb width height - left column of width*linewidth, height cm"""
            state = scanner.state
            parts = directive.value.split()
            try:
                width = float(parts[0])
                height = parts[1]
                float(height)
            except (IndexError, ValueError):
                WARN(f"'tcb' needs a width and a height, got '{directive.value}'", state.line_number)
                return
            state.mp_height = height
            state.col2_width = f"{1 - width - 0.10:.2f}"
            scanner.mux.emit(
                f"\\begin{{minipage}}[b][{height}cm][t]{{{parts[0]}\\linewidth}}\n", portable=None
            )

        def columnsSplit_handler(scanner: "Scanner", directive: Directive) -> None:
            state = scanner.state
            if not state.col2_width:
                WARN("'tcs' without a preceding 'tcb'", state.line_number)
                return
            scanner.mux.emit(
                "\\end{minipage}\n"
                f"\\begin{{minipage}}[b][{state.mp_height}cm][t]{{{state.col2_width}\\linewidth}}\n",
                portable=None,
            )

        def columnsEnd_handler(scanner: "Scanner", directive: Directive) -> None:
            state = scanner.state
            if not state.col2_width:
                WARN("'tce' without a preceding 'tcb'", state.line_number)
                return
            scanner.mux.emit("\\end{minipage}\n\n", portable=None)
            state.col2_width = ""
            state.mp_height = ""

        self.register(DirectiveSpec(
            key="tcb",
            category=DirectiveCategory.LAYOUT,
            description="Begin two-column layout: tcb <left width> <height cm>",
            handler=columnsBegin_handler,
            examples=["tcb 0.45 6"],
        ))
        self.register(DirectiveSpec(
            key="tcs",
            category=DirectiveCategory.LAYOUT,
            description="Split to the right column",
            handler=columnsSplit_handler,
        ))
        self.register(DirectiveSpec(
            key="tce",
            category=DirectiveCategory.LAYOUT,
            description="End two-column layout",
            handler=columnsEnd_handler,
        ))

    def commentDirectives_register(self) -> None:
        """Register comment keys"""

        def comment_handler(scanner: "Scanner", directive: Directive) -> None:
            LOG(f"line {scanner.state.line_number}: comment skipped", level=3)

        self.register(DirectiveSpec(
            key="%",
            category=DirectiveCategory.COMMENT,
            description="Table separator marker; ignored elsewhere",
            handler=comment_handler,
        ))
        self.register(DirectiveSpec(
            key="#%",
            category=DirectiveCategory.COMMENT,
            description="Comment line (any key starting with '#' other than '#')",
            handler=comment_handler,
            examples=["#% TODO add figure", "## old material"],
        ))
