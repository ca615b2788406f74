"""
Basic scanner tests - simplest documents

Tests empty sources, sections, prose, metadata directives and the
structural keys that do not involve lists or scopes.
"""

import contextvars
from datetime import date
from types import SimpleNamespace

import pytest

from snp.lib.errors import DirectiveValueError, YearMismatchError
from snp.lib.log import state_connectToLogger
from snp.lib.scanner import Scanner


def scan(source, **kwargs):
    return Scanner(source, **kwargs).scan()


class TestEmptyAndSimple:
    """Empty sources and plain prose"""

    def test_empty_source(self):
        result = scan("")
        assert result.buffers.notes.text() == ""
        assert result.buffers.slides.text() == ""
        assert result.buffers.portable == []
        assert result.meta.slides_count == 0

    def test_prose_goes_everywhere(self):
        result = scan("Hello world")
        assert result.buffers.notes.text() == "Hello world\n"
        assert result.buffers.slides.text() == "Hello world\n"
        assert result.buffers.portable == ["Hello world"]

    def test_comments_produce_nothing(self):
        result = scan("% a comment\n#% another\n## third\nText")
        assert result.buffers.notes.text() == "Text\n"
        assert result.buffers.portable == ["Text"]


class TestSections:
    """Section headings and slide frames"""

    SOURCE = "s Introduction\n- one\n- two\n\nPara"

    def test_section_with_list_notes(self):
        result = scan(self.SOURCE)
        assert result.buffers.notes.text() == (
            "\n\\section{Introduction}\n\\normalsize\n"
            "\\begin{itemize}  % auto-opened by list detector\n"
            "  \\item one\n"
            "  \\item two\n"
            "\\end{itemize} % closed by blank line detector\n"
            "Para\n"
        )

    def test_section_with_list_slides(self):
        result = scan(self.SOURCE)
        assert result.buffers.slides.text() == (
            "\\end{frame}\n\n\\begin{frame}\\frametitle{Introduction}\n"
            "\\begin{itemize}  % auto-opened by list detector\n"
            "  \\item one\n"
            "  \\item two\n"
            "\\end{itemize} % closed by blank line detector\n"
            "Para\n"
        )

    def test_section_with_list_portable(self):
        result = scan(self.SOURCE)
        assert result.buffers.portable == ["# Introduction", "- one", "- two", "", "Para"]

    def test_hash_alias_and_count(self):
        result = scan("# One\ntext\ns Two\ntext")
        assert result.meta.slides_count == 2
        assert "\\section{One}" in result.buffers.notes.text()
        assert "\\frametitle{Two}" in result.buffers.slides.text()

    def test_frame_style(self):
        result = scan("s Code [fragile]")
        assert "\\begin{frame}[fragile]\\frametitle{Code}" in result.buffers.slides.text()
        assert "\\section{Code}" in result.buffers.notes.text()

    def test_slides_only_heading(self):
        """[soh] opens an unnumbered frame and no notes section"""
        result = scan("[soh] Questions?")
        assert "\\begin{frame}[noframenumbering]\\frametitle{Questions?}" in result.buffers.slides.text()
        assert "\\section" not in result.buffers.notes.text()
        assert result.buffers.portable == ["# Questions?"]

    def test_new_section_closes_lists(self):
        result = scan("s A\n- x\ns B")
        notes = result.buffers.notes.text()
        assert "\\end{itemize} % auto-closed by new section" in notes
        assert notes.index("\\end{itemize}") < notes.index("\\section{B}")


class TestMetadata:
    """T, X, N, Z, D and [preamble]"""

    def test_title_code_name_date(self):
        source = "T Sorting\nX CS101\nN Intro to Programming\nZ Monday 14 October, 2024"
        result = scan(source, today=date(2024, 10, 14))
        assert result.meta.lecture_title == "Sorting"
        assert result.meta.course_code == "CS101"
        assert result.meta.course_name == "Intro to Programming"
        assert result.meta.date == "Monday 14 October, 2024"
        assert result.buffers.notes.text() == ""
        assert result.buffers.portable == []

    def test_year_mismatch_is_fatal(self):
        with pytest.raises(YearMismatchError) as excinfo:
            scan("T x\nZ Monday 14 October, 2024", today=date(2025, 1, 6))
        assert excinfo.value.line_number == 2
        assert "2024" in str(excinfo.value)

    def test_date_without_year(self):
        result = scan("Z sometime soon", today=date(2024, 10, 14))
        assert result.meta.date == "sometime soon"

    def test_debug_level_raises_verbosity(self):
        state = SimpleNamespace(verbosity=1)

        def run():
            state_connectToLogger(state)
            scan("D 2")

        contextvars.copy_context().run(run)
        assert state.verbosity == 2

    def test_debug_level_must_be_integer(self):
        with pytest.raises(DirectiveValueError):
            scan("D lots")

    def test_preamble_lines(self):
        result = scan("[preamble] \\usepackage{tikz}\n[preamble] \\usepackage{xcolor}")
        assert result.meta.preamble == "\n\\usepackage{tikz}\n\\usepackage{xcolor}"


class TestStructural:
    """Page breaks, quotes, manual close and two-column layout"""

    def test_page_break_is_notes_only(self):
        result = scan("A\np\nB")
        assert result.buffers.notes.text() == "A\n\n\\newpage\nB\n"
        assert result.buffers.slides.text() == "A\nB\n"
        assert result.buffers.portable == ["A", "B"]

    def test_quote(self):
        result = scan("q To be or not to be")
        assert result.buffers.notes.text() == (
            "\\begin{quote}\nTo be or not to be\n"
            "\\end{quote} % auto-closed at end of document\n"
        )
        assert result.buffers.portable == ["> To be or not to be"]

    def test_manual_close(self):
        result = scan("i\n- a\ne\nAfter")
        assert result.buffers.notes.text() == (
            "\\begin{itemize}\n"
            "  \\item a\n"
            "\\end{itemize} % manually closed\n"
            "After\n"
        )

    def test_close_with_nothing_open(self):
        result = scan("e\nText")
        assert result.buffers.notes.text() == "Text\n"

    def test_two_columns(self):
        result = scan("tcb 0.45 6\nLeft\ntcs\nRight\ntce")
        assert result.buffers.notes.text() == (
            "\\begin{minipage}[b][6cm][t]{0.45\\linewidth}\n"
            "Left\n"
            "\\end{minipage}\n"
            "\\begin{minipage}[b][6cm][t]{0.45\\linewidth}\n"
            "Right\n"
            "\\end{minipage}\n\n"
        )
        assert result.buffers.portable == ["Left", "Right"]


class TestDocumentFlags:
    """Citations latch and TeX markup detection"""

    def test_citations_latch(self):
        result = scan("See @smith2001.\nAnd [@doe2010].")
        assert result.meta.has_citations
        assert result.citations == ["smith2001", "doe2010"]

    def test_raw_cite_latches(self):
        result = scan("As shown \\cite{knuth}")
        assert result.meta.has_citations
        assert not result.state.pure_markdown

    def test_no_citations(self):
        result = scan("Plain text")
        assert not result.meta.has_citations
        assert result.state.pure_markdown
