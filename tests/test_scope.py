"""
Visibility scope tests

Tests one-line and region scope tags, their effect on the three streams,
the notes/slides conflict and environment balance across scopes.
"""

import pytest

from snp.lib.errors import ScopeConflictError
from snp.lib.multiplexer import portableForm_make
from snp.lib.scanner import Scanner
from snp.models.scan import Scope


def scan(source):
    return Scanner(source).scan()


class TestOneLineTags:
    """[so], [no] and the sized variants"""

    def test_bracketed_prose_kept_in_portable(self):
        result = scan("[Note] read chapter 3")
        assert result.buffers.portable == ["[Note] read chapter 3"]
        assert portableForm_make("[Note] read chapter 3") == "[Note] read chapter 3"
        assert portableForm_make("[sob] first") == "first"

    def test_slides_only_and_notes_only(self):
        result = scan("[so] Only slides\n[no] Only notes\nBoth")
        assert result.buffers.notes.text() == "Only notes\nBoth\n"
        assert result.buffers.slides.text() == "Only slides\nBoth\n"

    def test_portable_skips_notes_only(self):
        result = scan("[so] Only slides\n[no] Only notes\nBoth")
        assert result.buffers.portable == ["Only slides", "Both"]

    def test_long_aliases(self):
        result = scan("[slidesonly] S\n[notesonly] N")
        assert result.buffers.slides.text() == "S\n"
        assert result.buffers.notes.text() == "N\n"

    def test_sized_slides_line(self):
        result = scan("[sos] Small print")
        assert result.buffers.slides.text() == "\\small\nSmall print\n"
        assert result.buffers.notes.text() == ""

    def test_scope_restored_after_line(self):
        result = scan("[so] x")
        assert result.state.scope is Scope.BOTH


class TestRegions:
    """[sob]/[soe] and [nob]/[noe]"""

    def test_slides_region(self):
        result = scan("[sob]\nA\n[soe]\nB")
        assert result.buffers.slides.text() == "A\nB\n"
        assert result.buffers.notes.text() == "B\n"
        assert result.buffers.portable == ["A", "B"]

    def test_notes_region(self):
        result = scan("[nob]\nA\nB\n[noe]\nC")
        assert result.buffers.notes.text() == "A\nB\nC\n"
        assert result.buffers.slides.text() == "C\n"
        assert result.buffers.portable == ["C"]

    def test_region_tags_with_text(self):
        result = scan("[sob] first\n[soe] last")
        assert result.buffers.slides.text() == "first\nlast\n"
        assert result.buffers.notes.text() == ""

    def test_unbalanced_end_is_ignored(self):
        result = scan("[soe]\nText")
        assert result.buffers.notes.text() == "Text\n"
        assert result.state.scope is Scope.BOTH

    def test_unclosed_region_is_reset(self):
        result = scan("[nob]\nA")
        assert result.state.scope is Scope.BOTH
        assert result.buffers.notes.text() == "A\n"

    def test_page_break_in_slides_region_ignored(self):
        result = scan("[sob]\np\n[soe]")
        assert "\\newpage" not in result.buffers.notes.text()


class TestConflicts:
    """Notes-only and slides-only may never be in force together"""

    def test_region_inside_region(self):
        with pytest.raises(ScopeConflictError) as excinfo:
            scan("[sob]\n[nob]")
        assert excinfo.value.line_number == 2

    def test_line_tag_inside_region(self):
        with pytest.raises(ScopeConflictError):
            scan("[nob]\n[so] clash")


class TestBalance:
    """Closers go to the streams their openers went to"""

    def test_list_opened_in_region_closed_outside(self):
        result = scan("[sob]\n- a\n[soe]\n\nAfter")
        slides = result.buffers.slides.text()
        notes = result.buffers.notes.text()

        assert slides.count("\\begin{itemize}") == slides.count("\\end{itemize}") == 1
        assert "\\begin{itemize}" not in notes
        assert "\\end{itemize}" not in notes

    def test_notes_balanced(self):
        source = "s A\n- x\n    - y\n\n1. z\n\n| a | b |\n|---|---|\n| 1 | 2 |\n\nq end"
        notes = scan(source).buffers.notes.text()
        assert notes.count("\\begin{") == notes.count("\\end{")

    def test_item_after_slides_region_reopens_list(self):
        result = scan("[sob]\n- a\n[soe]\n- b")
        notes = result.buffers.notes.text()
        slides = result.buffers.slides.text()

        assert notes.startswith("\\begin{itemize}")
        assert "\\item b" in notes
        assert "\\item a" not in notes
        assert notes.count("\\begin{itemize}") == notes.count("\\end{itemize}") == 1
        assert slides.count("\\begin{itemize}") == slides.count("\\end{itemize}") == 2
        assert slides.index("\\item a") < slides.index("\\end{itemize}") < slides.index("\\item b")
        assert result.buffers.portable == ["- a", "- b"]

    def test_item_after_notes_region_reopens_list(self):
        result = scan("[nob]\n- a\n    - deeper\n[noe]\n- b")
        slides = result.buffers.slides.text()
        notes = result.buffers.notes.text()

        assert slides.count("\\begin{itemize}") == slides.count("\\end{itemize}") == 1
        assert "\\item b" in slides
        assert notes.count("\\begin{itemize}") == notes.count("\\end{itemize}") == 3
