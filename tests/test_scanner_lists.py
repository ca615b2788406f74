"""
List handling tests

Tests indentation-driven nesting, list type changes, description
items built from the previous line, depth clamping and custom bullets.
"""

import pytest

from snp.lib.scanner import Scanner


def scan(source):
    return Scanner(source).scan()


class TestDepthMapping:
    """Leading spaces to nesting depth"""

    @pytest.mark.parametrize("spaces,depth", [
        (0, 0),
        (3, 0),
        (4, 1),
        (8, 1),
        (9, 2),
        (12, 2),
    ])
    def test_depth_fromIndent(self, spaces, depth):
        assert Scanner("").envs.depth_fromIndent(spaces) == depth

    def test_deep_items_are_clamped(self):
        assert Scanner("").envs.depth_fromIndent(16) == 2
        assert Scanner("").envs.depth_fromIndent(40) == 2


class TestNesting:
    """Indented items open and close nested lists"""

    def test_nested_bullets(self):
        result = scan("- a\n    - b\n- c")
        assert result.buffers.notes.text() == (
            "\\begin{itemize}  % auto-opened by list detector\n"
            "  \\item a\n"
            "  \\begin{itemize}  % auto-opened by auto-indenter\n"
            "    \\item b\n"
            "  \\end{itemize} % auto-closed by auto-indenter\n"
            "  \\item c\n"
            "\\end{itemize} % auto-closed at end of document\n"
        )
        assert result.buffers.portable == ["- a", "    - b", "- c"]

    def test_nested_numbers(self):
        result = scan("1. first\n    1. inner")
        notes = result.buffers.notes.text()
        assert notes.count("\\begin{enumerate}") == 2
        assert notes.count("\\end{enumerate}") == 2
        assert "    \\item inner\n" in notes

    def test_list_type_change(self):
        result = scan("- a\n1. b")
        notes = result.buffers.notes.text()
        assert "\\end{itemize} % list type changed\n" in notes
        assert notes.index("\\end{itemize}") < notes.index("\\begin{enumerate}")
        assert "\\item b" in notes

    def test_stack_drained_at_end(self):
        result = scan("- a\n    - b\n            - c")
        notes = result.buffers.notes.text()
        assert notes.count("\\begin{itemize}") == notes.count("\\end{itemize}") == 3
        assert result.state.indent_level == 0


class TestDescription:
    """': definition' takes its term from the previous line"""

    def test_description_item(self):
        result = scan("Stack\n: last in, first out")
        notes = result.buffers.notes.text()
        assert notes == (
            "\\begin{description}  % auto-opened by list detector\n"
            "  \\item[Stack] last in, first out\n"
            "\\end{description} % auto-closed at end of document\n"
        )
        assert result.buffers.slides.text() == notes
        assert result.buffers.portable == ["Stack", ": last in, first out"]

    def test_term_is_transformed(self):
        result = scan("**Queue**\n: first in, first out")
        assert "\\item[\\textbf{Queue}] first in, first out" in result.buffers.notes.text()

    def test_second_definition(self):
        result = scan("Stack\n: LIFO\n: push and pop")
        notes = result.buffers.notes.text()
        assert "\\item[Stack] LIFO\n" in notes
        assert "\\item push and pop\n" in notes
        assert notes.count("\\begin{description}") == 1


class TestCustomBullet:
    """'- [ sym ] text' swaps the bullet until the list closes"""

    def test_custom_bullet(self):
        result = scan("- [ $\\star$ ] starred\n- plain\n\nAfter")
        notes = result.buffers.notes.text()
        assert "\\renewcommand\\labelitemi{$\\star$}\n" in notes
        assert "\\item starred\n" in notes
        assert "\\end{itemize} % closed by blank line detector\n\\renewcommand\\labelitemi{\\textbullet}\n" in notes
        assert not result.state.custom_label
