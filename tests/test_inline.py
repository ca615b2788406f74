"""
Inline transform tests

Tests each rewrite rule, the guards that suppress them, citation key
extraction and the stability of already-transformed lines.
"""

import pytest

from snp.lib.inline import InlineTransformer, RULE_ORDER
from snp.models.scan import ScanState


@pytest.fixture
def transformer():
    return InlineTransformer()


class TestPunctuation:
    """Smart punctuation and escapes"""

    def test_ellipsis(self, transformer):
        assert transformer.transform("wait...").line == "wait\\ldots{}"

    def test_quotes(self, transformer):
        """Straight double quotes become TeX open/close quotes"""
        assert transformer.transform('say "hi" now').line == "say ``hi'' now"

    def test_percent_after_number(self, transformer):
        assert transformer.transform("50% of runs").line == "50\\% of runs"

    def test_superscript(self, transformer):
        assert transformer.transform("x^2^ grows").line == "x\\textsuperscript{2} grows"

    def test_dollar_amount(self, transformer):
        assert transformer.transform("costs $5 each").line == "costs \\$5 each"

    def test_math_dollar_untouched(self, transformer):
        assert transformer.transform("where $x$ is").line == "where $x$ is"

    def test_fraction(self, transformer):
        assert transformer.transform("take 1/2 cup").line == "take $\\frac{1}{2}$ cup"

    def test_fraction_needs_spaces(self, transformer):
        """Dates and paths are not fractions"""
        assert transformer.transform("on 3/4/2024").line == "on 3/4/2024"


class TestAmpersand:
    """Ampersand escaping and its guards"""

    def test_escaped_in_prose(self, transformer):
        assert transformer.transform("A & B").line == "A  \\&  B"

    def test_left_alone_in_table(self, transformer):
        state = ScanState(in_table=True)
        assert transformer.transform("a & b \\\\", state).line == "a & b \\\\"

    def test_left_alone_in_verbatim(self, transformer):
        state = ScanState(leave_alone=True)
        assert transformer.transform("x & y", state).line == "x & y"

    def test_left_alone_on_uri_line(self, transformer):
        line = "see https://example.org/?a=1&b=2"
        assert transformer.transform(line).line == line


class TestEmphasisAndLinks:
    """Bold, italic, links and images"""

    def test_bold_before_italic(self, transformer):
        result = transformer.transform("**bold** and *it*")
        assert result.line == "\\textbf{bold} and \\textit{it}"
        assert result.matched == ["bold", "italic"]

    def test_link(self, transformer):
        assert transformer.transform("[site](http://x.org)").line == "\\href{http://x.org}{site}"

    def test_image_plain(self, transformer):
        result = transformer.transform("![](fig.png)")
        assert result.line == "\\includegraphics{fig.png}"
        assert not result.center_image

    def test_image_svg_and_centring(self, transformer):
        """align=center is consumed; svg points at the pdf conversion"""
        result = transformer.transform("![a](fig.svg){width=50%,align=center}")
        assert result.line == "\\includegraphics[width=0.5\\linewidth]{fig.pdf}"
        assert result.center_image


class TestCitations:
    """Citation rewriting and key collection"""

    def test_in_text_keys(self, transformer):
        result = transformer.transform("See @smith2001 and @doe2010.")
        assert result.line == "See \\citet{smith2001} and \\citet{doe2010}."
        assert result.citations == ["smith2001", "doe2010"]

    def test_in_text_with_locator(self, transformer):
        result = transformer.transform("@knuth1998 [p. 12] shows")
        assert result.line == "\\citet[p. 12]{knuth1998} shows"

    def test_parenthetical(self, transformer):
        result = transformer.transform("sorted [@smith2001]")
        assert result.line == "sorted \\citep{smith2001}"

    def test_parenthetical_prefix_suffix(self, transformer):
        result = transformer.transform("[see @a; @b, p. 3]")
        assert result.line == "\\citep[see][p. 3]{a,b}"
        assert result.citations == ["a", "b"]

    def test_email_is_not_citation(self, transformer):
        result = transformer.transform("mail bob@example.com")
        assert result.line == "mail bob@example.com"
        assert result.citations == []


class TestStability:
    """Rule table properties"""

    def test_plain_line_unchanged(self, transformer):
        result = transformer.transform("Nothing to see here")
        assert result.line == "Nothing to see here"
        assert not result.changed

    @pytest.mark.parametrize("line", [
        "**bold** and *it* with @smith2001",
        'a "quote" costs $5 & 50% more...',
        "take 1/2 of [@a; @b] x^2^",
    ])
    def test_transform_is_idempotent(self, transformer, line):
        once = transformer.transform(line).line
        assert transformer.transform(once).line == once

    def test_rule_order(self):
        assert RULE_ORDER[0] == "ellipsis"
        assert RULE_ORDER.index("bold") < RULE_ORDER.index("italic")
        assert RULE_ORDER.index("citation-parenthetical") < RULE_ORDER.index("citation-in-text")
        assert RULE_ORDER[-1] == "citation-in-text"
