"""
Directive registry tests

Tests key lookup, aliases, pattern families and category listing.
"""

from snp.lib.directives import DirectiveRegistry, year_extract
from snp.models.directives import DirectiveCategory
from snp.models.scan import Directive


class TestLookup:
    """Keys, aliases and families"""

    def test_plain_key(self):
        registry = DirectiveRegistry()
        assert registry.spec_get("s").category is DirectiveCategory.STRUCTURAL

    def test_aliases_share_spec(self):
        registry = DirectiveRegistry()
        assert registry.spec_get("#") is registry.spec_get("s")
        assert registry.spec_get("[slidesonly]") is registry.spec_get("[so]")
        assert registry.spec_get("[notesonlybegin]") is registry.spec_get("[nob]")

    def test_numbered_family(self):
        registry = DirectiveRegistry()
        assert registry.spec_get("1.") is registry.spec_get("12.")
        assert registry.spec_get("12") is None

    def test_prose_has_no_handler(self):
        registry = DirectiveRegistry()
        assert registry.get("Hello") is None
        assert registry.get("") is None

    def test_list_by_category(self):
        registry = DirectiveRegistry()
        keys = [spec.key for spec in registry.directives_listByCategory(DirectiveCategory.LAYOUT)]
        assert keys == ["tcb", "tcs", "tce"]
        scope_keys = [spec.key for spec in registry.directives_listByCategory(DirectiveCategory.SCOPE)]
        assert scope_keys.count("[so]") == 1


class TestLineParsing:
    """Directive.fromLine"""

    def test_key_and_value(self):
        directive = Directive.fromLine("s Introduction [plain]")
        assert directive.key == "s"
        assert directive.value == "Introduction [plain]"

    def test_hash_comments_collapse(self):
        assert Directive.fromLine("## old").key == "#%"
        assert Directive.fromLine("#%").key == "#%"
        assert Directive.fromLine("# Title").key == "#"

    def test_indented_line_has_empty_key(self):
        assert Directive.fromLine("    - nested").key == ""


class TestYear:
    """Year extraction from the date directive"""

    def test_after_last_comma(self):
        assert year_extract("Monday 14 October, 2024") == 2024

    def test_last_four_digits(self):
        assert year_extract("2023-2024 term") == 2024

    def test_none(self):
        assert year_extract("next week") is None
