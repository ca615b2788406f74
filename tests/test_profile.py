"""
Profile loading tests
"""

import pytest

from snp.lib.profile import Profile, ProfileError


def profile_write(root, name, text):
    directory = root / name
    directory.mkdir()
    (directory / "profile.yaml").write_text(text)
    return root


class TestDefaultProfile:
    """The profile shipped with the package"""

    def test_loads(self):
        profile = Profile()
        assert profile.name == "default"
        assert profile.author1
        assert profile.author2 == ""

    def test_templates(self):
        profile = Profile()
        assert "\\documentclass" in profile.tex["notes_preamble"]
        assert "beamer" in profile.tex["slides_preamble"]
        assert profile.tex["begin_document"].strip() == "\\begin{document}"

    def test_config_get(self):
        profile = Profile()
        assert "pdfpages" in profile.config_get("tex.nup_top", "")
        assert profile.config_get("tex.nothing", "fallback") == "fallback"


class TestCustomProfiles:
    """Profiles from a user directory"""

    def test_custom_profile(self, tmp_path):
        root = profile_write(tmp_path, "jo", "author1: Jo Bloggs\nemail1: jo@example.org\ntex:\n  nup_top: ''\n")
        profile = Profile("jo", root)
        assert profile.author1 == "Jo Bloggs"
        assert profile.email1 == "jo@example.org"
        assert profile.tex["nup_top"] == ""

    def test_unknown_keys_ignored(self, tmp_path):
        root = profile_write(tmp_path, "odd", "author1: A\ncolour: blue\n")
        profile = Profile("odd", root)
        assert profile.author1 == "A"
        with pytest.raises(AttributeError):
            profile.colour

    def test_missing_profile(self, tmp_path):
        with pytest.raises(ProfileError):
            Profile("absent", tmp_path)

    def test_missing_yaml(self, tmp_path):
        (tmp_path / "empty").mkdir()
        with pytest.raises(ProfileError):
            Profile("empty", tmp_path)

    def test_not_a_mapping(self, tmp_path):
        root = profile_write(tmp_path, "list", "- one\n- two\n")
        with pytest.raises(ProfileError):
            Profile("list", root)
