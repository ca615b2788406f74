"""
Formatter tests

External programs are replaced by a recorder so the command lines,
the citation pass and the failure handling can be checked.
"""

import subprocess

import pytest

import snp.lib.formatter as formatter_module
from snp.config.settings import AppSettings
from snp.lib.formatter import Formatter, NOTES_INTERMEDIATES
from snp.lib.profile import Profile


SETTINGS = AppSettings(tex_engine="xelatex", bib_engine="biber", pandoc="pandoc")


@pytest.fixture
def recorder(monkeypatch):
    """Replace subprocess.run; set recorder.returncode or recorder.missing to fail"""

    class Recorder:
        returncode = 0
        missing = False

        def __init__(self):
            self.calls = []

        def __call__(self, cmd, **kwargs):
            self.calls.append(cmd)
            if self.missing:
                raise FileNotFoundError(cmd[0])
            return subprocess.CompletedProcess(cmd, self.returncode, stdout="some log", stderr="")

    rec = Recorder()
    monkeypatch.setattr(formatter_module.subprocess, "run", rec)
    return rec


class TestTeX:
    """TeX engine and bibliography passes"""

    def test_single_pass(self, recorder, tmp_path):
        assert Formatter(tmp_path, SETTINGS).tex_format("week1-notes")
        assert recorder.calls == [["xelatex", "-interaction=nonstopmode", "week1-notes"]]

    def test_citation_passes(self, recorder, tmp_path):
        assert Formatter(tmp_path, SETTINGS).tex_format("week1-notes", has_citations=True)
        assert [call[0] for call in recorder.calls] == ["xelatex", "biber", "xelatex"]
        assert recorder.calls[1] == ["biber", "--quiet", "week1-notes"]

    def test_failure_stops(self, recorder, tmp_path):
        recorder.returncode = 1
        assert not Formatter(tmp_path, SETTINGS).tex_format("week1-notes", has_citations=True)
        assert len(recorder.calls) == 1

    def test_missing_program(self, recorder, tmp_path):
        recorder.missing = True
        assert not Formatter(tmp_path, SETTINGS).tex_format("week1-notes")


class TestPandoc:
    """Portable export to HTML"""

    def test_arguments(self, recorder, tmp_path):
        assert Formatter(tmp_path, SETTINGS).pandoc_format("week1-notes", has_citations=True)
        cmd = recorder.calls[0]
        assert cmd[0] == "pandoc"
        assert "--standalone" in cmd
        assert "--citeproc" in cmd
        assert cmd[-2:] == ["--output=week1-notes.html", "week1-notes.md"]

    def test_no_citeproc_without_citations(self, recorder, tmp_path):
        Formatter(tmp_path, SETTINGS).pandoc_format("week1-notes")
        assert "--citeproc" not in recorder.calls[0]


class TestTwoUp:
    """Two notes pages per sheet"""

    def test_two_up(self, recorder, tmp_path):
        path = Formatter(tmp_path, SETTINGS, Profile()).twoUp_make("week1-notes")
        assert path == tmp_path / "week1-notes-2up.pdf"
        assert recorder.calls == [["xelatex", "-interaction=nonstopmode", "week1-notes-2up"]]
        assert not (tmp_path / "week1-notes-2up.tex").exists()

    def test_no_profile(self, recorder, tmp_path):
        assert Formatter(tmp_path, SETTINGS).twoUp_make("week1-notes") is None
        assert recorder.calls == []


class TestCleanUp:
    """Intermediate file removal"""

    def test_intermediates_list(self):
        names = Formatter(".", SETTINGS).intermediates_list("a", NOTES_INTERMEDIATES, has_citations=True)
        assert "a.aux" in names
        assert "a.bbl" in names
        assert "a.tex" not in names

    def test_files_cleanUp(self, tmp_path):
        (tmp_path / "a.aux").write_text("x")
        (tmp_path / "a.log").write_text("x")
        removed = Formatter(tmp_path, SETTINGS).files_cleanUp(["a.aux", "a.log", "a.out"])
        assert removed == 2
        assert not (tmp_path / "a.aux").exists()
