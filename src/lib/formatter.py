"""
External formatting tools

Runs the TeX engine, the bibliography processor and pandoc on the written
artifacts, and removes the intermediate files they leave behind. Every
invocation is a single blocking call whose exit status decides success.
"""

import subprocess
from pathlib import Path
from typing import List, Optional, Sequence

from ..config.settings import AppSettings, appsettings
from .log import LOG, WARN
from .profile import Profile


NOTES_INTERMEDIATES = (".aux", ".log", ".out", ".run.xml", ".bcf")
SLIDES_INTERMEDIATES = (".aux", ".log", ".out", ".nav", ".snm", ".toc", ".run.xml", ".bcf")
CITATION_INTERMEDIATES = (".bbl", ".blg")
TWO_UP_INTERMEDIATES = (".tex", ".aux", ".log")


class Formatter:
    """
    Wrapper around the external formatting programs

    Args:
        workdir: Directory the artifacts live in; programs run there
        settings: Application settings (program names, pandoc format)
        profile: Author profile (two-up templates, stylesheet)
    """

    def __init__(self, workdir: Path | str, settings: AppSettings = appsettings, profile: Optional[Profile] = None) -> None:
        self.workdir = Path(workdir)
        self.settings = settings
        self.profile = profile

    def program_run(self, program: str, args: Sequence[str]) -> bool:
        """
        Run one external program in the work directory.

        Returns:
            True on a zero exit status
        """
        cmd = [program, *args]
        LOG(f"Running '{' '.join(cmd)}' in {self.workdir}", level=2)
        try:
            cp = subprocess.run(cmd, cwd=self.workdir, capture_output=True, text=True)
        except FileNotFoundError:
            WARN(f"{program} not found; is it installed and on PATH?")
            return False

        if cp.returncode != 0:
            WARN(f"{program} did not complete successfully (exit status {cp.returncode})")
            tail = (cp.stdout or cp.stderr or "").strip().splitlines()[-15:]
            if tail:
                LOG("\n".join(tail), level=2)
            return False

        LOG(f"{program} completed successfully", level=3)
        return True

    def tex_format(self, base: str, has_citations: bool = False) -> bool:
        """
        Typeset <base>.tex; with citations run the bibliography processor
        and a second pass.

        Returns:
            True if every pass succeeded
        """
        args = ["-interaction=nonstopmode", base]
        if not self.program_run(self.settings.tex_engine, args):
            return False
        if has_citations:
            if not self.program_run(self.settings.bib_engine, ["--quiet", base]):
                return False
            return self.program_run(self.settings.tex_engine, args)
        return True

    def twoUp_make(self, base: str) -> Optional[Path]:
        """
        Build <base>-2up.pdf with two notes pages per sheet.

        Returns:
            Path of the two-up PDF, or None if it could not be made
        """
        if self.profile is None or not self.profile.tex["nup_top"].strip():
            LOG("No two-up template in profile; skipping", level=2)
            return None

        name = f"{base}-2up"
        source = self.profile.tex["nup_top"].strip() + f"{{{base}.pdf}}\n" + self.profile.tex["nup_bottom"]
        (self.workdir / f"{name}.tex").write_text(source, encoding="utf-8")

        ok = self.program_run(self.settings.tex_engine, ["-interaction=nonstopmode", name])
        self.files_cleanUp(self.intermediates_list(name, TWO_UP_INTERMEDIATES))
        return self.workdir / f"{name}.pdf" if ok else None

    def pandoc_format(self, base: str, has_citations: bool = False) -> bool:
        """Render <base>.md to standalone <base>.html"""
        args = ["--standalone", f"--from={self.settings.pandoc_from}"]
        if self.profile is not None and self.profile.stylesheet:
            args.append(f"--include-in-header={self.profile.stylesheet}")
        if has_citations:
            args.append("--citeproc")
        args += [f"--output={base}.html", f"{base}.md"]
        return self.program_run(self.settings.pandoc, args)

    def intermediates_list(self, base: str, suffixes: Sequence[str], has_citations: bool = False) -> List[str]:
        names = [f"{base}{suffix}" for suffix in suffixes]
        if has_citations:
            names += [f"{base}{suffix}" for suffix in CITATION_INTERMEDIATES]
        return names

    def files_cleanUp(self, files: Sequence[str]) -> int:
        """
        Remove intermediate files that exist.

        Returns:
            Number of files removed
        """
        removed = 0
        for name in files:
            path = self.workdir / name
            if not path.exists():
                continue
            try:
                path.unlink()
                removed += 1
            except OSError as e:
                WARN(f"could not remove {path}: {e}")
        LOG(f"Removed {removed} intermediate file(s)", level=3)
        return removed
