"""
Compiler for scanned snp documents

Wraps the scanned notes, slides and portable buffers in their target
boilerplate, writes the three artifacts and hands each to the external
formatter. The three targets render concurrently and independently.
"""

import contextvars
from concurrent.futures import ThreadPoolExecutor, as_completed
from pathlib import Path
from typing import Any, Callable, Dict, Optional

import yaml

from ..config.settings import AppSettings, appsettings
from ..models.document import ScanResult, TargetResult
from ..models.scan import Target
from .formatter import (
    Formatter,
    NOTES_INTERMEDIATES,
    SLIDES_INTERMEDIATES,
)
from .log import LOG, WARN
from .profile import Profile


class Compiler:
    """
    Renders a ScanResult into notes, slides and portable documents

    Responsibilities:
    - Build target-specific document boilerplate
    - Write the .tex and .md artifacts
    - Run the formatter for each target concurrently
    - Clean up intermediates of successful targets only
    """

    def __init__(
        self,
        result: ScanResult,
        output_dir: str | Path,
        profile: Profile,
        basename: str,
        settings: AppSettings = appsettings,
        formatter: Optional[Formatter] = None,
        input_dir: str | Path = ".",
    ) -> None:
        """
        Initialize compiler

        Args:
            result: Finished scan
            output_dir: Directory for artifacts
            profile: Author profile with the TeX templates
            basename: Input file stem; artifacts are <basename>-notes.tex etc.
            settings: Application settings
            formatter: External formatter (default: one working in output_dir)
            input_dir: Directory images are found in
        """
        self.result = result
        self.meta = result.meta
        self.output_dir = Path(output_dir)
        self.profile = profile
        self.basename = basename.lower()
        self.settings = settings
        self.formatter = formatter or Formatter(self.output_dir, settings, profile)
        self.input_dir = Path(input_dir)

    def compile(self) -> Dict[str, Any]:
        """
        Render all three targets and wait for every one of them.

        Returns:
            dict with status (all targets succeeded), per-target results,
            artifact paths and the slide count
        """
        LOG("Starting render of notes, slides and portable export...", level=2)
        self.output_dir.mkdir(parents=True, exist_ok=True)

        results: Dict[Target, TargetResult] = {}
        with ThreadPoolExecutor(max_workers=len(Target)) as executor:
            futures = {
                executor.submit(contextvars.copy_context().run, self.target_render, target): target
                for target in Target
            }
            for future in as_completed(futures):
                target = futures[future]
                results[target] = future.result()
                LOG(f"{target.value} finished: {'ok' if results[target].success else 'FAILED'}", level=2)

        ordered = {target.value: results[target] for target in Target}
        return {
            'status': all(r.success for r in ordered.values()),
            'targets': ordered,
            'outputs': {name: str(r.artifact) for name, r in ordered.items() if r.artifact},
            'slide_count': self.meta.slides_count,
        }

    def target_render(self, target: Target) -> TargetResult:
        """
        Render one target; any exception becomes a failed result so the
        sibling targets are unaffected.
        """
        renderers: Dict[Target, Callable[[], TargetResult]] = {
            Target.NOTES: self.notes_render,
            Target.SLIDES: self.slides_render,
            Target.PORTABLE: self.portable_render,
        }
        try:
            return renderers[target]()
        except Exception as e:
            WARN(f"rendering {target.value} failed: {e}")
            return TargetResult(target=target, success=False, message=str(e))

    def artifact_write(self, name: str, text: str) -> Path:
        path = self.output_dir / name
        path.write_text(text, encoding="utf-8")
        LOG(f"Wrote {path}", level=2)
        return path

    def notes_render(self) -> TargetResult:
        base = f"{self.basename}-notes"
        result = TargetResult(target=Target.NOTES)
        result.artifact = self.artifact_write(f"{base}.tex", self.notesDocument_build())

        if not self.settings.run_formatters:
            result.success = True
            return result

        LOG("====> Formatting notes with TeX", level=1)
        result.formatted = True
        result.success = self.formatter.tex_format(base, self.meta.has_citations)
        if not result.success:
            result.message = "TeX failed; intermediates kept"
            WARN(f"notes could not be formatted; see {base}.log")
            return result

        result.output = self.output_dir / f"{base}.pdf"
        self.formatter.files_cleanUp(
            self.formatter.intermediates_list(base, NOTES_INTERMEDIATES, self.meta.has_citations)
        )
        two_up = self.formatter.twoUp_make(base)
        if two_up is not None:
            result.extras['two_up'] = str(two_up)
        return result

    def slides_render(self) -> TargetResult:
        base = f"{self.basename}-slides"
        result = TargetResult(target=Target.SLIDES)
        result.artifact = self.artifact_write(f"{base}.tex", self.slidesDocument_build())

        if not self.settings.run_formatters:
            result.success = True
            return result

        LOG("====> Formatting slides with TeX", level=1)
        result.formatted = True
        result.success = self.formatter.tex_format(base, self.meta.has_citations)
        if not result.success:
            result.message = "TeX failed; intermediates kept"
            WARN(f"slides could not be formatted; see {base}.log")
            return result

        result.output = self.output_dir / f"{base}.pdf"
        self.formatter.files_cleanUp(
            self.formatter.intermediates_list(base, SLIDES_INTERMEDIATES, self.meta.has_citations)
        )
        return result

    def portable_render(self) -> TargetResult:
        base = f"{self.basename}-notes"
        result = TargetResult(target=Target.PORTABLE)
        result.artifact = self.artifact_write(f"{base}.md", self.portableDocument_build())

        if not self.settings.run_formatters:
            result.success = True
            return result

        LOG("====> Formatting notes with pandoc", level=1)
        result.formatted = True
        result.success = self.formatter.pandoc_format(base, self.meta.has_citations)
        if result.success:
            result.output = self.output_dir / f"{base}.html"
        else:
            result.message = "pandoc failed"
        return result

    def commonPreamble_build(self) -> str:
        """
        Preamble shared by notes and slides: packages, PDF metadata,
        graphics path, bibliography and any [preamble] lines.
        """
        meta = self.meta
        profile = self.profile
        parts = [profile.tex["preamble_common"]]
        parts.append(
            "\\hypersetup{\n"
            f"    pdftitle    = {{{meta.course_code}: {meta.course_name}}},\n"
            f"    pdfsubject  = {{{meta.lecture_title}}},\n"
            f"    pdfkeywords = {{{meta.course_name}  {meta.lecture_title}}},\n"
            f"    pdfauthor   = {{{profile.author1}, {profile.affiliation}}},\n"
            "}\n"
        )
        parts.append(f"\\graphicspath{{{{{self.input_dir.resolve().as_posix()}/}}}}\n")
        if profile.bibliography:
            parts.append(f"\\addbibresource{{{profile.bibliography}}}\n")
        if meta.preamble.strip():
            parts.append(meta.preamble.strip("\n") + "\n")
        return "".join(parts)

    def notesDocument_build(self) -> str:
        """
        Complete notes document (article class)

        Returns:
            TeX source of the notes
        """
        meta = self.meta
        profile = self.profile

        author = f"\\author{{{profile.author1}\\\\\\href{{mailto:{profile.email1}}}{{{profile.email1}}}"
        if profile.author2:
            author += f"\\\\  \\\\ {profile.author2}\\\\ \\href{{mailto:{profile.email2}}}{{{profile.email2}}}"
        author += "}\n\n"

        top = (
            profile.tex["notes_preamble"]
            + self.commonPreamble_build()
            + f"\\title{{{meta.course_code}: {meta.course_name}\\\\{meta.lecture_title}}}\n"
            + author
            + f"\\lfoot{{{meta.course_code} ({meta.date.strip()})}}\n"
            + f"\\rfoot{{{meta.lecture_title}}}\n"
        )
        if meta.date:
            top += f"\\date{{{meta.date}}}\n"
        top += profile.tex["begin_document"] + profile.tex["notes_begin_document"]

        bottom = "\n"
        if meta.has_citations:
            bottom += "\\printbibliography\n"
        bottom += "\\end{document}\n"

        return top + self.result.buffers.notes.text() + bottom

    def slidesDocument_build(self) -> str:
        """
        Complete slides document (beamer class)

        The body begins inside the title frame opened by the profile; every
        section closes the previous frame, so the body ends inside a frame.
        """
        meta = self.meta
        profile = self.profile

        top = profile.tex["slides_preamble"] + self.commonPreamble_build()
        top += f"\\title{{{meta.lecture_title}}}\n\\subtitle{{{meta.course_code} {meta.course_name}}}\n"

        if profile.author2:
            top += (
                "\\author{\n"
                "\\small\n"
                "\\texorpdfstring{\n"
                "  \\begin{columns}\n"
                "    \\column{0.45\\linewidth}\n      \\centering\n"
                f"      {profile.author1}\\newline\\href{{mailto:{profile.email1}}}{{{profile.email1}}}\n"
                "    \\column{0.45\\linewidth}\n      \\centering\n"
                f"      {profile.author2}\\newline\\href{{mailto:{profile.email2}}}{{{profile.email2}}}\n"
                f"  \\end{{columns}}\n }}{{{profile.author1} and {profile.author2}}}\n}}\n\n"
            )
        else:
            top += (
                f"\\author{{{profile.author1}\n"
                f"\\newline$<$\\href{{mailto:{profile.email1}}}{{{profile.email1}}}$>$}}\n\n"
            )
        top += f"\\institute{{{profile.affiliation}}}\n"
        if meta.date:
            top += f"\\date{{{meta.date}}}\n"
        top += "\n" + profile.tex["begin_document"] + profile.tex["slides_begin_document"]

        return top + self.result.buffers.slides.text() + "\\end{frame}\n\\end{document}\n"

    def portableDocument_build(self) -> str:
        """
        Markdown export with a YAML front matter block for pandoc
        """
        meta = self.meta
        profile = self.profile
        plain = {
            name: meta.source.get(name, getattr(meta, name))
            for name in ("lecture_title", "course_code", "course_name", "date")
        }

        front: Dict[str, str] = {
            'title': f"{plain['course_code']} {plain['course_name']} ({plain['lecture_title']})",
            'author': profile.author1 + (f" and {profile.author2}" if profile.author2 else ""),
        }
        if plain['date']:
            front['date'] = plain['date']
        if profile.bibliography:
            front['bibliography'] = profile.bibliography

        header = "---\n" + yaml.safe_dump(front, sort_keys=False, allow_unicode=True) + "---\n\n"
        body = self.result.buffers.portableText_get()
        if meta.has_citations:
            body += "\n# References\n"
        return header + body
