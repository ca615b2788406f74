#!/usr/bin/env python3
"""
snp - Simple Notes Processor

Turns one plain-text lecture source into a long-form notes document, a
Beamer slide deck and a portable Markdown export.

Philosophy:
    - One source: notes, slides and a shareable export never drift apart
    - Line directives: a short key at the start of a line controls structure
    - Markdown-friendly: lists, tables, emphasis, links, images, citations
    - Scoped content: lines can be marked for the slides or the notes only

Usage:
    snp inputdir/ outputdir/ --inputFile lecture.sn

    The generated lecture-notes.tex, lecture-slides.tex and lecture-notes.md
    are written to outputdir/ and formatted to PDF and HTML.

Examples:
    # Basic run, the single .sn file in the current directory
    snp . output/

    # Keep the TeX sources and report file sizes
    snp . output/ --inputFile week3.sn -k -s

    # Write the artifacts only, verbose
    snp . output/ --inputFile week3.sn --noFormat -vv
"""

import sys
from pathlib import Path
from argparse import ArgumentParser, Namespace, ArgumentDefaultsHelpFormatter

from chris_plugin import chris_plugin
from pygments import highlight
from pygments.formatters import TerminalFormatter

from .config import appsettings
from .lib import Scanner, Compiler, Profile, __version__, LOG, state_connectToLogger
from .lib.errors import FatalError, InputNotFoundError
from .lib.lexer import get_lexer
from .models import ProgramState, pipeline


DISPLAY_TITLE = r"""
   ___ _ __  _ __
  / __| '_ \| '_ \
  \__ \ | | | |_) |
  |___/_| |_| .__/
            |_|
  Simple Notes Processor
"""

BACKUP_PREFIXES = ("~", ".", "#")

# Define CLI arguments
parser = ArgumentParser(
    description="snp - one notes source to lecture notes, Beamer slides and portable Markdown",
    formatter_class=ArgumentDefaultsHelpFormatter,
)

parser.add_argument(
    "--inputFile",
    default="",
    type=str,
    help="Input notes (.sn) file relative to inputdir. Defaults to the only .sn file found there",
)

parser.add_argument(
    "--profile",
    default=appsettings.default_profile,
    type=str,
    help="Author profile supplying names, affiliation and TeX templates",
)

parser.add_argument(
    "--profilesDir",
    default=appsettings.profiles_dir,
    type=str,
    help="Directory containing profiles. Defaults to the package profiles/ dir",
)

parser.add_argument(
    "-s",
    "--sizes",
    action="store_true",
    default=appsettings.print_sizes,
    help="Report image and PDF file sizes",
)

parser.add_argument(
    "-k",
    "--keepTeX",
    action="store_true",
    default=appsettings.keep_tex,
    help="Keep the generated .tex files after formatting",
)

parser.add_argument(
    "--noFormat",
    action="store_true",
    default=not appsettings.run_formatters,
    help="Write the artifacts but do not run TeX or pandoc",
)

parser.add_argument(
    "-v",
    "--verbosity",
    action="count",
    default=1,
    help="Increase output verbosity (can be repeated: -v, -vv, -vvv)",
)

parser.add_argument("-V", "--version", action="version", version=f"%(prog)s {__version__}")


def fatal_exit(message: str) -> None:
    print(f"Fatal error: {message}", file=sys.stderr)
    sys.exit(1)


def inputFile_find(inputdir: Path) -> Path:
    """
    Find the single .sn source in a directory, ignoring editor backups.

    Raises:
        InputNotFoundError: None, or more than one, candidate exists
    """
    candidates = sorted(
        path for path in inputdir.glob("*.sn")
        if not path.name.startswith(BACKUP_PREFIXES) and path.is_file()
    )
    if not candidates:
        raise InputNotFoundError(f"no .sn file found in {inputdir}")
    if len(candidates) > 1:
        names = ", ".join(path.name for path in candidates)
        raise InputNotFoundError(f"several .sn files in {inputdir} ({names}); choose one with --inputFile")
    return candidates[0]


def env_check(inputstate: ProgramState) -> ProgramState:
    """
    Validate environment and resolve all file paths.

    Args:
        inputstate: Initial program state with CLI options

    Returns:
        ProgramState with added fields:
            - inputSourceFile: Resolved path to .sn input file
            - envOK: True if environment is valid

    Exits:
        1 if the input file cannot be found
    """

    state = inputstate.copy()

    if state.verbosity >= 2:
        LOG(DISPLAY_TITLE, level=2)

    LOG("Checking environment...", level=2)

    try:
        if state.inputFile:
            input_file = state.inputdir / state.inputFile
            if not input_file.is_file():
                raise InputNotFoundError(f"input file not found: {input_file}")
        else:
            input_file = inputFile_find(state.inputdir)
    except FatalError as e:
        state.envOK = False
        fatal_exit(str(e))

    state.inputSourceFile = input_file
    LOG(f"Input file: {input_file}", level=2)

    state.outputdir.mkdir(parents=True, exist_ok=True)
    LOG(f"Output directory: {state.outputdir}", level=2)

    state.envOK = True
    return state


def source_scan(inputstate: ProgramState) -> ProgramState:
    """
    Read the notes source and run the line scanner over it.

    Args:
        inputstate: Program state with inputSourceFile path set

    Returns:
        ProgramState with added field:
            - scanResult: metadata, output buffers and graphics registry

    Exits:
        1 if the file cannot be read or the scan hits a fatal condition
    """

    state = inputstate.copy()
    state_connectToLogger(state)

    LOG("Reading source file...", level=1)

    try:
        source = state.inputSourceFile.read_text(encoding="utf-8")
        LOG(f"Read {len(source)} characters from {state.inputSourceFile.name}", level=2)
    except OSError as e:
        fatal_exit(f"cannot read input file: {e}")

    if state.verbosity >= 3:
        LOG("Source listing:\n" + highlight(source, get_lexer(), TerminalFormatter()), level=3)

    LOG("Scanning source...", level=1)
    try:
        scanner = Scanner(source, base_dir=state.inputSourceFile.parent)
        state.scanResult = scanner.scan()
    except FatalError as e:
        fatal_exit(str(e))

    LOG(f"Scanned {len(scanner.lines)} lines, {state.scanResult.meta.slides_count} frames", level=2)
    return state


def documents_compile(inputstate: ProgramState) -> ProgramState:
    """
    Render notes, slides and portable export concurrently.

    Args:
        inputstate: Program state with scanResult

    Returns:
        ProgramState with added field:
            - compileResult: Dict containing:
                - status: bool (all three targets succeeded)
                - targets: per-target TargetResult
                - outputs: artifact paths
                - slide_count: int

    Exits:
        1 if the profile cannot be loaded
    """

    state = inputstate.copy()
    state_connectToLogger(state)

    if not state.scanResult:
        fatal_exit("no scanned source available")

    try:
        profile = Profile(state.profile, state.profilesDir)
    except FatalError as e:
        fatal_exit(str(e))

    settings = appsettings.model_copy(update={"run_formatters": not state.noFormat})
    compiler = Compiler(
        result=state.scanResult,
        output_dir=state.outputdir,
        profile=profile,
        basename=state.inputSourceFile.stem,
        settings=settings,
        input_dir=state.inputSourceFile.parent,
    )
    state.compileResult = compiler.compile()
    return state


def results_report(inputstate: ProgramState) -> ProgramState:
    """
    Clean up, then display a summary of the run.

    The .tex files are removed only when notes and slides both formatted
    successfully and -k was not given; a failed target suppresses the
    cleanup and the summary.

    Args:
        inputstate: Program state with compileResult populated

    Returns:
        ProgramState unchanged (terminal pipeline stage)

    Exits:
        1 if any target failed
    """
    state: ProgramState = inputstate.copy()
    state_connectToLogger(state)
    result = state.compileResult
    if not result:
        fatal_exit("rendering failed")

    targets = result['targets']
    typeset_ok = targets['notes'].success and targets['slides'].success
    formatted = targets['notes'].formatted and targets['slides'].formatted

    if not typeset_ok:
        for name, target in targets.items():
            if not target.success:
                print(f"Error: {name} failed: {target.message}", file=sys.stderr)
        LOG("TeX files and intermediates retained for inspection", level=1)
        sys.exit(1)

    if formatted and not state.keepTeX:
        for name in ('notes', 'slides'):
            artifact = targets[name].artifact
            if artifact is not None and artifact.exists():
                artifact.unlink()
                LOG(f"Removed {artifact.name}", level=2)
    else:
        LOG("TeX files retained", level=2)

    LOG("\n✓ Processing complete", level=1)
    LOG(f"  Slides: {result['slide_count']}", level=1)
    for name, target in targets.items():
        shown = target.output or target.artifact
        LOG(f"  {name}: {shown}", level=1)

    if state.sizes:
        ordered, total = state.scanResult.graphics.summary()
        LOG("  Images:", level=1)
        for filename, size in ordered:
            LOG(f"    {filename:<40} {size:>12,}", level=1)
        LOG(f"    {'total':<40} {total:>12,}", level=1)
        for name in ('notes', 'slides'):
            output = targets[name].output
            if output is not None and output.exists():
                LOG(f"  {output.name}: {output.stat().st_size:,} bytes", level=1)

    if not targets['portable'].success:
        print(f"Error: portable failed: {targets['portable'].message}", file=sys.stderr)
        sys.exit(1)
    return state


@chris_plugin(
    parser=parser,
    title="snp - Simple Notes Processor",
    category="Utility",
    min_memory_limit="100Mi",
    min_cpu_limit="500m",
)
def main(options: Namespace, inputdir: Path, outputdir: Path):
    """
    Main entry point - process a .sn notes source into notes, slides and export.

    Orchestrates the full pipeline:
        1. env_check: Validate paths and environment
        2. source_scan: Read and scan the .sn file
        3. documents_compile: Render the three targets concurrently
        4. results_report: Clean up and display results

    Args:
        options: CLI arguments from argparse
        inputdir: Directory containing the notes source
        outputdir: Directory where generated documents will be written

    Note:
        This function is wrapped by @chris_plugin which handles CLI
        argument parsing and invokes this function with parsed values.
    """

    state: ProgramState = ProgramState.state_createFromNamespace(
        options=options, inputdir=inputdir, outputdir=outputdir
    )

    # Connect state to logger for entire pipeline
    state_connectToLogger(state)

    pipeline(state, env_check, source_scan, documents_compile, results_report)


if __name__ == "__main__":
    main()  # type: ignore  # @chris_plugin decorator transforms signature
