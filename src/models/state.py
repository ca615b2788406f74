"""
Run state for the snp pipeline

ProgramState is the single record handed from stage to stage; pipeline()
threads it through a sequence of stage functions.
"""

import dataclasses
from argparse import Namespace
from dataclasses import dataclass, field
from functools import reduce
from pathlib import Path
from typing import Any, Callable, Dict, Optional, Type, TypeVar, TYPE_CHECKING

if TYPE_CHECKING:
    from .document import ScanResult


PS = TypeVar("PS", bound="ProgramState")


@dataclass
class ProgramState:
    """
    Everything one snp run knows, grown stage by stage.

    Stages never mutate the state they receive; each works on a copy and
    returns it with its own fields filled in:
        - CLI: directories, verbosity, input file, profile and output flags
        - env_check: inputSourceFile, envOK
        - source_scan: scanResult
        - documents_compile: compileResult
        - results_report: nothing new; reports and exits

    Attributes:
        inputdir: Directory holding the .sn source and its images
        outputdir: Directory the artifacts are written to
        verbosity: 1 normal, 2 verbose, 3 tracing
        inputFile: Source name relative to inputdir; empty means search
        profile: Author profile name
        profilesDir: Directory of user profiles, None for the packaged ones
        sizes: Report image and PDF sizes
        keepTeX: Keep .tex files after formatting
        noFormat: Write artifacts only, skip TeX and pandoc
        envOK: Input found and output directory ready
        inputSourceFile: Resolved source path
        scanResult: Buffers, metadata and graphics from the scanner
        compileResult: status, targets, outputs and slide_count
    """

    inputdir: Optional[Path] = field(default=None)
    outputdir: Optional[Path] = field(default=None)
    verbosity: int = field(default=1)
    inputFile: str = field(default="")
    profile: str = field(default="default")
    profilesDir: Optional[str] = field(default=None)
    sizes: bool = field(default=False)
    keepTeX: bool = field(default=False)
    noFormat: bool = field(default=False)

    envOK: bool = field(default=False)
    inputSourceFile: Path = field(default=Path("/"))
    scanResult: Optional["ScanResult"] = field(default=None)
    compileResult: Optional[Dict[str, Any]] = field(default=None)

    @classmethod
    def state_createFromNamespace(
        cls: Type[PS], options: Namespace, inputdir: Path, outputdir: Path
    ) -> PS:
        """
        Build the initial state from parsed CLI options.

        Options that are not ProgramState fields (the plugin framework adds
        its own) are dropped.
        """
        known = {f.name for f in dataclasses.fields(cls)}
        chosen = {k: v for k, v in vars(options).items() if k in known}
        chosen.update(inputdir=inputdir, outputdir=outputdir)
        return cls(**chosen)

    def copy(self: PS) -> PS:
        """Shallow copy for the next stage to fill in"""
        return type(self)(**self.__dict__)


def pipeline(
    initial_state: ProgramState, *stages: Callable[[ProgramState], ProgramState]
) -> ProgramState:
    """
    Feed a state through stages left to right.

    Example:
        pipeline(state, env_check, source_scan, documents_compile, results_report)
    """
    return reduce(lambda state, stage: stage(state), stages, initial_state)
