"""
Models package for snp

Contains data structures and type definitions for the scan and render pipeline.
"""

from .state import ProgramState, pipeline
from .directives import DirectiveSpec, DirectiveCategory
from .scan import (
    Scope,
    Target,
    TableType,
    EnvKind,
    Environment,
    ScanState,
    Directive,
    TransformResult,
    GraphicSpec,
)
from .document import DocumentMeta, OutputBuffer, OutputBuffers, ScanResult, TargetResult

__all__ = [
    "ProgramState",
    "pipeline",
    "DirectiveSpec",
    "DirectiveCategory",
    "Scope",
    "Target",
    "TableType",
    "EnvKind",
    "Environment",
    "ScanState",
    "Directive",
    "TransformResult",
    "GraphicSpec",
    "DocumentMeta",
    "OutputBuffer",
    "OutputBuffers",
    "ScanResult",
    "TargetResult",
]
