"""
snp - Simple Notes Processor

One plain-text lecture source, three outputs: a long-form LaTeX notes
document, a Beamer slide deck and a portable Markdown export.
"""

__version__ = "1.0.0"

from .lib import Scanner, Compiler, DirectiveRegistry, InlineTransformer, LOG, WARN, state_connectToLogger

__all__ = [
    "Scanner",
    "Compiler",
    "DirectiveRegistry",
    "InlineTransformer",
    "LOG",
    "WARN",
    "state_connectToLogger",
    "__version__",
]
