"""
snp - Simple Notes Processor

Scanner, renderers and support code for turning a .sn source into notes,
slides and a portable export.
"""

__version__ = "1.0.0"

from .scanner import Scanner
from .compiler import Compiler
from .directives import DirectiveRegistry
from .inline import InlineTransformer
from .profile import Profile
from .log import LOG, WARN, state_connectToLogger

__all__ = [
    "Scanner",
    "Compiler",
    "DirectiveRegistry",
    "InlineTransformer",
    "Profile",
    "LOG",
    "WARN",
    "state_connectToLogger",
    "__version__",
]
