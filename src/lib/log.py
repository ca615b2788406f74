"""
Verbosity-gated logging for snp, built on loguru.

The run's ProgramState is published through a ContextVar; LOG() reads the
verbosity from whatever state is connected in the calling context, so the
scanner, renderers and formatter never need the state passed to them.
Render threads run in a copy of the pipeline's context and see the same
state.

WARN() is for problems the scanner recovers from: it is never gated and
carries the source line number when one is known.

Usage:
    from snp.lib.log import LOG, WARN, state_connectToLogger

    state_connectToLogger(state)
    LOG("Scanning source...", level=1)
    LOG("opened itemize", level=3)
    WARN("no open environment to close", line_number=42)
"""

import sys
from contextvars import ContextVar
from typing import Any, Optional

from loguru import logger

# ProgramState of the pipeline stage currently running
_program_state: ContextVar[Optional[Any]] = ContextVar('snp_state', default=None)

logger_format = (
    "<green>{time:HH:mm:ss}</green> │ "
    "<level>{level: <7}</level> │ "
    "<cyan>{function: <20}</cyan> @ "
    "<cyan>{line: <4}</cyan> ║ "
    "<level>{message}</level>"
)

logger.remove()
logger.add(sys.stderr, format=logger_format, level="DEBUG")


def state_connectToLogger(state: Any) -> None:
    """
    Publish a ProgramState as the source of LOG() verbosity.

    Each pipeline stage works on its own copy of the state, so every stage
    connects its copy before doing anything else.

    Args:
        state: Object with a `verbosity` attribute
    """
    _program_state.set(state)


def verbosity_get() -> int:
    """Verbosity of the connected state, 0 when none is connected"""
    state = _program_state.get()
    return getattr(state, 'verbosity', 0) if state is not None else 0


def LOG(message: str, level: int = 1, **kwargs: Any) -> None:
    """
    Emit a debug record when the connected verbosity is at least `level`.

    Args:
        message: Text to log
        level: 1 for progress, 2 for details (-v), 3 for tracing (-vv)
        **kwargs: Passed to loguru
    """
    if verbosity_get() >= level:
        logger.opt(depth=1).debug(message, **kwargs)


def WARN(message: str, line_number: Optional[int] = None) -> None:
    """
    Report a recoverable problem, whatever the verbosity.

    Args:
        message: Description of the problem
        line_number: Source line the problem was found on, if any
    """
    if line_number is not None:
        message = f"line {line_number}: {message}"
    logger.opt(depth=1).warning(message)


def verbosity_raise(level: int) -> None:
    """
    Raise the connected state's verbosity to at least `level`.

    Used by the in-document debug directive. Never lowers verbosity.
    """
    state = _program_state.get()
    if state is not None and hasattr(state, 'verbosity') and state.verbosity < level:
        state.verbosity = level
