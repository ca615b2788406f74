"""
Error hierarchy for snp

Fatal errors abort the whole run with a single message and a nonzero
exit. Everything else the scanner finds is reported with WARN() and
processing continues.

Hierarchy:
    SnpError
    └── FatalError
        ├── InputNotFoundError
        ├── GraphicNotFoundError
        ├── YearMismatchError
        ├── ScopeConflictError
        ├── DirectiveValueError
        └── ProfileError (lib.profile)
"""

from typing import Optional


class SnpError(Exception):
    """
    Base class for snp errors

    Attributes:
        line_number: Source line the error belongs to, if known
    """

    def __init__(self, message: str, line_number: Optional[int] = None) -> None:
        self.line_number = line_number
        if line_number is not None:
            message = f"line {line_number}: {message}"
        super().__init__(message)


class FatalError(SnpError):
    """Raised for conditions that must stop the run"""
    pass


class InputNotFoundError(FatalError):
    """Raised when the source document cannot be found or read"""
    pass


class GraphicNotFoundError(FatalError):
    """Raised when an image directive names a file that does not resolve"""
    pass


class YearMismatchError(FatalError):
    """Raised when the year in the date directive is not the current year"""
    pass


class ScopeConflictError(FatalError):
    """Raised on a direct switch between notes-only and slides-only scope"""
    pass


class DirectiveValueError(FatalError):
    """Raised when a directive value cannot be interpreted"""
    pass
