"""
Directive specification and metadata models

Defines the structure and categories of snp line directives for
dispatch, documentation generation, and registry management.
"""

import re
from enum import Enum
from dataclasses import dataclass, field
from typing import Callable, List, Optional, Pattern


class DirectiveCategory(Enum):
    """
    Categories of snp directives

    Used for organization, documentation generation, and dispatch.
    """
    METADATA = "metadata"        # T, X, N, D, Z, [preamble]
    STRUCTURAL = "structural"    # s, #, [soh], i, n, d, e, p, q, t, g
    LIST = "list"                # -, 1., :
    SCOPE = "scope"              # [so], [sob], [no], [bv], ...
    LAYOUT = "layout"            # tcb, tcs, tce
    COMMENT = "comment"          # %, #%


@dataclass
class DirectiveSpec:
    """
    Specification for an snp directive

    Defines metadata and handler for a line-initial directive key.
    Used by DirectiveRegistry to dispatch scanned lines.

    Attributes:
        key: Directive key as it appears at the start of a line
        category: Category for organization
        description: Human-readable description
        handler: Dispatch function (scanner, directive) -> None
        pattern: Optional regex for keys that form a family (e.g. '12.')
        examples: Example usage strings
        aliases: Alternative keys for the directive
    """
    key: str
    category: DirectiveCategory
    description: str
    handler: Callable
    pattern: Optional[str] = None
    examples: List[str] = field(default_factory=list)
    aliases: List[str] = field(default_factory=list)
    _compiled: Optional[Pattern[str]] = field(default=None, init=False, repr=False)

    def matches(self, key: str) -> bool:
        """
        Check if this spec handles a directive key

        Handles pattern families (e.g., r'\\d+\\.' matches '3.')

        Args:
            key: Key to check

        Returns:
            True if this spec handles the key
        """
        if self.key == key or key in self.aliases:
            return True

        if self.pattern:
            if self._compiled is None:
                self._compiled = re.compile(self.pattern)
            return self._compiled.fullmatch(key) is not None

        return False
