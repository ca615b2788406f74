"""
Inline transform engine

Rewrites the inline markup of a single line into TeX: smart punctuation,
escapes, emphasis, links, images and citations. The rules are held in an
ordered table; later rules see the output of earlier ones, so the order
of RULE_ORDER is part of the contract.

A line containing none of the recognized patterns is returned unchanged.
"""

import re
from dataclasses import dataclass, field
from typing import Callable, List, Match, Optional, Pattern, Tuple, Union

from ..config.settings import AppSettings, appsettings
from ..models.scan import ScanState, TransformResult
from .log import LOG


URI_RE = re.compile(r"https?://|www\.")
KEYVAL_RE = re.compile(r"(\w+)\s*=\s*([^,]+)")
CITEKEY_RE = re.compile(r"@(\w(?:[\w.:-]*\w)?)")
PERCENT_RE = re.compile(r"(\d+(?:\.\d+)?)\\?%")


@dataclass
class TransformContext:
    """
    Per-line context handed to every rule

    Rules read the scan flags through it and report side results
    (citation keys, centring requests) back into it.
    """
    in_table: bool = False
    leave_alone: bool = False
    citations: List[str] = field(default_factory=list)
    center_image: bool = False
    matched: List[str] = field(default_factory=list)

    def citations_add(self, keys: List[str]) -> None:
        for key in keys:
            if key not in self.citations:
                self.citations.append(key)


Rewrite = Union[str, Callable[[Match[str], TransformContext], str]]
Guard = Callable[[str, TransformContext], bool]


@dataclass
class InlineRule:
    """
    One (pattern, rewrite) rule

    Attributes:
        name: Rule name, reported in TransformResult.matched
        pattern: Compiled regular expression
        rewrite: Replacement template, or callable(match, ctx) -> str
        guard: Optional predicate; the rule is skipped when it returns False
    """
    name: str
    pattern: Pattern[str]
    rewrite: Rewrite
    guard: Optional[Guard] = None

    def apply(self, line: str, ctx: TransformContext) -> str:
        if self.guard is not None and not self.guard(line, ctx):
            return line

        if callable(self.rewrite):
            rewrite = self.rewrite
            result = self.pattern.sub(lambda m: rewrite(m, ctx), line)
        else:
            result = self.pattern.sub(self.rewrite, line)

        if result != line:
            ctx.matched.append(self.name)
        return result


def ampersand_guard(line: str, ctx: TransformContext) -> bool:
    """Ampersands are left alone in tables, verbatim regions and URI lines"""
    return not ctx.in_table and not ctx.leave_alone and URI_RE.search(line) is None


def image_rewrite(match: Match[str], ctx: TransformContext) -> str:
    """
    ![alt](path){args} -> \\includegraphics[args]{path}

    `align=center` is consumed and turned into a centring request; an
    .svg path is pointed at its .pdf conversion.
    """
    path = match.group(2)
    if path.lower().endswith(".svg"):
        path = path[:-4] + ".pdf"

    args: List[str] = []
    for key, value in KEYVAL_RE.findall(match.group(3) or ""):
        value = value.strip()
        if key == "align" and value == "center":
            ctx.center_image = True
            continue
        percent = PERCENT_RE.fullmatch(value)
        if percent:
            value = f"{float(percent.group(1)) / 100:g}\\linewidth"
        args.append(f"{key}={value}")

    if args:
        return f"\\includegraphics[{','.join(args)}]{{{path}}}"
    return f"\\includegraphics{{{path}}}"


def citep_rewrite(match: Match[str], ctx: TransformContext) -> str:
    """[see @a; @b, p. 3] -> \\citep[see][p. 3]{a,b}"""
    keys = CITEKEY_RE.findall(match.group(2))
    ctx.citations_add(keys)

    prefix = match.group(1).strip()
    suffix = match.group(3).strip().lstrip(",;").strip()
    cite = ",".join(keys)

    if prefix:
        return f"\\citep[{prefix}][{suffix}]{{{cite}}}"
    if suffix:
        return f"\\citep[{suffix}]{{{cite}}}"
    return f"\\citep{{{cite}}}"


def citet_rewrite(match: Match[str], ctx: TransformContext) -> str:
    """@key [p. 3] -> \\citet[p. 3]{key}"""
    key = match.group(1)
    ctx.citations_add([key])
    suffix = match.group(2)
    if suffix:
        return f"\\citet[{suffix.strip()}]{{{key}}}"
    return f"\\citet{{{key}}}"


def rules_build(settings: AppSettings = appsettings) -> Tuple[InlineRule, ...]:
    """
    Build the ordered rule table.

    The emphasis marker comes from settings, everything else is fixed.

    Returns:
        Rules in application order
    """
    mark = re.escape(settings.bold_marker)
    text = f"([^{mark}]+)"

    return (
        # 1. smart punctuation
        InlineRule("ellipsis", re.compile(r"\.\.\."), r"\\ldots{}"),
        InlineRule("open-quote", re.compile(r'(^|[\s(\[])"'), r"\1``"),
        InlineRule("close-quote", re.compile(r'"'), "''"),
        # 2. percent after a number or question mark
        InlineRule("percent", re.compile(r"(?<=[\d?])%"), r"\\%"),
        # 3. in-text superscript
        InlineRule("superscript", re.compile(r"\^([^^\s][^^]*)\^"), r"\\textsuperscript{\1}"),
        # 4. currency amounts
        InlineRule("dollar", re.compile(r"(?<!\\)\$(?=\d)"), r"\\$"),
        # 5. literal fractions between spaces
        InlineRule("fraction", re.compile(r"(?<= )(\d+)/(\d+)(?= )"), r"$\\frac{\1}{\2}$"),
        # 6. ampersands
        InlineRule("ampersand", re.compile(r"(?<!\\)&"), r" \\& ", guard=ampersand_guard),
        # 7. emphasis, bold before italic
        InlineRule("bold", re.compile(f"{mark}{{2}}{text}{mark}{{2}}"), r"\\textbf{\1}"),
        InlineRule("italic", re.compile(f"{mark}{text}{mark}"), r"\\textit{\1}"),
        # 8. links
        InlineRule("link", re.compile(r"(?<!!)\[([^\]]+)\]\(([^)\s]+)\)"), r"\\href{\2}{\1}"),
        # 9. images
        InlineRule("image", re.compile(r"!\[([^\]]*)\]\(([^)\s]+)\)(?:\{([^}]*)\})?"), image_rewrite),
        # 10. citations, parenthetical before in-text
        InlineRule(
            "citation-parenthetical",
            re.compile(r"\[([^\[\]@]*?)((?:@\w(?:[\w.:-]*\w)?\s*;?\s*)+)([^\[\]]*)\]"),
            citep_rewrite,
        ),
        InlineRule(
            "citation-in-text",
            re.compile(r"(?<![\w.@\\{])@(\w(?:[\w.:-]*\w)?)(?:\s?\[([^\]]*)\])?"),
            citet_rewrite,
        ),
    )


RULE_ORDER: Tuple[str, ...] = tuple(rule.name for rule in rules_build())


class InlineTransformer:
    """
    Applies the ordered inline rules to one line at a time

    Example:
        >>> InlineTransformer().transform("See @smith2001.").line
        'See \\\\citet{smith2001}.'
    """

    def __init__(self, settings: AppSettings = appsettings) -> None:
        self.settings = settings
        self.rules = rules_build(settings)

    def transform(self, line: str, state: Optional[ScanState] = None) -> TransformResult:
        """
        Run every rule over a line.

        Args:
            line: Raw source line
            state: Scan state for the table and verbatim flags; None means
                outside any table or verbatim region

        Returns:
            TransformResult with the rewritten line and side results
        """
        ctx = TransformContext(
            in_table=state.in_table if state else False,
            leave_alone=state.leave_alone if state else False,
        )

        for rule in self.rules:
            line = rule.apply(line, ctx)

        if ctx.matched:
            LOG(f"inline rules {', '.join(ctx.matched)}: {line}", level=3)

        return TransformResult(
            line=line,
            citations=ctx.citations,
            center_image=ctx.center_image,
            matched=ctx.matched,
        )
