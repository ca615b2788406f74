"""
Graphics directive handling

Parses `g name[n1,n2,extra]`, resolves the image against the input
directory and records its size for the end-of-run report.
"""

import re
from pathlib import Path
from typing import Dict, List, Optional, Tuple

from ..config.settings import AppSettings, appsettings
from ..models.scan import GraphicSpec
from .errors import DirectiveValueError, GraphicNotFoundError
from .log import LOG


GRAPHIC_RE = re.compile(r"^(?P<name>[^\s\[]+)\s*(?:\[(?P<args>[^\]]*)\])?\s*$")


def graphicSpec_parse(value: str, line_number: Optional[int] = None) -> GraphicSpec:
    """
    Parse the value of an image directive.

    Zero arguments give an unscaled image; one scale is used for both
    targets; two give notes and slides scales; anything after the second
    comma is passed through verbatim.

    Example:
        >>> graphicSpec_parse("diagram[50,75,angle=90]")
        GraphicSpec(name='diagram', notes_scale='50', slides_scale='75', extra='angle=90')
    """
    match = GRAPHIC_RE.match(value.strip())
    if not match:
        raise DirectiveValueError(f"cannot parse image reference '{value}'", line_number)

    spec = GraphicSpec(name=match.group("name"))
    args = match.group("args")
    if not args or not args.strip():
        return spec

    parts = [part.strip() for part in args.split(",")]
    spec.notes_scale = parts[0] or None
    spec.slides_scale = parts[1] if len(parts) > 1 and parts[1] else spec.notes_scale
    spec.extra = ",".join(part for part in parts[2:] if part)
    return spec


def includeGraphics_make(filename: str, scale: Optional[str], extra: str = "") -> str:
    """
    Build an \\includegraphics command.

    Example:
        >>> includeGraphics_make("diagram.png", "50")
        '\\\\includegraphics[scale=50]{diagram.png}'
    """
    options = []
    if scale:
        options.append(f"scale={scale}")
    if extra:
        options.append(extra)
    if options:
        return f"\\includegraphics[{','.join(options)}]{{{filename}}}"
    return f"\\includegraphics{{{filename}}}"


class GraphicsRegistry:
    """
    Referenced image files and their sizes in bytes

    Args:
        settings: Application settings (extensions tried on resolution)
    """

    def __init__(self, settings: AppSettings = appsettings) -> None:
        self.settings = settings
        self.sizes: Dict[str, int] = {}

    def resolve(self, name: str, base_dir: Path, line_number: Optional[int] = None) -> Tuple[str, Path]:
        """
        Find an image file by trying the bare name, then each extension.

        Returns:
            (filename as referenced from the document, path on disk)

        Raises:
            GraphicNotFoundError: No candidate exists
        """
        for extension in self.settings.graphics_extensions:
            filename = f"{name}{extension}"
            candidate = base_dir / filename
            if candidate.is_file():
                LOG(f"resolved image '{name}' to {candidate}", level=3)
                return filename, candidate
        tried = ", ".join(f"{name}{ext}" for ext in self.settings.graphics_extensions)
        raise GraphicNotFoundError(f"image '{name}' not found in {base_dir} (tried {tried})", line_number)

    def register(self, filename: str, size: int) -> None:
        self.sizes[filename] = size

    def total(self) -> int:
        return sum(self.sizes.values())

    def summary(self) -> Tuple[List[Tuple[str, int]], int]:
        """
        Sizes sorted from smallest to largest, and their sum.
        """
        ordered = sorted(self.sizes.items(), key=lambda item: (item[1], item[0]))
        return ordered, self.total()

    def __len__(self) -> int:
        return len(self.sizes)

    def __contains__(self, filename: object) -> bool:
        return filename in self.sizes
