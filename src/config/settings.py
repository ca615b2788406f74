"""
Application settings and configuration

Uses pydantic-settings for type-safe configuration via environment variables.
All settings use SNP_ prefix (e.g., SNP_TEX_ENGINE=lualatex).

Settings can also be loaded from a .env file in the project root.
"""

from typing import List, Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class AppSettings(BaseSettings):
    """
    Application configuration via environment variables.

    Environment variables use SNP_ prefix.

    Examples:
        SNP_TAB=4
        SNP_TEX_ENGINE=pdflatex
        SNP_RUN_FORMATTERS=false
    """

    model_config = SettingsConfigDict(
        env_prefix="SNP_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    # Scanner configuration
    tab: int = Field(
        default=2,
        description="Spaces of indentation per open environment in generated TeX",
    )

    bold_marker: str = Field(
        default="*",
        description="Emphasis delimiter: doubled for bold, single for italic",
    )

    max_list_depth: int = Field(
        default=2,
        description="Deepest list nesting level (0-based); deeper items are clamped with a warning",
    )

    default_item_label: str = Field(
        default=r"\textbullet",
        description="Itemize label restored after a list that used a custom bullet",
    )

    graphics_extensions: List[str] = Field(
        default=["", ".pdf", ".jpg", ".jpeg", ".png"],
        description="Suffixes tried, in order, when resolving an image name",
    )

    # Formatter configuration
    tex_engine: str = Field(
        default="xelatex",
        description="TeX engine used for notes and slides",
    )

    bib_engine: str = Field(
        default="biber",
        description="Bibliography processor run when citations are present",
    )

    pandoc: str = Field(
        default="pandoc",
        description="Pandoc executable used for the portable export",
    )

    pandoc_from: str = Field(
        default="markdown+link_attributes+simple_tables+pipe_tables+definition_lists",
        description="Pandoc input format for the portable export",
    )

    run_formatters: bool = Field(
        default=True,
        description="Run the external formatters after writing the artifacts",
    )

    # Output configuration
    keep_tex: bool = Field(
        default=False,
        description="Keep .tex files after successful formatting",
    )

    print_sizes: bool = Field(
        default=False,
        description="Report graphics and PDF file sizes",
    )

    default_profile: str = Field(
        default="default",
        description="Profile used when none is given on the command line",
    )

    profiles_dir: Optional[str] = Field(
        default=None,
        description="Directory holding user profiles (default: the packaged profiles)",
    )

    def indent_make(self, level: int) -> str:
        """
        Build the indentation prefix for a nesting level.

        Args:
            level: Number of open nesting environments

        Returns:
            String of spaces (empty for level 0 or below)

        Example:
            >>> settings = AppSettings()
            >>> settings.indent_make(2)
            '    '
        """
        return " " * (self.tab * max(level, 0))


# Singleton instance - import this in your code
appsettings = AppSettings()
