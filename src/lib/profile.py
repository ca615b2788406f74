"""
Author profile loader

A profile carries everything about the person giving the lecture and the
TeX boilerplate wrapped around the generated notes and slides. Each
profile is a directory containing:
  - profile.yaml: author details and TeX templates
"""

from pathlib import Path
from typing import Any, Dict, Optional

import yaml

from .errors import FatalError
from .log import LOG, WARN


PACKAGE_PROFILES = Path(__file__).parent.parent / "profiles"

AUTHOR_KEYS = ("author1", "email1", "author2", "email2", "affiliation", "bibliography", "stylesheet")

TEX_KEYS = (
    "preamble_common",
    "begin_document",
    "notes_preamble",
    "notes_begin_document",
    "slides_preamble",
    "slides_begin_document",
    "nup_top",
    "nup_bottom",
)


class ProfileError(FatalError):
    """Raised when profile loading or validation fails"""
    pass


class Profile:
    """
    Represents an snp author profile.

    Unknown keys in profile.yaml are reported and ignored.
    """

    def __init__(self, profile_name: str = "default", profiles_dir: Optional[str | Path] = None):
        """
        Load a profile by name.

        Args:
            profile_name: Name of the profile directory (e.g., "default")
            profiles_dir: Directory holding profiles (default: the package's profiles/)

        Raises:
            ProfileError: If the profile directory or profile.yaml doesn't exist
        """
        self.name = profile_name
        self.profiles_dir = Path(profiles_dir) if profiles_dir else PACKAGE_PROFILES
        self.profile_dir = self.profiles_dir / profile_name

        if not self.profile_dir.is_dir():
            raise ProfileError(
                f"Profile '{profile_name}' not found. "
                f"Expected directory: {self.profile_dir}"
            )

        self.config_path = self.profile_dir / "profile.yaml"
        if not self.config_path.exists():
            raise ProfileError(f"Profile '{profile_name}' missing profile.yaml")

        self.config = self._config_load()
        self.fields: Dict[str, str] = {key: "" for key in AUTHOR_KEYS}
        self.tex: Dict[str, str] = {key: "" for key in TEX_KEYS}
        self._config_apply()
        LOG(f"Loaded profile: {self.name}", level=2)

    def _config_load(self) -> Dict[str, Any]:
        """Load and parse profile.yaml"""
        try:
            with open(self.config_path, 'r', encoding='utf-8') as f:
                config: Any = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise ProfileError(f"Failed to parse profile.yaml: {e}")
        except OSError as e:
            raise ProfileError(f"Failed to load profile.yaml: {e}")

        if config is None:
            return {}
        if not isinstance(config, dict):
            raise ProfileError("profile.yaml must hold a mapping")
        return config

    def _config_apply(self) -> None:
        for key, value in self.config.items():
            if key == "tex" and isinstance(value, dict):
                for tex_key, template in value.items():
                    if tex_key in self.tex:
                        self.tex[tex_key] = "" if template is None else str(template)
                    else:
                        WARN(f"unknown TeX template '{tex_key}' in profile '{self.name}'")
            elif key in self.fields:
                self.fields[key] = "" if value is None else str(value)
            else:
                WARN(f"unknown key '{key}' in profile '{self.name}'")

    def config_get(self, key: str, default: Any = None) -> Any:
        """
        Get a configuration value from profile.yaml.

        Supports nested keys with dot notation:
          profile.config_get('tex.nup_top', '')
        """
        value: Any = self.config
        for k in key.split('.'):
            if isinstance(value, dict) and k in value:
                value = value[k]
            else:
                return default
        return value

    def __getattr__(self, name: str) -> str:
        fields = self.__dict__.get("fields", {})
        if name in fields:
            return fields[name]
        raise AttributeError(name)

    def __repr__(self) -> str:
        return f"Profile(name='{self.name}', path='{self.profile_dir}')"
