# config_utils.py - YAML Configuration System for csvtocourse
"""
csvtocourse configuration utilities with YAML file support.

Configuration Resolution Order (highest to lowest priority):
1. Environment variables (CSVTOCOURSE_STAGING_DIR, CSVTOCOURSE_WWWROOT, etc.)
2. csvtocourse.yaml in the working directory
3. ~/.csvtocourse/config.yaml (global defaults)

Usage:
    from csvtocourse.config_utils import get_config

    config = get_config()
    print(config.staging_dir)
    print(config.backup_release)
"""

import os
import re
import tempfile
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional

import yaml

from csvtocourse.errors import ConfigurationError

CONTENT_FORMATS = ("html", "markdown")

DEFAULT_BACKUP_VERSION = "2024100700"
DEFAULT_BACKUP_RELEASE = "4.5"
DEFAULT_WWWROOT = "https://localhost"


@dataclass
class ConverterConfig:
    """Complete csvtocourse configuration"""
    # Where staging directories are created (None = system temp dir)
    staging_dir: Optional[Path] = None

    # Values stamped into moodle_backup.xml and module.xml
    backup_version: str = DEFAULT_BACKUP_VERSION
    backup_release: str = DEFAULT_BACKUP_RELEASE
    wwwroot: str = DEFAULT_WWWROOT

    # How content_text cells are interpreted: html (passthrough) or markdown
    content_format: str = "html"

    # Extra settings from config file
    extra: Dict[str, Any] = field(default_factory=dict)

    # Track where values came from (for debugging)
    _sources: Dict[str, str] = field(default_factory=dict)

    def staging_root(self) -> Path:
        return self.staging_dir or Path(tempfile.gettempdir())


def normalize_release(release: str) -> str:
    """
    Reduce a full release string to major.minor.

    "4.5.1 (Build: 20250113)" -> "4.5"
    """
    m = re.match(r"^(\d+\.\d+)", str(release).strip())
    if m:
        return m.group(1)
    return DEFAULT_BACKUP_RELEASE


class ConfigLoader:
    """Load configuration from multiple sources"""

    def __init__(self, work_dir: Optional[Path] = None):
        self.work_dir = Path(work_dir) if work_dir else Path.cwd()
        self.config = ConverterConfig()

    def load(self) -> ConverterConfig:
        """Load configuration from all sources in priority order"""
        # Load in reverse priority (lowest first, higher overwrites)
        self._load_global_config()
        self._load_yaml_config()
        self._load_env_vars()
        self._check()
        return self.config

    def _load_global_config(self):
        """Load ~/.csvtocourse/config.yaml if it exists"""
        global_config = Path.home() / ".csvtocourse" / "config.yaml"
        if global_config.exists():
            self._load_yaml_file(global_config, "global")

    def _load_yaml_config(self):
        """Load csvtocourse.yaml from the working directory"""
        yaml_path = self.work_dir / "csvtocourse.yaml"
        if yaml_path.exists():
            self._load_yaml_file(yaml_path, "csvtocourse.yaml")

    def _load_yaml_file(self, path: Path, source_name: str):
        """Load settings from a YAML file"""
        try:
            data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
        except yaml.YAMLError as e:
            raise ConfigurationError(
                message=f"Failed to parse {path.name}",
                suggestion="Fix the YAML syntax or remove the file",
                context={"file": str(path)},
                cause=e,
            )

        if not isinstance(data, dict):
            raise ConfigurationError(
                message=f"{path.name} must be a mapping at top level",
                context={"file": str(path)},
            )

        mappings = {
            "staging_dir": "staging_dir",
            "backup_version": "backup_version",
            "backup_release": "backup_release",
            "wwwroot": "wwwroot",
            "content_format": "content_format",
        }

        for yaml_key, attr in mappings.items():
            if yaml_key in data:
                self._set(attr, data[yaml_key], source_name)

        # Store any extra settings
        for key, value in data.items():
            if key not in mappings:
                self.config.extra[key] = value

    def _load_env_vars(self):
        """Load from environment variables (highest priority)"""
        env_map = {
            "CSVTOCOURSE_STAGING_DIR": "staging_dir",
            "CSVTOCOURSE_BACKUP_VERSION": "backup_version",
            "CSVTOCOURSE_BACKUP_RELEASE": "backup_release",
            "CSVTOCOURSE_WWWROOT": "wwwroot",
            "CSVTOCOURSE_CONTENT_FORMAT": "content_format",
        }
        for env_name, attr in env_map.items():
            value = os.environ.get(env_name)
            if value:
                self._set(attr, value, f"env:{env_name}")

    def _set(self, attr: str, value: Any, source_name: str):
        if attr == "staging_dir":
            value = Path(str(value)).expanduser()
        elif attr == "backup_release":
            value = normalize_release(value)
        elif attr == "content_format":
            value = str(value).strip().lower()
        else:
            value = str(value)
        setattr(self.config, attr, value)
        self.config._sources[attr] = source_name

    def _check(self):
        if self.config.content_format not in CONTENT_FORMATS:
            raise ConfigurationError(
                message=f"Unknown content_format: {self.config.content_format!r}",
                suggestion=f"Use one of: {', '.join(CONTENT_FORMATS)}",
                context={"source": self.config._sources.get("content_format", "default")},
            )


# ============================================================================
# Public API
# ============================================================================

def get_config(work_dir: Optional[Path] = None) -> ConverterConfig:
    """
    Get complete csvtocourse configuration.

    Args:
        work_dir: Directory holding csvtocourse.yaml (defaults to cwd)

    Returns:
        ConverterConfig with all settings resolved

    Raises:
        ConfigurationError: If a config file is malformed
    """
    loader = ConfigLoader(work_dir)
    return loader.load()


def create_config_template() -> str:
    """Generate a csvtocourse.yaml template."""
    return '''# csvtocourse configuration file

# Where staging directories are created (default: system temp dir)
# staging_dir: /var/tmp/csvtocourse

# Stamped into moodle_backup.xml; match your Moodle site
backup_version: "2024100700"
backup_release: "4.5"
wwwroot: https://localhost

# content_text cells: html (used as-is) or markdown (rendered to HTML)
content_format: html
'''
