"""Configuration management for Super Reaper.

Loads environment variables and provides centralized config access.
"""
import logging
import os
from pathlib import Path
from typing import FrozenSet, Optional

from dotenv import load_dotenv

__version__ = "0.3.0"

DEFAULT_EXCLUDE_TAGS = "wizaction"
DEFAULT_TRASH_DIR = ".reaper_trash"
DEFAULT_LOG_LEVEL = "WARNING"

# Vendored, generated and tool directories never scanned for sources
EXCLUDED_DIRS = frozenset({
    'node_modules', 'bower_components', 'vendor', 'third_party', 'extern',
    'dist', 'build', 'out', 'coverage',
    '.git', '.hg', '.svn',
    DEFAULT_TRASH_DIR,
})


class Config:
    """Configuration loader with environment variable support."""

    def __init__(self, project_root: Optional[str | Path] = None):
        """Initialize config by loading the project's .env file.

        Values already present in the environment take precedence.

        Args:
            project_root: Directory holding .env (default: current directory)

        Raises:
            ValueError: If REAPER_LOG_LEVEL is not a logging level name
        """
        self.project_root = Path(project_root) if project_root is not None else Path.cwd()
        load_dotenv(self.project_root / ".env", override=False)

        self._validate_log_level()

    def _validate_log_level(self):
        level = logging.getLevelName(self.log_level)
        if not isinstance(level, int):
            raise ValueError(
                f"REAPER_LOG_LEVEL={self.log_level!r} is not a valid logging level."
            )

    @property
    def exclusion_tags(self) -> FrozenSet[str]:
        """JSDoc tags that protect a declaration from removal.

        Returns:
            Tag names from REAPER_EXCLUDE_TAGS (comma separated), without '@'
        """
        raw = os.getenv("REAPER_EXCLUDE_TAGS", DEFAULT_EXCLUDE_TAGS)
        return frozenset(tag.strip().lstrip("@") for tag in raw.split(",") if tag.strip())

    @property
    def trash_dir(self) -> Path:
        """Backup directory, resolved against the project root."""
        trash = Path(os.getenv("REAPER_TRASH_DIR", DEFAULT_TRASH_DIR))
        if not trash.is_absolute():
            trash = self.project_root / trash
        return trash

    @property
    def log_level(self) -> str:
        return os.getenv("REAPER_LOG_LEVEL", DEFAULT_LOG_LEVEL).upper()

    @property
    def excluded_dirs(self) -> FrozenSet[str]:
        return EXCLUDED_DIRS
