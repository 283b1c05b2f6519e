"""
Configuration manager for histree with XDG-compliant paths.

Loads and merges configuration from built-in defaults, system and user config
files, with the user file taking precedence. Also resolves the database path
and configures logging.
"""

# pylint: disable=broad-exception-caught

import logging
import os
from pathlib import Path
from typing import Any, Dict, List, Optional

import click
from omegaconf import DictConfig, OmegaConf

DEFAULT_CONFIG = {
    "db_path": None,
    "verbosity": 0,
    "defaults": {
        "limit": 100,
        "format": "simple",
    },
}


class ConfigManager:
    """Manages histree configuration loading and merging."""

    def __init__(self):
        self.system_config: Optional[DictConfig] = None
        self.user_config: Optional[DictConfig] = None
        self.merged_config: Optional[DictConfig] = None
        self._load_configs()

    def _get_xdg_config_dirs(self) -> List[Path]:
        """Get XDG config directories in precedence order."""
        xdg_config_dirs = os.environ.get("XDG_CONFIG_DIRS", "/etc/xdg")
        return [Path(d) / "histree" for d in xdg_config_dirs.split(":") if d]

    def _get_user_config_dir(self) -> Path:
        """Get user config directory following XDG spec."""
        xdg_config_home = os.environ.get("XDG_CONFIG_HOME")
        if xdg_config_home:
            return Path(xdg_config_home) / "histree"
        return Path.home() / ".config" / "histree"

    def _get_user_data_dir(self) -> Path:
        """Get user data directory following XDG spec."""
        xdg_data_home = os.environ.get("XDG_DATA_HOME")
        if xdg_data_home:
            return Path(xdg_data_home) / "histree"
        return Path.home() / ".local" / "share" / "histree"

    def _load_file(self, config_file: Path, scope: str) -> Optional[DictConfig]:
        try:
            return OmegaConf.load(config_file)
        except Exception as e:
            click.echo(
                f"Warning: Failed to load {scope} config {config_file}: {e}",
                err=True,
            )
            return None

    def _load_system_config(self) -> Optional[DictConfig]:
        """Load the first system-wide configuration found."""
        for config_dir in self._get_xdg_config_dirs():
            config_file = config_dir / "config.yaml"
            if config_file.exists():
                return self._load_file(config_file, "system")
        return None

    def _load_user_config(self) -> Optional[DictConfig]:
        """Load user configuration."""
        config_file = self._get_user_config_dir() / "config.yaml"
        if config_file.exists():
            return self._load_file(config_file, "user")
        return None

    def _load_configs(self):
        """Load and merge all configuration files."""
        self.system_config = self._load_system_config()
        self.user_config = self._load_user_config()

        # Merge in precedence order: defaults < system < user
        configs = [OmegaConf.create(DEFAULT_CONFIG)]
        if self.system_config:
            configs.append(self.system_config)
        if self.user_config:
            configs.append(self.user_config)

        self.merged_config = OmegaConf.merge(*configs)

    def reload_configs(self):
        """Reload configuration files."""
        self._load_configs()

    def get_config_files(self) -> Dict[str, Path]:
        """Get paths to all relevant config files."""
        files = {}
        for i, config_dir in enumerate(self._get_xdg_config_dirs()):
            files[f"system_{i}"] = config_dir / "config.yaml"
        files["user"] = self._get_user_config_dir() / "config.yaml"
        return files

    def get_config_value(self, key_path: str) -> Any:
        """Get configuration value by dot-separated path (e.g., 'defaults.limit')."""
        if not self.merged_config:
            return None
        try:
            return OmegaConf.select(self.merged_config, key_path)
        except Exception:
            return None

    def get_defaults(self) -> Dict[str, Any]:
        """Get default option values for the get command."""
        return OmegaConf.to_container(self.merged_config.defaults, resolve=True)

    def to_yaml(self) -> str:
        """Render the effective configuration as YAML."""
        return OmegaConf.to_yaml(self.merged_config)

    def get_db_path(self, override: Optional[str] = None) -> Path:
        """
        Resolve the history database location.

        Precedence: explicit override (--db / HISTREE_DB), then the configured
        `db_path`, then histree.db in the XDG data directory.
        """
        if override:
            return Path(override).expanduser()

        configured = self.get_config_value("db_path")
        if configured:
            return Path(str(configured)).expanduser()

        return self._get_user_data_dir() / "histree.db"


LOG_LEVELS = (logging.ERROR, logging.WARNING, logging.INFO, logging.DEBUG)


def setup_logging(verbosity: int = None):
    """Configure the root logger from the -v count (0 errors only, 3+ debug)."""
    if verbosity is None:
        verbosity = config_manager.get_config_value("verbosity") or 0

    level = LOG_LEVELS[min(max(verbosity, 0), len(LOG_LEVELS) - 1)]
    if level == logging.DEBUG:
        format_str = "%(levelname)s:%(name)s: %(message)s"
    else:
        format_str = "%(levelname)s: %(message)s"

    # force replaces handlers left by an earlier call
    logging.basicConfig(level=level, format=format_str, force=True)


# Global config manager instance
config_manager = ConfigManager()
