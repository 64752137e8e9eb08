"""
Configuration Loader for the Livable Communities Data Browser

This module provides a centralized way to load and access configuration
settings from the config.yaml file.

Usage:
    from ops.config_loader import Config

    config = Config()
    towns_path = config.get_input_path('towns_topojson')
    output_dir = config.get_output_dir()
"""

import os
from pathlib import Path
from typing import Any, Dict, Optional, Union

import yaml  # type: ignore[import-untyped]
from loguru import logger

CONFIG_ENV_VAR = "LIVABILITY_CONFIG_PATH"


class Config:
    """Configuration manager for the livability data browser."""

    # Default values that can be overridden in config
    DEFAULTS: Dict[str, Any] = {
        "project_name": "Livable Communities Data Browser",
        "description": "Boston Region MPO livability indicators by town",
        "layers": {
            "towns": "CTPS_TOWNS",
            "outline": "MA_STATE_NO_MAPC",
        },
        "directories": {"output": "output"},
        "server": {
            "base_url": "http://www.ctps.org",
            "internal_hosts": ["lindalino"],
            "internal_root": "/geoserver",
            "public_root": "/map",
        },
        "download": {
            "type_name": "ctpssde:MPODATA.CTPS_TOWNS_MAPC_LIVABILITY",
            "version": "1.0.0",
            "output_format": "csv",
        },
        "visualization": {
            "default_fill": "#ffffff",
            "no_data_fill": "#d9d9d9",
            "fill_opacity": 0.7,
            "stroke": "#000000",
            "stroke_width": 1.0,
            "selected_stroke": "#ff0000",
            "selected_stroke_width": 4.0,
            "outline_fill": "#e8e8e8",
            "tiles": "CartoDB Positron",
            "zoom_start": 9,
        },
        "system": {"output_crs": "EPSG:4326"},
    }

    def __init__(
        self,
        config_file: Optional[Union[str, Path]] = None,
        project_root_override: Optional[Union[str, Path]] = None,
    ):
        """
        Initialize configuration manager.

        Args:
            config_file: Path to config file. If None, looks for:
                        1. Environment variable LIVABILITY_CONFIG_PATH
                        2. config.yaml in current directory
                        3. ops/config.yaml next to this module
            project_root_override: Override project root detection (useful for temp configs)
        """
        if config_file is None:
            env_config = os.environ.get(CONFIG_ENV_VAR)
            packaged = Path(__file__).parent / "config.yaml"
            if env_config and Path(env_config).exists():
                config_file = env_config
                logger.debug(f"Using config from environment: {config_file}")
            elif Path("config.yaml").exists():
                config_file = "config.yaml"
            elif packaged.exists():
                config_file = packaged
                logger.debug("Using packaged ops/config.yaml")
            else:
                raise FileNotFoundError(
                    f"No config.yaml found. Check current directory or set {CONFIG_ENV_VAR}"
                )

        self.config_path = Path(config_file).resolve()
        self.config_dir = self.config_path.parent

        if project_root_override:
            self.project_root = Path(project_root_override).resolve()
            logger.debug(f"Using project root override: {self.project_root}")
        else:
            self.project_root = self._find_project_root()

        logger.debug(f"Loading config from: {self.config_path}")
        logger.debug(f"Project root: {self.project_root}")

        with open(self.config_path, "r") as f:
            self.data = yaml.safe_load(f) or {}

        if not isinstance(self.data, dict):
            raise ValueError(f"Config file must contain a mapping: {self.config_path}")

    def get(self, key_path: str, default: Any = None) -> Any:
        """
        Get configuration value using dot notation, falling back to DEFAULTS.

        Args:
            key_path: Dot-separated path to the configuration value
            default: Default value if key not found in config or DEFAULTS

        Returns:
            Configuration value
        """
        keys = key_path.split(".")

        value: Any = self.data
        for key in keys:
            if isinstance(value, dict) and key in value:
                value = value[key]
            else:
                value = None
                break

        if value is None:
            value = self.DEFAULTS
            for key in keys:
                if isinstance(value, dict) and key in value:
                    value = value[key]
                else:
                    return default

        return value

    def get_input_path(self, filename_key: str) -> Path:
        """
        Get full path to an input file, joined with the project root.

        Args:
            filename_key: Key for the filename in input_files

        Returns:
            Full absolute path to the input file
        """
        relative_path_str = self.data.get("input_files", {}).get(filename_key)
        if not relative_path_str:
            raise ValueError(
                f"Input filename key '{filename_key}' not found in config: input_files"
            )
        return self.project_root / relative_path_str

    def get_layer_name(self, layer_key: str) -> Optional[str]:
        """TopoJSON object name for a geometry source ('towns' or 'outline')."""
        return self.get(f"layers.{layer_key}")

    def get_output_dir(self) -> Path:
        """Output directory for rendered maps and reports; created on demand."""
        output_dir = self.project_root / self.get("directories.output")
        output_dir.mkdir(parents=True, exist_ok=True)
        return output_dir

    def get_server_setting(self, setting_key: str) -> Any:
        return self.get(f"server.{setting_key}")

    def get_download_setting(self, setting_key: str) -> Any:
        return self.get(f"download.{setting_key}")

    def get_visualization_setting(self, setting_key: str) -> Any:
        """Get visualization setting with intelligent defaults."""
        return self.get(f"visualization.{setting_key}")

    def get_system_setting(self, setting_key: str) -> Any:
        return self.get(f"system.{setting_key}")

    def validate_input_files(self) -> Dict[str, bool]:
        """Check which configured input files exist."""
        results: Dict[str, bool] = {}
        for filename_key in self.data.get("input_files", {}):
            results[filename_key] = self.get_input_path(filename_key).exists()
        return results

    def print_config_summary(self) -> None:
        """Log a summary of the current configuration."""
        logger.debug("📋 Configuration Summary")
        logger.debug("=" * 50)
        logger.debug(f"Project: {self.get('project_name', 'Unknown')}")
        logger.debug(f"Description: {self.get('description', 'No description')}")
        logger.debug(f"Config file: {self.config_path}")
        logger.debug(f"Project root: {self.project_root}")

        logger.debug("📊 Input Files:")
        for file_key, exists in self.validate_input_files().items():
            status = "✅" if exists else "❌"
            logger.debug(f"  {status} {file_key}")

    def _find_project_root(self) -> Path:
        """Find the project root directory by looking for characteristic files/directories."""
        current = self.config_path.parent

        project_markers = ["data", "ops", "livability", "pyproject.toml", ".git"]

        for _ in range(5):  # Limit to 5 levels up
            markers_found = sum(1 for marker in project_markers if (current / marker).exists())
            if markers_found >= 2:
                return current

            parent = current.parent
            if parent == current:
                break
            current = parent

        # Fallback: if config is in ops/, project root is parent
        if self.config_path.parent.name == "ops":
            return self.config_path.parent.parent

        logger.warning(
            f"Could not reliably detect project root, using config directory: {self.config_path.parent}"
        )
        return self.config_path.parent
