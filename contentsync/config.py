"""
Configuration management for contentsync.

This module handles loading and accessing configuration values from config.yaml.
It provides a centralized way to manage credentials, the locale specification
and sync settings without changing code.
"""

import yaml
import os
from pathlib import Path
from typing import Any, Dict, List, Optional
import logging


class ConfigManager:
    """
    Manages configuration loading and access for contentsync.
    """

    def __init__(self, config_path: str = "config.yaml"):
        """
        Initialize the configuration manager.

        Args:
            config_path: Path to the configuration file
        """
        self.config_path = Path(config_path)
        self._config: Dict[str, Any] = {}
        self._load_config()

    def _load_config(self) -> None:
        """Load configuration from YAML file."""
        try:
            if not self.config_path.exists():
                raise FileNotFoundError(f"Configuration file not found: {self.config_path}")

            with open(self.config_path, 'r', encoding='utf-8') as f:
                self._config = yaml.safe_load(f) or {}

            logging.info(f"Configuration loaded from {self.config_path}")

        except (OSError, yaml.YAMLError) as e:
            logging.warning(f"Failed to load configuration: {e}")
            # Fall back to default configuration
            self._config = self._get_default_config()

    def _get_default_config(self) -> Dict[str, Any]:
        """Get default configuration values as fallback."""
        return {
            "source": {
                "host": "cdn.contentful.com",
                "environment": "master",
                "timeout": 30.0
            },
            "index": {
                "backend": "algolia",
                "index_prefix": "",
                "batch_size": 1000,
                "timeout": 30.0,
                "duckdb_path": "contentsync.db"
            },
            "locales": [],
            "sync": {
                "page_size": 1000,
                "link_depth": 2,
                "content_types": []
            },
            "logging": {
                "level": "INFO",
                "format": "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
            },
            "paths": {
                "log_file": "contentsync.log"
            }
        }

    def get(self, key_path: str, default: Any = None) -> Any:
        """
        Get a configuration value using dot notation.

        Args:
            key_path: Dot-separated path to the configuration value (e.g., "index.backend")
            default: Default value if key is not found

        Returns:
            The configuration value

        Examples:
            config.get("source.host")  # Returns "cdn.contentful.com"
            config.get("sync.page_size")  # Returns 1000
        """
        keys = key_path.split('.')
        value = self._config

        for key in keys:
            if isinstance(value, dict) and key in value:
                value = value[key]
            else:
                return default

        return value

    def get_section(self, section: str) -> Dict[str, Any]:
        """
        Get an entire configuration section.

        Args:
            section: Name of the configuration section

        Returns:
            Dictionary containing the section configuration
        """
        return self._config.get(section, {})

    def reload(self) -> None:
        """Reload configuration from file."""
        self._load_config()

    # Convenience properties for commonly used values

    @property
    def source_access_token(self) -> Optional[str]:
        """Get the content source access token."""
        return self.get("source.access_token") or os.environ.get("CONTENTFUL_ACCESSTOKEN")

    @property
    def source_space(self) -> Optional[str]:
        """Get the content source space id."""
        return self.get("source.space") or os.environ.get("CONTENTFUL_SPACE")

    @property
    def source_host(self) -> str:
        """Get the content source host (preview.contentful.com for drafts)."""
        return self.get("source.host", "cdn.contentful.com")

    @property
    def source_environment(self) -> str:
        """Get the content source environment."""
        return self.get("source.environment", "master")

    @property
    def source_timeout(self) -> float:
        """Get the content source request timeout."""
        return self.get("source.timeout", 30.0)

    @property
    def index_backend(self) -> str:
        """Get the document index backend (algolia or duckdb)."""
        return self.get("index.backend", "algolia")

    @property
    def index_application_id(self) -> Optional[str]:
        """Get the Algolia application id."""
        return self.get("index.application_id") or os.environ.get("ALGOLIA_APPID")

    @property
    def index_api_key(self) -> Optional[str]:
        """Get the Algolia API key."""
        return self.get("index.api_key") or os.environ.get("ALGOLIA_APIKEY")

    @property
    def index_prefix(self) -> str:
        """Get the prefix prepended to every index name."""
        return self.get("index.index_prefix", "") or ""

    @property
    def index_batch_size(self) -> int:
        """Get the maximum number of operations per batch request."""
        return self.get("index.batch_size", 1000)

    @property
    def index_timeout(self) -> float:
        """Get the document index request timeout."""
        return self.get("index.timeout", 30.0)

    @property
    def duckdb_path(self) -> str:
        """Get the DuckDB database file used by the local index backend."""
        return self.get("index.duckdb_path", "contentsync.db")

    @property
    def locales(self) -> List[List[str]]:
        """Get the locale specification as a list of locale groups."""
        return self.get("locales", []) or []

    @property
    def page_size(self) -> int:
        """Get the number of records requested per source page."""
        return self.get("sync.page_size", 1000)

    @property
    def link_depth(self) -> int:
        """Get the link-expansion depth requested from the source."""
        return self.get("sync.link_depth", 2)

    @property
    def content_types(self) -> List[str]:
        """Get the content types synced when none are given on the command line."""
        return self.get("sync.content_types", []) or []

    @property
    def log_filename(self) -> str:
        """Get log file name."""
        return self.get("paths.log_file", "contentsync.log")


# Global configuration instance
config = ConfigManager()


def get_config() -> ConfigManager:
    """
    Get the global configuration instance.

    Returns:
        The global ConfigManager instance
    """
    return config
