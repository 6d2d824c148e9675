"""Configuration handling for smmadmin."""

import configparser
import logging
import math
from pathlib import Path
from typing import Dict, Optional

from smmadmin.exceptions import ConfigurationError


DEFAULT_GRAPH_API_URL = "https://graph.facebook.com/v24.0"


class Config:
    """Configuration handler for smmadmin."""

    REQUIRED_SECTIONS = ["general", "database", "meta", "webhooks"]

    def __init__(self, config_path: str):
        """Initialize configuration.

        Args:
            config_path: Path to the configuration file

        Raises:
            ConfigurationError: If the configuration file is not found or invalid
        """
        self.config_parser = configparser.ConfigParser()
        self.config_path = Path(config_path)

        if not self.config_path.exists():
            raise ConfigurationError(f"Config file not found: {config_path}")

        # Store the file modification time
        self.last_modified_time = self.config_path.stat().st_mtime

        try:
            self._load_config()
        except ConfigurationError:
            raise
        except Exception as e:
            raise ConfigurationError(f"Error loading configuration: {e}")

    def _load_config(self) -> None:
        """Load the configuration file and apply validations and defaults."""
        parser = configparser.ConfigParser()
        parser.read(self.config_path)
        self._validate_config(parser)
        self.config_parser = parser
        self._setup_defaults()

    def _validate_config(self, parser: configparser.ConfigParser) -> None:
        """Validate the configuration file has necessary sections and options."""
        for section in self.REQUIRED_SECTIONS:
            if not parser.has_section(section):
                raise ConfigurationError(f"Missing required section: {section}")
        if not parser.get("database", "path", fallback=""):
            raise ConfigurationError("Missing required option: [database] path")
        try:
            interval = parser.getfloat("scheduler", "interval", fallback=60)
        except ValueError:
            raise ConfigurationError("Invalid option: [scheduler] interval must be a number")
        if not math.isfinite(interval) or interval <= 0:
            raise ConfigurationError("Invalid option: [scheduler] interval must be positive")

    def _setup_defaults(self) -> None:
        """Set up default values for optional configuration."""
        if not self.config_parser.has_option("meta", "graph_api_url"):
            self.config_parser.set("meta", "graph_api_url", DEFAULT_GRAPH_API_URL)

        if not self.config_parser.has_section("scheduler"):
            self.config_parser.add_section("scheduler")
            self.config_parser.set("scheduler", "enabled", "true")
            self.config_parser.set("scheduler", "interval", "60")
            logging.info("🆕 Added default scheduler configuration")

    def get(self, section: str, option: str, fallback: Optional[str] = None) -> str:
        """Get a string configuration value.

        Args:
            section: Configuration section
            option: Configuration option
            fallback: Default value if the option is not found

        Returns:
            Configuration value as string
        """
        return self.config_parser.get(section, option, fallback=fallback)

    def getfloat(self, section: str, option: str, fallback: Optional[float] = None) -> float:
        """Get a float configuration value."""
        return self.config_parser.getfloat(section, option, fallback=fallback)

    def getboolean(self, section: str, option: str, fallback: Optional[bool] = None) -> bool:
        """Get a boolean configuration value."""
        return self.config_parser.getboolean(section, option, fallback=fallback)

    def get_path(self, section: str, option: str, fallback: Optional[str] = None) -> Path:
        """Get a path configuration value.

        Args:
            section: Configuration section
            option: Configuration option
            fallback: Default path if the option is not found

        Returns:
            Configuration value as Path object
        """
        return Path(self.get(section, option, fallback=fallback))

    def check_for_changes(self) -> bool:
        """Check if the config file has been modified since last read.

        Returns:
            True if the file has been modified, False otherwise
        """
        if not self.config_path.exists():
            logging.warning(f"⚠️ Config file no longer exists: {self.config_path}")
            return False

        try:
            current_mtime = self.config_path.stat().st_mtime

            if current_mtime > self.last_modified_time:
                logging.info(f"🔄 Config file has been modified: {self.config_path}")
                return True

            return False
        except OSError as e:
            logging.error(f"💥 Error checking config file modification: {e}")
            return False

    def reload_if_changed(self) -> bool:
        """Reload the configuration file if it has been modified.

        An invalid file is rejected and the previous configuration stays active.

        Returns:
            True if the config was reloaded, False otherwise
        """
        if not self.check_for_changes():
            return False

        try:
            old_config = {
                section: dict(self.config_parser[section])
                for section in self.config_parser.sections()
            }

            self._load_config()
            self.last_modified_time = self.config_path.stat().st_mtime
            self._log_config_changes(old_config)

            return True
        except Exception as e:
            logging.error(f"💥 Error reloading config file: {e}")
            return False

    def _log_config_changes(self, old_config: Dict[str, Dict[str, str]]) -> None:
        """Log which sections and options were changed in the config.

        Args:
            old_config: Dictionary of old configuration values
        """
        for section in self.config_parser.sections():
            if section not in old_config:
                logging.info(f"🆕 New config section added: [{section}]")
                continue

            for option, value in self.config_parser[section].items():
                if option not in old_config[section]:
                    logging.info(f"🆕 New config option added: [{section}] {option}")
                elif old_config[section][option] != value:
                    logging.info(f"🔄 Config option changed: [{section}] {option}")

        for section in old_config:
            if not self.config_parser.has_section(section):
                logging.info(f"🗑️ Config section removed: [{section}]")
