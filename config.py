"""Configuration management for the Matrix bot.

Provides a ConfigManager class that loads and validates the bot configuration
from a YAML file.
"""
import logging
from dataclasses import dataclass, field, fields
from typing import Any, Dict, Optional

from storage.file_store import StoreError, YAMLFileStore

logger = logging.getLogger(__name__)


class ConfigError(Exception):
    """The configuration file is missing or invalid."""


@dataclass(frozen=True)
class BotConfig:
    """Settings the bot needs to log in and store its state.

    Attributes:
        homeserver_url: Base URL of the homeserver
        mxid: Matrix user id of the bot
        password: Password used when no saved session exists
        store_path: Directory for sync state
        session_path: Directory holding session.json
    """
    homeserver_url: str
    mxid: str
    password: str = field(repr=False)
    store_path: str
    session_path: str

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "BotConfig":
        """Build a BotConfig, requiring every field to be a string.

        Raises:
            ConfigError: A field is missing or not a string
        """
        values = {}
        for f in fields(cls):
            value = data.get(f.name)
            if not isinstance(value, str) or not value:
                raise ConfigError(f"Config field {f.name!r} must be a non-empty string")
            values[f.name] = value
        return cls(**values)


@dataclass
class ConfigManager:
    """Loads bot configuration from a YAML file.

    Attributes:
        path: Path to the YAML configuration file
    """
    path: str
    _store: YAMLFileStore = field(init=False)
    _config: Optional[BotConfig] = field(init=False, default=None)

    def __post_init__(self) -> None:
        self._store = YAMLFileStore(self.path)

    def load(self) -> BotConfig:
        """Load and validate the configuration file.

        Raises:
            ConfigError: The file is missing, malformed or incomplete
        """
        if not self._store.exists():
            raise ConfigError(f"Config file {self.path} not found")

        try:
            data = self._store.read()
        except StoreError as e:
            raise ConfigError(str(e)) from e

        self._config = BotConfig.from_dict(data)
        logger.info("Loaded config from %s", self.path)
        return self._config

    def get(self) -> BotConfig:
        """Get the loaded configuration."""
        if self._config is None:
            raise ConfigError("Config has not been loaded")
        return self._config
