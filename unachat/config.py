"""Configuration loading and validation for the chat relay."""

import json
import os
from dataclasses import dataclass, field
from pathlib import Path

import jsonschema
import yaml

from .composer import ANONYMOUS_NAME, DEFAULT_COLOR
from .logger import DEFAULT_BACKUP_COUNT, DEFAULT_LOG_LEVEL, DEFAULT_MAX_BYTES, get_logger

logger = get_logger(__name__)

ENV_PREFIX = "UNACHAT"
SCHEMA_FILENAME = "config.schema.json"

DEFAULT_HOST = "0.0.0.0"
DEFAULT_PORT = 3000
# Bodies longer than this are cut before composing
DEFAULT_MAX_MESSAGE_LENGTH = 1000


class ConfigurationError(Exception):
    """Raised when configuration is invalid."""

    pass


@dataclass
class ServerConfig:
    """Listening address and inbound message limits."""

    host: str = DEFAULT_HOST
    port: int = DEFAULT_PORT
    max_message_length: int = DEFAULT_MAX_MESSAGE_LENGTH

    def __post_init__(self):
        """Apply environment variable overrides."""
        host_override = os.environ.get(f"{ENV_PREFIX}_HOST")
        if host_override:
            logger.debug(f"Overriding host from environment: {host_override}")
            self.host = host_override

        self.port = _int_override(f"{ENV_PREFIX}_PORT", self.port)
        self.max_message_length = _int_override(
            f"{ENV_PREFIX}_MAX_MESSAGE_LENGTH", self.max_message_length
        )

        if not 0 < self.port < 65536:
            raise ConfigurationError(f"Port out of range: {self.port}")
        if self.max_message_length <= 0:
            raise ConfigurationError(
                f"max_message_length must be positive, got {self.max_message_length}"
            )


@dataclass
class ChatDefaults:
    """Values used when an inbound message leaves a field out."""

    default_color: str = DEFAULT_COLOR
    anonymous_name: str = ANONYMOUS_NAME


@dataclass
class LoggingConfig:
    """Arguments for :func:`unachat.logger.setup_logging`."""

    log_level: str = DEFAULT_LOG_LEVEL
    log_file: str | None = None
    log_format: str = "text"
    max_file_size: int = DEFAULT_MAX_BYTES
    backup_count: int = DEFAULT_BACKUP_COUNT


@dataclass
class ChatConfig:
    """Complete relay configuration."""

    server: ServerConfig = field(default_factory=ServerConfig)
    chat: ChatDefaults = field(default_factory=ChatDefaults)
    logging: LoggingConfig = field(default_factory=LoggingConfig)


def _int_override(name: str, current: int) -> int:
    raw = os.environ.get(name)
    if raw is None or raw == "":
        return current
    try:
        value = int(raw)
    except ValueError as e:
        raise ConfigurationError(f"{name} must be an integer, got {raw!r}") from e
    logger.debug(f"Overriding {name} from environment: {value}")
    return value


def load_chat_config(config_path: Path) -> ChatConfig:
    """
    Load and validate the relay configuration from a YAML file.

    Args:
        config_path: Path to config.yaml

    Returns:
        ChatConfig with defaults filled in for every missing section

    Raises:
        ConfigurationError: If the file is missing, unreadable or invalid
    """
    if not config_path.exists():
        raise ConfigurationError(f"Config file not found: {config_path}")

    logger.info(f"Loading configuration from {config_path}")

    try:
        with open(config_path, encoding="utf-8") as f:
            raw_config = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ConfigurationError(f"Invalid YAML in config: {e}") from e

    if raw_config is None:
        raw_config = {}
    if not isinstance(raw_config, dict):
        raise ConfigurationError("Config file must contain a mapping")

    validate_chat_config(raw_config, config_path.parent)

    try:
        return ChatConfig(
            server=ServerConfig(**raw_config.get("server", {})),
            chat=ChatDefaults(**raw_config.get("chat", {})),
            logging=LoggingConfig(**raw_config.get("logging", {})),
        )
    except TypeError as e:
        raise ConfigurationError(f"Invalid configuration: {e}") from e


def validate_chat_config(config: dict, config_dir: Path) -> None:
    """
    Validate configuration against the JSON Schema stored next to it.

    Looks for ``config.schema.json`` in ``config_dir`` and then in
    ``config_dir / "config"``; validation is skipped when neither exists.

    Raises:
        ConfigurationError: If validation fails
    """
    candidates = [config_dir / SCHEMA_FILENAME, config_dir / "config" / SCHEMA_FILENAME]
    schema_path = next((p for p in candidates if p.exists()), None)

    if schema_path is None:
        logger.warning(f"Schema file not found in {config_dir}, skipping validation")
        return

    try:
        with open(schema_path, encoding="utf-8") as f:
            schema = json.load(f)
    except json.JSONDecodeError as e:
        raise ConfigurationError(f"Invalid JSON schema: {e}") from e

    try:
        jsonschema.validate(instance=config, schema=schema)
    except jsonschema.ValidationError as e:
        path = " -> ".join(str(p) for p in e.absolute_path) if e.absolute_path else "root"
        raise ConfigurationError(f"Configuration validation failed at '{path}': {e.message}") from e

    logger.debug("Configuration validated against schema")
