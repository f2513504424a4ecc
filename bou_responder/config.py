"""Startup configuration loading."""

import os
from pathlib import Path

import yaml
from pydantic import ValidationError

from bou_responder.datastructures import ConnectionConfig
from bou_responder.exceptions import (
    ConfigInvalidError,
    ConfigMalformedError,
    ConfigMissingError,
    EmptyTokenError,
)
from bou_responder.logger import logger
from bou_responder.schemas import ConfigDocument

DEFAULT_CONFIG_PATH = "config.yml"


def get_default_config_path() -> Path:
    """Returns BOU_RESPONDER_CONFIG or config.yml in the working directory."""
    return Path(os.getenv("BOU_RESPONDER_CONFIG", "") or Path.cwd() / DEFAULT_CONFIG_PATH)


def load_config(path: str | os.PathLike[str]) -> ConnectionConfig:
    """Reads and validates the connection parameters.

    Args:
        path: The YAML file holding a ``bouOptions`` mapping.

    Returns:
        The validated connection parameters.

    Raises:
        ConfigMissingError: The file cannot be read.
        ConfigMalformedError: The file is not UTF-8 text or not valid YAML.
        ConfigInvalidError: A required field is absent, not a string or empty.
        EmptyTokenError: The broker token is empty.
    """
    config_path = Path(path)
    try:
        raw_text = config_path.read_text(encoding="utf-8")
    except UnicodeDecodeError as e:
        raise ConfigMalformedError(f"The config file '{config_path}' is not UTF-8 text.") from e
    except OSError as e:
        raise ConfigMissingError(f"The config file '{config_path}' could not be read: {e}") from e

    try:
        loaded = yaml.safe_load(raw_text)
    except yaml.YAMLError as e:
        raise ConfigMalformedError(f"The config file '{config_path}' is not valid YAML.") from e

    try:
        document = ConfigDocument.model_validate(loaded)
    except ValidationError as e:
        raise ConfigInvalidError(
            f"The setting value is incorrect or insufficient. Check '{config_path}': "
            f"{_describe_errors(e)}"
        ) from e

    options = document.bou_options
    if not options.beebotte_channel_token:
        raise EmptyTokenError(f"The length of the token is zero. Check '{config_path}'.")

    logger.debug(f"Loaded the configuration from {config_path}")
    return ConnectionConfig(
        broker_token=options.beebotte_channel_token,
        channel=options.beebotte_channel,
        resource=options.beebotte_resource,
        status_endpoint_base=options.endpoint,
    )


def _describe_errors(error: ValidationError) -> str:
    return "; ".join(
        f"{'.'.join(str(part) for part in item['loc']) or '<root>'}: {item['msg']}"
        for item in error.errors()
    )
