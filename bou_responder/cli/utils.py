import logging
from enum import IntEnum, StrEnum

from bou_responder.exceptions import (
    BouResponderCLIException,
    BrokerError,
    ConfigError,
    EmptyTokenError,
)


class LogLevels(StrEnum):
    """A class to represent log levels."""

    CRITICAL = "CRITICAL"
    FATAL = "FATAL"
    ERROR = "ERROR"
    WARNING = "WARNING"
    WARN = "WARN"
    INFO = "INFO"
    DEBUG = "DEBUG"


LOGGING_LEVEL_MAP: dict[str, int] = {
    LogLevels.CRITICAL: logging.CRITICAL,
    LogLevels.FATAL: logging.FATAL,
    LogLevels.ERROR: logging.ERROR,
    LogLevels.WARNING: logging.WARNING,
    LogLevels.WARN: logging.WARNING,
    LogLevels.INFO: logging.INFO,
    LogLevels.DEBUG: logging.DEBUG,
}


class ExitCode(IntEnum):
    """Process exit statuses, distinct per failure class for alerting."""

    OK = 0
    BAD_CONFIGURATION = 3
    EMPTY_CREDENTIAL = 4
    BROKER_FAILURE = 5


def get_log_level(level: LogLevels | str | int) -> int:
    """Get the log level.

    Args:
        level: The log level to get. Can be an integer, a LogLevels enum value, or a string.

    Returns:
        The log level as an integer.

    """
    if isinstance(level, int):
        return level

    translated_level = LOGGING_LEVEL_MAP.get(str(level).upper())
    if translated_level is None:
        possible_values = [member.value for member in LogLevels]
        raise BouResponderCLIException(
            f"Invalid value for '--log-level', it should be one of {possible_values}"
        )

    return translated_level


def get_exit_code(error: BaseException) -> ExitCode:
    if isinstance(error, EmptyTokenError):
        return ExitCode.EMPTY_CREDENTIAL

    if isinstance(error, ConfigError):
        return ExitCode.BAD_CONFIGURATION

    if isinstance(error, BrokerError):
        return ExitCode.BROKER_FAILURE

    raise BouResponderCLIException(f"No exit code is mapped for {type(error).__name__}")
