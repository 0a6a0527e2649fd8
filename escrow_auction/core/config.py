"""
Application configuration

Configuration is loaded from a TOML file:

.. code-block:: toml

    [logging]
    level = "INFO"

    [validator]
    enforce_time_window = false

All sections and keys are optional.
"""
import tomllib
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Self


class InvalidConfigError(Exception):
    """
    Raised when the config contains a value of the wrong type
    """


@dataclass(slots=True, frozen=True)
class ValidatorConfig:
    """
    Auction validator settings

    :field:`enforce_time_window` - when False (default), bids and closes are admissible at any time.
        When True, a bid must be made between the auction start time and its deadline,
        and the auction can only be closed once its deadline has passed.
    """

    enforce_time_window: bool = False

    @classmethod
    def from_dict(cls, config: dict[str, Any]) -> Self:
        """
        :param config: [validator] section
        """
        enforce_time_window = config.get("enforce_time_window", False)
        if not isinstance(enforce_time_window, bool):
            raise InvalidConfigError(
                f"validator.enforce_time_window must be a boolean: {enforce_time_window!r}"
            )
        return cls(enforce_time_window=enforce_time_window)


@dataclass(slots=True, frozen=True)
class LoggingConfig:
    """
    Logging settings
    """

    level: str = "WARNING"

    @classmethod
    def from_dict(cls, config: dict[str, Any]) -> Self:
        """
        :param config: [logging] section
        """
        level = config.get("level", "WARNING")
        if not isinstance(level, str):
            raise InvalidConfigError(f"logging.level must be a string: {level!r}")
        return cls(level=level.upper())


@dataclass(slots=True, frozen=True)
class AppConfig:
    """
    Application config
    """

    logging: LoggingConfig = field(default_factory=LoggingConfig)
    validator: ValidatorConfig = field(default_factory=ValidatorConfig)

    @classmethod
    def from_dict(cls, config: dict[str, Any]) -> Self:
        """
        Constructs the config from a parsed TOML document
        """
        return cls(
            logging=LoggingConfig.from_dict(config.get("logging", {})),
            validator=ValidatorConfig.from_dict(config.get("validator", {})),
        )

    @classmethod
    def from_config_file(cls, file: Path) -> Self:
        """
        Constructs the config from the specified TOML config file
        """
        with open(file, "rb") as config_file:
            config = tomllib.load(config_file)
        return cls.from_dict(config)
