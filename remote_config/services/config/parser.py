"""
Configuration Parser

Turns raw bytes into a validated configuration mapping.
"""

from typing import Any

import yaml

from remote_config.common.exceptions import ConfigParseError
from remote_config.common.logging_setup import get_service_logger

logger = get_service_logger("config.parser")


class ConfigParser:
    """Parses YAML (and therefore JSON) configuration documents"""

    def __init__(self, required_keys: list[str] | tuple[str, ...] = ()):
        self.required_keys = list(required_keys)

    def parse(self, raw_data: bytes) -> dict[str, Any]:
        """
        Parse and validate a configuration document.

        Raises:
            ConfigParseError: if decoding, parsing or validation fails
        """
        try:
            text = raw_data.decode("utf-8")
        except UnicodeDecodeError as e:
            raise ConfigParseError(f"payload is not UTF-8: {e}") from e

        try:
            document = yaml.safe_load(text)
        except yaml.YAMLError as e:
            raise ConfigParseError(f"payload is not valid YAML/JSON: {e}") from e

        is_valid, errors = self.validate(document)
        if not is_valid:
            logger.warning(
                f"Config validation failed: {len(errors)} errors",
                extra={"errors": errors},
            )
            raise ConfigParseError("; ".join(errors), errors=errors)

        return document

    def validate(self, document: Any) -> tuple[bool, list[str]]:
        """
        Validate a parsed document.

        Returns:
            Tuple of (is_valid, list of error messages)
        """
        errors: list[str] = []

        if not isinstance(document, dict):
            errors.append(f"Config must be a mapping, got {type(document).__name__}")
            return False, errors

        for key in self.required_keys:
            if key not in document:
                errors.append(f"Missing required key: {key}")

        return len(errors) == 0, errors
