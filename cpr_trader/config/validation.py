"""Configuration validation utilities."""

import re
from dataclasses import dataclass
from typing import Any
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

_HHMM = re.compile(r"^([01]\d|2[0-3]):[0-5]\d$")
_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


@dataclass(frozen=True)
class ValidationError:
    """Represents a configuration validation error."""
    field: str
    message: str
    value: Any


def _minutes(hhmm: str) -> int:
    hours, minutes = hhmm.split(":")
    return int(hours) * 60 + int(minutes)


class ConfigValidator:
    """Validates configuration parameters."""

    @staticmethod
    def validate_window_params(params: dict[str, Any]) -> list[ValidationError]:
        """Validate trading window parameters."""
        errors = []

        if "timezone" in params:
            value = params["timezone"]
            try:
                ZoneInfo(value)
            except (ZoneInfoNotFoundError, ValueError, TypeError):
                errors.append(ValidationError(
                    field="timezone",
                    message="Must be an IANA timezone name",
                    value=value
                ))

        bounds = ("preparation_start", "preparation_end", "live_start", "live_end")
        for name in bounds:
            if name in params:
                value = params[name]
                if not isinstance(value, str) or not _HHMM.match(value):
                    errors.append(ValidationError(
                        field=name,
                        message="Must be a HH:MM time",
                        value=value
                    ))

        # Ordering is only meaningful once every bound parsed
        if errors or not all(name in params for name in bounds):
            return errors

        for prefix in ("preparation", "live"):
            start = params[f"{prefix}_start"]
            end = params[f"{prefix}_end"]
            if _minutes(start) > _minutes(end):
                errors.append(ValidationError(
                    field=f"{prefix}_end",
                    message=f"Must not be earlier than {prefix}_start",
                    value=end
                ))

        return errors

    @staticmethod
    def validate_candle_params(params: dict[str, Any]) -> list[ValidationError]:
        """Validate market data parameters."""
        errors = []

        if "interval_minutes" in params:
            value = params["interval_minutes"]
            if not isinstance(value, int) or value <= 0 or 60 % value != 0:
                errors.append(ValidationError(
                    field="interval_minutes",
                    message="Must be a positive integer dividing 60",
                    value=value
                ))

        if "timeout_seconds" in params:
            value = params["timeout_seconds"]
            if not isinstance(value, (int, float)) or value <= 0:
                errors.append(ValidationError(
                    field="timeout_seconds",
                    message="Must be a positive number",
                    value=value
                ))

        return errors

    @staticmethod
    def validate_credential_params(params: dict[str, Any]) -> list[ValidationError]:
        """Validate credential refresh parameters."""
        errors = []

        if "refresh_every_seconds" in params:
            value = params["refresh_every_seconds"]
            if not isinstance(value, int) or value <= 0 or value > 60:
                errors.append(ValidationError(
                    field="refresh_every_seconds",
                    message="Must be an integer between 1 and 60",
                    value=value
                ))

        return errors

    @staticmethod
    def validate_gateway_params(params: dict[str, Any]) -> list[ValidationError]:
        """Validate order gateway parameters."""
        errors = []

        if "mode" in params:
            value = params["mode"]
            if value not in ("paper", "http"):
                errors.append(ValidationError(
                    field="mode",
                    message="Must be 'paper' or 'http'",
                    value=value
                ))

        if "quantity" in params:
            value = params["quantity"]
            if not isinstance(value, int) or value <= 0:
                errors.append(ValidationError(
                    field="quantity",
                    message="Must be a positive integer",
                    value=value
                ))

        if "retry_attempts" in params:
            value = params["retry_attempts"]
            if not isinstance(value, int) or value < 0:
                errors.append(ValidationError(
                    field="retry_attempts",
                    message="Must be a non-negative integer",
                    value=value
                ))

        if "timeout_seconds" in params:
            value = params["timeout_seconds"]
            if not isinstance(value, (int, float)) or value <= 0:
                errors.append(ValidationError(
                    field="timeout_seconds",
                    message="Must be a positive number",
                    value=value
                ))

        return errors

    @staticmethod
    def validate_logging_params(params: dict[str, Any]) -> list[ValidationError]:
        """Validate logging parameters."""
        errors = []

        if "level" in params:
            value = params["level"]
            if not isinstance(value, str) or value.upper() not in _LOG_LEVELS:
                errors.append(ValidationError(
                    field="level",
                    message=f"Must be one of {', '.join(_LOG_LEVELS)}",
                    value=value
                ))

        return errors

    @staticmethod
    def validate_config(config: dict[str, Any]) -> list[ValidationError]:
        """Validate complete configuration."""
        errors = []

        if "windows" in config:
            errors.extend(ConfigValidator.validate_window_params(config["windows"]))

        if "candles" in config:
            errors.extend(ConfigValidator.validate_candle_params(config["candles"]))

        if "credentials" in config:
            errors.extend(ConfigValidator.validate_credential_params(config["credentials"]))

        if "gateway" in config:
            errors.extend(ConfigValidator.validate_gateway_params(config["gateway"]))

        if "logging" in config:
            errors.extend(ConfigValidator.validate_logging_params(config["logging"]))

        return errors
