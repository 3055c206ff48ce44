"""Configuration exceptions."""

from .base import DomainException


class ConfigurationError(DomainException):
    """Raised when weights, thresholds or pricing tables are inconsistent."""

    def __init__(self, config_key: str, detail: str | None = None):
        message = f"Invalid configuration: {config_key}"
        if detail:
            message = f"{message} ({detail})"
        super().__init__(
            message=message,
            code="CONFIG_ERROR",
        )
        self.config_key = config_key
