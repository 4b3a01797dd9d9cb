"""Error taxonomy shared by the loaders, policies and simulators."""

from __future__ import annotations


class ConfigurationError(ValueError):
    """Raised for invalid simulation or policy parameters."""


class PolicyError(ConfigurationError):
    """Raised when a withdrawal policy is unknown or misconfigured."""


class DataAvailabilityError(LookupError):
    """Raised when required market or inflation data is not present."""


class MonthNotFoundError(DataAvailabilityError):
    def __init__(self, month: str, label: str = "start_month") -> None:
        super().__init__(f"{label} not found: {month}")
        self.month = month


class InsufficientDataError(DataAvailabilityError):
    """Raised when the series is too short for the requested horizon."""


class DataFormatError(ValueError):
    """Raised when an input CSV cannot be turned into a usable dataset."""
