"""Custom exception types for the fleet KPI engine."""


class FleetKPIError(Exception):
    """Base exception for all recoverable fleet KPI errors."""


class ConfigurationError(FleetKPIError):
    """Raised when runtime configuration values are missing or invalid."""


class InputFileError(FleetKPIError):
    """Raised when the activity log file cannot be opened or read."""


class DataValidationError(FleetKPIError):
    """Raised when the activity log does not carry any recognised column."""
