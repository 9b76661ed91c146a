"""
Defines custom exceptions for the application to allow for more specific error handling.
"""


class CorekeeperError(Exception):
    """Base exception for all application-specific errors."""


class ConfigurationError(CorekeeperError):
    """Raised for issues related to configuration loading or validation."""


class CollaboratorError(CorekeeperError):
    """Raised when an update service call cannot produce a usable result."""


class DownloadError(CollaboratorError):
    """Raised when a release asset or data file cannot be downloaded."""


class ExtractionError(CorekeeperError):
    """Raised when a downloaded archive cannot be unpacked into its install directory."""


class UnsupportedPlatformError(CorekeeperError):
    """Raised when no release asset exists for the running OS and architecture."""
