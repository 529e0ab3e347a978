"""
Exception Definitions - Custom exceptions for the Eliza engine
==============================================================

This module defines all custom exceptions used throughout the application,
providing clear error handling and meaningful error messages.
"""


class ElizaError(Exception):
    """
    Base exception for all Eliza engine errors.

    All custom exceptions in this application inherit from this base class,
    allowing for easy catching of all application-specific errors.

    Attributes:
        message (str): Human-readable error description
        details (dict): Additional error details for debugging
    """

    def __init__(self, message: str, details: dict = None):
        """
        Initialize the exception.

        Args:
            message: Human-readable error description
            details: Optional dictionary with additional error context
        """
        self.message = message
        self.details = details or {}
        super().__init__(self.message)

    def __str__(self) -> str:
        """Return formatted error message with details if present."""
        if self.details:
            return f"{self.message} | Details: {self.details}"
        return self.message


class ConfigError(ElizaError):
    """
    Configuration-related errors.

    Raised when there are issues with:
    - Invalid configuration values
    - Environment variable issues
    - Configuration parsing errors
    """
    pass


class ScriptFormatError(ElizaError):
    """
    Malformed rule data in a conversation script.

    Raised at load time when there are issues with:
    - Substitution lines without exactly two tab-separated fields
    - Keyword lines with a missing or non-numeric priority
    - Decomposition or reassembly lines outside a keyword block
    - Empty reassembly, fallback, welcome or final message pools
    - Missing or unreadable script files

    Attributes:
        line_number (int): 1-based line in the script, 0 if not line-bound
    """

    def __init__(self, message: str, line_number: int = 0, details: dict = None):
        """
        Initialize script error with location information.

        Args:
            message: Human-readable error description
            line_number: Offending line (1-based), 0 when unknown
            details: Optional dictionary with additional error context
        """
        self.line_number = line_number
        super().__init__(message, details)

    def __str__(self) -> str:
        """Return formatted error message with the line number."""
        base = super().__str__()
        if self.line_number:
            return f"{base} | Line: {self.line_number}"
        return base
