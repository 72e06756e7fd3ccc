"""
Custom exception classes for the PFD display core.

This module provides specific exception types for the failure modes of the
signal pipeline, so callers can contain recoverable decode and filter errors
while letting configuration errors abort construction.
"""

from typing import Any


class PfdException(Exception):
    """Base exception for all PFD application errors.

    All custom exceptions should inherit from this class to enable
    catching all application-specific errors while preserving exception
    hierarchy.
    """
    pass


class SignalDecodeError(PfdException):
    """Exception raised when an inbound sample cannot be interpreted.

    Attributes:
        signal_name: Name of the channel being decoded (if known)
        word: The raw 64-bit transport value that failed to decode
        original_error: The underlying exception that caused this error
    """

    def __init__(self, message: str, signal_name: str = None, word: float = None,
                 original_error: Exception = None):
        """Initialize SignalDecodeError.

        Args:
            message: Human-readable error message
            signal_name: Channel name (optional)
            word: Raw transport value (optional)
            original_error: Underlying exception (optional)
        """
        super().__init__(message)
        self.signal_name = signal_name
        self.word = word
        self.original_error = original_error


class InvalidQualityLane(SignalDecodeError):
    """Exception raised when the low 32-bit lane of a word is not a quality code.

    Attributes:
        lane: The offending unsigned 32-bit integer
    """

    def __init__(self, message: str, lane: int = None, word: float = None,
                 signal_name: str = None):
        """Initialize InvalidQualityLane.

        Args:
            message: Human-readable error message
            lane: Offending low-lane integer (optional)
            word: Raw transport value (optional)
            signal_name: Channel name (optional)
        """
        super().__init__(message, signal_name=signal_name, word=word)
        self.lane = lane


class SignalEncodeError(PfdException):
    """Exception raised when a value cannot be packed into a signal word.

    Attributes:
        value: The value that does not fit a single-precision lane
        original_error: The underlying exception that caused this error
    """

    def __init__(self, message: str, value: float = None, original_error: Exception = None):
        """Initialize SignalEncodeError.

        Args:
            message: Human-readable error message
            value: Offending value (optional)
            original_error: Underlying exception (optional)
        """
        super().__init__(message)
        self.value = value
        self.original_error = original_error


class NonFiniteFilterResult(PfdException):
    """Exception raised internally when a filter step produces NaN or infinity.

    Filters catch this themselves and substitute a safe output; it never
    leaves a filter's public ``step()`` method.

    Attributes:
        filter_name: Class name of the filter that produced the result
        result: The non-finite value
    """

    def __init__(self, message: str, filter_name: str = None, result: float = None):
        """Initialize NonFiniteFilterResult.

        Args:
            message: Human-readable error message
            filter_name: Filter class name (optional)
            result: The non-finite value (optional)
        """
        super().__init__(message)
        self.filter_name = filter_name
        self.result = result


class ConfigurationError(PfdException):
    """Exception raised for invalid construction-time configuration.

    Attributes:
        setting_name: Name of the setting that is invalid
        setting_value: Value that was provided
        expected: Description of expected value/format
    """

    def __init__(self, message: str, setting_name: str = None,
                 setting_value: Any = None, expected: str = None):
        """Initialize ConfigurationError.

        Args:
            message: Human-readable error message
            setting_name: Name of setting (optional)
            setting_value: Invalid value (optional)
            expected: Expected value description (optional)
        """
        super().__init__(message)
        self.setting_name = setting_name
        self.setting_value = setting_value
        self.expected = expected


class ReplayError(PfdException):
    """Exception raised when a recorded event file cannot be replayed.

    Attributes:
        file_path: Path of the event file (if known)
        index: Position of the offending event (if known)
    """

    def __init__(self, message: str, file_path: str = None, index: int = None):
        super().__init__(message)
        self.file_path = file_path
        self.index = index
