"""evistory exception hierarchy.

All exceptions follow a three-part message pattern: what failed,
likely cause, and suggested fix.
"""

from __future__ import annotations


class EviStoryError(Exception):
    """Base exception for all evistory errors.

    Args:
        what: Description of what failed.
        cause: Likely cause of the failure.
        fix: Suggested action to resolve the issue.

    Example:
        >>> raise EviStoryError(
        ...     what="Operation failed",
        ...     cause="Unexpected internal state",
        ...     fix="Please report this issue",
        ... )
    """

    def __init__(
        self,
        what: str,
        cause: str = "",
        fix: str = "",
    ) -> None:
        self.what = what
        self.cause = cause
        self.fix = fix
        super().__init__(self._format_message())

    def _format_message(self) -> str:
        """Build the multi-line error message from parts."""
        parts = [self.what]
        if self.cause:
            parts.append(f"Cause: {self.cause}")
        if self.fix:
            parts.append(f"Fix: {self.fix}")
        return "\n".join(parts)


class ConfigurationError(EviStoryError):
    """Raised for configuration file and legend setup errors.

    Example:
        >>> raise ConfigurationError(
        ...     what="Cannot read config file",
        ...     cause="File not found: ~/.evistory/config.json",
        ...     fix="Create the file or set EVISTORY_CONFIG",
        ... )
    """


class RecordValidationError(EviStoryError):
    """Raised when input table rows cannot be coerced to typed records.

    Example:
        >>> raise RecordValidationError(
        ...     what="Invalid pixel rows",
        ...     cause="Non-numeric 'value' in rows 4, 9",
        ...     fix="Clean the source CSV or load with strict=False",
        ... )
    """


class YearRangeError(EviStoryError):
    """Raised when a user-selected year range is inverted.

    Example:
        >>> raise YearRangeError(
        ...     what="Invalid year range",
        ...     cause="Start year 2020 is after end year 2010",
        ...     fix="Choose a start year on or before the end year",
        ... )
    """


class ClassificationError(EviStoryError):
    """Raised for unusable band threshold lists."""
