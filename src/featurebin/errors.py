"""
Error taxonomy for featurebin.

- ParseError: malformed spec text (carries the unparsed remainder)
- ValidationError: well-formed input that violates a schema or encoding rule
- SkippedRecordWarning: a single record was dropped, the batch continues
- FatalSinkError: the output sink rejected a write, the batch is aborted
"""

from typing import Optional


class FeatureBinError(Exception):
    """Base class for all featurebin errors."""


class ParseError(FeatureBinError, ValueError):
    """
    Spec text could not be parsed.

    Attributes:
        remainder: Unparsed input starting at the failure position
    """

    def __init__(self, message: str, remainder: str = ""):
        self.message = message
        self.remainder = remainder
        if remainder:
            super().__init__(f"{message} at '{remainder}'")
        else:
            super().__init__(message)


class ValidationError(FeatureBinError, ValueError):
    """Schema or field-role validation failed."""


class FatalSinkError(FeatureBinError, IOError):
    """Writing to the output sink failed; some whole records may have been flushed."""

    def __init__(self, message: str, records_written: int = 0, cause: Optional[BaseException] = None):
        super().__init__(message)
        self.records_written = records_written
        self.cause = cause


class SkippedRecordWarning(UserWarning):
    """A record was skipped during encoding (e.g. vertex/date count mismatch)."""
