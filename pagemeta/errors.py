"""Exception hierarchy for the metadata pipeline.

Only input validation and transport failures abort a pipeline run.  A field
that cannot be found is never an error; it is simply absent from the result.
"""

from __future__ import annotations

from enum import Enum


class ErrorKind(str, Enum):
    """Failure category, mapped to the HTTP status reported to callers."""

    INVALID_INPUT = "invalid_input"
    FETCH_FAILED = "fetch_failed"
    EXTRACTION_FAILED = "extraction_failed"

    @property
    def http_status(self) -> int:
        return 500 if self is ErrorKind.EXTRACTION_FAILED else 400


class MetadataError(RuntimeError):
    """Base class for every failure raised by :mod:`pagemeta`.

    Attributes:
        kind -- the :class:`ErrorKind` of the failure
        url  -- the URL being processed ("" when unknown)
    """

    kind: ErrorKind = ErrorKind.EXTRACTION_FAILED

    def __init__(self, message: str, url: str = "") -> None:
        super().__init__(message)
        self.url = url

    @property
    def http_status(self) -> int:
        return self.kind.http_status


class InvalidInputError(MetadataError):
    """The supplied URL is missing or is not an absolute URL."""

    kind = ErrorKind.INVALID_INPUT


class FetchError(MetadataError):
    """Raised when the target page cannot be fetched.

    Attributes:
        url    -- the URL that failed
        status -- HTTP status code of the target (0 if no response was received)
        reason -- HTTP reason phrase or transport-level cause
        body   -- decoded error body, when the server sent one
    """

    kind = ErrorKind.FETCH_FAILED

    def __init__(
        self,
        message: str,
        url: str = "",
        status: int = 0,
        reason: str = "",
        body: str | None = None,
    ) -> None:
        super().__init__(message, url=url)
        self.status = status
        self.reason = reason
        self.body = body


class ExtractionError(MetadataError):
    """Unexpected internal fault while parsing or extracting a fetched page."""

    kind = ErrorKind.EXTRACTION_FAILED
