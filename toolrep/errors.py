"""Error taxonomy for collection and scoring runs.

None of these escape a collection or scoring run. Each is caught at the
narrowest level that can keep the run going:

- SourceUnavailableError: inside the adapter or analyzer that called the source
- MalformedSourceDataError: per raw record, the record is skipped
- AnalyzerError: per analyzer, the factor scores 0 with confidence 0
- PersistenceError: per tool, the tool is skipped
"""


class ToolRepError(Exception):
    """Base class for all toolrep errors."""

    def __init__(self, message: str, source: str | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.source = source

    def __str__(self) -> str:
        if self.source:
            return f"{self.message} [source={self.source}]"
        return self.message


class SourceUnavailableError(ToolRepError):
    """External source could not be reached or refused the request."""

    def __init__(
        self,
        message: str,
        source: str | None = None,
        status_code: int | None = None,
    ) -> None:
        super().__init__(message, source)
        self.status_code = status_code


class MalformedSourceDataError(ToolRepError):
    """External source returned data of an unexpected shape."""


class AnalyzerError(ToolRepError):
    """A factor analyzer could not produce a score."""


class PersistenceError(ToolRepError):
    """The store failed to read or write."""
