"""Exception types shared by the import pipeline and the API layer."""


class PaymapError(Exception):
    """Base class for errors raised by the importer."""


class NotFoundError(PaymapError):
    """A job or unresolved item does not exist (for the caller)."""


class ImportFatalError(PaymapError):
    """The import cannot continue; the job is marked as failed."""


class HeaderNotFoundError(ImportFatalError):
    """The CSV header lacks one of the required columns."""

    def __init__(self, missing: list[str] | None = None) -> None:
        """Keep the missing column names; the message stays fixed for pollers."""
        super().__init__("header not found")
        self.missing = missing or []
