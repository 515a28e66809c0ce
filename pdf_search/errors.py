from __future__ import annotations


class PdfSearchError(Exception):
    """Base class for every error raised by pdf_search."""


class ConfigError(PdfSearchError):
    pass


class ExtractionError(PdfSearchError):
    """The source document could not be parsed. Not transient; never retried."""


class ProviderError(PdfSearchError):
    """The embedding or question-generation provider failed."""


class StoreError(PdfSearchError):
    """Transport or protocol failure talking to the vector store."""

    def __init__(self, message: str, status: int | None = None):
        super().__init__(message)
        self.status = status


class ConflictError(StoreError):
    """The store refused to create a collection because the name is taken."""


class NotFoundError(StoreError):
    pass


class CollectionResolutionError(PdfSearchError):
    """No collection id could be obtained for a write."""
