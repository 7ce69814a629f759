"""Exception taxonomy shared by clients, services and the API layer."""


class CircularRagError(Exception):
    """Base class for all errors raised by circular-rag components."""


class TransientProviderError(CircularRagError):
    """An external provider call (embedding, extraction, catalog, chat) failed.

    Recovered locally by skipping the affected unit; never aborts an enclosing batch.
    """


class ClientRequestError(TransientProviderError):
    """An HTTP request to a backend failed or returned an unexpected status."""


class EmbeddingError(TransientProviderError):
    """The embedding provider failed or returned an unusable response."""


class ExtractionError(TransientProviderError):
    """A source document could not be downloaded or produced no text."""


class PersistenceError(CircularRagError):
    """A durable snapshot read or write failed (e.g. storage quota exceeded)."""


class MalformedInputError(CircularRagError):
    """A query or document is missing required fields."""


class WorkflowBusyError(CircularRagError):
    """An embedding-generation workflow is already running."""
