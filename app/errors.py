"""Domain errors raised by the service layer.

Routers translate these into HTTP responses; services never raise HTTPException.
"""


class SessionScribeError(Exception):
    """Base class for all domain errors."""


class NotFoundError(SessionScribeError):
    """Resource is absent or not owned by the caller."""


class NoAudioError(NotFoundError):
    """Session has no chunk with a stored audio blob."""


class NothingToStitchError(SessionScribeError):
    """Every chunk download failed, so no artifact could be built."""


class BlobStoreError(SessionScribeError):
    """Blob store operation failed."""


class BlobNotFoundError(BlobStoreError):
    """Requested blob key does not exist."""


class TranscriptionError(SessionScribeError):
    """Speech-to-text backend failed for one chunk."""


class CompletionError(SessionScribeError):
    """Text-generation backend call failed."""


class UpstreamFormatError(SessionScribeError):
    """Text-generation backend returned output that could not be parsed."""


class EmptyTranscriptError(SessionScribeError):
    """No transcript text is available to summarize."""


class ClientHasActiveSessionsError(SessionScribeError):
    """Client cannot be archived while one of its sessions is still active."""
