"""
Error types for the Content Inbox pipeline.

Stages backed by an unreliable collaborator either degrade to a fallback
value or raise one of these so the caller can pick the fallback.
"""


class ContentInboxError(Exception):
    """Base class for all pipeline errors."""

    stage = 'processing'
    recoverable = False

    def to_dict(self) -> dict:
        return {
            'stage': self.stage,
            'message': str(self),
            'recoverable': self.recoverable,
        }


class TransportFailure(ContentInboxError):
    """A remote page or media object was unreachable or returned non-2xx."""

    stage = 'fetch'
    recoverable = True


class MediaDownloadError(TransportFailure):
    stage = 'media_download'


class MediaUploadError(TransportFailure):
    stage = 'media_upload'


class EnrichmentFailure(ContentInboxError):
    """AI enrichment failed; callers continue without it."""

    stage = 'ai_enrichment'
    recoverable = True


class CredentialMissing(ContentInboxError):
    """A required API key or secret is not configured."""

    stage = 'configuration'


class StoreFailure(ContentInboxError):
    """The item store rejected or failed a request."""

    stage = 'store'
