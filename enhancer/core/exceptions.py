"""Custom exception hierarchy for the article enhancer."""

from __future__ import annotations

from fastapi import status


class ApplicationError(Exception):
    """Base application error with HTTP semantics."""

    status_code: int = status.HTTP_400_BAD_REQUEST
    code: str = "application_error"

    def __init__(self, message: str, *, status_code: int | None = None, code: str | None = None) -> None:
        super().__init__(message)
        if status_code is not None:
            self.status_code = status_code
        if code is not None:
            self.code = code
        self.message = message


class NotFoundError(ApplicationError):
    status_code = status.HTTP_404_NOT_FOUND
    code = "not_found"


class InvalidStateError(ApplicationError):
    """Raised when a document already has a processing attempt in flight."""

    status_code = status.HTTP_409_CONFLICT
    code = "invalid_state"


class ServiceUnavailableError(ApplicationError):
    """Raised when a backing service needed to start an attempt is unreachable."""

    status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    code = "service_unavailable"


class PipelineFailureError(ApplicationError):
    """Raised after an attempt was aborted and the document persisted as failed."""

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    code = "pipeline_failure"

    def __init__(self, document_id: str, stage: str, message: str) -> None:
        super().__init__(f"Processing failed during {stage}: {message}")
        self.document_id = document_id
        self.stage = stage


class ProviderError(RuntimeError):
    """A single generation provider failed or timed out."""

    def __init__(self, provider_id: str, message: str) -> None:
        super().__init__(f"{provider_id}: {message}")
        self.provider_id = provider_id
