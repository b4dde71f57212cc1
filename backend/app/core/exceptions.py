# backend/app/core/exceptions.py
"""
Failure kinds raised by the idea pipeline.

Every error carries a stable ``kind`` string, a ``retryable`` flag and the
HTTP status the API answers with. Nothing in the pipeline retries on its
own; ``retryable`` only tells the caller whether trying again with the same
input can succeed.
"""
import uuid
from typing import Optional


class IdeaServiceError(Exception):
    kind = "IdeaServiceError"
    retryable = False
    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def to_dict(self) -> dict:
        return {"detail": self.message, "error": self.kind, "retryable": self.retryable}


class NotFound(IdeaServiceError):
    """Missing record, or one owned by somebody else. The two are not told apart."""
    kind = "NotFound"
    status_code = 404


class ValidationInput(IdeaServiceError):
    kind = "ValidationInput"
    status_code = 422


class StoreFailure(IdeaServiceError):
    kind = "StoreFailure"
    retryable = True
    status_code = 503


class AnalysisError(IdeaServiceError):
    """Base for failures of a single analysis request."""
    status_code = 502

    def __init__(self, message: str):
        super().__init__(message)
        # Set by the idea service once the draft idea is stored
        self.idea_id: Optional[uuid.UUID] = None

    def to_dict(self) -> dict:
        data = super().to_dict()
        if self.idea_id is not None:
            data["idea_id"] = str(self.idea_id)
        return data


class ProviderUnavailable(AnalysisError):
    kind = "ProviderUnavailable"
    retryable = True
    status_code = 503


class UnparsableResponse(AnalysisError):
    kind = "UnparsableResponse"


class InvalidAnalysisSchema(AnalysisError):
    kind = "InvalidAnalysisSchema"


class QueueUnavailable(IdeaServiceError):
    """The background job broker could not accept a validation task."""
    kind = "QueueUnavailable"
    retryable = True
    status_code = 503
