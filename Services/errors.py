# Services/errors.py
from typing import Any, Dict, Optional


class LifecycleError(Exception):
    """Base class for failures reported by the lifecycle operations.

    ``outcome`` tells the caller whether anything could have happened:
    ``rejected`` means the request was refused and no write is visible,
    ``unknown`` means the store failed mid-flight and the caller should
    re-fetch the entity before deciding to retry.
    """
    code = "LIFECYCLE_ERROR"
    status_code = 500
    outcome = "rejected"

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def to_response(self) -> Dict[str, Any]:
        return {
            "error": {
                "code": self.code,
                "message": self.message,
                "outcome": self.outcome,
                "details": self.details,
            }
        }


class NotFound(LifecycleError):
    code = "NOT_FOUND"
    status_code = 404


class PreconditionFailed(LifecycleError):
    code = "PRECONDITION_FAILED"
    status_code = 409


class InvalidTransition(LifecycleError):
    code = "INVALID_TRANSITION"
    status_code = 409


class InvalidData(LifecycleError):
    code = "INVALID_DATA"
    status_code = 422


class Unavailable(LifecycleError):
    code = "UNAVAILABLE"
    status_code = 503
    outcome = "unknown"
