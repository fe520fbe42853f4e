"""
Error taxonomy for the lineage store.

Every failure surfaced by the access layer is a MetadataStoreError carrying
one ErrorCode. Nothing is retried here; callers decide whether to roll back
and retry.
"""

from enum import Enum
from typing import Any, Dict, Optional


class ErrorCode(str, Enum):
    """Kinds of failure reported by the access layer."""

    INVALID_ARGUMENT = "INVALID_ARGUMENT"
    NOT_FOUND = "NOT_FOUND"
    ALREADY_EXISTS = "ALREADY_EXISTS"
    ABORTED = "ABORTED"
    FAILED_PRECONDITION = "FAILED_PRECONDITION"
    INTERNAL = "INTERNAL"


class MetadataStoreError(Exception):
    """Raised by every store operation that cannot complete."""

    def __init__(self, code: ErrorCode, message: str, query: Optional[str] = None):
        self.code = code
        self.message = message
        self.query = query
        super().__init__(f"{code.value}: {message}")

    def to_dict(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {
            "error": self.code.value,
            "message": self.message,
        }
        if self.query is not None:
            payload["query"] = self.query
        return payload


def invalid_argument(message: str) -> MetadataStoreError:
    return MetadataStoreError(ErrorCode.INVALID_ARGUMENT, message)


def not_found(message: str) -> MetadataStoreError:
    return MetadataStoreError(ErrorCode.NOT_FOUND, message)


def already_exists(message: str) -> MetadataStoreError:
    return MetadataStoreError(ErrorCode.ALREADY_EXISTS, message)


def aborted(message: str) -> MetadataStoreError:
    return MetadataStoreError(ErrorCode.ABORTED, message)


def failed_precondition(message: str) -> MetadataStoreError:
    return MetadataStoreError(ErrorCode.FAILED_PRECONDITION, message)


def internal(message: str, query: Optional[str] = None) -> MetadataStoreError:
    return MetadataStoreError(ErrorCode.INTERNAL, message, query=query)
