"""
Service results - errors are returned as values, never raised to callers.

Store implementations raise StoreError; the services turn it into a
STORE_UNAVAILABLE result so request handlers branch explicitly.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Generic, List, Optional, TypeVar

T = TypeVar("T")


class ErrorKind(str, Enum):
    """Error taxonomy of the service layer."""
    NOT_FOUND = "not_found"
    UNAUTHORIZED = "unauthorized"
    FORBIDDEN = "forbidden"
    STORE_UNAVAILABLE = "store_unavailable"
    INVALID_CONTENT = "invalid_content"


class StoreError(Exception):
    """The data store could not be read or written."""


@dataclass(frozen=True)
class ServiceError:
    kind: ErrorKind
    message: str
    details: List[Dict[str, Any]] = field(default_factory=list)


@dataclass(frozen=True)
class ServiceResult(Generic[T]):
    """Either data or an error, never both."""

    data: Optional[T] = None
    error: Optional[ServiceError] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @classmethod
    def success(cls, data: T) -> "ServiceResult[T]":
        return cls(data=data)

    @classmethod
    def failure(
        cls,
        kind: ErrorKind,
        message: str,
        details: Optional[List[Dict[str, Any]]] = None,
    ) -> "ServiceResult[T]":
        return cls(error=ServiceError(kind=kind, message=message, details=details or []))
