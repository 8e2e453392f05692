from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict


@dataclass
class ServiceError(Exception):
    """Consistent service-layer exception with HTTP-friendly metadata."""

    status_code: int
    code: str
    message: str
    details: Dict[str, Any]

    def __str__(self) -> str:  # pragma: no cover - convenience for logging
        return f"{self.status_code} {self.code}: {self.message} | {self.details}"


class ValidationKind(str, Enum):
    InvalidIdentifier = "InvalidIdentifier"
    InvalidWhitelist = "InvalidWhitelist"
    InvalidThreshold = "InvalidThreshold"
    InvalidWindow = "InvalidWindow"
    InvalidMCC = "InvalidMCC"
    InvalidAmount = "InvalidAmount"
    InvalidTimestamp = "InvalidTimestamp"
    InvalidBatch = "InvalidBatch"


class ValidationError(ServiceError):
    """A caller-correctable problem with a single field of the request."""

    def __init__(self, kind: ValidationKind, field: str, message: str) -> None:
        super().__init__(
            400,
            "VALIDATION_ERROR",
            f"validation error on field '{field}': {message}",
            {"kind": kind.value, "field": field},
        )
        self.kind = kind
        self.field = field
        self.reason = message


class DuplicateTransactionError(ServiceError):
    def __init__(self, transaction_id: str) -> None:
        super().__init__(
            409,
            "DUPLICATE_TRANSACTION",
            f"transaction '{transaction_id}' already exists; batch was not applied",
            {"field": "id", "id": transaction_id},
        )
        self.transaction_id = transaction_id


class StorageError(ServiceError):
    """The persistence layer failed. Carries no internal diagnostics."""

    def __init__(self) -> None:
        super().__init__(503, "STORAGE_UNAVAILABLE", "Storage is temporarily unavailable.", {})


class DeadlineExceeded(ServiceError):
    def __init__(self) -> None:
        super().__init__(504, "DEADLINE_EXCEEDED", "Evaluation did not finish before its deadline.", {})
