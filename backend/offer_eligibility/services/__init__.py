from .errors import (
    DeadlineExceeded,
    DuplicateTransactionError,
    ServiceError,
    StorageError,
    ValidationError,
    ValidationKind,
)

__all__ = [
    "DeadlineExceeded",
    "DuplicateTransactionError",
    "ServiceError",
    "StorageError",
    "ValidationError",
    "ValidationKind",
]
