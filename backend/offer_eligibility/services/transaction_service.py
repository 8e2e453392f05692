import logging
from datetime import datetime
from typing import Callable, Optional, Sequence

from sqlalchemy.orm import Session

from offer_eligibility.config import EligibilityConfig
from offer_eligibility.models.timestamps import utc_now
from offer_eligibility.models.transaction import TransactionCreate
from offer_eligibility.services.errors import ValidationError, ValidationKind
from offer_eligibility.services.record_store import RecordStore
from offer_eligibility.services.validation import validate_transaction

logger = logging.getLogger(__name__)


class TransactionService:
    def __init__(
        self,
        db: Session,
        store: Optional[RecordStore] = None,
        clock: Callable[[], datetime] = utc_now,
        max_batch: Optional[int] = None,
    ) -> None:
        self.db = db
        self.store = store or RecordStore(db)
        self.clock = clock
        self.max_batch = max_batch or EligibilityConfig.MAX_TRANSACTION_BATCH

    def _check_batch_size(self, transactions: Sequence[TransactionCreate]) -> None:
        if not transactions:
            raise ValidationError(ValidationKind.InvalidBatch, "transactions", "no transactions provided")
        if len(transactions) > self.max_batch:
            raise ValidationError(
                ValidationKind.InvalidBatch,
                "transactions",
                f"cannot process more than {self.max_batch} transactions per request",
            )

    def ingest_transactions(self, transactions: Sequence[TransactionCreate]) -> int:
        """Validate every record, then append the whole batch atomically. Returns the count inserted."""
        self._check_batch_size(transactions)

        now = self.clock()
        for index, txn in enumerate(transactions):
            try:
                validate_transaction(txn, now)
            except ValidationError as exc:
                raise ValidationError(exc.kind, f"transactions[{index}].{exc.field}", exc.reason) from exc

        inserted = self.store.insert_transaction_batch(transactions)
        logger.info("Ingested %d transactions", inserted)
        return inserted
