import logging
import time
from contextlib import contextmanager
from datetime import datetime, timedelta
from typing import Any, Iterator, NoReturn, Optional, Sequence

from sqlalchemy import func, or_
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from offer_eligibility.models.offer import Offer
from offer_eligibility.models.timestamps import _utc_now_naive, to_storage
from offer_eligibility.models.transaction import Transaction
from offer_eligibility.services.errors import DeadlineExceeded, DuplicateTransactionError, StorageError

logger = logging.getLogger(__name__)

# Keeps IN (...) lists under conservative bind-parameter limits
_ID_CHUNK_SIZE = 500

# SQLite VM instructions between deadline checks while a statement runs
_PROGRESS_STEPS = 1000


def _deadline_passed(deadline: Optional[float]) -> bool:
    return deadline is not None and time.monotonic() >= deadline


class RecordStore:
    """
    Durable storage for offers (upsert by id) and transactions (append-only).

    Every write is committed as a single database transaction, so readers see
    either none or all of it. Database failures surface as StorageError; the
    underlying exception is logged here and never handed to the caller.
    """

    def __init__(self, db: Session) -> None:
        self.db = db

    # ------------------------------------------------------------------
    # Offers
    # ------------------------------------------------------------------

    def upsert_offer(self, offer: Any) -> Offer:
        """Insert the offer, or replace every field of the stored one with the same id."""
        values = {
            "merchant_id": offer.merchant_id,
            "mcc_whitelist": list(offer.mcc_whitelist),
            "active": bool(offer.active),
            "min_txn_count": offer.min_txn_count,
            "lookback_days": offer.lookback_days,
            "starts_at": to_storage(offer.starts_at),
            "ends_at": to_storage(offer.ends_at),
        }

        # Two attempts: a concurrent writer may insert the same id between our
        # read and our commit, in which case the retry takes the update path.
        for attempt in range(2):
            try:
                record = self._write_offer(offer.id, values)
                self.db.commit()
                self.db.refresh(record)
                return record
            except IntegrityError as exc:
                self.db.rollback()
                if attempt:
                    logger.exception("Upsert of offer %s kept conflicting", offer.id)
                    raise StorageError() from exc
            except SQLAlchemyError as exc:
                self.db.rollback()
                logger.exception("Failed to upsert offer %s", offer.id)
                raise StorageError() from exc
        raise StorageError()  # pragma: no cover

    def _write_offer(self, offer_id: str, values: dict) -> Offer:
        now = _utc_now_naive()
        record = self.db.get(Offer, offer_id)
        if record is None:
            record = Offer(id=offer_id, created_at=now, updated_at=now, **values)
            self.db.add(record)
            self.db.flush()
            return record
        for key, value in values.items():
            setattr(record, key, value)
        record.updated_at = now
        return record

    def get_active_offers(self, now: datetime, deadline: Optional[float] = None) -> list[Offer]:
        """Offers switched on whose window contains `now` (both bounds inclusive)."""
        moment = to_storage(now)
        try:
            with self._interrupt_at(deadline):
                return (
                    self.db.query(Offer)
                    .filter(
                        Offer.active.is_(True),
                        Offer.starts_at <= moment,
                        Offer.ends_at >= moment,
                    )
                    .order_by(Offer.id)
                    .all()
                )
        except SQLAlchemyError as exc:
            self._raise_read_failure(exc, deadline, "Failed to query active offers")

    # ------------------------------------------------------------------
    # Transactions
    # ------------------------------------------------------------------

    def insert_transaction_batch(self, transactions: Sequence[Any]) -> int:
        """
        Insert all transactions or none of them.

        A repeated id, either inside the batch or already stored, fails the
        whole batch with DuplicateTransactionError.
        """
        if not transactions:
            return 0

        ids = [txn.id for txn in transactions]
        seen: set[str] = set()
        for txn_id in ids:
            if txn_id in seen:
                raise DuplicateTransactionError(txn_id)
            seen.add(txn_id)

        try:
            existing_id = self._first_existing_id(ids)
            if existing_id is None:
                self.db.add_all(
                    [
                        Transaction(
                            id=txn.id,
                            user_id=txn.user_id,
                            merchant_id=txn.merchant_id,
                            mcc=txn.mcc,
                            amount_cents=txn.amount_cents,
                            approved_at=to_storage(txn.approved_at),
                        )
                        for txn in transactions
                    ]
                )
                self.db.commit()
                return len(transactions)
            self.db.rollback()
        except IntegrityError as exc:
            # Lost a race with another batch carrying one of our ids
            self.db.rollback()
            try:
                existing_id = self._first_existing_id(ids)
            except SQLAlchemyError:
                existing_id = None
            if existing_id is None:
                logger.exception("Transaction batch rejected by the database")
                raise StorageError() from exc
        except SQLAlchemyError as exc:
            self.db.rollback()
            logger.exception("Failed to insert transaction batch of %d", len(transactions))
            raise StorageError() from exc

        raise DuplicateTransactionError(existing_id)

    def _first_existing_id(self, ids: Sequence[str]) -> Optional[str]:
        for start in range(0, len(ids), _ID_CHUNK_SIZE):
            chunk = ids[start:start + _ID_CHUNK_SIZE]
            row = self.db.query(Transaction.id).filter(Transaction.id.in_(chunk)).first()
            if row is not None:
                return row.id
        return None

    def count_matching_transactions(
        self,
        user_id: str,
        offer: Any,
        now: datetime,
        deadline: Optional[float] = None,
    ) -> int:
        """
        Count the user's transactions approved within [now - lookback_days, now]
        at the offer's merchant or under one of its whitelisted MCCs.
        """
        window_end = to_storage(now)
        try:
            window_start = window_end - timedelta(days=offer.lookback_days)
        except OverflowError:
            # Window reaches back past year 1
            window_start = datetime.min

        criteria = Transaction.merchant_id == offer.merchant_id
        whitelist = list(offer.mcc_whitelist or [])
        if whitelist:
            criteria = or_(criteria, Transaction.mcc.in_(whitelist))

        try:
            with self._interrupt_at(deadline):
                count = (
                    self.db.query(func.count(Transaction.id))
                    .filter(
                        Transaction.user_id == user_id,
                        Transaction.approved_at >= window_start,
                        Transaction.approved_at <= window_end,
                        criteria,
                    )
                    .scalar()
                )
        except SQLAlchemyError as exc:
            self._raise_read_failure(
                exc, deadline, f"Failed to count matching transactions for offer {offer.id}"
            )
        return int(count or 0)

    # ------------------------------------------------------------------
    # Deadlines
    # ------------------------------------------------------------------

    @contextmanager
    def _interrupt_at(self, deadline: Optional[float]) -> Iterator[None]:
        """
        Abort the statement running inside the block once the monotonic
        `deadline` passes.

        Only SQLite can interrupt a running statement from here, through its
        progress handler. On other databases the deadline is still checked
        before and after every store call.
        """
        if deadline is None:
            yield
            return
        connection = self.db.connection()
        if connection.dialect.name != "sqlite":
            yield
            return

        raw = connection.connection.driver_connection
        raw.set_progress_handler(lambda: int(time.monotonic() >= deadline), _PROGRESS_STEPS)
        try:
            yield
        finally:
            raw.set_progress_handler(None, 0)

    def _raise_read_failure(self, exc: SQLAlchemyError, deadline: Optional[float], message: str) -> NoReturn:
        if _deadline_passed(deadline):
            self.db.rollback()
            logger.warning("Store read abandoned at deadline")
            raise DeadlineExceeded() from exc
        logger.exception(message)
        raise StorageError() from exc
