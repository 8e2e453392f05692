import logging
from typing import Optional

from sqlalchemy.orm import Session

from offer_eligibility.models.offer import Offer, OfferCreate, OfferResponse
from offer_eligibility.models.timestamps import from_storage
from offer_eligibility.services.record_store import RecordStore
from offer_eligibility.services.validation import validate_offer

logger = logging.getLogger(__name__)


class OfferService:
    def __init__(self, db: Session, store: Optional[RecordStore] = None) -> None:
        self.db = db
        self.store = store or RecordStore(db)

    def _offer_to_response(self, record: Offer) -> OfferResponse:
        return OfferResponse(
            id=record.id,
            merchant_id=record.merchant_id,
            mcc_whitelist=list(record.mcc_whitelist or []),
            active=record.active,
            min_txn_count=record.min_txn_count,
            lookback_days=record.lookback_days,
            starts_at=from_storage(record.starts_at),
            ends_at=from_storage(record.ends_at),
            created_at=from_storage(record.created_at),
            updated_at=from_storage(record.updated_at),
        )

    def create_or_update_offer(self, payload: OfferCreate) -> OfferResponse:
        """Validate, then insert or wholly replace the offer with this id."""
        validate_offer(payload)
        record = self.store.upsert_offer(payload)
        logger.info(
            "Upserted offer %s for merchant %s (active=%s)",
            record.id,
            record.merchant_id,
            record.active,
        )
        return self._offer_to_response(record)
