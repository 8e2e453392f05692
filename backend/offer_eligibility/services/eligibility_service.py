import logging
import time
from datetime import datetime
from typing import Any, Callable, Optional

from sqlalchemy.orm import Session

from offer_eligibility.models.eligibility import EligibleOffersResponse
from offer_eligibility.models.timestamps import utc_now
from offer_eligibility.services.evaluator import EligibilityEvaluator
from offer_eligibility.services.record_store import RecordStore
from offer_eligibility.services.response_assembler import assemble_response
from offer_eligibility.services.validation import sanitize_string

logger = logging.getLogger(__name__)


def deadline_from_timeout(timeout_seconds: Optional[float]) -> Optional[float]:
    """Monotonic deadline `timeout_seconds` from now; None or 0 means no deadline."""
    if not timeout_seconds:
        return None
    return time.monotonic() + timeout_seconds


class EligibilityService:
    def __init__(
        self,
        db: Optional[Session] = None,
        *,
        store: Optional[Any] = None,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        if store is None:
            if db is None:
                raise ValueError("EligibilityService needs a session or a store")
            store = RecordStore(db)
        self.store = store
        self.clock = clock
        self.evaluator = EligibilityEvaluator(store)

    def get_eligible_offers(
        self,
        user_id: str,
        now: Optional[datetime] = None,
        deadline: Optional[float] = None,
    ) -> EligibleOffersResponse:
        user_id = sanitize_string(user_id) if isinstance(user_id, str) else user_id
        moment = self.clock() if now is None else now

        verdicts = self.evaluator.evaluate(user_id, moment, deadline=deadline)
        response = assemble_response(user_id, verdicts)
        logger.info(
            "User %s eligible for %d of %d active offers",
            user_id,
            len(response.eligible_offers),
            len(verdicts),
        )
        return response
