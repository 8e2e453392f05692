from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Callable, Optional

from offer_eligibility.services.errors import DeadlineExceeded
from offer_eligibility.services.validation import validate_timestamp, validate_uuid

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class OfferVerdict:
    offer_id: str
    min_txn_count: int
    lookback_days: int
    match_count: int

    @property
    def eligible(self) -> bool:
        # A threshold of 0 is met by any history, including none
        return self.match_count >= self.min_txn_count

    @property
    def reason(self) -> str:
        return (
            f">= {self.min_txn_count} matching transactions in last "
            f"{self.lookback_days} days (found {self.match_count})"
        )


class EligibilityEvaluator:
    """
    Decides, offer by offer, whether a user qualifies at a given instant.

    Each active offer is counted over its own lookback window; offers never
    share a window and a transaction may count towards several offers.

    The store only needs `get_active_offers(now, deadline=...)` and
    `count_matching_transactions(user_id, offer, now, deadline=...)`.
    """

    def __init__(self, store: Any, monotonic: Callable[[], float] = time.monotonic) -> None:
        self.store = store
        self._monotonic = monotonic

    def evaluate(
        self,
        user_id: str,
        now: datetime,
        deadline: Optional[float] = None,
    ) -> list[OfferVerdict]:
        """Return one verdict per active offer, in discovery order.

        `deadline` is a value of the monotonic clock. It is checked before and
        after every store call and handed to the store, which abandons a
        statement still running when it passes. Either way the evaluation
        stops with DeadlineExceeded and nothing computed so far is returned.
        Store failures propagate unchanged, with the same effect.
        """
        validate_uuid(user_id, "user_id")
        now = validate_timestamp(now, "now")

        self._check_deadline(deadline)
        offers = self.store.get_active_offers(now, deadline=deadline)

        verdicts: list[OfferVerdict] = []
        for offer in offers:
            self._check_deadline(deadline)
            match_count = self.store.count_matching_transactions(user_id, offer, now, deadline=deadline)
            verdicts.append(
                OfferVerdict(
                    offer_id=offer.id,
                    min_txn_count=offer.min_txn_count,
                    lookback_days=offer.lookback_days,
                    match_count=match_count,
                )
            )
        self._check_deadline(deadline)

        logger.debug(
            "Evaluated %d active offers for user %s at %s",
            len(verdicts),
            user_id,
            now.isoformat(),
        )
        return verdicts

    def _check_deadline(self, deadline: Optional[float]) -> None:
        if deadline is not None and self._monotonic() >= deadline:
            raise DeadlineExceeded()
