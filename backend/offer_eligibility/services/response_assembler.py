from typing import Iterable

from offer_eligibility.models.eligibility import EligibleOffer, EligibleOffersResponse
from offer_eligibility.services.evaluator import OfferVerdict


def assemble_response(user_id: str, verdicts: Iterable[OfferVerdict]) -> EligibleOffersResponse:
    """Keep the eligible verdicts, in the order the evaluator produced them."""
    return EligibleOffersResponse(
        user_id=user_id,
        eligible_offers=[
            EligibleOffer(offer_id=verdict.offer_id, reason=verdict.reason)
            for verdict in verdicts
            if verdict.eligible
        ],
    )
