from typing import Any, Dict

from fastapi import APIRouter, Depends

from offer_eligibility.dependencies.services import get_offer_service
from offer_eligibility.models.offer import OfferRequest
from offer_eligibility.routes.errors import service_error_to_http
from offer_eligibility.services.errors import ServiceError
from offer_eligibility.services.offer_service import OfferService

router = APIRouter(
    prefix="/api/v1/offers",
    tags=["offers"]
)


@router.post("", status_code=201)
def create_or_update_offer(
    request: OfferRequest,
    service: OfferService = Depends(get_offer_service),
) -> Dict[str, Any]:
    """
    Create an offer, or replace every field of the offer with the same id.

    Request body:
    {
        "offer": {
            "id": "3f1c9a4e-8b2d-4c6f-9e7a-1d2b3c4d5e6f",
            "merchant_id": "7a8b9c0d-1e2f-4a3b-8c4d-5e6f7a8b9c0d",
            "mcc_whitelist": ["5812", "5814"],
            "active": true,
            "min_txn_count": 3,
            "lookback_days": 30,
            "starts_at": "2025-10-01T00:00:00Z",
            "ends_at": "2025-10-31T23:59:59Z"
        }
    }
    """
    try:
        offer = service.create_or_update_offer(request.offer)
    except ServiceError as exc:
        raise service_error_to_http(exc)
    return {"offer": offer.model_dump(mode="json")}
