from typing import Any, Dict

from fastapi import APIRouter, Depends

from offer_eligibility.dependencies.services import get_transaction_service
from offer_eligibility.models.transaction import TransactionBatchRequest, TransactionBatchResponse
from offer_eligibility.routes.errors import service_error_to_http
from offer_eligibility.services.errors import ServiceError
from offer_eligibility.services.transaction_service import TransactionService

router = APIRouter(
    prefix="/api/v1/transactions",
    tags=["transactions"]
)


@router.post("", status_code=201)
def ingest_transactions(
    request: TransactionBatchRequest,
    service: TransactionService = Depends(get_transaction_service),
) -> Dict[str, Any]:
    """
    Append a batch of approved transactions. Either every record is stored or none is.

    Request body:
    {
        "transactions": [
            {
                "id": "0b7e6f2a-5c4d-4e3f-a2b1-9c8d7e6f5a4b",
                "user_id": "c1d2e3f4-a5b6-4c7d-8e9f-0a1b2c3d4e5f",
                "merchant_id": "7a8b9c0d-1e2f-4a3b-8c4d-5e6f7a8b9c0d",
                "mcc": "5812",
                "amount_cents": 1250,
                "approved_at": "2025-10-20T12:00:00Z"
            }
        ]
    }
    """
    try:
        inserted = service.ingest_transactions(request.transactions)
    except ServiceError as exc:
        raise service_error_to_http(exc)
    return TransactionBatchResponse(inserted=inserted).model_dump()
