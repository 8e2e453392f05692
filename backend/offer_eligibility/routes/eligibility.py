from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends

from offer_eligibility.config import EligibilityConfig
from offer_eligibility.dependencies.services import get_eligibility_service
from offer_eligibility.models.timestamps import parse_rfc3339
from offer_eligibility.routes.errors import service_error_to_http
from offer_eligibility.services.eligibility_service import EligibilityService, deadline_from_timeout
from offer_eligibility.services.errors import ServiceError, ValidationError, ValidationKind
from offer_eligibility.services.validation import sanitize_string

router = APIRouter(
    prefix="/api/v1/users",
    tags=["eligibility"]
)


@router.get("/{user_id}/eligible-offers")
def get_eligible_offers(
    user_id: str,
    now: Optional[str] = None,
    service: EligibilityService = Depends(get_eligibility_service),
) -> Dict[str, Any]:
    """
    List the offers a user qualifies for.

    Path Parameters:
    - user_id: UUID v4 of the user

    Query Parameters:
    - now: RFC3339 instant to evaluate at (e.g. "2025-10-21T10:00:00Z"); defaults to the current time
    """
    try:
        moment = None
        if now is not None:
            try:
                moment = parse_rfc3339(sanitize_string(now))
            except ValueError:
                raise ValidationError(
                    ValidationKind.InvalidTimestamp,
                    "now",
                    "must be an RFC3339 timestamp with a UTC offset",
                )
        response = service.get_eligible_offers(
            user_id,
            now=moment,
            deadline=deadline_from_timeout(EligibilityConfig.EVALUATION_TIMEOUT_SECONDS),
        )
    except ServiceError as exc:
        raise service_error_to_http(exc)
    return response.model_dump()
