from fastapi import HTTPException

from offer_eligibility.services.errors import ServiceError


def _error_payload(code: str, message: str, details: dict) -> dict:
    return {
        "error": {
            "code": code,
            "message": message,
            "details": details,
        }
    }


def service_error_to_http(exc: ServiceError) -> HTTPException:
    return HTTPException(
        status_code=exc.status_code,
        detail=_error_payload(exc.code, exc.message, exc.details),
    )
