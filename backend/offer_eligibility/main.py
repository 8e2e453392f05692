import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from offer_eligibility.config import EligibilityConfig
from offer_eligibility.db.db import init_db
from offer_eligibility.routes import (
    offers_router,
    transactions_router,
    eligibility_router,
)

logging.basicConfig(
    level=EligibilityConfig.LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Lifespan event handler - runs on startup and shutdown"""
    # Startup
    init_db()
    yield
    # Shutdown


app = FastAPI(
    title="Offer Eligibility API",
    version="0.1.0",
    docs_url="/api/docs",
    openapi_url="/api/openapi.json",
    lifespan=lifespan
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=EligibilityConfig.CORS_ALLOWED_ORIGINS,
    allow_methods=["GET", "POST", "OPTIONS"],
    allow_headers=["*"],
)


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request, exc: RequestValidationError):  # type: ignore[override]
    """Malformed request bodies are a caller error: HTTP 400 with the same envelope as service errors."""
    return JSONResponse(
        status_code=400,
        content={
            "detail": {
                "error": {
                    "code": "VALIDATION_ERROR",
                    "message": "Invalid request payload.",
                    "details": {"errors": jsonable_encoder(exc.errors())},
                }
            }
        }
    )


@app.exception_handler(Exception)
async def general_exception_handler(request, exc: Exception):  # type: ignore[override]
    """Handle general exceptions - log and return 500 error"""
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return JSONResponse(
        status_code=500,
        content={
            "detail": {
                "error": {
                    "code": "INTERNAL_SERVER_ERROR",
                    "message": "Internal server error.",
                    "details": {}
                }
            }
        }
    )


@app.get("/health", tags=["health"])
def health() -> dict:
    return {"status": "ok"}


# Register routers
app.include_router(offers_router)
app.include_router(transactions_router)
app.include_router(eligibility_router)


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
