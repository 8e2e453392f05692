import logging
import os

logger = logging.getLogger(__name__)


class EligibilityConfig:
    """Runtime settings read from environment variables, with logged fallbacks"""

    LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

    # Comma-separated list; "*" allows any origin
    CORS_ALLOWED_ORIGINS = [
        origin.strip()
        for origin in os.getenv("CORS_ALLOWED_ORIGINS", "*").split(",")
        if origin.strip()
    ]

    # Parse batch cap with validation and fallback
    _default_max_batch = 1000
    try:
        MAX_TRANSACTION_BATCH = int(os.getenv("MAX_TRANSACTION_BATCH", str(_default_max_batch)))
        if MAX_TRANSACTION_BATCH <= 0:
            raise ValueError(MAX_TRANSACTION_BATCH)
    except (TypeError, ValueError):
        logger.warning(
            "Invalid MAX_TRANSACTION_BATCH value; falling back to default %s",
            _default_max_batch,
        )
        MAX_TRANSACTION_BATCH = _default_max_batch

    # Parse evaluation budget with validation and fallback; 0 disables it
    _default_timeout = 5.0
    try:
        EVALUATION_TIMEOUT_SECONDS = float(
            os.getenv("EVALUATION_TIMEOUT_SECONDS", str(_default_timeout))
        )
        if EVALUATION_TIMEOUT_SECONDS < 0:
            raise ValueError(EVALUATION_TIMEOUT_SECONDS)
    except (TypeError, ValueError):
        logger.warning(
            "Invalid EVALUATION_TIMEOUT_SECONDS value; falling back to default %s seconds",
            _default_timeout,
        )
        EVALUATION_TIMEOUT_SECONDS = _default_timeout
