"""
Domain-rule checks for offers and transactions.

Every check raises the first ValidationError it finds, in field order, and has
no side effects. String fields are expected to have gone through
`sanitize_string` already (the request schemas do this on parse).
"""

import re
import unicodedata
from datetime import datetime, timedelta, UTC
from typing import Any, Iterable, Optional

from offer_eligibility.services.errors import ValidationError, ValidationKind

UUID_V4_PATTERN = re.compile(r"[0-9a-f]{8}-[0-9a-f]{4}-4[0-9a-f]{3}-[89ab][0-9a-f]{3}-[0-9a-f]{12}")
MCC_PATTERN = re.compile(r"[0-9]{4}")

MAX_WHITELIST_SIZE = 100
MAX_MIN_TXN_COUNT = 2**63 - 1
MAX_LOOKBACK_DAYS = 365
MAX_OFFER_SPAN = timedelta(days=2 * 365)
MAX_AMOUNT_CENTS = 100_000_000
MAX_FUTURE_SKEW = timedelta(hours=1)
MAX_PAST_YEARS = 10

_KEPT_CONTROL_CHARS = {"\n", "\r", "\t"}


def sanitize_string(value: str) -> str:
    """Drop control characters (except newline, CR, tab) and trim whitespace."""
    cleaned = "".join(
        ch for ch in value
        if ch in _KEPT_CONTROL_CHARS or unicodedata.category(ch) != "Cc"
    )
    return cleaned.strip()


def validate_uuid(value: Any, field: str) -> None:
    if not isinstance(value, str) or not value:
        raise ValidationError(ValidationKind.InvalidIdentifier, field, "is required")
    if not UUID_V4_PATTERN.fullmatch(sanitize_string(value).lower()):
        raise ValidationError(ValidationKind.InvalidIdentifier, field, "must be a valid UUID v4")


def _is_mcc(value: Any) -> bool:
    return isinstance(value, str) and MCC_PATTERN.fullmatch(value) is not None


def validate_mcc_whitelist(mcc_whitelist: Iterable[str]) -> None:
    codes = list(mcc_whitelist or [])
    if len(codes) > MAX_WHITELIST_SIZE:
        raise ValidationError(
            ValidationKind.InvalidWhitelist,
            "mcc_whitelist",
            f"cannot contain more than {MAX_WHITELIST_SIZE} MCC codes",
        )

    seen: set[str] = set()
    for index, code in enumerate(codes):
        if not _is_mcc(code):
            raise ValidationError(
                ValidationKind.InvalidWhitelist,
                f"mcc_whitelist[{index}]",
                "must be a 4-digit numeric code",
            )
        if code in seen:
            raise ValidationError(
                ValidationKind.InvalidWhitelist,
                "mcc_whitelist",
                f"duplicate MCC code: {code}",
            )
        seen.add(code)


def _require_aware(value: Optional[datetime], field: str, kind: ValidationKind) -> datetime:
    if value is None:
        raise ValidationError(kind, field, "is required")
    if value.tzinfo is None:
        raise ValidationError(kind, field, "must include a UTC offset")
    return value


def validate_offer(offer: Any) -> None:
    """Check an offer payload before it is upserted."""
    validate_uuid(offer.id, "id")
    validate_uuid(offer.merchant_id, "merchant_id")
    validate_mcc_whitelist(offer.mcc_whitelist)

    if offer.min_txn_count < 0:
        raise ValidationError(ValidationKind.InvalidThreshold, "min_txn_count", "must be non-negative")
    if offer.min_txn_count > MAX_MIN_TXN_COUNT:
        raise ValidationError(
            ValidationKind.InvalidThreshold,
            "min_txn_count",
            f"cannot exceed {MAX_MIN_TXN_COUNT}",
        )
    if offer.lookback_days < 0:
        raise ValidationError(ValidationKind.InvalidThreshold, "lookback_days", "must be non-negative")
    if offer.lookback_days > MAX_LOOKBACK_DAYS:
        raise ValidationError(
            ValidationKind.InvalidThreshold,
            "lookback_days",
            f"cannot exceed {MAX_LOOKBACK_DAYS} days",
        )

    starts_at = _require_aware(offer.starts_at, "starts_at", ValidationKind.InvalidWindow)
    ends_at = _require_aware(offer.ends_at, "ends_at", ValidationKind.InvalidWindow)
    if not starts_at < ends_at:
        raise ValidationError(ValidationKind.InvalidWindow, "starts_at", "must be before ends_at")
    if ends_at - starts_at > MAX_OFFER_SPAN:
        raise ValidationError(ValidationKind.InvalidWindow, "ends_at", "offer duration cannot exceed 2 years")


def _years_before(moment: datetime, years: int) -> datetime:
    try:
        return moment.replace(year=moment.year - years)
    except ValueError:
        # Feb 29 -> Mar 1, matching calendar arithmetic
        return moment.replace(year=moment.year - years, month=3, day=1)


def validate_transaction(txn: Any, now: Optional[datetime] = None) -> None:
    """Check a transaction payload against ingestion time `now` (defaults to current UTC)."""
    now = now or datetime.now(UTC)

    validate_uuid(txn.id, "id")
    validate_uuid(txn.user_id, "user_id")
    validate_uuid(txn.merchant_id, "merchant_id")

    if not txn.mcc:
        raise ValidationError(ValidationKind.InvalidMCC, "mcc", "is required")
    if not _is_mcc(txn.mcc):
        raise ValidationError(ValidationKind.InvalidMCC, "mcc", "must be a 4-digit numeric code")

    if txn.amount_cents < 0:
        raise ValidationError(ValidationKind.InvalidAmount, "amount_cents", "must be non-negative")
    if txn.amount_cents > MAX_AMOUNT_CENTS:
        raise ValidationError(ValidationKind.InvalidAmount, "amount_cents", "exceeds maximum allowed amount")

    approved_at = _require_aware(txn.approved_at, "approved_at", ValidationKind.InvalidTimestamp)
    if approved_at > now + MAX_FUTURE_SKEW:
        raise ValidationError(
            ValidationKind.InvalidTimestamp,
            "approved_at",
            "cannot be more than 1 hour in the future",
        )
    if approved_at < _years_before(now, MAX_PAST_YEARS):
        raise ValidationError(
            ValidationKind.InvalidTimestamp,
            "approved_at",
            f"cannot be more than {MAX_PAST_YEARS} years in the past",
        )


def validate_timestamp(value: Optional[datetime], field: str = "now") -> datetime:
    """Reject unset or timezone-naive instants; return the value normalized to UTC."""
    value = _require_aware(value, field, ValidationKind.InvalidTimestamp)
    try:
        return value.astimezone(UTC)
    except OverflowError as exc:
        raise ValidationError(ValidationKind.InvalidTimestamp, field, "is outside the supported range") from exc
