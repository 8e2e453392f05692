from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, field_serializer, field_validator
from sqlalchemy import BigInteger, Column, DateTime, Index, String

from offer_eligibility.db.db import Base
from offer_eligibility.models.timestamps import _utc_now_naive, as_utc, format_rfc3339
from offer_eligibility.services.validation import sanitize_string


class Transaction(Base):
    """Approved purchase. Rows are append-only: never updated, never deleted."""

    __tablename__ = "transactions"

    id = Column(String(36), primary_key=True)
    user_id = Column(String(36), nullable=False, index=True)
    merchant_id = Column(String(36), nullable=False, index=True)
    mcc = Column(String(4), nullable=False, index=True)
    amount_cents = Column(BigInteger, nullable=False)
    approved_at = Column(DateTime, nullable=False, index=True)
    created_at = Column(DateTime, default=_utc_now_naive, nullable=False)

    __table_args__ = (
        # Hot path: "this user's transactions between two instants"
        Index("ix_transactions_user_approved_at", "user_id", "approved_at"),
    )


# Pydantic models for Transaction
class TransactionCreate(BaseModel):
    """Transaction ingestion record (from API contract)"""
    model_config = ConfigDict(from_attributes=True)

    id: str
    user_id: str
    merchant_id: str
    mcc: str
    amount_cents: int
    approved_at: Optional[datetime] = None

    @field_validator("id", "user_id", "merchant_id", "mcc", mode="before")
    @classmethod
    def sanitize_text(cls, v):
        return sanitize_string(v) if isinstance(v, str) else v

    @field_validator("approved_at")
    @classmethod
    def normalize_to_utc(cls, v: Optional[datetime]):
        return as_utc(v)

    @field_serializer("approved_at")
    def serialize_approved_at(self, v: Optional[datetime]) -> Optional[str]:
        return format_rfc3339(v)


class TransactionBatchRequest(BaseModel):
    """Wrapper for API contract - POST body"""
    transactions: list[TransactionCreate]


class TransactionBatchResponse(BaseModel):
    inserted: int
