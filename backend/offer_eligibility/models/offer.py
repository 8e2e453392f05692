from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_serializer, field_validator
from sqlalchemy import JSON, Boolean, Column, DateTime, Index, Integer, String

from offer_eligibility.db.db import Base
from offer_eligibility.models.timestamps import _utc_now_naive, as_utc, format_rfc3339
from offer_eligibility.services.validation import sanitize_string


class Offer(Base):
    __tablename__ = "offers"

    id = Column(String(36), primary_key=True)
    merchant_id = Column(String(36), nullable=False, index=True)
    mcc_whitelist = Column(JSON, nullable=False, default=list)
    active = Column(Boolean, nullable=False, default=False)
    min_txn_count = Column(Integer, nullable=False)
    lookback_days = Column(Integer, nullable=False)
    starts_at = Column(DateTime, nullable=False)
    ends_at = Column(DateTime, nullable=False)
    created_at = Column(DateTime, default=_utc_now_naive, nullable=False)
    updated_at = Column(DateTime, default=_utc_now_naive, nullable=False)

    __table_args__ = (
        Index("ix_offers_active_window", "active", "starts_at", "ends_at"),
    )


# Pydantic models for request/response validation
class OfferBase(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    merchant_id: str
    mcc_whitelist: list[str] = Field(default_factory=list)
    active: bool = False
    min_txn_count: int
    lookback_days: int
    # Optional here so that a missing bound is reported as InvalidWindow
    starts_at: Optional[datetime] = None
    ends_at: Optional[datetime] = None

    @field_validator("id", "merchant_id", mode="before")
    @classmethod
    def sanitize_identifier(cls, v):
        return sanitize_string(v) if isinstance(v, str) else v

    @field_validator("mcc_whitelist", mode="before")
    @classmethod
    def sanitize_whitelist(cls, v):
        if v is None:
            return []
        if isinstance(v, (list, tuple)):
            return [sanitize_string(item) if isinstance(item, str) else item for item in v]
        return v

    @field_validator("starts_at", "ends_at")
    @classmethod
    def normalize_to_utc(cls, v: Optional[datetime]):
        return as_utc(v)

    @field_serializer("starts_at", "ends_at")
    def serialize_window(self, v: Optional[datetime]) -> Optional[str]:
        return format_rfc3339(v)


class OfferCreate(OfferBase):
    pass


class OfferResponse(OfferBase):
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @field_serializer("created_at", "updated_at")
    def serialize_audit(self, v: Optional[datetime]) -> Optional[str]:
        return format_rfc3339(v)


class OfferRequest(BaseModel):
    """Wrapper for API contract - POST body"""
    offer: OfferCreate
