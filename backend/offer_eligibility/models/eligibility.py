from pydantic import BaseModel, Field


class EligibleOffer(BaseModel):
    offer_id: str
    reason: str  # short human explanation


class EligibleOffersResponse(BaseModel):
    user_id: str
    eligible_offers: list[EligibleOffer] = Field(default_factory=list)
