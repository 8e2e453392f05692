from .offer import Offer, OfferCreate, OfferRequest, OfferResponse
from .transaction import Transaction, TransactionBatchRequest, TransactionBatchResponse, TransactionCreate
from .eligibility import EligibleOffer, EligibleOffersResponse

__all__ = [
    "Offer",
    "OfferCreate",
    "OfferRequest",
    "OfferResponse",
    "Transaction",
    "TransactionBatchRequest",
    "TransactionBatchResponse",
    "TransactionCreate",
    "EligibleOffer",
    "EligibleOffersResponse",
]
