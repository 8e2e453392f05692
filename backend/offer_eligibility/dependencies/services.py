from fastapi import Depends
from sqlalchemy.orm import Session

from offer_eligibility.dependencies.db import get_db
from offer_eligibility.services.eligibility_service import EligibilityService
from offer_eligibility.services.offer_service import OfferService
from offer_eligibility.services.transaction_service import TransactionService


def get_offer_service(db: Session = Depends(get_db)) -> OfferService:
    return OfferService(db)


def get_transaction_service(db: Session = Depends(get_db)) -> TransactionService:
    return TransactionService(db)


def get_eligibility_service(db: Session = Depends(get_db)) -> EligibilityService:
    return EligibilityService(db)
