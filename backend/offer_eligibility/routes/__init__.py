from .offers import router as offers_router
from .transactions import router as transactions_router
from .eligibility import router as eligibility_router

__all__ = [
    "offers_router",
    "transactions_router",
    "eligibility_router",
]
