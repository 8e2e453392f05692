import os

# Keep the module-level engine off disk; tests build their own engines below.
os.environ.setdefault("DATABASE_URL", "sqlite://")

import uuid  # noqa: E402
from datetime import datetime, UTC  # noqa: E402

import pytest  # noqa: E402
from sqlalchemy import create_engine  # noqa: E402
from sqlalchemy.orm import sessionmaker  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402

from offer_eligibility.db.db import init_db  # noqa: E402
from offer_eligibility.models.offer import OfferCreate  # noqa: E402
from offer_eligibility.models.transaction import TransactionCreate  # noqa: E402
from offer_eligibility.services.record_store import RecordStore  # noqa: E402

NOW = datetime(2025, 10, 21, 10, 0, 0, tzinfo=UTC)


def new_id() -> str:
    return str(uuid.uuid4())


@pytest.fixture()
def now() -> datetime:
    return NOW


@pytest.fixture()
def engine():
    engine = create_engine(
        "sqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    init_db(engine)
    yield engine
    engine.dispose()


@pytest.fixture()
def db_session(engine):
    Session = sessionmaker(bind=engine, autocommit=False, autoflush=False)
    with Session() as session:
        yield session


@pytest.fixture()
def store(db_session) -> RecordStore:
    return RecordStore(db_session)


@pytest.fixture()
def make_offer():
    """Factory for the October 2025 offer; keyword arguments override fields."""

    def _make_offer(**overrides) -> OfferCreate:
        fields = {
            "id": new_id(),
            "merchant_id": new_id(),
            "mcc_whitelist": ["5812", "5814"],
            "active": True,
            "min_txn_count": 3,
            "lookback_days": 30,
            "starts_at": datetime(2025, 10, 1, 0, 0, 0, tzinfo=UTC),
            "ends_at": datetime(2025, 10, 31, 23, 59, 59, tzinfo=UTC),
        }
        fields.update(overrides)
        return OfferCreate(**fields)

    return _make_offer


@pytest.fixture()
def make_txn():
    def _make_txn(**overrides) -> TransactionCreate:
        fields = {
            "id": new_id(),
            "user_id": new_id(),
            "merchant_id": new_id(),
            "mcc": "5812",
            "amount_cents": 1000,
            "approved_at": datetime(2025, 10, 20, 12, 0, 0, tzinfo=UTC),
        }
        fields.update(overrides)
        return TransactionCreate(**fields)

    return _make_txn
