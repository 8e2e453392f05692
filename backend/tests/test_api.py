import unittest
import uuid
from datetime import datetime, UTC
from unittest.mock import Mock

from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from offer_eligibility.db.db import init_db
from offer_eligibility.dependencies.db import get_db
from offer_eligibility.dependencies.services import get_eligibility_service, get_transaction_service
from offer_eligibility.main import app
from offer_eligibility.services.eligibility_service import EligibilityService
from offer_eligibility.services.errors import StorageError
from offer_eligibility.services.transaction_service import TransactionService

INGESTED_AT = datetime(2025, 10, 21, 10, 0, 0, tzinfo=UTC)


def _offer_payload(**overrides):
    payload = {
        "id": str(uuid.uuid4()),
        "merchant_id": str(uuid.uuid4()),
        "mcc_whitelist": ["5812", "5814"],
        "active": True,
        "min_txn_count": 3,
        "lookback_days": 30,
        "starts_at": "2025-10-01T00:00:00Z",
        "ends_at": "2025-10-31T23:59:59Z",
    }
    payload.update(overrides)
    return payload


def _txn_payload(**overrides):
    payload = {
        "id": str(uuid.uuid4()),
        "user_id": str(uuid.uuid4()),
        "merchant_id": str(uuid.uuid4()),
        "mcc": "5812",
        "amount_cents": 1000,
        "approved_at": "2025-10-20T12:00:00Z",
    }
    payload.update(overrides)
    return payload


class OfferEligibilityApiTests(unittest.TestCase):
    def setUp(self):
        engine = create_engine(
            "sqlite:///:memory:",
            connect_args={"check_same_thread": False},
            poolclass=StaticPool,
        )
        init_db(engine)
        self.Session = sessionmaker(bind=engine, autocommit=False, autoflush=False)

        def override_get_db():
            db = self.Session()
            try:
                yield db
            finally:
                db.close()

        def override_get_transaction_service():
            db = self.Session()
            try:
                yield TransactionService(db, clock=lambda: INGESTED_AT)
            finally:
                db.close()

        app.dependency_overrides[get_db] = override_get_db
        app.dependency_overrides[get_transaction_service] = override_get_transaction_service
        self.client = TestClient(app)

    def tearDown(self):
        app.dependency_overrides.clear()

    def _error(self, resp):
        return resp.json()["detail"]["error"]

    def test_health(self):
        resp = self.client.get("/health")
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(resp.json(), {"status": "ok"})

    def test_full_flow_get_eligible_offers(self):
        offer = _offer_payload()
        resp = self.client.post("/api/v1/offers", json={"offer": offer})
        self.assertEqual(resp.status_code, 201, resp.text)
        body = resp.json()["offer"]
        self.assertEqual(body["id"], offer["id"])
        self.assertEqual(body["starts_at"], "2025-10-01T00:00:00Z")
        self.assertTrue(body["updated_at"].endswith("Z"))

        user_id = str(uuid.uuid4())
        transactions = [
            _txn_payload(user_id=user_id, merchant_id=offer["merchant_id"], approved_at="2025-10-20T12:00:00Z"),
            _txn_payload(user_id=user_id, merchant_id=offer["merchant_id"], approved_at="2025-10-19T10:00:00Z"),
            _txn_payload(user_id=user_id, mcc="5814", approved_at="2025-10-18T08:00:00Z"),
        ]
        resp = self.client.post("/api/v1/transactions", json={"transactions": transactions})
        self.assertEqual(resp.status_code, 201, resp.text)
        self.assertEqual(resp.json(), {"inserted": 3})

        resp = self.client.get(
            f"/api/v1/users/{user_id}/eligible-offers",
            params={"now": "2025-10-21T10:00:00Z"},
        )
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(
            resp.json(),
            {
                "user_id": user_id,
                "eligible_offers": [
                    {
                        "offer_id": offer["id"],
                        "reason": ">= 3 matching transactions in last 30 days (found 3)",
                    }
                ],
            },
        )

    def test_no_eligible_offers_returns_empty_list(self):
        user_id = str(uuid.uuid4())
        resp = self.client.get(f"/api/v1/users/{user_id}/eligible-offers", params={"now": "2025-10-21T10:00:00Z"})
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(resp.json(), {"user_id": user_id, "eligible_offers": []})

    def test_upsert_replaces_offer(self):
        offer = _offer_payload(min_txn_count=5)
        self.client.post("/api/v1/offers", json={"offer": offer})

        resp = self.client.post("/api/v1/offers", json={"offer": {**offer, "min_txn_count": 0}})
        self.assertEqual(resp.status_code, 201)
        self.assertEqual(resp.json()["offer"]["min_txn_count"], 0)

        resp = self.client.get(
            f"/api/v1/users/{uuid.uuid4()}/eligible-offers",
            params={"now": "2025-10-21T10:00:00Z"},
        )
        self.assertEqual([o["offer_id"] for o in resp.json()["eligible_offers"]], [offer["id"]])

    def test_invalid_offer_returns_400(self):
        resp = self.client.post("/api/v1/offers", json={"offer": _offer_payload(mcc_whitelist=["12345"])})
        self.assertEqual(resp.status_code, 400)
        error = self._error(resp)
        self.assertEqual(error["code"], "VALIDATION_ERROR")
        self.assertEqual(error["details"], {"kind": "InvalidWhitelist", "field": "mcc_whitelist[0]"})

    def test_threshold_beyond_64_bits_returns_400(self):
        resp = self.client.post("/api/v1/offers", json={"offer": _offer_payload(min_txn_count=2**70)})
        self.assertEqual(resp.status_code, 400)
        self.assertEqual(self._error(resp)["details"], {"kind": "InvalidThreshold", "field": "min_txn_count"})

    def test_inverted_window_returns_400(self):
        resp = self.client.post(
            "/api/v1/offers",
            json={"offer": _offer_payload(starts_at="2025-11-01T00:00:00Z", ends_at="2025-10-01T00:00:00Z")},
        )
        self.assertEqual(resp.status_code, 400)
        self.assertEqual(self._error(resp)["details"]["kind"], "InvalidWindow")

    def test_malformed_body_returns_400(self):
        resp = self.client.post("/api/v1/offers", json={"offer": {"id": str(uuid.uuid4())}})
        self.assertEqual(resp.status_code, 400)
        self.assertEqual(self._error(resp)["code"], "VALIDATION_ERROR")

    def test_invalid_transaction_returns_400(self):
        resp = self.client.post(
            "/api/v1/transactions",
            json={"transactions": [_txn_payload(), _txn_payload(user_id="nope")]},
        )
        self.assertEqual(resp.status_code, 400)
        self.assertEqual(
            self._error(resp)["details"],
            {"kind": "InvalidIdentifier", "field": "transactions[1].user_id"},
        )

    def test_empty_transaction_batch_returns_400(self):
        resp = self.client.post("/api/v1/transactions", json={"transactions": []})
        self.assertEqual(resp.status_code, 400)
        self.assertEqual(self._error(resp)["details"]["kind"], "InvalidBatch")

    def test_duplicate_transaction_returns_409(self):
        txn = _txn_payload()
        self.assertEqual(self.client.post("/api/v1/transactions", json={"transactions": [txn]}).status_code, 201)

        resp = self.client.post("/api/v1/transactions", json={"transactions": [_txn_payload(), txn]})
        self.assertEqual(resp.status_code, 409)
        error = self._error(resp)
        self.assertEqual(error["code"], "DUPLICATE_TRANSACTION")
        self.assertEqual(error["details"], {"field": "id", "id": txn["id"]})

    def test_invalid_user_id_returns_400(self):
        resp = self.client.get("/api/v1/users/not-a-uuid/eligible-offers")
        self.assertEqual(resp.status_code, 400)
        self.assertEqual(self._error(resp)["details"], {"kind": "InvalidIdentifier", "field": "user_id"})

    def test_invalid_now_returns_400(self):
        user_id = str(uuid.uuid4())
        for raw in ("yesterday", "2025-10-21T10:00:00", "9999-12-31T23:59:59-01:00"):
            resp = self.client.get(f"/api/v1/users/{user_id}/eligible-offers", params={"now": raw})
            self.assertEqual(resp.status_code, 400, raw)
            self.assertEqual(self._error(resp)["details"], {"kind": "InvalidTimestamp", "field": "now"})

    def test_storage_failure_returns_opaque_503(self):
        store = Mock()
        store.get_active_offers.side_effect = StorageError()
        app.dependency_overrides[get_eligibility_service] = lambda: EligibilityService(store=store)

        resp = self.client.get(f"/api/v1/users/{uuid.uuid4()}/eligible-offers")

        self.assertEqual(resp.status_code, 503)
        error = self._error(resp)
        self.assertEqual(error["code"], "STORAGE_UNAVAILABLE")
        self.assertEqual(error["details"], {})


if __name__ == "__main__":
    unittest.main()
