import json
import uuid

import pytest

from offer_eligibility.cli import main


@pytest.fixture
def db_url(tmp_path):
    return f"sqlite:///{tmp_path / 'cli.db'}"


def _write(path, payload):
    path.write_text(json.dumps(payload), encoding="utf-8")
    return str(path)


def test_add_offer_ingest_and_check_eligibility(tmp_path, db_url, capsys):
    offer_id = str(uuid.uuid4())
    merchant_id = str(uuid.uuid4())
    user_id = str(uuid.uuid4())

    offer_file = _write(
        tmp_path / "offer.json",
        {
            "offer": {
                "id": offer_id,
                "merchant_id": merchant_id,
                "mcc_whitelist": ["5812"],
                "active": True,
                "min_txn_count": 2,
                "lookback_days": 30,
                "starts_at": "2025-10-01T00:00:00Z",
                "ends_at": "2025-10-31T23:59:59Z",
            }
        },
    )
    txn_file = _write(
        tmp_path / "txns.json",
        [
            {
                "id": str(uuid.uuid4()),
                "user_id": user_id,
                "merchant_id": merchant_id,
                "mcc": "1234",
                "amount_cents": 500,
                "approved_at": approved_at,
            }
            for approved_at in ("2025-10-10T09:00:00Z", "2025-10-20T18:30:00Z")
        ],
    )

    assert main(["--database-url", db_url, "init-db"]) == 0
    assert main(["--database-url", db_url, "add-offer", offer_file]) == 0
    assert main(["--database-url", db_url, "ingest", txn_file]) == 0
    out = capsys.readouterr().out
    assert f"Offer saved: {offer_id}" in out
    assert "Transactions inserted: 2" in out

    assert main(["--database-url", db_url, "eligible", user_id, "--now", "2025-10-21T10:00:00Z"]) == 0
    result = json.loads(capsys.readouterr().out)
    assert result == {
        "user_id": user_id,
        "eligible_offers": [
            {"offer_id": offer_id, "reason": ">= 2 matching transactions in last 30 days (found 2)"}
        ],
    }


def test_invalid_offer_file_exits_with_error(tmp_path, db_url, capsys):
    offer_file = _write(
        tmp_path / "offer.json",
        {
            "id": "not-a-uuid",
            "merchant_id": str(uuid.uuid4()),
            "min_txn_count": 1,
            "lookback_days": 7,
            "starts_at": "2025-10-01T00:00:00Z",
            "ends_at": "2025-10-31T23:59:59Z",
        },
    )

    assert main(["--database-url", db_url, "add-offer", offer_file]) == 1
    assert "validation error on field 'id'" in capsys.readouterr().err


def test_missing_file_exits_with_error(tmp_path, db_url, capsys):
    assert main(["--database-url", db_url, "ingest", str(tmp_path / "missing.json")]) == 1
    assert capsys.readouterr().err.startswith("Error:")


def test_naive_now_exits_with_error(db_url):
    assert main(["--database-url", db_url, "eligible", str(uuid.uuid4()), "--now", "2025-10-21T10:00:00"]) == 1


def test_no_command_prints_help(capsys):
    assert main([]) == 1
    assert "usage:" in capsys.readouterr().out
