"""
Command-line interface for the Offer Eligibility engine.
Works directly against the database, bypassing the HTTP layer.
"""

import argparse
import json
import sys
from pathlib import Path
from typing import Any, List, Optional

from pydantic import ValidationError as SchemaError
from sqlalchemy.orm import Session, sessionmaker

from offer_eligibility.config import EligibilityConfig
from offer_eligibility.db.db import DATABASE_URL, build_engine, init_db
from offer_eligibility.models.offer import OfferCreate
from offer_eligibility.models.timestamps import parse_rfc3339
from offer_eligibility.models.transaction import TransactionBatchRequest
from offer_eligibility.services.eligibility_service import EligibilityService, deadline_from_timeout
from offer_eligibility.services.errors import ServiceError
from offer_eligibility.services.offer_service import OfferService
from offer_eligibility.services.transaction_service import TransactionService


def load_json(path: str) -> Any:
    with open(Path(path), "r", encoding="utf-8") as f:
        return json.load(f)


def cmd_add_offer(args, db: Session) -> None:
    """
    Upsert one offer read from a JSON file.

    The file holds either the offer object itself or {"offer": {...}}.
    """
    payload = load_json(args.file)
    if isinstance(payload, dict) and "offer" in payload:
        payload = payload["offer"]
    offer = OfferService(db).create_or_update_offer(OfferCreate.model_validate(payload))
    rendered = offer.model_dump(mode="json")
    print(f"Offer saved: {offer.id}")
    print(f"  Active: {offer.active}")
    print(f"  Window: {rendered['starts_at']} -> {rendered['ends_at']}")
    print(f"  Rule: >= {offer.min_txn_count} transactions in {offer.lookback_days} days")


def cmd_ingest(args, db: Session) -> None:
    """Ingest a JSON list of transactions (or {"transactions": [...]})."""
    payload = load_json(args.file)
    if isinstance(payload, list):
        payload = {"transactions": payload}
    batch = TransactionBatchRequest.model_validate(payload)
    inserted = TransactionService(db).ingest_transactions(batch.transactions)
    print(f"Transactions inserted: {inserted}")


def cmd_eligible(args, db: Session) -> None:
    """Print the eligibility result for a user as JSON."""
    now = parse_rfc3339(args.now) if args.now else None
    response = EligibilityService(db).get_eligible_offers(
        args.user_id,
        now=now,
        deadline=deadline_from_timeout(EligibilityConfig.EVALUATION_TIMEOUT_SECONDS),
    )
    print(json.dumps(response.model_dump(), indent=2))


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="offer-eligibility",
        description="Offer Eligibility engine CLI",
        formatter_class=argparse.RawDescriptionHelpFormatter
    )
    parser.add_argument(
        "--database-url",
        default=DATABASE_URL,
        help="SQLAlchemy database URL (default: $DATABASE_URL)",
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    subparsers.add_parser("init-db", help="Create the database tables")

    parser_offer = subparsers.add_parser("add-offer", help="Create or replace an offer")
    parser_offer.add_argument("file", help="Path to a JSON offer")

    parser_ingest = subparsers.add_parser("ingest", help="Ingest a batch of transactions")
    parser_ingest.add_argument("file", help="Path to a JSON list of transactions")

    parser_eligible = subparsers.add_parser("eligible", help="Show the offers a user qualifies for")
    parser_eligible.add_argument("user_id", help="User UUID")
    parser_eligible.add_argument("--now", default=None, help="Evaluation instant (RFC3339, default: now)")

    return parser


COMMANDS = {
    "add-offer": cmd_add_offer,
    "ingest": cmd_ingest,
    "eligible": cmd_eligible,
}


def main(argv: Optional[List[str]] = None) -> int:
    """Main CLI entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        return 1

    engine = build_engine(args.database_url)
    try:
        init_db(engine)
        if args.command == "init-db":
            print("Database ready.")
            return 0

        SessionFactory = sessionmaker(autocommit=False, autoflush=False, bind=engine)
        with SessionFactory() as db:
            COMMANDS[args.command](args, db)
        return 0
    except ServiceError as exc:
        print(f"Error: {exc.message}", file=sys.stderr)
        return 1
    except SchemaError as exc:
        print(f"Error: invalid input file: {exc}", file=sys.stderr)
        return 1
    except (OSError, ValueError) as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1
    finally:
        engine.dispose()


if __name__ == "__main__":
    sys.exit(main())
