#!/usr/bin/env python3
"""
CLI tool: Create the schema and seed the bond catalog.

Inserts the infrastructure bonds that are not yet in the database and,
on request, a demo trader with the configured starting wallet. The
demo trader's session token is printed so it can be used as a bearer
token against the API.

Usage:
    python scripts/seed_catalog.py [--database-url=sqlite:///mudra.db]
        [--demo-user-email=demo@mudra.in] [--demo-user-name="Demo Trader"]
"""

import argparse
import logging
import secrets
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from mudra.core.config import settings
from mudra.domain.paper_trading.entities import User, Wallet, money
from mudra.domain.paper_trading.ports import UnitOfWork
from mudra.infrastructure.paper_trading.catalog_seed import seed_catalog
from mudra.infrastructure.paper_trading.database import build_engine, ensure_tables
from mudra.infrastructure.paper_trading.unit_of_work import SqlUnitOfWork
from mudra.shared.logging import configure_logging

logger = logging.getLogger(__name__)


def ensure_demo_user(uow: UnitOfWork, email: str, name: str) -> User:
    """Return the user with ``email``, creating it with a fresh wallet if absent."""
    existing = uow.users.get_by_email(email)
    if existing is not None:
        logger.info("Demo user %s already exists", email)
        return existing

    user = User(
        name=name,
        email=email,
        wallet=Wallet(
            balance=money(settings.starting_wallet_balance),
            currency=settings.wallet_currency,
        ),
        session_token=secrets.token_urlsafe(32),
        is_verified=True,
    )
    uow.users.add(user)
    uow.commit()
    logger.info("Created demo user %s with balance %s", email, user.wallet.balance)
    return user


def main() -> int:
    """Create tables, seed the catalog and optionally a demo user."""
    parser = argparse.ArgumentParser(
        description="Create the schema and seed the bond catalog"
    )
    parser.add_argument(
        "--database-url",
        default=None,
        help="SQLAlchemy URL (default: DATABASE_URL or the postgres_* settings)",
    )
    parser.add_argument(
        "--demo-user-email",
        default=None,
        help="Also create a demo trader with this email and print its token",
    )
    parser.add_argument(
        "--demo-user-name",
        default="Demo Trader",
        help="Display name of the demo trader (default: Demo Trader)",
    )
    parser.add_argument(
        "--log-level",
        default="INFO",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging level (default: INFO)",
    )
    args = parser.parse_args()

    configure_logging(level=args.log_level)

    engine = build_engine(args.database_url or settings.get_database_url())

    try:
        ensure_tables(engine)

        with SqlUnitOfWork(engine) as uow:
            inserted = seed_catalog(uow)
        for name in inserted:
            logger.info("  + %s", name)

        if args.demo_user_email:
            with SqlUnitOfWork(engine) as uow:
                user = ensure_demo_user(uow, args.demo_user_email, args.demo_user_name)
            print(f"Demo user id:       {user.id}")
            print(f"Demo session token: {user.session_token}")
        return 0
    except Exception:
        logger.exception("Catalog seed failed")
        return 1
    finally:
        engine.dispose()


if __name__ == "__main__":
    sys.exit(main())
