"""
Adapter: Portfolio persistence.

Implements PortfolioRepository port.
A portfolio row carries the cached totals and the version; its
holdings live in the ``holdings`` table and are rewritten as a set
on every update.
"""

import logging
from collections import defaultdict
from typing import Any, Iterable, Optional

from sqlalchemy import text
from sqlalchemy.engine import Connection
from sqlalchemy.exc import IntegrityError

from mudra.domain.paper_trading.entities import Holding, Portfolio, money, unit_price
from mudra.domain.paper_trading.errors import ConcurrencyConflictError
from mudra.domain.paper_trading.ports import PortfolioRepository
from mudra.infrastructure.paper_trading.codec import (
    decimal_param,
    timestamp_param,
    to_datetime,
    to_decimal,
)

logger = logging.getLogger(__name__)

_PORTFOLIO_COLUMNS = """
    id, user_id, total_invested, total_bonds_owned, created_at, updated_at, version
"""
_HOLDING_COLUMNS = """
    portfolio_id, bond_id, quantity, average_buy_price, total_invested,
    first_purchase_date, last_transaction_date
"""


def _row_to_holding(row: Any) -> Holding:
    return Holding(
        bond_id=row["bond_id"],
        quantity=int(row["quantity"]),
        average_buy_price=unit_price(to_decimal(row["average_buy_price"])),
        total_invested=money(to_decimal(row["total_invested"])),
        first_purchase_date=to_datetime(row["first_purchase_date"]),
        last_transaction_date=to_datetime(row["last_transaction_date"]),
    )


def _row_to_portfolio(row: Any, holding_rows: Iterable[Any]) -> Portfolio:
    return Portfolio(
        id=row["id"],
        user_id=row["user_id"],
        holdings={h["bond_id"]: _row_to_holding(h) for h in holding_rows},
        total_invested=money(to_decimal(row["total_invested"])),
        total_bonds_owned=row["total_bonds_owned"],
        created_at=to_datetime(row["created_at"]),
        updated_at=to_datetime(row["updated_at"]),
        version=row["version"],
    )


class PortfolioRepositoryAdapter(PortfolioRepository):
    """SQL adapter for portfolios and their holdings, bound to one connection."""

    def __init__(self, connection: Connection) -> None:
        self._conn = connection

    def get_by_user(self, user_id: str) -> Optional[Portfolio]:
        row = self._conn.execute(
            text(f"SELECT {_PORTFOLIO_COLUMNS} FROM portfolios WHERE user_id = :user_id"),
            {"user_id": user_id},
        ).mappings().first()
        if not row:
            return None

        holdings = self._conn.execute(
            text(
                f"""
                SELECT {_HOLDING_COLUMNS} FROM holdings
                WHERE portfolio_id = :portfolio_id
                ORDER BY first_purchase_date ASC
                """
            ),
            {"portfolio_id": row["id"]},
        ).mappings().all()
        return _row_to_portfolio(row, holdings)

    def list_all(self) -> list[Portfolio]:
        rows = self._conn.execute(
            text(f"SELECT {_PORTFOLIO_COLUMNS} FROM portfolios ORDER BY created_at ASC")
        ).mappings().all()
        holding_rows = self._conn.execute(
            text(f"SELECT {_HOLDING_COLUMNS} FROM holdings ORDER BY first_purchase_date ASC")
        ).mappings().all()

        by_portfolio: dict[str, list[Any]] = defaultdict(list)
        for holding in holding_rows:
            by_portfolio[holding["portfolio_id"]].append(holding)

        return [_row_to_portfolio(row, by_portfolio[row["id"]]) for row in rows]

    def add(self, portfolio: Portfolio) -> None:
        try:
            self._conn.execute(
                text(
                    """
                    INSERT INTO portfolios
                        (id, user_id, total_invested, total_bonds_owned,
                         created_at, updated_at, version)
                    VALUES
                        (:id, :user_id, :total_invested, :total_bonds_owned,
                         :created_at, :updated_at, :version)
                    """
                ),
                {
                    "id": portfolio.id,
                    "user_id": portfolio.user_id,
                    "total_invested": decimal_param(portfolio.total_invested),
                    "total_bonds_owned": portfolio.total_bonds_owned,
                    "created_at": timestamp_param(portfolio.created_at),
                    "updated_at": timestamp_param(portfolio.updated_at),
                    "version": portfolio.version,
                },
            )
        except IntegrityError as exc:
            # Another request created this user's portfolio first.
            raise ConcurrencyConflictError("portfolio", portfolio.user_id) from exc
        self._write_holdings(portfolio)

    def update(self, portfolio: Portfolio, expected_version: int) -> None:
        result = self._conn.execute(
            text(
                """
                UPDATE portfolios
                SET total_invested = :total_invested,
                    total_bonds_owned = :total_bonds_owned,
                    updated_at = :updated_at,
                    version = version + 1
                WHERE id = :id AND version = :version
                """
            ),
            {
                "total_invested": decimal_param(portfolio.total_invested),
                "total_bonds_owned": portfolio.total_bonds_owned,
                "updated_at": timestamp_param(portfolio.updated_at),
                "id": portfolio.id,
                "version": expected_version,
            },
        )
        if result.rowcount != 1:
            raise ConcurrencyConflictError("portfolio", portfolio.id)
        portfolio.version = expected_version + 1

        self._conn.execute(
            text("DELETE FROM holdings WHERE portfolio_id = :portfolio_id"),
            {"portfolio_id": portfolio.id},
        )
        self._write_holdings(portfolio)

    def _write_holdings(self, portfolio: Portfolio) -> None:
        params = [
            {
                "portfolio_id": portfolio.id,
                "bond_id": h.bond_id,
                "quantity": h.quantity,
                "average_buy_price": decimal_param(h.average_buy_price),
                "total_invested": decimal_param(h.total_invested),
                "first_purchase_date": timestamp_param(h.first_purchase_date),
                "last_transaction_date": timestamp_param(h.last_transaction_date),
            }
            for h in portfolio.holdings.values()
            if h.quantity > 0
        ]
        if not params:
            return

        self._conn.execute(
            text(
                """
                INSERT INTO holdings
                    (portfolio_id, bond_id, quantity, average_buy_price, total_invested,
                     first_purchase_date, last_transaction_date)
                VALUES
                    (:portfolio_id, :bond_id, :quantity, :average_buy_price, :total_invested,
                     :first_purchase_date, :last_transaction_date)
                """
            ),
            params,
        )
        logger.debug(
            "Wrote %d holdings for portfolio=%s", len(params), portfolio.id
        )
