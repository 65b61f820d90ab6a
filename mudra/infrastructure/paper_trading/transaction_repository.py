"""
Adapter: Transaction log.

Implements TransactionRepository port over the ``transactions`` table.
Insert-only: rows are never updated or deleted here.
"""

from typing import Any, Optional

from sqlalchemy import text
from sqlalchemy.engine import Connection

from mudra.domain.paper_trading.entities import (
    BondSnapshot,
    RiskLevel,
    Transaction,
    TransactionStatus,
    TransactionType,
    money,
)
from mudra.domain.paper_trading.errors import InvalidInputError
from mudra.domain.paper_trading.ports import TRANSACTION_SORT_FIELDS, TransactionRepository
from mudra.infrastructure.paper_trading.codec import (
    decimal_param,
    timestamp_param,
    to_datetime,
    to_decimal,
)

_COLUMNS = """
    id, user_id, bond_id, type, quantity, price_per_unit, total_amount, status,
    snapshot_name, snapshot_issuer, snapshot_return_rate, snapshot_risk_level,
    created_at
"""


def _row_to_transaction(row: Any) -> Transaction:
    return Transaction(
        id=row["id"],
        user_id=row["user_id"],
        bond_id=row["bond_id"],
        type=TransactionType(row["type"]),
        quantity=int(row["quantity"]),
        price_per_unit=money(to_decimal(row["price_per_unit"])),
        total_amount=money(to_decimal(row["total_amount"])),
        status=TransactionStatus(row["status"]),
        bond_snapshot=BondSnapshot(
            name=row["snapshot_name"],
            issuer=row["snapshot_issuer"],
            return_rate=to_decimal(row["snapshot_return_rate"]),
            risk_level=RiskLevel(row["snapshot_risk_level"]),
        ),
        created_at=to_datetime(row["created_at"]),
    )


class TransactionRepositoryAdapter(TransactionRepository):
    """SQL adapter for the transactions table, bound to one connection."""

    def __init__(self, connection: Connection) -> None:
        self._conn = connection

    def add(self, transaction: Transaction) -> None:
        snapshot = transaction.bond_snapshot
        self._conn.execute(
            text(
                """
                INSERT INTO transactions
                    (id, user_id, bond_id, type, quantity, price_per_unit, total_amount,
                     status, snapshot_name, snapshot_issuer, snapshot_return_rate,
                     snapshot_risk_level, created_at)
                VALUES
                    (:id, :user_id, :bond_id, :type, :quantity, :price_per_unit, :total_amount,
                     :status, :snapshot_name, :snapshot_issuer, :snapshot_return_rate,
                     :snapshot_risk_level, :created_at)
                """
            ),
            {
                "id": transaction.id,
                "user_id": transaction.user_id,
                "bond_id": transaction.bond_id,
                "type": transaction.type.value,
                "quantity": transaction.quantity,
                "price_per_unit": decimal_param(transaction.price_per_unit),
                "total_amount": decimal_param(transaction.total_amount),
                "status": transaction.status.value,
                "snapshot_name": snapshot.name,
                "snapshot_issuer": snapshot.issuer,
                "snapshot_return_rate": decimal_param(snapshot.return_rate),
                "snapshot_risk_level": snapshot.risk_level.value,
                "created_at": timestamp_param(transaction.created_at),
            },
        )

    def get_for_user(self, transaction_id: str, user_id: str) -> Optional[Transaction]:
        row = self._conn.execute(
            text(f"SELECT {_COLUMNS} FROM transactions WHERE id = :id AND user_id = :user_id"),
            {"id": transaction_id, "user_id": user_id},
        ).mappings().first()
        return _row_to_transaction(row) if row else None

    def list_for_user(
        self,
        user_id: str,
        tx_type: Optional[TransactionType] = None,
        offset: int = 0,
        limit: Optional[int] = None,
        sort_by: str = "created_at",
        descending: bool = True,
    ) -> list[Transaction]:
        if sort_by not in TRANSACTION_SORT_FIELDS:
            raise InvalidInputError(f"Cannot sort by {sort_by}", field="sortBy")

        direction = "DESC" if descending else "ASC"
        query = f"SELECT {_COLUMNS} FROM transactions WHERE user_id = :user_id"
        params: dict[str, Any] = {"user_id": user_id}

        if tx_type:
            query += " AND type = :type"
            params["type"] = tx_type.value

        # sort_by is whitelisted above, so interpolation is safe
        query += f" ORDER BY {sort_by} {direction}, created_at {direction}"

        if limit is not None:
            query += " LIMIT :limit OFFSET :offset"
            params["limit"] = limit
            params["offset"] = offset

        rows = self._conn.execute(text(query), params).mappings().all()
        transactions = [_row_to_transaction(row) for row in rows]
        if limit is None and offset:
            return transactions[offset:]
        return transactions

    def count_for_user(
        self, user_id: str, tx_type: Optional[TransactionType] = None
    ) -> int:
        query = "SELECT COUNT(*) FROM transactions WHERE user_id = :user_id"
        params: dict[str, Any] = {"user_id": user_id}
        if tx_type:
            query += " AND type = :type"
            params["type"] = tx_type.value
        return int(self._conn.execute(text(query), params).scalar_one())
