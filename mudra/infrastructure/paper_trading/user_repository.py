"""
Adapter: User and wallet persistence.

Implements UserRepository port over the ``users`` table.
Wallet writes are compare-and-swap on the row version.
"""

import logging
from decimal import Decimal
from typing import Any, Optional

from sqlalchemy import bindparam, text
from sqlalchemy.engine import Connection

from mudra.domain.paper_trading.entities import User, UserRole, Wallet, money
from mudra.domain.paper_trading.errors import ConcurrencyConflictError
from mudra.domain.paper_trading.ports import UserRepository
from mudra.infrastructure.paper_trading.codec import (
    decimal_param,
    timestamp_param,
    to_datetime,
    to_decimal,
)

logger = logging.getLogger(__name__)

_COLUMNS = """
    id, name, email, password_hash, session_token, wallet_balance,
    wallet_currency, role, is_verified, created_at, version
"""


def _row_to_user(row: Any) -> User:
    return User(
        id=row["id"],
        name=row["name"],
        email=row["email"],
        password_hash=row["password_hash"],
        session_token=row["session_token"],
        wallet=Wallet(
            balance=money(to_decimal(row["wallet_balance"])),
            currency=row["wallet_currency"],
        ),
        role=UserRole(row["role"]),
        is_verified=bool(row["is_verified"]),
        created_at=to_datetime(row["created_at"]),
        version=row["version"],
    )


class UserRepositoryAdapter(UserRepository):
    """SQL adapter for the users table, bound to one connection."""

    def __init__(self, connection: Connection) -> None:
        self._conn = connection

    def get_by_id(self, user_id: str) -> Optional[User]:
        row = self._conn.execute(
            text(f"SELECT {_COLUMNS} FROM users WHERE id = :id"), {"id": user_id}
        ).mappings().first()
        return _row_to_user(row) if row else None

    def get_by_session_token(self, token: str) -> Optional[User]:
        row = self._conn.execute(
            text(f"SELECT {_COLUMNS} FROM users WHERE session_token = :token"),
            {"token": token},
        ).mappings().first()
        return _row_to_user(row) if row else None

    def get_by_email(self, email: str) -> Optional[User]:
        row = self._conn.execute(
            text(f"SELECT {_COLUMNS} FROM users WHERE email = :email"), {"email": email}
        ).mappings().first()
        return _row_to_user(row) if row else None

    def get_many(self, user_ids: list[str]) -> dict[str, User]:
        if not user_ids:
            return {}
        query = text(f"SELECT {_COLUMNS} FROM users WHERE id IN :ids").bindparams(
            bindparam("ids", expanding=True)
        )
        rows = self._conn.execute(query, {"ids": list(set(user_ids))}).mappings().all()
        return {row["id"]: _row_to_user(row) for row in rows}

    def add(self, user: User) -> None:
        self._conn.execute(
            text(
                """
                INSERT INTO users
                    (id, name, email, password_hash, session_token, wallet_balance,
                     wallet_currency, role, is_verified, created_at, version)
                VALUES
                    (:id, :name, :email, :password_hash, :session_token, :balance,
                     :currency, :role, :is_verified, :created_at, :version)
                """
            ),
            {
                "id": user.id,
                "name": user.name,
                "email": user.email,
                "password_hash": user.password_hash,
                "session_token": user.session_token,
                "balance": decimal_param(user.wallet.balance),
                "currency": user.wallet.currency,
                "role": user.role.value,
                "is_verified": user.is_verified,
                "created_at": timestamp_param(user.created_at),
                "version": user.version,
            },
        )

    def set_wallet_balance(
        self, user_id: str, balance: Decimal, expected_version: int
    ) -> None:
        result = self._conn.execute(
            text(
                """
                UPDATE users
                SET wallet_balance = :balance,
                    version = version + 1
                WHERE id = :id AND version = :version
                """
            ),
            {"balance": decimal_param(balance), "id": user_id, "version": expected_version},
        )
        if result.rowcount != 1:
            raise ConcurrencyConflictError("user", user_id)
        logger.debug("Wallet of user=%s set to %s", user_id, balance)
