"""
Adapter: Bond catalog and unit inventory.

Implements BondRepository port over the ``bonds`` table.
Inventory writes are compare-and-swap on the row version.
"""

import logging
from typing import Any, Optional

from sqlalchemy import bindparam, text
from sqlalchemy.engine import Connection

from mudra.domain.paper_trading.entities import Bond, RiskLevel, money
from mudra.domain.paper_trading.errors import ConcurrencyConflictError
from mudra.domain.paper_trading.ports import BondRepository
from mudra.infrastructure.paper_trading.codec import (
    decimal_param,
    timestamp_param,
    to_datetime,
    to_decimal,
)

logger = logging.getLogger(__name__)

_COLUMNS = """
    id, name, issuer, description, return_rate, risk_level, price,
    maturity_years, sector, total_value, available_units, is_active,
    launch_date, version
"""


def _row_to_bond(row: Any) -> Bond:
    return Bond(
        id=row["id"],
        name=row["name"],
        issuer=row["issuer"],
        description=row["description"],
        return_rate=to_decimal(row["return_rate"]),
        risk_level=RiskLevel(row["risk_level"]),
        price=money(to_decimal(row["price"])),
        maturity_years=row["maturity_years"],
        sector=row["sector"],
        total_value=money(to_decimal(row["total_value"])),
        available_units=int(row["available_units"]),
        is_active=bool(row["is_active"]),
        launch_date=to_datetime(row["launch_date"]),
        version=row["version"],
    )


class BondRepositoryAdapter(BondRepository):
    """SQL adapter for the bonds table, bound to one connection."""

    def __init__(self, connection: Connection) -> None:
        self._conn = connection

    def get_by_id(self, bond_id: str) -> Optional[Bond]:
        row = self._conn.execute(
            text(f"SELECT {_COLUMNS} FROM bonds WHERE id = :id"), {"id": bond_id}
        ).mappings().first()
        return _row_to_bond(row) if row else None

    def get_by_name(self, name: str) -> Optional[Bond]:
        row = self._conn.execute(
            text(f"SELECT {_COLUMNS} FROM bonds WHERE name = :name"), {"name": name}
        ).mappings().first()
        return _row_to_bond(row) if row else None

    def get_many(self, bond_ids: list[str]) -> dict[str, Bond]:
        if not bond_ids:
            return {}
        query = text(f"SELECT {_COLUMNS} FROM bonds WHERE id IN :ids").bindparams(
            bindparam("ids", expanding=True)
        )
        rows = self._conn.execute(query, {"ids": list(set(bond_ids))}).mappings().all()
        return {row["id"]: _row_to_bond(row) for row in rows}

    def list_active(
        self, risk_level: Optional[RiskLevel] = None, sector: Optional[str] = None
    ) -> list[Bond]:
        query = f"SELECT {_COLUMNS} FROM bonds WHERE is_active = :active"
        params: dict[str, Any] = {"active": True}

        if risk_level:
            query += " AND risk_level = :risk_level"
            params["risk_level"] = risk_level.value

        if sector:
            query += " AND sector = :sector"
            params["sector"] = sector

        query += " ORDER BY name ASC"
        rows = self._conn.execute(text(query), params).mappings().all()
        return [_row_to_bond(row) for row in rows]

    def add(self, bond: Bond) -> None:
        self._conn.execute(
            text(
                """
                INSERT INTO bonds
                    (id, name, issuer, description, return_rate, risk_level, price,
                     maturity_years, sector, total_value, available_units, is_active,
                     launch_date, version)
                VALUES
                    (:id, :name, :issuer, :description, :return_rate, :risk_level, :price,
                     :maturity_years, :sector, :total_value, :available_units, :is_active,
                     :launch_date, :version)
                """
            ),
            {
                "id": bond.id,
                "name": bond.name,
                "issuer": bond.issuer,
                "description": bond.description,
                "return_rate": decimal_param(bond.return_rate),
                "risk_level": bond.risk_level.value,
                "price": decimal_param(bond.price),
                "maturity_years": bond.maturity_years,
                "sector": bond.sector,
                "total_value": decimal_param(bond.total_value),
                "available_units": bond.available_units,
                "is_active": bond.is_active,
                "launch_date": timestamp_param(bond.launch_date),
                "version": bond.version,
            },
        )

    def decrement_inventory(
        self, bond_id: str, quantity: int, expected_version: int
    ) -> None:
        self._shift_units(bond_id, -quantity, expected_version)

    def increment_inventory(
        self, bond_id: str, quantity: int, expected_version: int
    ) -> None:
        self._shift_units(bond_id, quantity, expected_version)

    def _shift_units(self, bond_id: str, delta: int, expected_version: int) -> None:
        result = self._conn.execute(
            text(
                """
                UPDATE bonds
                SET available_units = available_units + :delta,
                    version = version + 1
                WHERE id = :id AND version = :version
                """
            ),
            {"delta": delta, "id": bond_id, "version": expected_version},
        )
        if result.rowcount != 1:
            raise ConcurrencyConflictError("bond", bond_id)
        logger.debug("Inventory of bond=%s shifted by %d", bond_id, delta)
