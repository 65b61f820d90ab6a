"""
Use case: List the active bond catalog.

Input: ListBondsQuery (risk_level?, sector?)
Output: list[Bond]
Side effects: None.
Failure cases: InvalidInputError for an unknown risk level.
"""

from typing import Optional

from mudra.application.paper_trading.dtos import ListBondsQuery
from mudra.application.paper_trading.execute_trade import UnitOfWorkFactory
from mudra.domain.paper_trading.entities import Bond, RiskLevel
from mudra.domain.paper_trading.errors import InvalidInputError


def parse_risk_level(value: Optional[str]) -> Optional[RiskLevel]:
    """Match a risk level by name, ignoring case."""
    if not value:
        return None
    for level in RiskLevel:
        if level.value.lower() == value.strip().lower():
            return level
    raise InvalidInputError(
        "riskLevel must be one of Low, Medium, High", field="riskLevel"
    )


class ListBondsUseCase:
    def __init__(self, uow_factory: UnitOfWorkFactory) -> None:
        self._uow_factory = uow_factory

    def execute(self, query: ListBondsQuery) -> list[Bond]:
        risk_level = parse_risk_level(query.risk_level)
        with self._uow_factory() as uow:
            return uow.bonds.list_active(risk_level=risk_level, sector=query.sector or None)
