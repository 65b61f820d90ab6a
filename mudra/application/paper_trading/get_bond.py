"""
Use case: One catalog bond by ID.

Input: GetBondQuery (bond_id)
Output: Bond
Side effects: None.
Failure cases: BondNotFoundError.
"""

from mudra.application.paper_trading.dtos import GetBondQuery
from mudra.application.paper_trading.execute_trade import UnitOfWorkFactory
from mudra.domain.paper_trading.entities import Bond
from mudra.domain.paper_trading.errors import BondNotFoundError


class GetBondUseCase:
    def __init__(self, uow_factory: UnitOfWorkFactory) -> None:
        self._uow_factory = uow_factory

    def execute(self, query: GetBondQuery) -> Bond:
        with self._uow_factory() as uow:
            bond = uow.bonds.get_by_id(query.bond_id)
        if bond is None:
            raise BondNotFoundError(query.bond_id)
        return bond
