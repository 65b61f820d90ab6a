"""
Use case: Value the caller's portfolio at current catalog prices.

Input: GetPortfolioQuery (user_id)
Output: PortfolioValuation
Side effects: None.

Serves both the full portfolio view and the compact summary; the
summary is the same valuation without the per-holding rows. A user
who has never bought gets an all-zero valuation.
"""

import logging

from mudra.application.paper_trading.dtos import GetPortfolioQuery
from mudra.application.paper_trading.execute_trade import UnitOfWorkFactory
from mudra.domain.paper_trading.valuation import PortfolioValuation, value_portfolio

logger = logging.getLogger(__name__)


class GetPortfolioUseCase:
    """Loads a portfolio and the bonds it references, then values it."""

    def __init__(self, uow_factory: UnitOfWorkFactory) -> None:
        self._uow_factory = uow_factory

    def execute(self, query: GetPortfolioQuery) -> PortfolioValuation:
        with self._uow_factory() as uow:
            portfolio = uow.portfolios.get_by_user(query.user_id)
            bond_ids = list(portfolio.holdings) if portfolio else []
            bonds = uow.bonds.get_many(bond_ids)

        valuation = value_portfolio(portfolio, bonds)
        missing = len(bond_ids) - len(bonds)
        if missing:
            logger.warning(
                "Portfolio of user=%s references %d missing bond(s); excluded from valuation",
                query.user_id,
                missing,
            )
        return valuation
