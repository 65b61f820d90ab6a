"""
Use case: Rank every trader by percentage return.

Input: LeaderboardQuery (page, limit)
Output: LeaderboardResult
Side effects: None.
Failure cases: InvalidInputError for an out-of-range page/limit.
"""

import logging

from mudra.application.paper_trading.dtos import LeaderboardQuery, LeaderboardResult
from mudra.application.paper_trading.execute_trade import UnitOfWorkFactory
from mudra.domain.paper_trading.pagination import PageInfo, PageRequest
from mudra.domain.paper_trading.valuation import leaderboard_stats, rank_leaderboard

logger = logging.getLogger(__name__)


class GetLeaderboardUseCase:
    """Values every portfolio, ranks them, and returns one page.

    Ranking runs over the full set so that ranks are stable across
    pages; stats are computed over the full set as well.
    """

    def __init__(self, uow_factory: UnitOfWorkFactory) -> None:
        self._uow_factory = uow_factory

    def execute(self, query: LeaderboardQuery) -> LeaderboardResult:
        page_request = PageRequest(page=query.page, limit=query.limit)

        with self._uow_factory() as uow:
            portfolios = uow.portfolios.list_all()
            users = uow.users.get_many([p.user_id for p in portfolios])
            bonds = uow.bonds.get_many(
                [bond_id for p in portfolios for bond_id in p.holdings]
            )

        ranked = rank_leaderboard(portfolios, users, bonds)
        logger.debug(
            "Leaderboard: %d portfolios, %d ranked traders", len(portfolios), len(ranked)
        )
        return LeaderboardResult(
            entries=page_request.slice(ranked),
            page=PageInfo.of(page_request, len(ranked)),
            stats=leaderboard_stats(ranked),
        )
