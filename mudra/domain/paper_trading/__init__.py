"""
Paper trading bounded context: domain layer.

This module contains all domain logic for the paper trading context:
- Wallet and bond inventory bookkeeping
- The buy/sell holdings ledger
- Portfolio valuation and leaderboard projections
"""
