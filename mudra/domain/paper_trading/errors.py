"""
Domain-specific errors for the paper trading bounded context.

All errors raised from the domain layer must be defined here.
These are mapped to HTTP responses at the interface layer.
No framework imports allowed.
"""

from decimal import Decimal


class PaperTradingError(Exception):
    """Base error for all paper trading domain errors."""

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(self.message)


class InvalidInputError(PaperTradingError):
    """Raised when a request carries a malformed or out-of-range value."""

    def __init__(self, message: str, field: str | None = None) -> None:
        super().__init__(message)
        self.field = field


class EntityNotFoundError(PaperTradingError):
    """Raised when a referenced entity does not exist."""

    entity = "Entity"

    def __init__(self, entity_id: str) -> None:
        super().__init__(f"{self.entity} not found")
        self.entity_id = entity_id


class UserNotFoundError(EntityNotFoundError):
    entity = "User"


class BondNotFoundError(EntityNotFoundError):
    entity = "Bond"


class TransactionNotFoundError(EntityNotFoundError):
    entity = "Transaction"


class BusinessRuleError(PaperTradingError):
    """Base for requests that are well-formed but not allowed right now."""


class InactiveBondError(BusinessRuleError):
    """Raised when buying a bond that has been withdrawn from sale."""

    def __init__(self, bond_id: str) -> None:
        super().__init__("This bond is not available for purchase")
        self.bond_id = bond_id


class InsufficientInventoryError(BusinessRuleError):
    """Raised when the bond's unit pool cannot cover the requested quantity."""

    def __init__(self, available: int, requested: int) -> None:
        super().__init__(f"Only {available} units available")
        self.available = available
        self.requested = requested


class InsufficientFundsError(BusinessRuleError):
    """Raised when the wallet cannot pay for a purchase."""

    def __init__(self, required: Decimal, available: Decimal) -> None:
        super().__init__("Insufficient wallet balance")
        self.required = required
        self.available = available

    @property
    def shortfall(self) -> Decimal:
        return self.required - self.available


class NoPortfolioError(BusinessRuleError):
    """Raised when selling before the user has ever bought anything."""

    def __init__(self, user_id: str) -> None:
        super().__init__("No portfolio found")
        self.user_id = user_id


class InsufficientHoldingsError(BusinessRuleError):
    """Raised when selling more units than the user holds."""

    def __init__(self, held: int, requested: int) -> None:
        super().__init__(
            f"Insufficient holdings to sell: holding {held}, requested {requested}"
        )
        self.held = held
        self.requested = requested


class ConcurrencyConflictError(PaperTradingError):
    """Raised when a versioned write lost a race with another request."""

    def __init__(self, resource: str, resource_id: str) -> None:
        super().__init__(f"Concurrent update on {resource} {resource_id}")
        self.resource = resource
        self.resource_id = resource_id


class AuthenticationError(PaperTradingError):
    """Raised when a protected operation has no valid session token."""

    def __init__(self, message: str = "Not authorized, invalid or missing token") -> None:
        super().__init__(message)
