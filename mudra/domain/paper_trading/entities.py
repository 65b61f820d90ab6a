"""
Domain entities for the paper trading bounded context.

Entities represent core business objects with identity and lifecycle.
They contain no framework imports and no IO operations.

Money is always ``Decimal``. Amounts are kept to the cent; the
average buy price keeps extra places so that cost basis does not
drift when it is multiplied back out by a quantity.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from decimal import ROUND_HALF_UP, Decimal
from enum import Enum
from typing import Optional
from uuid import uuid4

CENT = Decimal("0.01")
PRICE_PLACES = Decimal("0.000001")
ZERO = Decimal("0.00")


def money(value: Decimal | int | float | str) -> Decimal:
    """Quantize a monetary amount to the cent."""
    return Decimal(str(value)).quantize(CENT, rounding=ROUND_HALF_UP)


def unit_price(value: Decimal | int | float | str) -> Decimal:
    """Quantize a per-unit price to six decimal places."""
    return Decimal(str(value)).quantize(PRICE_PLACES, rounding=ROUND_HALF_UP)


def new_id() -> str:
    """Return a fresh 32-char hex identifier."""
    return uuid4().hex


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class RiskLevel(Enum):
    """Risk classification of a catalog bond."""

    LOW = "Low"
    MEDIUM = "Medium"
    HIGH = "High"


class TransactionType(Enum):
    """Direction of a ledger transaction."""

    BUY = "BUY"
    SELL = "SELL"


class TransactionStatus(Enum):
    """Lifecycle status of a transaction record."""

    PENDING = "PENDING"
    COMPLETED = "COMPLETED"
    FAILED = "FAILED"
    CANCELLED = "CANCELLED"


class UserRole(Enum):
    USER = "user"
    ADMIN = "admin"


@dataclass(frozen=True)
class Wallet:
    """A user's virtual, non-redeemable cash balance."""

    balance: Decimal
    currency: str = "INR"

    def debit(self, amount: Decimal) -> "Wallet":
        return Wallet(balance=money(self.balance - amount), currency=self.currency)

    def credit(self, amount: Decimal) -> "Wallet":
        return Wallet(balance=money(self.balance + amount), currency=self.currency)


@dataclass
class User:
    """A registered trader and the wallet they own.

    ``version`` is bumped on every wallet write and is what
    concurrent ledger operations compare-and-swap against.
    """

    name: str
    email: str
    wallet: Wallet
    id: str = field(default_factory=new_id)
    password_hash: Optional[str] = None
    session_token: Optional[str] = None
    role: UserRole = UserRole.USER
    is_verified: bool = False
    created_at: datetime = field(default_factory=utc_now)
    version: int = 0


@dataclass
class Bond:
    """A catalog instrument with a fixed unit price and finite inventory."""

    name: str
    issuer: str
    return_rate: Decimal
    risk_level: RiskLevel
    price: Decimal
    maturity_years: int
    sector: str
    total_value: Decimal
    available_units: int
    id: str = field(default_factory=new_id)
    description: str = ""
    is_active: bool = True
    launch_date: Optional[datetime] = None
    version: int = 0

    @property
    def unit_supply(self) -> int:
        """Initial size of the unit pool (total value / unit price)."""
        if self.price <= 0:
            return 0
        return int(self.total_value / self.price)


@dataclass(frozen=True)
class BondSnapshot:
    """Bond attributes frozen into a transaction at execution time."""

    name: str
    issuer: str
    return_rate: Decimal
    risk_level: RiskLevel

    @classmethod
    def of(cls, bond: Bond) -> "BondSnapshot":
        return cls(
            name=bond.name,
            issuer=bond.issuer,
            return_rate=bond.return_rate,
            risk_level=bond.risk_level,
        )


@dataclass(frozen=True)
class Holding:
    """A user's position in one bond: quantity plus average cost basis."""

    bond_id: str
    quantity: int
    average_buy_price: Decimal
    total_invested: Decimal
    first_purchase_date: datetime
    last_transaction_date: datetime


@dataclass
class Portfolio:
    """The single portfolio a user owns, keyed by bond.

    ``total_invested`` and ``total_bonds_owned`` are caches; call
    ``recalculate_totals`` after any change to ``holdings``.
    """

    user_id: str
    holdings: dict[str, Holding] = field(default_factory=dict)
    id: str = field(default_factory=new_id)
    total_invested: Decimal = ZERO
    total_bonds_owned: int = 0
    created_at: datetime = field(default_factory=utc_now)
    updated_at: datetime = field(default_factory=utc_now)
    version: int = 0

    def recalculate_totals(self) -> None:
        active = [h for h in self.holdings.values() if h.quantity > 0]
        self.total_invested = money(sum((h.total_invested for h in active), ZERO))
        self.total_bonds_owned = len(active)

    def holding_for(self, bond_id: str) -> Optional[Holding]:
        return self.holdings.get(bond_id)


@dataclass(frozen=True)
class Transaction:
    """An immutable record of one completed buy or sell."""

    user_id: str
    bond_id: str
    type: TransactionType
    quantity: int
    price_per_unit: Decimal
    total_amount: Decimal
    bond_snapshot: BondSnapshot
    status: TransactionStatus = TransactionStatus.COMPLETED
    id: str = field(default_factory=new_id)
    created_at: datetime = field(default_factory=utc_now)
