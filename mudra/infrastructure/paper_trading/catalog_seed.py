"""
Bond catalog seed.

The ten infrastructure bonds offered on the platform. ``seed_catalog``
inserts whichever of them are missing, matched by name, so running it
again is harmless. Each bond starts with its whole unit pool
(``total_value / price``) available.
"""

import logging
from datetime import datetime, timezone
from decimal import Decimal

from mudra.domain.paper_trading.entities import Bond, RiskLevel
from mudra.domain.paper_trading.ports import UnitOfWork

logger = logging.getLogger(__name__)

CATALOG: tuple[dict, ...] = (
    {
        "name": "National Highway Infrastructure Bond",
        "issuer": "NHAI",
        "return_rate": "7.5",
        "risk_level": RiskLevel.LOW,
        "price": "10000",
        "maturity_years": 5,
        "sector": "Transportation",
        "total_value": "50000000000",
        "launch_date": "2025-06-15",
        "description": (
            "Government-backed infrastructure bond for national highway "
            "development across India. Supports the Bharatmala Pariyojana project."
        ),
    },
    {
        "name": "Metro Rail Development Bond",
        "issuer": "DMRC",
        "return_rate": "8.2",
        "risk_level": RiskLevel.LOW,
        "price": "25000",
        "maturity_years": 7,
        "sector": "Urban Transit",
        "total_value": "75000000000",
        "launch_date": "2025-04-01",
        "description": (
            "Fund expansion of metro rail networks in major cities including "
            "Delhi, Mumbai, and Bangalore."
        ),
    },
    {
        "name": "Green Energy Infrastructure Bond",
        "issuer": "IREDA",
        "return_rate": "9.0",
        "risk_level": RiskLevel.MEDIUM,
        "price": "15000",
        "maturity_years": 10,
        "sector": "Energy",
        "total_value": "100000000000",
        "launch_date": "2025-08-20",
        "description": (
            "Supporting renewable energy infrastructure projects including "
            "solar parks and wind farms across India."
        ),
    },
    {
        "name": "Smart City Development Bond",
        "issuer": "Smart City SPV",
        "return_rate": "8.8",
        "risk_level": RiskLevel.MEDIUM,
        "price": "20000",
        "maturity_years": 8,
        "sector": "Urban Development",
        "total_value": "60000000000",
        "launch_date": "2025-03-10",
        "description": (
            "Financing smart city initiatives including digital infrastructure, "
            "IoT systems, and sustainable urban development."
        ),
    },
    {
        "name": "Port & Logistics Bond",
        "issuer": "Sagarmala SPV",
        "return_rate": "9.5",
        "risk_level": RiskLevel.HIGH,
        "price": "50000",
        "maturity_years": 12,
        "sector": "Maritime",
        "total_value": "120000000000",
        "launch_date": "2025-01-25",
        "description": (
            "Investment in port modernization, coastal economic zones, and "
            "integrated logistics infrastructure."
        ),
    },
    {
        "name": "Rural Connectivity Bond",
        "issuer": "PMGSY",
        "return_rate": "7.8",
        "risk_level": RiskLevel.LOW,
        "price": "5000",
        "maturity_years": 6,
        "sector": "Rural Infrastructure",
        "total_value": "40000000000",
        "launch_date": "2025-07-01",
        "description": (
            "Funding rural road connectivity under Pradhan Mantri Gram Sadak "
            "Yojana for last-mile infrastructure."
        ),
    },
    {
        "name": "Water Infrastructure Bond",
        "issuer": "Jal Jeevan Mission",
        "return_rate": "8.5",
        "risk_level": RiskLevel.MEDIUM,
        "price": "10000",
        "maturity_years": 8,
        "sector": "Water & Sanitation",
        "total_value": "80000000000",
        "launch_date": "2025-05-15",
        "description": (
            "Supporting water supply infrastructure and tap water connections "
            "to rural households."
        ),
    },
    {
        "name": "Airport Modernization Bond",
        "issuer": "AAI",
        "return_rate": "9.2",
        "risk_level": RiskLevel.MEDIUM,
        "price": "30000",
        "maturity_years": 10,
        "sector": "Aviation",
        "total_value": "90000000000",
        "launch_date": "2025-02-28",
        "description": (
            "Financing airport expansion and modernization projects under UDAN scheme."
        ),
    },
    {
        "name": "Railway Infrastructure Bond",
        "issuer": "Indian Railways",
        "return_rate": "8.0",
        "risk_level": RiskLevel.LOW,
        "price": "15000",
        "maturity_years": 7,
        "sector": "Railways",
        "total_value": "150000000000",
        "launch_date": "2025-09-01",
        "description": (
            "Supporting railway modernization, new lines, and high-speed rail "
            "corridor development."
        ),
    },
    {
        "name": "Industrial Corridor Bond",
        "issuer": "NICDIT",
        "return_rate": "10.0",
        "risk_level": RiskLevel.HIGH,
        "price": "100000",
        "maturity_years": 15,
        "sector": "Industrial",
        "total_value": "200000000000",
        "launch_date": "2025-11-15",
        "description": (
            "Investment in Delhi-Mumbai and other industrial corridors with "
            "integrated manufacturing zones."
        ),
    },
)


def build_bond(entry: dict) -> Bond:
    """Turn one catalog entry into a Bond with its full unit pool available."""
    bond = Bond(
        name=entry["name"],
        issuer=entry["issuer"],
        return_rate=Decimal(entry["return_rate"]),
        risk_level=entry["risk_level"],
        price=Decimal(entry["price"]),
        maturity_years=entry["maturity_years"],
        sector=entry["sector"],
        total_value=Decimal(entry["total_value"]),
        available_units=0,
        description=entry["description"],
        launch_date=datetime.fromisoformat(entry["launch_date"]).replace(tzinfo=timezone.utc),
    )
    bond.available_units = bond.unit_supply
    return bond


def seed_catalog(uow: UnitOfWork) -> list[str]:
    """Insert every catalog bond not already present and commit.

    Args:
        uow: An entered unit of work.

    Returns:
        Names of the bonds that were inserted.
    """
    inserted = []
    for entry in CATALOG:
        if uow.bonds.get_by_name(entry["name"]) is not None:
            continue
        uow.bonds.add(build_bond(entry))
        inserted.append(entry["name"])

    uow.commit()
    logger.info(
        "Catalog seed: %d inserted, %d already present",
        len(inserted),
        len(CATALOG) - len(inserted),
    )
    return inserted
