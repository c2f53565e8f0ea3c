"""
Booking price rules.

Each catalog type carries one explicit rule, chosen in settings:

* ``per_person`` -- total = unit price x participant count
* ``flat``       -- total = unit price, whatever the participant count

Both trip and travel default to ``per_person``.
"""
from decimal import Decimal, ROUND_HALF_UP

from travelbook.core.config import settings
from travelbook.models.booking import CatalogType

CENTS = Decimal("0.01")
PER_PERSON = "per_person"
FLAT = "flat"


def pricing_mode(catalog_type: CatalogType | str) -> str:
    if CatalogType(catalog_type) == CatalogType.TRIP:
        return settings.TRIP_PRICING_MODE
    return settings.TRAVEL_PRICING_MODE


def compute_total(catalog_type: CatalogType | str, unit_price, participant_count: int, mode: str | None = None) -> Decimal:
    if participant_count < 1:
        raise ValueError("participant_count must be >= 1")
    mode = mode or pricing_mode(catalog_type)
    unit = Decimal(str(unit_price))
    if mode == FLAT:
        total = unit
    elif mode == PER_PERSON:
        total = unit * participant_count
    else:
        raise ValueError(f"unknown pricing mode: {mode}")
    return total.quantize(CENTS, rounding=ROUND_HALF_UP)


def format_rupiah(amount) -> str:
    """Rp 1.500.000 style, no decimals."""
    whole = int(Decimal(str(amount)).quantize(Decimal("1"), rounding=ROUND_HALF_UP))
    return "Rp " + f"{whole:,}".replace(",", ".")
