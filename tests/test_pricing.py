from decimal import Decimal

import pytest

from travelbook.core.config import Settings
from travelbook.models.booking import CatalogType
from travelbook.services import pricing


def test_per_person_trip():
    assert pricing.compute_total(CatalogType.TRIP, Decimal("1000000"), 2) == Decimal("2000000.00")


def test_per_person_travel():
    assert pricing.compute_total("travel", "150000", 3) == Decimal("450000.00")


def test_flat_mode_ignores_participants():
    assert pricing.compute_total(CatalogType.TRIP, "100000", 4, mode=pricing.FLAT) == Decimal("100000.00")


def test_mode_comes_from_settings(monkeypatch):
    monkeypatch.setattr(pricing.settings, "TRAVEL_PRICING_MODE", "flat")
    assert pricing.pricing_mode(CatalogType.TRAVEL) == "flat"
    assert pricing.pricing_mode(CatalogType.TRIP) == "per_person"
    assert pricing.compute_total(CatalogType.TRAVEL, "150000", 3) == Decimal("150000.00")


def test_rejects_zero_participants():
    with pytest.raises(ValueError):
        pricing.compute_total(CatalogType.TRIP, "1000", 0)


def test_unknown_mode_rejected_by_settings():
    with pytest.raises(ValueError):
        Settings(SECRET_KEY="x", DATABASE_URL="sqlite://", TRIP_PRICING_MODE="per_group")


def test_format_rupiah():
    assert pricing.format_rupiah(Decimal("2000000.00")) == "Rp 2.000.000"
    assert pricing.format_rupiah(350000) == "Rp 350.000"
