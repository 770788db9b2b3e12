"""Tests for conversion and display formatting."""

import math

import pytest

from gel_ledger.ledger import (
    convert_to_gel,
    format_currency,
    get_currency_symbol,
    unit_rate,
)
from gel_ledger.models import Currency


class TestConvertToGel:
    """Tests for convert_to_gel."""

    @pytest.mark.parametrize("amount", [0.01, 1, 123.456, 1_000_000_000])
    def test_local_currency_is_identity(self, amount):
        """Test GEL converts to itself whatever rate it carries."""
        gel = Currency(code="GEL", rate=5.0, quantity=3.0)
        assert convert_to_gel(amount, gel) == amount

    def test_rate_per_unit(self):
        """Test a rate quoted per one unit."""
        usd = Currency(code="USD", rate=2.875, quantity=1)
        assert convert_to_gel(100, usd) == pytest.approx(287.5)

    def test_rate_per_quantity(self):
        """Test a rate quoted per 100 units is divided by the quantity."""
        jpy = Currency(code="JPY", rate=1.8123, quantity=100)
        assert convert_to_gel(10_000, jpy) == pytest.approx(181.23)

    def test_no_rounding(self):
        """Test the converted value keeps full precision."""
        usd = Currency(code="USD", rate=2.71234, quantity=1)
        assert convert_to_gel(1, usd) == pytest.approx(2.71234)

    def test_unit_rate(self):
        """Test the per-unit rate."""
        assert unit_rate(1.8123, 100) == pytest.approx(0.018123)


class TestFormatting:
    """Tests for display helpers."""

    @pytest.mark.parametrize("value,expected", [
        (0, "0.00"),
        (287.5, "287.50"),
        (1234.567, "1 234.57"),
        (1_000_000, "1 000 000.00"),
        (-1234.5, "-1 234.50"),
        (math.nan, "0.00"),
        (math.inf, "0.00"),
    ])
    def test_format_currency(self, value, expected):
        """Test two decimals with a space thousands separator."""
        assert format_currency(value) == expected

    def test_currency_symbols(self):
        """Test known symbols and the fallback to the code."""
        assert get_currency_symbol("GEL") == "₾"
        assert get_currency_symbol("USD") == "$"
        assert get_currency_symbol("XYZ") == "XYZ"
