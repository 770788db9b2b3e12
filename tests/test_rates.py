"""Tests for the NBG rate client and the cached rate service."""

import asyncio
from datetime import date

import httpx
import pytest
from tenacity import wait_none

from gel_ledger.audit import AuditLogger
from gel_ledger.services.rates import (
    CurrencyNotFoundError,
    NbgRateClient,
    RateDataError,
    RateFetchError,
    RateService,
    find_currency,
    parse_rate_payload,
)
from gel_ledger.services.storage import InMemoryStorage


DAY = date(2025, 1, 15)

PAYLOAD = [{
    "date": "2025-01-15T00:00:00.000Z",
    "currencies": [
        {"code": "USD", "name": "US Dollar", "quantity": 1, "rate": 2.875,
         "rateFormated": "2.8750", "diff": 0.01},
        {"code": "EUR", "name": "Euro", "quantity": 1, "rate": 3.1,
         "rateFormated": "3.1000"},
        {"code": "JPY", "name": "Japanese Yen", "quantity": 100, "rate": 1.8123,
         "rateFormated": "1.8123"},
    ],
}]


def mock_client(handler) -> NbgRateClient:
    http = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return NbgRateClient(client=http, wait=wait_none())


def payload_handler(calls: list):
    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(request)
        return httpx.Response(200, json=PAYLOAD)
    return handler


class TestParseRatePayload:
    """Tests for parse_rate_payload."""

    def test_parses_currencies(self):
        """Test every published entry becomes a Currency."""
        currencies = parse_rate_payload(PAYLOAD)
        assert [c.code for c in currencies] == ["USD", "EUR", "JPY"]
        assert find_currency(currencies, "JPY").quantity == 100

    @pytest.mark.parametrize("data", [
        None, {}, [], [{}], [{"currencies": None}], ["x"], {"currencies": []},
    ])
    def test_rejects_wrong_shape(self, data):
        """Test payloads without a currencies list are rejected."""
        with pytest.raises(RateDataError):
            parse_rate_payload(data)

    def test_skips_unusable_entries(self):
        """Test broken entries are dropped, the rest kept."""
        data = [{"currencies": [
            {"code": "USD", "rate": 2.8, "quantity": 1},
            {"code": "usd", "rate": 2.8, "quantity": 1},
            {"code": "EUR", "quantity": 1},
            {"code": "JPY", "rate": 1.8, "quantity": 0},
            "junk",
        ]}]
        assert [c.code for c in parse_rate_payload(data)] == ["USD"]

    def test_no_usable_entry(self):
        """Test a list with nothing usable is rejected."""
        with pytest.raises(RateDataError):
            parse_rate_payload([{"currencies": [{"code": "x"}]}])

    def test_find_currency_missing(self):
        """Test an unknown code gives None."""
        assert find_currency(parse_rate_payload(PAYLOAD), "CHF") is None


class TestNbgRateClient:
    """Tests for the HTTP client."""

    def test_sends_date_query(self):
        """Test the date is passed as a query parameter."""
        calls = []
        client = mock_client(payload_handler(calls))
        assert asyncio.run(client.fetch_rates(DAY)) == PAYLOAD
        assert calls[0].url.params["date"] == "2025-01-15"

    def test_http_error_is_not_retried(self):
        """Test an error status fails at once."""
        calls = []

        def handler(request):
            calls.append(request)
            return httpx.Response(500)

        with pytest.raises(RateFetchError, match="500"):
            asyncio.run(mock_client(handler).fetch_rates(DAY))
        assert len(calls) == 1

    def test_transport_errors_are_retried(self):
        """Test connection failures are retried until one succeeds."""
        calls = []

        def handler(request):
            calls.append(request)
            if len(calls) < 3:
                raise httpx.ConnectError("boom", request=request)
            return httpx.Response(200, json=PAYLOAD)

        assert asyncio.run(mock_client(handler).fetch_rates(DAY)) == PAYLOAD
        assert len(calls) == 3

    def test_transport_errors_give_up(self):
        """Test persistent connection failures end in RateFetchError."""
        calls = []

        def handler(request):
            calls.append(request)
            raise httpx.ConnectError("boom", request=request)

        with pytest.raises(RateFetchError):
            asyncio.run(mock_client(handler).fetch_rates(DAY))
        assert len(calls) == 3

    def test_non_json_body(self):
        """Test an HTML error page is a data error."""
        client = mock_client(lambda request: httpx.Response(200, text="<html>"))
        with pytest.raises(RateDataError):
            asyncio.run(client.fetch_rates(DAY))


class FakeSource:
    """Rate source returning a fixed payload and counting calls."""

    def __init__(self, payload=PAYLOAD, error=None):
        self.payload = payload
        self.error = error
        self.calls = 0

    async def fetch_rates(self, rate_date):
        self.calls += 1
        if self.error:
            raise self.error
        return self.payload


class TestRateService:
    """Tests for the cached rate service."""

    def test_fetches_once_then_uses_cache(self, storage):
        """Test the second lookup for a date is served from the cache."""
        source = FakeSource()
        service = RateService(source, storage)
        first = asyncio.run(service.get_currencies(DAY))
        second = asyncio.run(service.get_currencies(DAY))
        assert source.calls == 1
        assert first == second
        assert storage.get("currencyRates_2025-01-15") == PAYLOAD

    def test_dates_are_cached_separately(self, storage):
        """Test each date has its own cache entry."""
        source = FakeSource()
        service = RateService(source, storage)
        asyncio.run(service.get_currencies(DAY))
        asyncio.run(service.get_currencies(date(2025, 1, 16)))
        assert source.calls == 2

    def test_malformed_payload_is_not_cached(self, storage):
        """Test a rejected payload never reaches the cache."""
        service = RateService(FakeSource(payload={"error": "x"}), storage)
        with pytest.raises(RateDataError):
            asyncio.run(service.get_currencies(DAY))
        assert storage.keys() == []

    def test_corrupted_cache_is_refetched(self, storage):
        """Test an unreadable cache entry falls back to the source."""
        storage.set_raw("currencyRates_2025-01-15", "{broken")
        source = FakeSource()
        currencies = asyncio.run(RateService(source, storage).get_currencies(DAY))
        assert source.calls == 1
        assert len(currencies) == 3

    def test_cache_write_failure_is_not_fatal(self):
        """Test rates are returned even if caching them fails."""
        storage = InMemoryStorage(quota_bytes=10)
        currencies = asyncio.run(RateService(FakeSource(), storage).get_currencies(DAY))
        assert len(currencies) == 3
        assert storage.keys() == []

    def test_source_errors_propagate_and_are_audited(self, storage):
        """Test fetch failures reach the caller and the trail."""
        audit = AuditLogger(InMemoryStorage())
        service = RateService(FakeSource(error=RateFetchError("down")), storage, audit_logger=audit)
        with pytest.raises(RateFetchError):
            asyncio.run(service.get_currencies(DAY))
        assert audit.recent_events()[0]["event_type"] == "external_service_error"

    def test_local_currency_needs_no_fetch(self, storage):
        """Test GEL resolves to an identity rate without the source."""
        source = FakeSource()
        gel = asyncio.run(RateService(source, storage).get_currency(DAY, "GEL"))
        assert (gel.code, gel.rate, gel.quantity) == ("GEL", 1.0, 1.0)
        assert source.calls == 0

    def test_get_currency(self, storage):
        """Test a published code resolves to its snapshot."""
        usd = asyncio.run(RateService(FakeSource(), storage).get_currency(DAY, "USD"))
        assert usd.rate == 2.875

    def test_unknown_currency(self, storage):
        """Test an unpublished code raises CurrencyNotFoundError."""
        with pytest.raises(CurrencyNotFoundError) as exc_info:
            asyncio.run(RateService(FakeSource(), storage).get_currency(DAY, "CHF"))
        assert exc_info.value.currency_code == "CHF"

    def test_clear_rate_cache(self, storage):
        """Test only cached rate days are removed."""
        service = RateService(FakeSource(), storage)
        asyncio.run(service.get_currencies(DAY))
        asyncio.run(service.get_currencies(date(2025, 1, 16)))
        storage.set("users", [])
        assert service.clear_rate_cache() == 2
        assert storage.keys() == ["users"]
