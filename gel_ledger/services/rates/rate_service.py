"""
Cached daily rates.

Published rates for a past date never change, so the raw payload for
each date is cached in the key-value store under
"<cache_key_prefix><YYYY-MM-DD>" and reused on every later lookup.
"""

from datetime import date
from typing import Any, Optional, Protocol
from uuid import UUID

from gel_ledger.audit import AuditLogger
from gel_ledger.config import get_settings
from gel_ledger.models.audit import AuditEventBuilder
from gel_ledger.models.ledger import Currency
from gel_ledger.services.rates.nbg_client import (
    CurrencyNotFoundError,
    RateDataError,
    RateSourceError,
    parse_rate_payload,
)
from gel_ledger.services.storage import (
    KeyValueStorageInterface,
    SerializationError,
    StorageError,
)


class RateSource(Protocol):
    async def fetch_rates(self, rate_date: date) -> Any:
        ...


def find_currency(currencies: list[Currency], code: str) -> Optional[Currency]:
    """Currency with the given code, or None."""
    for currency in currencies:
        if currency.code == code:
            return currency
    return None


class RateService:
    """Rate lookups backed by the daily cache."""

    def __init__(
        self,
        source: RateSource,
        storage: KeyValueStorageInterface,
        audit_logger: Optional[AuditLogger] = None,
    ):
        self._source = source
        self._storage = storage
        self._audit = audit_logger or AuditLogger()
        self._settings = get_settings()

    def _cache_key(self, rate_date: date) -> str:
        return f"{self._settings.rates.cache_key_prefix}{rate_date.isoformat()}"

    def _read_cache(self, key: str) -> Optional[list[Currency]]:
        try:
            cached = self._storage.get(key)
        except SerializationError as e:
            self._audit.log_storage_corrupted(key, str(e))
            return None
        if cached is None:
            return None
        try:
            return parse_rate_payload(cached)
        except RateDataError as e:
            self._audit.log_storage_corrupted(key, str(e))
            return None

    def local_currency(self) -> Currency:
        """Identity rate for the home currency."""
        ledger = self._settings.ledger
        return Currency(
            code=ledger.local_currency_code,
            name=ledger.local_currency_name,
            rate=1.0,
            quantity=1.0,
            rate_formatted="1",
        )

    async def get_currencies(
        self,
        rate_date: date,
        correlation_id: Optional[UUID] = None,
    ) -> list[Currency]:
        """
        Currencies published for a date, from cache or the rate source.

        Raises:
            RateSourceError: If the source fails or returns malformed data
        """
        key = self._cache_key(rate_date)
        cached = self._read_cache(key)
        if cached is not None:
            self._audit.log(AuditEventBuilder.rates_cache_hit(
                rate_date.isoformat(), correlation_id=correlation_id,
            ))
            return cached

        try:
            payload = await self._source.fetch_rates(rate_date)
            currencies = parse_rate_payload(payload)
        except RateSourceError as e:
            self._audit.log_external_service_error(
                service="nbg_rates",
                error_message=str(e),
                correlation_id=correlation_id,
            )
            raise

        try:
            self._storage.set(key, payload)
        except StorageError as e:
            # The rates are still usable; only the cache entry is lost.
            self._audit.log_save_failed(key, e)

        self._audit.log(AuditEventBuilder.rates_fetched(
            rate_date.isoformat(), len(currencies), correlation_id=correlation_id,
        ))
        return currencies

    async def get_currency(
        self,
        rate_date: date,
        code: str,
        correlation_id: Optional[UUID] = None,
    ) -> Currency:
        """
        Rate snapshot for one currency on a date.

        The home currency resolves without contacting the rate source.

        Raises:
            CurrencyNotFoundError: If the code is not published for the date
            RateSourceError: If the rates cannot be obtained
        """
        if code == self._settings.ledger.local_currency_code:
            return self.local_currency()

        currencies = await self.get_currencies(rate_date, correlation_id=correlation_id)
        currency = find_currency(currencies, code)
        if currency is None:
            raise CurrencyNotFoundError(code, rate_date)
        return currency

    def clear_rate_cache(self) -> int:
        """Remove every cached day. Returns how many were removed."""
        prefix = self._settings.rates.cache_key_prefix
        removed = 0
        for key in self._storage.keys():
            if key.startswith(prefix):
                self._storage.remove(key)
                removed += 1
        self._audit.log(AuditEventBuilder.rate_cache_cleared(removed))
        return removed
