"""Exchange rate services package."""

from gel_ledger.services.rates.nbg_client import (
    CurrencyNotFoundError,
    NbgRateClient,
    RateDataError,
    RateFetchError,
    RateSourceError,
    parse_rate_payload,
)
from gel_ledger.services.rates.rate_service import (
    RateService,
    RateSource,
    find_currency,
)

__all__ = [
    "CurrencyNotFoundError",
    "NbgRateClient",
    "RateDataError",
    "RateFetchError",
    "RateService",
    "RateSource",
    "RateSourceError",
    "find_currency",
    "parse_rate_payload",
]
