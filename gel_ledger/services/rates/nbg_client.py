"""
Exchange Rate Source using the National Bank of Georgia API

The NBG publishes official GEL rates per day:

    GET <api_url>?date=YYYY-MM-DD
    -> [{"date": "...", "currencies": [
           {"code": "USD", "name": "US Dollar", "quantity": 1,
            "rate": 2.7184, "rateFormated": "2.7184", ...},
           ...]}]

This service handles:
1. Fetching the payload (with retries on transport failures)
2. Rejecting payloads that don't have the expected shape
3. Converting entries to our Currency model

CRITICAL: A malformed payload is rejected loudly. We never convert with
partial or guessed rate data.
"""

from datetime import date
from typing import Any, Optional

import httpx
from pydantic import ValidationError
from tenacity import (
    AsyncRetrying,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)
from tenacity.wait import wait_base

from gel_ledger.config import get_settings
from gel_ledger.models.ledger import Currency
from gel_ledger.validation import ERROR_MESSAGES, validate_currency_code


class RateSourceError(Exception):
    """Base exception for rate source errors."""
    pass


class RateFetchError(RateSourceError):
    """The rate source could not be reached or answered with an error."""
    pass


class RateDataError(RateSourceError):
    """The rate source answered with data of an unexpected shape."""
    pass


class CurrencyNotFoundError(RateSourceError):
    """The requested currency is not published for the date."""

    def __init__(self, currency_code: str, rate_date: date):
        self.currency_code = currency_code
        self.rate_date = rate_date
        super().__init__(
            f"{ERROR_MESSAGES['CURRENCY_NOT_FOUND']} ({currency_code} on {rate_date.isoformat()})"
        )


def parse_rate_payload(data: Any) -> list[Currency]:
    """
    Extract currencies from a raw rate payload.

    Entries that are not usable (missing rate, zero quantity, bad code)
    are skipped.

    Raises:
        RateDataError: If the payload shape is wrong or no entry is usable
    """
    if (
        not isinstance(data, list)
        or not data
        or not isinstance(data[0], dict)
        or not isinstance(data[0].get("currencies"), list)
    ):
        raise RateDataError(ERROR_MESSAGES["NO_CURRENCY_DATA"])

    currencies = []
    for entry in data[0]["currencies"]:
        if not isinstance(entry, dict):
            continue
        try:
            currency = Currency.model_validate(entry)
        except ValidationError:
            continue
        if not validate_currency_code(currency.code):
            continue
        currencies.append(currency)

    if not currencies:
        raise RateDataError(ERROR_MESSAGES["NO_CURRENCY_DATA"])
    return currencies


class NbgRateClient:
    """
    HTTP client for the NBG currencies endpoint.

    Only transport errors (timeouts, connection resets) are retried;
    an HTTP error status is final.
    """

    def __init__(
        self,
        client: Optional[httpx.AsyncClient] = None,
        wait: Optional[wait_base] = None,
    ):
        """
        Args:
            client: HTTP client to use (created lazily if None)
            wait: Backoff between attempts (exponential by default)
        """
        self._settings = get_settings().rates
        self._client = client
        self._wait = wait or wait_exponential(multiplier=1, min=2, max=10)

    def _get_client(self) -> httpx.AsyncClient:
        """Get or create the HTTP client."""
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=self._settings.timeout_seconds)
        return self._client

    async def fetch_rates(self, rate_date: date) -> Any:
        """
        Fetch the raw payload for a date.

        Raises:
            RateFetchError: On HTTP errors, or transport errors after all retries
            RateDataError: If the body is not JSON
        """
        client = self._get_client()
        try:
            async for attempt in AsyncRetrying(
                stop=stop_after_attempt(self._settings.max_attempts),
                wait=self._wait,
                retry=retry_if_exception_type(httpx.TransportError),
                reraise=True,
            ):
                with attempt:
                    response = await client.get(
                        self._settings.api_url,
                        params={"date": rate_date.isoformat()},
                    )
                    response.raise_for_status()
        except httpx.HTTPStatusError as e:
            raise RateFetchError(
                f"API error: {e.response.status_code} {e.response.reason_phrase}"
            )
        except httpx.TransportError as e:
            raise RateFetchError(f"{ERROR_MESSAGES['API_ERROR']} ({e})")

        try:
            return response.json()
        except ValueError as e:
            raise RateDataError(f"{ERROR_MESSAGES['NO_CURRENCY_DATA']} ({e})")

    async def aclose(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None
