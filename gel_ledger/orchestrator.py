"""
Main Orchestrator for GEL Ledger

This module ties together all the components and defines the
end-to-end conversion flow:

    form input → validate → resolve rate → convert → (record) → result

DESIGN DECISION: The orchestrator enforces the boundaries:
- Nothing reaches the rate source or the ledger with invalid input
- A recorded transaction always carries the rate snapshot it was
  converted with
- Every step is audited

This is the "glue" that ensures the system works correctly
even when individual components might behave unexpectedly.
"""

from datetime import date
from typing import NamedTuple, Optional
from uuid import UUID

import structlog

from gel_ledger.audit import AuditLogger, create_correlation_id
from gel_ledger.config import get_settings
from gel_ledger.ledger.conversion import convert_to_gel, format_currency
from gel_ledger.ledger.preferences import SectionPreferences
from gel_ledger.ledger.store import LedgerStore, Confirmation
from gel_ledger.models.audit import AuditEventBuilder
from gel_ledger.models.ledger import (
    ConversionResult,
    Transaction,
    generate_transaction_id,
    new_timestamp,
)
from gel_ledger.models.validation import ValidationIssue, ValidationResult
from gel_ledger.services.rates import NbgRateClient, RateService, RateSource
from gel_ledger.services.storage import (
    InMemoryStorage,
    JsonFileStorage,
    KeyValueStorageInterface,
)
from gel_ledger.validation import ConversionInputValidator, parse_date


logger = structlog.get_logger("gel_ledger.orchestrator")


class ConversionInputError(ValueError):
    """The conversion form failed validation; nothing was fetched or stored."""

    def __init__(self, validation: ValidationResult):
        self.validation = validation
        super().__init__(validation.first_error or "Invalid conversion input")


class ConversionFlow:
    """
    Orchestrates a conversion.

    Flow:
    1. Validate → date, currency and amount (and the owner if recording)
    2. Resolve → rate snapshot for the currency on that date
    3. Convert → amount * rate / quantity
    4. Record → optional, through the ledger store
    5. Result → converted and formatted value
    """

    def __init__(
        self,
        rate_service: RateService,
        store: LedgerStore,
        validator: Optional[ConversionInputValidator] = None,
        audit_logger: Optional[AuditLogger] = None,
    ):
        self._rates = rate_service
        self._store = store
        self._validator = validator or ConversionInputValidator()
        self._audit = audit_logger or AuditLogger()

    def _validate(
        self,
        value_date,
        currency_code,
        amount,
        record: bool,
        user_id: str,
    ) -> ValidationResult:
        validation = self._validator.validate(value_date, currency_code, amount)
        if record and self._store.get_user(user_id) is None:
            validation.issues.append(ValidationIssue(
                field="user_id",
                issue_type="not_found",
                message="Selected user not found.",
                severity="error",
            ))
        return validation

    async def convert(
        self,
        value_date,
        currency_code,
        amount,
        *,
        record: bool = False,
        user_id: Optional[str] = None,
        comment: str = "",
        correlation_id: Optional[UUID] = None,
    ) -> ConversionResult:
        """
        Convert an amount to GEL at the official rate of `value_date`.

        Args:
            value_date: Valuation date (date or ISO string)
            currency_code: Source currency code
            amount: Amount in the source currency
            record: Store the conversion as a transaction
            user_id: Owner of the recorded transaction (default user if None)
            comment: Free-text note for the recorded transaction

        Returns:
            ConversionResult (with the transaction when recorded)

        Raises:
            ConversionInputError: If the input fails validation
            CurrencyNotFoundError: If the code is not published for the date
            RateSourceError: If the rates cannot be obtained
            StorageError: If recording fails
        """
        correlation_id = correlation_id or create_correlation_id()
        user_id = user_id or get_settings().ledger.default_user_id

        # Step 1: Validate
        validation = self._validate(value_date, currency_code, amount, record, user_id)
        if validation.has_errors:
            self._audit.log(AuditEventBuilder.input_validation_failed(
                issues=[issue.model_dump() for issue in validation.issues],
                correlation_id=correlation_id,
            ))
            raise ConversionInputError(validation)

        day: date = parse_date(value_date)
        amount = float(amount)

        # Step 2: Resolve the rate snapshot
        currency = await self._rates.get_currency(
            day, currency_code, correlation_id=correlation_id,
        )

        # Step 3: Convert
        converted = convert_to_gel(amount, currency)

        # Step 4: Record
        transaction = None
        if record:
            candidate = Transaction(
                id=generate_transaction_id(),
                user_id=user_id,
                value_date=day,
                currency_code=currency.code,
                currency_name=currency.name,
                rate=currency.rate,
                quantity=currency.quantity,
                amount=amount,
                converted_gel=converted,
                comment=comment,
                timestamp=new_timestamp(),
            )
            if self._store.add_transaction(candidate):
                transaction = candidate
            else:
                logger.warning(
                    "conversion_not_recorded",
                    transaction_id=candidate.id,
                    correlation_id=str(correlation_id),
                )

        self._audit.log(AuditEventBuilder.conversion_completed(
            currency_code=currency.code,
            amount=amount,
            converted_gel=converted,
            recorded=transaction is not None,
            correlation_id=correlation_id,
        ))

        # Step 5: Result
        return ConversionResult(
            value_date=day,
            amount=amount,
            currency=currency,
            converted_gel=converted,
            formatted=format_currency(converted),
            transaction=transaction,
        )


class AppComponents(NamedTuple):
    conversion_flow: ConversionFlow
    store: LedgerStore
    rate_service: RateService
    audit_logger: AuditLogger
    preferences: SectionPreferences
    storage: KeyValueStorageInterface


def create_storage() -> KeyValueStorageInterface:
    """Storage backend selected by StorageSettings.backend."""
    settings = get_settings().storage
    if settings.backend == "memory":
        return InMemoryStorage(quota_bytes=settings.quota_bytes)
    return JsonFileStorage(settings.data_dir, quota_bytes=settings.quota_bytes)


def create_app_components(
    storage: Optional[KeyValueStorageInterface] = None,
    confirm: Optional[Confirmation] = None,
    rate_client: Optional[RateSource] = None,
) -> AppComponents:
    """
    Factory function to create all application components.

    Args:
        storage: Storage backend (built from settings if None)
        confirm: Confirmation gate for destructive ledger operations
        rate_client: Rate source client (NBG client if None)
    """
    if storage is None:
        storage = create_storage()
    audit_logger = AuditLogger(storage)

    store = LedgerStore(storage, confirm=confirm, audit_logger=audit_logger)
    rate_service = RateService(
        rate_client or NbgRateClient(),
        storage,
        audit_logger=audit_logger,
    )
    conversion_flow = ConversionFlow(
        rate_service,
        store,
        audit_logger=audit_logger,
    )

    return AppComponents(
        conversion_flow=conversion_flow,
        store=store,
        rate_service=rate_service,
        audit_logger=audit_logger,
        preferences=SectionPreferences(storage, audit_logger=audit_logger),
        storage=storage,
    )
