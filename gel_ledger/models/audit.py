"""
Audit Models for GEL Ledger

Every change to the ledger is logged for audit purposes.
This provides:
1. Traceability of all ledger writes
2. Debugging information when storage or the rate source fails
3. A record of destructive actions the user confirmed

DESIGN DECISION: Audit logs are append-only. We never modify entries;
the persisted trail is only capped to its most recent events.
"""

from datetime import datetime
from enum import Enum
from typing import Any, Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, Field


class AuditEventType(str, Enum):
    """Types of events we audit."""
    # Transactions
    TRANSACTION_ADDED = "transaction_added"
    TRANSACTION_DELETED = "transaction_deleted"
    COMMENT_UPDATED = "comment_updated"
    TRANSACTIONS_CLEARED = "transactions_cleared"

    # Users
    USER_CREATED = "user_created"
    USER_UPDATED = "user_updated"
    USER_DELETED = "user_deleted"
    USERS_RESET = "users_reset"
    DELETION_BLOCKED = "deletion_blocked"

    # CSV
    CSV_IMPORTED = "csv_imported"
    CSV_IMPORT_REJECTED = "csv_import_rejected"
    CSV_EXPORTED = "csv_exported"

    # Rates and conversion
    RATES_FETCHED = "rates_fetched"
    RATES_CACHE_HIT = "rates_cache_hit"
    RATE_CACHE_CLEARED = "rate_cache_cleared"
    CONVERSION_COMPLETED = "conversion_completed"
    INPUT_VALIDATION_FAILED = "input_validation_failed"

    # Persistence
    STORAGE_CORRUPTED = "storage_corrupted"
    SAVE_FAILED = "save_failed"

    # System events
    EXTERNAL_SERVICE_ERROR = "external_service_error"


class AuditSeverity(str, Enum):
    """Severity level for audit events."""
    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


class AuditEvent(BaseModel):
    """
    A single audit event.

    This is the core unit of our audit trail.
    Every ledger write creates one of these.
    """

    # Identity
    event_id: UUID = Field(
        default_factory=uuid4,
        description="Unique event identifier"
    )
    timestamp: datetime = Field(
        default_factory=datetime.utcnow,
        description="When the event occurred (UTC)"
    )

    # Event classification
    event_type: AuditEventType = Field(
        ...,
        description="Type of event"
    )
    severity: AuditSeverity = Field(
        default=AuditSeverity.INFO,
        description="Event severity"
    )

    # Context - what entity is this about?
    entity_type: Optional[str] = Field(
        default=None,
        description="Type of entity (e.g., 'transaction', 'user', 'rates')"
    )
    entity_id: Optional[str] = Field(
        default=None,
        description="ID of the entity this event relates to"
    )

    # Correlation - for tracking related events
    correlation_id: Optional[UUID] = Field(
        default=None,
        description="ID to correlate related events (e.g., all events of one conversion)"
    )

    description: str = Field(
        ...,
        max_length=500,
        description="Human-readable description of what happened"
    )

    details: dict[str, Any] = Field(
        default_factory=dict,
        description="Additional event-specific data"
    )

    # Error information (if applicable)
    error_message: Optional[str] = None

    is_user_action: bool = Field(
        default=False,
        description="Was this triggered by a user action?"
    )

    def to_log_dict(self) -> dict:
        """
        Convert to a dictionary suitable for structured logging
        and for the persisted audit trail (JSON-serializable).
        """
        return {
            "event_id": str(self.event_id),
            "timestamp": self.timestamp.isoformat(),
            "event_type": self.event_type.value,
            "severity": self.severity.value,
            "entity_type": self.entity_type,
            "entity_id": self.entity_id,
            "correlation_id": str(self.correlation_id) if self.correlation_id else None,
            "description": self.description,
            "details": self.details,
            "error_message": self.error_message,
            "is_user_action": self.is_user_action,
        }


class AuditEventBuilder:
    """
    Helper class to build audit events with common patterns.

    Usage:
        event = AuditEventBuilder.transaction_added(tx_id, user_id, "287.50")
        event = AuditEventBuilder.user_deleted(user_id, removed_transactions=3)
    """

    @staticmethod
    def transaction_added(
        transaction_id: str,
        user_id: str,
        converted_gel: str,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.TRANSACTION_ADDED,
            entity_type="transaction",
            entity_id=transaction_id,
            correlation_id=correlation_id,
            description=f"Transaction added for {user_id}: {converted_gel} GEL",
            details={
                "user_id": user_id,
                "converted_gel": converted_gel,
            },
            is_user_action=True,
        )

    @staticmethod
    def transaction_deleted(transaction_id: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.TRANSACTION_DELETED,
            entity_type="transaction",
            entity_id=transaction_id,
            description="Transaction deleted",
            is_user_action=True,
        )

    @staticmethod
    def comment_updated(transaction_id: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.COMMENT_UPDATED,
            entity_type="transaction",
            entity_id=transaction_id,
            description="Transaction comment updated",
            is_user_action=True,
        )

    @staticmethod
    def transactions_cleared(count: int) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.TRANSACTIONS_CLEARED,
            severity=AuditSeverity.WARNING,
            entity_type="transaction",
            description=f"All transactions cleared ({count} removed)",
            details={"removed": count},
            is_user_action=True,
        )

    @staticmethod
    def user_created(user_id: str, name: str, source: str = "manual") -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.USER_CREATED,
            entity_type="user",
            entity_id=user_id,
            description=f"User created: {name}",
            details={
                "name": name,
                "source": source,
            },
            is_user_action=source == "manual",
        )

    @staticmethod
    def user_updated(user_id: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.USER_UPDATED,
            entity_type="user",
            entity_id=user_id,
            description="User details updated",
            is_user_action=True,
        )

    @staticmethod
    def user_deleted(user_id: str, removed_transactions: int) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.USER_DELETED,
            severity=AuditSeverity.WARNING,
            entity_type="user",
            entity_id=user_id,
            description=(
                f"User deleted with {removed_transactions} transaction(s)"
            ),
            details={"removed_transactions": removed_transactions},
            is_user_action=True,
        )

    @staticmethod
    def users_reset(removed_users: int, removed_transactions: int) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.USERS_RESET,
            severity=AuditSeverity.WARNING,
            entity_type="user",
            description="All users and transactions reset to defaults",
            details={
                "removed_users": removed_users,
                "removed_transactions": removed_transactions,
            },
            is_user_action=True,
        )

    @staticmethod
    def deletion_blocked(user_id: str, reason: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.DELETION_BLOCKED,
            severity=AuditSeverity.WARNING,
            entity_type="user",
            entity_id=user_id,
            description=f"User deletion blocked: {reason}",
            details={"reason": reason},
            is_user_action=True,
        )

    @staticmethod
    def csv_imported(
        imported: int,
        skipped_duplicates: int,
        created_users: int,
        invalid_rows: int,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.CSV_IMPORTED,
            entity_type="csv",
            description=(
                f"CSV imported: {imported} added, "
                f"{skipped_duplicates} duplicates skipped"
            ),
            details={
                "imported": imported,
                "skipped_duplicates": skipped_duplicates,
                "created_users": created_users,
                "invalid_rows": invalid_rows,
            },
            is_user_action=True,
        )

    @staticmethod
    def csv_import_rejected(reason: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.CSV_IMPORT_REJECTED,
            severity=AuditSeverity.WARNING,
            entity_type="csv",
            description="CSV import rejected",
            error_message=reason,
            is_user_action=True,
        )

    @staticmethod
    def csv_exported(row_count: int) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.CSV_EXPORTED,
            entity_type="csv",
            description=f"CSV exported with {row_count} row(s)",
            details={"rows": row_count},
            is_user_action=True,
        )

    @staticmethod
    def rates_fetched(
        rate_date: str,
        currency_count: int,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.RATES_FETCHED,
            entity_type="rates",
            entity_id=rate_date,
            correlation_id=correlation_id,
            description=f"Fetched {currency_count} rates for {rate_date}",
            details={"currency_count": currency_count},
        )

    @staticmethod
    def rates_cache_hit(
        rate_date: str,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.RATES_CACHE_HIT,
            severity=AuditSeverity.DEBUG,
            entity_type="rates",
            entity_id=rate_date,
            correlation_id=correlation_id,
            description=f"Using cached rates for {rate_date}",
        )

    @staticmethod
    def rate_cache_cleared(removed: int) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.RATE_CACHE_CLEARED,
            entity_type="rates",
            description=f"Rate cache cleared ({removed} day(s))",
            details={"removed": removed},
            is_user_action=True,
        )

    @staticmethod
    def conversion_completed(
        currency_code: str,
        amount: float,
        converted_gel: float,
        recorded: bool,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.CONVERSION_COMPLETED,
            entity_type="conversion",
            correlation_id=correlation_id,
            description=f"Converted {amount} {currency_code} to {converted_gel} GEL",
            details={
                "currency_code": currency_code,
                "amount": amount,
                "converted_gel": converted_gel,
                "recorded": recorded,
            },
            is_user_action=True,
        )

    @staticmethod
    def input_validation_failed(
        issues: list[dict],
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.INPUT_VALIDATION_FAILED,
            severity=AuditSeverity.WARNING,
            entity_type="conversion",
            correlation_id=correlation_id,
            description=f"Conversion input rejected with {len(issues)} issue(s)",
            details={"issues": issues},
        )

    @staticmethod
    def storage_corrupted(key: str, error_message: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.STORAGE_CORRUPTED,
            severity=AuditSeverity.WARNING,
            entity_type="storage",
            entity_id=key,
            description=f"Stored '{key}' is corrupted, resetting to defaults",
            error_message=error_message,
        )

    @staticmethod
    def save_failed(key: str, error_message: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SAVE_FAILED,
            severity=AuditSeverity.ERROR,
            entity_type="storage",
            entity_id=key,
            description=f"Failed to save '{key}'",
            error_message=error_message,
        )

    @staticmethod
    def external_service_error(
        service: str,
        error_message: str,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.EXTERNAL_SERVICE_ERROR,
            severity=AuditSeverity.ERROR,
            description=f"External service error: {service}",
            error_message=error_message,
            details={
                "service": service,
            },
            correlation_id=correlation_id,
        )
