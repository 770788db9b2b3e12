"""
Audit Logger

DESIGN DECISION: Every change to the ledger is logged.
This provides:
1. Complete traceability of ledger writes
2. Debugging capability when storage or the rate source fails
3. A history the user can inspect from the app

The audit logger:
- Gracefully handles failures (a failed audit write never breaks the
  ledger operation that triggered it)
- Supports correlation IDs to trace related events
"""

from typing import Optional
from uuid import UUID, uuid4

import structlog

from gel_ledger.config import get_settings
from gel_ledger.models.audit import AuditEvent, AuditEventBuilder
from gel_ledger.services.storage import KeyValueStorageInterface, StorageError


# Configure structlog for local logging
structlog.configure(
    processors=[
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
        structlog.processors.JSONRenderer()
    ],
    wrapper_class=structlog.stdlib.BoundLogger,
    context_class=dict,
    logger_factory=structlog.stdlib.LoggerFactory(),
    cache_logger_on_first_use=True,
)


class AuditLogger:
    """
    Central audit logging service.

    Logs events both to:
    1. Structured local log (for debugging)
    2. The key-value store (capped trail shown in the app), when given one
    """

    def __init__(
        self,
        storage: Optional[KeyValueStorageInterface] = None,
    ):
        """
        Initialize audit logger.

        Args:
            storage: Storage backend for the persisted trail.
                    If None, only logs locally.
        """
        self._storage = storage
        self._settings = get_settings().storage
        self._logger = structlog.get_logger("gel_ledger.audit")

    def log(self, event: AuditEvent) -> bool:
        """
        Log an audit event.

        Always logs locally. Persists to storage if available.

        Returns True if storage write succeeded (or no storage configured).
        """
        log_dict = event.to_log_dict()

        if event.severity.value in ("error", "critical"):
            self._logger.error("audit_event", **log_dict)
        elif event.severity.value == "warning":
            self._logger.warning("audit_event", **log_dict)
        elif event.severity.value == "debug":
            self._logger.debug("audit_event", **log_dict)
        else:
            self._logger.info("audit_event", **log_dict)

        if self._storage is None or self._settings.max_audit_entries == 0:
            return True

        key = self._settings.audit_log_key
        try:
            trail = self._storage.get(key)
            if not isinstance(trail, list):
                trail = []
            trail.append(log_dict)
            self._storage.set(key, trail[-self._settings.max_audit_entries:])
            return True
        except StorageError as e:
            # Log failure but don't raise
            self._logger.error(
                "audit_storage_failed",
                error=str(e),
                event_id=log_dict["event_id"],
            )
            return False

    def recent_events(self, limit: int = 50) -> list[dict]:
        """Most recent persisted events, newest first."""
        if self._storage is None:
            return []
        try:
            trail = self._storage.get(self._settings.audit_log_key)
        except StorageError as e:
            self._logger.warning("audit_trail_unreadable", error=str(e))
            return []
        if not isinstance(trail, list):
            return []
        return list(reversed(trail[-limit:]))

    def log_save_failed(self, key: str, error: Exception) -> None:
        """Log a failed ledger write."""
        self.log(AuditEventBuilder.save_failed(key=key, error_message=str(error)))

    def log_storage_corrupted(self, key: str, error_message: str) -> None:
        """Log that a stored collection was unreadable and got reset."""
        self.log(AuditEventBuilder.storage_corrupted(key=key, error_message=error_message))

    def log_external_service_error(
        self,
        service: str,
        error_message: str,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        """Log external service error."""
        event = AuditEventBuilder.external_service_error(
            service=service,
            error_message=error_message,
            correlation_id=correlation_id,
        )
        self.log(event)


def create_correlation_id() -> UUID:
    """
    Create a new correlation ID for tracking related events.

    Use this at the start of a new user action (e.g., a conversion).
    Pass it through all subsequent operations.
    """
    return uuid4()
