"""
Data Models Package

This package contains all Pydantic models used in the GEL Ledger system.
All data flowing through the ledger must conform to these schemas.
"""

from gel_ledger.models.ledger import (
    ALL,
    ConversionResult,
    Currency,
    DeletionOutcome,
    FilterSortState,
    ImportResult,
    SortColumn,
    SortDirection,
    Transaction,
    User,
    build_user_lookup,
    create_default_user,
    generate_transaction_id,
    generate_user_id,
    new_timestamp,
)
from gel_ledger.models.validation import (
    ValidationIssue,
    ValidationResult,
)
from gel_ledger.models.audit import (
    AuditEvent,
    AuditEventBuilder,
    AuditEventType,
    AuditSeverity,
)

__all__ = [
    # Ledger models
    "ALL",
    "ConversionResult",
    "Currency",
    "DeletionOutcome",
    "FilterSortState",
    "ImportResult",
    "SortColumn",
    "SortDirection",
    "Transaction",
    "User",
    "build_user_lookup",
    "create_default_user",
    "generate_transaction_id",
    "generate_user_id",
    "new_timestamp",
    # Validation models
    "ValidationIssue",
    "ValidationResult",
    # Audit models
    "AuditEvent",
    "AuditEventBuilder",
    "AuditEventType",
    "AuditSeverity",
]
