"""
Core Data Models for GEL Ledger

These models define the schemas for all data flowing through the ledger.
They are designed to:
1. Mirror the persisted JSON records (camelCase keys via aliases)
2. Keep the rate snapshot taken at conversion time
3. Be serializable for storage, CSV export and logging

DESIGN DECISION: The models only enforce types. Range checks (year
bounds, maximum amount, currency-code shape) live in the validation
package so that persisted records can be screened with the same
predicates before they are turned into models.
"""

from datetime import date, datetime, timezone
from enum import Enum
from typing import Optional
from uuid import uuid4

from pydantic import BaseModel, ConfigDict, Field

from gel_ledger.config import get_settings


# =============================================================================
# ENUMS - Finite set of valid values
# =============================================================================

class SortColumn(str, Enum):
    """Columns the transaction table can be sorted by."""
    DATE = "date"
    USER = "user"
    CURRENCY = "currency"
    AMOUNT = "amount"
    GEL = "gel"
    YTD = "ytd"


class SortDirection(str, Enum):
    """Sort direction for the transaction table."""
    ASC = "asc"
    DESC = "desc"


class DeletionOutcome(str, Enum):
    """
    Result of a user deletion request.

    Blocked outcomes are referential errors: they are refused outright,
    whatever the confirmation gate would have answered.
    """
    DELETED = "deleted"
    NOT_FOUND = "not_found"
    CANCELLED = "cancelled"                        # Confirmation declined
    BLOCKED_DEFAULT_USER = "blocked_default_user"
    BLOCKED_LAST_USER = "blocked_last_user"


# =============================================================================
# LEDGER RECORDS
# =============================================================================

class User(BaseModel):
    """
    A person transactions are recorded for.

    The ID is created once and never changes.
    """
    model_config = ConfigDict(populate_by_name=True, str_strip_whitespace=True)

    id: str = Field(
        ...,
        description="Stable unique user ID"
    )
    name: str = Field(
        ...,
        description="Display name"
    )
    taxpayer_id: str = Field(
        default="",
        alias="taxpayerId",
        description="Free-form taxpayer identification number"
    )

    def to_storage_dict(self) -> dict:
        return self.model_dump(by_alias=True, mode="json")


class Currency(BaseModel):
    """
    One currency as published by the rate source for a given date.

    Rates are quoted per `quantity` units of the foreign currency
    (e.g. JPY is quoted per 100 yen), never assume quantity == 1.
    """
    model_config = ConfigDict(populate_by_name=True)

    code: str
    name: str = ""
    rate: float
    quantity: float = Field(
        default=1.0,
        gt=0,
        description="Number of foreign units the rate is quoted for"
    )
    rate_formatted: Optional[str] = Field(
        default=None,
        alias="rateFormated",
        description="Rate as formatted by the publisher"
    )


class Transaction(BaseModel):
    """
    A recorded conversion.

    CRITICAL: `converted_gel`, `rate` and `quantity` are a snapshot taken
    when the conversion was made. They are never recomputed from live rates.

    `timestamp` is the creation instant (ISO string). It breaks ties
    between transactions on the same date and identifies the same
    logical event across CSV imports.
    """
    model_config = ConfigDict(populate_by_name=True)

    id: str = Field(
        ...,
        description="Unique transaction ID, never reused"
    )
    user_id: str = Field(
        ...,
        alias="userId",
        description="Owner of the transaction"
    )
    value_date: date = Field(
        ...,
        alias="date",
        description="Valuation date of the conversion"
    )
    currency_code: str = Field(
        ...,
        alias="currencyCode",
    )
    currency_name: str = Field(
        default="",
        alias="currencyName",
    )
    rate: Optional[float] = None
    quantity: Optional[float] = None
    amount: float = Field(
        ...,
        description="Amount in the source currency"
    )
    converted_gel: float = Field(
        ...,
        alias="convertedGEL",
        description="Amount in the local currency, computed once"
    )
    comment: str = ""
    timestamp: str = Field(
        ...,
        description="Creation instant; unique across the ledger"
    )

    @property
    def year(self) -> int:
        return self.value_date.year

    def to_storage_dict(self) -> dict:
        return self.model_dump(by_alias=True, mode="json")


# =============================================================================
# FILTER / SORT STATE
# =============================================================================

ALL = "all"


class FilterSortState(BaseModel):
    """
    Filter and sort selection for the transaction table.

    Owned by the rendering layer for the length of a session and passed
    explicitly to the filter/sort functions. Never persisted.
    """

    user_id: str = ALL
    currency_code: str = ALL
    date_from: Optional[date] = None
    date_to: Optional[date] = None
    sort_column: SortColumn = SortColumn.DATE
    sort_direction: SortDirection = SortDirection.DESC

    def toggle_sort(self, column: SortColumn) -> 'FilterSortState':
        """
        Return the state after clicking a column header.

        The active column flips direction; a new column starts descending.
        """
        if column == self.sort_column:
            direction = (
                SortDirection.ASC
                if self.sort_direction == SortDirection.DESC
                else SortDirection.DESC
            )
        else:
            direction = SortDirection.DESC
        return self.model_copy(
            update={"sort_column": column, "sort_direction": direction}
        )


# =============================================================================
# OPERATION RESULTS
# =============================================================================

class ImportResult(BaseModel):
    """Counters reported by a CSV import."""

    imported: int = Field(default=0, ge=0)
    skipped_duplicates: int = Field(default=0, ge=0)
    created_users: int = Field(default=0, ge=0)
    invalid_rows: int = Field(
        default=0,
        ge=0,
        description="Rows skipped because they failed row validation"
    )


class ConversionResult(BaseModel):
    """Outcome of a conversion, recorded or not."""

    value_date: date
    amount: float
    currency: Currency
    converted_gel: float
    formatted: str = Field(
        ...,
        description="Converted value formatted for display"
    )
    transaction: Optional[Transaction] = Field(
        default=None,
        description="The stored transaction, when the conversion was recorded"
    )


# =============================================================================
# FACTORIES
# =============================================================================

def generate_transaction_id() -> str:
    """Generate a unique transaction ID."""
    return uuid4().hex


def generate_user_id() -> str:
    """Generate a unique user ID (always prefixed with "user_")."""
    return f"user_{uuid4().hex[:16]}"


def new_timestamp() -> str:
    """Current UTC instant as an ISO string with microseconds."""
    return datetime.now(timezone.utc).isoformat(timespec="microseconds")


def create_default_user() -> User:
    """Build a fresh default user; a new object on every call."""
    settings = get_settings().ledger
    return User(
        id=settings.default_user_id,
        name=settings.default_user_name,
        taxpayer_id="",
    )


def build_user_lookup(users: list[User]) -> dict[str, User]:
    """Index users by ID."""
    return {user.id: user for user in users}
