"""
Core Data Models for Ledgerbook

These models define the records held in each persisted collection.
They are designed to:
1. Keep the stored JSON shape stable (camelCase keys, numeric amounts)
2. Load data written by older versions of the app without complaint
3. Be serializable for storage, backup and logging

DESIGN DECISION: Amounts are trusted as positive and carry no range
validation here. The sign of an entry lives in its kind, never in the
number, and the core degrades instead of rejecting input.
"""

from datetime import date, datetime, timezone
from decimal import Decimal
from enum import Enum
from typing import Annotated, Optional
from uuid import uuid4

from pydantic import BaseModel, ConfigDict, Field, PlainSerializer
from pydantic.alias_generators import to_camel


# Stored as a JSON number so existing collections keep their shape.
Money = Annotated[
    Decimal,
    PlainSerializer(lambda v: float(v), return_type=float, when_used="json"),
]


def new_id() -> str:
    """Generate an opaque record id."""
    return uuid4().hex


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


# =============================================================================
# ENUMS - Finite set of valid values
# =============================================================================

class TransactionKind(str, Enum):
    """
    Direction of a ledger entry, from the business's point of view.
    
    GAVE: the business extended credit (money owed to the business).
    GOT: the business received a payment.
    """
    GAVE = "gave"
    GOT = "got"


class PaymentMethod(str, Enum):
    """How a payment was settled."""
    CASH = "cash"
    GPAY = "gpay"
    CARD = "card"


# =============================================================================
# BASE RECORD
# =============================================================================

class LedgerRecord(BaseModel):
    """
    Base for every persisted record.
    
    Python attributes are snake_case; the stored JSON uses camelCase.
    Both spellings are accepted on input.
    """
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        str_strip_whitespace=True,
        extra="ignore",
    )
    
    def to_record(self) -> dict:
        """Convert to the dict shape written to storage."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


# =============================================================================
# ENTITIES
# =============================================================================

class User(LedgerRecord):
    """
    Business owner account.
    
    The business profile is display-only; nothing in the ledger depends on it.
    """
    id: str = Field(default_factory=new_id)
    email: str
    password_hash: str = Field(
        default="",
        description="Salted PBKDF2 hash, never the clear password"
    )
    password: Optional[str] = Field(
        default=None,
        description="Clear password written by older versions; replaced by a hash on next login"
    )
    business_name: str = ""
    phone: str = ""
    address: Optional[str] = None
    gst_number: Optional[str] = None


class Customer(LedgerRecord):
    """A party the business trades with. Owned by exactly one user."""
    id: str = Field(default_factory=new_id)
    user_id: str
    name: str
    phone: str = ""
    notes: str = ""
    created_at: datetime = Field(default_factory=utc_now)


class Transaction(LedgerRecord):
    """
    One signed ledger entry for a customer.
    
    `amount` is positive; `kind` carries the sign.
    """
    id: str = Field(default_factory=new_id)
    customer_id: str
    user_id: str
    amount: Money
    kind: TransactionKind = Field(..., alias="type")
    note: str = ""
    entry_date: date = Field(..., alias="date")
    created_at: datetime = Field(default_factory=utc_now)
    payment_method: Optional[PaymentMethod] = None
    
    @property
    def signed_amount(self) -> Decimal:
        """Contribution of this entry to the customer balance."""
        if self.kind == TransactionKind.GOT:
            return self.amount
        return -self.amount


class Reminder(LedgerRecord):
    """
    A scheduled payment reminder.
    
    Advisory only: reminders never affect balances, and `sent` is only
    ever flipped by an explicit user action.
    """
    id: str = Field(default_factory=new_id)
    customer_id: str
    user_id: str
    amount: Money
    due_date: date
    message: str = ""
    sent: bool = False
    created_at: datetime = Field(default_factory=utc_now)


class Expense(LedgerRecord):
    """
    Money the business spent on itself (rent, stock, travel).
    
    Expenses never touch customer balances.
    """
    id: str = Field(default_factory=new_id)
    user_id: str
    category: str
    amount: Money
    description: str = ""
    expense_date: date = Field(..., alias="date")
    created_at: datetime = Field(default_factory=utc_now)


class InventoryItem(LedgerRecord):
    """A stock line with its cost, selling price and low-stock threshold."""
    id: str = Field(default_factory=new_id)
    user_id: str
    name: str
    quantity: Money = Decimal("0")
    unit: str = ""
    cost_price: Money = Decimal("0")
    selling_price: Money = Decimal("0")
    low_stock_alert: Money = Field(
        default=Decimal("0"),
        description="Quantity at or below which the item counts as low on stock"
    )
    created_at: datetime = Field(default_factory=utc_now)
    
    @property
    def is_low_stock(self) -> bool:
        return self.quantity <= self.low_stock_alert
