"""
Sale Bill Models

A sale bill is an itemized invoice. Its totals are derived from the line
items once, at creation, and stored on the bill. The outstanding due is
mirrored in the ledger by a linked `gave` transaction whose id the bill
keeps in `transaction_id`.
"""

from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import Optional

from pydantic import Field

from ledgerbook.models.entities import (
    LedgerRecord,
    Money,
    PaymentMethod,
    new_id,
    utc_now,
)


class RoundOffMode(str, Enum):
    """
    How a bill total is rounded to a whole currency unit.
    
    Round-off is never applied unless the caller asks for it.
    """
    NONE = "none"
    NEAREST = "nearest"
    UP = "up"
    DOWN = "down"
    MANUAL = "manual"  # caller supplies the signed delta


class SaleItem(LedgerRecord):
    """
    One line of a sale bill.
    
    No range validation happens here: degenerate lines (blank name,
    non-positive quantity or price) are dropped by the engine, not
    rejected by the model.
    """
    name: str = ""
    quantity: int = 0
    price: Money = Decimal("0")
    gst_rate: Optional[Money] = Field(
        default=None,
        alias="gst",
        description="Line GST rate as a percentage; absent means 0"
    )
    
    @property
    def line_total(self) -> Decimal:
        return self.quantity * self.price
    
    @property
    def rate(self) -> Decimal:
        return self.gst_rate if self.gst_rate is not None else Decimal("0")
    
    @property
    def gst_amount(self) -> Decimal:
        return self.line_total * self.rate / Decimal("100")
    
    @property
    def is_billable(self) -> bool:
        return bool(self.name) and self.quantity > 0 and self.price > 0


class BillTotals(LedgerRecord):
    """Derived totals of a list of sale items."""
    subtotal: Money = Decimal("0")
    gst_amount: Money = Decimal("0")
    total: Money = Decimal("0")
    round_off: Money = Decimal("0")
    final_total: Money = Decimal("0")
    
    @property
    def cgst(self) -> Decimal:
        """Central half of the GST (reporting convention)."""
        return self.gst_amount / 2
    
    @property
    def sgst(self) -> Decimal:
        """State half of the GST (reporting convention)."""
        return self.gst_amount / 2


class SaleBill(BillTotals):
    """
    A persisted sale invoice.
    
    INVARIANT: when `paid < final_total` a linked `gave` transaction for
    `final_total - paid` exists and `transaction_id` points at it;
    otherwise `transaction_id` is None.
    """
    id: str = Field(default_factory=new_id)
    invoice_number: str
    customer_id: str
    user_id: str
    items: list[SaleItem] = Field(default_factory=list)
    paid: Money = Decimal("0")
    bill_date: date = Field(..., alias="date")
    created_at: datetime = Field(default_factory=utc_now)
    transaction_id: Optional[str] = None
    payment_method: Optional[PaymentMethod] = None
    
    @property
    def due(self) -> Decimal:
        """Unpaid remainder; never negative."""
        return max(self.final_total - self.paid, Decimal("0"))
    
    @property
    def is_fully_paid(self) -> bool:
        return self.paid >= self.final_total
