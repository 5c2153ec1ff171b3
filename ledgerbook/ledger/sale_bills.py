"""
Sale Bill Engine

Computes invoice totals from line items, assigns invoice numbers, and keeps
each bill's linked ledger entry in step with the bill's outstanding due.

INVARIANT (holds after every public method returns):
    paid <  final_total  ->  a linked `gave` entry for final_total - paid
                             exists and bill.transaction_id points at it
    paid >= final_total  ->  bill.transaction_id is None

Every method that touches both the bill and its linked entry runs inside a
single unit of work, so the two collections are flushed together.

DESIGN DECISIONS:
- Degenerate line items (blank name, non-positive quantity or price) are
  dropped, never rejected as a whole-bill error.
- Round-off is only applied when the caller asks for it.
- Payment edits recompute the due against final_total, so a round-off
  chosen at creation survives later edits.
- Invoice numbers use the current calendar month as a cosmetic prefix. The
  sequence is per user and never resets; it continues from the highest
  sequence already issued, so deleting a bill cannot cause a duplicate.
"""

import re
from datetime import date
from decimal import ROUND_CEILING, ROUND_FLOOR, ROUND_HALF_UP, Decimal
from typing import Callable, Iterable, Optional, Union

import structlog
from pydantic import ValidationError

from ledgerbook.audit import AuditLogger
from ledgerbook.ledger.transactions import Amount, TransactionLedger
from ledgerbook.models import (
    AuditEventBuilder,
    BillTotals,
    PaymentMethod,
    RoundOffMode,
    SaleBill,
    SaleItem,
    TransactionKind,
)
from ledgerbook.services.storage import Collection, CollectionStore


ZERO = Decimal("0")

logger = structlog.get_logger(__name__)


def to_decimal(value: Amount) -> Decimal:
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


def compute_totals(
    items: Iterable[SaleItem],
    round_off: RoundOffMode = RoundOffMode.NONE,
    round_off_amount: Optional[Amount] = None,
) -> BillTotals:
    """
    Derive bill totals from line items.
    
    subtotal    = sum(quantity * price)
    gst_amount  = sum(quantity * price * rate / 100)
    total       = subtotal + gst_amount
    round_off   = signed delta to a whole unit, 0 unless requested
    final_total = total + round_off
    
    Args:
        items: Line items; every item passed in is counted
        round_off: Which rounding the caller selected
        round_off_amount: The signed delta to use with RoundOffMode.MANUAL
    """
    items = list(items)
    subtotal = sum((item.line_total for item in items), ZERO)
    gst_amount = sum((item.gst_amount for item in items), ZERO)
    total = subtotal + gst_amount
    
    if round_off == RoundOffMode.NEAREST:
        delta = total.to_integral_value(rounding=ROUND_HALF_UP) - total
    elif round_off == RoundOffMode.UP:
        delta = total.to_integral_value(rounding=ROUND_CEILING) - total
    elif round_off == RoundOffMode.DOWN:
        delta = total.to_integral_value(rounding=ROUND_FLOOR) - total
    elif round_off == RoundOffMode.MANUAL and round_off_amount is not None:
        delta = to_decimal(round_off_amount)
    else:
        delta = ZERO
    
    return BillTotals(
        subtotal=subtotal,
        gst_amount=gst_amount,
        total=total,
        round_off=delta,
        final_total=total + delta,
    )


def billable_items(items: Iterable[Union[SaleItem, dict]]) -> list[SaleItem]:
    """Coerce raw line items and drop the degenerate ones."""
    kept = []
    for item in items:
        if not isinstance(item, SaleItem):
            try:
                item = SaleItem.model_validate(item)
            except ValidationError as e:
                logger.warning("sale_item_dropped", errors=e.error_count())
                continue
        if item.is_billable:
            kept.append(item)
    return kept


class SaleBillEngine:
    """
    Owns the `sale_bills` collection and the linked entries in the ledger.
    """
    
    def __init__(
        self,
        store: CollectionStore,
        ledger: TransactionLedger,
        audit_logger: Optional[AuditLogger] = None,
        invoice_prefix: str = "INV",
        today: Callable[[], date] = date.today,
    ):
        self._store = store
        self._ledger = ledger
        self._audit_logger = audit_logger or AuditLogger()
        self._invoice_prefix = invoice_prefix
        self._today = today
        self._sequence_pattern = re.compile(
            rf"^{re.escape(invoice_prefix)}\d{{4}}(\d+)$"
        )
    
    def _load(self) -> list[SaleBill]:
        return self._store.load(Collection.SALE_BILLS, SaleBill)
    
    def _save(self, bills: list[SaleBill]) -> None:
        self._store.save(Collection.SALE_BILLS, bills)
    
    # -------------------------------------------------------------------------
    # Invoice numbers
    # -------------------------------------------------------------------------
    
    def _next_invoice_number(self, bills: list[SaleBill], user_id: str) -> str:
        user_bills = [b for b in bills if b.user_id == user_id]
        highest = 0
        for bill in user_bills:
            match = self._sequence_pattern.match(bill.invoice_number)
            if match:
                highest = max(highest, int(match.group(1)))
        sequence = max(len(user_bills), highest) + 1
        
        today = self._today()
        return (
            f"{self._invoice_prefix}"
            f"{today.year % 100:02d}{today.month:02d}{sequence:04d}"
        )
    
    def next_invoice_number(self, user_id: str) -> str:
        """Invoice number the user's next bill would get, e.g. INV24010001."""
        return self._next_invoice_number(self._load(), user_id)
    
    # -------------------------------------------------------------------------
    # Linked entry
    # -------------------------------------------------------------------------
    
    def _open_linked_transaction(self, bill: SaleBill, due: Decimal) -> str:
        transaction = self._ledger.add_transaction(
            customer_id=bill.customer_id,
            user_id=bill.user_id,
            amount=due,
            kind=TransactionKind.GAVE,
            note=f"Invoice {bill.invoice_number}",
            entry_date=bill.bill_date,
        )
        self._audit_logger.log(
            AuditEventBuilder.linked_transaction_synced(
                bill_id=bill.id,
                action="created",
                transaction_id=transaction.id,
                due=str(due),
            )
        )
        return transaction.id
    
    # -------------------------------------------------------------------------
    # Operations
    # -------------------------------------------------------------------------
    
    def add_sale_bill(
        self,
        customer_id: str,
        user_id: str,
        items: Iterable[Union[SaleItem, dict]],
        paid: Amount,
        bill_date: date,
        round_off: RoundOffMode = RoundOffMode.NONE,
        round_off_amount: Optional[Amount] = None,
        payment_method: Optional[PaymentMethod] = None,
    ) -> SaleBill:
        """
        Create a bill and, if it is not fully paid, its linked entry.
        
        Steps:
        1. Drop degenerate items
        2. Compute totals
        3. Assign the invoice number
        4. If paid < final_total, add a `gave` entry for the due
        5. Persist the bill
        """
        kept = billable_items(items)
        totals = compute_totals(kept, round_off, round_off_amount)
        paid = to_decimal(paid)
        
        with self._store.unit_of_work():
            bills = self._load()
            bill = SaleBill(
                invoice_number=self._next_invoice_number(bills, user_id),
                customer_id=customer_id,
                user_id=user_id,
                items=kept,
                paid=paid,
                bill_date=bill_date,
                payment_method=payment_method,
                **totals.model_dump(),
            )
            
            if paid < bill.final_total:
                bill.transaction_id = self._open_linked_transaction(
                    bill, bill.final_total - paid
                )
            
            bills.append(bill)
            self._save(bills)
        
        self._audit_logger.log(
            AuditEventBuilder.sale_bill_created(
                bill_id=bill.id,
                user_id=user_id,
                invoice_number=bill.invoice_number,
                final_total=str(bill.final_total),
                paid=str(paid),
                transaction_id=bill.transaction_id,
            )
        )
        return bill
    
    def update_sale_bill_paid(self, bill_id: str, paid: Amount) -> Optional[SaleBill]:
        """
        Record a new paid amount and resynchronise the linked entry.
        
        - linked entry exists, due remains: its amount becomes the new due
        - linked entry exists, nothing due: it is deleted, reference cleared
        - no linked entry, something due: a new one is created
        
        Returns:
            The updated bill, or None if no bill has this id
        """
        paid = to_decimal(paid)
        
        with self._store.unit_of_work():
            bills = self._load()
            bill = next((b for b in bills if b.id == bill_id), None)
            if bill is None:
                return None
            
            old_paid = bill.paid
            bill.paid = paid
            due = bill.final_total - paid
            
            if bill.transaction_id:
                if due > ZERO:
                    updated = self._ledger.update_transaction(
                        bill.transaction_id, amount=due
                    )
                    if updated is None:
                        # The linked entry was deleted behind the bill's back.
                        bill.transaction_id = self._open_linked_transaction(bill, due)
                    else:
                        self._audit_logger.log(
                            AuditEventBuilder.linked_transaction_synced(
                                bill_id=bill.id,
                                action="updated",
                                transaction_id=bill.transaction_id,
                                due=str(due),
                            )
                        )
                else:
                    self._ledger.delete_transaction(bill.transaction_id)
                    self._audit_logger.log(
                        AuditEventBuilder.linked_transaction_synced(
                            bill_id=bill.id,
                            action="removed",
                            transaction_id=bill.transaction_id,
                            due=str(due),
                        )
                    )
                    bill.transaction_id = None
            elif due > ZERO:
                bill.transaction_id = self._open_linked_transaction(bill, due)
            
            self._save(bills)
        
        self._audit_logger.log(
            AuditEventBuilder.sale_bill_payment_updated(
                bill_id=bill_id,
                old_paid=str(old_paid),
                new_paid=str(paid),
            )
        )
        return bill
    
    def delete_sale_bill(self, bill_id: str) -> None:
        """Delete a bill together with its linked entry. Unknown ids are a no-op."""
        with self._store.unit_of_work():
            bills = self._load()
            bill = next((b for b in bills if b.id == bill_id), None)
            if bill is None:
                return
            
            if bill.transaction_id:
                self._ledger.delete_transaction(bill.transaction_id)
            self._save([b for b in bills if b.id != bill_id])
        
        self._audit_logger.log(
            AuditEventBuilder.sale_bill_deleted(
                bill_id=bill_id,
                transaction_id=bill.transaction_id,
            )
        )
    
    # -------------------------------------------------------------------------
    # Queries
    # -------------------------------------------------------------------------
    
    def get_sale_bill(self, bill_id: str) -> Optional[SaleBill]:
        for bill in self._load():
            if bill.id == bill_id:
                return bill
        return None
    
    def list_by_customer(self, customer_id: str) -> list[SaleBill]:
        """A customer's bills, newest business date first."""
        bills = [b for b in self._load() if b.customer_id == customer_id]
        return sorted(bills, key=lambda b: b.bill_date, reverse=True)
    
    def list_by_user(self, user_id: str) -> list[SaleBill]:
        """Every bill the user owns, newest business date first."""
        bills = [b for b in self._load() if b.user_id == user_id]
        return sorted(bills, key=lambda b: b.bill_date, reverse=True)
