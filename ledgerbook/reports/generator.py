"""
Report Generation

DESIGN DECISION: Reports are DERIVED, never stored.
Every number here is recomputed from the ledger collections on each call,
so a report can never disagree with the balances it summarizes.

Reports read through the ledger components rather than the raw store, so
they see exactly what the rest of the application sees.
"""

from datetime import date
from decimal import Decimal
from typing import Optional

from ledgerbook.ledger import CustomerRegistry, SaleBillEngine, TransactionLedger
from ledgerbook.models import (
    BusinessSummary,
    CustomerBalance,
    GstBillRow,
    GstRateRow,
    GstReport,
    MonthlyFlow,
    PeriodSummary,
    TransactionKind,
)


ZERO = Decimal("0")


def _in_range(value: date, date_from: Optional[date], date_to: Optional[date]) -> bool:
    if date_from and value < date_from:
        return False
    if date_to and value > date_to:
        return False
    return True


def _last_months(today: date, count: int) -> list[tuple[int, int]]:
    """(year, month) pairs for `count` months ending with today's, oldest first."""
    months = []
    year, month = today.year, today.month
    for _ in range(count):
        months.append((year, month))
        month -= 1
        if month == 0:
            year, month = year - 1, 12
    return list(reversed(months))


class ReportGenerator:
    """
    Builds GST reports and dashboard summaries for one user's book.
    """
    
    def __init__(
        self,
        customers: CustomerRegistry,
        ledger: TransactionLedger,
        sale_bills: SaleBillEngine,
        top_customers_limit: int = 5,
        summary_months: int = 6,
    ):
        self._customers = customers
        self._ledger = ledger
        self._sale_bills = sale_bills
        self._top_customers_limit = top_customers_limit
        self._summary_months = summary_months
    
    def customer_balances(self, user_id: str) -> list[CustomerBalance]:
        """Every customer of the user with their balance, in creation order."""
        balances = self._ledger.balances_by_customer(user_id)
        return [
            CustomerBalance(
                customer_id=c.id,
                name=c.name,
                balance=balances.get(c.id, ZERO),
            )
            for c in self._customers.list_customers(user_id)
        ]
    
    def gst_report(self, user_id: str, date_from: date, date_to: date) -> GstReport:
        """
        GST collected on bills dated within [date_from, date_to].
        
        Totals use the bill-level numbers; the rate-wise breakdown is
        rebuilt from the line items. CGST and SGST are each half of GST.
        """
        names = {c.id: c.name for c in self._customers.list_customers(user_id)}
        bills = [
            b for b in self._sale_bills.list_by_user(user_id)
            if _in_range(b.bill_date, date_from, date_to)
        ]
        
        report = GstReport(date_from=date_from, date_to=date_to)
        by_rate: dict[Decimal, GstRateRow] = {}
        
        for bill in bills:
            report.total_taxable += bill.subtotal
            report.total_gst += bill.gst_amount
            report.total_invoice_value += bill.total
            report.bills.append(
                GstBillRow(
                    invoice_number=bill.invoice_number,
                    bill_date=bill.bill_date,
                    customer_name=names.get(bill.customer_id, ""),
                    taxable=bill.subtotal,
                    gst_amount=bill.gst_amount,
                    total=bill.total,
                )
            )
            
            for item in bill.items:
                row = by_rate.setdefault(item.rate, GstRateRow(rate=item.rate))
                row.taxable += item.line_total
                row.cgst += item.gst_amount / 2
                row.sgst += item.gst_amount / 2
                row.total_gst += item.gst_amount
        
        report.cgst = report.total_gst / 2
        report.sgst = report.total_gst / 2
        report.by_rate = [by_rate[rate] for rate in sorted(by_rate)]
        return report
    
    def business_summary(self, user_id: str, today: Optional[date] = None) -> BusinessSummary:
        """
        Headline numbers: receivable, payable, sales, GST, top customers and
        gave/got per month for the configured number of months.
        
        Receivable sums the positive balances, payable the negative ones.
        """
        today = today or date.today()
        balances = self.customer_balances(user_id)
        bills = self._sale_bills.list_by_user(user_id)
        transactions = self._ledger.list_by_user(user_id)
        
        monthly = [MonthlyFlow(year=y, month=m) for y, m in _last_months(today, self._summary_months)]
        slots = {(flow.year, flow.month): flow for flow in monthly}
        for t in transactions:
            flow = slots.get((t.entry_date.year, t.entry_date.month))
            if flow is None:
                continue
            if t.kind == TransactionKind.GAVE:
                flow.gave += t.amount
            else:
                flow.got += t.amount
        
        ranked = sorted(balances, key=lambda cb: abs(cb.balance), reverse=True)
        
        return BusinessSummary(
            total_receivable=sum((cb.balance for cb in balances if cb.balance > 0), ZERO),
            total_payable=sum((-cb.balance for cb in balances if cb.balance < 0), ZERO),
            total_sales=sum((b.total for b in bills), ZERO),
            total_gst=sum((b.gst_amount for b in bills), ZERO),
            top_customers=ranked[: self._top_customers_limit],
            monthly=monthly,
        )
    
    def period_summary(
        self,
        user_id: str,
        date_from: Optional[date] = None,
        date_to: Optional[date] = None,
    ) -> PeriodSummary:
        """Entries (newest first) and gave/got totals within an optional range."""
        transactions = [
            t for t in self._ledger.list_by_user(user_id)
            if _in_range(t.entry_date, date_from, date_to)
        ]
        return PeriodSummary(
            date_from=date_from,
            date_to=date_to,
            gave=sum((t.amount for t in transactions if t.kind == TransactionKind.GAVE), ZERO),
            got=sum((t.amount for t in transactions if t.kind == TransactionKind.GOT), ZERO),
            transactions=transactions,
        )
