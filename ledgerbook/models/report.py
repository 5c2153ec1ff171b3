"""
Report Models

Read-only results produced by the reports package. None of these are
persisted; they are recomputed from the collections on every call.
"""

import csv
import io
from datetime import date
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, Field

from ledgerbook.models.entities import Transaction


def _fmt(value: Decimal) -> str:
    return f"{value:.2f}"


class GstRateRow(BaseModel):
    """GST collected at one rate."""
    rate: Decimal
    taxable: Decimal = Decimal("0")
    cgst: Decimal = Decimal("0")
    sgst: Decimal = Decimal("0")
    total_gst: Decimal = Decimal("0")


class GstBillRow(BaseModel):
    """One bill as it appears in a GST report."""
    invoice_number: str
    bill_date: date
    customer_name: str
    taxable: Decimal
    gst_amount: Decimal
    total: Decimal


class GstReport(BaseModel):
    """
    GST summary for a period.
    
    CGST and SGST are each half of the total GST.
    """
    date_from: date
    date_to: date
    total_taxable: Decimal = Decimal("0")
    total_gst: Decimal = Decimal("0")
    cgst: Decimal = Decimal("0")
    sgst: Decimal = Decimal("0")
    total_invoice_value: Decimal = Decimal("0")
    by_rate: list[GstRateRow] = Field(default_factory=list)
    bills: list[GstBillRow] = Field(default_factory=list)
    
    def to_csv(self) -> str:
        """Render the report as CSV text."""
        buffer = io.StringIO()
        writer = csv.writer(buffer, lineterminator="\n")
        
        writer.writerow(["GST Report"])
        writer.writerow([
            "Period",
            f"{self.date_from:%d %b %Y} to {self.date_to:%d %b %Y}",
        ])
        writer.writerow([])
        writer.writerow(["Summary"])
        writer.writerow(["Total Taxable Value", _fmt(self.total_taxable)])
        writer.writerow(["Total CGST", _fmt(self.cgst)])
        writer.writerow(["Total SGST", _fmt(self.sgst)])
        writer.writerow(["Total GST", _fmt(self.total_gst)])
        writer.writerow(["Total Invoice Value", _fmt(self.total_invoice_value)])
        writer.writerow([])
        
        writer.writerow(["GST Rate-wise Breakdown"])
        writer.writerow(["GST Rate", "Taxable Value", "CGST", "SGST", "Total GST"])
        for row in self.by_rate:
            writer.writerow([
                f"{row.rate.normalize():f}%",
                _fmt(row.taxable),
                _fmt(row.cgst),
                _fmt(row.sgst),
                _fmt(row.total_gst),
            ])
        writer.writerow([])
        
        writer.writerow(["Detailed Bills"])
        writer.writerow(["Invoice", "Date", "Customer", "Taxable", "GST", "Total"])
        for bill in self.bills:
            writer.writerow([
                bill.invoice_number,
                bill.bill_date.isoformat(),
                bill.customer_name,
                _fmt(bill.taxable),
                _fmt(bill.gst_amount),
                _fmt(bill.total),
            ])
        
        return buffer.getvalue()


class CustomerBalance(BaseModel):
    """A customer paired with their derived balance."""
    customer_id: str
    name: str
    balance: Decimal


class MonthlyFlow(BaseModel):
    """Gave/got totals for one calendar month."""
    year: int
    month: int
    gave: Decimal = Decimal("0")
    got: Decimal = Decimal("0")
    
    @property
    def label(self) -> str:
        return date(self.year, self.month, 1).strftime("%b")


class BusinessSummary(BaseModel):
    """Headline numbers for the owner's dashboard."""
    total_receivable: Decimal = Decimal("0")
    total_payable: Decimal = Decimal("0")
    total_sales: Decimal = Decimal("0")
    total_gst: Decimal = Decimal("0")
    top_customers: list[CustomerBalance] = Field(default_factory=list)
    monthly: list[MonthlyFlow] = Field(default_factory=list)


class PeriodSummary(BaseModel):
    """Entries and gave/got totals for a date range."""
    date_from: Optional[date] = None
    date_to: Optional[date] = None
    gave: Decimal = Decimal("0")
    got: Decimal = Decimal("0")
    transactions: list[Transaction] = Field(default_factory=list)
    
    @property
    def net(self) -> Decimal:
        return self.got - self.gave
