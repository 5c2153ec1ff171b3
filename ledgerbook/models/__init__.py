"""
Data Models Package

This package contains all Pydantic models used in Ledgerbook.
All data flowing through the ledger must conform to these schemas.
"""

from ledgerbook.models.entities import (
    Customer,
    Expense,
    InventoryItem,
    LedgerRecord,
    Money,
    PaymentMethod,
    Reminder,
    Transaction,
    TransactionKind,
    User,
    new_id,
    utc_now,
)
from ledgerbook.models.sale_bill import (
    BillTotals,
    RoundOffMode,
    SaleBill,
    SaleItem,
)
from ledgerbook.models.report import (
    BusinessSummary,
    CustomerBalance,
    GstBillRow,
    GstRateRow,
    GstReport,
    MonthlyFlow,
    PeriodSummary,
)
from ledgerbook.models.audit import (
    AuditEvent,
    AuditEventBuilder,
    AuditEventType,
    AuditSeverity,
)

__all__ = [
    # Entities
    "Customer",
    "Expense",
    "InventoryItem",
    "LedgerRecord",
    "Money",
    "PaymentMethod",
    "Reminder",
    "Transaction",
    "TransactionKind",
    "User",
    "new_id",
    "utc_now",
    # Sale bills
    "BillTotals",
    "RoundOffMode",
    "SaleBill",
    "SaleItem",
    # Reports
    "BusinessSummary",
    "CustomerBalance",
    "GstBillRow",
    "GstRateRow",
    "GstReport",
    "MonthlyFlow",
    "PeriodSummary",
    # Audit
    "AuditEvent",
    "AuditEventBuilder",
    "AuditEventType",
    "AuditSeverity",
]
