"""
Ledger Package

The consistency engine: customers, ledger entries, sale bills with their
linked entries, reminders, expenses, stock and user accounts.
"""

from ledgerbook.ledger.accounts import UserAccounts, hash_password, verify_password
from ledgerbook.ledger.customers import CustomerRegistry
from ledgerbook.ledger.expenses import ExpenseBook
from ledgerbook.ledger.inventory import Inventory
from ledgerbook.ledger.reminders import ReminderStore
from ledgerbook.ledger.sale_bills import SaleBillEngine, billable_items, compute_totals
from ledgerbook.ledger.transactions import TransactionLedger

__all__ = [
    "CustomerRegistry",
    "ExpenseBook",
    "Inventory",
    "ReminderStore",
    "SaleBillEngine",
    "TransactionLedger",
    "UserAccounts",
    "billable_items",
    "compute_totals",
    "hash_password",
    "verify_password",
]
