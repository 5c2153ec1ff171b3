"""
Expense Book

The business's own spending. Expenses are kept apart from customer
balances: nothing here reads or writes the ledger.
"""

from datetime import date
from typing import Optional

from ledgerbook.audit import AuditLogger
from ledgerbook.ledger.transactions import Amount
from ledgerbook.models import AuditEventBuilder, Expense
from ledgerbook.services.storage import Collection, CollectionStore


class ExpenseBook:
    """Owns the `expenses` collection."""
    
    def __init__(
        self,
        store: CollectionStore,
        audit_logger: Optional[AuditLogger] = None,
    ):
        self._store = store
        self._audit_logger = audit_logger or AuditLogger()
    
    def _load(self) -> list[Expense]:
        return self._store.load(Collection.EXPENSES, Expense)
    
    def add_expense(
        self,
        user_id: str,
        category: str,
        amount: Amount,
        description: str,
        expense_date: date,
    ) -> Expense:
        expense = Expense(
            user_id=user_id,
            category=category,
            amount=amount,
            description=description,
            expense_date=expense_date,
        )
        expenses = self._load()
        expenses.append(expense)
        self._store.save(Collection.EXPENSES, expenses)
        
        self._audit_logger.log(
            AuditEventBuilder.expense_added(
                expense_id=expense.id,
                user_id=user_id,
                category=expense.category,
                amount=str(expense.amount),
            )
        )
        return expense
    
    def get_expense(self, expense_id: str) -> Optional[Expense]:
        for expense in self._load():
            if expense.id == expense_id:
                return expense
        return None
    
    def list_expenses(self, user_id: str) -> list[Expense]:
        """A user's expenses, newest first."""
        expenses = [e for e in self._load() if e.user_id == user_id]
        return sorted(expenses, key=lambda e: e.expense_date, reverse=True)
    
    def delete_expense(self, expense_id: str) -> None:
        expenses = self._load()
        remaining = [e for e in expenses if e.id != expense_id]
        if len(remaining) == len(expenses):
            return
        
        self._store.save(Collection.EXPENSES, remaining)
        self._audit_logger.log(AuditEventBuilder.expense_deleted(expense_id=expense_id))
