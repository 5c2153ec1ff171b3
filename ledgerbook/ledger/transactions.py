"""
Transaction Ledger

CRUD over signed ledger entries and the derived customer balance.

Balance = sum(got) - sum(gave) over every entry of the customer,
including the entries that sale bills maintain for their dues.

All lookups fail softly: a missing id yields None, and deleting a
missing id does nothing.
"""

from datetime import date
from decimal import Decimal
from typing import Optional, Union

from ledgerbook.audit import AuditLogger
from ledgerbook.models import (
    AuditEventBuilder,
    PaymentMethod,
    Transaction,
    TransactionKind,
)
from ledgerbook.services.storage import Collection, CollectionStore


Amount = Union[Decimal, int, float, str]


def sort_newest_first(transactions: list[Transaction]) -> list[Transaction]:
    """Order by business date, newest first. Ties keep insertion order."""
    return sorted(transactions, key=lambda t: t.entry_date, reverse=True)


class TransactionLedger:
    """
    Owns the `transactions` collection.
    
    The ledger trusts its callers: amounts are expected to be positive
    and the direction is carried by `kind`.
    """
    
    def __init__(
        self,
        store: CollectionStore,
        audit_logger: Optional[AuditLogger] = None,
    ):
        self._store = store
        self._audit_logger = audit_logger or AuditLogger()
    
    def _load(self) -> list[Transaction]:
        return self._store.load(Collection.TRANSACTIONS, Transaction)
    
    def _save(self, transactions: list[Transaction]) -> None:
        self._store.save(Collection.TRANSACTIONS, transactions)
    
    def add_transaction(
        self,
        customer_id: str,
        user_id: str,
        amount: Amount,
        kind: Union[TransactionKind, str],
        note: str,
        entry_date: date,
        payment_method: Optional[PaymentMethod] = None,
    ) -> Transaction:
        """Append a new entry. Entries are never merged."""
        transaction = Transaction(
            customer_id=customer_id,
            user_id=user_id,
            amount=amount,
            kind=kind,
            note=note,
            entry_date=entry_date,
            payment_method=payment_method,
        )
        
        transactions = self._load()
        transactions.append(transaction)
        self._save(transactions)
        
        self._audit_logger.log(
            AuditEventBuilder.transaction_added(
                transaction_id=transaction.id,
                customer_id=customer_id,
                user_id=user_id,
                kind=transaction.kind.value,
                amount=str(transaction.amount),
            )
        )
        return transaction
    
    def get_transaction(self, transaction_id: str) -> Optional[Transaction]:
        for transaction in self._load():
            if transaction.id == transaction_id:
                return transaction
        return None
    
    def update_transaction(
        self,
        transaction_id: str,
        *,
        amount: Optional[Amount] = None,
        kind: Optional[Union[TransactionKind, str]] = None,
        note: Optional[str] = None,
        entry_date: Optional[date] = None,
        payment_method: Optional[PaymentMethod] = None,
    ) -> Optional[Transaction]:
        """
        Merge the given fields into an entry in place.
        
        Nothing else is re-derived: a sale bill whose linked entry is edited
        here is not touched.
        
        Returns:
            The updated entry, or None if no entry has this id
        """
        changes = {
            name: value
            for name, value in (
                ("amount", amount),
                ("kind", kind),
                ("note", note),
                ("entry_date", entry_date),
                ("payment_method", payment_method),
            )
            if value is not None
        }
        
        transactions = self._load()
        for idx, transaction in enumerate(transactions):
            if transaction.id != transaction_id:
                continue
            
            updated = Transaction.model_validate(
                {**transaction.model_dump(), **changes}
            )
            transactions[idx] = updated
            self._save(transactions)
            
            self._audit_logger.log(
                AuditEventBuilder.transaction_updated(
                    transaction_id=transaction_id,
                    fields=sorted(changes),
                )
            )
            return updated
        
        return None
    
    def delete_transaction(self, transaction_id: str) -> None:
        """Remove an entry. Deleting an unknown id is a no-op."""
        transactions = self._load()
        remaining = [t for t in transactions if t.id != transaction_id]
        if len(remaining) == len(transactions):
            return
        
        self._save(remaining)
        self._audit_logger.log(
            AuditEventBuilder.transaction_deleted(transaction_id=transaction_id)
        )
    
    def list_by_customer(self, customer_id: str) -> list[Transaction]:
        """A customer's entries, newest business date first."""
        return sort_newest_first(
            [t for t in self._load() if t.customer_id == customer_id]
        )
    
    def list_by_user(self, user_id: str) -> list[Transaction]:
        """Every entry the user owns, newest business date first."""
        return sort_newest_first(
            [t for t in self._load() if t.user_id == user_id]
        )
    
    def compute_balance(self, customer_id: str) -> Decimal:
        """
        Signed balance of a customer: got minus gave.
        
        Returns Decimal("0") for a customer with no entries.
        """
        return sum(
            (t.signed_amount for t in self._load() if t.customer_id == customer_id),
            Decimal("0"),
        )
    
    def balances_by_customer(self, user_id: str) -> dict[str, Decimal]:
        """Balances of every customer of a user that has entries, in one pass."""
        balances: dict[str, Decimal] = {}
        for t in self._load():
            if t.user_id == user_id:
                balances[t.customer_id] = (
                    balances.get(t.customer_id, Decimal("0")) + t.signed_amount
                )
        return balances
