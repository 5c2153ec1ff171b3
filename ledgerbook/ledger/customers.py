"""
Customer Registry

CRUD over customers, scoped to their owning user.

Deleting a customer deletes everything that hangs off it (entries,
reminders and sale bills) in one unit of work, so no orphan record is
ever written.
"""

from typing import Optional

from ledgerbook.audit import AuditLogger
from ledgerbook.models import (
    AuditEventBuilder,
    Customer,
    Reminder,
    SaleBill,
    Transaction,
)
from ledgerbook.services.storage import Collection, CollectionStore


class CustomerRegistry:
    """Owns the `customers` collection and its cascading delete."""
    
    def __init__(
        self,
        store: CollectionStore,
        audit_logger: Optional[AuditLogger] = None,
    ):
        self._store = store
        self._audit_logger = audit_logger or AuditLogger()
    
    def _load(self) -> list[Customer]:
        return self._store.load(Collection.CUSTOMERS, Customer)
    
    def add_customer(
        self,
        user_id: str,
        name: str,
        phone: str = "",
        notes: str = "",
    ) -> Customer:
        customer = Customer(user_id=user_id, name=name, phone=phone, notes=notes)
        
        customers = self._load()
        customers.append(customer)
        self._store.save(Collection.CUSTOMERS, customers)
        
        self._audit_logger.log(
            AuditEventBuilder.customer_added(
                customer_id=customer.id,
                user_id=user_id,
                name=customer.name,
            )
        )
        return customer
    
    def get_customer(self, customer_id: str) -> Optional[Customer]:
        for customer in self._load():
            if customer.id == customer_id:
                return customer
        return None
    
    def list_customers(
        self,
        user_id: str,
        search: Optional[str] = None,
    ) -> list[Customer]:
        """
        A user's customers in creation order.
        
        `search` matches the name case-insensitively or the phone as a
        plain substring.
        """
        customers = [c for c in self._load() if c.user_id == user_id]
        if not search:
            return customers
        
        needle = search.strip().lower()
        return [
            c for c in customers
            if needle in c.name.lower() or search.strip() in c.phone
        ]
    
    def update_customer(
        self,
        customer_id: str,
        *,
        name: Optional[str] = None,
        phone: Optional[str] = None,
        notes: Optional[str] = None,
    ) -> Optional[Customer]:
        """Update name, phone or notes. Returns None if the id is unknown."""
        changes = {
            field: value
            for field, value in (("name", name), ("phone", phone), ("notes", notes))
            if value is not None
        }
        
        customers = self._load()
        for idx, customer in enumerate(customers):
            if customer.id != customer_id:
                continue
            
            updated = Customer.model_validate({**customer.model_dump(), **changes})
            customers[idx] = updated
            self._store.save(Collection.CUSTOMERS, customers)
            
            self._audit_logger.log(
                AuditEventBuilder.customer_updated(
                    customer_id=customer_id,
                    fields=sorted(changes),
                )
            )
            return updated
        
        return None
    
    def delete_customer(self, customer_id: str) -> None:
        """
        Remove a customer with all its entries, reminders and sale bills.
        
        All four collections are flushed together. Unknown ids still sweep
        the child collections, so stray orphans get cleaned up.
        """
        with self._store.unit_of_work() as store:
            customers = store.load(Collection.CUSTOMERS, Customer)
            transactions = store.load(Collection.TRANSACTIONS, Transaction)
            reminders = store.load(Collection.REMINDERS, Reminder)
            bills = store.load(Collection.SALE_BILLS, SaleBill)
            
            kept_transactions = [t for t in transactions if t.customer_id != customer_id]
            kept_reminders = [r for r in reminders if r.customer_id != customer_id]
            kept_bills = [b for b in bills if b.customer_id != customer_id]
            
            store.save(
                Collection.CUSTOMERS,
                [c for c in customers if c.id != customer_id],
            )
            store.save(Collection.TRANSACTIONS, kept_transactions)
            store.save(Collection.REMINDERS, kept_reminders)
            store.save(Collection.SALE_BILLS, kept_bills)
        
        self._audit_logger.log(
            AuditEventBuilder.customer_deleted(
                customer_id=customer_id,
                transactions_removed=len(transactions) - len(kept_transactions),
                reminders_removed=len(reminders) - len(kept_reminders),
                bills_removed=len(bills) - len(kept_bills),
            )
        )
