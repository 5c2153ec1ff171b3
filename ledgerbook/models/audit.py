"""
Audit Models for Ledgerbook

Every mutation of the ledger is logged for audit purposes.
This provides:
1. Traceability of balance changes back to the action that caused them
2. Debugging information when a bill and its linked entry drift apart
3. A record of backups and restores

DESIGN DECISION: Audit events describe what happened; they never carry
enough state to replay it. The collections are the source of truth.
"""

from datetime import datetime
from enum import Enum
from typing import Any, Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, Field

from ledgerbook.models.entities import utc_now


class AuditEventType(str, Enum):
    """Types of events we audit."""
    # Accounts
    USER_SIGNED_UP = "user_signed_up"
    USER_LOGGED_IN = "user_logged_in"
    USER_LOGGED_OUT = "user_logged_out"
    PROFILE_UPDATED = "profile_updated"
    
    # Customers
    CUSTOMER_ADDED = "customer_added"
    CUSTOMER_UPDATED = "customer_updated"
    CUSTOMER_DELETED = "customer_deleted"
    
    # Ledger entries
    TRANSACTION_ADDED = "transaction_added"
    TRANSACTION_UPDATED = "transaction_updated"
    TRANSACTION_DELETED = "transaction_deleted"
    
    # Sale bills
    SALE_BILL_CREATED = "sale_bill_created"
    SALE_BILL_PAYMENT_UPDATED = "sale_bill_payment_updated"
    SALE_BILL_DELETED = "sale_bill_deleted"
    LINKED_TRANSACTION_SYNCED = "linked_transaction_synced"
    
    # Reminders
    REMINDER_ADDED = "reminder_added"
    REMINDER_SENT = "reminder_sent"
    REMINDER_DELETED = "reminder_deleted"
    
    # Backup
    BACKUP_EXPORTED = "backup_exported"
    BACKUP_RESTORED = "backup_restored"
    
    # Expenses and stock
    EXPENSE_ADDED = "expense_added"
    EXPENSE_DELETED = "expense_deleted"
    INVENTORY_ITEM_ADDED = "inventory_item_added"
    INVENTORY_ITEM_UPDATED = "inventory_item_updated"
    INVENTORY_ITEM_DELETED = "inventory_item_deleted"


class AuditSeverity(str, Enum):
    """Severity level for audit events."""
    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"


class AuditEvent(BaseModel):
    """
    A single audit event.
    
    Every ledger mutation creates one of these.
    """
    
    # Identity
    event_id: UUID = Field(
        default_factory=uuid4,
        description="Unique event identifier"
    )
    timestamp: datetime = Field(
        default_factory=utc_now,
        description="When the event occurred (UTC)"
    )
    
    # Event classification
    event_type: AuditEventType
    severity: AuditSeverity = AuditSeverity.INFO
    
    # Context - what entity is this about?
    entity_type: Optional[str] = Field(
        default=None,
        description="Type of entity (e.g., 'customer', 'sale_bill')"
    )
    entity_id: Optional[str] = None
    user_id: Optional[str] = Field(
        default=None,
        description="Owning user of the entity, when known"
    )
    
    description: str = Field(
        ...,
        max_length=500,
        description="Human-readable description of what happened"
    )
    details: dict[str, Any] = Field(default_factory=dict)
    
    is_user_action: bool = Field(
        default=True,
        description="Was this triggered by a user action?"
    )
    
    def to_log_dict(self) -> dict:
        """
        Convert to a dictionary suitable for structured logging.
        """
        return {
            "event_id": str(self.event_id),
            "timestamp": self.timestamp.isoformat(),
            "event_type": self.event_type.value,
            "severity": self.severity.value,
            "entity_type": self.entity_type,
            "entity_id": self.entity_id,
            "user_id": self.user_id,
            "description": self.description,
            "details": self.details,
            "is_user_action": self.is_user_action,
        }


class AuditEventBuilder:
    """
    Helper class to build audit events with common patterns.
    
    Usage:
        event = AuditEventBuilder.sale_bill_created(bill)
        audit_logger.log(event)
    
    Amounts are passed as strings so the log never rounds them.
    """
    
    @staticmethod
    def user_signed_up(user_id: str, email: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.USER_SIGNED_UP,
            entity_type="user",
            entity_id=user_id,
            user_id=user_id,
            description=f"Account created for {email}",
            details={"email": email},
        )
    
    @staticmethod
    def user_logged_in(user_id: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.USER_LOGGED_IN,
            entity_type="user",
            entity_id=user_id,
            user_id=user_id,
            description="User logged in",
        )
    
    @staticmethod
    def user_logged_out() -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.USER_LOGGED_OUT,
            entity_type="user",
            description="User logged out",
        )
    
    @staticmethod
    def profile_updated(user_id: str, fields: list[str]) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.PROFILE_UPDATED,
            entity_type="user",
            entity_id=user_id,
            user_id=user_id,
            description="Business profile updated",
            details={"fields": fields},
        )
    
    @staticmethod
    def customer_added(customer_id: str, user_id: str, name: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.CUSTOMER_ADDED,
            entity_type="customer",
            entity_id=customer_id,
            user_id=user_id,
            description=f"Customer added: {name}",
        )
    
    @staticmethod
    def customer_updated(customer_id: str, fields: list[str]) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.CUSTOMER_UPDATED,
            entity_type="customer",
            entity_id=customer_id,
            description="Customer updated",
            details={"fields": fields},
        )
    
    @staticmethod
    def customer_deleted(
        customer_id: str,
        transactions_removed: int,
        reminders_removed: int,
        bills_removed: int,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.CUSTOMER_DELETED,
            entity_type="customer",
            entity_id=customer_id,
            description="Customer deleted with all dependent records",
            details={
                "transactions_removed": transactions_removed,
                "reminders_removed": reminders_removed,
                "bills_removed": bills_removed,
            },
        )
    
    @staticmethod
    def transaction_added(
        transaction_id: str,
        customer_id: str,
        user_id: str,
        kind: str,
        amount: str,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.TRANSACTION_ADDED,
            entity_type="transaction",
            entity_id=transaction_id,
            user_id=user_id,
            description=f"Entry added: {kind} {amount}",
            details={"customer_id": customer_id, "kind": kind, "amount": amount},
        )
    
    @staticmethod
    def transaction_updated(transaction_id: str, fields: list[str]) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.TRANSACTION_UPDATED,
            entity_type="transaction",
            entity_id=transaction_id,
            description="Entry updated",
            details={"fields": fields},
        )
    
    @staticmethod
    def transaction_deleted(transaction_id: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.TRANSACTION_DELETED,
            entity_type="transaction",
            entity_id=transaction_id,
            description="Entry deleted",
        )
    
    @staticmethod
    def sale_bill_created(
        bill_id: str,
        user_id: str,
        invoice_number: str,
        final_total: str,
        paid: str,
        transaction_id: Optional[str],
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SALE_BILL_CREATED,
            entity_type="sale_bill",
            entity_id=bill_id,
            user_id=user_id,
            description=f"Sale bill {invoice_number} created",
            details={
                "invoice_number": invoice_number,
                "final_total": final_total,
                "paid": paid,
                "linked_transaction_id": transaction_id,
            },
        )
    
    @staticmethod
    def sale_bill_payment_updated(
        bill_id: str,
        old_paid: str,
        new_paid: str,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SALE_BILL_PAYMENT_UPDATED,
            entity_type="sale_bill",
            entity_id=bill_id,
            description="Sale bill payment updated",
            details={"old_paid": old_paid, "new_paid": new_paid},
        )
    
    @staticmethod
    def sale_bill_deleted(bill_id: str, transaction_id: Optional[str]) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SALE_BILL_DELETED,
            entity_type="sale_bill",
            entity_id=bill_id,
            description="Sale bill deleted",
            details={"linked_transaction_id": transaction_id},
        )
    
    @staticmethod
    def linked_transaction_synced(
        bill_id: str,
        action: str,
        transaction_id: Optional[str],
        due: str,
    ) -> AuditEvent:
        """action is one of 'created', 'updated', 'removed'."""
        return AuditEvent(
            event_type=AuditEventType.LINKED_TRANSACTION_SYNCED,
            entity_type="sale_bill",
            entity_id=bill_id,
            description=f"Linked entry {action}",
            details={
                "action": action,
                "transaction_id": transaction_id,
                "due": due,
            },
            is_user_action=False,
        )
    
    @staticmethod
    def reminder_added(reminder_id: str, user_id: str, due_date: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.REMINDER_ADDED,
            entity_type="reminder",
            entity_id=reminder_id,
            user_id=user_id,
            description=f"Reminder scheduled for {due_date}",
        )
    
    @staticmethod
    def reminder_sent(reminder_id: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.REMINDER_SENT,
            entity_type="reminder",
            entity_id=reminder_id,
            description="Reminder marked as sent",
        )
    
    @staticmethod
    def reminder_deleted(reminder_id: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.REMINDER_DELETED,
            entity_type="reminder",
            entity_id=reminder_id,
            description="Reminder deleted",
        )
    
    @staticmethod
    def backup_exported(keys: list[str], size: int) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.BACKUP_EXPORTED,
            entity_type="backup",
            description="Backup exported",
            details={"keys": keys, "size": size},
        )
    
    @staticmethod
    def backup_restored(keys: list[str]) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.BACKUP_RESTORED,
            entity_type="backup",
            description="Backup restored; in-memory state must be reloaded",
            details={"keys": keys},
        )
    
    @staticmethod
    def expense_added(expense_id: str, user_id: str, category: str, amount: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.EXPENSE_ADDED,
            entity_type="expense",
            entity_id=expense_id,
            user_id=user_id,
            description=f"Expense recorded under {category}",
            details={"category": category, "amount": amount},
        )
    
    @staticmethod
    def expense_deleted(expense_id: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.EXPENSE_DELETED,
            entity_type="expense",
            entity_id=expense_id,
            description="Expense deleted",
        )
    
    @staticmethod
    def inventory_item_added(item_id: str, user_id: str, name: str, quantity: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.INVENTORY_ITEM_ADDED,
            entity_type="inventory_item",
            entity_id=item_id,
            user_id=user_id,
            description=f"Stock item added: {name}",
            details={"quantity": quantity},
        )
    
    @staticmethod
    def inventory_item_updated(item_id: str, fields: list[str]) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.INVENTORY_ITEM_UPDATED,
            entity_type="inventory_item",
            entity_id=item_id,
            description="Stock item updated",
            details={"fields": fields},
        )
    
    @staticmethod
    def inventory_item_deleted(item_id: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.INVENTORY_ITEM_DELETED,
            entity_type="inventory_item",
            entity_id=item_id,
            description="Stock item deleted",
        )
