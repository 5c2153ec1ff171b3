"""
Reminder Store

Payment reminders scheduled against a customer. Reminders are advisory:
nothing links them to balances and `sent` only changes when the owner
marks a reminder as sent.
"""

from datetime import date
from typing import Optional

from ledgerbook.audit import AuditLogger
from ledgerbook.ledger.transactions import Amount
from ledgerbook.models import AuditEventBuilder, Reminder
from ledgerbook.services.storage import Collection, CollectionStore


class ReminderStore:
    """Owns the `reminders` collection."""
    
    def __init__(
        self,
        store: CollectionStore,
        audit_logger: Optional[AuditLogger] = None,
    ):
        self._store = store
        self._audit_logger = audit_logger or AuditLogger()
    
    def _load(self) -> list[Reminder]:
        return self._store.load(Collection.REMINDERS, Reminder)
    
    def _save(self, reminders: list[Reminder]) -> None:
        self._store.save(Collection.REMINDERS, reminders)
    
    def add_reminder(
        self,
        customer_id: str,
        user_id: str,
        amount: Amount,
        due_date: date,
        message: str = "",
    ) -> Reminder:
        reminder = Reminder(
            customer_id=customer_id,
            user_id=user_id,
            amount=amount,
            due_date=due_date,
            message=message,
        )
        reminders = self._load()
        reminders.append(reminder)
        self._save(reminders)
        
        self._audit_logger.log(
            AuditEventBuilder.reminder_added(
                reminder_id=reminder.id,
                user_id=user_id,
                due_date=reminder.due_date.isoformat(),
            )
        )
        return reminder
    
    def get_reminder(self, reminder_id: str) -> Optional[Reminder]:
        for reminder in self._load():
            if reminder.id == reminder_id:
                return reminder
        return None
    
    def list_reminders(self, user_id: str) -> list[Reminder]:
        """A user's reminders, earliest due date first."""
        reminders = [r for r in self._load() if r.user_id == user_id]
        return sorted(reminders, key=lambda r: r.due_date)
    
    def list_by_customer(self, customer_id: str) -> list[Reminder]:
        reminders = [r for r in self._load() if r.customer_id == customer_id]
        return sorted(reminders, key=lambda r: r.due_date)
    
    def mark_sent(self, reminder_id: str) -> Optional[Reminder]:
        """Flag a reminder as sent. Returns None if the id is unknown."""
        reminders = self._load()
        for reminder in reminders:
            if reminder.id == reminder_id:
                reminder.sent = True
                self._save(reminders)
                self._audit_logger.log(
                    AuditEventBuilder.reminder_sent(reminder_id=reminder_id)
                )
                return reminder
        return None
    
    def delete_reminder(self, reminder_id: str) -> None:
        reminders = self._load()
        remaining = [r for r in reminders if r.id != reminder_id]
        if len(remaining) == len(reminders):
            return
        
        self._save(remaining)
        self._audit_logger.log(
            AuditEventBuilder.reminder_deleted(reminder_id=reminder_id)
        )
