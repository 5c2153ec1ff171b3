"""
Tests for the Reminder Store.
"""

from datetime import date
from decimal import Decimal


class TestReminders:
    """Tests for reminder CRUD."""
    
    def test_add_defaults_to_unsent(self, reminders, customer):
        """Test that new reminders are not sent."""
        reminder = reminders.add_reminder(customer.id, "user-1", 300, date(2024, 4, 1), "Due soon")
        assert reminder.sent is False
        assert reminders.get_reminder(reminder.id).amount == Decimal("300")
    
    def test_sorted_by_due_date(self, reminders, customer):
        """Test ascending due date order."""
        reminders.add_reminder(customer.id, "user-1", 1, date(2024, 5, 1), "later")
        reminders.add_reminder(customer.id, "user-1", 1, date(2024, 4, 1), "sooner")
        reminders.add_reminder(customer.id, "user-2", 1, date(2024, 1, 1), "other user")
        assert [r.message for r in reminders.list_reminders("user-1")] == ["sooner", "later"]
    
    def test_mark_sent(self, reminders, customer):
        """Test flipping the sent flag."""
        reminder = reminders.add_reminder(customer.id, "user-1", 1, date(2024, 4, 1))
        assert reminders.mark_sent(reminder.id).sent is True
        assert reminders.get_reminder(reminder.id).sent is True
    
    def test_mark_sent_unknown(self, reminders):
        """Test the soft not-found."""
        assert reminders.mark_sent("missing") is None
    
    def test_delete(self, reminders, customer):
        """Test removal and idempotency."""
        reminder = reminders.add_reminder(customer.id, "user-1", 1, date(2024, 4, 1))
        reminders.delete_reminder(reminder.id)
        reminders.delete_reminder(reminder.id)
        assert reminders.get_reminder(reminder.id) is None
    
    def test_reminders_do_not_touch_balance(self, reminders, ledger, customer):
        """Test that reminders are advisory."""
        reminders.add_reminder(customer.id, "user-1", 999, date(2024, 4, 1))
        assert ledger.compute_balance(customer.id) == Decimal("0")
