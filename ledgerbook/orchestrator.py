"""
Main Orchestrator for Ledgerbook

This module wires every component to one shared storage object and
exposes them through a single `Bookkeeper`.

DESIGN DECISION: Components never reach for a global store. The factory
builds exactly one `CollectionStore` and hands it to each component, so a
test can substitute an in-memory store and every multi-collection write
shares the same unit of work.
"""

from datetime import date
from typing import Callable, Optional

from ledgerbook.audit import AuditLogger
from ledgerbook.backup import BackupManager
from ledgerbook.config import Settings, StorageBackend, get_settings
from ledgerbook.ledger import (
    CustomerRegistry,
    ExpenseBook,
    Inventory,
    ReminderStore,
    SaleBillEngine,
    TransactionLedger,
    UserAccounts,
)
from ledgerbook.reports import ReportGenerator
from ledgerbook.services.storage import (
    AuditStorageInterface,
    CollectionStore,
    GoogleSheetsClient,
    GoogleSheetsKeyValueStore,
    InMemoryKeyValueStore,
    JsonFileKeyValueStore,
    KeyValueStore,
)


class Bookkeeper:
    """
    The ledger as the UI layer sees it.
    
    Each attribute is a component; the UI calls their operations directly.
    """
    
    def __init__(
        self,
        store: CollectionStore,
        audit_logger: AuditLogger,
        invoice_prefix: str = "INV",
        backup_extension: str = ".dlb",
        top_customers_limit: int = 5,
        summary_months: int = 6,
        today: Callable[[], date] = date.today,
    ):
        self.store = store
        self.audit_logger = audit_logger
        
        self.accounts = UserAccounts(store, audit_logger)
        self.customers = CustomerRegistry(store, audit_logger)
        self.transactions = TransactionLedger(store, audit_logger)
        self.sale_bills = SaleBillEngine(
            store,
            self.transactions,
            audit_logger,
            invoice_prefix=invoice_prefix,
            today=today,
        )
        self.reminders = ReminderStore(store, audit_logger)
        self.expenses = ExpenseBook(store, audit_logger)
        self.inventory = Inventory(store, audit_logger)
        self.reports = ReportGenerator(
            self.customers,
            self.transactions,
            self.sale_bills,
            top_customers_limit=top_customers_limit,
            summary_months=summary_months,
        )
        self.backup = BackupManager(store, audit_logger, extension=backup_extension)


def create_backend(settings: Settings) -> KeyValueStore:
    """Build the key-value store selected by configuration."""
    storage = settings.storage
    if storage.backend == StorageBackend.MEMORY:
        return InMemoryKeyValueStore()
    if storage.backend == StorageBackend.GOOGLE_SHEETS:
        return GoogleSheetsKeyValueStore(GoogleSheetsClient(settings.google_sheets))
    return JsonFileKeyValueStore(storage.data_dir)


def create_app_components(
    settings: Optional[Settings] = None,
    backend: Optional[KeyValueStore] = None,
    audit_storage: Optional[AuditStorageInterface] = None,
    today: Callable[[], date] = date.today,
) -> Bookkeeper:
    """
    Factory function to create all application components.
    
    Args:
        settings: Configuration; defaults to the cached environment settings
        backend: Key-value store to use instead of the configured one
                (tests pass an in-memory store here)
        audit_storage: Optional sink for audit events
        today: Clock used for invoice numbering
    
    Returns:
        A fully wired Bookkeeper
    """
    settings = settings or get_settings()
    ledger_settings = settings.ledger
    
    store = CollectionStore(
        backend or create_backend(settings),
        key_prefix=settings.storage.key_prefix,
    )
    
    return Bookkeeper(
        store,
        AuditLogger(audit_storage),
        invoice_prefix=ledger_settings.invoice_prefix,
        backup_extension=ledger_settings.backup_extension,
        top_customers_limit=ledger_settings.top_customers_limit,
        summary_months=ledger_settings.summary_months,
        today=today,
    )
