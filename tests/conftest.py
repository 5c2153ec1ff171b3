"""
Shared fixtures.

Every test gets a fresh in-memory book and a fixed "today" so invoice
numbers are predictable.
"""

from datetime import date

import pytest

from ledgerbook.audit import AuditLogger
from ledgerbook.config import Settings
from ledgerbook.ledger import (
    CustomerRegistry,
    ReminderStore,
    SaleBillEngine,
    TransactionLedger,
    UserAccounts,
)
from ledgerbook.orchestrator import create_app_components
from ledgerbook.reports import ReportGenerator
from ledgerbook.services.storage import (
    CollectionStore,
    InMemoryAuditStorage,
    InMemoryKeyValueStore,
)


TODAY = date(2024, 3, 15)


@pytest.fixture
def kv():
    return InMemoryKeyValueStore()


@pytest.fixture
def store(kv):
    return CollectionStore(kv)


@pytest.fixture
def audit_storage():
    return InMemoryAuditStorage()


@pytest.fixture
def audit_logger(audit_storage):
    return AuditLogger(audit_storage)


@pytest.fixture
def ledger(store, audit_logger):
    return TransactionLedger(store, audit_logger)


@pytest.fixture
def engine(store, ledger, audit_logger):
    return SaleBillEngine(store, ledger, audit_logger, today=lambda: TODAY)


@pytest.fixture
def customers(store, audit_logger):
    return CustomerRegistry(store, audit_logger)


@pytest.fixture
def reminders(store, audit_logger):
    return ReminderStore(store, audit_logger)


@pytest.fixture
def accounts(store, audit_logger):
    return UserAccounts(store, audit_logger)


@pytest.fixture
def reports(customers, ledger, engine):
    return ReportGenerator(customers, ledger, engine)


@pytest.fixture
def customer(customers):
    return customers.add_customer("user-1", "Asha", "9876543210", "Regular")


@pytest.fixture
def bookkeeper(kv, audit_storage):
    return create_app_components(
        settings=Settings(),
        backend=kv,
        audit_storage=audit_storage,
        today=lambda: TODAY,
    )
