"""
Collection Store

Sits between the ledger components and a `KeyValueStore`. Each collection
is one JSON array under one key; it is always read whole, changed in
memory and written whole.

DESIGN DECISION: Operations that touch more than one collection (a sale
bill and its linked entry, a customer and everything it owns) run inside
`unit_of_work()`. Writes made inside it are staged in memory and flushed
together on success, or dropped if the block raises, so no caller ever
observes a bill without its linked entry or the reverse.

Malformed stored data never fails a read: a missing key, bad JSON or a
non-array value loads as an empty collection, and records that do not fit
the model are skipped. Each case is logged.
"""

import json
from contextlib import contextmanager
from enum import Enum
from typing import Iterator, Optional, Sequence, TypeVar

import structlog
from pydantic import ValidationError

from ledgerbook.models.entities import LedgerRecord, User
from ledgerbook.services.storage.interface import KeyValueStore


T = TypeVar("T", bound=LedgerRecord)

logger = structlog.get_logger(__name__)


class Collection(str, Enum):
    """Persisted collections. Values are the key names without prefix."""
    USERS = "users"
    CUSTOMERS = "customers"
    TRANSACTIONS = "transactions"
    SALE_BILLS = "sale_bills"
    REMINDERS = "reminders"
    EXPENSES = "expenses"
    INVENTORY = "inventory"


CURRENT_USER_KEY = "current_user"


class CollectionStore:
    """
    Typed read-all/write-all access to the persisted collections.
    
    Not safe for concurrent writers: the last whole-collection write wins.
    """
    
    def __init__(self, backend: KeyValueStore, key_prefix: str = "kb_"):
        self._backend = backend
        self._key_prefix = key_prefix
        # physical key -> staged value; None marks a removal
        self._staged: Optional[dict[str, Optional[str]]] = None
    
    @property
    def backend(self) -> KeyValueStore:
        return self._backend
    
    @property
    def in_unit_of_work(self) -> bool:
        return self._staged is not None
    
    def key_for(self, name: str) -> str:
        """Physical storage key for a logical key name."""
        return f"{self._key_prefix}{name}"
    
    # -------------------------------------------------------------------------
    # Raw access
    # -------------------------------------------------------------------------
    
    def read_raw(self, name: str) -> Optional[str]:
        """Read the stored string for a logical key, honouring staged writes."""
        key = self.key_for(name)
        if self._staged is not None and key in self._staged:
            return self._staged[key]
        return self._backend.read(key)
    
    def write_raw(self, name: str, value: Optional[str]) -> None:
        """Write (or, with None, remove) the stored string for a logical key."""
        key = self.key_for(name)
        if self._staged is not None:
            self._staged[key] = value
            return
        if value is None:
            self._backend.remove(key)
        else:
            self._backend.write(key, value)
    
    # -------------------------------------------------------------------------
    # Collections
    # -------------------------------------------------------------------------
    
    def load(self, collection: Collection, model: type[T]) -> list[T]:
        """Load every record of a collection."""
        raw = self.read_raw(collection.value)
        if raw is None:
            return []
        
        try:
            data = json.loads(raw)
        except ValueError as e:
            logger.warning(
                "collection_unreadable",
                collection=collection.value,
                reason=f"invalid JSON: {e}",
            )
            return []
        
        if not isinstance(data, list):
            logger.warning(
                "collection_unreadable",
                collection=collection.value,
                reason=f"expected a list, got {type(data).__name__}",
            )
            return []
        
        records = []
        for item in data:
            try:
                records.append(model.model_validate(item))
            except ValidationError as e:
                logger.warning(
                    "record_skipped",
                    collection=collection.value,
                    errors=e.error_count(),
                )
        return records
    
    def save(self, collection: Collection, records: Sequence[LedgerRecord]) -> None:
        """Replace a collection with the given records."""
        payload = json.dumps([record.to_record() for record in records])
        self.write_raw(collection.value, payload)
    
    # -------------------------------------------------------------------------
    # Current user (single record, not an array)
    # -------------------------------------------------------------------------
    
    def load_current_user(self) -> Optional[User]:
        raw = self.read_raw(CURRENT_USER_KEY)
        if not raw:
            return None
        try:
            return User.model_validate_json(raw)
        except ValidationError:
            logger.warning("current_user_unreadable")
            return None
    
    def save_current_user(self, user: User) -> None:
        self.write_raw(CURRENT_USER_KEY, json.dumps(user.to_record()))
    
    def clear_current_user(self) -> None:
        self.write_raw(CURRENT_USER_KEY, None)
    
    # -------------------------------------------------------------------------
    # Unit of work
    # -------------------------------------------------------------------------
    
    @contextmanager
    def unit_of_work(self) -> Iterator["CollectionStore"]:
        """
        Stage every write made inside the block and flush them together.
        
        Re-entrant: a nested block joins the outermost one, which alone
        flushes. If the block raises, staged writes are discarded.
        """
        if self._staged is not None:
            yield self
            return
        
        self._staged = {}
        try:
            yield self
        except BaseException:
            self._staged = None
            raise
        
        staged, self._staged = self._staged, None
        for key, value in staged.items():
            if value is None:
                self._backend.remove(key)
            else:
                self._backend.write(key, value)
