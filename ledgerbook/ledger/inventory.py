"""
Inventory

Stock items with cost and selling prices. Quantities are edited by hand;
sale bills do not draw stock down.
"""

from typing import Optional

from ledgerbook.audit import AuditLogger
from ledgerbook.ledger.transactions import Amount
from ledgerbook.models import AuditEventBuilder, InventoryItem
from ledgerbook.services.storage import Collection, CollectionStore


ITEM_FIELDS = ("name", "quantity", "unit", "cost_price", "selling_price", "low_stock_alert")


class Inventory:
    """Owns the `inventory` collection."""
    
    def __init__(
        self,
        store: CollectionStore,
        audit_logger: Optional[AuditLogger] = None,
    ):
        self._store = store
        self._audit_logger = audit_logger or AuditLogger()
    
    def _load(self) -> list[InventoryItem]:
        return self._store.load(Collection.INVENTORY, InventoryItem)
    
    def _save(self, items: list[InventoryItem]) -> None:
        self._store.save(Collection.INVENTORY, items)
    
    def add_item(
        self,
        user_id: str,
        name: str,
        quantity: Amount,
        unit: str = "",
        cost_price: Amount = 0,
        selling_price: Amount = 0,
        low_stock_alert: Amount = 0,
    ) -> InventoryItem:
        item = InventoryItem(
            user_id=user_id,
            name=name,
            quantity=quantity,
            unit=unit,
            cost_price=cost_price,
            selling_price=selling_price,
            low_stock_alert=low_stock_alert,
        )
        items = self._load()
        items.append(item)
        self._save(items)
        
        self._audit_logger.log(
            AuditEventBuilder.inventory_item_added(
                item_id=item.id,
                user_id=user_id,
                name=item.name,
                quantity=str(item.quantity),
            )
        )
        return item
    
    def get_item(self, item_id: str) -> Optional[InventoryItem]:
        for item in self._load():
            if item.id == item_id:
                return item
        return None
    
    def list_items(self, user_id: str) -> list[InventoryItem]:
        """A user's stock in the order it was added."""
        return [i for i in self._load() if i.user_id == user_id]
    
    def low_stock(self, user_id: str) -> list[InventoryItem]:
        """Items at or below their low-stock threshold."""
        return [i for i in self.list_items(user_id) if i.is_low_stock]
    
    def update_item(
        self,
        item_id: str,
        *,
        name: Optional[str] = None,
        quantity: Optional[Amount] = None,
        unit: Optional[str] = None,
        cost_price: Optional[Amount] = None,
        selling_price: Optional[Amount] = None,
        low_stock_alert: Optional[Amount] = None,
    ) -> Optional[InventoryItem]:
        """
        Merge the given fields into an item.
        
        Returns:
            The updated item, or None if no item has this id
        """
        values = dict(zip(
            ITEM_FIELDS,
            (name, quantity, unit, cost_price, selling_price, low_stock_alert),
        ))
        changes = {k: v for k, v in values.items() if v is not None}
        
        items = self._load()
        for idx, item in enumerate(items):
            if item.id != item_id:
                continue
            updated = InventoryItem.model_validate({**item.model_dump(), **changes})
            items[idx] = updated
            self._save(items)
            self._audit_logger.log(
                AuditEventBuilder.inventory_item_updated(
                    item_id=item_id, fields=sorted(changes)
                )
            )
            return updated
        return None
    
    def delete_item(self, item_id: str) -> None:
        items = self._load()
        remaining = [i for i in items if i.id != item_id]
        if len(remaining) == len(items):
            return
        
        self._save(remaining)
        self._audit_logger.log(AuditEventBuilder.inventory_item_deleted(item_id=item_id))
