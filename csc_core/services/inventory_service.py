# =============================================================================
# csc_core/services/inventory_service.py
# Inventory Service - consumable stock kept at the centre
# =============================================================================

from __future__ import annotations
from datetime import datetime
from typing import List

from .base_service import BaseService, ServiceResult, new_record_id
from csc_core.errors import DataValidationError
from csc_core.models import InventoryItem, validate_inventory_item
from csc_core.offline.record_store import RecordStore


class InventoryService(BaseService):
    """
    Service for stock items. Every write stamps ``lastUpdated``.

    Usage:
        stock = InventoryService(db.inventory)
        stock.save_item(InventoryItem(id="", name="A4 Paper", quantity=10, unit="Reams"))
        stock.adjust_stock(item_id, -2)
    """

    def __init__(self, inventory: RecordStore[InventoryItem]):
        super().__init__()
        self._inventory = inventory

    def _write(self, item: InventoryItem) -> InventoryItem:
        validate_inventory_item(item)
        item.last_updated = datetime.now().isoformat()
        return self._inventory.save(item)

    def save_item(self, item: InventoryItem) -> ServiceResult:
        def _save():
            if not item.id:
                item.id = new_record_id("inv")
            return self._write(item)

        return self.safe_execute("Saving inventory item", _save)

    def adjust_stock(self, item_id: str, delta: int) -> ServiceResult:
        """
        Add (positive) or consume (negative) stock.

        Returns:
            ServiceResult with the updated item; fails if stock would go negative
        """
        def _adjust():
            item = self._inventory.get(item_id)
            if item is None:
                raise DataValidationError(
                    f"Inventory item {item_id} not found", field="id", actual=item_id
                )
            if item.quantity + delta < 0:
                raise DataValidationError(
                    f"Only {item.quantity} {item.unit} of {item.name} in stock",
                    field="quantity",
                    actual=str(item.quantity + delta),
                )
            item.quantity += delta
            saved = self._write(item)
            if saved.is_low_stock:
                self.logger.warning(f"{saved.name} is low on stock ({saved.quantity} {saved.unit})")
            return saved

        return self.safe_execute("Adjusting stock", _adjust)

    def delete_item(self, item_id: str) -> ServiceResult:
        def _delete():
            self._inventory.delete(item_id)
            return item_id

        return self.safe_execute("Deleting inventory item", _delete)

    def search(self, query: str = "") -> List[InventoryItem]:
        needle = (query or "").strip().lower()
        return [i for i in self._inventory.all() if needle in i.name.lower()]
