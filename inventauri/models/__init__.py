"""Domain models for Inventauri."""

from inventauri.models.item import Item
from inventauri.models.sale import Sale, SaleLine
from inventauri.models.stock_movement import StockMovement, StockReason

__all__ = [
    "Item",
    "Sale",
    "SaleLine",
    "StockMovement",
    "StockReason",
]
