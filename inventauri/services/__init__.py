"""Services (write side)."""

from inventauri.services.catalog_service import CatalogService, ItemInfo
from inventauri.services.sale_recorder import SaleRecord, SaleRecorder
from inventauri.services.sale_writer import SaleWriter
from inventauri.services.stock_service import StockMovementInfo, StockService

__all__ = [
    "CatalogService",
    "ItemInfo",
    "SaleRecord",
    "SaleRecorder",
    "SaleWriter",
    "StockMovementInfo",
    "StockService",
]
