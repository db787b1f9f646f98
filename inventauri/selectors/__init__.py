"""Selectors (read side)."""

from inventauri.selectors.base import BaseSelector
from inventauri.selectors.sale_selector import SaleInfo, SaleLineInfo, SaleSelector
from inventauri.selectors.stock_selector import (
    StockMovementInfo,
    StockSelector,
    movement_to_dto,
)

__all__ = [
    "BaseSelector",
    "SaleInfo",
    "SaleLineInfo",
    "SaleSelector",
    "StockMovementInfo",
    "StockSelector",
    "movement_to_dto",
]
