"""Low-stock evaluation.

Status is derived from the ledger on read and never stored.
"""

from __future__ import annotations

from stockledger.domain.model.stock import StockStatus


def evaluate_stock_status(total_quantity: int, min_quantity: int) -> StockStatus:
    """Classify a product's total quantity against its reorder threshold.

    - OUT_OF_STOCK when the total is zero
    - LOW_STOCK when ``0 < total <= min_quantity``
    - IN_STOCK otherwise
    """
    if total_quantity <= 0:
        return StockStatus.OUT_OF_STOCK
    if total_quantity <= min_quantity:
        return StockStatus.LOW_STOCK
    return StockStatus.IN_STOCK
