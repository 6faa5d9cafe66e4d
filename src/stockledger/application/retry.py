"""Retry policy for ledger writes that lose a serialization race."""

from __future__ import annotations

import logging
from collections.abc import Callable
from typing import TypeVar

from stockledger.domain.exceptions import ConcurrencyConflict

logger = logging.getLogger(__name__)

T = TypeVar("T")


def retry_on_conflict(operation: Callable[[], T], max_retries: int) -> T:
    """Run ``operation``, re-running it immediately on ConcurrencyConflict.

    A conflicted attempt leaves nothing behind in the ledger, so re-running
    is safe. The last conflict is re-raised once ``max_retries`` extra
    attempts have been spent.
    """
    attempt = 0
    while True:
        try:
            return operation()
        except ConcurrencyConflict as exc:
            if attempt >= max_retries:
                logger.error("Giving up after %d retries: %s", attempt, exc)
                raise
            attempt += 1
            logger.warning("Retrying after conflict (attempt %d/%d): %s", attempt, max_retries, exc)
