"""Inventory module.

Provides functionality for:
- Reserving and releasing copies on checkout/return
- Changing the number of owned copies
- Auditing copy counts against the loan ledger
"""

from .schemas import Availability, InventoryDiscrepancy
from .store import BookLocks, InventoryStore, book_locks

__all__ = [
    "Availability",
    "InventoryDiscrepancy",
    "BookLocks",
    "InventoryStore",
    "book_locks",
]
