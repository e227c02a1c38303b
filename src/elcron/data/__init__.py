"""Price history persistence layer.

Provides the SQLite database manager and the typed store the scheduler
writes every fetched price to.
"""

from elcron.data.database import PriceDatabase
from elcron.data.store import PriceStore

__all__ = ["PriceDatabase", "PriceStore"]
