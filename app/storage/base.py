"""
Storage layer interface for polling-unit batch writes.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Sequence

from app.domain.locations import ImportRow


class BatchSink(ABC):
    """
    Destination for resolved polling-unit batches.

    Writes must be idempotent on (ward_id, code): rows already present, or
    repeated inside the batch, are absorbed and not counted as inserted.
    """

    @abstractmethod
    def write_batch(self, rows: Sequence[ImportRow]) -> int:
        """
        Persist one batch and return the number of rows actually inserted.

        Raises BatchWriteError when the store rejects the batch.
        """
