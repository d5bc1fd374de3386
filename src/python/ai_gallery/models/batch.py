"""Result counters for batch jobs."""

from dataclasses import asdict, dataclass
from typing import Dict


@dataclass
class BatchResult:
    """
    Outcome of a sequential batch over the gallery.

    One item's failure never aborts the batch; it only increments errors.

    Attributes:
        processed: Items that were changed
        skipped: Items left untouched
        errors: Items that failed
        total: Items considered
    """
    processed: int = 0
    skipped: int = 0
    errors: int = 0
    total: int = 0

    def to_dict(self) -> Dict[str, int]:
        return asdict(self)

    def __str__(self) -> str:
        return (
            f"{self.processed} processed, {self.skipped} skipped, "
            f"{self.errors} errors ({self.total} total)"
        )
