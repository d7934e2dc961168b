"""Compaction catalog: skipped compaction records."""

from compcat.catalog.models import SkippedCompaction
from compcat.catalog.repository import SkippedCompactionRepository

__all__ = ["SkippedCompaction", "SkippedCompactionRepository"]
