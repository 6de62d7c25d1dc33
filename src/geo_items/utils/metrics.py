"""
Search Metrics Tracking Module

Collects and emits structured logging of the work done by one radius query:
  - ranges_scanned: covering ranges issued to the geo index
  - candidates: index entries returned by all scans
  - duplicates: entries dropped because the item was already seen
  - orphans: index entries without metadata, skipped
  - filtered_out: candidates farther than the radius
  - returned: items handed back to the caller

One instance is created per query, so concurrent queries share nothing.

Usage:

    metrics = SearchMetrics(search_id)
    metrics.candidates += len(entries)
    metrics.log_metrics()
"""

from .logger import logger


class SearchMetrics:
    """Track the cost of a single radius query"""
    def __init__(self, search_id: str):
        self.search_id: str = search_id
        self.ranges_scanned: int = 0
        self.candidates: int = 0
        self.duplicates: int = 0
        self.orphans: int = 0
        self.filtered_out: int = 0
        self.returned: int = 0

    def as_dict(self) -> dict:
        return {
            "ranges_scanned": self.ranges_scanned,
            "candidates": self.candidates,
            "duplicates": self.duplicates,
            "orphans": self.orphans,
            "filtered_out": self.filtered_out,
            "returned": self.returned,
            "precision_ratio": round(self.returned / max(1, self.candidates - self.duplicates), 2)
        }

    def log_metrics(self):
        """Log current search metrics"""
        logger.info("Search Metrics Summary", extra={
            "operation": "search_metrics",
            "search_id": self.search_id,
            "metrics": self.as_dict()
        })
