"""Collection traversal and per-vault detail aggregation."""

from .collector import ListingPage, PageSource, PaginatedCollector
from .detail_aggregator import DetailAggregator, DetailOptions

__all__ = ["ListingPage", "PageSource", "PaginatedCollector", "DetailAggregator", "DetailOptions"]
