#!/usr/bin/env python3
"""Pagination metadata: a "X-Y of Z" parser and page-count derivation."""
from __future__ import annotations

import math
import re
from dataclasses import dataclass
from typing import Optional, Union

_RANGE_PATTERN = re.compile(r'(\d+)\s*[-–]\s*(\d+)\s+of\s+([\d,]+)')


@dataclass(frozen=True)
class PaginationInfo:
    range_start: int
    range_end: int
    total: int

    @property
    def page_size(self) -> int:
        return self.range_end - self.range_start + 1


@dataclass(frozen=True)
class UnparseablePagination:
    text: str
    reason: str


PaginationResult = Union[PaginationInfo, UnparseablePagination]


def parse_pagination_text(text: Optional[str]) -> PaginationResult:
    """Parses text such as "11-20 of 1,234" into a PaginationInfo."""
    if not text:
        return UnparseablePagination(text=text or '', reason="empty pagination text")
    match = _RANGE_PATTERN.search(text)
    if not match:
        return UnparseablePagination(text=text, reason="text does not match 'X-Y of Z'")
    start, end = int(match.group(1)), int(match.group(2))
    total = int(match.group(3).replace(',', ''))
    return PaginationInfo(range_start=start, range_end=end, total=total)


def total_pages(info: PaginationResult | None) -> Optional[int]:
    """Number of pages described by the first page's metadata.

    Returns 0 for an empty collection ("1-0 of 0"), None when the metadata
    cannot be trusted and traversal must fall back to the next-page affordance.
    """
    if not isinstance(info, PaginationInfo):
        return None
    page_size = info.page_size
    if info.total == 0 and page_size == 0:
        return 0
    if page_size > 0 and info.total > 0:
        return math.ceil(info.total / page_size)
    # e.g. "1-10 of 0": a half-rendered total next to a real page span.
    return None
