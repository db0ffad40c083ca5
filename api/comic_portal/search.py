# Matching and pagination helpers for the windowed comic search.
import math
from typing import List, Optional, Sequence, Tuple

from .schemas import Comic

def window_ids(max_id: int, size: int = 100) -> List[int]:
    """Trailing id window ending at max_id, most recent first."""
    start = max(1, max_id - size + 1)
    return list(range(max_id, start - 1, -1))

def matches(comic: Comic, needle: str) -> bool:
    # needle is expected lower-cased already
    return needle in comic.title.lower() or needle in comic.transcript.lower()

def filter_comics(comics: Sequence[Comic], query: str) -> List[Comic]:
    needle = query.strip().lower()
    return [c for c in comics if matches(c, needle)]

def clamp_page(page, page_size, max_page_size: Optional[int] = None) -> Tuple[int, int]:
    try:
        page = int(page)
    except (TypeError, ValueError):
        page = 1
    try:
        page_size = int(page_size)
    except (TypeError, ValueError):
        page_size = 1
    page = max(1, page)
    page_size = max(1, page_size)
    if max_page_size is not None:
        page_size = min(page_size, max_page_size)
    return page, page_size

def paginate(items: Sequence[Comic], page: int, page_size: int) -> Tuple[List[Comic], int, int]:
    """Slice one page out of items. Returns (page_items, offset, total_pages)."""
    offset = (page - 1) * page_size
    total_pages = max(1, math.ceil(len(items) / page_size))
    return list(items[offset:offset + page_size]), offset, total_pages
