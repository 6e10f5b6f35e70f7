# billager/query.py
from typing import Any, Iterable, List

from .schemas import Listing

SORT_KEYS = ("date", "price", "km")


def _as_int(value: Any) -> int:
    try:
        return int(value or 0)
    except (TypeError, ValueError):
        return 0


def matches(listing: Listing, search_text: str) -> bool:
    needle = (search_text or "").strip().lower()
    if not needle:
        return True
    return (
        needle in listing.brand.lower()
        or needle in listing.model.lower()
        or needle in str(listing.year)
    )


def query_listings(listings: Iterable[Listing], search_text: str = "", sort_key: str = "date") -> List[Listing]:
    """Filter by brand/model/year substring, then stable-sort by ``sort_key``.

    "price" sorts most expensive first, "km" lowest mileage first, and anything
    else (including "date") newest ``created_at`` first.
    """
    filtered = [l for l in listings if matches(l, search_text)]
    if sort_key == "price":
        return sorted(filtered, key=lambda l: _as_int(l.price), reverse=True)
    if sort_key == "km":
        return sorted(filtered, key=lambda l: _as_int(l.km))
    return sorted(filtered, key=lambda l: l.created_at, reverse=True)
