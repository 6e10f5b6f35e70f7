# billager/validation.py
"""Field validation for listing drafts.

``validate`` never raises: it returns ``{field: message}`` with one entry per
offending field, an empty dict meaning the draft may be committed. Every rule
is evaluated, so a draft missing three fields gets three messages.
"""
import re
from datetime import date
from typing import Any, Dict, Optional

from .schemas import ListingDraft

MIN_YEAR = 1900
# largest value an INTEGER column holds on every supported database
MAX_INT = 2**31 - 1

_INT_RE = re.compile(r"-?[0-9]+")

# field -> label used in "<Label> is required"
REQUIRED_FIELDS = {
    "brand": "Brand",
    "model": "Model",
    "year": "Year",
    "km": "Mileage",
    "price": "Price",
    "owner_name": "Name",
    "owner_phone": "Phone",
}


def _parse_int(value: str) -> Optional[int]:
    value = value.strip()
    if not _INT_RE.fullmatch(value):
        return None
    return int(value)


def validate(draft: ListingDraft, current_year: Optional[int] = None) -> Dict[str, str]:
    if current_year is None:
        current_year = date.today().year
    errors: Dict[str, str] = {}

    for field, label in REQUIRED_FIELDS.items():
        if not getattr(draft, field).strip():
            errors[field] = f"{label} is required"

    if draft.year.strip():
        year = _parse_int(draft.year)
        if year is None or not MIN_YEAR <= year <= current_year + 1:
            errors["year"] = "Invalid year"

    if draft.km.strip():
        km = _parse_int(draft.km)
        if km is None or not 0 <= km <= MAX_INT:
            errors["km"] = "Invalid mileage"

    if draft.price.strip():
        price = _parse_int(draft.price)
        if price is None or not 0 <= price <= MAX_INT:
            errors["price"] = "Invalid price"

    email = draft.owner_email.strip()
    if email and "@" not in email:
        errors["owner_email"] = "Invalid email address"

    return errors


def is_valid(draft: ListingDraft, current_year: Optional[int] = None) -> bool:
    return not validate(draft, current_year)


def draft_to_fields(draft: ListingDraft) -> Dict[str, Any]:
    """Typed listing fields for a draft that already passed ``validate``."""
    return {
        "brand": draft.brand.strip(),
        "model": draft.model.strip(),
        "year": int(draft.year.strip()),
        "km": int(draft.km.strip()),
        "price": int(draft.price.strip()),
        "description": draft.description.strip() or None,
        "images": list(draft.images),
        "owner_name": draft.owner_name.strip(),
        "owner_phone": draft.owner_phone.strip(),
        "owner_email": draft.owner_email.strip() or None,
    }
