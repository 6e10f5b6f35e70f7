# billager/errors.py
"""Exceptions raised by the persistence, auth and contact layers.

Field-level validation problems are not exceptions: the validation engine
returns them as a ``{field: message}`` mapping. ``InvalidDraftError`` only
exists so a gateway can refuse a draft that skipped validation.
"""
from typing import Dict


class BillagerError(Exception):
    """Base class for every error raised by this package."""


class NotFoundError(BillagerError):
    def __init__(self, listing_id: str):
        super().__init__(f"Listing {listing_id} not found")
        self.listing_id = listing_id


class PersistenceError(BillagerError):
    """The backing store is unreachable or rejected the operation."""


class InvalidDraftError(BillagerError):
    def __init__(self, errors: Dict[str, str]):
        super().__init__("Draft failed validation: " + ", ".join(sorted(errors)))
        self.errors = dict(errors)


class IntentError(BillagerError):
    """A contact action (call / email) could not be dispatched."""


class AuthError(BillagerError):
    pass
