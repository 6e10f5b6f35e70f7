# billager/services.py
"""Screen controllers: sequencing of validation, persistence and queries.

Controllers never raise for expected failures. Each action returns an
``Outcome`` naming the screen to show next plus any field errors or
dismissible notification; the caller decides how to render it.
"""
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional, Tuple

from .contact import IntentDispatcher, email_target, phone_target
from .errors import IntentError, NotFoundError, PersistenceError
from .gateway import ListingGateway
from .query import query_listings
from .schemas import EDITABLE_FIELDS, Listing, ListingDraft
from .utils import logger
from .validation import validate

LIST = "list"
FORM = "form"
DETAILS = "details"

FILL_REQUIRED = "Please fill all required fields"
GONE = "This car no longer exists"
DELETE_PROMPT = ("Delete Car", "Are you sure you want to delete this car?")


@dataclass
class Outcome:
    screen: str
    listing: Optional[Listing] = None
    errors: Dict[str, str] = field(default_factory=dict)
    notification: Optional[str] = None

    @property
    def ok(self) -> bool:
        return not self.errors and self.notification is None


def _notify(message: str, exc: Exception) -> str:
    logger.warning("%s: %s", message, exc)
    return message


class ListingForm:
    """Add and edit flows; passing ``existing`` switches to edit semantics."""

    def __init__(self, gateway: ListingGateway, existing: Optional[Listing] = None):
        self.gateway = gateway
        self.existing = existing
        self.draft = ListingDraft.from_listing(existing) if existing else ListingDraft()
        self.errors: Dict[str, str] = {}

    @property
    def is_edit(self) -> bool:
        return self.existing is not None

    def set_field(self, name: str, value) -> None:
        if name not in EDITABLE_FIELDS or name == "images":
            raise ValueError(f"Unknown form field: {name}")
        self.draft = self.draft.model_copy(update={name: "" if value is None else str(value)})
        self.errors.pop(name, None)

    def add_images(self, uris: Iterable[str]) -> None:
        self.draft = self.draft.model_copy(update={"images": [*self.draft.images, *uris]})

    def remove_image(self, index: int) -> None:
        images = list(self.draft.images)
        del images[index]
        self.draft = self.draft.model_copy(update={"images": images})

    def submit(self) -> Outcome:
        errors = validate(self.draft)
        if errors:
            self.errors = errors
            return Outcome(FORM, errors=dict(errors), notification=FILL_REQUIRED)
        try:
            if self.existing:
                listing = self.gateway.update(self.existing.id, self.draft)
            else:
                listing = self.gateway.insert(self.draft)
        except NotFoundError as e:
            return Outcome(LIST, notification=_notify(GONE, e))
        except PersistenceError as e:
            verb = "update" if self.is_edit else "save"
            return Outcome(FORM, notification=_notify(f"Could not {verb} car", e))
        self.errors = {}
        return Outcome(LIST, listing=listing)


class ListingDetails:
    def __init__(self, gateway: ListingGateway, listing: Listing, dispatcher: Optional[IntentDispatcher] = None):
        self.gateway = gateway
        self.listing = listing
        self.dispatcher = dispatcher or IntentDispatcher()

    @property
    def was_edited(self) -> bool:
        return self.listing.updated_at != self.listing.created_at

    def request_delete(self) -> Tuple[str, str]:
        return DELETE_PROMPT

    def delete(self, confirmed: bool) -> Outcome:
        if not confirmed:
            return Outcome(DETAILS, listing=self.listing)
        try:
            self.gateway.delete(self.listing.id)
        except NotFoundError as e:
            return Outcome(LIST, notification=_notify(GONE, e))
        except PersistenceError as e:
            return Outcome(DETAILS, listing=self.listing, notification=_notify("Could not delete car", e))
        return Outcome(LIST)

    def call_owner(self) -> Optional[str]:
        """Returns a notification when the call could not be started."""
        if not self.listing.owner_phone:
            return None
        try:
            self.dispatcher.open(phone_target(self.listing.owner_phone))
        except IntentError as e:
            return _notify("Could not make call", e)
        return None

    def email_owner(self) -> Optional[str]:
        if not self.listing.owner_email:
            return None
        try:
            self.dispatcher.open(email_target(self.listing.owner_email))
        except IntentError as e:
            return _notify("Could not open email", e)
        return None


class ListingBrowser:
    """List screen: holds the last fetched snapshot, never mutates it in place."""

    def __init__(self, gateway: ListingGateway):
        self.gateway = gateway
        self.snapshot: Tuple[Listing, ...] = ()

    def refresh(self) -> Optional[str]:
        try:
            self.snapshot = tuple(self.gateway.list_all())
        except PersistenceError as e:
            return _notify("Could not load cars", e)
        return None

    def visible(self, search_text: str = "", sort_key: str = "date") -> List[Listing]:
        return query_listings(self.snapshot, search_text, sort_key)

    def headline(self, listings: Optional[List[Listing]] = None) -> str:
        count = len(self.snapshot if listings is None else listings)
        return f"{count} cars for sale"
