# tests/test_services.py
import pytest

from billager.contact import IntentDispatcher
from billager.errors import NotFoundError, PersistenceError
from billager.gateway import LocalStoreGateway
from billager.services import DELETE_PROMPT, DETAILS, FILL_REQUIRED, FORM, GONE, LIST, ListingBrowser, ListingDetails, ListingForm


class BrokenGateway(LocalStoreGateway):
    """Reads work, every write fails."""

    def _write(self, records):
        raise PersistenceError("disk full")


def fill(form, draft):
    for name, value in draft.model_dump().items():
        if name == "images":
            form.add_images(value)
        else:
            form.set_field(name, value)


def test_add_flow_saves_and_returns_to_list(gateway, make_draft):
    form = ListingForm(gateway)
    fill(form, make_draft())
    outcome = form.submit()
    assert outcome.ok and outcome.screen == LIST
    assert gateway.list_all() == [outcome.listing]


def test_validation_failure_stays_on_form(gateway):
    form = ListingForm(gateway)
    form.set_field("brand", "Volvo")
    outcome = form.submit()
    assert outcome.screen == FORM
    assert outcome.notification == FILL_REQUIRED
    assert "brand" not in outcome.errors and outcome.errors["model"] == "Model is required"
    assert gateway.list_all() == []


def test_setting_a_field_clears_its_error(gateway):
    form = ListingForm(gateway)
    form.submit()
    assert "model" in form.errors
    form.set_field("model", "V70")
    assert "model" not in form.errors and "brand" in form.errors


def test_unknown_field_rejected(gateway):
    with pytest.raises(ValueError):
        ListingForm(gateway).set_field("colour", "red")


def test_persistence_failure_keeps_draft(store, make_draft):
    form = ListingForm(BrokenGateway(store))
    fill(form, make_draft())
    outcome = form.submit()
    assert outcome.screen == FORM
    assert outcome.notification == "Could not save car"
    assert form.draft == make_draft()


def test_edit_preloads_draft_and_updates(gateway, make_draft):
    existing = gateway.insert(make_draft())
    form = ListingForm(gateway, existing=existing)
    assert form.is_edit
    assert form.draft == make_draft()
    form.set_field("price", 90000)
    outcome = form.submit()
    assert outcome.screen == LIST
    assert outcome.listing.id == existing.id
    assert outcome.listing.price == 90000


def test_edit_of_deleted_listing_returns_to_list(gateway, make_draft):
    existing = gateway.insert(make_draft())
    gateway.delete(existing.id)
    outcome = ListingForm(gateway, existing=existing).submit()
    assert outcome.screen == LIST and outcome.notification == GONE


def test_edit_failure_message(store, make_draft):
    existing = LocalStoreGateway(store).insert(make_draft())
    outcome = ListingForm(BrokenGateway(store), existing=existing).submit()
    assert outcome.screen == FORM and outcome.notification == "Could not update car"


def test_images_append_and_remove_in_order(gateway):
    form = ListingForm(gateway)
    form.add_images(["a", "b"])
    form.add_images(["c"])
    form.remove_image(1)
    assert form.draft.images == ["a", "c"]


def test_delete_needs_confirmation(gateway, make_draft):
    listing = gateway.insert(make_draft())
    details = ListingDetails(gateway, listing)
    assert details.request_delete() == DELETE_PROMPT
    outcome = details.delete(confirmed=False)
    assert outcome.screen == DETAILS
    assert gateway.list_all() == [listing]
    assert details.delete(confirmed=True).screen == LIST
    assert gateway.list_all() == []


def test_delete_failure_keeps_listing(store, make_draft):
    listing = LocalStoreGateway(store).insert(make_draft())
    outcome = ListingDetails(BrokenGateway(store), listing).delete(confirmed=True)
    assert outcome.screen == DETAILS and outcome.notification == "Could not delete car"
    assert LocalStoreGateway(store).list_all() == [listing]


def test_delete_twice_reports_gone(gateway, make_draft):
    listing = gateway.insert(make_draft())
    details = ListingDetails(gateway, listing)
    details.delete(confirmed=True)
    outcome = details.delete(confirmed=True)
    assert outcome.screen == LIST and outcome.notification == GONE


def test_contact_intents(gateway, make_draft):
    opened = []
    dispatcher = IntentDispatcher(lambda target: opened.append(target) or True)
    details = ListingDetails(gateway, gateway.insert(make_draft()), dispatcher)
    assert details.call_owner() is None
    assert details.email_owner() is None
    assert opened == ["tel:+4712345678", "mailto:kari@example.no"]


def test_contact_failure_is_a_notification(gateway, make_draft):
    details = ListingDetails(gateway, gateway.insert(make_draft()), IntentDispatcher(lambda target: False))
    assert details.call_owner() == "Could not make call"
    assert details.email_owner() == "Could not open email"


def test_email_skipped_without_address(gateway, make_draft):
    opened = []
    dispatcher = IntentDispatcher(lambda target: opened.append(target) or True)
    details = ListingDetails(gateway, gateway.insert(make_draft(owner_email="")), dispatcher)
    assert details.email_owner() is None
    assert opened == []


def test_was_edited(gateway, make_draft):
    listing = gateway.insert(make_draft())
    assert not ListingDetails(gateway, listing).was_edited
    edited = gateway.update(listing.id, make_draft(price="1"))
    assert ListingDetails(gateway, edited).was_edited


def test_browser_refresh_and_query(gateway, make_draft):
    gateway.insert(make_draft(year="2018", price="100000"))
    gateway.insert(make_draft(year="2020", price="300000"))
    gateway.insert(make_draft(year="2019", price="200000"))
    browser = ListingBrowser(gateway)
    assert browser.visible() == []
    assert browser.refresh() is None
    assert [l.price for l in browser.visible("volvo", "price")] == [300000, 200000, 100000]
    assert [l.year for l in browser.visible("2020")] == [2020]
    assert browser.headline() == "3 cars for sale"
    assert browser.headline(browser.visible("2020")) == "1 cars for sale"


def test_browser_keeps_snapshot_on_failure(gateway, make_draft):
    gateway.insert(make_draft())
    browser = ListingBrowser(gateway)
    browser.refresh()

    def fail():
        raise PersistenceError("offline")

    gateway.list_all = fail
    assert browser.refresh() == "Could not load cars"
    assert len(browser.snapshot) == 1


def test_snapshot_is_not_touched_by_later_mutations(gateway, make_draft):
    browser = ListingBrowser(gateway)
    browser.refresh()
    gateway.insert(make_draft())
    assert browser.snapshot == ()
    browser.refresh()
    assert len(browser.snapshot) == 1
