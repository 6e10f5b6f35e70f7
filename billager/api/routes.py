# billager/api/routes.py
from fastapi import APIRouter, Depends, Header, HTTPException, Query
from typing import Optional
from .. import schemas
from ..auth import AuthService
from ..config import Settings, settings
from ..contact import email_target, phone_target
from ..db import SessionLocal
from ..errors import AuthError, NotFoundError, PersistenceError
from ..gateway import ListingGateway, build_gateway
from ..query import SORT_KEYS
from ..services import GONE, ListingBrowser, ListingDetails, ListingForm
from ..store import KeyValueStore
from ..utils import logger

router = APIRouter()


def get_settings() -> Settings:
    return settings

def get_session_factory():
    return SessionLocal

def get_auth(
    session_factory=Depends(get_session_factory),
    cfg: Settings = Depends(get_settings),
) -> AuthService:
    return AuthService(session_factory, KeyValueStore(cfg.local_store_path))

def get_current_user(
    x_session_token: Optional[str] = Header(None),
    auth: AuthService = Depends(get_auth),
) -> schemas.UserOut:
    user = auth.resolve_token(x_session_token)
    if user is None:
        raise HTTPException(status_code=401, detail="Sign in required")
    return user

def get_gateway(
    user: schemas.UserOut = Depends(get_current_user),
    cfg: Settings = Depends(get_settings),
    session_factory=Depends(get_session_factory),
) -> ListingGateway:
    return build_gateway(cfg, session_factory, user_id=user.id)

def _load(gateway: ListingGateway, listing_id: str) -> schemas.Listing:
    try:
        return gateway.get(listing_id)
    except NotFoundError:
        raise HTTPException(status_code=404, detail="Listing not found")
    except PersistenceError as e:
        logger.warning("Could not load car %s: %s", listing_id, e)
        raise HTTPException(status_code=503, detail="Could not load car")

def _raise_for(outcome):
    if outcome.errors:
        raise HTTPException(status_code=422, detail=outcome.errors)
    if outcome.notification == GONE:
        raise HTTPException(status_code=404, detail=GONE)
    if outcome.notification:
        raise HTTPException(status_code=503, detail=outcome.notification)


@router.get("/health")
def health():
    return {"status": "ok"}


@router.post("/auth/signup", response_model=schemas.UserOut, status_code=201)
def sign_up(payload: schemas.SignUp, auth: AuthService = Depends(get_auth)):
    try:
        return auth.sign_up(payload.username, payload.email, payload.password, payload.phone)
    except AuthError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except PersistenceError:
        raise HTTPException(status_code=503, detail="Sign up failed")


@router.post("/auth/signin", response_model=schemas.SessionOut)
def sign_in(payload: schemas.SignIn, auth: AuthService = Depends(get_auth)):
    try:
        token, user = auth.sign_in(payload.email, payload.password)
    except AuthError as e:
        raise HTTPException(status_code=401, detail=str(e))
    except PersistenceError:
        raise HTTPException(status_code=503, detail="Login failed")
    return {"token": token, "user": user}


@router.post("/auth/signout")
def sign_out(x_session_token: Optional[str] = Header(None), auth: AuthService = Depends(get_auth)):
    try:
        auth.sign_out(x_session_token)
    except PersistenceError:
        raise HTTPException(status_code=503, detail="Could not sign out")
    return {"status": "signed out"}


@router.get("/listings", response_model=schemas.ListingPage)
def listings(
    q: str = Query(""),
    sort: str = Query("date", description=f"One of {', '.join(SORT_KEYS)}; anything else sorts by date"),
    gateway: ListingGateway = Depends(get_gateway),
):
    browser = ListingBrowser(gateway)
    notice = browser.refresh()
    if notice:
        raise HTTPException(status_code=503, detail=notice)
    items = browser.visible(q, sort)
    return {"headline": browser.headline(items), "items": items}


@router.get("/listings/{listing_id}", response_model=schemas.Listing)
def get_listing(listing_id: str, gateway: ListingGateway = Depends(get_gateway)):
    return _load(gateway, listing_id)


@router.post("/listings", response_model=schemas.Listing, status_code=201)
def create_listing(payload: schemas.ListingDraft, gateway: ListingGateway = Depends(get_gateway)):
    form = ListingForm(gateway)
    form.draft = payload
    outcome = form.submit()
    _raise_for(outcome)
    return outcome.listing


@router.put("/listings/{listing_id}", response_model=schemas.Listing)
def update_listing(listing_id: str, payload: schemas.ListingDraft, gateway: ListingGateway = Depends(get_gateway)):
    form = ListingForm(gateway, existing=_load(gateway, listing_id))
    form.draft = form.draft.model_copy(update=payload.model_dump(exclude_unset=True))
    outcome = form.submit()
    _raise_for(outcome)
    return outcome.listing


@router.delete("/listings/{listing_id}")
def delete_listing(
    listing_id: str,
    confirm: bool = Query(False),
    gateway: ListingGateway = Depends(get_gateway),
):
    details = ListingDetails(gateway, _load(gateway, listing_id))
    if not confirm:
        title, message = details.request_delete()
        raise HTTPException(status_code=409, detail={"title": title, "message": message})
    outcome = details.delete(confirmed=True)
    _raise_for(outcome)
    return {"status": "deleted"}


@router.get("/listings/{listing_id}/contact/{kind}", response_model=schemas.ContactOut)
def contact_target(listing_id: str, kind: str, gateway: ListingGateway = Depends(get_gateway)):
    listing = _load(gateway, listing_id)
    if kind == "phone":
        return {"target": phone_target(listing.owner_phone)}
    if kind == "email":
        if not listing.owner_email:
            raise HTTPException(status_code=404, detail="No email for this car")
        return {"target": email_target(listing.owner_email)}
    raise HTTPException(status_code=404, detail="Unknown contact kind")
