# billager/schemas.py
from pydantic import BaseModel, ConfigDict, Field, field_validator
from typing import List, Optional
from datetime import datetime, timezone

EDITABLE_FIELDS = (
    "brand", "model", "year", "km", "price", "description",
    "images", "owner_name", "owner_phone", "owner_email",
)

class ListingDraft(BaseModel):
    """Editable listing fields as typed into a form; nothing is checked here."""
    model_config = ConfigDict(coerce_numbers_to_str=True)

    brand: str = ""
    model: str = ""
    year: str = ""
    km: str = ""
    price: str = ""
    description: str = ""
    images: List[str] = Field(default_factory=list)
    owner_name: str = ""
    owner_phone: str = ""
    owner_email: str = ""

    @field_validator("description", "owner_email", mode="before")
    @classmethod
    def _none_to_empty(cls, v):
        return "" if v is None else v

    @classmethod
    def from_listing(cls, listing: "Listing") -> "ListingDraft":
        return cls(
            brand=listing.brand,
            model=listing.model,
            year=str(listing.year),
            km=str(listing.km),
            price=str(listing.price),
            description=listing.description or "",
            images=list(listing.images),
            owner_name=listing.owner_name,
            owner_phone=listing.owner_phone,
            owner_email=listing.owner_email or "",
        )

class Listing(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    brand: str
    model: str
    year: int
    km: int
    price: int
    description: Optional[str] = None
    images: List[str] = Field(default_factory=list)
    owner_name: str
    owner_phone: str
    owner_email: Optional[str] = None
    created_at: datetime
    updated_at: datetime

    @field_validator("created_at", "updated_at")
    @classmethod
    def _assume_utc(cls, v: datetime) -> datetime:
        # sqlite hands back naive datetimes
        return v if v.tzinfo else v.replace(tzinfo=timezone.utc)

class UserOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    username: str
    email: str
    phone: str

class SignUp(BaseModel):
    username: str = ""
    email: str = ""
    password: str = ""
    phone: str = ""

class SignIn(BaseModel):
    email: str = ""
    password: str = ""

class SessionOut(BaseModel):
    token: str
    user: UserOut

class ListingPage(BaseModel):
    headline: str
    items: List[Listing]

class ContactOut(BaseModel):
    target: str
