from datetime import datetime
from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, EmailStr, field_validator
from pydantic.alias_generators import to_camel

# --- Listing Status ---
DOG_STATUSES = ("active", "claimed", "archived")
DogStatus = Literal["active", "claimed", "archived"]

MAX_IMAGES_PER_REPORT = 3

REQUIRED_MESSAGES = {
    "color": "Color is required",
    "description": "Description is required",
    "address": "Address is required",
    "city": "City is required",
    "latitude": "Please mark the location on the map",
    "longitude": "Please mark the location on the map",
    "date_found": "Date found is required",
    "time_found": "Approximate time is required",
}


class CamelModel(BaseModel):
    """Snake-case attributes in Python, camelCase keys on the wire."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# --- Dog Listing Schemas ---
# Schema for REPORTING a found dog (what the finder submits)
class DogReportData(CamelModel):
    breed: Optional[str] = None
    color: str
    description: str
    image_urls: List[str]
    address: str
    city: str
    latitude: str  # kept as text to avoid float round-trips
    longitude: str
    date_found: str
    time_found: str
    finder_name: str
    finder_phone: str
    finder_email: EmailStr

    @field_validator(*REQUIRED_MESSAGES)
    @classmethod
    def _not_blank(cls, value: str, info) -> str:
        if not value.strip():
            raise ValueError(REQUIRED_MESSAGES[info.field_name])
        return value

    @field_validator("image_urls")
    @classmethod
    def _image_count(cls, value: List[str]) -> List[str]:
        if not value:
            raise ValueError("Please upload at least one image")
        if len(value) > MAX_IMAGES_PER_REPORT:
            raise ValueError(f"At most {MAX_IMAGES_PER_REPORT} images are allowed")
        return value

    @field_validator("finder_name")
    @classmethod
    def _finder_name(cls, value: str) -> str:
        if len(value.strip()) < 2:
            raise ValueError("Your name is required")
        return value

    @field_validator("finder_phone")
    @classmethod
    def _finder_phone(cls, value: str) -> str:
        if len(value.strip()) < 7:
            raise ValueError("Valid phone number is required")
        return value


# Schema for internal storage (report fields + server-assigned fields)
class DogInDB(CamelModel):
    id: int
    breed: Optional[str] = None
    color: str
    description: str
    image_urls: List[str]
    address: str
    city: str
    latitude: str
    longitude: str
    date_found: str
    time_found: str
    status: DogStatus = "active"
    finder_name: str
    finder_phone: str
    finder_email: str
    created_at: datetime


class StatusUpdate(BaseModel):
    status: DogStatus


# --- Account Schemas ---
class AccountCreate(BaseModel):
    username: str
    password: str


class AccountInDB(CamelModel):
    id: int
    username: str
    password_hash: str
    is_admin: bool = False


class AccountPublic(CamelModel):
    """Account as shown to clients; never carries the password hash."""
    id: int
    username: str
    is_admin: bool = False

    @classmethod
    def from_account(cls, account: AccountInDB) -> "AccountPublic":
        return cls(id=account.id, username=account.username, is_admin=account.is_admin)


class LoginData(BaseModel):
    username: str
    password: str
