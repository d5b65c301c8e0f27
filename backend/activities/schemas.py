import re
from datetime import datetime
from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from .models import PRIORITY_LEVELS

NAME_MAX_LENGTH = 255
REVIEW_MAX_LENGTH = 1000

_RATING_RE = re.compile(r"^[1-5]$")
_UUID_RE = re.compile(r"^[0-9a-fA-F]{8}-[0-9a-fA-F]{4}-[0-9a-fA-F]{4}-[0-9a-fA-F]{4}-[0-9a-fA-F]{12}$")
_EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")

SortField = Literal["name", "createdAt"]
SortOrder = Literal["asc", "desc"]


def _required_text(value, label: str, max_length: int = NAME_MAX_LENGTH):
    if value is None:
        raise ValueError(f"{label} is required")
    if not isinstance(value, str):
        raise ValueError(f"{label} must be text")
    value = value.strip()
    if not value:
        raise ValueError(f"{label} is required")
    if len(value) > max_length:
        raise ValueError(f"{label} is too long")
    return value


def _rating(value):
    if isinstance(value, int) and not isinstance(value, bool):
        value = str(value)
    if not isinstance(value, str) or not _RATING_RE.match(value.strip()):
        raise ValueError("Rating must be between 1 and 5")
    return value.strip()


def is_uuid(value) -> bool:
    return isinstance(value, str) and bool(_UUID_RE.match(value))


class _Input(BaseModel):
    # Unknown keys (user_id included) are dropped, never trusted
    model_config = ConfigDict(extra="ignore")


# ---------- auth ----------

class LoginInput(_Input):
    email: str = Field(default="", validate_default=True)
    password: str = Field(default="", validate_default=True)

    @field_validator("email", mode="before")
    @classmethod
    def _email(cls, v):
        if not isinstance(v, str) or not _EMAIL_RE.match(v.strip()):
            raise ValueError("Invalid email address")
        return v.strip().lower()

    @field_validator("password", mode="before")
    @classmethod
    def _password(cls, v):
        if not isinstance(v, str) or not v:
            raise ValueError("Password is required")
        return v


class SignupInput(LoginInput):
    name: str = Field(default="", validate_default=True)

    @field_validator("name", mode="before")
    @classmethod
    def _name(cls, v):
        return _required_text(v, "Display name")

    @field_validator("password", mode="before")
    @classmethod
    def _password(cls, v):
        if not isinstance(v, str) or len(v) < 6:
            raise ValueError("Password must be at least 6 characters")
        return v


class UserOut(BaseModel):
    id: str
    email: str
    name: Optional[str]

    class Config:
        from_attributes = True


class SessionOut(BaseModel):
    user: UserOut
    access_token: str
    expires_in: Optional[int] = None


# ---------- listing ----------

class ListOptions(_Input):
    search: Optional[str] = None
    sort_by: SortField = "createdAt"
    sort_order: SortOrder = "desc"


# ---------- todos ----------

class TodoCreate(_Input):
    title: str = Field(default="", validate_default=True)
    priority: str = Field(default="MEDIUM", validate_default=True)

    @field_validator("title", mode="before")
    @classmethod
    def _title(cls, v):
        return _required_text(v, "Title")

    @field_validator("priority", mode="before")
    @classmethod
    def _priority(cls, v):
        if v is None or v == "":
            return "MEDIUM"
        if v not in PRIORITY_LEVELS:
            raise ValueError("Priority must be LOW, MEDIUM or HIGH")
        return v


class TodoUpdate(_Input):
    title: Optional[str] = None
    completed: Optional[bool] = None
    priority: Optional[str] = None

    @field_validator("title", mode="before")
    @classmethod
    def _title(cls, v):
        return None if v is None else _required_text(v, "Title")

    @field_validator("priority", mode="before")
    @classmethod
    def _priority(cls, v):
        if v is not None and v not in PRIORITY_LEVELS:
            raise ValueError("Priority must be LOW, MEDIUM or HIGH")
        return v


class TodoOut(BaseModel):
    id: str
    title: str
    completed: bool
    priority: str
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


# ---------- photos / food photos ----------

class PhotoName(_Input):
    name: str = Field(default="", validate_default=True)

    @field_validator("name", mode="before")
    @classmethod
    def _name(cls, v):
        return _required_text(v, "Name")


class PhotoOut(BaseModel):
    id: str
    name: str
    url: str
    storage_path: str
    size: Optional[int]
    mime_type: Optional[str]
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


# ---------- reviews ----------

class ReviewInput(_Input):
    content: str = Field(default="", validate_default=True)
    rating: str = Field(default="", validate_default=True)

    @field_validator("content", mode="before")
    @classmethod
    def _content(cls, v):
        if v is None or (isinstance(v, str) and not v.strip()):
            raise ValueError("Review content is required")
        return _required_text(v, "Review", REVIEW_MAX_LENGTH)

    @field_validator("rating", mode="before")
    @classmethod
    def _rating(cls, v):
        return _rating(v)


class ReviewOut(BaseModel):
    id: str
    content: str
    rating: str
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class FoodReviewOut(ReviewOut):
    food_photo_id: str


class PokemonReviewOut(ReviewOut):
    pokemon_id: str


class FoodPhotoDetail(BaseModel):
    photo: PhotoOut
    reviews: List[FoodReviewOut]
    average_rating: float
    review_count: int


# ---------- pokemon ----------

class PokemonSave(_Input):
    pokemon_id: str = Field(default="", validate_default=True)
    name: str = Field(default="", validate_default=True)
    image_url: str = Field(default="", validate_default=True)

    @field_validator("pokemon_id", mode="before")
    @classmethod
    def _pokemon_id(cls, v):
        if isinstance(v, int) and not isinstance(v, bool):
            v = str(v)
        return _required_text(v, "Pokemon ID", 64)

    @field_validator("name", mode="before")
    @classmethod
    def _name(cls, v):
        return _required_text(v, "Name")

    @field_validator("image_url", mode="before")
    @classmethod
    def _image_url(cls, v):
        if not isinstance(v, str) or not re.match(r"^https?://\S+$", v.strip()):
            raise ValueError("Invalid image URL")
        return v.strip()


class PokemonOut(BaseModel):
    id: str
    pokemon_id: str
    name: str
    image_url: str
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class PokemonSaved(BaseModel):
    id: str
    created: bool


class PokemonDetail(BaseModel):
    pokemon: PokemonOut
    reviews: List[PokemonReviewOut]
    average_rating: float
    review_count: int


class CatalogPokemon(BaseModel):
    id: int
    name: str
    image_url: Optional[str]
    types: List[str]
    height: Optional[int] = None
    weight: Optional[int] = None


class Suggestion(BaseModel):
    name: str
    reason: str = ""


class SuggestionsOut(BaseModel):
    suggestions: List[Suggestion]
    error: Optional[str] = None


# ---------- notes ----------

class NoteCreate(_Input):
    title: str = Field(default="", validate_default=True)
    content: str = ""

    @field_validator("title", mode="before")
    @classmethod
    def _title(cls, v):
        return _required_text(v, "Title")

    @field_validator("content", mode="before")
    @classmethod
    def _content(cls, v):
        return "" if v is None else v


class NoteUpdate(_Input):
    title: Optional[str] = None
    content: Optional[str] = None

    @field_validator("title", mode="before")
    @classmethod
    def _title(cls, v):
        return None if v is None else _required_text(v, "Title")


class NoteOut(BaseModel):
    id: str
    title: str
    content: str
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True
