import uuid
from datetime import datetime, timezone

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Column,
    DateTime,
    ForeignKey,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import relationship

from .database import Base

PRIORITY_LEVELS = ("LOW", "MEDIUM", "HIGH")
RATING_VALUES = ("1", "2", "3", "4", "5")


def _new_id() -> str:
    return str(uuid.uuid4())


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _owner_fk():
    return Column(String(36), ForeignKey("users.id", ondelete="CASCADE"), index=True, nullable=False)


def _timestamps():
    return (
        Column(DateTime(timezone=True), default=utcnow, nullable=False),
        Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow, nullable=False),
    )


_children = dict(cascade="all, delete-orphan", passive_deletes=True)


class User(Base):
    __tablename__ = "users"
    # Subject issued by the identity provider
    id = Column(String(36), primary_key=True)
    email = Column(String(320), unique=True, nullable=False)
    name = Column(String(255), nullable=True)
    created_at, updated_at = _timestamps()

    todos = relationship("Todo", back_populates="user", **_children)
    photos = relationship("Photo", back_populates="user", **_children)
    food_photos = relationship("FoodPhoto", back_populates="user", **_children)
    food_reviews = relationship("FoodReview", back_populates="user", **_children)
    pokemon = relationship("Pokemon", back_populates="user", **_children)
    pokemon_reviews = relationship("PokemonReview", back_populates="user", **_children)
    notes = relationship("Note", back_populates="user", **_children)


class Todo(Base):
    __tablename__ = "todos"
    id = Column(String(36), primary_key=True, default=_new_id)
    user_id = _owner_fk()
    title = Column(String(255), nullable=False)
    completed = Column(Boolean, default=False, nullable=False)
    priority = Column(String(6), default="MEDIUM", nullable=False)
    created_at, updated_at = _timestamps()

    user = relationship("User", back_populates="todos")

    __table_args__ = (
        CheckConstraint("priority IN ('LOW', 'MEDIUM', 'HIGH')", name="ck_todos_priority"),
    )


class Photo(Base):
    __tablename__ = "photos"
    id = Column(String(36), primary_key=True, default=_new_id)
    user_id = _owner_fk()
    name = Column(String(255), nullable=False)
    url = Column(Text, nullable=False)
    storage_path = Column(String(512), nullable=False)
    size = Column(Integer, nullable=True)
    mime_type = Column(String(100), nullable=True)
    created_at, updated_at = _timestamps()

    user = relationship("User", back_populates="photos")


class FoodPhoto(Base):
    __tablename__ = "food_photos"
    id = Column(String(36), primary_key=True, default=_new_id)
    user_id = _owner_fk()
    name = Column(String(255), nullable=False)
    url = Column(Text, nullable=False)
    storage_path = Column(String(512), nullable=False)
    size = Column(Integer, nullable=True)
    mime_type = Column(String(100), nullable=True)
    created_at, updated_at = _timestamps()

    user = relationship("User", back_populates="food_photos")
    reviews = relationship("FoodReview", back_populates="food_photo", **_children)


class FoodReview(Base):
    __tablename__ = "food_reviews"
    id = Column(String(36), primary_key=True, default=_new_id)
    food_photo_id = Column(String(36), ForeignKey("food_photos.id", ondelete="CASCADE"), index=True, nullable=False)
    user_id = _owner_fk()
    content = Column(Text, nullable=False)
    rating = Column(String(1), nullable=False)
    created_at, updated_at = _timestamps()

    food_photo = relationship("FoodPhoto", back_populates="reviews")
    user = relationship("User", back_populates="food_reviews")

    __table_args__ = (
        CheckConstraint("rating IN ('1', '2', '3', '4', '5')", name="ck_food_reviews_rating"),
    )


class Pokemon(Base):
    __tablename__ = "pokemon"
    id = Column(String(36), primary_key=True, default=_new_id)
    user_id = _owner_fk()
    # Identifier in the external catalog
    pokemon_id = Column(String(64), nullable=False)
    name = Column(String(255), nullable=False)
    image_url = Column(Text, nullable=False)
    created_at, updated_at = _timestamps()

    user = relationship("User", back_populates="pokemon")
    reviews = relationship("PokemonReview", back_populates="pokemon", **_children)

    __table_args__ = (
        UniqueConstraint("user_id", "pokemon_id", name="uq_pokemon_user_external"),
    )


class PokemonReview(Base):
    __tablename__ = "pokemon_reviews"
    id = Column(String(36), primary_key=True, default=_new_id)
    pokemon_id = Column(String(36), ForeignKey("pokemon.id", ondelete="CASCADE"), index=True, nullable=False)
    user_id = _owner_fk()
    content = Column(Text, nullable=False)
    rating = Column(String(1), nullable=False)
    created_at, updated_at = _timestamps()

    pokemon = relationship("Pokemon", back_populates="reviews")
    user = relationship("User", back_populates="pokemon_reviews")

    __table_args__ = (
        CheckConstraint("rating IN ('1', '2', '3', '4', '5')", name="ck_pokemon_reviews_rating"),
    )


class Note(Base):
    __tablename__ = "notes"
    id = Column(String(36), primary_key=True, default=_new_id)
    user_id = _owner_fk()
    title = Column(String(255), nullable=False)
    content = Column(Text, default="", nullable=False)
    created_at, updated_at = _timestamps()

    user = relationship("User", back_populates="notes")
