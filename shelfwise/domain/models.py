"""Pydantic models for the records exchanged with the Library Store."""

from datetime import datetime
from typing import Generic, TypeVar

from pydantic import BaseModel, ConfigDict, Field, field_validator


class _Record(BaseModel):
    """Immutable record that accepts both camelCase wire names and field names."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)


class Review(_Record):
    reviewer: str = Field(alias="userName")
    rating: int = Field(ge=1, le=5)
    rated_at: datetime | None = Field(default=None, alias="ratedAt")


class Book(_Record):
    id: int
    title: str
    author: str
    genre: str
    isbn: str | None = None
    description: str | None = None
    cover_url: str | None = Field(default=None, alias="coverImageUrl")
    publish_year: int | None = Field(default=None, alias="publishYear")
    average_rating: float | None = Field(default=None, alias="averageRating")
    favorite_count: int = Field(default=0, alias="favoriteCount")
    reviews: list[Review] = Field(default_factory=list)
    created_at: datetime | None = Field(default=None, alias="createdAt")

    # listing, search and entry payloads send these as null
    @field_validator("favorite_count", mode="before")
    @classmethod
    def _null_count(cls, v: object) -> object:
        return 0 if v is None else v

    @field_validator("reviews", mode="before")
    @classmethod
    def _null_reviews(cls, v: object) -> object:
        return [] if v is None else v


class LibraryEntry(_Record):
    """A reader's relation to one book: membership, rating and favorite flag."""

    id: int | None = None
    book: Book
    rating: int | None = Field(default=None, ge=1, le=5)
    favorite: bool = Field(default=False, alias="isFavorite")
    read_at: datetime | None = Field(default=None, alias="readAt")

    @property
    def book_id(self) -> int:
        return self.book.id


class ReaderProfile(_Record):
    id: int | None = None
    email: str | None = None
    name: str
    created_at: datetime | None = Field(default=None, alias="createdAt")


T = TypeVar("T")


class Page(_Record, Generic[T]):
    """One page of a listing; ``content``/``totalPages`` follow the server's page shape."""

    items: list[T] = Field(default_factory=list, alias="content")
    total_pages: int = Field(default=0, alias="totalPages")
    total_items: int | None = Field(default=None, alias="totalElements")
    page: int = Field(default=0, alias="number")
    size: int | None = None
