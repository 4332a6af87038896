"""In-process Library Store for offline use and tests."""

import asyncio
import logging
from datetime import datetime, timezone

from shelfwise.domain.errors import BookNotFound, EntryAlreadyExists, LibraryStoreError
from shelfwise.domain.models import Book, LibraryEntry, Page, ReaderProfile, Review
from shelfwise.ports.library_store import LibraryStorePort

logger = logging.getLogger(__name__)

RECOMMENDATION_LIMIT = 10


class InMemoryLibraryStore(LibraryStorePort):
    """
    Library Store that keeps one reader's library in memory.

    Mirrors the service's observable behaviour: adding a book twice is a
    conflict, the aggregate rating is the mean of every reader's rating,
    favorite counts and reviews are derived from the entries. Ratings by
    other readers can be seeded through ``other_ratings`` so aggregates
    are not just the current reader's value.
    """

    def __init__(
        self,
        books: list[Book],
        reader: str = "reader",
        other_ratings: dict[int, list[int]] | None = None,
        latency: float = 0.0,
    ) -> None:
        self._books: dict[int, Book] = {book.id: book for book in books}
        self._reader = reader
        self._other_ratings = {k: list(v) for k, v in (other_ratings or {}).items()}
        self._entries: dict[int, LibraryEntry] = {}
        self._next_entry_id = 1
        self._latency = latency

    async def _tick(self) -> None:
        await asyncio.sleep(self._latency)  # yields control even at zero latency

    def _require_book(self, book_id: int) -> Book:
        try:
            return self._books[book_id]
        except KeyError:
            raise _reject(BookNotFound, f"Book not found with id: {book_id}", 404) from None

    def _require_entry(self, book_id: int) -> LibraryEntry:
        self._require_book(book_id)
        try:
            return self._entries[book_id]
        except KeyError:
            raise _reject(
                LibraryStoreError, "Book is not in your reading list", 400
            ) from None

    def _materialize(self, book_id: int) -> Book:
        """Book with aggregate rating, favorite count and reviews recomputed."""
        book = self._books[book_id]
        ratings = list(self._other_ratings.get(book_id, []))
        entry = self._entries.get(book_id)
        reviews: list[Review] = []
        if entry and entry.rating:
            ratings.append(entry.rating)
            reviews.append(
                Review(reviewer=self._reader, rating=entry.rating, rated_at=entry.read_at)
            )
        average = round(sum(ratings) / len(ratings), 2) if ratings else None
        return book.model_copy(
            update={
                "average_rating": average,
                "favorite_count": int(bool(entry and entry.favorite)),
                "reviews": reviews,
            }
        )

    def _save(self, entry: LibraryEntry) -> LibraryEntry:
        entry = entry.model_copy(update={"book": self._materialize(entry.book_id)})
        self._entries[entry.book_id] = entry
        return entry

    @staticmethod
    def _paginate(books: list[Book], page: int, size: int) -> Page[Book]:
        if page < 0 or size <= 0:
            raise _reject(LibraryStoreError, "Invalid page request", 400)
        total_pages = -(-len(books) // size)
        start = page * size
        return Page[Book](
            items=books[start : start + size],
            total_pages=total_pages,
            total_items=len(books),
            page=page,
            size=size,
        )

    # ── Catalog ─────────────────────────────────────

    async def get_book(self, book_id: int) -> Book:
        await self._tick()
        self._require_book(book_id)
        return self._materialize(book_id)

    async def list_books(self, page: int, size: int) -> Page[Book]:
        await self._tick()
        books = [self._materialize(book_id) for book_id in self._books]
        return self._paginate(books, page, size)

    async def search_books(self, query: str, page: int, size: int) -> Page[Book]:
        await self._tick()
        needle = query.strip().lower()
        books = [
            self._materialize(book.id)
            for book in self._books.values()
            if needle in book.title.lower()
            or needle in book.author.lower()
            or needle in book.genre.lower()
        ]
        return self._paginate(books, page, size)

    # ── Reader library ──────────────────────────────

    async def list_entries(self) -> list[LibraryEntry]:
        await self._tick()
        return [self._save(entry) for entry in list(self._entries.values())]

    async def add_entry(self, book_id: int) -> LibraryEntry:
        await self._tick()
        self._require_book(book_id)
        if book_id in self._entries:
            raise _reject(EntryAlreadyExists, "Book already in user's list", 409)
        entry = LibraryEntry(id=self._next_entry_id, book=self._books[book_id])
        self._next_entry_id += 1
        logger.info("InMemoryStore: %s added book %s", self._reader, book_id)
        return self._save(entry)

    async def remove_entry(self, book_id: int) -> None:
        await self._tick()
        self._require_entry(book_id)
        del self._entries[book_id]
        logger.info("InMemoryStore: %s removed book %s", self._reader, book_id)

    async def rate(self, book_id: int, value: int) -> LibraryEntry:
        await self._tick()
        if not 1 <= value <= 5:
            raise _reject(LibraryStoreError, "Rating must be between 1 and 5", 400)
        entry = self._require_entry(book_id)
        return self._save(
            entry.model_copy(
                update={"rating": value, "read_at": datetime.now(timezone.utc)}
            )
        )

    async def clear_rating(self, book_id: int) -> LibraryEntry:
        await self._tick()
        entry = self._require_entry(book_id)
        return self._save(entry.model_copy(update={"rating": None, "read_at": None}))

    async def toggle_favorite(self, book_id: int) -> LibraryEntry:
        await self._tick()
        entry = self._require_entry(book_id)
        return self._save(entry.model_copy(update={"favorite": not entry.favorite}))

    # ── Reader ──────────────────────────────────────

    async def recommendations(self) -> list[Book]:
        """Unread books scored by genre/author affinity plus their aggregate rating."""
        await self._tick()
        liked = [
            e.book for e in self._entries.values() if e.favorite or (e.rating or 0) >= 4
        ]
        genres = {b.genre for b in liked}
        authors = {b.author for b in liked}

        scored: list[tuple[float, int]] = []
        for book_id, book in self._books.items():
            if book_id in self._entries:
                continue
            score = self._materialize(book_id).average_rating or 0.0
            if book.genre in genres:
                score += 2.0
            if book.author in authors:
                score += 2.0
            scored.append((score, book_id))

        scored.sort(key=lambda item: (-item[0], item[1]))
        return [self._materialize(book_id) for _, book_id in scored[:RECOMMENDATION_LIMIT]]

    async def profile(self) -> ReaderProfile:
        await self._tick()
        return ReaderProfile(name=self._reader)


def _reject(
    error_cls: type[LibraryStoreError], message: str, status_code: int
) -> LibraryStoreError:
    """Build the error the remote service would report for this failure."""
    return error_cls(message, status_code=status_code, server_message=message)
