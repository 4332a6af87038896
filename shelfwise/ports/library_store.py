"""Library Store port: abstract interface for the remote book service."""

from abc import ABC, abstractmethod

from shelfwise.domain.models import Book, LibraryEntry, Page, ReaderProfile


class LibraryStorePort(ABC):
    """
    Remote source of truth for the catalog and the reader's library.

    Failures raise ``LibraryStoreError`` or one of its subclasses:
    ``EntryAlreadyExists`` when adding a book twice, ``BookNotFound`` for
    unknown ids and ``SessionExpired`` when the session token is rejected.
    """

    # ── Catalog ─────────────────────────────────────

    @abstractmethod
    async def get_book(self, book_id: int) -> Book:
        """Fetch one book with its current aggregate rating."""
        ...

    @abstractmethod
    async def list_books(self, page: int, size: int) -> Page[Book]:
        """Fetch one page of the unfiltered catalog."""
        ...

    @abstractmethod
    async def search_books(self, query: str, page: int, size: int) -> Page[Book]:
        """Fetch one page of books matching ``query``."""
        ...

    # ── Reader library ──────────────────────────────

    @abstractmethod
    async def list_entries(self) -> list[LibraryEntry]:
        """Fetch every entry in the reader's library, in server order."""
        ...

    @abstractmethod
    async def add_entry(self, book_id: int) -> LibraryEntry:
        """Add a book to the reader's library."""
        ...

    @abstractmethod
    async def remove_entry(self, book_id: int) -> None:
        """Remove a book, with its rating and favorite flag, from the library."""
        ...

    @abstractmethod
    async def rate(self, book_id: int, value: int) -> LibraryEntry:
        """Set the reader's 1-5 rating; the server recomputes the aggregate."""
        ...

    @abstractmethod
    async def clear_rating(self, book_id: int) -> LibraryEntry:
        """Remove the reader's rating."""
        ...

    @abstractmethod
    async def toggle_favorite(self, book_id: int) -> LibraryEntry:
        """Flip the favorite flag; the returned entry carries the new value."""
        ...

    # ── Reader ──────────────────────────────────────

    @abstractmethod
    async def recommendations(self) -> list[Book]:
        """Fetch recommended books for the reader, best first."""
        ...

    @abstractmethod
    async def profile(self) -> ReaderProfile:
        """Fetch the reader's profile."""
        ...
