"""
Library interaction controller.

Drives a reader's per-book library state: membership, rating and favorite
flag. Rating or favoriting a book that is not yet in the library first
adds it; that add is never rolled back when the second step fails, and
the result is reported as a tagged ``Outcome`` instead of an exception.
State is only changed after the store confirms an effect.
"""

import logging
from collections.abc import AsyncIterator, Awaitable, Callable
from contextlib import asynccontextmanager
from dataclasses import dataclass

from shelfwise.domain.errors import EntryAlreadyExists, LibraryStoreError, SessionExpired
from shelfwise.domain.models import Book, LibraryEntry
from shelfwise.domain.outcomes import ActionResult, Notice, NoticeKind, Outcome
from shelfwise.domain.state import ActionClass, BookState, BookStateStore
from shelfwise.ports.library_store import LibraryStorePort
from shelfwise.ports.session import SessionPort
from shelfwise.services.notices import NoticeBoard

logger = logging.getLogger(__name__)

SESSION_EXPIRED_MESSAGE = "Your session has expired. Please sign in again."


def _success(message: str) -> Notice:
    return Notice(NoticeKind.SUCCESS, message)


def _error(message: str) -> Notice:
    return Notice(NoticeKind.ERROR, message)


@dataclass(frozen=True)
class _Step:
    """Result of one remote effect."""

    ok: bool
    entry: LibraryEntry | None = None
    conflict: bool = False
    error: LibraryStoreError | None = None

    @property
    def session_expired(self) -> bool:
        return isinstance(self.error, SessionExpired)

    def message(self, fallback: str) -> str:
        """The server's reason for the failure, else ``fallback``."""
        if self.error is not None and self.error.server_message:
            return self.error.server_message
        return fallback


@dataclass(frozen=True)
class _AttributeAction:
    """How one attribute mutation is reported, standalone and after an implicit add."""

    name: str
    failed: str
    added_and_done: Callable[[LibraryEntry], str]
    done: Callable[[LibraryEntry], str]


_RATE = _AttributeAction(
    name="rate",
    failed="Failed to submit rating. Please try again.",
    added_and_done=lambda entry: "Book added to your list and rated successfully!",
    done=lambda entry: "Rating submitted successfully!",
)

_FAVORITE = _AttributeAction(
    name="favorite",
    failed="Failed to update favorite status.",
    added_and_done=lambda entry: (
        "Book added to your list and marked as favorite!"
        if entry.favorite
        else "Book added to your list!"
    ),
    done=lambda entry: (
        "Added to favorites!" if entry.favorite else "Removed from favorites!"
    ),
)

_COMPOUND_FAILED = {
    "rate": "Rating failed. Please try again.",
    "favorite": "Failed to mark as favorite. Please try again.",
}


class LibraryController:
    """
    Per-book state machine over the reader's library.

    One controller serves every view; state lives in a ``BookStateStore``
    keyed by book id so it outlives any single view and can be observed
    through ``BookStateStore.subscribe``.
    """

    def __init__(
        self,
        store: LibraryStorePort,
        session: SessionPort,
        notices: NoticeBoard | None = None,
        states: BookStateStore | None = None,
    ) -> None:
        self._store = store
        self._session = session
        self.notices = notices or NoticeBoard()
        self.states = states or BookStateStore()
        self._books: dict[int, Book] = {}

    # ── Queries ─────────────────────────────────────

    def state(self, book_id: int) -> BookState:
        return self.states.get(book_id)

    def book(self, book_id: int) -> Book | None:
        """Last fetched copy of the book, if any."""
        return self._books.get(book_id)

    def is_enabled(self, book_id: int, action: ActionClass) -> bool:
        """Whether the control for ``action`` should accept input for this book."""
        return not self.state(book_id).in_flight(action)

    # ── Loading ─────────────────────────────────────

    async def load_book(self, book_id: int) -> Book:
        """Fetch a book for display and, for a signed-in reader, its library state."""
        book = await self._store.get_book(book_id)
        self._books[book_id] = book
        if self._session.is_authenticated:
            try:
                await self.sync_entries()
            except LibraryStoreError as exc:
                logger.warning("Could not load library for book %s: %s", book_id, exc.message)
        return book

    async def sync_entries(self) -> list[LibraryEntry]:
        """
        Seed state from the reader's full entry set.

        Books this controller knew as in-library but that are missing from
        the server's set are reset to not-in-library.
        """
        entries = await self._store.list_entries()
        present = set()
        for entry in entries:
            present.add(entry.book_id)
            # entry books omit favorite counts and reviews; keep any detail copy
            self._books.setdefault(entry.book_id, entry.book)
            current = self.state(entry.book_id)
            self.states.set(
                entry.book_id,
                BookState(
                    in_library=True,
                    rating=entry.rating or 0,
                    favorite=entry.favorite,
                    add_in_flight=current.add_in_flight,
                    rate_in_flight=current.rate_in_flight,
                    favorite_in_flight=current.favorite_in_flight,
                ),
            )
        for book_id, state in self.states:
            if book_id not in present and state.in_library:
                self.states.set(book_id, state.removed())
        logger.debug("Synced %d library entries", len(entries))
        return entries

    # ── Actions ─────────────────────────────────────

    async def add_to_library(self, book_id: int) -> ActionResult:
        rejected = self._preflight(book_id, ActionClass.ADD)
        if rejected is not None:
            return rejected

        async with self._in_flight(book_id, ActionClass.ADD):
            step = await self._ensure_membership(book_id)

        if step.ok and step.conflict:
            return self._finish(
                book_id,
                Outcome.ALREADY_PRESENT,
                Notice(NoticeKind.INFO, "This book is already in your reading list."),
            )
        if step.ok:
            return self._finish(
                book_id, Outcome.SUCCEEDED, _success("Book added to your reading list!")
            )
        if step.session_expired:
            return self._finish(book_id, Outcome.AUTH_REQUIRED)
        return self._finish(
            book_id,
            Outcome.FAILED,
            _error("Failed to add book to your list. Please try again."),
        )

    async def remove_from_library(self, book_id: int) -> ActionResult:
        rejected = self._preflight(book_id, ActionClass.ADD)
        if rejected is not None:
            return rejected

        async with self._in_flight(book_id, ActionClass.ADD):
            step = await self._call(book_id, "remove", self._store.remove_entry(book_id))
            if step.ok:
                # membership, rating and favorite go in one transition
                self.states.set(book_id, self.state(book_id).removed())
                logger.info("Removed book %s from library", book_id)

        if step.ok:
            return self._finish(
                book_id, Outcome.SUCCEEDED, _success("Book removed from your reading list!")
            )
        if step.session_expired:
            return self._finish(book_id, Outcome.AUTH_REQUIRED)
        return self._finish(
            book_id,
            Outcome.FAILED,
            _error("Failed to remove book from your list. Please try again."),
        )

    async def rate(self, book_id: int, value: int) -> ActionResult:
        """Rate a book 1-5, adding it to the library first when needed."""
        if isinstance(value, bool) or not isinstance(value, int) or not 1 <= value <= 5:
            raise ValueError(f"rating must be an integer from 1 to 5, got {value!r}")
        rejected = self._preflight(book_id, ActionClass.RATE)
        if rejected is not None:
            return rejected

        async with self._in_flight(book_id, ActionClass.RATE):
            outcome, notices = await self._mutate(
                book_id,
                _RATE,
                lambda: self._store.rate(book_id, value),
                lambda entry: {"rating": value},
            )
            if outcome in (Outcome.SUCCEEDED, Outcome.BOTH_SUCCEEDED):
                await self._refresh_book(book_id)

        return self._finish(book_id, outcome, *notices)

    async def unrate(self, book_id: int) -> ActionResult:
        rejected = self._preflight(
            book_id,
            ActionClass.RATE,
            applies=lambda state: state.in_library and state.rating > 0,
        )
        if rejected is not None:
            return rejected

        async with self._in_flight(book_id, ActionClass.RATE):
            step = await self._call(book_id, "unrate", self._store.clear_rating(book_id))
            if step.ok:
                self._apply(book_id, rating=0)
                await self._refresh_book(book_id)

        if step.ok:
            return self._finish(
                book_id, Outcome.SUCCEEDED, _success("Rating removed successfully!")
            )
        if step.session_expired:
            return self._finish(book_id, Outcome.AUTH_REQUIRED)
        return self._finish(
            book_id,
            Outcome.FAILED,
            _error(step.message("Failed to remove rating. Please try again.")),
        )

    async def toggle_favorite(self, book_id: int) -> ActionResult:
        """Flip the favorite flag to whatever the store reports, adding the book first when needed."""
        rejected = self._preflight(book_id, ActionClass.FAVORITE)
        if rejected is not None:
            return rejected

        async with self._in_flight(book_id, ActionClass.FAVORITE):
            outcome, notices = await self._mutate(
                book_id,
                _FAVORITE,
                lambda: self._store.toggle_favorite(book_id),
                lambda entry: {"favorite": entry.favorite},
            )

        return self._finish(book_id, outcome, *notices)

    # ── Internals ───────────────────────────────────

    def _preflight(
        self,
        book_id: int,
        action: ActionClass,
        applies: Callable[[BookState], bool] | None = None,
    ) -> ActionResult | None:
        """Reject the action before any remote call, or clear stale notices and return None."""
        if not self._session.is_authenticated:
            logger.info("%s on book %s requires sign-in", action.value, book_id)
            return ActionResult(Outcome.AUTH_REQUIRED, self.state(book_id))
        if self.state(book_id).in_flight(action):
            logger.debug("%s on book %s ignored: already in flight", action.value, book_id)
            return ActionResult(Outcome.IN_FLIGHT, self.state(book_id))
        if applies is not None and not applies(self.state(book_id)):
            return ActionResult(Outcome.NOT_APPLICABLE, self.state(book_id))
        self.notices.dismiss(NoticeKind.SUCCESS)
        self.notices.dismiss(NoticeKind.ERROR)
        return None

    @asynccontextmanager
    async def _in_flight(self, book_id: int, action: ActionClass) -> AsyncIterator[None]:
        self.states.set(book_id, self.state(book_id).with_in_flight(action, True))
        try:
            yield
        finally:
            self.states.set(book_id, self.state(book_id).with_in_flight(action, False))

    async def _call(
        self,
        book_id: int,
        name: str,
        effect: Awaitable[LibraryEntry | None],
        conflict_ok: bool = False,
    ) -> _Step:
        """Await one remote effect and classify its result."""
        try:
            entry = await effect
        except EntryAlreadyExists as exc:
            if not conflict_ok:
                logger.warning("Book %s: %s conflicted: %s", book_id, name, exc.message)
                return _Step(ok=False, error=exc)
            logger.info("Book %s: already in library", book_id)
            return _Step(ok=True, conflict=True)
        except SessionExpired as exc:
            logger.warning("Book %s: %s rejected, session expired", book_id, name)
            self._session.logout()
            return _Step(ok=False, error=exc)
        except LibraryStoreError as exc:
            logger.warning("Book %s: %s failed: %s", book_id, name, exc.message)
            return _Step(ok=False, error=exc)
        return _Step(ok=True, entry=entry)

    async def _ensure_membership(self, book_id: int) -> _Step:
        step = await self._call(
            book_id, "add", self._store.add_entry(book_id), conflict_ok=True
        )
        if step.ok:
            self.states.update(book_id, in_library=True)
            logger.info("Book %s is in library", book_id)
        return step

    async def _mutate(
        self,
        book_id: int,
        action: _AttributeAction,
        effect: Callable[[], Awaitable[LibraryEntry]],
        changes: Callable[[LibraryEntry], dict[str, object]],
    ) -> tuple[Outcome, list[Notice]]:
        """
        Run an attribute mutation, as a compound operation when the book is
        not yet in the library: add first, mutate only if the add held.
        """
        compound = not self.state(book_id).in_library
        if compound:
            added = await self._ensure_membership(book_id)
            if not added.ok:
                if added.session_expired:
                    return Outcome.AUTH_REQUIRED, []
                return Outcome.FIRST_FAILED, [_error("Failed to add book. Please try again.")]

        step = await self._call(book_id, action.name, effect())
        if not step.ok:
            if compound:
                message = (
                    SESSION_EXPIRED_MESSAGE
                    if step.session_expired
                    else _COMPOUND_FAILED[action.name]
                )
                return Outcome.FIRST_ONLY_SUCCEEDED, [
                    _success("Book added to your list!"),
                    _error(message),
                ]
            if step.session_expired:
                return Outcome.AUTH_REQUIRED, []
            return Outcome.FAILED, [_error(step.message(action.failed))]

        self._apply(book_id, **changes(step.entry))
        if compound:
            return Outcome.BOTH_SUCCEEDED, [_success(action.added_and_done(step.entry))]
        return Outcome.SUCCEEDED, [_success(action.done(step.entry))]

    def _apply(self, book_id: int, **changes: object) -> None:
        """Apply confirmed attribute changes, unless the book left the library meanwhile."""
        if not self.state(book_id).in_library:
            logger.info("Book %s left the library before %s applied", book_id, changes)
            return
        self.states.update(book_id, **changes)

    async def _refresh_book(self, book_id: int) -> None:
        """Re-fetch the book so its aggregate rating reflects the server's recompute."""
        try:
            self._books[book_id] = await self._store.get_book(book_id)
        except LibraryStoreError as exc:
            logger.warning("Book %s: refresh after rating failed: %s", book_id, exc.message)

    def _finish(self, book_id: int, outcome: Outcome, *notices: Notice) -> ActionResult:
        self.notices.post_all(notices)
        return ActionResult(outcome, self.state(book_id), tuple(notices))
