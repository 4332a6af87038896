import asyncio

import pytest

from shelfwise.adapters.memory.library_store import InMemoryLibraryStore
from shelfwise.adapters.session.token import TokenSession
from shelfwise.domain.errors import LibraryStoreError
from shelfwise.domain.models import Book
from shelfwise.services.library import LibraryController
from shelfwise.services.notices import NoticeBoard


class RecordingStore(InMemoryLibraryStore):
    """
    In-memory store that records every call and can be told to fail or
    to block a call until the test releases it.
    """

    def __init__(self, *args, **kwargs) -> None:
        super().__init__(*args, **kwargs)
        self.calls: list[tuple[str, tuple]] = []
        self._failures: dict[str, list[LibraryStoreError]] = {}
        self._gates: dict[str, asyncio.Event] = {}

    def fail_next(self, name: str, error: LibraryStoreError | None = None) -> None:
        self._failures.setdefault(name, []).append(
            error or LibraryStoreError("boom", status_code=500)
        )

    def hold(self, name: str) -> asyncio.Event:
        """Block calls to ``name`` until the returned event is set."""
        gate = asyncio.Event()
        self._gates[name] = gate
        return gate

    def unhold(self, name: str) -> None:
        """Stop blocking new calls to ``name``; calls already waiting stay blocked."""
        self._gates.pop(name, None)

    def count(self, name: str) -> int:
        return sum(1 for call, _ in self.calls if call == name)

    @property
    def call_names(self) -> list[str]:
        return [call for call, _ in self.calls]

    async def _enter(self, name: str, *args) -> None:
        self.calls.append((name, args))
        gate = self._gates.get(name)
        if gate is not None:
            await gate.wait()
        queued = self._failures.get(name)
        if queued:
            raise queued.pop(0)

    async def get_book(self, book_id):
        await self._enter("get_book", book_id)
        return await super().get_book(book_id)

    async def list_books(self, page, size):
        await self._enter("list_books", page, size)
        return await super().list_books(page, size)

    async def search_books(self, query, page, size):
        await self._enter("search_books", query, page, size)
        return await super().search_books(query, page, size)

    async def list_entries(self):
        await self._enter("list_entries")
        return await super().list_entries()

    async def add_entry(self, book_id):
        await self._enter("add_entry", book_id)
        return await super().add_entry(book_id)

    async def remove_entry(self, book_id):
        await self._enter("remove_entry", book_id)
        return await super().remove_entry(book_id)

    async def rate(self, book_id, value):
        await self._enter("rate", book_id, value)
        return await super().rate(book_id, value)

    async def clear_rating(self, book_id):
        await self._enter("clear_rating", book_id)
        return await super().clear_rating(book_id)

    async def toggle_favorite(self, book_id):
        await self._enter("toggle_favorite", book_id)
        return await super().toggle_favorite(book_id)

    async def recommendations(self):
        await self._enter("recommendations")
        return await super().recommendations()

    async def profile(self):
        await self._enter("profile")
        return await super().profile()


async def settle(rounds: int = 20) -> None:
    """Let scheduled tasks run until they block."""
    for _ in range(rounds):
        await asyncio.sleep(0)


def make_books(count: int = 30) -> list[Book]:
    genres = ["Fantasy", "Science Fiction", "Mystery"]
    return [
        Book(
            id=i,
            title=f"Book {i}",
            author=f"Author {i % 4}",
            genre=genres[i % len(genres)],
            publish_year=1950 + i,
        )
        for i in range(1, count + 1)
    ]


@pytest.fixture
def books() -> list[Book]:
    return make_books()


@pytest.fixture
def store(books) -> RecordingStore:
    return RecordingStore(books, reader="Ada", other_ratings={1: [2], 2: [5, 3]})


@pytest.fixture
def session() -> TokenSession:
    return TokenSession(token="secret-token", display_name="Ada")


@pytest.fixture
def anonymous() -> TokenSession:
    return TokenSession()


@pytest.fixture
def notices() -> NoticeBoard:
    return NoticeBoard(ttl=60.0)


@pytest.fixture
def controller(store, session, notices) -> LibraryController:
    return LibraryController(store, session, notices=notices)
