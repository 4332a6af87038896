"""Catalog browsing: paginated listing and search."""

import logging
from collections.abc import Awaitable

from shelfwise.domain.errors import LibraryStoreError
from shelfwise.domain.models import Book, Page
from shelfwise.ports.library_store import LibraryStorePort
from shelfwise.ports.session import SessionPort
from shelfwise.services.library import LibraryController

logger = logging.getLogger(__name__)


class CatalogBrowser:
    """
    Book list state: the current page of either the default listing or a search.

    A search always starts from page 0 and forgets the listing's page;
    leaving the search re-issues the listing from page 0. A blank query
    is the default listing, not a search.

    When a ``library`` controller is given, the reader's entries are synced
    into it after each load so cards can show in-library badges.
    """

    def __init__(
        self,
        store: LibraryStorePort,
        page_size: int = 12,
        library: LibraryController | None = None,
        session: SessionPort | None = None,
    ) -> None:
        if page_size <= 0:
            raise ValueError("page_size must be positive")
        self._store = store
        self._library = library
        self._session = session
        self.page_size = page_size
        self.page = 0
        self.total_pages = 0
        self.items: list[Book] = []
        self.query: str | None = None
        self.error: str | None = None
        self.loading = False

    @property
    def searching(self) -> bool:
        return self.query is not None

    async def open(self, page: int = 0) -> bool:
        """Show the default listing at ``page`` (e.g. taken from a bookmarked URL)."""
        if page < 0:
            raise ValueError(f"page must not be negative, got {page}")
        return await self._load(
            page,
            None,
            self._store.list_books(page, self.page_size),
            "Failed to load books. Please try again later.",
        )

    async def search(self, query: str) -> bool:
        """Replace the listing with results for ``query``, starting at page 0."""
        query = query.strip()
        if not query:
            return await self.open(0)
        logger.info("Searching catalog for %r", query)
        return await self._load(
            0,
            query,
            self._store.search_books(query, 0, self.page_size),
            "Failed to search books. Please try again.",
        )

    async def clear_search(self) -> bool:
        return await self.open(0)

    async def go_to_page(self, page: int) -> bool:
        """Move to ``page`` within whichever mode is active."""
        if page < 0:
            raise ValueError(f"page must not be negative, got {page}")
        if self.query is None:
            return await self.open(page)
        return await self._load(
            page,
            self.query,
            self._store.search_books(self.query, page, self.page_size),
            "Failed to search books. Please try again.",
        )

    @property
    def has_previous(self) -> bool:
        return self.page > 0

    @property
    def has_next(self) -> bool:
        return self.page + 1 < self.total_pages

    async def _load(
        self,
        page: int,
        query: str | None,
        fetch: Awaitable[Page[Book]],
        failure: str,
    ) -> bool:
        self.loading = True
        self.error = None
        try:
            result = await fetch
        except LibraryStoreError as exc:
            logger.warning("Catalog page %d failed: %s", page, exc.message)
            self.error = failure
            return False
        finally:
            self.loading = False

        self.items = list(result.items)
        self.total_pages = result.total_pages
        self.page = page
        self.query = query
        await self._sync_library()
        return True

    async def _sync_library(self) -> None:
        if self._library is None or self._session is None:
            return
        if not self._session.is_authenticated:
            return
        try:
            await self._library.sync_entries()
        except LibraryStoreError as exc:
            # badges are optional; the listing itself loaded
            logger.warning("Could not sync library for catalog: %s", exc.message)
