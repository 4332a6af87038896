"""Reader profile: library entries and the favorites / rated / unrated filters over them."""

import logging
from collections.abc import Sequence
from enum import Enum

from shelfwise.domain.errors import LibraryStoreError
from shelfwise.domain.models import LibraryEntry, ReaderProfile
from shelfwise.domain.outcomes import ActionResult, Outcome
from shelfwise.ports.library_store import LibraryStorePort
from shelfwise.services.library import LibraryController

logger = logging.getLogger(__name__)


class LibraryFilter(str, Enum):
    ALL = "all"
    FAVORITES = "favorites"
    RATED = "rated"
    UNRATED = "unrated"


def matches(entry: LibraryEntry, library_filter: LibraryFilter) -> bool:
    if library_filter is LibraryFilter.FAVORITES:
        return entry.favorite
    if library_filter is LibraryFilter.RATED:
        return (entry.rating or 0) > 0
    if library_filter is LibraryFilter.UNRATED:
        return not entry.rating
    return True


def filter_entries(
    entries: Sequence[LibraryEntry], library_filter: LibraryFilter
) -> list[LibraryEntry]:
    """Entries matching the filter, in their original order."""
    return [entry for entry in entries if matches(entry, library_filter)]


def filter_counts(entries: Sequence[LibraryEntry]) -> dict[LibraryFilter, int]:
    return {f: len(filter_entries(entries, f)) for f in LibraryFilter}


class ProfileView:
    """Profile page state: who the reader is, their entries, and the active filter."""

    def __init__(self, controller: LibraryController, store: LibraryStorePort) -> None:
        self._controller = controller
        self._store = store
        self.profile: ReaderProfile | None = None
        self.entries: list[LibraryEntry] = []
        self.active_filter = LibraryFilter.ALL
        self.error: str | None = None

    async def load(self) -> bool:
        """Fetch profile and entries; on failure keep the previous data and set ``error``."""
        self.error = None
        try:
            self.profile = await self._store.profile()
            self.entries = await self._controller.sync_entries()
        except LibraryStoreError as exc:
            logger.warning("Profile load failed: %s", exc.message)
            self.error = "Failed to load profile data. Please try again later."
            return False
        logger.info("Profile loaded: %d entries", len(self.entries))
        return True

    def set_filter(self, library_filter: LibraryFilter) -> None:
        self.active_filter = library_filter

    @property
    def visible(self) -> list[LibraryEntry]:
        return filter_entries(self.entries, self.active_filter)

    @property
    def counts(self) -> dict[LibraryFilter, int]:
        return filter_counts(self.entries)

    async def remove(self, book_id: int) -> ActionResult:
        result = await self._controller.remove_from_library(book_id)
        if result.outcome is Outcome.SUCCEEDED:
            self.entries = [e for e in self.entries if e.book_id != book_id]
        return result

    async def toggle_favorite(self, book_id: int) -> ActionResult:
        result = await self._controller.toggle_favorite(book_id)
        if result.outcome is Outcome.SUCCEEDED:
            self.entries = [
                e.model_copy(update={"favorite": result.state.favorite})
                if e.book_id == book_id
                else e
                for e in self.entries
            ]
        return result
