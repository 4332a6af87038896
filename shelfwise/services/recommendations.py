"""Recommendations page state."""

import logging

from shelfwise.domain.errors import LibraryStoreError, SessionExpired
from shelfwise.domain.models import Book
from shelfwise.domain.outcomes import Outcome
from shelfwise.ports.library_store import LibraryStorePort
from shelfwise.ports.session import SessionPort

logger = logging.getLogger(__name__)


class RecommendationFeed:
    """Books the service recommends for the signed-in reader, in the order given."""

    def __init__(self, store: LibraryStorePort, session: SessionPort) -> None:
        self._store = store
        self._session = session
        self.books: list[Book] = []
        self.error: str | None = None

    async def load(self) -> Outcome:
        if not self._session.is_authenticated:
            return Outcome.AUTH_REQUIRED

        self.error = None
        try:
            self.books = await self._store.recommendations()
        except SessionExpired:
            self._session.logout()
            return Outcome.AUTH_REQUIRED
        except LibraryStoreError as exc:
            logger.warning("Recommendations failed: %s", exc.message)
            self.error = "Failed to load recommendations. Please try again later."
            return Outcome.FAILED

        logger.info("Loaded %d recommendations", len(self.books))
        return Outcome.SUCCEEDED
