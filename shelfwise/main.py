"""Client factory: entry point for Shelfwise."""

import logging
from dataclasses import dataclass

from shelfwise.adapters.http.library_store import HttpLibraryStoreAdapter
from shelfwise.adapters.memory.library_store import InMemoryLibraryStore
from shelfwise.adapters.session.token import TokenSession
from shelfwise.config import Settings, StoreBackend, settings
from shelfwise.domain.models import Book
from shelfwise.ports.library_store import LibraryStorePort
from shelfwise.services.catalog import CatalogBrowser
from shelfwise.services.library import LibraryController
from shelfwise.services.notices import NoticeBoard
from shelfwise.services.profile import ProfileView
from shelfwise.services.recommendations import RecommendationFeed

logger = logging.getLogger(__name__)


def configure_logging(level: str = settings.log_level) -> None:
    logging.basicConfig(
        level=level,
        format="%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
    )


@dataclass
class ShelfClient:
    """Everything a front end needs, wired to one store and one session."""

    store: LibraryStorePort
    session: TokenSession
    notices: NoticeBoard
    library: LibraryController
    catalog: CatalogBrowser
    profile: ProfileView
    recommendations: RecommendationFeed

    async def aclose(self) -> None:
        if isinstance(self.store, HttpLibraryStoreAdapter):
            await self.store.aclose()


def build_store(
    config: Settings,
    session: TokenSession,
    catalog: list[Book] | None = None,
) -> LibraryStorePort:
    """Pick the Library Store implementation for the configured backend."""
    if config.store_backend is StoreBackend.MEMORY:
        return InMemoryLibraryStore(catalog or [], reader=session.display_name or "reader")
    return HttpLibraryStoreAdapter(
        base_url=config.api_base_url,
        token_provider=lambda: session.token,
        timeout=config.request_timeout_seconds,
    )


def create_client(
    config: Settings | None = None,
    session: TokenSession | None = None,
    store: LibraryStorePort | None = None,
) -> ShelfClient:
    """Build a client; ``store`` overrides the configured backend."""
    config = config or settings
    session = session or TokenSession()
    store = store or build_store(config, session)

    configure_logging(config.log_level)
    logger.info("Shelfwise client starting up...")
    logger.info("Store backend: %s", config.store_backend.value)
    logger.info("Page size: %d", config.page_size)

    notices = NoticeBoard(ttl=config.notice_ttl_seconds)
    library = LibraryController(store, session, notices=notices)
    return ShelfClient(
        store=store,
        session=session,
        notices=notices,
        library=library,
        catalog=CatalogBrowser(
            store, page_size=config.page_size, library=library, session=session
        ),
        profile=ProfileView(library, store),
        recommendations=RecommendationFeed(store, session),
    )
