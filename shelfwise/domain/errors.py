"""Exception hierarchy shared by ports, adapters and services."""


class ShelfError(Exception):
    """Base class for all shelfwise errors."""


class LibraryStoreError(ShelfError):
    """
    A Library Store call failed.

    ``server_message`` is the human-readable reason reported by the
    service, if it sent one; ``message`` always has text for logging.
    """

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        server_message: str | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.server_message = server_message


class EntryAlreadyExists(LibraryStoreError):
    """The book is already in the reader's library (HTTP 409)."""


class BookNotFound(LibraryStoreError):
    """The book id is unknown to the store (HTTP 404)."""


class SessionExpired(LibraryStoreError):
    """The store rejected the session token (HTTP 401)."""
