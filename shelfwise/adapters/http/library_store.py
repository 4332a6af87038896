"""Library Store adapter speaking the book service's REST API over httpx."""

import logging
from collections.abc import Callable
from typing import Any, TypeVar

import httpx
from pydantic import TypeAdapter, ValidationError

from shelfwise.domain.errors import (
    BookNotFound,
    EntryAlreadyExists,
    LibraryStoreError,
    SessionExpired,
)
from shelfwise.domain.models import Book, LibraryEntry, Page, ReaderProfile
from shelfwise.ports.library_store import LibraryStorePort

logger = logging.getLogger(__name__)

T = TypeVar("T")

_ENTRIES = TypeAdapter(list[LibraryEntry])
_BOOKS = TypeAdapter(list[Book])


def _entries(data: Any) -> list[LibraryEntry]:
    return _ENTRIES.validate_python([] if data is None else data)


def _books(data: Any) -> list[Book]:
    return _BOOKS.validate_python([] if data is None else data)


_STATUS_ERRORS: dict[int, type[LibraryStoreError]] = {
    401: SessionExpired,
    404: BookNotFound,
    409: EntryAlreadyExists,
}


class HttpLibraryStoreAdapter(LibraryStorePort):
    """
    Library Store backed by the remote REST service.

    The bearer token is read from ``token_provider`` on every request so a
    login or logout takes effect without rebuilding the adapter.
    """

    def __init__(
        self,
        base_url: str,
        token_provider: Callable[[], str | None],
        timeout: float = 10.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._token_provider = token_provider
        self._client = httpx.AsyncClient(
            base_url=base_url.rstrip("/"),
            timeout=timeout,
            transport=transport,
        )

    async def aclose(self) -> None:
        await self._client.aclose()

    async def _request(self, method: str, path: str, **kwargs: Any) -> Any:
        """Send a request and return the decoded JSON body (None when empty)."""
        headers = {}
        token = self._token_provider()
        if token:
            headers["Authorization"] = f"Bearer {token}"

        logger.debug("%s %s", method, path)
        try:
            resp = await self._client.request(method, path, headers=headers, **kwargs)
            resp.raise_for_status()
        except httpx.HTTPStatusError as exc:
            raise _translate(exc.response) from exc
        except httpx.TransportError as exc:
            logger.warning("%s %s failed: %s", method, path, exc)
            raise LibraryStoreError(f"Could not reach the library service: {exc}") from exc

        if not resp.content:
            return None
        try:
            return resp.json()
        except ValueError as exc:
            raise _unexpected(resp, exc) from exc

    async def _fetch(
        self, parse: Callable[[Any], T], method: str, path: str, **kwargs: Any
    ) -> T:
        """Request ``path`` and parse its body, treating a malformed body as a store error."""
        data = await self._request(method, path, **kwargs)
        try:
            return parse(data)
        except (ValidationError, TypeError) as exc:
            raise _unexpected_body(method, path, exc) from exc

    # ── Catalog ─────────────────────────────────────

    async def get_book(self, book_id: int) -> Book:
        return await self._fetch(Book.model_validate, "GET", f"/books/{book_id}")

    async def list_books(self, page: int, size: int) -> Page[Book]:
        return await self._fetch(
            Page[Book].model_validate, "GET", "/books", params={"page": page, "size": size}
        )

    async def search_books(self, query: str, page: int, size: int) -> Page[Book]:
        return await self._fetch(
            Page[Book].model_validate,
            "GET",
            "/books/search",
            params={"query": query, "page": page, "size": size},
        )

    # ── Reader library ──────────────────────────────

    async def list_entries(self) -> list[LibraryEntry]:
        return await self._fetch(_entries, "GET", "/users/books")

    async def add_entry(self, book_id: int) -> LibraryEntry:
        return await self._fetch(
            LibraryEntry.model_validate, "POST", f"/users/books/{book_id}"
        )

    async def remove_entry(self, book_id: int) -> None:
        await self._request("DELETE", f"/users/books/{book_id}")

    async def rate(self, book_id: int, value: int) -> LibraryEntry:
        return await self._fetch(
            LibraryEntry.model_validate,
            "POST",
            f"/users/books/{book_id}/rate",
            json={"rating": value},
        )

    async def clear_rating(self, book_id: int) -> LibraryEntry:
        return await self._fetch(
            LibraryEntry.model_validate, "DELETE", f"/users/books/{book_id}/rate"
        )

    async def toggle_favorite(self, book_id: int) -> LibraryEntry:
        return await self._fetch(
            LibraryEntry.model_validate, "POST", f"/users/books/{book_id}/favorite"
        )

    # ── Reader ──────────────────────────────────────

    async def recommendations(self) -> list[Book]:
        return await self._fetch(_books, "GET", "/recommendations")

    async def profile(self) -> ReaderProfile:
        return await self._fetch(ReaderProfile.model_validate, "GET", "/users/profile")


def _unexpected(resp: httpx.Response, exc: Exception) -> LibraryStoreError:
    return _unexpected_body(resp.request.method, resp.request.url.path, exc, resp.status_code)


def _unexpected_body(
    method: str, path: str, exc: Exception, status_code: int | None = None
) -> LibraryStoreError:
    logger.warning("%s %s returned an unreadable body: %s", method, path, exc)
    return LibraryStoreError(
        "Unexpected response from the library service", status_code=status_code
    )


def _translate(resp: httpx.Response) -> LibraryStoreError:
    """Map an error response to the matching store error, keeping the server's message."""
    server_message = None
    try:
        body = resp.json()
    except ValueError:
        body = None
    if isinstance(body, dict) and body.get("message"):
        server_message = str(body["message"])
    message = server_message or f"Library service returned HTTP {resp.status_code}"

    error_cls = _STATUS_ERRORS.get(resp.status_code, LibraryStoreError)
    logger.warning(
        "%s %s -> %d: %s",
        resp.request.method,
        resp.request.url.path,
        resp.status_code,
        message,
    )
    return error_cls(message, status_code=resp.status_code, server_message=server_message)
