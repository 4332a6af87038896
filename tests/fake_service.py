"""In-process fake of the book service REST API, served through ASGI for adapter tests."""

from fastapi import APIRouter, Depends, FastAPI, Header, Request, Response, status
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from shelfwise.adapters.memory.library_store import InMemoryLibraryStore
from shelfwise.domain.errors import LibraryStoreError, SessionExpired


class RatingRequest(BaseModel):
    rating: int


def create_fake_service(store: InMemoryLibraryStore, token: str) -> FastAPI:
    """Expose ``store`` under ``/api`` with bearer-token auth on reader routes."""
    application = FastAPI(title="Fake book service")
    application.state.requests = []

    def require_reader(authorization: str | None = Header(default=None)) -> None:
        if authorization != f"Bearer {token}":
            raise SessionExpired(
                "Unauthorized", status_code=401, server_message="Full authentication is required"
            )

    @application.middleware("http")
    async def record(request: Request, call_next):
        application.state.requests.append(
            (request.method, request.url.path, request.headers.get("authorization"))
        )
        return await call_next(request)

    @application.exception_handler(LibraryStoreError)
    async def store_error(request: Request, exc: LibraryStoreError) -> JSONResponse:
        content = {"message": exc.server_message} if exc.server_message else {}
        return JSONResponse(status_code=exc.status_code or 500, content=content)

    def dump(model: BaseModel) -> dict:
        return model.model_dump(by_alias=True, mode="json")

    # ── Books ──────────────────────────────────────
    books = APIRouter(prefix="/api/books")

    @books.get("")
    async def list_books(page: int = 0, size: int = 10):
        return dump(await store.list_books(page, size))

    @books.get("/search")
    async def search_books(query: str, page: int = 0, size: int = 10):
        return dump(await store.search_books(query, page, size))

    @books.get("/{book_id}")
    async def get_book(book_id: int):
        return dump(await store.get_book(book_id))

    # ── Reader ─────────────────────────────────────
    reader = APIRouter(prefix="/api", dependencies=[Depends(require_reader)])

    @reader.get("/users/profile")
    async def profile():
        return dump(await store.profile())

    @reader.get("/users/books")
    async def list_entries():
        return [dump(e) for e in await store.list_entries()]

    @reader.post("/users/books/{book_id}", status_code=status.HTTP_201_CREATED)
    async def add_entry(book_id: int):
        return dump(await store.add_entry(book_id))

    @reader.delete("/users/books/{book_id}")
    async def remove_entry(book_id: int):
        await store.remove_entry(book_id)
        return Response(status_code=status.HTTP_204_NO_CONTENT)

    @reader.post("/users/books/{book_id}/rate")
    async def rate(book_id: int, body: RatingRequest):
        return dump(await store.rate(book_id, body.rating))

    @reader.delete("/users/books/{book_id}/rate")
    async def clear_rating(book_id: int):
        return dump(await store.clear_rating(book_id))

    @reader.post("/users/books/{book_id}/favorite")
    async def toggle_favorite(book_id: int):
        return dump(await store.toggle_favorite(book_id))

    @reader.get("/recommendations")
    async def recommendations():
        return [dump(b) for b in await store.recommendations()]

    application.include_router(books)
    application.include_router(reader)
    return application
