"""Per-book library state and the keyed store that holds it."""

import logging
from collections.abc import Callable, Iterator
from dataclasses import dataclass, replace
from enum import Enum

logger = logging.getLogger(__name__)


class ActionClass(str, Enum):
    """Groups of actions that share one in-flight guard."""

    ADD = "add"  # add and remove
    RATE = "rate"  # rate and unrate
    FAVORITE = "favorite"


@dataclass(frozen=True)
class BookState:
    """
    What the reader's library says about one book.

    ``rating`` is 0 when the book is unrated. Rating and favorite only
    mean something while the book is in the library, so a state claiming
    otherwise cannot be built.
    """

    in_library: bool = False
    rating: int = 0
    favorite: bool = False
    add_in_flight: bool = False
    rate_in_flight: bool = False
    favorite_in_flight: bool = False

    def __post_init__(self) -> None:
        if not 0 <= self.rating <= 5:
            raise ValueError(f"rating must be between 0 and 5, got {self.rating}")
        if not self.in_library and (self.rating or self.favorite):
            raise ValueError("rating and favorite require the book to be in the library")

    def in_flight(self, action: ActionClass) -> bool:
        return getattr(self, f"{action.value}_in_flight")

    def with_in_flight(self, action: ActionClass, value: bool) -> "BookState":
        return replace(self, **{f"{action.value}_in_flight": value})

    def removed(self) -> "BookState":
        """The state after the entry is destroyed; in-flight flags are kept."""
        return replace(self, in_library=False, rating=0, favorite=False)


EMPTY_STATE = BookState()

Listener = Callable[[int, BookState], None]


class BookStateStore:
    """
    Map from book id to ``BookState``.

    Each transition replaces the state in a single assignment and
    notifies listeners once, so observers never see a half-applied change.
    """

    def __init__(self) -> None:
        self._states: dict[int, BookState] = {}
        self._listeners: list[Listener] = []

    def get(self, book_id: int) -> BookState:
        return self._states.get(book_id, EMPTY_STATE)

    def set(self, book_id: int, state: BookState) -> BookState:
        previous = self._states.get(book_id, EMPTY_STATE)
        if previous == state and book_id in self._states:
            return state
        self._states[book_id] = state
        logger.debug("Book %s: %s -> %s", book_id, previous, state)
        for listener in list(self._listeners):
            listener(book_id, state)
        return state

    def update(self, book_id: int, **changes: object) -> BookState:
        """Apply ``changes`` to the book's state as one transition."""
        return self.set(book_id, replace(self.get(book_id), **changes))

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Register a listener; returns a callable that unsubscribes it."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def __iter__(self) -> Iterator[tuple[int, BookState]]:
        return iter(list(self._states.items()))
