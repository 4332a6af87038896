"""Session port: who is signed in, if anyone."""

from abc import ABC, abstractmethod


class SessionPort(ABC):
    """Abstraction for the reader's authentication session."""

    @property
    @abstractmethod
    def is_authenticated(self) -> bool:
        ...

    @property
    @abstractmethod
    def display_name(self) -> str | None:
        ...

    @property
    @abstractmethod
    def token(self) -> str | None:
        """Bearer token for the Library Store, or None when anonymous."""
        ...

    @abstractmethod
    def logout(self) -> None:
        """End the session."""
        ...
