"""In-process session holding a bearer token and display name."""

import logging

from shelfwise.ports.session import SessionPort

logger = logging.getLogger(__name__)


class TokenSession(SessionPort):
    """Session created from a login response and dropped on logout or expiry."""

    def __init__(self, token: str | None = None, display_name: str | None = None) -> None:
        self._token = token
        self._display_name = display_name if token else None

    @property
    def is_authenticated(self) -> bool:
        return self._token is not None

    @property
    def display_name(self) -> str | None:
        return self._display_name

    @property
    def token(self) -> str | None:
        return self._token

    def login(self, token: str, display_name: str) -> None:
        """Start a session from a freshly issued token."""
        if not token:
            raise ValueError("token must not be empty")
        self._token = token
        self._display_name = display_name
        logger.info("Session started for %s", display_name)

    def logout(self) -> None:
        if self._token is not None:
            logger.info("Session ended for %s", self._display_name)
        self._token = None
        self._display_name = None
