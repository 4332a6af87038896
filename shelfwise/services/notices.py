"""Transient success / info / error notices shown to the reader."""

import asyncio
import logging
from collections.abc import Iterable

from shelfwise.domain.outcomes import Notice, NoticeKind

logger = logging.getLogger(__name__)


class NoticeBoard:
    """
    Holds at most one notice per kind.

    Posting a notice replaces the previous one of the same kind and
    restarts its expiry timer. Timers only run inside an event loop;
    without one, notices stay until replaced or dismissed.
    """

    def __init__(self, ttl: float = 3.0) -> None:
        self._ttl = ttl
        self._current: dict[NoticeKind, Notice] = {}
        self._timers: dict[NoticeKind, asyncio.TimerHandle] = {}

    def post(self, notice: Notice) -> None:
        self._cancel_timer(notice.kind)
        self._current[notice.kind] = notice
        logger.debug("Notice %s: %s", notice.kind.value, notice.message)

        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            return
        self._timers[notice.kind] = loop.call_later(self._ttl, self._expire, notice)

    def post_all(self, notices: Iterable[Notice]) -> None:
        for notice in notices:
            self.post(notice)

    def get(self, kind: NoticeKind) -> Notice | None:
        return self._current.get(kind)

    @property
    def current(self) -> list[Notice]:
        return list(self._current.values())

    def dismiss(self, kind: NoticeKind) -> None:
        self._cancel_timer(kind)
        self._current.pop(kind, None)

    def clear(self) -> None:
        for kind in list(self._current):
            self.dismiss(kind)

    def _expire(self, notice: Notice) -> None:
        # A newer notice of the same kind has its own timer.
        if self._current.get(notice.kind) is notice:
            del self._current[notice.kind]
        self._timers.pop(notice.kind, None)

    def _cancel_timer(self, kind: NoticeKind) -> None:
        timer = self._timers.pop(kind, None)
        if timer is not None:
            timer.cancel()
