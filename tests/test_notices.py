import asyncio

import pytest

from shelfwise.domain.outcomes import Notice, NoticeKind
from shelfwise.services.notices import NoticeBoard


def test_same_kind_replaces_previous():
    board = NoticeBoard()
    board.post(Notice(NoticeKind.ERROR, "first"))
    board.post(Notice(NoticeKind.ERROR, "second"))

    assert board.current == [Notice(NoticeKind.ERROR, "second")]


def test_kinds_coexist_and_dismiss():
    board = NoticeBoard()
    board.post_all(
        [Notice(NoticeKind.SUCCESS, "added"), Notice(NoticeKind.ERROR, "rating failed")]
    )
    assert len(board.current) == 2

    board.dismiss(NoticeKind.ERROR)
    assert board.get(NoticeKind.ERROR) is None
    assert board.get(NoticeKind.SUCCESS).message == "added"

    board.clear()
    assert board.current == []


@pytest.mark.asyncio
async def test_notices_expire():
    board = NoticeBoard(ttl=0.01)
    board.post(Notice(NoticeKind.SUCCESS, "saved"))

    await asyncio.sleep(0.05)

    assert board.get(NoticeKind.SUCCESS) is None


@pytest.mark.asyncio
async def test_replacement_restarts_timer():
    board = NoticeBoard(ttl=0.2)
    board.post(Notice(NoticeKind.INFO, "old"))
    await asyncio.sleep(0.1)
    board.post(Notice(NoticeKind.INFO, "new"))
    await asyncio.sleep(0.15)

    assert board.get(NoticeKind.INFO).message == "new"

    await asyncio.sleep(0.2)
    assert board.get(NoticeKind.INFO) is None
