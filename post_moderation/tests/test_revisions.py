"""Revision snapshots: record, list (summary), restore (partial, NotFound không ghi gì)."""
import uuid

import pytest
from sqlalchemy import func, select

from app.db import async_session_factory
from app.errors import ConcurrencyConflictError, InvalidRequestError, NotFoundError
from app.models import PostRevision, ScheduledPost
from app.services import revision_service
from app.services.revision_service import (
    build_revision_summary,
    list_revisions,
    record_revision,
    restore_revision,
    snapshot_post,
)

from conftest import make_post


async def _record(post_id, snapshot, reason=None):
    async with async_session_factory() as session:
        rev = await record_revision(session, post_id, "author-1", snapshot, reason=reason)
        await session.commit()
        return rev


async def _post(post_id) -> ScheduledPost:
    async with async_session_factory() as session:
        return await session.get(ScheduledPost, post_id)


async def _revision_count(post_id) -> int:
    async with async_session_factory() as session:
        r = await session.execute(select(func.count()).select_from(PostRevision).where(PostRevision.post_id == post_id))
        return r.scalar_one()


@pytest.mark.asyncio
async def test_revision_numbers_increase() -> None:
    post_id = await make_post()
    r1 = await _record(post_id, {"content": "v1"})
    r2 = await _record(post_id, {"content": "v2"})
    assert (r1.revision_number, r2.revision_number) == (1, 2)


@pytest.mark.asyncio
async def test_snapshot_rejects_unknown_keys() -> None:
    post_id = await make_post()
    with pytest.raises(InvalidRequestError) as exc:
        await _record(post_id, {"content": "v1", "status": "approved"})
    assert exc.value.code == "invalid_snapshot"


@pytest.mark.asyncio
async def test_restore_writes_only_present_fields() -> None:
    post_id = await make_post(content="original", media_urls=["https://cdn/a.png"])
    old = await _record(post_id, {"content": "older copy"})

    async with async_session_factory() as session:
        restored = await restore_revision(session, post_id, old.id, "editor-1")
        await session.commit()

    post = await _post(post_id)
    assert post.content == "older copy"
    assert post.media_urls == ["https://cdn/a.png"]
    assert restored.reason == "restored_version"
    assert restored.metadata_ == {"restored_from": str(old.id)}
    assert restored.revision_number == 2
    assert restored.actor_id == "editor-1"


@pytest.mark.asyncio
async def test_restore_missing_revision_writes_nothing() -> None:
    post_id = await make_post(content="original")
    other_post = await make_post()
    foreign = await _record(other_post, {"content": "foreign"})

    for revision_id in (uuid.uuid4(), foreign.id):
        async with async_session_factory() as session:
            with pytest.raises(NotFoundError) as exc:
                await restore_revision(session, post_id, revision_id, "editor-1")
            assert str(exc.value) == "revision_not_found"

    assert (await _post(post_id)).content == "original"
    assert await _revision_count(post_id) == 0


@pytest.mark.asyncio
async def test_list_revisions_with_summary() -> None:
    post_id = await make_post(content="Current text")
    long_text = "word  " * 40
    await _record(post_id, {"content": long_text})
    await _record(post_id, {"media_urls": ["https://cdn/b.png"]}, reason="swap image")
    await _record(post_id, {"media_urls": []})

    async with async_session_factory() as session:
        revisions = await list_revisions(session, post_id)
    summaries = [build_revision_summary(r) for r in revisions]
    assert [r.revision_number for r in revisions] == [1, 2, 3]
    assert len(summaries[0]) == 78
    assert summaries[0] == " ".join(["word"] * 40)[:77] + "…"
    assert "  " not in summaries[0]
    assert summaries[1] == "swap image"
    assert summaries[2] == "Revision #3"


@pytest.mark.asyncio
async def test_snapshot_post_round_trips_through_restore() -> None:
    post_id = await make_post(content="keep me", media_urls=["https://cdn/c.png"])
    post = await _post(post_id)
    rev = await _record(post_id, snapshot_post(post))
    assert rev.snapshot == {"content": "keep me", "media_urls": ["https://cdn/c.png"]}


def test_summary_keeps_content_of_exactly_eighty_chars() -> None:
    text = "x" * 80
    rev = PostRevision(revision_number=1, snapshot={"content": text})
    assert build_revision_summary(rev) == text
    rev = PostRevision(revision_number=2, snapshot={"content": text + "y"})
    assert build_revision_summary(rev) == "x" * 77 + "…"


@pytest.mark.asyncio
async def test_revision_number_race_is_a_concurrency_conflict(monkeypatch) -> None:
    post_id = await make_post()
    await _record(post_id, {"content": "v1"})

    async def stale_number(db, post_id):
        return 1

    monkeypatch.setattr(revision_service, "_next_revision_number", stale_number)
    with pytest.raises(ConcurrencyConflictError):
        await _record(post_id, {"content": "v2"})

    async with async_session_factory() as session:
        count = await session.scalar(select(func.count()).select_from(PostRevision).where(PostRevision.post_id == post_id))
    assert count == 1
