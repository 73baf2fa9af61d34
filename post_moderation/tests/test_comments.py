"""Comment threads: thread_id của root/reply, resolve, mention notifications."""
import uuid

import pytest
from sqlalchemy import select

from app.db import async_session_factory
from app.errors import InvalidRequestError, NotFoundError, PersistenceError
from app.models import ApprovalNotification
from app.services.comment_service import create_comment, get_approval_comments, resolve_comment

from conftest import fail_inserts_into, make_post


async def _comment(post_id, body="Please shorten the intro", **kwargs):
    async with async_session_factory() as session:
        c = await create_comment(session, post_id, kwargs.pop("actor_id", "lead"), body, **kwargs)
        await session.commit()
        return c


@pytest.mark.asyncio
async def test_root_comment_starts_its_own_thread() -> None:
    post_id = await make_post()
    root = await _comment(post_id)
    assert root.thread_id == root.id
    assert root.parent_comment_id is None
    assert root.is_resolved is False


@pytest.mark.asyncio
async def test_replies_inherit_the_root_thread() -> None:
    post_id = await make_post()
    root = await _comment(post_id)
    reply = await _comment(post_id, "Done", actor_id="author-1", parent_comment_id=root.id)
    nested = await _comment(post_id, "Thanks", parent_comment_id=reply.id)

    assert reply.thread_id == root.id
    assert nested.thread_id == root.id
    assert nested.parent_comment_id == reply.id

    async with async_session_factory() as session:
        comments = await get_approval_comments(session, post_id)
    assert [c.id for c in comments] == [root.id, reply.id, nested.id]


@pytest.mark.asyncio
async def test_reply_to_missing_or_foreign_parent() -> None:
    post_id = await make_post()
    other_post = await make_post()
    foreign = await _comment(other_post)

    with pytest.raises(NotFoundError) as exc:
        await _comment(post_id, parent_comment_id=uuid.uuid4())
    assert str(exc.value) == "comment_not_found"

    with pytest.raises(InvalidRequestError) as exc:
        await _comment(post_id, parent_comment_id=foreign.id)
    assert str(exc.value) == "parent_post_mismatch"


@pytest.mark.asyncio
async def test_empty_body_and_unknown_post() -> None:
    post_id = await make_post()
    with pytest.raises(InvalidRequestError):
        await _comment(post_id, body="   ")
    with pytest.raises(NotFoundError) as exc:
        await _comment(uuid.uuid4())
    assert str(exc.value) == "post_not_found"


@pytest.mark.asyncio
async def test_resolve_overwrites_previous_resolution() -> None:
    post_id = await make_post()
    root = await _comment(post_id)

    async with async_session_factory() as session:
        first = await resolve_comment(session, root.id, "author-1", "Fixed")
        await session.commit()
    assert first.is_resolved is True
    assert first.resolved_by == "author-1"

    async with async_session_factory() as session:
        second = await resolve_comment(session, root.id, "lead", None)
        await session.commit()
    assert second.is_resolved is True
    assert second.resolved_by == "lead"
    assert second.resolved_comment is None

    async with async_session_factory() as session:
        with pytest.raises(NotFoundError):
            await resolve_comment(session, uuid.uuid4(), "lead")


@pytest.mark.asyncio
async def test_mentions_notify_everyone_but_the_author_of_the_comment() -> None:
    post_id = await make_post()
    await _comment(post_id, "@legal @ops please check", mentions=["legal", "ops", "lead", "legal"])

    async with async_session_factory() as session:
        r = await session.execute(
            select(ApprovalNotification.recipient_id).where(ApprovalNotification.notification_type == "comment_mention")
        )
        recipients = sorted(r.scalars().all())
    assert recipients == ["legal", "ops"]


@pytest.mark.asyncio
async def test_store_failure_is_a_persistence_error() -> None:
    post_id = await make_post()
    await fail_inserts_into("approval_comments")
    with pytest.raises(PersistenceError) as exc:
        await _comment(post_id)
    assert exc.value.code == "persistence_error"
    assert "approval_comments store down" in exc.value.detail
