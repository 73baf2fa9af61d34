"""
Bulk approve/reject: lỗi từng post được ghi vào failed, các post còn lại vẫn commit.
"""
import uuid

import pytest
from sqlalchemy import select
from sqlalchemy.exc import OperationalError

from app.db import async_session_factory
from app.errors import ConcurrencyConflictError, InvalidRequestError, NotFoundError
from app.models import ApprovalHistory, ScheduledPost
from app.services.assignment_service import submit_for_approval
from app.services.workflow_engine import _error_detail, bulk_advance_workflow

from conftest import make_post, make_workflow, step


async def _submitted_post(user_id="author-1"):
    post_id = await make_post(user_id=user_id)
    async with async_session_factory() as session:
        await submit_for_approval(session, post_id, user_id)
        await session.commit()
    return post_id


async def _status(post_id):
    async with async_session_factory() as session:
        return (await session.get(ScheduledPost, post_id)).status


@pytest.mark.asyncio
async def test_bulk_partial_failure_keeps_successes() -> None:
    await make_workflow([step(1, "lead")])
    ok_1 = await _submitted_post()
    never_submitted = await make_post()
    ok_2 = await _submitted_post()
    missing = uuid.uuid4()

    result = await bulk_advance_workflow(
        [str(ok_1), str(never_submitted), "not-a-uuid", str(missing), str(ok_2)],
        actor_id="lead",
        decision="approve",
        comment="batch",
    )

    assert result.success == [str(ok_1), str(ok_2)]
    assert [(f.post_id, f.error, f.detail) for f in result.failed] == [
        (str(never_submitted), "not_found", "assignment_not_found"),
        ("not-a-uuid", "not_found", "post_not_found"),
        (str(missing), "not_found", "assignment_not_found"),
    ]
    assert await _status(ok_1) == "approved"
    assert await _status(ok_2) == "approved"
    assert await _status(never_submitted) == "draft"

    async with async_session_factory() as session:
        r = await session.execute(select(ApprovalHistory).where(ApprovalHistory.action == "approved"))
        approved = list(r.scalars().all())
    assert {e.post_id for e in approved} == {ok_1, ok_2}
    assert all(e.action_details == {"comment": "batch", "reason": None} for e in approved)


@pytest.mark.asyncio
async def test_bulk_reject_with_concurrency(settings) -> None:
    settings.bulk_concurrency = 3
    await make_workflow([step(1, "lead")])
    posts = [await _submitted_post() for _ in range(4)]

    result = await bulk_advance_workflow([str(p) for p in posts], actor_id="lead", decision="reject", reason="Hold")

    assert result.success == [str(p) for p in posts]
    assert result.failed == []
    for p in posts:
        assert await _status(p) == "rejected"


@pytest.mark.asyncio
async def test_bulk_validates_batch_before_running(settings) -> None:
    settings.bulk_max_items = 2
    with pytest.raises(InvalidRequestError) as exc:
        await bulk_advance_workflow([str(uuid.uuid4()) for _ in range(3)], actor_id="lead", decision="approve")
    assert exc.value.code == "bulk_too_large"

    with pytest.raises(InvalidRequestError) as exc:
        await bulk_advance_workflow([str(uuid.uuid4())], actor_id="lead", decision="request_changes")
    assert exc.value.code == "invalid_decision"


def test_failure_detail_is_code_for_app_errors_and_message_otherwise() -> None:
    assert _error_detail(NotFoundError("assignment_not_found", "gone")) == "assignment_not_found"
    assert _error_detail(ConcurrencyConflictError()) == "concurrency_conflict"
    db_error = OperationalError("UPDATE post_approval_assignments", {}, Exception("database is locked"))
    assert "database is locked" in _error_detail(db_error)
