"""Read models: pending queue theo approver, stats của author, dashboard (comment counts, can_act)."""
import pytest

from app.db import async_session_factory
from app.services.approval_query_service import (
    get_approval_dashboard,
    get_approval_stats,
    get_pending_approvals,
)
from app.services.assignment_service import submit_for_approval
from app.services.comment_service import create_comment, resolve_comment
from app.services.workflow_engine import advance_workflow_step

from conftest import make_post, make_workflow, step


async def _submit(post_id, author="author-1"):
    async with async_session_factory() as session:
        await submit_for_approval(session, post_id, author)
        await session.commit()


@pytest.mark.asyncio
async def test_pending_queue_by_user_and_role() -> None:
    await make_workflow([step(1, "lead"), step(2, "legal", approver_type="role")])
    p1 = await make_post()
    p2 = await make_post()
    await _submit(p1)
    await _submit(p2)
    async with async_session_factory() as session:
        await advance_workflow_step(session, p2, "lead", "approve")
        await session.commit()

    async with async_session_factory() as session:
        lead_queue = await get_pending_approvals(session, "lead")
        legal_queue = await get_pending_approvals(session, "jane", approver_refs=["role:legal"])
        nobody = await get_pending_approvals(session, "jane", approver_refs=["team:legal", "garbage"])
        only_p1 = await get_pending_approvals(session, "lead", post_id=p1)

    assert [a.post_id for a, _, _ in lead_queue] == [p1]
    assert [a.post_id for a, _, _ in legal_queue] == [p2]
    assert nobody == []
    assert [post.id for _, post, _ in only_p1] == [p1]


@pytest.mark.asyncio
async def test_stats_count_posts_and_decisions() -> None:
    await make_workflow([step(1, "lead")])
    approved = await make_post()
    rejected = await make_post()
    await make_post()
    await _submit(approved)
    await _submit(rejected)
    async with async_session_factory() as session:
        await advance_workflow_step(session, approved, "lead", "approve")
        await advance_workflow_step(session, rejected, "lead", "reject")
        await session.commit()

    async with async_session_factory() as session:
        author = await get_approval_stats(session, "author-1")
        reviewer = await get_approval_stats(session, "lead")

    assert author["total_posts"] == 3
    assert author["draft_count"] == 1
    assert author["approved_count"] == 1
    assert author["rejected_count"] == 1
    assert author["avg_approval_hours"] is not None
    assert author["avg_approval_hours"] >= 0
    assert author["decisions"] == {}
    assert reviewer["total_posts"] == 0
    assert reviewer["decisions"] == {"approved": 1, "rejected": 1}


@pytest.mark.asyncio
async def test_dashboard_rows_with_comment_counts() -> None:
    await make_workflow([step(1, "lead")])
    p1 = await make_post()
    p2 = await make_post()
    await _submit(p1)
    await _submit(p2)
    async with async_session_factory() as session:
        c1 = await create_comment(session, p1, "lead", "first")
        await create_comment(session, p1, "lead", "second")
        await resolve_comment(session, c1.id, "author-1")
        await session.commit()

    async with async_session_factory() as session:
        rows = await get_approval_dashboard(session, "lead")
        as_author = await get_approval_dashboard(session, "author-1")

    by_post = {r["post_id"]: r for r in rows}
    assert set(by_post) == {p1, p2}
    assert by_post[p1]["open_comments"] == 1
    assert by_post[p1]["total_comments"] == 2
    assert by_post[p2]["total_comments"] == 0
    assert all(r["can_act"] for r in rows)
    assert not any(r["can_act"] for r in as_author)
    assert by_post[p1]["step_order"] == 1
