"""
Optimistic version check on post_approval_assignments.
Hai reviewer approve đồng thời (min_approvals=2): step chỉ advance một lần, có đúng hai entry approve.
"""
import asyncio

import pytest
from sqlalchemy import select

from app.db import async_session_factory, utcnow
from app.errors import ConcurrencyConflictError, PersistenceError
from app.models import PostApprovalAssignment
from app.models.enums import WorkflowAction
from app.services import workflow_engine
from app.services.assignment_service import get_live_assignment, submit_for_approval
from app.services.workflow_engine import advance_workflow_step, write_transition
from app.services.workflow_state import plan_transition

from conftest import make_post, make_workflow, step


async def _submit(post_id):
    async with async_session_factory() as session:
        _, assignment = await submit_for_approval(session, post_id, "author-1")
        await session.commit()
        return assignment


async def _approve(post_id, actor_id):
    async with async_session_factory() as session:
        assignment = await advance_workflow_step(session, post_id, actor_id, "approve")
        await session.commit()
        return assignment


@pytest.mark.asyncio
async def test_concurrent_approvals_advance_exactly_once() -> None:
    workflow = await make_workflow([step(1, "lead", min_approvals=2), step(2, "legal")])
    post_id = await make_post()
    await _submit(post_id)

    await asyncio.gather(_approve(post_id, "lead-a"), _approve(post_id, "lead-b"))

    async with async_session_factory() as session:
        r = await session.execute(select(PostApprovalAssignment).where(PostApprovalAssignment.post_id == post_id))
        assignments = list(r.scalars().all())
    assert len(assignments) == 1
    a = assignments[0]
    assert a.status == "pending"
    assert a.current_step_id == workflow.steps[1].id
    approvals = [e for e in a.step_history if e["action"] == "approve"]
    assert len(approvals) == 2
    assert {e["actor_id"] for e in approvals} == {"lead-a", "lead-b"}
    assert a.version == 3


@pytest.mark.asyncio
async def test_stale_version_write_is_refused() -> None:
    workflow = await make_workflow([step(1, "lead", min_approvals=2), step(2, "legal")])
    post_id = await make_post()
    await _submit(post_id)

    async with async_session_factory() as stale_session:
        stale = await get_live_assignment(stale_session, post_id)
        await _approve(post_id, "lead-a")

        first = workflow.steps[0]
        transition = plan_transition(
            stale.status, workflow.steps, first, stale.step_history, WorkflowAction.APPROVE, "lead-b", utcnow()
        )
        assert await write_transition(stale_session, stale, transition, utcnow()) is False
        await stale_session.rollback()


@pytest.mark.asyncio
async def test_retries_exhausted_raise_conflict(monkeypatch, settings) -> None:
    await make_workflow([step(1, "lead")])
    post_id = await make_post()
    await _submit(post_id)
    settings.approval_max_retries = 2
    calls = []

    async def always_lose(db, assignment, transition, now):
        calls.append(assignment.version)
        return False

    monkeypatch.setattr(workflow_engine, "write_transition", always_lose)

    with pytest.raises(ConcurrencyConflictError) as exc:
        await _approve(post_id, "lead")
    assert isinstance(exc.value, PersistenceError)
    assert exc.value.code == "concurrency_conflict"
    assert len(calls) == 2
