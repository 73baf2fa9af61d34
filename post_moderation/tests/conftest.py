"""
Shared fixtures: SQLite file DB (aiosqlite) thay cho Postgres.
DATABASE_URL phải được set trước khi import app.* (engine tạo lúc import).
"""
import os
import tempfile
import uuid
from pathlib import Path
from typing import Any, Dict, List, Optional

TEST_DB_PATH = Path(tempfile.gettempdir()) / f"post_moderation_test_{os.getpid()}.db"
os.environ["DATABASE_URL"] = f"sqlite+aiosqlite:///{TEST_DB_PATH}"
os.environ["APP_ENV"] = "test"

import pytest  # noqa: E402
import pytest_asyncio  # noqa: E402
from httpx import ASGITransport, AsyncClient  # noqa: E402
from sqlalchemy import text  # noqa: E402

from app.config import get_settings  # noqa: E402
from app.db import Base, async_session_factory, engine  # noqa: E402
from app.models import ApprovalWorkflow, ScheduledPost  # noqa: E402
from app.schemas.approval import WorkflowCreateRequest  # noqa: E402
from app.services.workflow_definition_service import create_workflow  # noqa: E402


@pytest_asyncio.fixture(autouse=True)
async def db_schema():
    """Fresh schema per test; dispose pooled connections so the next loop opens new ones."""
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
        await conn.run_sync(Base.metadata.create_all)
    yield
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await engine.dispose()


@pytest.fixture
def settings():
    """Settings instance; tests may mutate fields, restored by clearing the cache."""
    yield get_settings()
    get_settings.cache_clear()


@pytest_asyncio.fixture
async def client():
    from app.main import app

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as c:
        yield c


def step(
    order: int,
    reference: str,
    approver_type: str = "user",
    min_approvals: int = 1,
    is_optional: bool = False,
    name: Optional[str] = None,
) -> Dict[str, Any]:
    return {
        "step_order": order,
        "step_name": name or f"Step {order}",
        "approver_type": approver_type,
        "approver_reference": reference,
        "min_approvals": min_approvals,
        "is_optional": is_optional,
    }


async def make_post(
    user_id: str = "author-1",
    team_id: Optional[str] = None,
    content: str = "Launch day post",
    media_urls: Optional[List[str]] = None,
) -> uuid.UUID:
    async with async_session_factory() as session:
        post = ScheduledPost(
            id=uuid.uuid4(),
            user_id=user_id,
            team_id=team_id,
            content=content,
            media_urls=media_urls,
            status="draft",
        )
        session.add(post)
        await session.commit()
        return post.id


async def make_workflow(
    steps: List[Dict[str, Any]],
    owner_id: str = "admin",
    scope: str = "global",
    scope_filters: Optional[Dict[str, List[str]]] = None,
    name: str = "Review",
) -> ApprovalWorkflow:
    async with async_session_factory() as session:
        workflow = await create_workflow(
            session,
            WorkflowCreateRequest(
                owner_id=owner_id,
                name=name,
                scope=scope,
                scope_filters=scope_filters,
                steps=steps,
            ),
        )
        await session.commit()
        return workflow


async def fail_inserts_into(table: str) -> None:
    """Every INSERT into table aborts (trigger disappears with the table at teardown)."""
    async with engine.begin() as conn:
        await conn.execute(
            text(
                f"CREATE TRIGGER fail_insert_{table} BEFORE INSERT ON {table} "
                f"BEGIN SELECT RAISE(ABORT, '{table} store down'); END"
            )
        )
