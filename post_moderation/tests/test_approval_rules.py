"""Approval rules: content / media / time / keyword, rule đầu tiên khớp sẽ thắng."""
from datetime import datetime, timezone

import pytest

from app.db import async_session_factory
from app.schemas.approval import ApprovalRuleCreate
from app.services.approval_rules_service import check_approval_required, create_rule


async def _rule(rule_name, rule_type, conditions, user_id="author-1"):
    async with async_session_factory() as session:
        rule = await create_rule(
            session,
            ApprovalRuleCreate(user_id=user_id, rule_name=rule_name, rule_type=rule_type, conditions=conditions),
        )
        await session.commit()
        return rule


async def _check(content="", media_urls=None, scheduled_at=None, user_id="author-1"):
    async with async_session_factory() as session:
        return await check_approval_required(session, user_id, content, media_urls, scheduled_at)


@pytest.mark.asyncio
async def test_no_rules_means_no_approval() -> None:
    decision = await _check("anything")
    assert decision.requires_approval is False
    assert decision.rule is None


@pytest.mark.asyncio
async def test_content_rule_length_and_keywords() -> None:
    rule = await _rule("long posts", "content_approval", {"max_length": 10, "keywords": ["Giveaway"]})

    decision = await _check("this is far too long")
    assert decision.requires_approval is True
    assert decision.rule.id == rule.id
    assert "10 characters" in decision.reason

    decision = await _check("GIVEAWAY!")
    assert decision.requires_approval is True
    assert "Giveaway" in decision.reason

    assert (await _check("short")).requires_approval is False


@pytest.mark.asyncio
async def test_media_and_time_rules() -> None:
    await _rule("media", "media_approval", {"require_approval_with_media": True})
    await _rule("office hours", "time_approval", {"business_hours_only": True})

    assert (await _check("hi", media_urls=["https://cdn/x.png"])).reason == "Media content requires approval"
    late = datetime(2026, 9, 1, 22, 30, tzinfo=timezone.utc)
    assert (await _check("hi", scheduled_at=late)).requires_approval is True
    noon = datetime(2026, 9, 1, 12, 0, tzinfo=timezone.utc)
    assert (await _check("hi", scheduled_at=noon)).requires_approval is False


@pytest.mark.asyncio
async def test_keyword_rule_is_case_insensitive_and_scoped_to_user() -> None:
    await _rule("banned", "keyword_approval", {"forbidden_keywords": ["crypto"]})

    assert (await _check("Buy CRYPTO now")).requires_approval is True
    assert (await _check("Buy CRYPTO now", user_id="author-2")).requires_approval is False
