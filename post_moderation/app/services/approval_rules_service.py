"""
Approval rules: quyết định một post có cần duyệt hay không.
rule_type -> evaluator:
- content_approval: max_length, keywords
- media_approval: require_approval_with_media
- time_approval: business_hours_only (giờ < 9 hoặc > 17)
- keyword_approval: forbidden_keywords
So khớp keyword không phân biệt hoa thường. Rule đầu tiên (theo thứ tự tạo) yêu cầu duyệt sẽ thắng.
"""
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Callable, Dict, List, Optional, Sequence

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.errors import InvalidRequestError
from app.logging_config import get_logger
from app.models import ApprovalWorkflowRule
from app.models.enums import RuleType
from app.schemas.approval import ApprovalRuleCreate

logger = get_logger(__name__)

BUSINESS_HOURS_START = 9
BUSINESS_HOURS_END = 17


@dataclass
class ApprovalDecision:
    requires_approval: bool
    reason: Optional[str] = None
    rule: Optional[ApprovalWorkflowRule] = None


NO_APPROVAL = ApprovalDecision(requires_approval=False)


def _first_keyword(content: str, keywords: Any) -> Optional[str]:
    if not isinstance(keywords, list):
        return None
    lowered = (content or "").lower()
    for kw in keywords:
        if kw and str(kw).lower() in lowered:
            return str(kw)
    return None


def _content_rule(conditions: Dict[str, Any], content: str, media_urls, scheduled_at) -> ApprovalDecision:
    max_length = conditions.get("max_length")
    if max_length and len(content or "") > max_length:
        return ApprovalDecision(True, f"Content exceeds maximum length of {max_length} characters")
    kw = _first_keyword(content, conditions.get("keywords"))
    if kw:
        return ApprovalDecision(True, f'Content contains sensitive keyword: "{kw}"')
    return NO_APPROVAL


def _media_rule(conditions: Dict[str, Any], content: str, media_urls, scheduled_at) -> ApprovalDecision:
    if conditions.get("require_approval_with_media") and media_urls:
        return ApprovalDecision(True, "Media content requires approval")
    return NO_APPROVAL


def _time_rule(conditions: Dict[str, Any], content: str, media_urls, scheduled_at) -> ApprovalDecision:
    if conditions.get("business_hours_only") and scheduled_at is not None:
        hour = scheduled_at.hour
        if hour < BUSINESS_HOURS_START or hour > BUSINESS_HOURS_END:
            return ApprovalDecision(True, "Post scheduled outside business hours (9 AM - 5 PM)")
    return NO_APPROVAL


def _keyword_rule(conditions: Dict[str, Any], content: str, media_urls, scheduled_at) -> ApprovalDecision:
    kw = _first_keyword(content, conditions.get("forbidden_keywords"))
    if kw:
        return ApprovalDecision(True, f'Content contains forbidden keyword: "{kw}"')
    return NO_APPROVAL


EVALUATORS: Dict[str, Callable[..., ApprovalDecision]] = {
    RuleType.CONTENT_APPROVAL.value: _content_rule,
    RuleType.MEDIA_APPROVAL.value: _media_rule,
    RuleType.TIME_APPROVAL.value: _time_rule,
    RuleType.KEYWORD_APPROVAL.value: _keyword_rule,
}


def evaluate_rule(
    rule: ApprovalWorkflowRule,
    content: str,
    media_urls: Optional[Sequence[str]] = None,
    scheduled_at: Optional[datetime] = None,
) -> ApprovalDecision:
    """Unknown rule types never require approval."""
    evaluator = EVALUATORS.get(rule.rule_type)
    if evaluator is None or not rule.requires_approval:
        return NO_APPROVAL
    decision = evaluator(rule.conditions or {}, content, media_urls, scheduled_at)
    if decision.requires_approval:
        return ApprovalDecision(True, decision.reason, rule)
    return NO_APPROVAL


async def list_rules(db: AsyncSession, user_id: str, active_only: bool = True) -> List[ApprovalWorkflowRule]:
    q = select(ApprovalWorkflowRule).where(ApprovalWorkflowRule.user_id == user_id)
    if active_only:
        q = q.where(ApprovalWorkflowRule.is_active.is_(True))
    q = q.order_by(ApprovalWorkflowRule.created_at.asc(), ApprovalWorkflowRule.id.asc())
    r = await db.execute(q)
    return list(r.scalars().all())


async def check_approval_required(
    db: AsyncSession,
    user_id: str,
    content: str,
    media_urls: Optional[Sequence[str]] = None,
    scheduled_at: Optional[datetime] = None,
) -> ApprovalDecision:
    """Rule đầu tiên yêu cầu duyệt; không có rule nào khớp -> requires_approval=False."""
    for rule in await list_rules(db, user_id):
        decision = evaluate_rule(rule, content, media_urls, scheduled_at)
        if decision.requires_approval:
            logger.info(
                "approval.rule_matched",
                user_id=user_id,
                rule_id=str(rule.id),
                rule_type=rule.rule_type,
            )
            return decision
    return NO_APPROVAL


async def create_rule(db: AsyncSession, payload: ApprovalRuleCreate) -> ApprovalWorkflowRule:
    rule = ApprovalWorkflowRule(
        user_id=payload.user_id,
        rule_name=payload.rule_name,
        rule_type=payload.rule_type.value,
        is_active=True,
        conditions=payload.conditions,
        requires_approval=payload.requires_approval,
        approver_user_ids=payload.approver_user_ids,
        auto_approve_after_hours=payload.auto_approve_after_hours,
    )
    db.add(rule)
    try:
        await db.flush()
    except IntegrityError:
        raise InvalidRequestError("rule_name_taken", f"Rule {payload.rule_name!r} already exists") from None
    logger.info("approval.rule_created", user_id=payload.user_id, rule_id=str(rule.id), rule_type=rule.rule_type)
    return rule
