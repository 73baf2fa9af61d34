"""
Notification fan-out cho approval workflow.
- NotificationDispatcher: collaborator (enqueue, fire-and-forget).
- SessionNotificationQueue: ghi approval_notifications trong session của caller (1 row / recipient x channel).
- dispatch_safely: lỗi gửi thông báo chỉ log, không bao giờ lan ra caller.
"""
from typing import Any, Dict, Iterable, List, Optional, Protocol, Sequence
from uuid import UUID

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import get_settings
from app.db import utcnow
from app.errors import InvalidRequestError
from app.logging_config import get_logger
from app.models import ApprovalNotification
from app.models.enums import ApproverType, NotificationChannel, NotificationStatus

logger = get_logger(__name__)


class NotificationDispatcher(Protocol):
    async def enqueue(
        self,
        recipient_ids: Sequence[str],
        event_type: str,
        payload: Optional[Dict[str, Any]] = None,
        post_id: Optional[UUID] = None,
    ) -> None:
        ...


def _unique(values: Iterable[str]) -> List[str]:
    seen: Dict[str, None] = {}
    for v in values:
        if v and v not in seen:
            seen[v] = None
    return list(seen)


def _jsonable(payload: Optional[Dict[str, Any]]) -> Optional[Dict[str, Any]]:
    if payload is None:
        return None
    return {k: (str(v) if isinstance(v, UUID) else v) for k, v in payload.items()}


class SessionNotificationQueue:
    """Insert rows into approval_notifications inside a savepoint; committed with the caller's transaction."""

    def __init__(self, db: AsyncSession, channels: Optional[Sequence[str]] = None) -> None:
        self.db = db
        raw = list(channels) if channels is not None else get_settings().notification_channel_list()
        try:
            self.channels = [NotificationChannel(c).value for c in raw]
        except ValueError:
            raise InvalidRequestError("invalid_notification_channel", f"Unknown channel in {raw}") from None

    async def enqueue(
        self,
        recipient_ids: Sequence[str],
        event_type: str,
        payload: Optional[Dict[str, Any]] = None,
        post_id: Optional[UUID] = None,
    ) -> None:
        recipients = _unique(recipient_ids)
        if not recipients or not self.channels:
            return
        now = utcnow()
        body = _jsonable(payload)
        rows = [
            ApprovalNotification(
                post_id=post_id,
                recipient_id=recipient_id,
                channel=channel,
                notification_type=event_type,
                payload=body,
                status=NotificationStatus.PENDING.value,
                scheduled_at=now,
            )
            for recipient_id in recipients
            for channel in self.channels
        ]
        # Savepoint: a failed insert rolls back only these rows.
        await self.db.flush()
        async with self.db.begin_nested():
            self.db.add_all(rows)
            await self.db.flush()


def approver_recipients(step: Any) -> List[str]:
    """
    Người nhận cho một step: user -> [reference]; role/team -> ["role:<ref>"] / ["team:<ref>"].
    Expanding groups into members is the delivery side's job.
    """
    if step is None or not step.approver_reference:
        return []
    if step.approver_type == ApproverType.USER.value:
        return [step.approver_reference]
    return [f"{step.approver_type}:{step.approver_reference}"]


async def dispatch_safely(
    dispatcher: Optional[NotificationDispatcher],
    recipient_ids: Sequence[str],
    event_type: str,
    payload: Optional[Dict[str, Any]] = None,
    post_id: Optional[UUID] = None,
) -> bool:
    """Best-effort enqueue. Returns False (and logs) on any dispatcher failure."""
    if dispatcher is None or not recipient_ids:
        return False
    try:
        await dispatcher.enqueue(recipient_ids, event_type, payload, post_id=post_id)
    except Exception as e:
        logger.warning(
            "notification.enqueue_failed",
            event_type=event_type,
            post_id=str(post_id) if post_id else None,
            recipients=len(recipient_ids),
            error=str(e),
        )
        return False
    logger.info("notification.queued", event_type=event_type, recipients=len(recipient_ids))
    return True


async def get_notifications(
    db: AsyncSession,
    recipient_id: str,
    limit: int = 50,
) -> List[ApprovalNotification]:
    """Thông báo của recipient, mới nhất trước."""
    q = (
        select(ApprovalNotification)
        .where(ApprovalNotification.recipient_id == recipient_id)
        .order_by(ApprovalNotification.created_at.desc())
        .limit(limit)
    )
    r = await db.execute(q)
    return list(r.scalars().all())


async def mark_notifications_read(
    db: AsyncSession,
    notification_ids: Sequence[UUID],
    recipient_id: str,
) -> int:
    """Set read_at for the recipient's own notifications; returns rows touched."""
    if not notification_ids:
        return 0
    stmt = (
        update(ApprovalNotification)
        .where(
            ApprovalNotification.id.in_(list(notification_ids)),
            ApprovalNotification.recipient_id == recipient_id,
        )
        .values(read_at=utcnow())
        .execution_options(synchronize_session=False)
    )
    r = await db.execute(stmt)
    return r.rowcount or 0
