# This project was developed with assistance from AI tools.
"""In-app notification emitter.

Persists notifications addressed to users. Delivery beyond the notifications
table (email, websockets) is out of scope; readers poll the table.
"""

import logging
from collections.abc import Iterable

from db import Notification, SessionLocal, UserProfile
from db.enums import NotificationPriority, NotificationType, UserRole
from sqlalchemy import select

from ..core.config import settings
from ..schemas.notification import NotificationCreate
from .store import bounded

logger = logging.getLogger(__name__)


def _build(user_id: str, payload: NotificationCreate) -> Notification:
    return Notification(
        user_id=user_id,
        title=payload.title,
        message=payload.message,
        type=payload.type,
        priority=payload.priority,
        data=payload.data,
        is_read=False,
    )


class NotificationEmitter:
    """Creates notification rows; each call commits in its own session."""

    def __init__(self, session_factory=SessionLocal, *, timeout: float | None = None):
        self._session_factory = session_factory
        self._timeout = timeout if timeout is not None else settings.STORE_TIMEOUT_SECONDS

    @bounded
    async def create_notification(self, user_id: str, payload: NotificationCreate) -> Notification:
        notification = _build(user_id, payload)
        async with self._session_factory() as session:
            session.add(notification)
            await session.commit()
            await session.refresh(notification)
        logger.info(
            "Notification %s created for %s (%s/%s)",
            notification.id,
            user_id,
            payload.type.value,
            payload.priority.value,
        )
        return notification

    @bounded
    async def create_bulk_notifications(
        self,
        user_ids: Iterable[str],
        payload: NotificationCreate,
    ) -> list[Notification]:
        notifications = [_build(uid, payload) for uid in dict.fromkeys(user_ids)]
        if not notifications:
            return []
        async with self._session_factory() as session:
            session.add_all(notifications)
            await session.commit()
        logger.info("Created %d '%s' notifications", len(notifications), payload.title)
        return notifications

    @bounded
    async def notify_admins(self, payload: NotificationCreate) -> int:
        """Send one notification to every active admin. Returns recipients count."""
        async with self._session_factory() as session:
            result = await session.execute(
                select(UserProfile.id).where(
                    UserProfile.role == UserRole.ADMIN,
                    UserProfile.is_active.is_(True),
                )
            )
            admin_ids = list(result.scalars().all())
            if not admin_ids:
                logger.warning("No active admins to notify: %s", payload.title)
                return 0
            session.add_all([_build(uid, payload) for uid in admin_ids])
            await session.commit()
        return len(admin_ids)

    async def notify_system_error(self, message: str, data: dict | None = None) -> int:
        return await self.notify_admins(
            NotificationCreate(
                title="Error del sistema",
                message=message,
                type=NotificationType.SYSTEM,
                priority=NotificationPriority.HIGH,
                data=data or {},
            )
        )
