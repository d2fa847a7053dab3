"""
Notification endpoints.
"""

from typing import Any

from coachshare.api.base import BaseApi
from coachshare.models import NotificationPage

NOTIFICATIONS_PREFIX = "/notifications"


class NotificationsApi(BaseApi):
    async def list(self, page: int = 1, limit: int = 10) -> NotificationPage:
        body = await self.client.get(
            NOTIFICATIONS_PREFIX, params={"page": page, "limit": limit}
        )
        notifications = self.unwrap(body, "data", "notifications")
        return NotificationPage(
            notifications=notifications if isinstance(notifications, list) else [],
            total_pages=self.unwrap(body, "totalPages") or 0,
            current_page=self.unwrap(body, "currentPage") or page,
            total=self.unwrap(body, "total") or 0,
        )

    async def mark_read(self, notification_id: str) -> Any:
        return await self.client.mutate(
            "PATCH",
            f"/notifications/{notification_id}/mark-read",
            invalidate=[NOTIFICATIONS_PREFIX],
        )

    async def mark_all_read(self) -> Any:
        return await self.client.mutate(
            "PATCH", "/notifications/mark-all-read", invalidate=[NOTIFICATIONS_PREFIX]
        )
