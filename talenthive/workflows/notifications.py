"""
Notification centre.

Stores in-app notifications and fans each new one out to in-process
subscribers (for example a websocket bridge). Subscriber failures are logged
and never interrupt the caller.
"""

import logging
from typing import Callable, Optional

from ..errors import NotFoundError
from ..models.notification import Notification, NotificationType, NotificationPriority
from ..storage import JsonStore
from .common import paginate, list_admins

logger = logging.getLogger(__name__)

Subscriber = Callable[[Notification], None]


class NotificationCenter:
    """Creates, lists and marks notifications."""

    COLLECTION = "notifications"

    def __init__(self, store: JsonStore):
        self.store = store
        self._subscribers: list[Subscriber] = []

    def subscribe(self, callback: Subscriber) -> None:
        """Register a callback invoked for every new notification."""
        self._subscribers.append(callback)

    def unsubscribe(self, callback: Subscriber) -> None:
        if callback in self._subscribers:
            self._subscribers.remove(callback)

    def _publish(self, notification: Notification) -> None:
        for callback in list(self._subscribers):
            try:
                callback(notification)
            except Exception:
                logger.exception("Notification subscriber failed for %s", notification.id)

    def notify(
        self,
        user_id: str,
        type: NotificationType,
        title: str,
        message: str,
        link: Optional[str] = None,
        priority: NotificationPriority = NotificationPriority.NORMAL,
        metadata: Optional[dict] = None,
    ) -> Notification:
        """Create a notification for one user."""
        notification = Notification(
            user_id=user_id,
            type=type,
            title=title,
            message=message,
            link=link,
            priority=priority,
            metadata=metadata or {},
        )
        self.store.insert(self.COLLECTION, notification)
        logger.debug("Notified %s: %s", user_id, title)

        self._publish(notification)
        return notification

    def notify_admins(self, type: NotificationType, title: str, message: str, **kwargs) -> list[Notification]:
        """Notify every active admin."""
        return [
            self.notify(admin.id, type, title, message, **kwargs)
            for admin in list_admins(self.store)
        ]

    def list_for_user(self, user_id: str, unread_only: bool = False, page: int = 1, limit: int = 20) -> dict:
        notifications = [
            n for n in self.store.find(self.COLLECTION, Notification, user_id=user_id)
            if not (unread_only and n.is_read)
        ]
        notifications.sort(key=lambda n: n.created_at, reverse=True)

        result = paginate(notifications, page, limit)
        result["items"] = [n.to_dict() for n in result["items"]]
        result["unread_count"] = self.unread_count(user_id)
        return result

    def unread_count(self, user_id: str) -> int:
        return sum(
            1 for n in self.store.find(self.COLLECTION, Notification, user_id=user_id)
            if not n.is_read
        )

    def mark_read(self, notification_id: str, user_id: str) -> Notification:
        with self.store.lock:
            notification = self.store.get(self.COLLECTION, Notification, notification_id)
            if not notification or notification.user_id != user_id:
                raise NotFoundError("Notification not found")

            if notification.mark_read():
                self.store.update(self.COLLECTION, notification)
            return notification

    def mark_all_read(self, user_id: str) -> int:
        """Mark every notification for a user as read. Returns how many changed."""
        with self.store.lock:
            notifications = self.store.load(self.COLLECTION, Notification)
            changed = sum(1 for n in notifications if n.user_id == user_id and n.mark_read())
            if changed:
                self.store.save(self.COLLECTION, notifications)
            return changed

    def delete(self, notification_id: str, user_id: str) -> None:
        with self.store.lock:
            notification = self.store.get(self.COLLECTION, Notification, notification_id)
            if not notification or notification.user_id != user_id:
                raise NotFoundError("Notification not found")
            self.store.delete(self.COLLECTION, notification_id)
