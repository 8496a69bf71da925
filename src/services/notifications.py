"""In-memory notifications shown in the admin interface."""
from __future__ import annotations

import threading
import uuid
from dataclasses import asdict, dataclass, field
from datetime import datetime
from typing import Dict, List, Optional

from core.exceptions import NotFoundError, ValidationError
from core.logging_config import get_logger
from core.utils import utcnow

LOGGER = get_logger(__name__)

VALID_TYPES = {"info", "success", "warn", "error"}
VALID_STATUSES = {"persistent", "passive"}


@dataclass
class Notification:
    """A message for administrators."""

    message: str
    type: str = "info"
    status: str = "passive"
    id: str = field(default_factory=lambda: uuid.uuid4().hex)
    dismissible: bool = True
    html: bool = False
    created_at: datetime = field(default_factory=utcnow)

    def to_dict(self) -> Dict[str, object]:
        data = asdict(self)
        data["created_at"] = self.created_at.isoformat()
        return data


class NotificationCenter:
    """
    Holds notifications for the lifetime of the process.

    Adding a notification whose id already exists replaces the old one, so a
    fixed id can never appear twice.
    """

    def __init__(self):
        self._items: Dict[str, Notification] = {}
        self._lock = threading.Lock()

    def add(
        self,
        message: str,
        type: str = "info",
        status: str = "passive",
        id: Optional[str] = None,
        dismissible: bool = True,
        html: bool = False,
    ) -> Notification:
        """
        Store a notification.

        ``html`` marks the message as trusted markup; anything else is rendered escaped.
        """
        if type not in VALID_TYPES:
            raise ValidationError(f"Unknown notification type '{type}'")
        if status not in VALID_STATUSES:
            raise ValidationError(f"Unknown notification status '{status}'")

        notification = Notification(
            message=message, type=type, status=status, dismissible=dismissible, html=html
        )
        if id:
            notification.id = id
        with self._lock:
            self._items[notification.id] = notification
        LOGGER.debug("Notification added: %s", notification.id)
        return notification

    def browse(self) -> List[Notification]:
        with self._lock:
            return list(self._items.values())

    def destroy(self, notification_id: str) -> Notification:
        """
        Remove a notification.

        Raises:
            NotFoundError: If the id is unknown.
            ValidationError: If the notification cannot be dismissed.
        """
        with self._lock:
            notification = self._items.get(notification_id)
            if notification is None:
                raise NotFoundError(f"Notification '{notification_id}' not found")
            if not notification.dismissible:
                raise ValidationError(f"Notification '{notification_id}' cannot be dismissed")
            return self._items.pop(notification_id)

    def __len__(self) -> int:
        with self._lock:
            return len(self._items)


__all__ = ["Notification", "NotificationCenter"]
