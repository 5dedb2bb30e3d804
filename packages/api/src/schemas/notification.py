# This project was developed with assistance from AI tools.
"""Notification payload handed to the notification emitter."""

from typing import Any

from db.enums import NotificationPriority, NotificationType
from pydantic import BaseModel, Field


class NotificationCreate(BaseModel):
    title: str
    message: str
    type: NotificationType = NotificationType.INFO
    priority: NotificationPriority = NotificationPriority.MEDIUM
    data: dict[str, Any] = Field(default_factory=dict)
