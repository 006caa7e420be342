# booking_engine/infrastructure/repositories/notification_repository.py

import json

from sqlalchemy import select
from sqlalchemy.orm import Session

from booking_engine.infrastructure.db.models import Notification


class NotificationRepository:

    def __init__(self, db: Session):
        self.db = db

    def create(
        self,
        user_id: str,
        type: str,
        title: str,
        message: str,
        link: str | None,
        metadata: dict,
    ) -> Notification:
        notification = Notification(
            user_id=user_id,
            type=type,
            title=title,
            message=message,
            link=link,
            payload=json.dumps(metadata, sort_keys=True),
            read=False,
        )
        self.db.add(notification)
        return notification

    def list_for_user(self, user_id: str) -> list[Notification]:
        stmt = (
            select(Notification)
            .where(Notification.user_id == user_id)
            .order_by(Notification.created_at)
        )
        return list(self.db.execute(stmt).scalars().all())
