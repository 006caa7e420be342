"""
Best-effort execution of lifecycle effects.

Runs after the booking transaction has committed. Nothing raised here
reaches the caller of the lifecycle operation.
"""

import logging
import os
from pathlib import Path
from typing import Iterable, Protocol

from jinja2 import Environment, FileSystemLoader, select_autoescape
from sqlalchemy.orm import sessionmaker

from booking_engine.domain.effects import Effect, EmailEffect, NotificationEffect
from booking_engine.infrastructure.db.session import get_db_session
from booking_engine.infrastructure.repositories.notification_repository import (
    NotificationRepository,
)

logger = logging.getLogger(__name__)

EMAIL_FROM = os.getenv("EMAIL_FROM", "no-reply@localhost")
EMAIL_TEMPLATE_DIR = Path(__file__).resolve().parent.parent / "templates" / "emails"


class NotificationSink(Protocol):
    def send(
        self,
        user_id: str,
        type: str,
        title: str,
        message: str,
        link: str | None,
        metadata: dict,
    ) -> None: ...


class EmailSender(Protocol):
    def send(self, to: str, subject: str, html: str) -> None: ...


class SqlNotificationSink:
    """Stores notifications in their own short transaction."""

    def __init__(self, session_factory: sessionmaker):
        self.session_factory = session_factory

    def send(
        self,
        user_id: str,
        type: str,
        title: str,
        message: str,
        link: str | None,
        metadata: dict,
    ) -> None:
        with get_db_session(self.session_factory) as db:
            NotificationRepository(db).create(
                user_id=user_id,
                type=type,
                title=title,
                message=message,
                link=link,
                metadata=metadata,
            )


class LoggingEmailSender:
    """Email sender that logs instead of delivering. Holds no per-message state."""

    def __init__(self, sender: str = EMAIL_FROM):
        self.sender = sender

    def send(self, to: str, subject: str, html: str) -> None:
        logger.info(
            "Email queued from=%s to=%s subject=%r (%s chars)",
            self.sender,
            to,
            subject,
            len(html),
        )


class EmailRenderer:

    def __init__(self, template_dir: Path = EMAIL_TEMPLATE_DIR):
        self.environment = Environment(
            loader=FileSystemLoader(str(template_dir)),
            autoescape=select_autoescape(["html"]),
        )

    def render(self, template: str, context: dict) -> str:
        return self.environment.get_template(template).render(**context)


class SideEffectDispatcher:

    def __init__(
        self,
        notification_sink: NotificationSink,
        email_sender: EmailSender,
        renderer: EmailRenderer | None = None,
    ):
        self.notification_sink = notification_sink
        self.email_sender = email_sender
        self.renderer = renderer or EmailRenderer()

    def dispatch(self, effects: Iterable[Effect]) -> int:
        """
        Performs each effect independently.
        Returns how many succeeded; failures are logged and dropped.
        """
        delivered = 0
        for effect in effects:
            try:
                self._perform(effect)
            except Exception:
                logger.exception("Failed to perform %s", type(effect).__name__)
                continue
            delivered += 1
        return delivered

    def _perform(self, effect: Effect) -> None:
        if isinstance(effect, NotificationEffect):
            self.notification_sink.send(
                user_id=effect.user_id,
                type=effect.type,
                title=effect.title,
                message=effect.message,
                link=effect.link,
                metadata=dict(effect.metadata),
            )
        elif isinstance(effect, EmailEffect):
            html = self.renderer.render(effect.template, effect.context)
            self.email_sender.send(to=effect.to, subject=effect.subject, html=html)
        else:
            raise TypeError(f"Unknown effect type: {type(effect).__name__}")
