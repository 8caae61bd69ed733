import logging
from typing import List, Optional, Protocol

import firebase_admin
from firebase_admin import credentials, messaging
from sqlalchemy.engine import Engine
from sqlmodel import Session, select

from ..config import FIREBASE_CREDENTIALS_JSON
from ..models.device import Device
from ..models.notification import Notification, NotificationEvent, NotificationType

logger = logging.getLogger(__name__)

TITLES = {
    NotificationType.FRIEND_REQUEST_CREATED: "New Friend Request",
    NotificationType.FRIEND_REQUEST_ACCEPTED: "Friend Request Accepted",
}

MESSAGES = {
    NotificationType.FRIEND_REQUEST_CREATED: "{requester} sent you a friend request",
    NotificationType.FRIEND_REQUEST_ACCEPTED: "{requester} accepted your friend request",
}


class NotificationSink(Protocol):
    def notify(self, event: NotificationEvent) -> None:
        ...


class PushSender:
    """Sends FCM pushes to every registered device of a user."""

    def __init__(self, credentials_json: str):
        cred = credentials.Certificate(credentials_json)

        # Initialize Firebase Admin SDK if not already initialized
        try:
            firebase_admin.get_app()
        except ValueError:
            firebase_admin.initialize_app(cred)

    def send_notification(
        self,
        fcm_token: str,
        title: str,
        body: str,
        data: Optional[dict] = None
    ) -> bool:
        try:
            message = messaging.Message(
                notification=messaging.Notification(
                    title=title,
                    body=body,
                ),
                data=data or {},
                token=fcm_token,
            )

            messaging.send(message)
            return True
        except Exception:
            logger.exception("Error sending push notification")
            return False

    def send_notification_to_user(
        self,
        session: Session,
        user_id: str,
        title: str,
        body: str,
        data: Optional[dict] = None
    ) -> List[bool]:
        devices = session.exec(
            select(Device).where(Device.user_id == user_id)
        ).all()

        return [
            self.send_notification(
                fcm_token=device.fcm_token,
                title=title,
                body=body,
                data=data
            )
            for device in devices
        ]


class NotificationService:
    """Default sink: stores an inbox row, then pushes to the user's devices.

    The inbox row is written in its own transaction so it never shares fate
    with the relationship change that triggered it.
    """

    def __init__(self, engine: Engine, push: Optional[PushSender] = None):
        self.engine = engine
        self.push = push

    def notify(self, event: NotificationEvent) -> None:
        title = TITLES[event.type]
        body = MESSAGES[event.type].format(requester=event.requester)
        data = {"type": event.type.value, "from_user_id": event.requester}

        with Session(self.engine) as session:
            session.add(Notification(
                user_id=event.target,
                type=event.type,
                title=title,
                message=body,
                data=data,
            ))
            session.commit()

            if self.push:
                self.push.send_notification_to_user(
                    session=session,
                    user_id=event.target,
                    title=title,
                    body=body,
                    data=data
                )


def build_push_sender() -> Optional[PushSender]:
    if not FIREBASE_CREDENTIALS_JSON:
        return None
    return PushSender(FIREBASE_CREDENTIALS_JSON)
