from sqlmodel import Session, select

from meetup.models.device import Device
from meetup.models.notification import Notification, NotificationEvent, NotificationType
from meetup.services.notification import NotificationService
from meetup.services.relationships import FriendRelationshipStore, dispatch_inline


class StubPushSender:
    def __init__(self):
        self.sent = []

    def send_notification_to_user(self, session, user_id, title, body, data=None):
        tokens = session.exec(select(Device.fcm_token).where(Device.user_id == user_id)).all()
        self.sent.append((user_id, title, body, data, list(tokens)))
        return [True for _ in tokens]


def test_notify_stores_inbox_row(engine):
    service = NotificationService(engine)

    service.notify(NotificationEvent(
        type=NotificationType.FRIEND_REQUEST_CREATED,
        target="bob",
        requester="alice"
    ))

    with Session(engine) as session:
        notification = session.exec(select(Notification)).one()
    assert notification.user_id == "bob"
    assert notification.type == NotificationType.FRIEND_REQUEST_CREATED
    assert notification.title == "New Friend Request"
    assert notification.message == "alice sent you a friend request"
    assert notification.data == {"type": "friend_request_created", "from_user_id": "alice"}
    assert notification.is_read is False


def test_notify_pushes_to_target_devices(engine):
    with Session(engine) as session:
        session.add(Device(user_id="alice", fcm_token="token-a"))
        session.add(Device(user_id="bob", fcm_token="token-b"))
        session.commit()

    push = StubPushSender()
    NotificationService(engine, push).notify(NotificationEvent(
        type=NotificationType.FRIEND_REQUEST_ACCEPTED,
        target="alice",
        requester="bob"
    ))

    assert len(push.sent) == 1
    user_id, title, body, _, tokens = push.sent[0]
    assert user_id == "alice"
    assert title == "Friend Request Accepted"
    assert body == "bob accepted your friend request"
    assert tokens == ["token-a"]


def test_store_with_notification_service(engine):
    store = FriendRelationshipStore(engine, NotificationService(engine), dispatch=dispatch_inline)

    store.send_request("alice", "bob")
    store.accept_request("bob", "alice")

    with Session(engine) as session:
        rows = session.exec(select(Notification).order_by(Notification.notification_id)).all()
    assert [(n.user_id, n.type) for n in rows] == [
        ("bob", NotificationType.FRIEND_REQUEST_CREATED),
        ("alice", NotificationType.FRIEND_REQUEST_ACCEPTED),
    ]
