import logging
from concurrent.futures import ThreadPoolExecutor
from typing import Callable, List, Optional

from sqlalchemy import delete, or_, update
from sqlalchemy.engine import Engine
from sqlalchemy.exc import IntegrityError
from sqlmodel import Session, select

from ..errors import Conflict, Forbidden, InvalidArgument, NotFound
from ..models.notification import NotificationEvent, NotificationType
from ..models.relationship import (
    USER_ID_LENGTH,
    PairKey,
    Relationship,
    RelationshipState,
    RelationshipStatus,
    derive_status,
)
from .notification import NotificationSink

logger = logging.getLogger(__name__)

# Same call shape as BackgroundTasks.add_task(func, *args)
Dispatch = Callable[..., None]

_notification_pool = ThreadPoolExecutor(max_workers=4, thread_name_prefix="notify")


def dispatch_in_background(func, *args):
    _notification_pool.submit(func, *args)


def dispatch_inline(func, *args):
    func(*args)


def _check_distinct(user_id: str, other_id: str):
    for value in (user_id, other_id):
        if not value or len(value) > USER_ID_LENGTH:
            raise InvalidArgument(f"User ids must be 1 to {USER_ID_LENGTH} characters")
    if user_id == other_id:
        raise InvalidArgument("Cannot be friends with yourself")


def _pair_filter(a: str, b: str):
    key = PairKey.of(a, b)
    return (Relationship.user_low_id == key.low) & (Relationship.user_high_id == key.high)


class FriendRelationshipStore:
    """Owns the friend relationship rows and every transition between them.

    Each mutation runs in its own transaction. Creating a request leans on the
    unique pair constraint, so two users requesting each other at the same
    time end up with exactly one row; the other caller gets ``Conflict``.
    Accept, decline and remove are conditional writes that only touch a row
    still in the expected state.

    Notifications are handed to ``dispatch`` after commit, so a slow or
    broken sink never delays or fails the mutation. The default runs them on
    a small thread pool; the HTTP layer passes ``BackgroundTasks.add_task``.
    """

    def __init__(
        self,
        engine: Engine,
        sink: Optional[NotificationSink] = None,
        dispatch: Dispatch = dispatch_in_background
    ):
        self.engine = engine
        self.sink = sink
        self.dispatch = dispatch

    def get_relationship(self, user_id: str, other_id: str) -> Optional[Relationship]:
        with Session(self.engine) as session:
            return session.exec(
                select(Relationship).where(_pair_filter(user_id, other_id))
            ).first()

    def get_status(self, viewer: str, other: str) -> RelationshipStatus:
        _check_distinct(viewer, other)
        return derive_status(self.get_relationship(viewer, other), viewer)

    def send_request(self, requester: str, target: str) -> Relationship:
        _check_distinct(requester, target)

        with Session(self.engine) as session:
            existing = session.exec(
                select(Relationship).where(_pair_filter(requester, target))
            ).first()
            if existing:
                raise Conflict("A friend request already exists or you are already friends")

            relationship = Relationship.pending(requester, target)
            session.add(relationship)
            try:
                session.commit()
            except IntegrityError as e:
                # Lost the race against a request for the same pair
                session.rollback()
                raise Conflict("A friend request already exists or you are already friends") from e
            session.refresh(relationship)

        logger.info("Friend request %s -> %s created", requester, target)
        self._emit(NotificationEvent(
            type=NotificationType.FRIEND_REQUEST_CREATED,
            target=target,
            requester=requester
        ))
        return relationship

    def accept_request(self, acting_user: str, requester: str) -> Relationship:
        _check_distinct(acting_user, requester)

        with Session(self.engine) as session:
            relationship = self._pending_request_for(session, acting_user, requester)
            result = session.exec(
                update(Relationship)
                .where(
                    (Relationship.relationship_id == relationship.relationship_id) &
                    (Relationship.state == RelationshipState.PENDING)
                )
                .values(state=RelationshipState.ACCEPTED)
            )
            if result.rowcount != 1:
                session.rollback()
                raise NotFound("Friend request not found")
            session.commit()
            session.refresh(relationship)

        logger.info("Friend request %s -> %s accepted", requester, acting_user)
        self._emit(NotificationEvent(
            type=NotificationType.FRIEND_REQUEST_ACCEPTED,
            target=requester,
            requester=acting_user
        ))
        return relationship

    def decline_request(self, acting_user: str, requester: str) -> None:
        _check_distinct(acting_user, requester)

        with Session(self.engine) as session:
            relationship = self._pending_request_for(session, acting_user, requester)
            result = session.exec(
                delete(Relationship).where(
                    (Relationship.relationship_id == relationship.relationship_id) &
                    (Relationship.state == RelationshipState.PENDING)
                )
            )
            if result.rowcount != 1:
                session.rollback()
                raise NotFound("Friend request not found")
            session.commit()

        logger.info("Friend request %s -> %s declined", requester, acting_user)

    def remove_friend(self, acting_user: str, other: str) -> None:
        _check_distinct(acting_user, other)

        with Session(self.engine) as session:
            result = session.exec(
                delete(Relationship).where(
                    _pair_filter(acting_user, other) &
                    (Relationship.state == RelationshipState.ACCEPTED)
                )
            )
            if result.rowcount == 0:
                session.rollback()
                raise NotFound("Friendship not found")
            session.commit()

        logger.info("%s removed friend %s", acting_user, other)

    def list_friends(self, user_id: str) -> List[str]:
        with Session(self.engine) as session:
            relationships = session.exec(
                select(Relationship)
                .where(
                    or_(Relationship.requester_id == user_id, Relationship.target_id == user_id) &
                    (Relationship.state == RelationshipState.ACCEPTED)
                )
                .order_by(Relationship.created_at.desc(), Relationship.relationship_id.desc())
            ).all()
        return [relationship.other_party(user_id) for relationship in relationships]

    def list_incoming(self, user_id: str) -> List[Relationship]:
        return self._list_pending(Relationship.target_id == user_id)

    def list_outgoing(self, user_id: str) -> List[Relationship]:
        return self._list_pending(Relationship.requester_id == user_id)

    def _list_pending(self, condition) -> List[Relationship]:
        with Session(self.engine) as session:
            return list(session.exec(
                select(Relationship)
                .where(condition & (Relationship.state == RelationshipState.PENDING))
                .order_by(Relationship.created_at.desc(), Relationship.relationship_id.desc())
            ).all())

    def _pending_request_for(self, session: Session, acting_user: str, requester: str) -> Relationship:
        relationship = session.exec(
            select(Relationship).where(_pair_filter(acting_user, requester))
        ).first()
        if relationship is None or relationship.state != RelationshipState.PENDING:
            raise NotFound("Friend request not found")
        if relationship.target_id != acting_user:
            raise Forbidden("Can only respond to friend requests sent to you")
        return relationship

    def _emit(self, event: NotificationEvent):
        if self.sink is None:
            return
        self.dispatch(self._deliver, event)

    def _deliver(self, event: NotificationEvent):
        try:
            self.sink.notify(event)
        except Exception:
            logger.exception("Failed to deliver %s notification to %s", event.type.value, event.target)
