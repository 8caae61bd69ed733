from fastapi import APIRouter, BackgroundTasks, Depends
from pydantic import BaseModel, Field
from sqlalchemy.engine import Engine
from typing import List

from ..auth import get_current_user_id
from ..database import get_engine
from ..models.relationship import RelationshipPublic, RelationshipStatusPublic, USER_ID_LENGTH
from ..services.notification import NotificationService, NotificationSink, build_push_sender
from ..services.relationships import FriendRelationshipStore

router = APIRouter(
    prefix="/friends",
    tags=["Friends"]
)

# Firebase is initialised once per process
push_sender = build_push_sender()


def get_notification_sink(engine: Engine = Depends(get_engine)) -> NotificationSink:
    return NotificationService(engine, push_sender)


def get_relationship_store(
    background_tasks: BackgroundTasks,
    engine: Engine = Depends(get_engine),
    sink: NotificationSink = Depends(get_notification_sink)
) -> FriendRelationshipStore:
    # Notifications go out after the response has been sent
    return FriendRelationshipStore(engine, sink, dispatch=background_tasks.add_task)


class FriendRequestCreate(BaseModel):
    target_id: str = Field(min_length=1, max_length=USER_ID_LENGTH)


@router.get("", response_model=List[str])
def list_friends(
    store: FriendRelationshipStore = Depends(get_relationship_store),
    current_user_id: str = Depends(get_current_user_id)
):
    return store.list_friends(current_user_id)


@router.get("/status/{other_id}", response_model=RelationshipStatusPublic)
def get_friend_status(
    other_id: str,
    store: FriendRelationshipStore = Depends(get_relationship_store),
    current_user_id: str = Depends(get_current_user_id)
):
    return RelationshipStatusPublic(
        user_id=other_id,
        status=store.get_status(current_user_id, other_id)
    )


@router.post("/requests", response_model=RelationshipPublic, status_code=201)
def send_friend_request(
    request: FriendRequestCreate,
    store: FriendRelationshipStore = Depends(get_relationship_store),
    current_user_id: str = Depends(get_current_user_id)
):
    return store.send_request(current_user_id, request.target_id)


@router.get("/requests/incoming", response_model=List[RelationshipPublic])
def list_incoming_requests(
    store: FriendRelationshipStore = Depends(get_relationship_store),
    current_user_id: str = Depends(get_current_user_id)
):
    return store.list_incoming(current_user_id)


@router.get("/requests/outgoing", response_model=List[RelationshipPublic])
def list_outgoing_requests(
    store: FriendRelationshipStore = Depends(get_relationship_store),
    current_user_id: str = Depends(get_current_user_id)
):
    return store.list_outgoing(current_user_id)


@router.put("/requests/{requester_id}/accept", response_model=RelationshipPublic)
def accept_friend_request(
    requester_id: str,
    store: FriendRelationshipStore = Depends(get_relationship_store),
    current_user_id: str = Depends(get_current_user_id)
):
    return store.accept_request(current_user_id, requester_id)


@router.put("/requests/{requester_id}/decline", status_code=204)
def decline_friend_request(
    requester_id: str,
    store: FriendRelationshipStore = Depends(get_relationship_store),
    current_user_id: str = Depends(get_current_user_id)
):
    store.decline_request(current_user_id, requester_id)


@router.delete("/{other_id}", status_code=204)
def remove_friend(
    other_id: str,
    store: FriendRelationshipStore = Depends(get_relationship_store),
    current_user_id: str = Depends(get_current_user_id)
):
    store.remove_friend(current_user_id, other_id)
