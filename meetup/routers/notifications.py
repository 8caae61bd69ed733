from fastapi import APIRouter, Depends, Query
from sqlalchemy import update
from sqlmodel import Session, select
from typing import List

from ..auth import get_current_user_id
from ..config import NOTIFICATION_PAGE_SIZE
from ..database import get_session
from ..errors import NotFound
from ..models.notification import Notification, NotificationPublic

router = APIRouter(
    prefix="/notifications",
    tags=["Notifications"]
)


@router.get("", response_model=List[NotificationPublic])
def list_notifications(
    limit: int = Query(default=NOTIFICATION_PAGE_SIZE, ge=1, le=100),
    session: Session = Depends(get_session),
    current_user_id: str = Depends(get_current_user_id)
):
    return session.exec(
        select(Notification)
        .where(Notification.user_id == current_user_id)
        .order_by(Notification.created_at.desc(), Notification.notification_id.desc())
        .limit(limit)
    ).all()


@router.put("/read-all")
def mark_all_as_read(
    session: Session = Depends(get_session),
    current_user_id: str = Depends(get_current_user_id)
):
    result = session.exec(
        update(Notification)
        .where((Notification.user_id == current_user_id) & (Notification.is_read == False))  # noqa: E712
        .values(is_read=True)
    )
    session.commit()
    return {"updated": result.rowcount}


@router.put("/{notification_id}/read", response_model=NotificationPublic)
def mark_as_read(
    notification_id: int,
    session: Session = Depends(get_session),
    current_user_id: str = Depends(get_current_user_id)
):
    notification = session.get(Notification, notification_id)
    # Other users' notifications are reported as missing
    if not notification or notification.user_id != current_user_id:
        raise NotFound("Notification not found")

    notification.is_read = True
    session.add(notification)
    session.commit()
    session.refresh(notification)
    return notification
