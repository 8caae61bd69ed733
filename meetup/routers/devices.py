from fastapi import APIRouter, Depends
from sqlmodel import Session, select

from ..auth import get_current_user_id
from ..database import get_session
from ..models.device import Device, DeviceCreate, DevicePublic

router = APIRouter(
    prefix="/devices",
    tags=["Devices"]
)


@router.post("", response_model=DevicePublic)
def register_device(
    request: DeviceCreate,
    session: Session = Depends(get_session),
    current_user_id: str = Depends(get_current_user_id)
):
    device = session.exec(
        select(Device).where(
            (Device.user_id == current_user_id) &
            (Device.fcm_token == request.fcm_token)
        )
    ).first()

    if device:
        device.sqlmodel_update(request.model_dump(exclude_unset=True))
    else:
        device = Device.model_validate(request, update={"user_id": current_user_id})

    session.add(device)
    session.commit()
    session.refresh(device)
    return device


@router.delete("/{fcm_token}", status_code=204)
def remove_device(
    fcm_token: str,
    session: Session = Depends(get_session),
    current_user_id: str = Depends(get_current_user_id)
):
    # Logging out twice is not an error
    device = session.exec(
        select(Device).where(
            (Device.user_id == current_user_id) &
            (Device.fcm_token == fcm_token)
        )
    ).first()

    if device:
        session.delete(device)
        session.commit()
