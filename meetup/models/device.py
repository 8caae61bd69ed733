from sqlmodel import SQLModel, Field
from sqlalchemy import UniqueConstraint
from typing import Optional
from datetime import datetime, timezone

from .relationship import user_id_column


class DeviceBase(SQLModel):
    fcm_token: str = Field(max_length=255, index=True)
    brand: Optional[str] = Field(default=None, max_length=50)
    model_name: Optional[str] = Field(default=None, max_length=100)
    os_name: Optional[str] = Field(default=None, max_length=20)
    os_version: Optional[str] = Field(default=None, max_length=20)


class Device(DeviceBase, table=True):
    __tablename__ = "devices"
    __table_args__ = (UniqueConstraint("user_id", "fcm_token", name="uq_devices_user_token"),)

    device_id: Optional[int] = Field(default=None, primary_key=True)
    user_id: str = Field(sa_column=user_id_column(index=True))
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))


class DeviceCreate(DeviceBase):
    pass


class DevicePublic(DeviceBase):
    device_id: int
    user_id: str
