from sqlmodel import SQLModel, Field
from sqlalchemy import CheckConstraint, Column, String, UniqueConstraint
from sqlalchemy.dialects import mysql
from typing import NamedTuple, Optional
from datetime import datetime, timezone
from enum import Enum

USER_ID_LENGTH = 64

# Ids are opaque, so "Bob" and "bob" are different users even on MySQL
UserIdType = String(USER_ID_LENGTH).with_variant(
    mysql.VARCHAR(USER_ID_LENGTH, collation="utf8mb4_bin"), "mysql", "mariadb"
)


def user_id_column(**kwargs) -> Column:
    return Column(UserIdType, nullable=False, **kwargs)


class RelationshipState(str, Enum):
    PENDING = "pending"
    ACCEPTED = "accepted"


class RelationshipStatus(str, Enum):
    NONE = "none"
    PENDING_SENT = "pending_sent"
    PENDING_RECEIVED = "pending_received"
    FRIENDS = "friends"


class PairKey(NamedTuple):
    """Order-independent key for two identities."""

    low: str
    high: str

    @classmethod
    def of(cls, a: str, b: str) -> "PairKey":
        return cls(min(a, b), max(a, b))


class RelationshipBase(SQLModel):
    requester_id: str = Field(sa_column=user_id_column(index=True))
    target_id: str = Field(sa_column=user_id_column(index=True))
    state: RelationshipState = Field(default=RelationshipState.PENDING)
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))


class Relationship(RelationshipBase, table=True):
    __tablename__ = "relationships"

    # One row per unordered pair, whichever side sent the request
    __table_args__ = (
        UniqueConstraint("user_low_id", "user_high_id", name="uq_relationships_pair"),
        CheckConstraint("requester_id <> target_id", name="ck_relationships_not_self"),
    )

    relationship_id: Optional[int] = Field(default=None, primary_key=True)
    user_low_id: str = Field(sa_column=user_id_column())
    user_high_id: str = Field(sa_column=user_id_column())

    @classmethod
    def pending(cls, requester_id: str, target_id: str) -> "Relationship":
        key = PairKey.of(requester_id, target_id)
        return cls(
            requester_id=requester_id,
            target_id=target_id,
            state=RelationshipState.PENDING,
            user_low_id=key.low,
            user_high_id=key.high,
        )

    def other_party(self, user_id: str) -> str:
        return self.target_id if self.requester_id == user_id else self.requester_id

    def status_for(self, viewer: str) -> RelationshipStatus:
        if self.state == RelationshipState.ACCEPTED:
            return RelationshipStatus.FRIENDS
        if self.requester_id == viewer:
            return RelationshipStatus.PENDING_SENT
        return RelationshipStatus.PENDING_RECEIVED


def derive_status(relationship: Optional[Relationship], viewer: str) -> RelationshipStatus:
    if relationship is None:
        return RelationshipStatus.NONE
    return relationship.status_for(viewer)


class RelationshipPublic(RelationshipBase):
    relationship_id: int


class RelationshipStatusPublic(SQLModel):
    user_id: str
    status: RelationshipStatus
