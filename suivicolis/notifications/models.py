import uuid
from datetime import datetime
from enum import Enum
from typing import Optional

import sqlalchemy as sa
from sqlmodel import Field, SQLModel

from suivicolis.core.columns import timestamp_column, utcnow


class NotificationChannel(str, Enum):
    SMS = "sms"
    WHATSAPP = "whatsapp"
    EMAIL = "email"


class NotificationStatus(str, Enum):
    SENT = "sent"
    FAILED = "failed"


def _values_enum(enum_cls, name: str) -> sa.Column:
    return sa.Column(
        sa.Enum(enum_cls, name=name, values_callable=lambda members: [m.value for m in members]),
        nullable=False,
    )


class Notification(SQLModel, table=True):
    """Une tentative d'envoi. Journal en ajout seul, jamais modifié."""
    __tablename__ = "notifications"

    id: str = Field(default_factory=lambda: str(uuid.uuid4()), primary_key=True, max_length=36)
    commande_id: str = Field(foreign_key="commandes.id", index=True, max_length=36)
    organization_id: str = Field(foreign_key="organizations.id", index=True, max_length=36)
    type: NotificationChannel = Field(sa_column=_values_enum(NotificationChannel, "notification_channel"))
    status: NotificationStatus = Field(sa_column=_values_enum(NotificationStatus, "notification_status"))
    destination: Optional[str] = Field(default=None, max_length=255)
    message: str = Field(sa_column=sa.Column(sa.Text, nullable=False))
    error: Optional[str] = Field(default=None, max_length=500)
    created_at: datetime = Field(default_factory=utcnow, sa_column=timestamp_column(nullable=False))


class NotificationRead(SQLModel):
    id: str
    commande_id: str
    type: NotificationChannel
    status: NotificationStatus
    destination: Optional[str] = None
    message: str
    error: Optional[str] = None
    created_at: datetime


class NotificationRequest(SQLModel):
    channel: NotificationChannel


class DispatchResult(SQLModel):
    sent: bool
    notification: NotificationRead
