"""Colonnes partagées par les modèles de table."""
from datetime import datetime, timezone

import sqlalchemy as sa


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def timestamp_column(nullable: bool = True, index: bool = False) -> sa.Column:
    """TIMESTAMP WITH TIME ZONE: toutes les dates sont écrites en UTC avec leur fuseau."""
    return sa.Column(sa.DateTime(timezone=True), nullable=nullable, index=index)
