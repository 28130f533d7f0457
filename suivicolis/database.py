"""
Moteur SQLAlchemy asynchrone et sessions par requête.

Les services applicatifs décident eux-mêmes du commit (les transitions de
statut et les créations groupées doivent être atomiques). La dépendance ne
fait qu'annuler ce qui reste en cours si la requête échoue.
"""
import logging
from typing import AsyncGenerator

from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlmodel import SQLModel

from suivicolis.config import settings

logger = logging.getLogger(__name__)


def build_engine(database_url: str, echo: bool = False) -> AsyncEngine:
    return create_async_engine(database_url, echo=echo, pool_pre_ping=not database_url.startswith("sqlite"))


engine = build_engine(settings.DATABASE_URL, settings.DB_ECHO_LOG)

# expire_on_commit=False: les réponses sont construites après le commit
AsyncSessionLocal = async_sessionmaker(bind=engine, class_=AsyncSession, expire_on_commit=False)


async def get_db_session() -> AsyncGenerator[AsyncSession, None]:
    """Dépendance FastAPI: une session par requête."""
    async with AsyncSessionLocal() as session:
        try:
            yield session
        except Exception:
            logger.debug("Requête interrompue, annulation de la transaction en cours.")
            await session.rollback()
            raise


async def create_tables() -> None:
    """create_all sur toutes les tables (développement et premier démarrage)."""
    from suivicolis import models  # noqa: F401

    async with engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)
    logger.info(f"Tables créées sur {settings.DATABASE_URL.split('@')[-1]}.")
