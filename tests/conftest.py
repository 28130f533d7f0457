# Standard Library
from datetime import datetime, timedelta, timezone
from typing import AsyncGenerator

# Third-Party Libraries
import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool
from sqlmodel import SQLModel

# First-Party Libraries
from suivicolis import models  # noqa: F401
from suivicolis.auth.models import Actor
from suivicolis.auth.security import create_access_token, get_password_hash
from suivicolis.clients.models import Client
from suivicolis.clients.repositories import SQLAlchemyClientRepository
from suivicolis.clients.service import ClientService
from suivicolis.database import get_db_session
from suivicolis.main import app
from suivicolis.notifications.application.services import NotificationDispatcher
from suivicolis.notifications.dependencies import get_notification_sender
from suivicolis.notifications.infrastructure.mock_sender import MockNotificationSender
from suivicolis.notifications.infrastructure.persistence import SQLAlchemyNotificationRepository
from suivicolis.orders.application.services import OrderService
from suivicolis.orders.infrastructure.persistence import SQLAlchemyOrderRepository
from suivicolis.organizations.models import Organization, SubscriptionStatus, User, UserRole
from suivicolis.organizations.repositories import OrganizationRepository
from suivicolis.qrcodes.infrastructure.qrcode_issuer import QRCodeLibIssuer
from suivicolis.scanner.application.services import PickupVerifier
from suivicolis.tarifs.service import TarifService

# URL de base pour la DB en mémoire
TEST_DATABASE_BASE_URL = "sqlite+aiosqlite:///:memory:"
TEST_PUBLIC_URL = "https://suivi.test"

# --- Fixtures de Base ---


@pytest_asyncio.fixture(scope="function")
async def db_session() -> AsyncGenerator[AsyncSession, None]:
    """Crée un engine, des tables, et fournit une session DB en mémoire pour chaque test."""
    engine: AsyncEngine = create_async_engine(TEST_DATABASE_BASE_URL, echo=False, poolclass=StaticPool)

    async with engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)

    TestingSessionLocal = async_sessionmaker(
        bind=engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )

    async with TestingSessionLocal() as session:
        yield session

    await engine.dispose()


@pytest.fixture
def mock_sender() -> MockNotificationSender:
    return MockNotificationSender()


@pytest_asyncio.fixture(scope="function")
async def test_client(db_session: AsyncSession, mock_sender: MockNotificationSender) -> AsyncGenerator[AsyncClient, None]:
    """AsyncClient httpx branché sur la session de test et le sender simulé."""
    async def override_get_db_session() -> AsyncGenerator[AsyncSession, None]:
        yield db_session

    app.dependency_overrides[get_db_session] = override_get_db_session
    app.dependency_overrides[get_notification_sender] = lambda: mock_sender
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        yield client
    app.dependency_overrides.clear()


# --- Fixtures Organisations et Authentification ---


async def _create_organization(
    db_session: AsyncSession, name: str, status: SubscriptionStatus = SubscriptionStatus.ACTIVE
) -> Organization:
    organization = Organization(
        name=name,
        phone="+221 33 800 00 00",
        subscription_status=status,
        subscription_end_date=datetime.now(timezone.utc) + timedelta(days=30),
    )
    db_session.add(organization)
    await db_session.commit()
    await db_session.refresh(organization)
    return organization


async def _create_user(db_session: AsyncSession, organization: Organization, email: str) -> User:
    user = User(
        email=email,
        password_hash=get_password_hash("motdepasse123"),
        first_name="Test",
        last_name="Staff",
        role=UserRole.OWNER,
        organization_id=organization.id,
    )
    db_session.add(user)
    await db_session.commit()
    await db_session.refresh(user)
    return user


@pytest_asyncio.fixture(scope="function")
async def organization_a(db_session: AsyncSession) -> Organization:
    return await _create_organization(db_session, "Boutique Dakar")


@pytest_asyncio.fixture(scope="function")
async def organization_b(db_session: AsyncSession) -> Organization:
    return await _create_organization(db_session, "Boutique Thiès")


@pytest_asyncio.fixture(scope="function")
async def user_a(db_session: AsyncSession, organization_a: Organization) -> User:
    return await _create_user(db_session, organization_a, "staff.a@example.com")


@pytest_asyncio.fixture(scope="function")
async def user_b(db_session: AsyncSession, organization_b: Organization) -> User:
    return await _create_user(db_session, organization_b, "staff.b@example.com")


@pytest.fixture
def actor_a(user_a: User) -> Actor:
    return Actor(user_id=user_a.id, organization_id=user_a.organization_id)


@pytest.fixture
def actor_b(user_b: User) -> Actor:
    return Actor(user_id=user_b.id, organization_id=user_b.organization_id)


@pytest.fixture
def auth_headers_a(user_a: User) -> dict[str, str]:
    return {"Authorization": f"Bearer {create_access_token(user_a.id)}"}


@pytest.fixture
def auth_headers_b(user_b: User) -> dict[str, str]:
    return {"Authorization": f"Bearer {create_access_token(user_b.id)}"}


# --- Fixtures Clients ---


@pytest_asyncio.fixture(scope="function")
async def client_a(db_session: AsyncSession, organization_a: Organization) -> Client:
    """Client avec numéro WhatsApp."""
    client = Client(
        organization_id=organization_a.id,
        nom="Awa Ndiaye",
        telephone="77 123 45 67",
        whatsapp="+221771234567",
        email="awa@example.com",
    )
    db_session.add(client)
    await db_session.commit()
    await db_session.refresh(client)
    return client


@pytest_asyncio.fixture(scope="function")
async def client_b(db_session: AsyncSession, organization_b: Organization) -> Client:
    client = Client(organization_id=organization_b.id, nom="Moussa Fall", telephone="781112233")
    db_session.add(client)
    await db_session.commit()
    await db_session.refresh(client)
    return client


# --- Fixtures Services ---


@pytest.fixture
def qr_issuer() -> QRCodeLibIssuer:
    return QRCodeLibIssuer(TEST_PUBLIC_URL)


@pytest.fixture
def dispatcher(db_session: AsyncSession, mock_sender: MockNotificationSender) -> NotificationDispatcher:
    return NotificationDispatcher(SQLAlchemyNotificationRepository(db_session), mock_sender, TEST_PUBLIC_URL)


@pytest.fixture
def order_service(db_session: AsyncSession, qr_issuer: QRCodeLibIssuer, dispatcher: NotificationDispatcher) -> OrderService:
    organizations = OrganizationRepository(db_session)
    return OrderService(
        SQLAlchemyOrderRepository(db_session),
        ClientService(SQLAlchemyClientRepository(db_session), organizations),
        organizations,
        TarifService(db_session),
        qr_issuer,
        dispatcher,
    )


@pytest.fixture
def pickup_verifier(db_session: AsyncSession) -> PickupVerifier:
    return PickupVerifier(SQLAlchemyOrderRepository(db_session))
