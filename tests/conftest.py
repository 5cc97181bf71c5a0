"""
Test configuration and fixtures for the real estate marketplace API.
Provides database fixtures, test data factories, and common test utilities.
"""

import os
import tempfile

# Settings are read at import time, so the test environment must be in place first
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("ENVIRONMENT", "testing")
os.environ.setdefault("RATE_LIMIT_ENABLED", "false")
os.environ.setdefault("UPLOAD_DIR", tempfile.mkdtemp(prefix="marketplace-uploads-"))

import pytest
import uuid
from datetime import date, datetime, time, timedelta
from decimal import Decimal
from typing import AsyncGenerator, Dict, Optional
from sqlalchemy.ext.asyncio import AsyncSession
from httpx import AsyncClient, ASGITransport

from app.main import app
from app.database import AsyncSessionLocal, create_tables, drop_tables, get_db
from app.models.user import User, UserRole, SubscriptionTier
from app.models.property import Property, PropertyCategory, PropertyStatus, TransactionType
from app.repositories.user import UserRepository
from app.repositories.property import PropertyRepository
from app.repositories.image import ImageRepository
from app.repositories.favorite import FavoriteRepository
from app.repositories.appointment import AppointmentRepository
from app.repositories.agent_client import AgentClientRepository
from app.services.auth import AuthService
from app.services.property import PropertyService
from app.services.favorite import FavoriteService
from app.services.crm import CRMService
from app.services.subscription import SubscriptionService
from app.services.admin import AdminService
from app.utils.auth import create_access_token
from app.utils.availability import get_business_timezone, is_workday
from app.utils.cache import response_cache
from app.utils.rate_limit import rate_limiter


@pytest.fixture(autouse=True)
async def setup_test_database():
    """Fresh schema for every test."""
    await create_tables()
    yield
    await drop_tables()


@pytest.fixture(autouse=True)
def reset_shared_state():
    """Cached listing pages and rate limit windows live in process memory."""
    response_cache.clear()
    rate_limiter.reset()
    yield
    response_cache.clear()
    rate_limiter.reset()


@pytest.fixture
async def db_session() -> AsyncGenerator[AsyncSession, None]:
    """Create a test database session."""
    async with AsyncSessionLocal() as session:
        try:
            yield session
        finally:
            await session.rollback()
            await session.close()


@pytest.fixture
async def async_client(db_session: AsyncSession) -> AsyncGenerator[AsyncClient, None]:
    """Create an async test client with database session override."""
    async def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client

    app.dependency_overrides.clear()


# Repository fixtures
@pytest.fixture
def user_repository(db_session: AsyncSession) -> UserRepository:
    return UserRepository(db_session)


@pytest.fixture
def property_repository(db_session: AsyncSession) -> PropertyRepository:
    return PropertyRepository(db_session)


@pytest.fixture
def image_repository(db_session: AsyncSession) -> ImageRepository:
    return ImageRepository(db_session)


@pytest.fixture
def favorite_repository(db_session: AsyncSession) -> FavoriteRepository:
    return FavoriteRepository(db_session)


@pytest.fixture
def appointment_repository(db_session: AsyncSession) -> AppointmentRepository:
    return AppointmentRepository(db_session)


@pytest.fixture
def agent_client_repository(db_session: AsyncSession) -> AgentClientRepository:
    return AgentClientRepository(db_session)


# Service fixtures
@pytest.fixture
def auth_service(db_session: AsyncSession) -> AuthService:
    return AuthService(db_session)


@pytest.fixture
def property_service(db_session: AsyncSession) -> PropertyService:
    return PropertyService(db_session)


@pytest.fixture
def favorite_service(db_session: AsyncSession) -> FavoriteService:
    return FavoriteService(db_session)


@pytest.fixture
def crm_service(db_session: AsyncSession) -> CRMService:
    return CRMService(db_session)


@pytest.fixture
def subscription_service(db_session: AsyncSession) -> SubscriptionService:
    return SubscriptionService(db_session)


@pytest.fixture
def admin_service(db_session: AsyncSession) -> AdminService:
    return AdminService(db_session)


# Test data factories
class UserFactory:
    """Factory for creating test users."""

    @staticmethod
    def create_user_data(
        email: str = None,
        password: str = "testpassword123",
        name: str = "Test User",
        role: UserRole = UserRole.CLIENT,
        subscription_tier: SubscriptionTier = SubscriptionTier.FREE,
        is_active: bool = True
    ) -> dict:
        return {
            "email": email or f"test{uuid.uuid4().hex[:8]}@example.com",
            "password": password,
            "name": name,
            "role": role,
            "subscription_tier": subscription_tier,
            "is_active": is_active
        }

    @staticmethod
    async def create_user(user_repo: UserRepository, **kwargs) -> User:
        """Create a test user in the database."""
        return await user_repo.create_user(UserFactory.create_user_data(**kwargs))


class PropertyFactory:
    """Factory for creating test properties."""

    @staticmethod
    def create_property_data(
        title: str = "Casa con jardín en Cuenca",
        description: str = "Amplia casa familiar con jardín privado y garaje cubierto.",
        price: Decimal = Decimal("150000.00"),
        transaction_type: TransactionType = TransactionType.SALE,
        category: PropertyCategory = PropertyCategory.HOUSE,
        status: PropertyStatus = PropertyStatus.AVAILABLE,
        bedrooms: int = 3,
        bathrooms: Decimal = Decimal("2"),
        area: Decimal = Decimal("180"),
        address: str = "Calle Larga 7-45",
        city: Optional[str] = "Cuenca",
        state: Optional[str] = "Azuay",
        zip_code: Optional[str] = None,
        latitude: Optional[Decimal] = Decimal("-2.8974"),
        longitude: Optional[Decimal] = Decimal("-79.0045"),
        is_featured: bool = False,
        agent_id: uuid.UUID = None
    ) -> dict:
        data = {
            "title": title,
            "description": description,
            "price": price,
            "transaction_type": transaction_type,
            "category": category,
            "status": status,
            "bedrooms": bedrooms,
            "bathrooms": bathrooms,
            "area": area,
            "address": address,
            "city": city,
            "state": state,
            "zip_code": zip_code,
            "latitude": latitude,
            "longitude": longitude,
            "is_featured": is_featured
        }
        if agent_id is not None:
            data["agent_id"] = agent_id
        return data

    @staticmethod
    def create_payload(**kwargs) -> dict:
        """JSON body for POST /properties."""
        data = PropertyFactory.create_property_data(**kwargs)
        data.pop("agent_id", None)
        return {
            key: (float(value) if isinstance(value, Decimal) else getattr(value, "value", value))
            for key, value in data.items()
        }

    @staticmethod
    async def create_property(property_repo: PropertyRepository, agent_id: uuid.UUID, **kwargs) -> Property:
        """Create a test property in the database."""
        return await property_repo.create_property(
            PropertyFactory.create_property_data(agent_id=agent_id, **kwargs)
        )


class ImageFactory:
    """Factory for creating test property images."""

    @staticmethod
    def create_image_data(property_id: uuid.UUID, order: int = 0, url: str = None, alt: str = None) -> dict:
        return {
            "property_id": property_id,
            "url": url or f"/media/properties/{property_id}/{uuid.uuid4().hex}.jpg",
            "alt": alt or f"Foto {order + 1}",
            "order": order
        }

    @staticmethod
    async def create_images(image_repo: ImageRepository, property_id: uuid.UUID, count: int = 1) -> list:
        return await image_repo.create_many(
            [ImageFactory.create_image_data(property_id, order=index) for index in range(count)]
        )


def auth_headers(user: User) -> Dict[str, str]:
    token = create_access_token(user.id, user.email, user.role)
    return {"Authorization": f"Bearer {token}"}


def next_bookable_slot(hour: int = 10, min_days_ahead: int = 2) -> datetime:
    """A business-local weekday slot far enough ahead to satisfy the notice rule."""
    tz = get_business_timezone()
    day: date = datetime.now(tz).date() + timedelta(days=min_days_ahead)
    while not is_workday(day):
        day += timedelta(days=1)
    return datetime.combine(day, time(hour=hour), tzinfo=tz)


# Common test fixtures
@pytest.fixture
async def test_client_user(user_repository: UserRepository) -> User:
    return await UserFactory.create_user(
        user_repository,
        email="client@test.com",
        name="Test Client",
        role=UserRole.CLIENT
    )


@pytest.fixture
async def test_agent(user_repository: UserRepository) -> User:
    """Agent on the PLUS plan (3 listings, 10 images per listing)."""
    return await UserFactory.create_user(
        user_repository,
        email="agent@test.com",
        name="Test Agent",
        role=UserRole.AGENT,
        subscription_tier=SubscriptionTier.PLUS
    )


@pytest.fixture
async def test_free_agent(user_repository: UserRepository) -> User:
    return await UserFactory.create_user(
        user_repository,
        email="free-agent@test.com",
        name="Free Agent",
        role=UserRole.AGENT
    )


@pytest.fixture
async def test_admin(user_repository: UserRepository) -> User:
    return await UserFactory.create_user(
        user_repository,
        email="admin@test.com",
        name="Test Admin",
        role=UserRole.ADMIN
    )


@pytest.fixture
async def test_inactive_user(user_repository: UserRepository) -> User:
    return await UserFactory.create_user(
        user_repository,
        email="inactive@test.com",
        name="Inactive User",
        is_active=False
    )


@pytest.fixture
async def test_property(property_repository: PropertyRepository, test_agent: User) -> Property:
    return await PropertyFactory.create_property(property_repository, agent_id=test_agent.id)


@pytest.fixture
async def test_property_images(image_repository: ImageRepository, test_property: Property) -> list:
    return await ImageFactory.create_images(image_repository, test_property.id, count=3)


@pytest.fixture
def client_headers(test_client_user: User) -> Dict[str, str]:
    return auth_headers(test_client_user)


@pytest.fixture
def agent_headers(test_agent: User) -> Dict[str, str]:
    return auth_headers(test_agent)


@pytest.fixture
def admin_headers(test_admin: User) -> Dict[str, str]:
    return auth_headers(test_admin)
