"""
Tests for repository layer.
Tests data access operations, filtering, aggregates and ownership checks.
"""

import pytest
import uuid
from datetime import timedelta, timezone
from decimal import Decimal

from app.models.agent_client import LeadStatus
from app.models.appointment import AppointmentStatus
from app.models.property import PropertyCategory, PropertyStatus, TransactionType
from app.models.social import SharePlatform
from app.models.user import UserRole, SubscriptionTier
from app.repositories.social import PropertyShareRepository, PropertyViewRepository
from app.schemas.property import PropertyFilters
from app.utils.exceptions import (
    ConflictError,
    DuplicateResourceError,
    ForbiddenError,
    NotFoundError,
    ValidationError,
)
from tests.conftest import UserFactory, PropertyFactory, ImageFactory, next_bookable_slot


class TestUserRepository:
    """Test user repository operations."""

    async def test_create_user_normalizes_email_and_hashes_password(self, user_repository):
        user = await UserFactory.create_user(user_repository, email="New.User@Example.com", password="secret123")

        assert user.email == "new.user@example.com"
        assert user.hashed_password != "secret123"
        assert user.role == UserRole.CLIENT
        assert user.subscription_tier == SubscriptionTier.FREE

    async def test_create_user_duplicate_email(self, user_repository, test_agent):
        with pytest.raises(DuplicateResourceError):
            await UserFactory.create_user(user_repository, email="AGENT@test.com")

    async def test_create_user_invalid_email(self, user_repository):
        with pytest.raises(ValueError):
            await UserFactory.create_user(user_repository, email="not-an-email")

    async def test_authenticate_user(self, user_repository, test_agent):
        assert (await user_repository.authenticate_user("agent@test.com", "testpassword123")).id == test_agent.id
        assert await user_repository.authenticate_user("agent@test.com", "wrong") is None
        assert await user_repository.authenticate_user("missing@test.com", "testpassword123") is None

    async def test_update_user_self(self, user_repository, test_client_user):
        updated = await user_repository.update_user(
            test_client_user.id, {"name": "Renamed", "password": "newpassword1"}, test_client_user.id
        )

        assert updated.name == "Renamed"
        assert updated.verify_password("newpassword1") is True

    async def test_update_other_user_requires_admin(self, user_repository, test_client_user, test_agent, test_admin):
        with pytest.raises(ForbiddenError):
            await user_repository.update_user(test_agent.id, {"name": "Nope"}, test_client_user.id)

        updated = await user_repository.update_user(test_agent.id, {"name": "By Admin"}, test_admin.id)
        assert updated.name == "By Admin"

    async def test_update_missing_user(self, user_repository, test_admin):
        with pytest.raises(NotFoundError):
            await user_repository.update_user(uuid.uuid4(), {"name": "Ghost"}, test_admin.id)

    async def test_delete_user_requires_admin(self, user_repository, test_client_user, test_agent):
        with pytest.raises(ForbiddenError):
            await user_repository.delete_user(test_agent.id, test_client_user.id)

    async def test_list_users_with_counts(
        self, user_repository, property_repository, favorite_repository, test_client_user, test_agent, test_property
    ):
        await favorite_repository.add_favorite(test_client_user.id, test_property.id)

        users, total = await user_repository.list_users()
        by_email = {user["email"]: user for user in users}

        assert total == 2
        assert by_email["agent@test.com"]["property_count"] == 1
        assert by_email["client@test.com"]["favorite_count"] == 1

        agents, agent_total = await user_repository.list_users(role=UserRole.AGENT)
        assert agent_total == 1
        assert agents[0]["email"] == "agent@test.com"

        found, found_total = await user_repository.list_users(search="CLIENT")
        assert found_total == 1

    async def test_get_agents(self, user_repository, test_agent, test_client_user):
        agents = await user_repository.get_agents()
        assert [agent.id for agent in agents] == [test_agent.id]

    async def test_get_agents_skips_inactive_agents(self, user_repository, test_agent):
        await UserFactory.create_user(user_repository, name="Ana Agente", role=UserRole.AGENT)
        await UserFactory.create_user(user_repository, name="Bruno Inactivo", role=UserRole.AGENT, is_active=False)

        agents = await user_repository.get_agents()
        assert [agent.name for agent in agents] == ["Ana Agente", "Test Agent"]
        assert await user_repository.count_agents() == 2

        page = await user_repository.get_agents(skip=1, take=1)
        assert [agent.id for agent in page] == [test_agent.id]

    async def test_get_multi_filters_and_order(self, user_repository, test_agent, test_client_user, test_admin):
        users = await user_repository.get_multi(
            filters={"role": [UserRole.AGENT, UserRole.CLIENT]}, order_by="-name"
        )
        assert [user.id for user in users] == [test_client_user.id, test_agent.id]

    async def test_get_by_field(self, user_repository, test_agent):
        found = await user_repository.get_by_field("name", "Test Agent")
        assert found.id == test_agent.id
        assert await user_repository.get_by_field("name", "Nadie") is None

        with pytest.raises(ValueError):
            await user_repository.get_by_field("nickname", "agent")


class TestPropertyRepository:
    """Test property repository operations."""

    @pytest.fixture
    async def listings(self, property_repository, test_agent):
        """A small, varied catalogue."""
        return [
            await PropertyFactory.create_property(
                property_repository, agent_id=test_agent.id, title="Casa en Cuenca",
                price=Decimal("120000"), bedrooms=3
            ),
            await PropertyFactory.create_property(
                property_repository, agent_id=test_agent.id, title="Departamento en Quito",
                category=PropertyCategory.APARTMENT, transaction_type=TransactionType.RENT,
                price=Decimal("800"), bedrooms=2, city="Quito", state="Pichincha",
                latitude=Decimal("-0.1807"), longitude=Decimal("-78.4678")
            ),
            await PropertyFactory.create_property(
                property_repository, agent_id=test_agent.id, title="Terreno vendido en Cuenca",
                category=PropertyCategory.LAND, status=PropertyStatus.SOLD,
                price=Decimal("45000"), bedrooms=0, latitude=None, longitude=None
            ),
        ]

    async def test_list_properties_without_filters(self, property_repository, listings):
        properties, total = await property_repository.list_properties()
        assert total == 3
        assert len(properties) == 3

    async def test_list_properties_pagination(self, property_repository, listings):
        page, total = await property_repository.list_properties(skip=1, take=1)
        assert total == 3
        assert len(page) == 1

    @pytest.mark.parametrize("filters,expected_titles", [
        (PropertyFilters(city="cuenca"), {"Casa en Cuenca", "Terreno vendido en Cuenca"}),
        (PropertyFilters(transaction_type=TransactionType.RENT), {"Departamento en Quito"}),
        (PropertyFilters(category=[PropertyCategory.HOUSE, PropertyCategory.LAND]),
         {"Casa en Cuenca", "Terreno vendido en Cuenca"}),
        (PropertyFilters(min_price=1000, max_price=130000), {"Casa en Cuenca", "Terreno vendido en Cuenca"}),
        (PropertyFilters(bedrooms=2), {"Casa en Cuenca", "Departamento en Quito"}),
        (PropertyFilters(status=PropertyStatus.SOLD), {"Terreno vendido en Cuenca"}),
        (PropertyFilters(search="departamento"), {"Departamento en Quito"}),
    ])
    async def test_list_properties_filters(self, property_repository, listings, filters, expected_titles):
        properties, total = await property_repository.list_properties(filters)
        assert {prop.title for prop in properties} == expected_titles
        assert total == len(expected_titles)

    async def test_update_property_ownership(self, property_repository, user_repository, test_property, test_admin):
        other_agent = await UserFactory.create_user(user_repository, role=UserRole.AGENT)

        with pytest.raises(ForbiddenError):
            await property_repository.update_property(test_property.id, {"title": "Hijacked"}, other_agent)

        updated = await property_repository.update_property(
            test_property.id, {"price": Decimal("99000")}, test_admin
        )
        assert float(updated.price) == 99000.0

    async def test_update_property_clears_zip_code(self, property_repository, test_agent):
        prop = await PropertyFactory.create_property(property_repository, test_agent.id, zip_code="010101")

        updated = await property_repository.update_property(prop.id, {"zip_code": None}, test_agent)

        assert updated.zip_code is None
        assert updated.city == "Cuenca"

    async def test_update_missing_property(self, property_repository, test_admin):
        with pytest.raises(NotFoundError):
            await property_repository.update_property(uuid.uuid4(), {"title": "Ghost"}, test_admin)

    async def test_delete_property_ownership(self, property_repository, user_repository, test_property):
        other_agent = await UserFactory.create_user(user_repository, role=UserRole.AGENT)
        with pytest.raises(ForbiddenError):
            await property_repository.delete_property(test_property.id, other_agent)

    async def test_find_in_bounds(self, property_repository, listings):
        properties, total = await property_repository.find_in_bounds(-3.5, -2.0, -79.5, -78.5)
        assert total == 1
        assert properties[0].title == "Casa en Cuenca"

        filtered, filtered_total = await property_repository.find_in_bounds(
            -3.5, 0.0, -79.5, -78.0, PropertyFilters(transaction_type=TransactionType.RENT)
        )
        assert filtered_total == 1
        assert filtered[0].city == "Quito"

    @pytest.mark.parametrize("bounds,message", [
        ((-91, 0, -79, -78), "Latitude"),
        ((-3, -2, -181, -78), "Longitude"),
        ((-2, -3, -79, -78), "Minimum latitude"),
        ((-3, -2, 170, -170), "antimeridian"),
    ])
    async def test_find_in_bounds_validation(self, property_repository, bounds, message):
        with pytest.raises(ValidationError) as exc_info:
            await property_repository.find_in_bounds(*bounds)
        assert message in exc_info.value.detail

    async def test_find_nearby_only_available(self, property_repository, test_agent, listings):
        await PropertyFactory.create_property(
            property_repository, agent_id=test_agent.id, title="Casa reservada en Cuenca",
            status=PropertyStatus.PENDING
        )

        nearby = await property_repository.find_nearby(-2.9, -79.0, radius_km=5)
        assert [prop.title for prop in nearby] == ["Casa en Cuenca"]

        assert await property_repository.find_nearby(-2.9, -79.0, radius_km=0.01) == []

    async def test_price_range(self, property_repository, listings):
        assert await property_repository.get_price_range() == (800.0, 120000.0)
        assert await property_repository.get_price_range(PropertyFilters(city="Guayaquil")) == (0.0, 0.0)

    async def test_price_distribution(self, property_repository, test_agent, listings):
        await PropertyFactory.create_property(property_repository, agent_id=test_agent.id, price=Decimal("125000"))

        distribution = await property_repository.get_price_distribution(bucket_size=50000)
        assert distribution == [{"bucket": 0, "count": 1}, {"bucket": 100000, "count": 2}]

        with pytest.raises(ValidationError):
            await property_repository.get_price_distribution(bucket_size=0)

    async def test_cities(self, property_repository, listings):
        cities = await property_repository.get_cities()
        assert cities[0] == {"id": "cuenca-azuay", "name": "Cuenca", "state": "Azuay", "property_count": 2}
        assert {city["name"] for city in cities} == {"Cuenca", "Quito"}

        assert await property_repository.get_cities_autocomplete("q") == []
        matches = await property_repository.get_cities_autocomplete("qui")
        assert [city["name"] for city in matches] == ["Quito"]

    async def test_agent_counts(self, property_repository, test_agent, listings):
        await PropertyFactory.create_property(property_repository, agent_id=test_agent.id, is_featured=True)

        assert await property_repository.count_by_agent(test_agent.id) == 4
        assert await property_repository.count_featured_by_agent(test_agent.id) == 1

    async def test_list_for_admin_counts(
        self, property_repository, favorite_repository, test_client_user, test_property
    ):
        await favorite_repository.add_favorite(test_client_user.id, test_property.id)

        rows, total = await property_repository.list_for_admin()
        assert total == 1
        prop, favorite_count, appointment_count = rows[0]
        assert prop.id == test_property.id
        assert favorite_count == 1
        assert appointment_count == 0

    async def test_update_status(self, property_repository, test_property):
        updated = await property_repository.update_status(test_property.id, PropertyStatus.RENTED)
        assert updated.status == PropertyStatus.RENTED
        assert await property_repository.update_status(uuid.uuid4(), PropertyStatus.SOLD) is None

    async def test_count_available_by_agents(self, property_repository, user_repository, test_agent, listings):
        other = await UserFactory.create_user(user_repository, role=UserRole.AGENT)

        counts = await property_repository.count_available_by_agents([test_agent.id, other.id])
        assert counts == {test_agent.id: 2, other.id: 0}
        assert await property_repository.count_available_by_agents([]) == {}

    async def test_get_trending(self, property_repository, db_session, listings):
        cuenca, quito, sold = listings
        views = PropertyViewRepository(db_session)
        shares = PropertyShareRepository(db_session)
        for _ in range(4):
            await views.track_view(self._engagement(cuenca.id))
        await shares.track_share({**self._engagement(quito.id), "platform": SharePlatform.WHATSAPP})
        await shares.track_share({**self._engagement(quito.id), "platform": SharePlatform.EMAIL})
        await shares.track_share({**self._engagement(sold.id), "platform": SharePlatform.EMAIL})

        rows = await property_repository.get_trending()
        assert [(prop.id, share_count, view_count) for prop, share_count, view_count in rows] == [
            (quito.id, 2, 0),
            (cuenca.id, 0, 4),
        ]
        assert rows[0][0].agent is not None

        top = await property_repository.get_trending(limit=1)
        assert [prop.id for prop, _, _ in top] == [quito.id]

    async def test_bulk_delete(self, property_repository, listings):
        assert await property_repository.bulk_delete([]) == 0
        assert await property_repository.bulk_delete([listings[0].id, listings[1].id, uuid.uuid4()]) == 2

        remaining, total = await property_repository.list_properties()
        assert total == 1
        assert remaining[0].id == listings[2].id

    @staticmethod
    def _engagement(property_id):
        return {"property_id": property_id, "ip_hash": "0" * 64, "user_agent": "Unknown Unknown"}


class TestImageRepository:
    """Test image repository operations."""

    async def test_find_and_count(self, image_repository, test_property, test_agent, test_property_images):
        images = await image_repository.find_by_property(test_property.id)

        assert [image.order for image in images] == [0, 1, 2]
        assert await image_repository.count_by_property(test_property.id) == 3
        assert await image_repository.count_by_agent(test_agent.id) == 3

    async def test_update_many_orders(self, image_repository, test_property, test_property_images):
        first, second, third = test_property_images
        await image_repository.update_many_orders([(third.id, 0), (first.id, 1), (second.id, 2)])

        images = await image_repository.find_by_property(test_property.id)
        assert [image.id for image in images] == [third.id, first.id, second.id]

    async def test_update_many_orders_is_atomic(self, image_repository, test_property, test_property_images):
        first_id = test_property_images[0].id
        property_id = test_property.id
        with pytest.raises(NotFoundError):
            await image_repository.update_many_orders([(first_id, 5), (uuid.uuid4(), 0)])

        images = await image_repository.find_by_property(property_id)
        assert images[0].id == first_id
        assert images[0].order == 0

    async def test_find_foreign_ids(self, image_repository, property_repository, test_agent, test_property_images):
        other = await PropertyFactory.create_property(property_repository, agent_id=test_agent.id)
        other_images = await ImageFactory.create_images(image_repository, other.id, count=1)
        own_ids = [image.id for image in test_property_images]

        foreign = await image_repository.find_foreign_ids(test_property_images[0].property_id, own_ids + [other_images[0].id])
        assert foreign == [other_images[0].id]

    async def test_delete_by_property(self, image_repository, test_property, test_property_images):
        assert await image_repository.delete_by_property(test_property.id) == 3
        assert await image_repository.count_by_property(test_property.id) == 0

    async def test_update_order(self, image_repository, test_property, test_property_images):
        first = test_property_images[0]
        updated = await image_repository.update_order(first.id, 7)
        assert updated.order == 7

        images = await image_repository.find_by_property(test_property.id)
        assert images[-1].id == first.id
        assert await image_repository.update_order(uuid.uuid4(), 1) is None


class TestFavoriteRepository:
    """Test favorite repository operations."""

    async def test_add_and_duplicate(self, favorite_repository, test_client_user, test_property):
        await favorite_repository.add_favorite(test_client_user.id, test_property.id)

        with pytest.raises(ConflictError):
            await favorite_repository.add_favorite(test_client_user.id, test_property.id)

    async def test_toggle(self, favorite_repository, test_client_user, test_property):
        assert await favorite_repository.toggle_favorite(test_client_user.id, test_property.id) == {"is_favorite": True}
        assert await favorite_repository.is_favorite(test_client_user.id, test_property.id) is True

        assert await favorite_repository.toggle_favorite(test_client_user.id, test_property.id) == {"is_favorite": False}
        assert await favorite_repository.is_favorite(test_client_user.id, test_property.id) is False

    async def test_user_favorites_and_counts(
        self, favorite_repository, property_repository, test_client_user, test_agent, test_property
    ):
        second = await PropertyFactory.create_property(property_repository, agent_id=test_agent.id)
        await favorite_repository.add_favorite(test_client_user.id, test_property.id)
        await favorite_repository.add_favorite(test_client_user.id, second.id)
        await favorite_repository.add_favorite(test_agent.id, second.id)

        favorites = await favorite_repository.get_user_favorites(test_client_user.id)
        assert {favorite.property_id for favorite in favorites} == {test_property.id, second.id}
        assert all(favorite.property is not None for favorite in favorites)

        assert await favorite_repository.get_favorite_count(second.id) == 2
        missing = uuid.uuid4()
        counts = await favorite_repository.get_favorite_count_batch([test_property.id, second.id, missing])
        assert counts == {test_property.id: 1, second.id: 2, missing: 0}

        assert await favorite_repository.clear_user_favorites(test_client_user.id) == 2
        assert await favorite_repository.remove_favorite(test_agent.id, second.id) is True
        assert await favorite_repository.remove_favorite(test_agent.id, second.id) is False


class TestAppointmentRepository:
    """Test appointment repository operations."""

    @pytest.fixture
    def slot(self):
        return next_bookable_slot(hour=10).astimezone(timezone.utc)

    async def _book(self, appointment_repository, client, prop, scheduled_at):
        return await appointment_repository.create_appointment({
            "user_id": client.id,
            "property_id": prop.id,
            "agent_id": prop.agent_id,
            "scheduled_at": scheduled_at,
        })

    async def test_create_is_pending(self, appointment_repository, test_client_user, test_property, slot):
        appointment = await self._book(appointment_repository, test_client_user, test_property, slot)

        assert appointment.status == AppointmentStatus.PENDING
        assert appointment.property.id == test_property.id
        assert appointment.user.email == "client@test.com"

    async def test_slot_availability(self, appointment_repository, test_client_user, test_property, slot):
        await self._book(appointment_repository, test_client_user, test_property, slot)

        assert await appointment_repository.is_slot_available(test_property.id, slot) is False
        assert await appointment_repository.is_slot_available(test_property.id, slot + timedelta(hours=1)) is True

        day = next_bookable_slot(hour=10).date()
        hours = await appointment_repository.get_available_slots(test_property.id, day)
        assert 10 not in hours
        assert hours == [9, 11, 13, 14, 15, 16]

    async def test_cancelled_appointment_frees_slot(self, appointment_repository, test_client_user, test_property, slot):
        appointment = await self._book(appointment_repository, test_client_user, test_property, slot)
        await appointment_repository.update_appointment_status(appointment.id, AppointmentStatus.CANCELLED)

        assert await appointment_repository.is_slot_available(test_property.id, slot) is True

    async def test_agent_and_user_listings(self, appointment_repository, test_client_user, test_agent, test_property, slot):
        first = await self._book(appointment_repository, test_client_user, test_property, slot)
        await self._book(appointment_repository, test_client_user, test_property, slot + timedelta(days=1))
        await appointment_repository.update_appointment_status(first.id, AppointmentStatus.CONFIRMED)

        appointments, total = await appointment_repository.get_agent_appointments(test_agent.id)
        assert total == 2

        confirmed, confirmed_total = await appointment_repository.get_agent_appointments(
            test_agent.id, status=AppointmentStatus.CONFIRMED
        )
        assert confirmed_total == 1
        assert confirmed[0].id == first.id

        assert len(await appointment_repository.get_user_appointments(test_client_user.id)) == 2

        stats = await appointment_repository.get_agent_appointment_stats(test_agent.id)
        assert stats["total"] == 2
        assert stats["by_status"] == {"PENDING": 1, "CONFIRMED": 1, "CANCELLED": 0, "COMPLETED": 0}

    async def test_property_appointments_by_status(self, appointment_repository, test_client_user, test_property, slot):
        later = await self._book(appointment_repository, test_client_user, test_property, slot + timedelta(days=1))
        first = await self._book(appointment_repository, test_client_user, test_property, slot)
        await appointment_repository.update_appointment_status(later.id, AppointmentStatus.CANCELLED)

        everything = await appointment_repository.get_property_appointments(test_property.id)
        assert [appointment.id for appointment in everything] == [first.id, later.id]

        active = await appointment_repository.get_property_appointments(
            test_property.id, statuses=[AppointmentStatus.PENDING, AppointmentStatus.CONFIRMED]
        )
        assert [appointment.id for appointment in active] == [first.id]

    async def test_delete_appointment(self, appointment_repository, test_client_user, test_property, slot):
        appointment = await self._book(appointment_repository, test_client_user, test_property, slot)

        assert await appointment_repository.delete_appointment(appointment.id) is True
        assert await appointment_repository.delete_appointment(appointment.id) is False
        assert await appointment_repository.get_property_appointments(test_property.id) == []


class TestAgentClientRepository:
    """Test CRM lead repository operations."""

    async def test_get_or_create_is_idempotent(self, agent_client_repository, test_agent, test_client_user, test_property):
        lead = await agent_client_repository.get_or_create(
            test_agent.id, test_client_user.id, source="favorite", property_id=test_property.id
        )
        again = await agent_client_repository.get_or_create(test_agent.id, test_client_user.id, source="appointment")

        assert again.id == lead.id
        assert again.source == "favorite"
        assert lead.status == LeadStatus.NEW

    async def test_utm_backfill(self, agent_client_repository, test_agent, test_client_user):
        await agent_client_repository.get_or_create(test_agent.id, test_client_user.id, source="favorite")
        lead = await agent_client_repository.get_or_create(
            test_agent.id, test_client_user.id, utm={"utm_source": "facebook", "utm_campaign": "verano"}
        )
        assert lead.utm_source == "facebook"
        assert lead.utm_campaign == "verano"

        kept = await agent_client_repository.get_or_create(
            test_agent.id, test_client_user.id, utm={"utm_source": "google"}
        )
        assert kept.utm_source == "facebook"

    async def test_list_and_update(self, agent_client_repository, test_agent, test_client_user):
        lead = await agent_client_repository.get_or_create(test_agent.id, test_client_user.id, source="favorite")

        await agent_client_repository.update_status(lead.id, LeadStatus.CONTACTED)
        updated = await agent_client_repository.update_notes(lead.id, "Llamar el lunes")
        assert updated.notes == "Llamar el lunes"
        assert (await agent_client_repository.update_notes(lead.id, "")).notes is None

        leads, total = await agent_client_repository.list_for_agent(test_agent.id, status=LeadStatus.CONTACTED)
        assert total == 1
        assert leads[0].client.email == "client@test.com"

        assert await agent_client_repository.find_for_agent(lead.id, test_client_user.id) is None


class TestSocialRepositories:
    """Test view and share tracking repositories."""

    @pytest.fixture
    def view_repository(self, db_session):
        return PropertyViewRepository(db_session)

    @pytest.fixture
    def share_repository(self, db_session):
        return PropertyShareRepository(db_session)

    def _record(self, property_id, user_id=None):
        return {
            "property_id": property_id,
            "user_id": user_id,
            "ip_hash": "a" * 64,
            "user_agent": "Firefox/121.0 Linux",
        }

    async def test_track_and_count_views(self, view_repository, test_property, test_client_user):
        await view_repository.track_view(self._record(test_property.id))
        view = await view_repository.track_view(self._record(test_property.id, test_client_user.id))

        assert view.user_id == test_client_user.id
        assert await view_repository.count_by_property(test_property.id) == 2
        assert await view_repository.count_by_property(uuid.uuid4()) == 0

    async def test_track_and_count_shares(self, share_repository, test_property):
        for platform in (SharePlatform.WHATSAPP, SharePlatform.WHATSAPP, SharePlatform.FACEBOOK):
            await share_repository.track_share({**self._record(test_property.id), "platform": platform})

        assert await share_repository.count_by_property(test_property.id) == 3
        assert await share_repository.count_by_property(test_property.id, SharePlatform.WHATSAPP) == 2
        assert await share_repository.count_by_property(test_property.id, SharePlatform.TIKTOK) == 0
        assert await share_repository.count_by_platform(test_property.id) == {"WHATSAPP": 2, "FACEBOOK": 1}
