"""
Comprehensive tests for service classes.
Tests business logic, authorization, tier limits and service interactions.
"""

import io
import uuid
from datetime import timedelta
from unittest.mock import AsyncMock

import pytest
from fastapi import UploadFile
from PIL import Image
from starlette.datastructures import Headers

from app.models.appointment import AppointmentStatus
from app.models.agent_client import LeadStatus
from app.models.property import PropertyCategory, PropertyStatus, TransactionType
from app.models.social import SharePlatform
from app.models.user import User, UserRole, SubscriptionTier
from app.schemas.ai import DescriptionRequest
from app.schemas.appointment import AppointmentCreate
from app.schemas.auth import SignupRequest
from app.schemas.image import UploadedImageIn
from app.schemas.property import PropertyCreate, PropertyUpdate
from app.schemas.user import UserUpdate
from app.repositories.social import PropertyViewRepository
from app.services.agent import AgentService
from app.services.ai import AIService
from app.services.appointment import AppointmentService, NOTIFICATION_WARNING
from app.services.auth import AuthService
from app.services.image import ImageService
from app.services.property import PropertyService
from app.services.social import SocialService, anonymize_user_agent, hash_ip
from app.utils.ai_providers import CompletionError, CompletionResponse
from app.utils.auth import verify_token
from app.utils.availability import ERROR_UNAVAILABLE_HOUR, slot_start_utc
from app.utils.exceptions import (
    AppointmentUnavailableError,
    BadRequestError,
    DuplicateResourceError,
    FileUploadError,
    ForbiddenError,
    InactiveUserError,
    InsufficientPermissionsError,
    InvalidCredentialsError,
    InvalidTokenError,
    NotFoundError,
    ServiceUnavailableError,
    TierLimitExceededError,
    UnauthorizedError,
    ValidationError,
)
from tests.conftest import ImageFactory, PropertyFactory, UserFactory, next_bookable_slot


def png_upload(filename: str = "foto.png") -> UploadFile:
    buffer = io.BytesIO()
    Image.new("RGB", (4, 4), color=(10, 120, 200)).save(buffer, format="PNG")
    buffer.seek(0)
    return UploadFile(file=buffer, filename=filename, headers=Headers({"content-type": "image/png"}))


def next_saturday():
    day = next_bookable_slot().date()
    while day.weekday() != 5:
        day += timedelta(days=1)
    return day


class TestAuthService:
    """Test AuthService functionality."""

    async def test_signup_creates_free_account(self, auth_service: AuthService):
        user = await auth_service.signup(SignupRequest(
            name="  María Torres ",
            email="Maria@Example.com",
            password="securepassword123",
            role=UserRole.AGENT
        ))

        assert user.email == "maria@example.com"
        assert user.role == UserRole.AGENT
        assert user.subscription_tier == SubscriptionTier.FREE
        assert user.verify_password("securepassword123")

    async def test_signup_as_admin_is_forbidden(self, auth_service: AuthService):
        with pytest.raises(ForbiddenError, match="administrator"):
            await auth_service.signup(SignupRequest(
                name="Mallory",
                email="mallory@example.com",
                password="securepassword123",
                role=UserRole.ADMIN
            ))

    async def test_signup_duplicate_email(self, auth_service: AuthService, test_agent: User):
        with pytest.raises(DuplicateResourceError):
            await auth_service.signup(SignupRequest(
                name="Otro Agente",
                email="agent@test.com",
                password="securepassword123"
            ))

    async def test_authenticate_user(self, auth_service: AuthService, test_agent: User):
        user = await auth_service.authenticate_user("agent@test.com", "testpassword123")
        assert user.id == test_agent.id

        with pytest.raises(InvalidCredentialsError):
            await auth_service.authenticate_user("agent@test.com", "wrongpassword")
        with pytest.raises(InvalidCredentialsError):
            await auth_service.authenticate_user("nobody@test.com", "testpassword123")

    async def test_authenticate_inactive_user(self, auth_service: AuthService, test_inactive_user: User):
        with pytest.raises(InactiveUserError):
            await auth_service.authenticate_user("inactive@test.com", "testpassword123")

    @pytest.mark.parametrize("email,password,message", [
        ("", "password", "Email is required"),
        ("test@example.com", "  ", "Password is required"),
    ])
    async def test_authenticate_missing_fields(self, auth_service: AuthService, email, password, message):
        with pytest.raises(ValidationError, match=message):
            await auth_service.authenticate_user(email, password)

    async def test_login_payload(self, auth_service: AuthService, test_agent: User):
        payload = await auth_service.login("agent@test.com", "testpassword123")

        assert payload["token_type"] == "bearer"
        assert payload["expires_in"] > 0
        assert payload["user"]["email"] == "agent@test.com"
        assert "properties:write" in payload["user"]["permissions"]
        assert verify_token(payload["access_token"], token_type="access").user_id == str(test_agent.id)

    async def test_refresh_access_token(self, auth_service: AuthService, test_agent: User):
        _, refresh_token = auth_service.create_tokens(test_agent)

        refreshed = await auth_service.refresh_access_token(refresh_token)

        assert verify_token(refreshed["access_token"], token_type="access").email == "agent@test.com"

    async def test_refresh_rejects_access_token(self, auth_service: AuthService, test_agent: User):
        access_token, _ = auth_service.create_tokens(test_agent)
        with pytest.raises(InvalidTokenError):
            await auth_service.refresh_access_token(access_token)

    async def test_get_current_user_for_deleted_account(self, auth_service: AuthService, user_repository, test_agent, test_admin):
        access_token, _ = auth_service.create_tokens(test_agent)
        await user_repository.delete_user(test_agent.id, test_admin.id)

        with pytest.raises(InvalidTokenError):
            await auth_service.get_current_user(access_token)

    async def test_update_profile(self, auth_service: AuthService, test_client_user: User):
        user = await auth_service.update_profile(
            test_client_user,
            UserUpdate(name="Nuevo Nombre", phone="0991234567", password="anotherpassword1")
        )

        assert user.name == "Nuevo Nombre"
        assert user.phone == "0991234567"
        assert user.verify_password("anotherpassword1")

    async def test_update_profile_requires_fields(self, auth_service: AuthService, test_client_user: User):
        with pytest.raises(ValidationError, match="No profile fields"):
            await auth_service.update_profile(test_client_user, UserUpdate())


class TestPropertyService:
    """Test PropertyService business logic."""

    async def test_create_property(self, property_service: PropertyService, test_agent: User):
        prop = await property_service.create_property(
            PropertyCreate(**PropertyFactory.create_payload(title="Suite amoblada en Quito")),
            test_agent
        )

        assert prop.agent_id == test_agent.id
        assert prop.title == "Suite amoblada en Quito"
        assert prop.status == PropertyStatus.AVAILABLE

    async def test_client_cannot_create(self, property_service: PropertyService, test_client_user: User):
        with pytest.raises(InsufficientPermissionsError):
            await property_service.create_property(PropertyCreate(**PropertyFactory.create_payload()), test_client_user)

    async def test_free_tier_property_limit(self, property_service: PropertyService, test_free_agent: User):
        await property_service.create_property(PropertyCreate(**PropertyFactory.create_payload()), test_free_agent)

        with pytest.raises(TierLimitExceededError) as exc_info:
            await property_service.create_property(PropertyCreate(**PropertyFactory.create_payload()), test_free_agent)

        assert exc_info.value.status_code == 403
        assert exc_info.value.limit == 1

    async def test_admin_bypasses_tier_limits(self, property_service: PropertyService, test_admin: User):
        for _ in range(3):
            await property_service.create_property(
                PropertyCreate(**PropertyFactory.create_payload(is_featured=True)), test_admin
            )

    async def test_featured_limit_on_create(self, property_service: PropertyService, test_agent: User):
        await property_service.create_property(
            PropertyCreate(**PropertyFactory.create_payload(is_featured=True)), test_agent
        )

        with pytest.raises(TierLimitExceededError):
            await property_service.create_property(
                PropertyCreate(**PropertyFactory.create_payload(is_featured=True)), test_agent
            )

    async def test_featured_limit_on_update(self, property_service: PropertyService, property_repository, test_agent, test_property):
        await PropertyFactory.create_property(property_repository, agent_id=test_agent.id, is_featured=True)

        with pytest.raises(TierLimitExceededError):
            await property_service.update_property(test_property.id, PropertyUpdate(is_featured=True), test_agent)

    async def test_update_property(self, property_service: PropertyService, test_agent, test_property):
        updated = await property_service.update_property(
            test_property.id,
            PropertyUpdate(price=175000, status=PropertyStatus.SOLD),
            test_agent
        )

        assert float(updated.price) == 175000
        assert updated.status == PropertyStatus.SOLD
        assert updated.title == "Casa con jardín en Cuenca"

    async def test_update_property_id_mismatch(self, property_service: PropertyService, test_agent, test_property):
        with pytest.raises(ValidationError, match="does not match"):
            await property_service.update_property(test_property.id, PropertyUpdate(id=uuid.uuid4()), test_agent)

    async def test_update_by_other_agent(self, property_service: PropertyService, user_repository, test_property):
        other = await UserFactory.create_user(user_repository, role=UserRole.AGENT)
        with pytest.raises(ForbiddenError):
            await property_service.update_property(test_property.id, PropertyUpdate(price=1000), other)

    async def test_delete_missing_property(self, property_service: PropertyService, test_admin):
        with pytest.raises(NotFoundError):
            await property_service.delete_property(uuid.uuid4(), test_admin)

    async def test_get_property_by_id_or_slug(self, property_service: PropertyService, test_property):
        by_id = await property_service.get_property(str(test_property.id))
        by_slug = await property_service.get_property(f"{test_property.id}-casa-con-jardin-en-cuenca")

        assert by_id.id == by_slug.id == test_property.id

        with pytest.raises(NotFoundError):
            await property_service.get_property("not-a-uuid")
        with pytest.raises(NotFoundError):
            await property_service.get_property(str(uuid.uuid4()))

    async def test_property_preview(self, property_service: PropertyService, test_property, test_property_images):
        preview = await property_service.get_property_preview(str(test_property.id))

        assert preview["title"] == "Casa con jardín en Cuenca"
        assert preview["price"] == 150000
        assert preview["image_url"] == test_property_images[0].url
        assert preview["agent"]["email"] == "agent@test.com"

    @pytest.mark.parametrize("property_id", ["", "abc", "x" * 36])
    async def test_property_preview_invalid_id(self, property_service: PropertyService, property_id):
        with pytest.raises(ValidationError, match="ID de propiedad inválido"):
            await property_service.get_property_preview(property_id)

    async def test_price_range_is_cached_until_a_listing_changes(
        self,
        property_service: PropertyService,
        property_repository,
        test_agent,
        test_property
    ):
        assert await property_service.get_price_range() == {"min_price": 150000, "max_price": 150000}

        # Written straight to the repository, so the cache is not invalidated
        await PropertyFactory.create_property(property_repository, agent_id=test_agent.id, price=90000)
        assert await property_service.get_price_range() == {"min_price": 150000, "max_price": 150000}

        await property_service.create_property(PropertyCreate(**PropertyFactory.create_payload(price=300000)), test_agent)
        assert await property_service.get_price_range() == {"min_price": 90000, "max_price": 300000}

    async def test_search_cities(self, property_service: PropertyService, test_property):
        assert await property_service.search_cities(None) == []
        assert await property_service.search_cities("   ") == []

        matches = await property_service.search_cities("cuen")
        assert [city["name"] for city in matches] == ["Cuenca"]

        with pytest.raises(ValidationError, match="Búsqueda demasiado larga"):
            await property_service.search_cities("a" * 101)

    async def test_find_nearby_validation(self, property_service: PropertyService):
        with pytest.raises(ValidationError):
            await property_service.find_nearby(95, 0)
        with pytest.raises(ValidationError):
            await property_service.find_nearby(0, 0, radius_km=0)

    async def test_map_properties(self, property_service: PropertyService, test_property):
        result = await property_service.get_map_properties({
            "ne_lat": "-2.0", "ne_lng": "-78.5", "sw_lat": "-3.5", "sw_lng": "-79.5"
        })

        assert result["total"] == 1
        assert result["properties"][0]["agent"]["email"] == "agent@test.com"
        assert result["bounds"] == {"ne_lat": -2.0, "ne_lng": -78.5, "sw_lat": -3.5, "sw_lng": -79.5}
        assert result["mapbox_bounds"] is not None


class TestImageService:
    """Test image uploads through a mocked storage backend."""

    @pytest.fixture
    def storage(self):
        storage = AsyncMock()
        storage.save.side_effect = lambda path, content: f"/media/{path}"
        storage.delete.return_value = True
        return storage

    @pytest.fixture
    def image_service(self, db_session, storage):
        return ImageService(db_session, storage=storage)

    async def test_upload_images(self, image_service, storage, test_agent, test_property, test_property_images):
        images = await image_service.upload_images(test_property.id, [png_upload(), png_upload()], test_agent)

        assert [image.order for image in images] == [3, 4]
        assert all(image.url.startswith(f"/media/{test_property.id}/") for image in images)
        assert images[0].alt == test_property.title
        assert storage.save.await_count == 2

    async def test_upload_rejects_fake_images(self, image_service, storage, test_agent, test_property):
        fake = UploadFile(
            file=io.BytesIO(b"definitely not a png"),
            filename="foto.png",
            headers=Headers({"content-type": "image/png"})
        )

        with pytest.raises(FileUploadError):
            await image_service.upload_images(test_property.id, [fake], test_agent)
        storage.save.assert_not_awaited()

    async def test_upload_requires_files(self, image_service, test_agent, test_property):
        with pytest.raises(ValidationError):
            await image_service.upload_images(test_property.id, [], test_agent)

    async def test_image_limit_for_free_tier(
        self,
        image_service,
        storage,
        property_repository,
        image_repository,
        test_free_agent
    ):
        prop = await PropertyFactory.create_property(property_repository, agent_id=test_free_agent.id)
        await ImageFactory.create_images(image_repository, prop.id, count=6)

        with pytest.raises(TierLimitExceededError) as exc_info:
            await image_service.upload_images(prop.id, [png_upload()], test_free_agent)

        assert exc_info.value.limit == 6
        storage.save.assert_not_awaited()

    async def test_admin_owned_listing_has_no_image_limit(self, image_service, property_repository, test_admin):
        prop = await PropertyFactory.create_property(property_repository, agent_id=test_admin.id)
        images = [UploadedImageIn(url=f"https://cdn.test/{i}.jpg") for i in range(25)]

        created = await image_service.save_uploaded_images(prop.id, images, test_admin)

        assert len(created) == 25

    async def test_save_uploaded_images_permissions(self, image_service, user_repository, test_property):
        other = await UserFactory.create_user(user_repository, role=UserRole.AGENT)
        with pytest.raises(ForbiddenError):
            await image_service.save_uploaded_images(
                test_property.id, [UploadedImageIn(url="https://cdn.test/1.jpg")], other
            )

    async def test_save_uploaded_images_missing_property(self, image_service, test_agent):
        with pytest.raises(NotFoundError):
            await image_service.save_uploaded_images(
                uuid.uuid4(), [UploadedImageIn(url="https://cdn.test/1.jpg")], test_agent
            )

    async def test_reorder_images(self, image_service, test_agent, test_property, test_property_images):
        new_order = [image.id for image in reversed(test_property_images)]

        images = await image_service.reorder_images(test_property.id, new_order, test_agent)

        assert [image.id for image in images] == new_order
        assert [image.order for image in images] == [0, 1, 2]

    async def test_reorder_rejects_foreign_images(self, image_service, test_agent, test_property, test_property_images):
        with pytest.raises(ValidationError, match="do not belong"):
            await image_service.reorder_images(test_property.id, [uuid.uuid4()], test_agent)

    async def test_delete_image(self, image_service, storage, image_repository, test_agent, test_property_images):
        image = test_property_images[0]
        image_id, image_url = image.id, image.url

        assert await image_service.delete_image(image_id, test_agent) is True
        storage.delete.assert_awaited_once_with(image_url)
        assert await image_repository.find_by_id(image_id) is None

    async def test_delete_missing_image(self, image_service, test_agent):
        with pytest.raises(NotFoundError) as exc_info:
            await image_service.delete_image(uuid.uuid4(), test_agent)
        assert exc_info.value.detail == "Imagen no encontrada"


class TestFavoriteService:
    """Test favorites and the CRM leads they create."""

    async def test_toggle_favorite_registers_lead(
        self,
        favorite_service,
        crm_service,
        test_client_user,
        test_agent,
        test_property
    ):
        assert await favorite_service.toggle_favorite(test_property.id, test_client_user) == {"is_favorite": True}
        assert await favorite_service.check_if_favorite(test_property.id, test_client_user) is True

        leads, total = await crm_service.list_clients(test_agent)
        assert total == 1
        assert leads[0]["source"] == "favorite"
        assert leads[0]["client"]["email"] == "client@test.com"

        assert await favorite_service.toggle_favorite(test_property.id, test_client_user) == {"is_favorite": False}
        assert await favorite_service.check_if_favorite(test_property.id, test_client_user) is False

    async def test_toggle_requires_user(self, favorite_service, test_property):
        with pytest.raises(UnauthorizedError):
            await favorite_service.toggle_favorite(test_property.id, None)

    async def test_toggle_missing_property(self, favorite_service, test_client_user):
        with pytest.raises(NotFoundError):
            await favorite_service.toggle_favorite(uuid.uuid4(), test_client_user)

    async def test_own_listing_creates_no_lead(self, favorite_service, crm_service, test_agent, test_property):
        await favorite_service.toggle_favorite(test_property.id, test_agent)
        _, total = await crm_service.list_clients(test_agent)
        assert total == 0

    async def test_favorite_ids_and_details(self, favorite_service, test_client_user, test_property):
        assert await favorite_service.get_user_favorite_ids(None) == []
        assert await favorite_service.check_if_favorite(test_property.id, None) is False

        await favorite_service.toggle_favorite(test_property.id, test_client_user)

        assert await favorite_service.get_user_favorite_ids(test_client_user) == [str(test_property.id)]
        details = await favorite_service.get_favorites_with_details(test_client_user)
        assert [prop.id for prop in details] == [test_property.id]

    async def test_clear_favorites(self, favorite_service, test_client_user, test_property):
        await favorite_service.toggle_favorite(test_property.id, test_client_user)

        assert await favorite_service.clear_favorites(test_client_user) == 1
        assert await favorite_service.get_user_favorite_ids(test_client_user) == []


class TestAppointmentService:
    """Test visit booking with a mocked notifier."""

    @pytest.fixture
    def notifier(self):
        return AsyncMock()

    @pytest.fixture
    def appointment_service(self, db_session, notifier):
        return AppointmentService(db_session, notifier=notifier)

    @staticmethod
    def _request(prop, slot=None, notes=None):
        return AppointmentCreate(property_id=prop.id, scheduled_at=slot or next_bookable_slot(), notes=notes)

    async def test_create_appointment(
        self,
        appointment_service,
        notifier,
        crm_service,
        test_client_user,
        test_agent,
        test_property
    ):
        result = await appointment_service.create_appointment(
            self._request(test_property, notes="  Llamar antes  "), test_client_user
        )
        appointment = result["appointment"]

        assert result["warning"] is None
        assert appointment.status == AppointmentStatus.PENDING
        assert appointment.agent_id == test_agent.id
        assert appointment.notes == "Llamar antes"
        notifier.appointment_created.assert_awaited_once()

        leads, _ = await crm_service.list_clients(test_agent)
        assert leads[0]["source"] == "appointment"

    async def test_notifier_failure_becomes_warning(self, appointment_service, notifier, test_client_user, test_property):
        notifier.appointment_created.side_effect = RuntimeError("smtp down")

        result = await appointment_service.create_appointment(self._request(test_property), test_client_user)

        assert result["warning"] == NOTIFICATION_WARNING
        assert result["appointment"].id is not None

    async def test_only_clients_book(self, appointment_service, test_agent, test_property):
        with pytest.raises(ForbiddenError, match="Only clients"):
            await appointment_service.create_appointment(self._request(test_property), test_agent)

    async def test_invalid_hour(self, appointment_service, test_client_user, test_property):
        with pytest.raises(ValidationError) as exc_info:
            await appointment_service.create_appointment(
                self._request(test_property, slot=next_bookable_slot(hour=12)), test_client_user
            )
        assert exc_info.value.detail == ERROR_UNAVAILABLE_HOUR

    async def test_missing_property(self, appointment_service, test_client_user):
        with pytest.raises(NotFoundError):
            await appointment_service.create_appointment(
                AppointmentCreate(property_id=uuid.uuid4(), scheduled_at=next_bookable_slot()),
                test_client_user
            )

    async def test_slot_conflict(self, appointment_service, user_repository, test_client_user, test_property):
        slot = next_bookable_slot()
        await appointment_service.create_appointment(self._request(test_property, slot), test_client_user)

        other_client = await UserFactory.create_user(user_repository, role=UserRole.CLIENT)
        with pytest.raises(AppointmentUnavailableError):
            await appointment_service.create_appointment(self._request(test_property, slot), other_client)

    async def test_agent_confirms_pending(self, appointment_service, notifier, test_client_user, test_agent, test_property):
        booked = await appointment_service.create_appointment(self._request(test_property), test_client_user)
        appointment_id = booked["appointment"].id

        result = await appointment_service.update_appointment_status(
            appointment_id, AppointmentStatus.CONFIRMED, test_agent
        )

        assert result["appointment"].status == AppointmentStatus.CONFIRMED
        notifier.appointment_status_changed.assert_awaited_once()

        with pytest.raises(BadRequestError):
            await appointment_service.update_appointment_status(appointment_id, AppointmentStatus.CANCELLED, test_agent)

    async def test_other_agent_cannot_manage(self, appointment_service, user_repository, test_client_user, test_property):
        booked = await appointment_service.create_appointment(self._request(test_property), test_client_user)
        other = await UserFactory.create_user(user_repository, role=UserRole.AGENT)

        with pytest.raises(ForbiddenError):
            await appointment_service.update_appointment_status(
                booked["appointment"].id, AppointmentStatus.CONFIRMED, other
            )

    async def test_client_cancels(self, appointment_service, test_client_user, test_agent, test_property):
        booked = await appointment_service.create_appointment(self._request(test_property), test_client_user)
        appointment_id = booked["appointment"].id
        await appointment_service.update_appointment_status(appointment_id, AppointmentStatus.CONFIRMED, test_agent)

        result = await appointment_service.cancel_appointment_as_client(appointment_id, test_client_user)
        assert result["appointment"].status == AppointmentStatus.CANCELLED

        with pytest.raises(BadRequestError):
            await appointment_service.cancel_appointment_as_client(appointment_id, test_client_user)

    async def test_only_booking_client_cancels(self, appointment_service, user_repository, test_client_user, test_property):
        booked = await appointment_service.create_appointment(self._request(test_property), test_client_user)
        other_client = await UserFactory.create_user(user_repository, role=UserRole.CLIENT)

        with pytest.raises(ForbiddenError):
            await appointment_service.cancel_appointment_as_client(booked["appointment"].id, other_client)

    async def test_available_slots(self, appointment_service, test_client_user, test_property):
        slot = next_bookable_slot(hour=10)
        day = slot.date()
        await appointment_service.create_appointment(self._request(test_property, slot), test_client_user)

        result = await appointment_service.get_available_slots(test_property.id, day)

        assert result["hours"] == [9, 11, 13, 14, 15, 16]
        assert result["slots"][0] == slot_start_utc(day, 9)
        assert result["property_id"] == str(test_property.id)

    async def test_no_slots_on_weekends(self, appointment_service, test_property):
        result = await appointment_service.get_available_slots(test_property.id, next_saturday())
        assert result["hours"] == []
        assert result["slots"] == []

    async def test_slots_for_missing_property(self, appointment_service):
        with pytest.raises(NotFoundError):
            await appointment_service.get_available_slots(uuid.uuid4(), next_bookable_slot().date())

    async def test_agent_views(self, appointment_service, test_client_user, test_agent, test_property):
        await appointment_service.create_appointment(self._request(test_property), test_client_user)

        appointments, total = await appointment_service.get_agent_appointments(test_agent)
        assert total == 1
        assert appointments[0].user_id == test_client_user.id

        stats = await appointment_service.get_agent_stats(test_agent)
        assert stats["total"] == 1
        assert stats["by_status"]["PENDING"] == 1

        assert len(await appointment_service.get_user_appointments(test_client_user)) == 1

        with pytest.raises(InsufficientPermissionsError):
            await appointment_service.get_agent_stats(test_client_user)


class TestCRMService:
    """Test lead management."""

    @pytest.fixture
    async def lead(self, crm_service, test_agent, test_client_user, test_property):
        return await crm_service.register_interaction(
            agent_id=test_agent.id,
            client_id=test_client_user.id,
            source="favorite",
            property_id=test_property.id
        )

    async def test_register_interaction_skips_self(self, crm_service, test_agent):
        assert await crm_service.register_interaction(test_agent.id, test_agent.id, "favorite") is None

    async def test_register_interaction_is_idempotent(self, crm_service, lead, test_agent, test_client_user):
        again = await crm_service.register_interaction(test_agent.id, test_client_user.id, "appointment")
        assert again.id == lead.id
        assert again.source == "favorite"

    async def test_clients_require_agent(self, crm_service, test_client_user):
        with pytest.raises(InsufficientPermissionsError):
            await crm_service.list_clients(test_client_user)

    async def test_update_status_and_notes(self, crm_service, lead, test_agent):
        updated = await crm_service.update_client_status(lead.id, LeadStatus.CONTACTED, test_agent)
        assert updated["status"] == "CONTACTED"

        updated = await crm_service.update_client_notes(lead.id, "  Prefiere visitas en la mañana  ", test_agent)
        assert updated["notes"] == "Prefiere visitas en la mañana"

        leads, total = await crm_service.list_clients(test_agent, status=LeadStatus.CONTACTED)
        assert total == 1
        assert leads[0]["id"] == str(lead.id)

    async def test_leads_are_scoped_to_agent(self, crm_service, user_repository, lead):
        other = await UserFactory.create_user(user_repository, role=UserRole.AGENT)

        with pytest.raises(NotFoundError) as exc_info:
            await crm_service.update_client_status(lead.id, LeadStatus.CONTACTED, other)
        assert exc_info.value.detail == "Cliente no encontrado"

    async def test_delete_client(self, crm_service, lead, test_agent):
        assert await crm_service.delete_client(lead.id, test_agent) is True
        _, total = await crm_service.list_clients(test_agent)
        assert total == 0


class TestSubscriptionService:
    """Test tier changes and usage reporting."""

    async def test_set_user_tier(self, subscription_service, test_free_agent):
        user = await subscription_service.set_user_tier(test_free_agent.id, "business")
        assert user.subscription_tier == SubscriptionTier.BUSINESS
        assert await subscription_service.has_minimum_tier(test_free_agent.id, SubscriptionTier.PLUS) is True

        with pytest.raises(ValidationError):
            await subscription_service.set_user_tier(test_free_agent.id, "GOLD")

    async def test_set_tier_missing_user(self, subscription_service):
        with pytest.raises(NotFoundError):
            await subscription_service.set_user_tier(uuid.uuid4(), SubscriptionTier.PLUS)

    async def test_promote_to_agent(self, subscription_service, test_client_user):
        with pytest.raises(ValidationError, match="Plan inválido"):
            await subscription_service.promote_to_agent(test_client_user.id, SubscriptionTier.FREE)

        user = await subscription_service.promote_to_agent(test_client_user.id, SubscriptionTier.PLUS)
        assert user.role == UserRole.AGENT
        assert user.subscription_tier == SubscriptionTier.PLUS

    async def test_upgrade_client_becomes_agent(self, subscription_service, test_client_user):
        user = await subscription_service.upgrade_subscription(test_client_user, SubscriptionTier.BUSINESS)
        assert user.role == UserRole.AGENT
        assert user.subscription_tier == SubscriptionTier.BUSINESS

    async def test_upgrade_must_be_higher(self, subscription_service, test_agent):
        with pytest.raises(ValidationError, match="no es superior"):
            await subscription_service.upgrade_subscription(test_agent, SubscriptionTier.PLUS)
        with pytest.raises(ValidationError, match="Plan inválido"):
            await subscription_service.upgrade_subscription(test_agent, SubscriptionTier.FREE)

    async def test_downgrade_keeps_role(self, subscription_service, test_agent):
        user = await subscription_service.downgrade_to_free(test_agent.id)
        assert user.subscription_tier == SubscriptionTier.FREE
        assert user.role == UserRole.AGENT

    async def test_usage_overview(self, subscription_service, test_agent, test_property, test_property_images):
        overview = await subscription_service.get_usage_overview(test_agent)

        assert overview["tier"] == SubscriptionTier.PLUS
        assert overview["next_tier"] == SubscriptionTier.BUSINESS
        assert overview["properties"]["current"] == 1
        assert overview["properties"]["limit"] == 3
        assert overview["images"] == {"current": 3, "limit": 10, "percentage": 30.0, "warning_level": "safe"}
        assert overview["featured"]["limit"] == 1

    def test_list_tiers(self, subscription_service):
        tiers = subscription_service.list_tiers()
        assert len(tiers) == len(SubscriptionTier)


class TestAdminService:
    """Test admin-only operations."""

    async def test_requires_admin(self, admin_service, test_agent):
        with pytest.raises(InsufficientPermissionsError):
            await admin_service.list_users(test_agent)
        with pytest.raises(InsufficientPermissionsError):
            await admin_service.get_stats(test_agent)

    async def test_list_and_get_users(self, admin_service, test_admin, test_agent, test_property):
        users, total = await admin_service.list_users(test_admin, role=UserRole.AGENT)
        assert total == 1
        assert users[0]["email"] == "agent@test.com"
        assert users[0]["property_count"] == 1

        user = await admin_service.get_user(test_agent.id, test_admin)
        assert user["property_count"] == 1

        with pytest.raises(NotFoundError):
            await admin_service.get_user(uuid.uuid4(), test_admin)

    async def test_update_role(self, admin_service, test_admin, test_client_user):
        user = await admin_service.update_user_role(test_client_user.id, UserRole.AGENT, test_admin)
        assert user["role"] == "AGENT"

        with pytest.raises(ValidationError, match="No puedes cambiar tu propio rol"):
            await admin_service.update_user_role(test_admin.id, UserRole.CLIENT, test_admin)

    async def test_update_status(self, admin_service, test_admin, test_client_user):
        user = await admin_service.update_user_status(test_client_user.id, False, test_admin)
        assert user["is_active"] is False

        with pytest.raises(ValidationError, match="No puedes desactivar tu propia cuenta"):
            await admin_service.update_user_status(test_admin.id, False, test_admin)

    async def test_delete_user(self, admin_service, test_admin, test_client_user):
        assert await admin_service.delete_user(test_client_user.id, test_admin) is True

        with pytest.raises(ValidationError):
            await admin_service.delete_user(test_admin.id, test_admin)
        with pytest.raises(NotFoundError):
            await admin_service.delete_user(uuid.uuid4(), test_admin)

    async def test_properties(self, admin_service, test_admin, test_property):
        rows, total = await admin_service.list_properties(test_admin)
        assert total == 1
        assert rows[0]["agent"]["email"] == "agent@test.com"
        assert rows[0]["favorite_count"] == 0

        updated = await admin_service.update_property_status(test_property.id, PropertyStatus.SOLD, test_admin)
        assert updated.status == PropertyStatus.SOLD

        with pytest.raises(NotFoundError):
            await admin_service.update_property_status(uuid.uuid4(), PropertyStatus.SOLD, test_admin)

        assert await admin_service.delete_property(test_property.id, test_admin) is True

    async def test_stats(self, admin_service, test_admin, test_client_user, test_property):
        stats = await admin_service.get_stats(test_admin)

        assert stats["total_users"] == 3
        assert stats["total_properties"] == 1
        assert stats["recent_users"] == 3
        assert {"key": "AGENT", "count": 1} in stats["users_by_role"]
        assert {"key": "AVAILABLE", "count": 1} in stats["properties_by_status"]

    async def test_metrics_by_period(self, admin_service, test_admin, test_property):
        metrics = await admin_service.get_metrics_by_period(test_admin, days=7)

        assert len(metrics["users"]) == 8
        assert sum(day["count"] for day in metrics["users"]) == 2
        assert sum(day["count"] for day in metrics["properties"]) == 1

        with pytest.raises(ValidationError):
            await admin_service.get_metrics_by_period(test_admin, days=0)


class TestAIService:
    """Test completion-backed features with a mocked provider."""

    @pytest.fixture
    def provider(self):
        provider = AsyncMock()
        provider.complete.return_value = CompletionResponse(text="", model="test-model")
        return provider

    @pytest.fixture
    def description_request(self):
        return DescriptionRequest(
            transaction_type=TransactionType.SALE,
            category=PropertyCategory.HOUSE,
            bedrooms=3,
            bathrooms=2,
            area=180,
            city="Cuenca"
        )

    async def test_generate_description(self, db_session, provider, user_repository, description_request):
        agent = await UserFactory.create_user(
            user_repository, role=UserRole.AGENT, subscription_tier=SubscriptionTier.BUSINESS
        )
        provider.complete.return_value = CompletionResponse(text="  Hermosa casa en Cuenca.  ", model="test-model")

        description = await AIService(db_session, provider).generate_description(description_request, agent)

        assert description == "Hermosa casa en Cuenca."
        prompt = provider.complete.await_args.args[1]
        assert "casa en venta" in prompt
        assert "Ubicación: Cuenca." in prompt

    async def test_description_requires_business_tier(self, db_session, provider, test_agent, description_request):
        with pytest.raises(TierLimitExceededError):
            await AIService(db_session, provider).generate_description(description_request, test_agent)
        provider.complete.assert_not_awaited()

    async def test_description_provider_failure(self, db_session, provider, user_repository, description_request):
        agent = await UserFactory.create_user(
            user_repository, role=UserRole.AGENT, subscription_tier=SubscriptionTier.PRO
        )
        provider.complete.side_effect = CompletionError("timeout")

        with pytest.raises(ServiceUnavailableError):
            await AIService(db_session, provider).generate_description(description_request, agent)

    async def test_ai_search(self, db_session, provider, test_property):
        provider.complete.return_value = CompletionResponse(
            text='{"city": "cuenca", "category": "casa", "maxPrice": 200000, "confidence": 90}',
            model="test-model"
        )

        result = await AIService(db_session, provider).ai_search("casa en cuenca bajo 200k")

        assert result["total_results"] == 1
        assert result["confidence"] == 90
        assert result["properties"][0]["id"] == str(test_property.id)
        assert result["properties"][0]["price"] == 150000

    async def test_ai_search_vague_query(self, db_session, provider):
        provider.complete.return_value = CompletionResponse(text='{"confidence": 10}', model="test-model")

        with pytest.raises(ValidationError, match="too vague"):
            await AIService(db_session, provider).ai_search("algo bonito")

    @pytest.mark.parametrize("query,message", [("   ", "cannot be empty"), ("a" * 501, "too long")])
    async def test_ai_search_query_validation(self, db_session, provider, query, message):
        with pytest.raises(ValidationError, match=message):
            await AIService(db_session, provider).ai_search(query)

    async def test_ai_search_unreadable_response(self, db_session, provider):
        provider.complete.return_value = CompletionResponse(text="lo siento", model="test-model")

        with pytest.raises(ValidationError):
            await AIService(db_session, provider).ai_search("casa en quito")

    async def test_not_configured(self, db_session, monkeypatch):
        monkeypatch.setattr("app.utils.ai_providers.settings.completion_api_key", None)

        with pytest.raises(ServiceUnavailableError, match="not configured"):
            await AIService(db_session).ai_search("casa en quito")


class TestSocialService:
    """Test view and share tracking, stats and trending listings."""

    CHROME_MAC = (
        "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/537.36 "
        "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"
    )

    @pytest.fixture
    def social_service(self, db_session):
        return SocialService(db_session)

    def test_hash_ip(self):
        assert hash_ip("203.0.113.7") == hash_ip("203.0.113.7")
        assert hash_ip("203.0.113.7") != hash_ip("203.0.113.8")
        assert len(hash_ip(None)) == 64
        assert hash_ip(None) == hash_ip("unknown")

    @pytest.mark.parametrize("user_agent,expected", [
        (CHROME_MAC, "Chrome/120.0.0.0 Macintosh"),
        ("Mozilla/5.0 (X11; Linux x86_64; rv:121.0) Gecko/20100101 Firefox/121.0", "Firefox/121.0 Linux"),
        ("curl/8.4.0", "Unknown Unknown"),
        (None, "Unknown Unknown"),
    ])
    def test_anonymize_user_agent(self, user_agent, expected):
        assert anonymize_user_agent(user_agent) == expected

    async def test_track_and_stats(self, social_service, test_property, test_client_user):
        await social_service.track_view(test_property.id, None, "203.0.113.7", self.CHROME_MAC)
        await social_service.track_view(test_property.id, test_client_user, "203.0.113.8", None)
        await social_service.track_share(
            test_property.id, SharePlatform.WHATSAPP, test_client_user, "203.0.113.8", self.CHROME_MAC
        )

        stats = await social_service.get_social_stats(test_property.id)
        assert stats == {"total_shares": 1, "total_views": 2, "shares_by_platform": {"WHATSAPP": 1}}

        views = await PropertyViewRepository(social_service.db).get_multi(filters={"property_id": test_property.id})
        assert {view.user_agent for view in views} == {"Chrome/120.0.0.0 Macintosh", "Unknown Unknown"}
        assert all(len(view.ip_hash) == 64 for view in views)

    async def test_tracking_missing_property(self, social_service, test_client_user):
        with pytest.raises(NotFoundError):
            await social_service.track_view(uuid.uuid4(), None, "203.0.113.7", None)
        with pytest.raises(NotFoundError):
            await social_service.track_share(uuid.uuid4(), SharePlatform.EMAIL, test_client_user, None, None)
        with pytest.raises(NotFoundError):
            await social_service.get_social_stats(uuid.uuid4())

    async def test_trending(self, social_service, property_repository, test_agent, test_property):
        newer = await PropertyFactory.create_property(property_repository, agent_id=test_agent.id, title="Suite en Quito")
        await social_service.track_share(test_property.id, SharePlatform.FACEBOOK, None, None, None)
        await social_service.track_view(newer.id, None, None, None)

        trending = await social_service.get_trending()
        assert [item["id"] for item in trending] == [str(test_property.id), str(newer.id)]
        assert trending[0]["engagement_score"] == 3
        assert trending[0]["share_count"] == 1
        assert trending[1]["view_count"] == 1
        assert trending[0]["agent"]["email"] == "agent@test.com"

        assert len(await social_service.get_trending(limit=0)) == 1


class TestAgentService:
    """Test the public agent directory."""

    @pytest.fixture
    def agent_service(self, db_session):
        return AgentService(db_session)

    async def test_list_agents(self, agent_service, property_repository, user_repository, test_agent, test_client_user):
        await PropertyFactory.create_property(property_repository, agent_id=test_agent.id)
        await PropertyFactory.create_property(property_repository, agent_id=test_agent.id, status=PropertyStatus.SOLD)
        await UserFactory.create_user(user_repository, name="Ana Agente", role=UserRole.AGENT)

        directory = await agent_service.list_agents()
        assert directory["total"] == 2
        assert [(agent["name"], agent["property_count"]) for agent in directory["agents"]] == [
            ("Ana Agente", 0),
            ("Test Agent", 1),
        ]

    async def test_agent_profile(self, agent_service, property_repository, test_agent, test_property):
        await PropertyFactory.create_property(property_repository, agent_id=test_agent.id, status=PropertyStatus.RENTED)

        profile = await agent_service.get_agent_profile(test_agent.id)
        assert profile["agent"]["email"] == "agent@test.com"
        assert profile["agent"]["role"] == UserRole.AGENT
        assert profile["total_properties"] == 1
        assert [item["id"] for item in profile["properties"]] == [str(test_property.id)]

    async def test_admin_has_a_profile(self, agent_service, test_admin):
        profile = await agent_service.get_agent_profile(test_admin.id)
        assert profile["properties"] == []

    async def test_profile_of_non_agents(self, agent_service, test_client_user, test_inactive_user):
        for user_id in (test_client_user.id, test_inactive_user.id, uuid.uuid4()):
            with pytest.raises(NotFoundError):
                await agent_service.get_agent_profile(user_id)
