import pytest

from core.exceptions import DuplicateEmailError, InvalidCredentialsError
from core.security import extract_user_id
from models.user import UserRole
from schemas.user import UserProfileUpdate
from services.auth_service import AuthService
from services.user import UserService


@pytest.mark.asyncio
class TestAuthService:
    async def test_register_returns_token_for_new_user(self, db):
        response = await AuthService(db).register("new@mail.org", "password1", first_name="New")

        assert response.user.email == "new@mail.org"
        assert response.user.role == UserRole.USER
        assert extract_user_id(response.token) == response.user.id

    async def test_register_rejects_existing_email(self, db, donor):
        with pytest.raises(DuplicateEmailError):
            await AuthService(db).register("donor@mail.org", "password1")

    async def test_login_failures_are_indistinguishable(self, db, donor):
        service = AuthService(db)

        with pytest.raises(InvalidCredentialsError) as unknown:
            await service.login("nobody@mail.org", "donor-pass")
        with pytest.raises(InvalidCredentialsError) as wrong:
            await service.login("donor@mail.org", "wrong-pass")

        assert unknown.value.message == wrong.value.message
        assert unknown.value.status_code == wrong.value.status_code == 401

    async def test_login_records_last_login(self, db, donor):
        response = await AuthService(db).login("donor@mail.org", "donor-pass")

        assert response.user.id == donor.id
        assert donor.last_login_at is not None

    async def test_is_admin(self, db, donor, admin):
        service = AuthService(db)

        assert await service.is_admin(admin.id) is True
        assert await service.is_admin(donor.id) is False
        assert await service.is_admin(9999) is False


@pytest.mark.asyncio
class TestUserProfile:
    async def test_changing_email_clears_verification(self, db, donor):
        donor.email_verified = True
        await db.commit()

        profile = await UserService(db).update_profile(
            donor.id, UserProfileUpdate(email="renamed@mail.org", first_name="Daniel")
        )

        assert profile.email == "renamed@mail.org"
        assert profile.first_name == "Daniel"
        assert profile.email_verified is False

    async def test_email_already_taken(self, db, donor, owner):
        with pytest.raises(DuplicateEmailError):
            await UserService(db).update_profile(donor.id, UserProfileUpdate(email=owner.email))

    async def test_change_password_requires_current_password(self, db, donor):
        service = UserService(db)

        with pytest.raises(InvalidCredentialsError):
            await service.change_password(donor.id, "wrong-pass", "brand-new-pass")

        await service.change_password(donor.id, "donor-pass", "brand-new-pass")
        response = await AuthService(db).login("donor@mail.org", "brand-new-pass")
        assert response.user.id == donor.id
