"""
Shared fixtures.

Environment variables are set before any application module is imported,
because core.config builds its settings object at import time.
"""
import io
import os
import tempfile

os.environ.setdefault("SECRET_KEY", "test-secret-key")
os.environ["DATABASE_URL"] = "sqlite+aiosqlite://"
os.environ["FILE_STORAGE_PATH"] = tempfile.mkdtemp(prefix="charity-uploads-")
os.environ["BCRYPT_ROUNDS"] = "4"

from decimal import Decimal

import pytest
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool
from starlette.datastructures import Headers, UploadFile

from core.database import create_tables
from models.user import UserRole
from schemas.charity import CharityCreate
from schemas.fundraising import FundraisingCreate
from services.auth_service import AuthService
from services.charity_service import CharityService
from services.file_service import FileService
from services.fundraising_service import FundraisingService

BANK_DETAILS = {
    "organization_name": "Helping Hands Foundation",
    "tax_id": "7701234567",
    "account_number": "40703810000000000001",
    "routing_code": "044525225",
    "bank_name": "First Bank",
}


def make_upload(name: str = "statement.pdf", content: bytes = b"%PDF-1.4 test",
                content_type: str = "application/pdf") -> UploadFile:
    return UploadFile(
        file=io.BytesIO(content),
        filename=name,
        headers=Headers({"content-type": content_type}),
    )


def charity_payload(registration_number: str = "ORG-1", **overrides) -> CharityCreate:
    data = {
        "name": "Helping Hands",
        "description": "Food and shelter for families in need",
        "categories": ["food", "shelter"],
        "registration_number": registration_number,
        "contact_email": "info@helpinghands.org",
        **BANK_DETAILS,
    }
    data.update(overrides)
    return CharityCreate(**data)


# ---------- database ----------
@pytest.fixture
async def engine():
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    await create_tables(engine)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(bind=engine, class_=AsyncSession, expire_on_commit=False)


@pytest.fixture
async def db(session_factory):
    async with session_factory() as session:
        yield session


@pytest.fixture
def file_service(tmp_path):
    return FileService(storage_path=str(tmp_path))


# ---------- seeded records ----------
@pytest.fixture
async def owner(db):
    return await AuthService(db).register_user(
        "owner@helpinghands.org", "owner-pass", first_name="Olga", last_name="Owner"
    )


@pytest.fixture
async def donor(db):
    return await AuthService(db).register_user(
        "donor@mail.org", "donor-pass", first_name="Dan", last_name="Donor"
    )


@pytest.fixture
async def admin(db):
    return await AuthService(db).register_user("admin@platform.org", "admin-pass", role=UserRole.ADMIN)


@pytest.fixture
async def charity(db, owner, file_service):
    """Verified charity with its general fund."""
    service = CharityService(db, file_service)
    created = await service.create_charity(charity_payload(), owner.id)
    return await service.verify_charity(created.id)


@pytest.fixture
async def general_fund_id(charity):
    return next(f.id for f in charity.fundraisings if f.kind.value == "general")


@pytest.fixture
async def campaign(db, owner, charity):
    """Targeted campaign with a 1000.00 goal."""
    return await FundraisingService(db).create_fundraising(
        FundraisingCreate(
            charity_id=charity.id,
            title="Winter coats",
            description="Warm coats for forty children",
            target_amount=Decimal("1000.00"),
        ),
        owner.id,
    )
