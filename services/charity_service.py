# app/services/charity_service.py
import logging
from datetime import datetime
from decimal import Decimal
from typing import List, Optional, Sequence

from fastapi import UploadFile
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, delete, and_

from core.exceptions import (
    NotFoundError, ForbiddenError, DuplicateRegistrationError,
    MissingBankDetailsError, HasActiveCampaignsError,
)
from models.charity import Charity, BANK_FIELDS
from models.donation import Donation, PaymentStatus
from models.fundraising import Fundraising, FundraisingKind, GENERAL_FUND_TARGET
from models.user import User
from schemas.charity import CharityCreate, CharityUpdate, CharityRead
from schemas.fundraising import FundraisingRead
from services.file_service import FileService
from services.fundraising_service import delete_fundraisings

logger = logging.getLogger(__name__)

GENERAL_FUND_TITLE = "General fund"
GENERAL_FUND_DESCRIPTION = "Main fund for undesignated donations"


class CharityService:
    def __init__(self, db: AsyncSession, file_service: Optional[FileService] = None):
        self.db = db
        self.file_service = file_service

    @property
    def files(self) -> FileService:
        if self.file_service is None:
            self.file_service = FileService()
        return self.file_service

    # --------------------------
    # create
    # --------------------------
    async def create_charity(
            self,
            charity_data: CharityCreate,
            creator_id: int,
            documents: Sequence[UploadFile] = (),
            document_titles: Optional[Sequence[str]] = None,
            document_descriptions: Optional[Sequence[str]] = None,
    ) -> CharityRead:
        """Create a charity together with its general fund."""
        logger.info(f"Creating charity {charity_data.name!r} for user {creator_id}")

        creator = await self.db.get(User, creator_id)
        if not creator:
            logger.error(f"Charity creation failed: user {creator_id} not found")
            raise NotFoundError("User not found")

        await self._ensure_registration_free(charity_data.registration_number)

        bank = {}
        for field in BANK_FIELDS:
            value = getattr(charity_data, field)
            if value is None or not value.strip():
                logger.error(f"Charity creation failed: bank field {field} is blank")
                raise MissingBankDetailsError("All bank details are required")
            bank[field] = value.strip()

        # files first, so a failed upload leaves no records behind
        stored = []
        if documents:
            stored = await self.files.save_documents(documents, document_titles, document_descriptions)

        charity = Charity(
            name=charity_data.name,
            description=charity_data.description,
            website_url=charity_data.website_url,
            categories=charity_data.categories,
            registration_number=charity_data.registration_number,
            contact_email=charity_data.contact_email,
            contact_phone=charity_data.contact_phone,
            contact_address=charity_data.contact_address,
            verified=False,
            active=True,
            documents=list(stored),
            created_by_id=creator.id,
            **bank,
        )
        self.db.add(charity)
        await self.db.flush()

        general_fund = Fundraising(
            charity_id=charity.id,
            created_by_id=creator.id,
            kind=FundraisingKind.GENERAL,
            title=GENERAL_FUND_TITLE,
            description=GENERAL_FUND_DESCRIPTION,
            target_amount=GENERAL_FUND_TARGET,
            current_amount=Decimal("0"),
            start_date=datetime.utcnow(),
            active=True,
            completed=False,
            documents=list(stored),
        )
        self.db.add(general_fund)

        try:
            await self.db.commit()
        except Exception:
            await self.db.rollback()
            self.files.discard([d["url"] for d in stored])
            raise

        logger.info(f"Charity {charity.id} created with general fund {general_fund.id}")
        return await self.get_charity(charity.id)

    # --------------------------
    # read
    # --------------------------
    async def get_charity(self, charity_id: int) -> CharityRead:
        charity = await self._get_charity(charity_id)
        return await self._to_read(charity)

    async def list_charities(self) -> List[CharityRead]:
        result = await self.db.execute(select(Charity).order_by(Charity.created_at.desc(), Charity.id.desc()))
        return [await self._to_read(c) for c in result.scalars().all()]

    async def list_by_category(self, category: str) -> List[CharityRead]:
        result = await self.db.execute(select(Charity).order_by(Charity.id))
        return [
            await self._to_read(c)
            for c in result.scalars().all()
            if category in (c.categories or [])
        ]

    # --------------------------
    # update / verify / delete
    # --------------------------
    async def update_charity(self, charity_id: int, update_data: CharityUpdate, requester_id: int) -> CharityRead:
        logger.info(f"Updating charity {charity_id}")
        charity = await self._get_charity_with_permission(charity_id, requester_id)

        if update_data.registration_number != charity.registration_number:
            await self._ensure_registration_free(update_data.registration_number, exclude_id=charity_id)

        for key, value in update_data.model_dump().items():
            setattr(charity, key, value)

        await self.db.commit()
        logger.info(f"Charity {charity_id} updated")
        return await self.get_charity(charity_id)

    async def verify_charity(self, charity_id: int) -> CharityRead:
        logger.info(f"Verifying charity {charity_id}")
        charity = await self._get_charity(charity_id)
        charity.verified = True
        await self.db.commit()
        logger.info(f"Charity {charity_id} verified")
        return await self.get_charity(charity_id)

    async def delete_charity(self, charity_id: int) -> None:
        logger.info(f"Delete requested for charity {charity_id}")
        charity = await self._get_charity(charity_id)

        result = await self.db.execute(select(Fundraising).where(Fundraising.charity_id == charity_id))
        fundraisings = result.scalars().all()

        active = [f for f in fundraisings if f.active]
        # the general fund alone is tolerated
        if len(active) > 1:
            logger.error(f"Charity {charity_id} still has {len(active)} active campaigns")
            raise HasActiveCampaignsError(
                "Cannot delete a charity while campaigns other than the general fund are active"
            )

        await delete_fundraisings(self.db, [f.id for f in fundraisings])
        await self.db.execute(delete(Charity).where(Charity.id == charity.id))
        await self.db.commit()
        logger.info(f"Charity {charity_id} deleted")

    # --------------------------
    # documents
    # --------------------------
    async def upload_documents(
            self,
            charity_id: int,
            documents: Sequence[UploadFile],
            titles: Optional[Sequence[str]],
            descriptions: Optional[Sequence[str]],
            requester_id: int,
    ) -> CharityRead:
        logger.info(f"Uploading {len(documents)} document(s) to charity {charity_id}")
        charity = await self._get_charity_with_permission(charity_id, requester_id)
        general_fund = await self._get_general_fund(charity_id)

        stored = await self.files.save_documents(documents, titles, descriptions)

        # reassign so the JSON columns register the change
        charity.documents = list(charity.documents or []) + stored
        general_fund.documents = list(general_fund.documents or []) + stored

        try:
            await self.db.commit()
        except Exception:
            await self.db.rollback()
            self.files.discard([d["url"] for d in stored])
            raise

        logger.info(f"Documents added to charity {charity_id}")
        return await self.get_charity(charity_id)

    # --------------------------
    # helpers
    # --------------------------
    async def _get_charity(self, charity_id: int) -> Charity:
        charity = await self.db.get(Charity, charity_id)
        if not charity:
            logger.error(f"Charity {charity_id} not found")
            raise NotFoundError("Charity not found")
        return charity

    async def _get_charity_with_permission(self, charity_id: int, requester_id: int) -> Charity:
        charity = await self._get_charity(charity_id)
        if charity.created_by_id != requester_id:
            logger.error(f"User {requester_id} is not the creator of charity {charity_id}")
            raise ForbiddenError("Only the creator of the charity can change it")
        return charity

    async def _get_general_fund(self, charity_id: int) -> Fundraising:
        result = await self.db.execute(
            select(Fundraising).where(
                and_(
                    Fundraising.charity_id == charity_id,
                    Fundraising.kind == FundraisingKind.GENERAL,
                )
            )
        )
        fund = result.scalars().first()
        if not fund:
            raise NotFoundError("General fund not found")
        return fund

    async def _ensure_registration_free(self, registration_number: str, exclude_id: Optional[int] = None) -> None:
        query = select(Charity.id).where(Charity.registration_number == registration_number)
        if exclude_id is not None:
            query = query.where(Charity.id != exclude_id)
        if (await self.db.execute(query)).first():
            logger.warning(f"Registration number {registration_number} already in use")
            raise DuplicateRegistrationError("A charity with this registration number already exists")

    async def _to_read(self, charity: Charity) -> CharityRead:
        result = await self.db.execute(
            select(Fundraising).where(Fundraising.charity_id == charity.id).order_by(Fundraising.id)
        )
        fundraisings = result.scalars().all()

        donations: List[Donation] = []
        if fundraisings:
            donation_result = await self.db.execute(
                select(Donation).where(Donation.fundraising_id.in_([f.id for f in fundraisings]))
            )
            donations = donation_result.scalars().all()

        total = sum(
            (d.amount for d in donations if d.payment_status == PaymentStatus.COMPLETED),
            Decimal("0"),
        )

        return CharityRead(
            id=charity.id,
            name=charity.name,
            description=charity.description,
            website_url=charity.website_url,
            categories=charity.categories or [],
            registration_number=charity.registration_number,
            contact_email=charity.contact_email,
            contact_phone=charity.contact_phone,
            contact_address=charity.contact_address,
            organization_name=charity.organization_name,
            tax_id=charity.tax_id,
            account_number=charity.account_number,
            routing_code=charity.routing_code,
            bank_name=charity.bank_name,
            verified=charity.verified,
            active=charity.active,
            created_by_id=charity.created_by_id,
            created_at=charity.created_at,
            documents=charity.documents or [],
            fundraisings=[FundraisingRead.model_validate(f) for f in fundraisings],
            total_donations=total,
            total_donors=len({d.user_id for d in donations}),
            recurring_donations_count=sum(1 for d in donations if d.recurring),
            completed_fundraisings_count=sum(1 for f in fundraisings if f.completed),
        )
