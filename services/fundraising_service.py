# app/services/fundraising_service.py
import logging
from datetime import datetime
from decimal import Decimal
from typing import List, Sequence

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, delete, and_, func

from core.exceptions import (
    NotFoundError, ValidationFailedError, CharityNotVerifiedError,
    CharityMismatchError, AlreadyCompletedError, MissingReportError,
)
from models.charity import Charity
from models.donation import Donation, PaymentStatus
from models.fundraising import Fundraising, FundraisingKind
from models.recurring_payment import RecurringPayment
from models.report import Report
from models.user import User
from schemas.fundraising import FundraisingCreate, FundraisingUpdate

logger = logging.getLogger(__name__)


async def delete_fundraisings(db: AsyncSession, fundraising_ids: Sequence[int]) -> None:
    """Delete campaigns with their donations, schedules and reports. Caller commits."""
    if not fundraising_ids:
        return
    ids = list(fundraising_ids)
    await db.execute(delete(Donation).where(Donation.fundraising_id.in_(ids)))
    await db.execute(delete(RecurringPayment).where(RecurringPayment.fundraising_id.in_(ids)))
    await db.execute(delete(Report).where(Report.fundraising_id.in_(ids)))
    await db.execute(delete(Fundraising).where(Fundraising.id.in_(ids)))


class FundraisingService:
    def __init__(self, db: AsyncSession):
        self.db = db

    # ---------- create ----------
    async def create_fundraising(self, fundraising_data: FundraisingCreate, creator_id: int) -> Fundraising:
        """Open a targeted campaign under a verified charity."""
        logger.info(f"Creating fundraising {fundraising_data.title!r} for charity {fundraising_data.charity_id}")

        charity = await self.db.get(Charity, fundraising_data.charity_id)
        if not charity:
            logger.error(f"Fundraising creation failed: charity {fundraising_data.charity_id} not found")
            raise NotFoundError("Charity not found")

        creator = await self.db.get(User, creator_id)
        if not creator:
            logger.error(f"Fundraising creation failed: user {creator_id} not found")
            raise NotFoundError("User not found")

        if not charity.verified:
            logger.warning(f"Fundraising creation rejected: charity {charity.id} is not verified")
            raise CharityNotVerifiedError("Charity is not verified")

        fundraising = Fundraising(
            charity_id=charity.id,
            created_by_id=creator.id,
            kind=FundraisingKind.TARGETED,
            title=fundraising_data.title,
            description=fundraising_data.description,
            image_url=fundraising_data.image_url,
            diagnosis=fundraising_data.diagnosis,
            target_amount=fundraising_data.target_amount,
            current_amount=Decimal("0"),
            start_date=fundraising_data.start_date or datetime.utcnow(),
            end_date=fundraising_data.end_date,
            active=True,
            completed=False,
            documents=[],
        )

        self.db.add(fundraising)
        await self.db.commit()
        await self.db.refresh(fundraising)

        logger.info(f"Fundraising {fundraising.id} created")
        return fundraising

    # ---------- read ----------
    async def get_fundraising(self, fundraising_id: int) -> Fundraising:
        fundraising = await self.db.get(Fundraising, fundraising_id)
        if not fundraising:
            logger.error(f"Fundraising {fundraising_id} not found")
            raise NotFoundError("Fundraising not found")
        return fundraising

    async def list_all(self) -> List[Fundraising]:
        result = await self.db.execute(select(Fundraising).order_by(Fundraising.id))
        return list(result.scalars().all())

    async def list_active(self) -> List[Fundraising]:
        result = await self.db.execute(
            select(Fundraising).where(Fundraising.active.is_(True)).order_by(Fundraising.id)
        )
        return list(result.scalars().all())

    async def list_by_charity(self, charity_id: int) -> List[Fundraising]:
        result = await self.db.execute(
            select(Fundraising).where(Fundraising.charity_id == charity_id).order_by(Fundraising.id)
        )
        return list(result.scalars().all())

    async def is_creator(self, user_id: int, fundraising_id: int) -> bool:
        result = await self.db.execute(
            select(Fundraising.id).where(
                and_(Fundraising.id == fundraising_id, Fundraising.created_by_id == user_id)
            )
        )
        return result.first() is not None

    # ---------- update ----------
    async def update_fundraising(self, fundraising_id: int, update_data: FundraisingUpdate) -> Fundraising:
        logger.info(f"Updating fundraising {fundraising_id}")
        fundraising = await self.get_fundraising(fundraising_id)

        if update_data.charity_id != fundraising.charity_id:
            logger.error(
                f"Fundraising {fundraising_id} cannot move from charity "
                f"{fundraising.charity_id} to {update_data.charity_id}"
            )
            raise CharityMismatchError("A fundraising cannot be moved to another charity")

        if not fundraising.is_general_fund:
            if update_data.target_amount < fundraising.current_amount:
                raise ValidationFailedError("Target amount cannot be lower than the amount already raised")
            fundraising.target_amount = update_data.target_amount

        fundraising.title = update_data.title
        fundraising.description = update_data.description
        fundraising.image_url = update_data.image_url
        fundraising.diagnosis = update_data.diagnosis
        if update_data.start_date:
            fundraising.start_date = update_data.start_date
        fundraising.end_date = update_data.end_date

        await self.db.commit()
        await self.db.refresh(fundraising)
        return fundraising

    # ---------- complete ----------
    async def complete_fundraising(self, fundraising_id: int) -> Fundraising:
        """Close a campaign that already has a report."""
        logger.info(f"Completing fundraising {fundraising_id}")
        fundraising = await lock_fundraising(self.db, fundraising_id)
        if not fundraising:
            logger.error(f"Fundraising {fundraising_id} not found")
            raise NotFoundError("Fundraising not found")

        if not fundraising.active:
            logger.warning(f"Fundraising {fundraising_id} is already closed")
            raise AlreadyCompletedError("Fundraising is already completed")

        report = await self.db.execute(select(Report.id).where(Report.fundraising_id == fundraising_id))
        if report.first() is None:
            logger.warning(f"Fundraising {fundraising_id} has no report")
            raise MissingReportError("A report must be filed before the fundraising can be completed")

        fundraising.active = False
        fundraising.completed = True

        await self.db.commit()
        await self.db.refresh(fundraising)
        logger.info(f"Fundraising {fundraising_id} completed")
        return fundraising

    # ---------- delete ----------
    async def delete_fundraising(self, fundraising_id: int) -> None:
        fundraising = await self.get_fundraising(fundraising_id)
        await delete_fundraisings(self.db, [fundraising.id])
        await self.db.commit()
        logger.info(f"Fundraising {fundraising_id} deleted")


async def lock_fundraising(db: AsyncSession, fundraising_id: int):
    """Load a campaign row for update so concurrent settlements serialize on it."""
    result = await db.execute(
        select(Fundraising)
        .where(Fundraising.id == fundraising_id)
        .with_for_update(of=Fundraising)
        .execution_options(populate_existing=True)
    )
    return result.scalars().first()


async def completed_total(db: AsyncSession, fundraising_id: int) -> Decimal:
    result = await db.execute(
        select(func.coalesce(func.sum(Donation.amount), 0)).where(
            and_(
                Donation.fundraising_id == fundraising_id,
                Donation.payment_status == PaymentStatus.COMPLETED,
            )
        )
    )
    return Decimal(str(result.scalar_one()))


async def check_completion(db: AsyncSession, fundraising: Fundraising) -> bool:
    """Close a targeted campaign once its completed donations reach the target."""
    if fundraising.is_general_fund or fundraising.completed:
        return False
    total = await completed_total(db, fundraising.id)
    if total < fundraising.target_amount:
        return False
    logger.info(f"Fundraising {fundraising.id} reached its target ({total} of {fundraising.target_amount})")
    fundraising.completed = True
    fundraising.active = False
    return True
