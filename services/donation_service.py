# app/services/donation_service.py
import logging
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from typing import List, Optional

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, and_

from core.exceptions import (
    NotFoundError, ForbiddenError, NoGeneralFundError, CampaignInactiveError,
    CharityNotVerifiedError, CharityMismatchError, ExceedsRemainingError,
    AlreadyCompletedError,
)
from models.donation import Donation, PaymentStatus
from models.fundraising import Fundraising, FundraisingKind
from models.user import User
from schemas.donation import DonationCreate
from services.fundraising_service import lock_fundraising, check_completion, completed_total
from services.recurring_payment_service import RecurringPaymentService

logger = logging.getLogger(__name__)


@dataclass
class DonationResult:
    donation: Donation
    recurring_schedule_error: Optional[str] = None


class DonationService:
    def __init__(self, db: AsyncSession):
        self.db = db
        self.recurring_service = RecurringPaymentService(db)

    # ---------- settlement ----------
    async def create_donation(
            self,
            donation_data: DonationCreate,
            user_id: int,
            now: Optional[datetime] = None,
    ) -> DonationResult:
        """Record a donation against a campaign and apply it to the campaign total."""
        now = now or datetime.utcnow()
        logger.info(
            f"New donation from user {user_id} to charity {donation_data.charity_id} "
            f"(fundraising {donation_data.fundraising_id})"
        )

        user = await self.db.get(User, user_id)
        if not user:
            logger.error(f"Donation rejected: user {user_id} not found")
            raise NotFoundError("User not found")

        fundraising_id = donation_data.fundraising_id
        if fundraising_id is None:
            fundraising_id = await self._general_fund_id(donation_data.charity_id)

        fundraising = await lock_fundraising(self.db, fundraising_id)
        if not fundraising:
            logger.error(f"Donation rejected: fundraising {fundraising_id} not found")
            raise NotFoundError("Fundraising not found")

        if fundraising.charity_id != donation_data.charity_id:
            raise CharityMismatchError("Fundraising does not belong to this charity")

        if not fundraising.active:
            logger.warning(f"Donation rejected: fundraising {fundraising.id} is inactive")
            raise CampaignInactiveError("Fundraising no longer accepts donations")

        if not fundraising.charity.verified:
            logger.warning(f"Donation rejected: charity {fundraising.charity_id} is not verified")
            raise CharityNotVerifiedError("Charity must be verified to accept donations")

        remaining = fundraising.remaining_amount
        if remaining is not None and donation_data.amount > remaining:
            logger.warning(
                f"Donation of {donation_data.amount} exceeds remaining {remaining} on fundraising {fundraising.id}"
            )
            raise ExceedsRemainingError(
                f"Donation amount exceeds the remaining amount. Maximum possible amount: {remaining}"
            )

        donation = Donation(
            user_id=user.id,
            fundraising_id=fundraising.id,
            amount=donation_data.amount,
            message=donation_data.message,
            anonymous=donation_data.anonymous,
            payment_method=donation_data.payment_method,
            payment_status=PaymentStatus.COMPLETED,
            recurring=donation_data.recurring,
            recurring_interval=donation_data.recurring_interval,
            created_at=now,
        )
        donation.fundraising = fundraising
        self.db.add(donation)

        fundraising.current_amount = fundraising.current_amount + donation_data.amount

        schedule_error = None
        if donation_data.recurring:
            try:
                # savepoint, so a rejected schedule row leaves the donation intact
                async with self.db.begin_nested():
                    await self.recurring_service.schedule(
                        user.id, fundraising.id, donation_data.amount, now.day, now
                    )
                    await self.db.flush()
                logger.info(f"Recurring payment scheduled for user {user.id} on fundraising {fundraising.id}")
            except Exception as e:
                # the donation stands even when its schedule cannot be registered
                logger.error(f"Could not schedule recurring payment for fundraising {fundraising.id}: {e}")
                schedule_error = str(e)

        await check_completion(self.db, fundraising)
        await self.db.commit()

        logger.info(
            f"Donation {donation.id} of {donation.amount} recorded; "
            f"fundraising {fundraising.id} now at {fundraising.current_amount}"
        )
        return DonationResult(donation=self._annotate(donation), recurring_schedule_error=schedule_error)

    # ---------- read ----------
    async def get_user_donations(self, user_id: int) -> List[Donation]:
        result = await self.db.execute(
            select(Donation).where(Donation.user_id == user_id).order_by(Donation.created_at.desc(), Donation.id.desc())
        )
        return [self._annotate(d) for d in result.scalars().all()]

    async def get_fundraising_donations(self, fundraising_id: int) -> List[Donation]:
        result = await self.db.execute(
            select(Donation).where(Donation.fundraising_id == fundraising_id).order_by(Donation.created_at.desc(), Donation.id.desc())
        )
        return [self._annotate(d) for d in result.scalars().all()]

    async def get_total_donation_amount(self, fundraising_id: int) -> Decimal:
        return await completed_total(self.db, fundraising_id)

    # ---------- status ----------
    async def update_donation_status(self, donation_id: int, new_status: PaymentStatus) -> Donation:
        logger.info(f"Updating donation status: {donation_id} -> {new_status.value}")
        donation = await self._get_donation(donation_id)

        if donation.payment_status == PaymentStatus.COMPLETED:
            logger.warning(f"Attempt to update completed donation {donation_id}")
            raise AlreadyCompletedError("Cannot update a completed donation")

        if new_status == PaymentStatus.COMPLETED:
            # settle the amount now so the campaign total matches its completed donations
            fundraising = await lock_fundraising(self.db, donation.fundraising_id)
            if not fundraising.active:
                logger.warning(f"Settlement rejected: fundraising {fundraising.id} is inactive")
                raise CampaignInactiveError("Fundraising no longer accepts donations")

            remaining = fundraising.remaining_amount
            if remaining is not None and donation.amount > remaining:
                logger.warning(
                    f"Settlement of {donation.amount} exceeds remaining {remaining} on fundraising {fundraising.id}"
                )
                raise ExceedsRemainingError(
                    f"Donation amount exceeds the remaining amount. Maximum possible amount: {remaining}"
                )

            donation.payment_status = new_status
            fundraising.current_amount = fundraising.current_amount + donation.amount
            await check_completion(self.db, fundraising)
        else:
            donation.payment_status = new_status

        await self.db.commit()
        logger.info(f"Donation {donation_id} status is now {new_status.value}")
        return self._annotate(donation)

    async def delete_donation(self, donation_id: int, user_id: int) -> None:
        logger.info(f"User {user_id} requested deletion of donation {donation_id}")
        donation = await self._get_donation(donation_id)

        if donation.user_id != user_id:
            logger.error(f"User {user_id} is not the donor of donation {donation_id}")
            raise ForbiddenError("You are not allowed to delete this donation")

        await self.db.delete(donation)
        await self.db.commit()
        logger.info(f"Donation {donation_id} deleted")

    # ---------- helpers ----------
    async def _get_donation(self, donation_id: int) -> Donation:
        result = await self.db.execute(select(Donation).where(Donation.id == donation_id))
        donation = result.scalars().first()
        if not donation:
            logger.error(f"Donation {donation_id} not found")
            raise NotFoundError("Donation not found")
        return donation

    async def _general_fund_id(self, charity_id: int) -> int:
        result = await self.db.execute(
            select(Fundraising.id).where(
                and_(
                    Fundraising.charity_id == charity_id,
                    Fundraising.kind == FundraisingKind.GENERAL,
                    Fundraising.active.is_(True),
                )
            )
        )
        fund_id = result.scalars().first()
        if fund_id is None:
            logger.error(f"No general fund found for charity {charity_id}")
            raise NoGeneralFundError("General fund not found")
        return fund_id

    @staticmethod
    def _annotate(donation: Donation) -> Donation:
        donation.status = donation.payment_status.value if donation.payment_status else None
        fundraising = donation.fundraising
        if fundraising is not None:
            donation.fundraising_title = fundraising.title
            donation.charity_name = fundraising.charity.name if fundraising.charity else None
        return donation
