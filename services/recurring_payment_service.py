# app/services/recurring_payment_service.py
import calendar
import logging
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from typing import List, Optional

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, and_

from core.exceptions import NotFoundError, ForbiddenError, ValidationFailedError
from models.donation import Donation, PaymentStatus
from models.fundraising import Fundraising
from models.recurring_payment import RecurringPayment
from schemas.recurring_payment import RecurringPaymentCreate
from services.fundraising_service import lock_fundraising, check_completion

logger = logging.getLogger(__name__)


def next_payment_date(payment_day: int, now: datetime) -> datetime:
    """First date falling on payment_day strictly after now, at now's time of day.

    Months too short for payment_day are skipped rather than clamped.
    """
    if not 1 <= payment_day <= 31:
        raise ValidationFailedError("Payment day must be between 1 and 31")

    year, month = now.year, now.month
    while True:
        if payment_day <= calendar.monthrange(year, month)[1]:
            candidate = now.replace(year=year, month=month, day=payment_day)
            if candidate > now:
                return candidate
        month += 1
        if month > 12:
            month = 1
            year += 1


@dataclass
class ProcessDueResult:
    processed: int = 0
    skipped: int = 0
    deactivated: int = 0


class RecurringPaymentService:
    def __init__(self, db: AsyncSession):
        self.db = db

    # ---------- create ----------
    async def schedule(
            self,
            user_id: int,
            fundraising_id: int,
            amount: Decimal,
            payment_day: int,
            now: Optional[datetime] = None,
    ) -> RecurringPayment:
        """Stage a schedule in the current transaction without committing."""
        now = now or datetime.utcnow()

        fundraising = await self.db.get(Fundraising, fundraising_id)
        if not fundraising:
            logger.error(f"Recurring payment rejected: fundraising {fundraising_id} not found")
            raise NotFoundError("Fundraising not found")

        payment = RecurringPayment(
            user_id=user_id,
            fundraising_id=fundraising.id,
            amount=amount,
            payment_day=payment_day,
            next_payment_date=next_payment_date(payment_day, now),
            is_active=True,
        )
        self.db.add(payment)
        return payment

    async def create_recurring_payment(
            self,
            user_id: int,
            payment_data: RecurringPaymentCreate,
            now: Optional[datetime] = None,
    ) -> RecurringPayment:
        logger.info(f"User {user_id} subscribing to fundraising {payment_data.fundraising_id}")
        payment = await self.schedule(
            user_id, payment_data.fundraising_id, payment_data.amount, payment_data.payment_day, now
        )
        await self.db.commit()
        await self.db.refresh(payment)
        logger.info(f"Recurring payment {payment.id} due {payment.next_payment_date}")
        return payment

    # ---------- cancel ----------
    async def cancel_recurring_payment(self, payment_id: int, user_id: int) -> RecurringPayment:
        payment = await self.db.get(RecurringPayment, payment_id)
        if not payment:
            raise NotFoundError("Recurring payment not found")

        if payment.user_id != user_id:
            logger.error(f"User {user_id} tried to cancel recurring payment {payment_id}")
            raise ForbiddenError("Access denied")

        payment.is_active = False
        await self.db.commit()
        await self.db.refresh(payment)
        logger.info(f"Recurring payment {payment_id} cancelled")
        return payment

    async def list_user_payments(self, user_id: int) -> List[RecurringPayment]:
        result = await self.db.execute(
            select(RecurringPayment)
            .where(and_(RecurringPayment.user_id == user_id, RecurringPayment.is_active.is_(True)))
            .order_by(RecurringPayment.id)
        )
        return list(result.scalars().all())

    # ---------- batch ----------
    async def process_due(self, now: Optional[datetime] = None) -> ProcessDueResult:
        """Apply every active schedule whose date has passed, one donation per schedule."""
        now = now or datetime.utcnow()
        outcome = ProcessDueResult()

        result = await self.db.execute(
            select(RecurringPayment)
            .where(and_(RecurringPayment.is_active.is_(True), RecurringPayment.next_payment_date < now))
            .order_by(RecurringPayment.id)
        )
        payments = list(result.scalars().all())
        logger.info(f"Processing {len(payments)} due recurring payment(s)")

        for payment in payments:
            fundraising = await lock_fundraising(self.db, payment.fundraising_id)

            if fundraising is None or not fundraising.active:
                logger.info(f"Recurring payment {payment.id} deactivated: fundraising closed")
                payment.is_active = False
                outcome.deactivated += 1
                continue

            remaining = fundraising.remaining_amount
            if remaining is not None and payment.amount > remaining:
                logger.warning(
                    f"Recurring payment {payment.id} skipped: {payment.amount} exceeds remaining {remaining}"
                )
                payment.next_payment_date = next_payment_date(payment.payment_day, now)
                outcome.skipped += 1
                continue

            self.db.add(Donation(
                user_id=payment.user_id,
                fundraising_id=fundraising.id,
                amount=payment.amount,
                payment_method="RECURRING",
                payment_status=PaymentStatus.COMPLETED,
                anonymous=False,
                recurring=True,
                recurring_interval="MONTHLY",
            ))
            fundraising.current_amount = fundraising.current_amount + payment.amount
            await check_completion(self.db, fundraising)

            payment.next_payment_date = next_payment_date(payment.payment_day, now)
            outcome.processed += 1

        await self.db.commit()
        logger.info(
            f"Recurring run done: {outcome.processed} processed, "
            f"{outcome.skipped} skipped, {outcome.deactivated} deactivated"
        )
        return outcome
