from decimal import Decimal

import pytest
from sqlalchemy import select

from conftest import charity_payload
from core.exceptions import (
    NotFoundError, ForbiddenError, CharityNotVerifiedError, ExceedsRemainingError,
    CampaignInactiveError, AlreadyCompletedError, NoGeneralFundError, CharityMismatchError,
)
from models.donation import Donation, PaymentStatus
from models.fundraising import Fundraising
from models.recurring_payment import RecurringPayment
from schemas.donation import DonationCreate
from services.charity_service import CharityService
from services.donation_service import DonationService
from services.fundraising_service import FundraisingService
import services.recurring_payment_service as recurring_module
from services.recurring_payment_service import RecurringPaymentService


async def completed_sum(db, fundraising_id: int) -> Decimal:
    result = await db.execute(
        select(Donation).where(Donation.fundraising_id == fundraising_id)
    )
    return sum(
        (d.amount for d in result.scalars().all() if d.payment_status == PaymentStatus.COMPLETED),
        Decimal("0"),
    )


@pytest.mark.asyncio
class TestSettlement:
    async def test_donation_to_general_fund(self, db, donor, charity, general_fund_id):
        """Scenario: 500.00 without a campaign lands in the general fund."""
        result = await DonationService(db).create_donation(
            DonationCreate(charity_id=charity.id, amount=Decimal("500.00")), donor.id
        )

        donation = result.donation
        fund = await FundraisingService(db).get_fundraising(general_fund_id)
        assert donation.payment_status == PaymentStatus.COMPLETED
        assert donation.status == "COMPLETED"
        assert donation.fundraising_id == general_fund_id
        assert donation.fundraising_title == "General fund"
        assert donation.charity_name == "Helping Hands"
        assert donation.transaction_id
        assert fund.current_amount == Decimal("500.00")
        assert fund.active is True
        assert fund.completed is False
        assert result.recurring_schedule_error is None

    async def test_cap_and_completion(self, db, donor, charity, campaign):
        """Scenario: target 1000, current 900; 150 is rejected, 100 completes it."""
        service = DonationService(db)
        await service.create_donation(
            DonationCreate(charity_id=charity.id, fundraising_id=campaign.id, amount=Decimal("900.00")), donor.id
        )

        with pytest.raises(ExceedsRemainingError):
            await service.create_donation(
                DonationCreate(charity_id=charity.id, fundraising_id=campaign.id, amount=Decimal("150.00")), donor.id
            )
        assert campaign.current_amount == Decimal("900.00")

        await service.create_donation(
            DonationCreate(charity_id=charity.id, fundraising_id=campaign.id, amount=Decimal("100.00")), donor.id
        )

        assert campaign.current_amount == Decimal("1000.00")
        assert campaign.completed is True
        assert campaign.active is False

    async def test_closed_campaign_rejects_donations(self, db, donor, charity, campaign):
        service = DonationService(db)
        await service.create_donation(
            DonationCreate(charity_id=charity.id, fundraising_id=campaign.id, amount=Decimal("1000.00")), donor.id
        )

        with pytest.raises(CampaignInactiveError):
            await service.create_donation(
                DonationCreate(charity_id=charity.id, fundraising_id=campaign.id, amount=Decimal("1.00")), donor.id
            )

    @pytest.mark.parametrize("amount", ["0.01", "10.00", "999999.99"])
    async def test_unverified_charity_rejected(self, db, owner, donor, file_service, amount):
        unverified = await CharityService(db, file_service).create_charity(charity_payload("ORG-4"), owner.id)

        with pytest.raises(CharityNotVerifiedError):
            await DonationService(db).create_donation(
                DonationCreate(charity_id=unverified.id, amount=Decimal(amount)), donor.id
            )

    async def test_general_fund_is_unbounded(self, db, donor, charity, general_fund_id):
        result = await DonationService(db).create_donation(
            DonationCreate(charity_id=charity.id, amount=Decimal("5000000.00")), donor.id
        )

        fund = await FundraisingService(db).get_fundraising(general_fund_id)
        assert result.donation.amount == Decimal("5000000.00")
        assert fund.active is True
        assert fund.completed is False

    async def test_unknown_user_and_campaign(self, db, donor, charity):
        service = DonationService(db)

        with pytest.raises(NotFoundError):
            await service.create_donation(DonationCreate(charity_id=charity.id, amount=Decimal("1.00")), 999)
        with pytest.raises(NotFoundError):
            await service.create_donation(
                DonationCreate(charity_id=charity.id, fundraising_id=999, amount=Decimal("1.00")), donor.id
            )

    async def test_missing_general_fund(self, db, donor, charity, general_fund_id):
        fund = await db.get(Fundraising, general_fund_id)
        fund.active = False
        await db.commit()

        with pytest.raises(NoGeneralFundError):
            await DonationService(db).create_donation(
                DonationCreate(charity_id=charity.id, amount=Decimal("1.00")), donor.id
            )

    async def test_campaign_of_other_charity(self, db, donor, charity, campaign):
        with pytest.raises(CharityMismatchError):
            await DonationService(db).create_donation(
                DonationCreate(charity_id=charity.id + 1, fundraising_id=campaign.id, amount=Decimal("1.00")),
                donor.id,
            )

    async def test_totals_reconcile(self, db, donor, owner, charity, campaign):
        service = DonationService(db)
        for amount, user in (("120.50", donor), ("79.50", owner), ("300.00", donor)):
            await service.create_donation(
                DonationCreate(charity_id=charity.id, fundraising_id=campaign.id, amount=Decimal(amount)), user.id
            )

        assert campaign.current_amount == await completed_sum(db, campaign.id)
        assert await service.get_total_donation_amount(campaign.id) == Decimal("500.00")


@pytest.mark.asyncio
class TestRecurringSideEffect:
    async def test_recurring_donation_creates_schedule(self, db, donor, charity, campaign):
        result = await DonationService(db).create_donation(
            DonationCreate(charity_id=charity.id, fundraising_id=campaign.id, amount=Decimal("25.00"),
                           recurring=True, recurring_interval="MONTHLY"),
            donor.id,
        )

        schedules = await RecurringPaymentService(db).list_user_payments(donor.id)
        assert result.recurring_schedule_error is None
        assert len(schedules) == 1
        assert schedules[0].amount == Decimal("25.00")
        assert schedules[0].payment_day == result.donation.created_at.day

    async def test_schedule_failure_does_not_fail_donation(self, db, donor, charity, campaign, monkeypatch):
        async def broken_schedule(self, *args, **kwargs):
            raise RuntimeError("ledger unavailable")

        monkeypatch.setattr(RecurringPaymentService, "schedule", broken_schedule)

        result = await DonationService(db).create_donation(
            DonationCreate(charity_id=charity.id, fundraising_id=campaign.id, amount=Decimal("25.00"),
                           recurring=True),
            donor.id,
        )

        assert result.recurring_schedule_error == "ledger unavailable"
        assert result.donation.id is not None
        assert campaign.current_amount == Decimal("25.00")
        schedules = await db.execute(select(RecurringPayment))
        assert schedules.scalars().all() == []

    async def test_rejected_schedule_row_keeps_donation(self, db, donor, charity, campaign, monkeypatch):
        # a schedule without a next payment date violates NOT NULL at flush
        monkeypatch.setattr(recurring_module, "next_payment_date", lambda day, now: None)

        result = await DonationService(db).create_donation(
            DonationCreate(charity_id=charity.id, fundraising_id=campaign.id, amount=Decimal("25.00"),
                           recurring=True),
            donor.id,
        )

        assert result.recurring_schedule_error is not None
        assert result.donation.id is not None
        assert campaign.current_amount == Decimal("25.00")
        assert await completed_sum(db, campaign.id) == Decimal("25.00")
        schedules = await db.execute(select(RecurringPayment))
        assert schedules.scalars().all() == []


@pytest.mark.asyncio
class TestStatusAndDeletion:
    async def test_completed_status_is_final(self, db, donor, charity, campaign):
        service = DonationService(db)
        result = await service.create_donation(
            DonationCreate(charity_id=charity.id, fundraising_id=campaign.id, amount=Decimal("10.00")), donor.id
        )

        for status in PaymentStatus:
            with pytest.raises(AlreadyCompletedError):
                await service.update_donation_status(result.donation.id, status)

    async def test_pending_to_completed_settles_and_completes(self, db, donor, campaign):
        pending = Donation(
            user_id=donor.id,
            fundraising_id=campaign.id,
            amount=Decimal("1000.00"),
            payment_status=PaymentStatus.PENDING,
        )
        db.add(pending)
        await db.commit()

        updated = await DonationService(db).update_donation_status(pending.id, PaymentStatus.COMPLETED)

        assert updated.status == "COMPLETED"
        assert campaign.current_amount == Decimal("1000.00")
        assert campaign.completed is True
        assert campaign.active is False

    async def test_pending_to_failed(self, db, donor, campaign):
        pending = Donation(user_id=donor.id, fundraising_id=campaign.id, amount=Decimal("5.00"))
        db.add(pending)
        await db.commit()

        updated = await DonationService(db).update_donation_status(pending.id, PaymentStatus.FAILED)

        assert updated.payment_status == PaymentStatus.FAILED
        assert campaign.current_amount == Decimal("0")

    async def test_pending_over_remaining_cannot_complete(self, db, donor, campaign):
        pending = Donation(user_id=donor.id, fundraising_id=campaign.id, amount=Decimal("1500.00"))
        db.add(pending)
        await db.commit()

        with pytest.raises(ExceedsRemainingError):
            await DonationService(db).update_donation_status(pending.id, PaymentStatus.COMPLETED)

        pending_id, campaign_id = pending.id, campaign.id
        await db.rollback()
        stored = await db.get(Donation, pending_id)
        fundraising = await db.get(Fundraising, campaign_id)
        assert stored.payment_status == PaymentStatus.PENDING
        assert fundraising.current_amount == Decimal("0")
        assert fundraising.completed is False

    async def test_pending_on_inactive_campaign_cannot_complete(self, db, donor, campaign):
        pending = Donation(user_id=donor.id, fundraising_id=campaign.id, amount=Decimal("5.00"))
        db.add(pending)
        campaign.active = False
        await db.commit()

        with pytest.raises(CampaignInactiveError):
            await DonationService(db).update_donation_status(pending.id, PaymentStatus.COMPLETED)

    async def test_only_donor_can_delete(self, db, donor, owner, charity):
        service = DonationService(db)
        result = await service.create_donation(
            DonationCreate(charity_id=charity.id, amount=Decimal("10.00")), donor.id
        )

        with pytest.raises(ForbiddenError):
            await service.delete_donation(result.donation.id, owner.id)

        await service.delete_donation(result.donation.id, donor.id)
        with pytest.raises(NotFoundError):
            await service.delete_donation(result.donation.id, donor.id)

    async def test_lists_are_annotated(self, db, donor, charity, campaign):
        service = DonationService(db)
        await service.create_donation(
            DonationCreate(charity_id=charity.id, fundraising_id=campaign.id, amount=Decimal("10.00")), donor.id
        )

        by_user = await service.get_user_donations(donor.id)
        by_campaign = await service.get_fundraising_donations(campaign.id)

        assert len(by_user) == len(by_campaign) == 1
        assert by_user[0].fundraising_title == "Winter coats"
        assert by_campaign[0].charity_name == "Helping Hands"
        assert by_campaign[0].status == "COMPLETED"
