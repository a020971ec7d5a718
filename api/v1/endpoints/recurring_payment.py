# app/api/v1/endpoints/recurring_payment.py
from typing import List

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from core.database import get_db
from core.permissions import get_current_user, require_admin
from models.user import User
from schemas.recurring_payment import RecurringPaymentCreate, RecurringPaymentRead, ProcessDueRead
from services.recurring_payment_service import RecurringPaymentService

router = APIRouter()


@router.get("", response_model=List[RecurringPaymentRead])
async def list_recurring_payments(
        current_user: User = Depends(get_current_user),
        db: AsyncSession = Depends(get_db)
):
    return await RecurringPaymentService(db).list_user_payments(current_user.id)


@router.post("", response_model=RecurringPaymentRead, status_code=status.HTTP_201_CREATED)
async def create_recurring_payment(
        payment_data: RecurringPaymentCreate,
        current_user: User = Depends(get_current_user),
        db: AsyncSession = Depends(get_db)
):
    return await RecurringPaymentService(db).create_recurring_payment(current_user.id, payment_data)


@router.delete("/{payment_id}", response_model=RecurringPaymentRead)
async def cancel_recurring_payment(
        payment_id: int,
        current_user: User = Depends(get_current_user),
        db: AsyncSession = Depends(get_db)
):
    return await RecurringPaymentService(db).cancel_recurring_payment(payment_id, current_user.id)


@router.post("/process", response_model=ProcessDueRead)
async def process_due_payments(
        current_user: User = Depends(require_admin),
        db: AsyncSession = Depends(get_db)
):
    """Apply every schedule that has fallen due; meant for an external scheduler."""
    result = await RecurringPaymentService(db).process_due()
    return ProcessDueRead(
        processed=result.processed,
        skipped=result.skipped,
        deactivated=result.deactivated,
    )
