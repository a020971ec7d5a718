# app/api/v1/api_router.py
from fastapi import APIRouter
from api.v1.endpoints import (
    # Authentication & Users
    auth,
    profile,

    # Charities & Campaigns
    charity,
    fundraising,

    # Donations & Payments
    donation,
    recurring_payment,

    # Reports & Files
    report,
    files,
)

api_router = APIRouter()

# ========== 1️⃣ Authentication & Users ==========
api_router.include_router(auth.router, prefix="/auth", tags=["Authentication"])
api_router.include_router(profile.router, prefix="/profile", tags=["Profile"])

# ========== 2️⃣ Charities & Campaigns ==========
api_router.include_router(charity.router, prefix="/charities", tags=["Charities"])
api_router.include_router(fundraising.router, prefix="/fundraisings", tags=["Fundraisings"])

# ========== 3️⃣ Donations & Payments ==========
api_router.include_router(donation.router, prefix="/donations", tags=["Donations"])
api_router.include_router(recurring_payment.router, prefix="/recurring-payments", tags=["Recurring Payments"])

# ========== 4️⃣ Reports & Files ==========
api_router.include_router(report.router, prefix="/reports", tags=["Reports"])
api_router.include_router(files.router, prefix="/files", tags=["Files"])
