# app/api/v1/endpoints/report.py
from typing import List, Optional

from fastapi import APIRouter, Depends, UploadFile, File, Form, status
from sqlalchemy.ext.asyncio import AsyncSession

from core.database import get_db
from core.exceptions import ForbiddenError
from core.permissions import get_current_user, require_admin
from models.user import User
from schemas.report import ReportCreate, ReportRead, FileUploaded
from services.fundraising_service import FundraisingService
from services.report_service import ReportService

router = APIRouter()


@router.post("", response_model=ReportRead, status_code=status.HTTP_201_CREATED)
async def create_report(
        report_data: ReportCreate,
        current_user: User = Depends(get_current_user),
        db: AsyncSession = Depends(get_db)
):
    return await ReportService(db).create_report(report_data, current_user.id)


@router.post("/upload", response_model=FileUploaded)
async def upload_report_file(
        file: UploadFile = File(...),
        current_user: User = Depends(get_current_user),
        db: AsyncSession = Depends(get_db)
):
    url = await ReportService(db).upload_file(file)
    return FileUploaded(url=url)


@router.get("/fundraising/{fundraising_id}", response_model=List[ReportRead])
async def list_fundraising_reports(fundraising_id: int, db: AsyncSession = Depends(get_db)):
    return await ReportService(db).list_by_fundraising(fundraising_id)


@router.get("/charity/{charity_id}", response_model=List[ReportRead])
async def list_charity_reports(charity_id: int, db: AsyncSession = Depends(get_db)):
    return await ReportService(db).list_by_charity(charity_id)


@router.get("/{report_id}", response_model=ReportRead)
async def get_report(report_id: int, db: AsyncSession = Depends(get_db)):
    return await ReportService(db).get_report(report_id)


@router.post("/{report_id}/verify", response_model=ReportRead)
async def verify_report(
        report_id: int,
        current_user: User = Depends(require_admin),
        db: AsyncSession = Depends(get_db)
):
    return await ReportService(db).verify_report(report_id)


@router.post("/{report_id}/documents", response_model=ReportRead)
async def upload_report_documents(
        report_id: int,
        documents: List[UploadFile] = File(...),
        descriptions: Optional[List[str]] = Form(None),
        current_user: User = Depends(get_current_user),
        db: AsyncSession = Depends(get_db)
):
    service = ReportService(db)
    report = await service.get_report(report_id)
    if not current_user.is_admin and not await FundraisingService(db).is_creator(current_user.id, report.fundraising_id):
        raise ForbiddenError("Only the creator of the fundraising can attach report documents")
    return await service.upload_documents(report_id, documents, descriptions)
