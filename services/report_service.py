# app/services/report_service.py
import logging
from datetime import datetime
from decimal import Decimal, ROUND_HALF_UP
from typing import List, Optional, Sequence

from fastapi import UploadFile
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select

from core.exceptions import NotFoundError, ForbiddenError, AmountMismatchError, DuplicateError
from models.fundraising import Fundraising
from models.report import Report
from schemas.report import ReportCreate
from services.file_service import FileService
from services.fundraising_service import lock_fundraising

logger = logging.getLogger(__name__)

CENTS = Decimal("0.01")


def round_amount(amount) -> Decimal:
    return Decimal(str(amount)).quantize(CENTS, rounding=ROUND_HALF_UP)


class ReportService:
    def __init__(self, db: AsyncSession, file_service: Optional[FileService] = None):
        self.db = db
        self.file_service = file_service

    @property
    def files(self) -> FileService:
        if self.file_service is None:
            self.file_service = FileService()
        return self.file_service

    # ---------- closeout ----------
    async def create_report(self, report_data: ReportCreate, requester_id: int) -> Report:
        """File the spend report of a campaign, closing the campaign."""
        logger.info(f"User {requester_id} filing report for fundraising {report_data.fundraising_id}")

        fundraising = await lock_fundraising(self.db, report_data.fundraising_id)
        if not fundraising:
            logger.error(f"Report rejected: fundraising {report_data.fundraising_id} not found")
            raise NotFoundError("Fundraising not found")

        if fundraising.created_by_id != requester_id:
            logger.error(f"User {requester_id} is not the creator of fundraising {fundraising.id}")
            raise ForbiddenError("Only the creator of the fundraising can file its report")

        existing = await self.db.execute(select(Report.id).where(Report.fundraising_id == fundraising.id))
        if existing.first() is not None:
            raise DuplicateError("A report has already been filed for this fundraising")

        spent = round_amount(report_data.spent_amount)
        raised = round_amount(fundraising.current_amount)
        if spent != raised:
            logger.warning(f"Report amount {spent} does not match raised amount {raised}")
            raise AmountMismatchError(f"Spent amount {spent} must equal the amount raised {raised}")

        report = Report(
            fundraising_id=fundraising.id,
            title=report_data.title,
            description=report_data.description,
            spent_amount=spent,
            document_urls=list(report_data.document_urls),
            document_descriptions=list(report_data.document_descriptions),
            report_date=report_data.report_date or datetime.utcnow(),
            verified=False,
        )
        self.db.add(report)

        fundraising.completed = True
        fundraising.active = False

        await self.db.commit()
        await self.db.refresh(report)
        logger.info(f"Report {report.id} filed; fundraising {fundraising.id} closed")
        return report

    # ---------- read ----------
    async def get_report(self, report_id: int) -> Report:
        report = await self.db.get(Report, report_id)
        if not report:
            logger.error(f"Report {report_id} not found")
            raise NotFoundError("Report not found")
        return report

    async def list_by_fundraising(self, fundraising_id: int) -> List[Report]:
        result = await self.db.execute(
            select(Report)
            .where(Report.fundraising_id == fundraising_id)
            .order_by(Report.report_date.desc(), Report.id.desc())
        )
        return list(result.scalars().all())

    async def list_by_charity(self, charity_id: int) -> List[Report]:
        result = await self.db.execute(
            select(Report)
            .join(Fundraising, Fundraising.id == Report.fundraising_id)
            .where(Fundraising.charity_id == charity_id)
            .order_by(Report.report_date.desc(), Report.id.desc())
        )
        return list(result.scalars().all())

    # ---------- verification ----------
    async def verify_report(self, report_id: int) -> Report:
        report = await self.get_report(report_id)
        report.verified = True
        await self.db.commit()
        await self.db.refresh(report)
        logger.info(f"Report {report_id} verified")
        return report

    # ---------- documents ----------
    async def upload_documents(
            self,
            report_id: int,
            documents: Sequence[UploadFile],
            descriptions: Optional[Sequence[str]] = None,
    ) -> Report:
        report = await self.get_report(report_id)
        stored = await self.files.save_documents(documents, None, descriptions)

        # the two lists stay aligned even when earlier entries lacked descriptions
        urls = list(report.document_urls or [])
        notes = list(report.document_descriptions or [])
        notes.extend([""] * (len(urls) - len(notes)))
        report.document_urls = urls + [d["url"] for d in stored]
        report.document_descriptions = notes[:len(urls)] + [d["description"] for d in stored]

        try:
            await self.db.commit()
        except Exception:
            await self.db.rollback()
            self.files.discard([d["url"] for d in stored])
            raise

        await self.db.refresh(report)
        logger.info(f"{len(stored)} document(s) attached to report {report_id}")
        return report

    async def upload_file(self, file: UploadFile) -> str:
        return await self.files.save_file(file)
