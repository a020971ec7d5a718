# api/v1/endpoints/files.py
from fastapi import APIRouter, Depends, UploadFile, File

from core.permissions import get_current_user
from models.user import User
from schemas.report import FileUploaded
from services.file_service import FileService

router = APIRouter()


# ---------- upload ----------
@router.post("/upload", response_model=FileUploaded)
async def upload_file(
        file: UploadFile = File(...),
        current_user: User = Depends(get_current_user),
):
    """Store one file and return its public URL."""
    url = await FileService().save_file(file)
    return FileUploaded(url=url)
