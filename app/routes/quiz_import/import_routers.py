from typing import Optional

from fastapi import APIRouter, Depends, File, Form, HTTPException, UploadFile, status
from fastapi.concurrency import run_in_threadpool
from sqlalchemy.orm import Session

from app.core.config import settings
from app.core.database import get_db
from app.core.security import get_current_admin
from app.models.quiz_db import question_crud, quiz_crud
from app.schemas.quiz_import.import_base import ImportPreview, ImportSaveResult
from app.services import quiz_import
from app.services.media_store import CHUNK_SIZE

import_router = APIRouter(prefix="/api/quizzes", tags=["Import"], dependencies=[Depends(get_current_admin)])


async def _read_limited(upload: UploadFile, limit_mb: int) -> bytes:
    chunks, size = [], 0
    while True:
        chunk = await upload.read(CHUNK_SIZE)
        if not chunk:
            break
        size += len(chunk)
        if size > limit_mb * 1024 * 1024:
            raise HTTPException(status_code=400, detail=f"File is larger than {limit_mb} MB")
        chunks.append(chunk)
    return b"".join(chunks)


@import_router.post("/{quiz_id}/import-zip", response_model=ImportPreview)
async def import_zip(
    quiz_id: int,
    file: UploadFile = File(...),
    docx: Optional[UploadFile] = File(None),
    model: Optional[str] = Form(None),
    db: Session = Depends(get_db),
):
    """Upload slide images as a ZIP (and optionally the questions as a DOCX) and get back a preview to edit."""
    await run_in_threadpool(quiz_crud.get_quiz, db, quiz_id)
    zip_bytes = await _read_limited(file, settings.IMPORT_MAX_MB)
    docx_bytes = await _read_limited(docx, settings.MAX_UPLOAD_MB) if docx else None
    return await quiz_import.build_preview(zip_bytes, docx_bytes, model or None)


@import_router.post("/{quiz_id}/import-save", response_model=ImportSaveResult, status_code=status.HTTP_201_CREATED)
def import_save(quiz_id: int, preview: ImportPreview, db: Session = Depends(get_db)):
    if not preview.questions:
        raise HTTPException(status_code=400, detail="No questions provided")
    return {"created": question_crud.save_imported_questions(db, quiz_id, preview)}
