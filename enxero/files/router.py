"""Files router — metadata listing, download, multipart upload, delete."""

import uuid
from typing import Optional

from fastapi import APIRouter, Depends, File, Form, Query, UploadFile
from fastapi.responses import FileResponse
from sqlalchemy.ext.asyncio import AsyncSession

from enxero.auth.dependencies import get_current_user, require_permission
from enxero.common.pagination import PaginatedResponse, PaginationParams
from enxero.common.schemas import ApiResponse, MessageResponse
from enxero.database import get_db
from enxero.files.schemas import FileOut
from enxero.files.service import FileService
from enxero.users.models import User

router = APIRouter(prefix="", tags=["files"])


@router.get("", response_model=PaginatedResponse[FileOut])
async def list_files(
    params: PaginationParams = Depends(),
    entity_type: Optional[str] = Query(None, alias="entityType"),
    entity_id: Optional[str] = Query(None, alias="entityId"),
    mimetype: Optional[str] = Query(None),
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return await FileService.list_files(
        db, params,
        company_id=user.company_id,
        entity_type=entity_type,
        entity_id=entity_id,
        mimetype=mimetype,
    )


@router.get("/{file_id}", response_model=ApiResponse[FileOut])
async def get_file(
    file_id: uuid.UUID,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    record = await FileService.get_file(db, file_id, company_id=user.company_id)
    return ApiResponse(data=FileOut.model_validate(record))


@router.get("/{file_id}/download")
async def download_file(
    file_id: uuid.UUID,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    record, path = await FileService.get_download_path(db, file_id, company_id=user.company_id)
    return FileResponse(path, media_type=record.mimetype, filename=record.filename)


# ── POST /upload ────────────────────────────────────────────────────

@router.post("/upload", response_model=ApiResponse[FileOut], status_code=201)
async def upload_file(
    file: UploadFile = File(...),
    description: Optional[str] = Form(None),
    tags: Optional[str] = Form(None, description="Comma-separated tags"),
    entity_type: Optional[str] = Form(None, alias="entityType"),
    entity_id: Optional[str] = Form(None, alias="entityId"),
    user: User = Depends(require_permission("write:all")),
    db: AsyncSession = Depends(get_db),
):
    """Upload one file (multipart). Size is capped by ``MAX_FILE_SIZE``."""
    contents = await file.read()
    tag_list = [t.strip() for t in tags.split(",") if t.strip()] if tags else []
    record = await FileService.upload_file(
        db, contents, file.filename, file.content_type,
        company_id=user.company_id,
        actor_id=user.id,
        description=description,
        tags=tag_list,
        entity_type=entity_type,
        entity_id=entity_id,
    )
    return ApiResponse(data=FileOut.model_validate(record), message="File uploaded")


@router.delete("/{file_id}", response_model=MessageResponse)
async def delete_file(
    file_id: uuid.UUID,
    user: User = Depends(require_permission("write:all")),
    db: AsyncSession = Depends(get_db),
):
    await FileService.delete_file(db, file_id, company_id=user.company_id, actor_id=user.id)
    return MessageResponse(message="File deleted")
