"""File service — upload to local disk, tenant-scoped metadata, download, delete.

Disk changes follow the request transaction: a file written during a request
is removed again if the transaction rolls back, and a deleted file's bytes
are unlinked only after the transaction commits.
"""

from __future__ import annotations

import logging
import os
import re
import time
import uuid
from typing import Optional, Sequence

from sqlalchemy import event, select
from sqlalchemy.ext.asyncio import AsyncSession

from enxero.audit.service import create_audit_entry
from enxero.common.exceptions import BadRequestException, NotFoundException
from enxero.common.filters import apply_filters
from enxero.common.pagination import PaginatedResponse, PaginationParams, paginate
from enxero.common.tenancy import (
    create_tenant_where,
    get_tenant_record,
    require_company_id,
    tenant_operation,
)
from enxero.config import settings
from enxero.files.models import File
from enxero.files.schemas import FileOut

logger = logging.getLogger(__name__)

_UNSAFE_CHARS = re.compile(r"[^A-Za-z0-9._-]+")

_WRITTEN_KEY = "enxero.files.written"
_REMOVED_KEY = "enxero.files.removed"


def sanitize_filename(filename: Optional[str]) -> str:
    """Strip directories and replace anything outside ``[A-Za-z0-9._-]`` with ``_``."""
    base = os.path.basename((filename or "").replace("\\", "/"))
    cleaned = _UNSAFE_CHARS.sub("_", base).strip("._")
    return cleaned or "file"


def _storage_path(storage_name: str) -> str:
    return os.path.join(settings.UPLOAD_PATH, storage_name)


def _unlink(path: str) -> None:
    if os.path.exists(path):
        os.remove(path)
    else:
        logger.warning("File %s missing on disk", os.path.basename(path))


def _after_commit(session) -> None:
    session.info.pop(_WRITTEN_KEY, None)
    for path in session.info.pop(_REMOVED_KEY, []):
        _unlink(path)


def _after_rollback(session) -> None:
    session.info.pop(_REMOVED_KEY, None)
    for path in session.info.pop(_WRITTEN_KEY, []):
        _unlink(path)


def _on_transaction_end(db: AsyncSession, key: str, path: str) -> None:
    """Queue *path* under *key* until the session's transaction ends."""
    session = db.sync_session
    if not event.contains(session, "after_commit", _after_commit):
        event.listen(session, "after_commit", _after_commit)
        event.listen(session, "after_rollback", _after_rollback)
    session.info.setdefault(key, []).append(path)


class FileService:

    @staticmethod
    @tenant_operation("fetch files")
    async def list_files(
        db: AsyncSession,
        params: PaginationParams,
        *,
        company_id: uuid.UUID,
        entity_type: Optional[str] = None,
        entity_id: Optional[str] = None,
        mimetype: Optional[str] = None,
    ) -> PaginatedResponse:
        query = select(File).where(create_tenant_where(File, None, company_id))
        query = apply_filters(query, File, {
            "entity_type": entity_type,
            "entity_id": entity_id,
            "mimetype": mimetype,
        })
        return await paginate(
            db, query, params,
            model=File,
            schema=FileOut,
            search_columns=("filename", "description"),
        )

    @staticmethod
    @tenant_operation("fetch file")
    async def get_file(db: AsyncSession, file_id: uuid.UUID, *, company_id: uuid.UUID) -> File:
        return await get_tenant_record(db, File, file_id, company_id, "File")

    @staticmethod
    @tenant_operation("resolve file download")
    async def get_download_path(
        db: AsyncSession,
        file_id: uuid.UUID,
        *,
        company_id: uuid.UUID,
    ) -> tuple[File, str]:
        record = await get_tenant_record(db, File, file_id, company_id, "File")
        path = _storage_path(record.storage_name)
        if not os.path.isfile(path):
            raise NotFoundException("File", file_id, message="File not found on disk")
        return record, path

    @staticmethod
    @tenant_operation("upload file")
    async def upload_file(
        db: AsyncSession,
        contents: bytes,
        filename: Optional[str],
        mimetype: Optional[str],
        *,
        company_id: Optional[uuid.UUID],
        actor_id: Optional[uuid.UUID] = None,
        description: Optional[str] = None,
        tags: Sequence[str] = (),
        entity_type: Optional[str] = None,
        entity_id: Optional[str] = None,
    ) -> File:
        company_id = require_company_id(company_id, "file upload")
        if not contents:
            raise BadRequestException("No file uploaded")
        if len(contents) > settings.MAX_FILE_SIZE:
            max_mb = settings.MAX_FILE_SIZE // (1024 * 1024)
            raise BadRequestException(f"File too large. Maximum size is {max_mb} MB.")

        os.makedirs(settings.UPLOAD_PATH, exist_ok=True)
        safe_name = sanitize_filename(filename)
        timestamp = int(time.time() * 1000)
        storage_name = f"{timestamp}_{safe_name}"
        while os.path.exists(_storage_path(storage_name)):
            timestamp += 1
            storage_name = f"{timestamp}_{safe_name}"

        path = _storage_path(storage_name)
        with open(path, "wb") as f:
            f.write(contents)
        _on_transaction_end(db, _WRITTEN_KEY, path)

        record = File(
            company_id=company_id,
            filename=filename or safe_name,
            storage_name=storage_name,
            mimetype=mimetype or "application/octet-stream",
            size=len(contents),
            description=description,
            tags=list(tags),
            entity_type=entity_type,
            entity_id=entity_id,
            uploaded_by=actor_id,
        )
        db.add(record)
        await db.flush()

        await create_audit_entry(
            db,
            action="upload",
            entity_type="file",
            entity_id=record.id,
            company_id=company_id,
            user_id=actor_id,
            new_values={"filename": record.filename, "size": record.size},
        )
        logger.info(
            "Stored upload %s (%d bytes)", storage_name, record.size,
            extra={"company_id": company_id, "user_id": actor_id},
        )
        return record

    @staticmethod
    @tenant_operation("delete file")
    async def delete_file(
        db: AsyncSession,
        file_id: uuid.UUID,
        *,
        company_id: uuid.UUID,
        actor_id: Optional[uuid.UUID] = None,
    ) -> None:
        record = await get_tenant_record(db, File, file_id, company_id, "File")
        await db.delete(record)
        await db.flush()
        _on_transaction_end(db, _REMOVED_KEY, _storage_path(record.storage_name))

        await create_audit_entry(
            db,
            action="delete",
            entity_type="file",
            entity_id=file_id,
            company_id=company_id,
            user_id=actor_id,
            old_values={"filename": record.filename},
        )
