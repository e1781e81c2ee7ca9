"""Forms router — form builder CRUD, submission and submission listing."""

import uuid
from typing import Any, Optional

from fastapi import APIRouter, Body, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from enxero.auth.dependencies import get_current_user, require_permission
from enxero.common.constants import FormStatus
from enxero.common.pagination import PaginatedResponse, PaginationParams
from enxero.common.schemas import ApiResponse, MessageResponse
from enxero.database import get_db
from enxero.forms.schemas import (
    FormCreate,
    FormDetail,
    FormOut,
    FormSubmissionOut,
    FormUpdate,
    FormWithFields,
)
from enxero.forms.service import FormService
from enxero.users.models import User

router = APIRouter(prefix="", tags=["forms"])


@router.get("", response_model=PaginatedResponse[FormOut])
async def list_forms(
    params: PaginationParams = Depends(),
    status: Optional[FormStatus] = Query(None),
    category: Optional[str] = Query(None),
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return await FormService.list_forms(
        db, params, company_id=user.company_id, status=status, category=category,
    )


@router.get("/{form_id}", response_model=ApiResponse[FormDetail])
async def get_form(
    form_id: uuid.UUID,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return ApiResponse(data=await FormService.get_form(db, form_id, company_id=user.company_id))


@router.post("", response_model=ApiResponse[FormWithFields], status_code=201)
async def create_form(
    body: FormCreate,
    user: User = Depends(require_permission("write:all")),
    db: AsyncSession = Depends(get_db),
):
    form = await FormService.create_form(db, body, company_id=user.company_id, actor_id=user.id)
    return ApiResponse(data=FormWithFields.model_validate(form), message="Form created")


@router.patch("/{form_id}", response_model=ApiResponse[FormWithFields])
async def update_form(
    form_id: uuid.UUID,
    body: FormUpdate,
    user: User = Depends(require_permission("write:all")),
    db: AsyncSession = Depends(get_db),
):
    form = await FormService.update_form(
        db, form_id, body, company_id=user.company_id, actor_id=user.id,
    )
    return ApiResponse(data=FormWithFields.model_validate(form), message="Form updated")


@router.delete("/{form_id}", response_model=MessageResponse)
async def delete_form(
    form_id: uuid.UUID,
    user: User = Depends(require_permission("write:all")),
    db: AsyncSession = Depends(get_db),
):
    await FormService.delete_form(db, form_id, company_id=user.company_id, actor_id=user.id)
    return MessageResponse(message="Form deleted")


# ── Submissions ─────────────────────────────────────────────────────

@router.post("/{form_id}/submit", response_model=ApiResponse[FormSubmissionOut], status_code=201)
async def submit_form(
    form_id: uuid.UUID,
    body: dict[str, Any] = Body(...),
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Submit answers as a flat ``{fieldName: value}`` mapping or as ``{"responses": [...]}``."""
    submission = await FormService.submit_form(
        db, form_id, body, company_id=user.company_id, actor_id=user.id,
    )
    return ApiResponse(data=FormSubmissionOut.model_validate(submission), message="Form submitted")


@router.get("/{form_id}/submissions", response_model=PaginatedResponse[FormSubmissionOut])
async def list_submissions(
    form_id: uuid.UUID,
    params: PaginationParams = Depends(),
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return await FormService.list_submissions(db, form_id, params, company_id=user.company_id)
