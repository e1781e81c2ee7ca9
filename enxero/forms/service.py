"""Form service — tenant form builder, submissions."""

from __future__ import annotations

import uuid
from typing import Any, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from enxero.audit.service import create_audit_entry
from enxero.common.constants import FormStatus
from enxero.common.exceptions import BadRequestException
from enxero.common.filters import apply_filters
from enxero.common.pagination import PaginatedResponse, PaginationParams, paginate
from enxero.common.tenancy import (
    create_tenant_where,
    get_tenant_record,
    require_company_id,
    tenant_operation,
    validate_tenant_access,
)
from enxero.forms.models import Form, FormField, FormSubmission
from enxero.forms.schemas import (
    FormCreate,
    FormDetail,
    FormFieldIn,
    FormOut,
    FormSubmissionOut,
    FormUpdate,
)

RECENT_SUBMISSIONS = 10


def normalize_submission(payload: dict[str, Any]) -> dict[str, Any]:
    """Return a ``{field_name: value}`` mapping.

    Accepts either a flat mapping or ``{"responses": [{"fieldName", "value"}]}``.
    """
    responses = payload.get("responses")
    if not isinstance(responses, list):
        return dict(payload)

    data: dict[str, Any] = {}
    for item in responses:
        if not isinstance(item, dict):
            continue
        name = item.get("fieldName", item.get("field_name"))
        if name and "value" in item:
            data[name] = item["value"]
    return data


def _is_blank(value: Any) -> bool:
    return value is None or value == "" or value == [] or value == {}


def _build_fields(fields: list[FormFieldIn]) -> list[FormField]:
    return [FormField(order=index, **field.model_dump()) for index, field in enumerate(fields)]


class FormService:

    @staticmethod
    @tenant_operation("fetch forms")
    async def list_forms(
        db: AsyncSession,
        params: PaginationParams,
        *,
        company_id: uuid.UUID,
        status: Optional[FormStatus] = None,
        category: Optional[str] = None,
    ) -> PaginatedResponse:
        query = select(Form).where(create_tenant_where(Form, None, company_id))
        query = apply_filters(query, Form, {"status": status, "category": category})
        return await paginate(
            db, query, params,
            model=Form,
            schema=FormOut,
            search_columns=("title", "description"),
        )

    @staticmethod
    @tenant_operation("fetch form")
    async def get_form(
        db: AsyncSession,
        form_id: uuid.UUID,
        *,
        company_id: uuid.UUID,
    ) -> FormDetail:
        """Form with its ordered fields and the latest submissions."""
        form = await get_tenant_record(
            db, Form, form_id, company_id, "Form",
            options=(selectinload(Form.fields),),
        )
        result = await db.execute(
            select(FormSubmission)
            .where(FormSubmission.form_id == form.id)
            .order_by(FormSubmission.submitted_at.desc())
            .limit(RECENT_SUBMISSIONS)
        )
        detail = FormDetail.model_validate(form)
        detail.submissions = [FormSubmissionOut.model_validate(s) for s in result.scalars().all()]
        return detail

    @staticmethod
    @tenant_operation("create form")
    async def create_form(
        db: AsyncSession,
        data: FormCreate,
        *,
        company_id: Optional[uuid.UUID],
        actor_id: Optional[uuid.UUID] = None,
    ) -> Form:
        company_id = require_company_id(company_id, "form creation")
        form = Form(
            company_id=company_id,
            title=data.title,
            description=data.description,
            category=data.category,
            status=data.status,
            settings=data.settings,
            created_by=actor_id,
            fields=_build_fields(data.fields),
        )
        db.add(form)
        await db.flush()

        await create_audit_entry(
            db,
            action="create",
            entity_type="form",
            entity_id=form.id,
            company_id=company_id,
            user_id=actor_id,
            new_values={"title": data.title, "fields": len(data.fields)},
        )
        return form

    @staticmethod
    @tenant_operation("update form")
    async def update_form(
        db: AsyncSession,
        form_id: uuid.UUID,
        data: FormUpdate,
        *,
        company_id: uuid.UUID,
        actor_id: Optional[uuid.UUID] = None,
    ) -> Form:
        form = await get_tenant_record(
            db, Form, form_id, company_id, "Form",
            options=(selectinload(Form.fields),),
        )
        changes = data.model_dump(exclude_unset=True, exclude={"fields"})
        for field, value in changes.items():
            setattr(form, field, value)
        if data.fields is not None:
            form.fields = _build_fields(data.fields)
        await db.flush()

        await create_audit_entry(
            db,
            action="update",
            entity_type="form",
            entity_id=form.id,
            company_id=company_id,
            user_id=actor_id,
            new_values=data.model_dump(mode="json", exclude_unset=True),
        )
        return form

    @staticmethod
    @tenant_operation("delete form")
    async def delete_form(
        db: AsyncSession,
        form_id: uuid.UUID,
        *,
        company_id: uuid.UUID,
        actor_id: Optional[uuid.UUID] = None,
    ) -> None:
        form = await get_tenant_record(
            db, Form, form_id, company_id, "Form",
            options=(selectinload(Form.fields),),
        )
        await db.delete(form)
        await db.flush()

        await create_audit_entry(
            db,
            action="delete",
            entity_type="form",
            entity_id=form_id,
            company_id=company_id,
            user_id=actor_id,
            old_values={"title": form.title},
        )

    # ─────────────────────────────────────────────────────────────────
    # Submissions
    # ─────────────────────────────────────────────────────────────────

    @staticmethod
    @tenant_operation("submit form")
    async def submit_form(
        db: AsyncSession,
        form_id: uuid.UUID,
        payload: dict[str, Any],
        *,
        company_id: uuid.UUID,
        actor_id: Optional[uuid.UUID] = None,
    ) -> FormSubmission:
        form = await get_tenant_record(
            db, Form, form_id, company_id, "Form",
            options=(selectinload(Form.fields),),
        )
        if form.status != FormStatus.published:
            raise BadRequestException("Form is not published")

        data = normalize_submission(payload)
        missing = [f for f in form.fields if f.required and _is_blank(data.get(f.name))]
        if missing:
            raise BadRequestException(
                f"Field {missing[0].label} is required",
                details=[{"field": f.name, "message": f"{f.label} is required"} for f in missing],
            )

        submission = FormSubmission(
            company_id=form.company_id,
            form_id=form.id,
            submitted_by=actor_id,
            data=data,
        )
        db.add(submission)
        await db.flush()
        return submission

    @staticmethod
    @tenant_operation("fetch form submissions")
    async def list_submissions(
        db: AsyncSession,
        form_id: uuid.UUID,
        params: PaginationParams,
        *,
        company_id: uuid.UUID,
    ) -> PaginatedResponse:
        await validate_tenant_access(db, Form, form_id, company_id, "Form")
        query = select(FormSubmission).where(
            create_tenant_where(FormSubmission, FormSubmission.form_id == form_id, company_id)
        )
        if params.sort_by is None:
            params.sort_by = "submittedAt"
        return await paginate(db, query, params, model=FormSubmission, schema=FormSubmissionOut)
