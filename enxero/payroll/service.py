"""Payroll service — company pay configuration, pay periods and records.

Period lifecycle::

    DRAFT ──process──▶ PROCESSED ──approve──▶ APPROVED

Records may only be added or edited while their period is DRAFT.
Processing computes ``net = gross - deductions`` for every record of the
period; approval flips period and records together.
"""

from __future__ import annotations

import logging
import uuid
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from enxero.audit.service import create_audit_entry
from enxero.common.constants import PayrollStatus
from enxero.common.exceptions import BadRequestException, ConflictError, NotFoundException
from enxero.common.filters import apply_filters
from enxero.common.pagination import PaginatedResponse, PaginationParams, paginate
from enxero.common.tenancy import (
    create_tenant_where,
    get_tenant_record,
    require_company_id,
    tenant_operation,
    validate_tenant_access,
)
from enxero.database import atomic
from enxero.employees.models import Employee
from enxero.payroll.models import PayrollConfig, PayrollPeriod, PayrollRecord
from enxero.payroll.schemas import (
    PayrollConfigCreate,
    PayrollConfigUpdate,
    PayrollPeriodCreate,
    PayrollPeriodDetail,
    PayrollPeriodOut,
    PayrollRecordCreate,
    PayrollRecordOut,
    PayrollRecordUpdate,
)

logger = logging.getLogger(__name__)


async def _get_period(
    db: AsyncSession,
    period_id: uuid.UUID,
    company_id: uuid.UUID,
) -> PayrollPeriod:
    result = await db.execute(
        select(PayrollPeriod).where(
            create_tenant_where(PayrollPeriod, PayrollPeriod.id == period_id, company_id)
        )
    )
    period = result.scalars().first()
    if period is None:
        raise NotFoundException("Payroll period", period_id, message="Payroll period not found")
    return period


async def _period_records(db: AsyncSession, period_id: uuid.UUID) -> list[PayrollRecord]:
    result = await db.execute(
        select(PayrollRecord)
        .where(PayrollRecord.period_id == period_id)
        .order_by(PayrollRecord.created_at, PayrollRecord.id)
    )
    return list(result.scalars().all())


def _require_status(period: PayrollPeriod, expected: PayrollStatus) -> None:
    if period.status != expected:
        raise BadRequestException(
            f"Payroll period is not in {expected.value.lower()} status"
        )


async def _advance_period(
    db: AsyncSession,
    period: PayrollPeriod,
    expected: PayrollStatus,
    **values,
) -> None:
    """Apply *values* only while the period is still in *expected* status."""
    result = await db.execute(
        update(PayrollPeriod)
        .where(PayrollPeriod.id == period.id, PayrollPeriod.status == expected)
        .values(updated_at=datetime.now(timezone.utc), **values)
        .execution_options(synchronize_session="fetch")
    )
    if result.rowcount != 1:
        raise BadRequestException(
            f"Payroll period is not in {expected.value.lower()} status"
        )


class PayrollService:

    # ─────────────────────────────────────────────────────────────────
    # Config (one per company)
    # ─────────────────────────────────────────────────────────────────

    @staticmethod
    @tenant_operation("fetch payroll config")
    async def get_config(db: AsyncSession, *, company_id: uuid.UUID) -> PayrollConfig:
        result = await db.execute(
            select(PayrollConfig).where(create_tenant_where(PayrollConfig, None, company_id))
        )
        config = result.scalars().first()
        if config is None:
            raise NotFoundException("Payroll config", message="Payroll config not found")
        return config

    @staticmethod
    @tenant_operation("create payroll config")
    async def create_config(
        db: AsyncSession,
        data: PayrollConfigCreate,
        *,
        company_id: Optional[uuid.UUID],
        actor_id: Optional[uuid.UUID] = None,
    ) -> PayrollConfig:
        company_id = require_company_id(company_id, "payroll configuration")
        existing = await db.execute(
            select(PayrollConfig.id).where(create_tenant_where(PayrollConfig, None, company_id))
        )
        if existing.first() is not None:
            raise ConflictError("Payroll config already exists for this company")

        config = PayrollConfig(company_id=company_id, **data.model_dump())
        db.add(config)
        await db.flush()

        await create_audit_entry(
            db,
            action="create",
            entity_type="payroll_config",
            entity_id=config.id,
            company_id=company_id,
            user_id=actor_id,
            new_values=data.model_dump(mode="json"),
        )
        return config

    @staticmethod
    @tenant_operation("update payroll config")
    async def update_config(
        db: AsyncSession,
        config_id: uuid.UUID,
        data: PayrollConfigUpdate,
        *,
        company_id: uuid.UUID,
        actor_id: Optional[uuid.UUID] = None,
    ) -> PayrollConfig:
        config = await get_tenant_record(db, PayrollConfig, config_id, company_id, "Payroll config")
        for field, value in data.model_dump(exclude_unset=True).items():
            setattr(config, field, value)
        await db.flush()

        await create_audit_entry(
            db,
            action="update",
            entity_type="payroll_config",
            entity_id=config.id,
            company_id=company_id,
            user_id=actor_id,
            new_values=data.model_dump(mode="json", exclude_unset=True),
        )
        return config

    # ─────────────────────────────────────────────────────────────────
    # Periods
    # ─────────────────────────────────────────────────────────────────

    @staticmethod
    @tenant_operation("fetch payroll periods")
    async def list_periods(
        db: AsyncSession,
        params: PaginationParams,
        *,
        company_id: uuid.UUID,
        status: Optional[PayrollStatus] = None,
    ) -> PaginatedResponse:
        query = select(PayrollPeriod).where(create_tenant_where(PayrollPeriod, None, company_id))
        query = apply_filters(query, PayrollPeriod, {"status": status})
        return await paginate(db, query, params, model=PayrollPeriod, schema=PayrollPeriodOut)

    @staticmethod
    @tenant_operation("create payroll period")
    async def create_period(
        db: AsyncSession,
        data: PayrollPeriodCreate,
        *,
        company_id: Optional[uuid.UUID],
        actor_id: Optional[uuid.UUID] = None,
    ) -> PayrollPeriod:
        company_id = require_company_id(company_id, "payroll period creation")
        period = PayrollPeriod(
            company_id=company_id,
            start_date=data.start_date,
            end_date=data.end_date,
            status=PayrollStatus.DRAFT,
        )
        db.add(period)
        await db.flush()

        await create_audit_entry(
            db,
            action="create",
            entity_type="payroll_period",
            entity_id=period.id,
            company_id=company_id,
            user_id=actor_id,
            new_values=data.model_dump(mode="json"),
        )
        return period

    @staticmethod
    @tenant_operation("fetch payroll period")
    async def get_period(
        db: AsyncSession,
        period_id: uuid.UUID,
        *,
        company_id: uuid.UUID,
    ) -> PayrollPeriodDetail:
        period = await _get_period(db, period_id, company_id)
        detail = PayrollPeriodDetail.model_validate(period)
        detail.records = [
            PayrollRecordOut.model_validate(r) for r in await _period_records(db, period.id)
        ]
        return detail

    @staticmethod
    @tenant_operation("process payroll")
    async def process_payroll(
        db: AsyncSession,
        period_id: uuid.UUID,
        *,
        company_id: uuid.UUID,
        actor_id: Optional[uuid.UUID] = None,
    ) -> PayrollPeriodDetail:
        period = await _get_period(db, period_id, company_id)
        _require_status(period, PayrollStatus.DRAFT)

        now = datetime.now(timezone.utc)
        async with atomic(db):
            await _advance_period(
                db, period, PayrollStatus.DRAFT,
                status=PayrollStatus.PROCESSED,
                processed_at=now,
            )
            records = await _period_records(db, period.id)
            for record in records:
                record.net_salary = record.gross_salary - record.total_deductions
                record.status = PayrollStatus.PROCESSED
                record.processed_at = now
            await db.flush()

            await create_audit_entry(
                db,
                action="process",
                entity_type="payroll_period",
                entity_id=period.id,
                company_id=company_id,
                user_id=actor_id,
                old_values={"status": PayrollStatus.DRAFT.value},
                new_values={"status": PayrollStatus.PROCESSED.value, "records": len(records)},
            )

        logger.info(
            "Processed payroll period %s (%d records)", period.id, len(records),
            extra={"company_id": company_id, "operation": "process payroll"},
        )
        detail = PayrollPeriodDetail.model_validate(period)
        detail.records = [PayrollRecordOut.model_validate(r) for r in records]
        return detail

    @staticmethod
    @tenant_operation("approve payroll")
    async def approve_payroll(
        db: AsyncSession,
        period_id: uuid.UUID,
        *,
        company_id: uuid.UUID,
        actor_id: uuid.UUID,
    ) -> PayrollPeriodDetail:
        period = await _get_period(db, period_id, company_id)
        _require_status(period, PayrollStatus.PROCESSED)

        async with atomic(db):
            await _advance_period(
                db, period, PayrollStatus.PROCESSED,
                status=PayrollStatus.APPROVED,
                approved_at=datetime.now(timezone.utc),
                approved_by=actor_id,
            )
            await db.execute(
                update(PayrollRecord)
                .where(PayrollRecord.period_id == period.id)
                .values(status=PayrollStatus.APPROVED)
                .execution_options(synchronize_session="fetch")
            )

            await create_audit_entry(
                db,
                action="approve",
                entity_type="payroll_period",
                entity_id=period.id,
                company_id=company_id,
                user_id=actor_id,
                old_values={"status": PayrollStatus.PROCESSED.value},
                new_values={"status": PayrollStatus.APPROVED.value},
            )

        detail = PayrollPeriodDetail.model_validate(period)
        detail.records = [
            PayrollRecordOut.model_validate(r) for r in await _period_records(db, period.id)
        ]
        return detail

    # ─────────────────────────────────────────────────────────────────
    # Records
    # ─────────────────────────────────────────────────────────────────

    @staticmethod
    @tenant_operation("fetch payroll records")
    async def list_records(
        db: AsyncSession,
        params: PaginationParams,
        *,
        company_id: uuid.UUID,
        employee_id: Optional[uuid.UUID] = None,
        period_id: Optional[uuid.UUID] = None,
        status: Optional[PayrollStatus] = None,
    ) -> PaginatedResponse:
        query = select(PayrollRecord).where(create_tenant_where(PayrollRecord, None, company_id))
        query = apply_filters(query, PayrollRecord, {
            "employee_id": employee_id,
            "period_id": period_id,
            "status": status,
        })
        return await paginate(db, query, params, model=PayrollRecord, schema=PayrollRecordOut)

    @staticmethod
    @tenant_operation("fetch payroll record")
    async def get_record(
        db: AsyncSession,
        record_id: uuid.UUID,
        *,
        company_id: uuid.UUID,
    ) -> PayrollRecord:
        return await get_tenant_record(db, PayrollRecord, record_id, company_id, "Payroll record")

    @staticmethod
    @tenant_operation("create payroll record")
    async def create_record(
        db: AsyncSession,
        data: PayrollRecordCreate,
        *,
        company_id: Optional[uuid.UUID],
        actor_id: Optional[uuid.UUID] = None,
    ) -> PayrollRecord:
        company_id = require_company_id(company_id, "payroll record creation")
        await validate_tenant_access(db, Employee, data.employee_id, company_id, "Employee")
        period = await _get_period(db, data.period_id, company_id)
        _require_status(period, PayrollStatus.DRAFT)

        duplicate = await db.execute(
            select(PayrollRecord.id).where(
                PayrollRecord.employee_id == data.employee_id,
                PayrollRecord.period_id == period.id,
            )
        )
        if duplicate.first() is not None:
            raise ConflictError("Payroll record already exists for this employee and period")

        record = PayrollRecord(
            company_id=company_id,
            employee_id=data.employee_id,
            period_id=period.id,
            pay_period_start=period.start_date,
            pay_period_end=period.end_date,
            gross_salary=data.gross_salary,
            total_deductions=data.total_deductions,
            net_salary=data.gross_salary - data.total_deductions,
            working_days=data.working_days,
            deductions=data.deductions,
            allowances=data.allowances,
            status=PayrollStatus.DRAFT,
        )
        db.add(record)
        await db.flush()

        await create_audit_entry(
            db,
            action="create",
            entity_type="payroll_record",
            entity_id=record.id,
            company_id=company_id,
            user_id=actor_id,
            new_values=data.model_dump(mode="json"),
        )
        return record

    @staticmethod
    @tenant_operation("update payroll record")
    async def update_record(
        db: AsyncSession,
        record_id: uuid.UUID,
        data: PayrollRecordUpdate,
        *,
        company_id: uuid.UUID,
        actor_id: Optional[uuid.UUID] = None,
    ) -> PayrollRecord:
        record = await get_tenant_record(db, PayrollRecord, record_id, company_id, "Payroll record")
        period = await _get_period(db, record.period_id, company_id)
        _require_status(period, PayrollStatus.DRAFT)

        for field, value in data.model_dump(exclude_unset=True).items():
            setattr(record, field, value)
        record.net_salary = record.gross_salary - record.total_deductions
        await db.flush()

        await create_audit_entry(
            db,
            action="update",
            entity_type="payroll_record",
            entity_id=record.id,
            company_id=company_id,
            user_id=actor_id,
            new_values=data.model_dump(mode="json", exclude_unset=True),
        )
        return record

    @staticmethod
    @tenant_operation("fetch employee payroll")
    async def get_employee_payroll(
        db: AsyncSession,
        employee_id: uuid.UUID,
        period_id: uuid.UUID,
        *,
        company_id: uuid.UUID,
    ) -> PayrollRecord:
        result = await db.execute(
            select(PayrollRecord).where(
                create_tenant_where(
                    PayrollRecord,
                    [PayrollRecord.employee_id == employee_id, PayrollRecord.period_id == period_id],
                    company_id,
                )
            )
        )
        record = result.scalars().first()
        if record is None:
            raise NotFoundException("Payroll record", message="Payroll record not found")
        return record
