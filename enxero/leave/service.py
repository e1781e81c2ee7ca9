"""Leave service — leave types, balances and the request workflow.

Request lifecycle::

    PENDING ──approve──▶ APPROVED
        │
        └────reject───▶ REJECTED   (balance restored)

Creating a request reserves the days on the employee's balance; rejecting
or deleting a pending request gives them back.
"""

from __future__ import annotations

import logging
import uuid
from datetime import date, datetime, timezone
from typing import Optional

from sqlalchemy import delete, select, update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from enxero.audit.service import create_audit_entry
from enxero.common.constants import LeaveStatus
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
from enxero.leave.models import LeaveBalance, LeaveRequest, LeaveType
from enxero.leave.schemas import (
    LeaveBalanceCreate,
    LeaveBalanceOut,
    LeaveRequestCreate,
    LeaveRequestOut,
    LeaveRequestUpdate,
    LeaveTypeCreate,
    LeaveTypeOut,
    LeaveTypeUpdate,
)

logger = logging.getLogger(__name__)


def leave_days(start_date: date, end_date: date) -> int:
    """Whole days between the two dates (end exclusive)."""
    return (end_date - start_date).days


async def _adjust_balance(
    db: AsyncSession,
    balance_id: uuid.UUID,
    days: int,
) -> bool:
    """Move *days* from remaining to used (negative *days* gives them back).

    The decrement is guarded in SQL so two concurrent requests cannot
    overdraw the balance. Returns False when the guard rejected the update.
    """
    stmt = (
        update(LeaveBalance)
        .where(LeaveBalance.id == balance_id)
        .values(
            remaining_days=LeaveBalance.remaining_days - days,
            used_days=LeaveBalance.used_days + days,
        )
        .execution_options(synchronize_session="fetch")
    )
    if days > 0:
        stmt = stmt.where(LeaveBalance.remaining_days >= days)
    result = await db.execute(stmt)
    return result.rowcount == 1


async def _transition_pending(
    db: AsyncSession,
    request: LeaveRequest,
    message: str,
    **values,
) -> None:
    """Move *request* out of PENDING with a status-guarded UPDATE.

    Of two concurrent transitions only one still matches the row; the other
    raises *message* before touching the balance.
    """
    result = await db.execute(
        update(LeaveRequest)
        .where(LeaveRequest.id == request.id, LeaveRequest.status == LeaveStatus.PENDING)
        .values(updated_at=datetime.now(timezone.utc), **values)
        .execution_options(synchronize_session="fetch")
    )
    if result.rowcount != 1:
        raise BadRequestException(message)


async def _find_balance(
    db: AsyncSession,
    employee_id: uuid.UUID,
    type_id: uuid.UUID,
    company_id: uuid.UUID,
) -> Optional[LeaveBalance]:
    result = await db.execute(
        select(LeaveBalance).where(
            create_tenant_where(
                LeaveBalance,
                [LeaveBalance.employee_id == employee_id, LeaveBalance.type_id == type_id],
                company_id,
            )
        )
    )
    return result.scalars().first()


class LeaveService:

    # ─────────────────────────────────────────────────────────────────
    # Leave types
    # ─────────────────────────────────────────────────────────────────

    @staticmethod
    async def _ensure_type_name_free(
        db: AsyncSession,
        name: str,
        company_id: uuid.UUID,
        exclude_id: Optional[uuid.UUID] = None,
    ) -> None:
        query = select(LeaveType.id).where(
            create_tenant_where(LeaveType, LeaveType.name == name, company_id)
        )
        if exclude_id is not None:
            query = query.where(LeaveType.id != exclude_id)
        if (await db.execute(query)).first() is not None:
            raise ConflictError("Leave type with this name already exists", field="name")

    @staticmethod
    @tenant_operation("fetch leave types")
    async def list_leave_types(
        db: AsyncSession,
        *,
        company_id: uuid.UUID,
        is_active: Optional[bool] = None,
    ) -> list[LeaveTypeOut]:
        query = select(LeaveType).where(create_tenant_where(LeaveType, None, company_id))
        query = apply_filters(query, LeaveType, {"is_active": is_active})
        result = await db.execute(query.order_by(LeaveType.name))
        return [LeaveTypeOut.model_validate(t) for t in result.scalars().all()]

    @staticmethod
    @tenant_operation("create leave type")
    async def create_leave_type(
        db: AsyncSession,
        data: LeaveTypeCreate,
        *,
        company_id: Optional[uuid.UUID],
        actor_id: Optional[uuid.UUID] = None,
    ) -> LeaveType:
        company_id = require_company_id(company_id, "leave type creation")
        await LeaveService._ensure_type_name_free(db, data.name, company_id)

        leave_type = LeaveType(company_id=company_id, **data.model_dump())
        db.add(leave_type)
        await db.flush()

        await create_audit_entry(
            db,
            action="create",
            entity_type="leave_type",
            entity_id=leave_type.id,
            company_id=company_id,
            user_id=actor_id,
            new_values=data.model_dump(mode="json"),
        )
        return leave_type

    @staticmethod
    @tenant_operation("update leave type")
    async def update_leave_type(
        db: AsyncSession,
        type_id: uuid.UUID,
        data: LeaveTypeUpdate,
        *,
        company_id: uuid.UUID,
        actor_id: Optional[uuid.UUID] = None,
    ) -> LeaveType:
        leave_type = await get_tenant_record(db, LeaveType, type_id, company_id, "Leave type")
        changes = data.model_dump(exclude_unset=True)
        if changes.get("name") and changes["name"] != leave_type.name:
            await LeaveService._ensure_type_name_free(
                db, changes["name"], company_id, exclude_id=leave_type.id,
            )

        for field, value in changes.items():
            setattr(leave_type, field, value)
        await db.flush()

        await create_audit_entry(
            db,
            action="update",
            entity_type="leave_type",
            entity_id=leave_type.id,
            company_id=company_id,
            user_id=actor_id,
            new_values=data.model_dump(mode="json", exclude_unset=True),
        )
        return leave_type

    # ─────────────────────────────────────────────────────────────────
    # Balances
    # ─────────────────────────────────────────────────────────────────

    @staticmethod
    @tenant_operation("fetch leave balance")
    async def get_leave_balance(
        db: AsyncSession,
        *,
        company_id: uuid.UUID,
        employee_id: Optional[uuid.UUID] = None,
    ) -> list[LeaveBalanceOut]:
        query = (
            select(LeaveBalance)
            .where(create_tenant_where(LeaveBalance, None, company_id))
            .options(selectinload(LeaveBalance.leave_type))
        )
        query = apply_filters(query, LeaveBalance, {"employee_id": employee_id})
        result = await db.execute(query.order_by(LeaveBalance.created_at))
        return [LeaveBalanceOut.model_validate(b) for b in result.scalars().all()]

    @staticmethod
    @tenant_operation("allocate leave balance")
    async def allocate_balance(
        db: AsyncSession,
        data: LeaveBalanceCreate,
        *,
        company_id: uuid.UUID,
        actor_id: Optional[uuid.UUID] = None,
    ) -> LeaveBalance:
        """Create the (employee, leave type) balance, seeded from the type's default days."""
        await validate_tenant_access(db, Employee, data.employee_id, company_id, "Employee")
        leave_type = await get_tenant_record(db, LeaveType, data.type_id, company_id, "Leave type")
        if await _find_balance(db, data.employee_id, data.type_id, company_id) is not None:
            raise ConflictError("Leave balance already exists for this employee and type")

        total = leave_type.default_days if data.total_days is None else data.total_days
        balance = LeaveBalance(
            company_id=company_id,
            employee_id=data.employee_id,
            type_id=leave_type.id,
            total_days=total,
            used_days=0,
            remaining_days=total,
        )
        db.add(balance)
        await db.flush()

        await create_audit_entry(
            db,
            action="create",
            entity_type="leave_balance",
            entity_id=balance.id,
            company_id=company_id,
            user_id=actor_id,
            new_values={"employeeId": str(data.employee_id), "typeId": str(leave_type.id), "totalDays": total},
        )
        result = await db.execute(
            select(LeaveBalance)
            .where(LeaveBalance.id == balance.id)
            .options(selectinload(LeaveBalance.leave_type))
        )
        return result.scalars().one()

    # ─────────────────────────────────────────────────────────────────
    # Requests
    # ─────────────────────────────────────────────────────────────────

    @staticmethod
    @tenant_operation("fetch leave requests")
    async def list_leave_requests(
        db: AsyncSession,
        params: PaginationParams,
        *,
        company_id: uuid.UUID,
        employee_id: Optional[uuid.UUID] = None,
        status: Optional[LeaveStatus] = None,
        type_id: Optional[uuid.UUID] = None,
    ) -> PaginatedResponse:
        query = select(LeaveRequest).where(create_tenant_where(LeaveRequest, None, company_id))
        query = apply_filters(query, LeaveRequest, {
            "employee_id": employee_id,
            "status": status,
            "type_id": type_id,
        })
        return await paginate(
            db, query, params,
            model=LeaveRequest,
            schema=LeaveRequestOut,
            search_columns=("notes", "comments"),
        )

    @staticmethod
    @tenant_operation("fetch leave request")
    async def get_leave_request(
        db: AsyncSession,
        request_id: uuid.UUID,
        *,
        company_id: uuid.UUID,
    ) -> LeaveRequest:
        return await get_tenant_record(db, LeaveRequest, request_id, company_id, "Leave request")

    @staticmethod
    @tenant_operation("create leave request")
    async def create_leave_request(
        db: AsyncSession,
        data: LeaveRequestCreate,
        *,
        company_id: Optional[uuid.UUID],
        actor_id: Optional[uuid.UUID] = None,
    ) -> LeaveRequest:
        company_id = require_company_id(company_id, "leave request creation")
        if data.end_date < data.start_date:
            raise BadRequestException("End date must be on or after start date")

        await validate_tenant_access(db, Employee, data.employee_id, company_id, "Employee")
        balance = await _find_balance(db, data.employee_id, data.type_id, company_id)
        if balance is None:
            raise NotFoundException("Leave balance", message="Leave balance not found")

        days = leave_days(data.start_date, data.end_date)
        if balance.remaining_days < days:
            raise BadRequestException("Insufficient leave balance")

        async with atomic(db):
            if not await _adjust_balance(db, balance.id, days):
                raise BadRequestException("Insufficient leave balance")

            request = LeaveRequest(
                company_id=company_id,
                employee_id=data.employee_id,
                type_id=data.type_id,
                start_date=data.start_date,
                end_date=data.end_date,
                days=days,
                notes=data.notes,
                status=LeaveStatus.PENDING,
            )
            db.add(request)
            await db.flush()

            await create_audit_entry(
                db,
                action="create",
                entity_type="leave_request",
                entity_id=request.id,
                company_id=company_id,
                user_id=actor_id,
                new_values=data.model_dump(mode="json") | {"days": days},
            )

        logger.info(
            "Leave request %s created for employee %s (%d days)",
            request.id, data.employee_id, days,
            extra={"company_id": company_id, "operation": "create leave request"},
        )
        return request

    @staticmethod
    @tenant_operation("update leave request")
    async def update_leave_request(
        db: AsyncSession,
        request_id: uuid.UUID,
        data: LeaveRequestUpdate,
        *,
        company_id: uuid.UUID,
        actor_id: Optional[uuid.UUID] = None,
    ) -> LeaveRequest:
        request = await get_tenant_record(db, LeaveRequest, request_id, company_id, "Leave request")
        if request.status != LeaveStatus.PENDING:
            raise BadRequestException("Leave request is not in pending status")

        old_notes = request.notes
        for field, value in data.model_dump(exclude_unset=True).items():
            setattr(request, field, value)
        await db.flush()

        await create_audit_entry(
            db,
            action="update",
            entity_type="leave_request",
            entity_id=request.id,
            company_id=company_id,
            user_id=actor_id,
            old_values={"notes": old_notes},
            new_values=data.model_dump(mode="json", exclude_unset=True),
        )
        return request

    @staticmethod
    @tenant_operation("approve leave request")
    async def approve_leave_request(
        db: AsyncSession,
        request_id: uuid.UUID,
        notes: Optional[str] = None,
        *,
        company_id: uuid.UUID,
        actor_id: uuid.UUID,
    ) -> LeaveRequest:
        request = await get_tenant_record(db, LeaveRequest, request_id, company_id, "Leave request")
        if request.status != LeaveStatus.PENDING:
            raise BadRequestException("Leave request is not in pending status")

        await _transition_pending(
            db, request, "Leave request is not in pending status",
            status=LeaveStatus.APPROVED,
            approved_by=actor_id,
            comments=notes,
            approved_at=datetime.now(timezone.utc),
        )

        await create_audit_entry(
            db,
            action="approve",
            entity_type="leave_request",
            entity_id=request.id,
            company_id=company_id,
            user_id=actor_id,
            old_values={"status": LeaveStatus.PENDING.value},
            new_values={"status": LeaveStatus.APPROVED.value, "comments": notes},
        )
        return request

    @staticmethod
    @tenant_operation("reject leave request")
    async def reject_leave_request(
        db: AsyncSession,
        request_id: uuid.UUID,
        notes: Optional[str] = None,
        *,
        company_id: uuid.UUID,
        actor_id: uuid.UUID,
    ) -> LeaveRequest:
        request = await get_tenant_record(db, LeaveRequest, request_id, company_id, "Leave request")
        if request.status != LeaveStatus.PENDING:
            raise BadRequestException("Leave request is not in pending status")

        async with atomic(db):
            await _transition_pending(
                db, request, "Leave request is not in pending status",
                status=LeaveStatus.REJECTED,
                approved_by=actor_id,
                comments=notes,
                rejected_at=datetime.now(timezone.utc),
            )
            balance = await _find_balance(db, request.employee_id, request.type_id, company_id)
            if balance is not None:
                await _adjust_balance(
                    db, balance.id, -leave_days(request.start_date, request.end_date),
                )

            await create_audit_entry(
                db,
                action="reject",
                entity_type="leave_request",
                entity_id=request.id,
                company_id=company_id,
                user_id=actor_id,
                old_values={"status": LeaveStatus.PENDING.value},
                new_values={"status": LeaveStatus.REJECTED.value, "comments": notes},
            )
        return request

    @staticmethod
    @tenant_operation("delete leave request")
    async def delete_leave_request(
        db: AsyncSession,
        request_id: uuid.UUID,
        *,
        company_id: uuid.UUID,
        actor_id: Optional[uuid.UUID] = None,
    ) -> None:
        request = await get_tenant_record(db, LeaveRequest, request_id, company_id, "Leave request")
        if request.status != LeaveStatus.PENDING:
            raise BadRequestException("Cannot delete non-pending leave request")

        days, employee_id, type_id = request.days, request.employee_id, request.type_id
        async with atomic(db):
            result = await db.execute(
                delete(LeaveRequest)
                .where(LeaveRequest.id == request.id, LeaveRequest.status == LeaveStatus.PENDING)
                .execution_options(synchronize_session="fetch")
            )
            if result.rowcount != 1:
                raise BadRequestException("Cannot delete non-pending leave request")

            balance = await _find_balance(db, employee_id, type_id, company_id)
            if balance is not None:
                await _adjust_balance(db, balance.id, -days)

            await create_audit_entry(
                db,
                action="delete",
                entity_type="leave_request",
                entity_id=request_id,
                company_id=company_id,
                user_id=actor_id,
                old_values={"days": days, "status": LeaveStatus.PENDING.value},
            )
