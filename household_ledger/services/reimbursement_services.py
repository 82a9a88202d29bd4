from datetime import datetime, timezone

import structlog
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from household_ledger.core.exceptions import AlreadySettledError, NotFoundError, ValidationError
from household_ledger.core.periods import parse_month
from household_ledger.core.result import unit_of_work
from household_ledger.core.utils import ZERO, qround, to_decimal
from household_ledger.models.expense import Expense
from household_ledger.models.reimbursement import Reimbursement
from household_ledger.schemas.reimbursement import ReimbursementList, ReimbursementOut
from household_ledger.services.pool_services import credit_pool, debit_pool

logger = structlog.get_logger(__name__)


async def get_reimbursement_or_404(db: AsyncSession, reimbursement_id: int) -> Reimbursement:
    q = (
        select(Reimbursement)
        .where(Reimbursement.id == reimbursement_id)
        .with_for_update()
    )
    res = await db.execute(q)
    reimbursement = res.scalar_one_or_none()

    if not reimbursement:
        raise NotFoundError(f"Reimbursement {reimbursement_id} not found")

    return reimbursement

async def _linked_expense(db: AsyncSession, reimbursement: Reimbursement) -> Expense | None:
    if reimbursement.expense_id is None:
        return None

    res = await db.execute(select(Expense).where(Expense.id == reimbursement.expense_id))
    return res.scalar_one_or_none()

@unit_of_work("settle_reimbursement")
async def settle_reimbursement(db: AsyncSession, reimbursement_id: int):
    reimbursement = await get_reimbursement_or_404(db, reimbursement_id)

    if reimbursement.settled:
        raise AlreadySettledError(f"Reimbursement {reimbursement_id} is already settled")

    await debit_pool(db, to_decimal(reimbursement.amount))

    reimbursement.settled = True
    reimbursement.settled_at = datetime.now(timezone.utc)

    expense = await _linked_expense(db, reimbursement)
    if expense is not None:
        expense.needs_reimbursement = False

    await db.flush()

    logger.info("reimbursement_settled", reimbursement_id=reimbursement.id, amount=str(reimbursement.amount))
    return ReimbursementOut.model_validate(reimbursement)

@unit_of_work("unsettle_reimbursement")
async def unsettle_reimbursement(db: AsyncSession, reimbursement_id: int):
    reimbursement = await get_reimbursement_or_404(db, reimbursement_id)

    if not reimbursement.settled:
        raise ValidationError(f"Reimbursement {reimbursement_id} is not settled")

    # give the pool back what the settlement took
    await credit_pool(db, to_decimal(reimbursement.amount))

    reimbursement.settled = False
    reimbursement.settled_at = None

    expense = await _linked_expense(db, reimbursement)
    if expense is not None:
        expense.needs_reimbursement = True

    await db.flush()

    logger.info("reimbursement_unsettled", reimbursement_id=reimbursement.id, amount=str(reimbursement.amount))
    return ReimbursementOut.model_validate(reimbursement)

@unit_of_work("delete_reimbursement")
async def delete_reimbursement(db: AsyncSession, reimbursement_id: int):
    reimbursement = await get_reimbursement_or_404(db, reimbursement_id)

    if reimbursement.settled:
        raise AlreadySettledError("Settled reimbursements must be unsettled before deletion")

    expense = await _linked_expense(db, reimbursement)
    if expense is not None:
        expense.needs_reimbursement = False

    await db.delete(reimbursement)
    await db.flush()

    logger.info("reimbursement_deleted", reimbursement_id=reimbursement_id)
    return {"status": "deleted", "id": reimbursement_id}

@unit_of_work("list_reimbursements")
async def list_reimbursements(
    db: AsyncSession,
    month: str | None = None,
    member_id: int | None = None,
    settled: bool | None = None,
):
    q = select(Reimbursement).order_by(Reimbursement.created_at.desc(), Reimbursement.id.desc())

    if month:
        parse_month(month)
        q = q.where(Reimbursement.month == month)
    if member_id is not None:
        q = q.where(Reimbursement.member_id == member_id)
    if settled is not None:
        q = q.where(Reimbursement.settled == settled)

    res = await db.execute(q)
    rows = res.scalars().all()

    total_owed = ZERO
    for r in rows:
        if not r.settled:
            total_owed += to_decimal(r.amount)

    return ReimbursementList(
        reimbursements=[ReimbursementOut.model_validate(r) for r in rows],
        total_owed=qround(total_owed),
        count=len(rows),
    )
