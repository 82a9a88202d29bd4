from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession
from household_ledger.db.session import get_db
from household_ledger.core.dependencies import respond
from household_ledger.schemas.reimbursement import ReimbursementCreate
from household_ledger.services.settlement_services import create_reimbursement
from household_ledger.services.reimbursement_services import (
    settle_reimbursement,
    unsettle_reimbursement,
    delete_reimbursement,
    list_reimbursements,
)

router = APIRouter()

@router.get("/")
async def reimbursements(
    month: str | None = None,
    member_id: int | None = None,
    settled: bool | None = None,
    db: AsyncSession = Depends(get_db)
):
    return respond(await list_reimbursements(db, month=month, member_id=member_id, settled=settled))

@router.post("/")
async def add_reimbursement(data: ReimbursementCreate, db: AsyncSession = Depends(get_db)):
    result = await create_reimbursement(
        db,
        expense_id=data.expense_id,
        member_id=data.member_id,
        amount=data.amount,
        description=data.description,
        month=data.month,
    )
    return respond(result)

@router.post("/{reimbursement_id}/settle")
async def settle(reimbursement_id: int, db: AsyncSession = Depends(get_db)):
    return respond(await settle_reimbursement(db, reimbursement_id))

@router.post("/{reimbursement_id}/unsettle")
async def unsettle(reimbursement_id: int, db: AsyncSession = Depends(get_db)):
    return respond(await unsettle_reimbursement(db, reimbursement_id))

@router.delete("/{reimbursement_id}")
async def remove(reimbursement_id: int, db: AsyncSession = Depends(get_db)):
    return respond(await delete_reimbursement(db, reimbursement_id))
