from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession
from household_ledger.db.session import get_db
from household_ledger.core.dependencies import respond
from household_ledger.core.periods import current_month
from household_ledger.schemas.allowance import AllowanceConfigIn, AllowanceMovement
from household_ledger.services.allowance_services import (
    upsert_allowance_config,
    deactivate_allowance_config,
    list_allowance_configs,
    provision_default_configs,
    get_personal_allowance,
    list_personal_allowances,
    refund_allowance,
)
from household_ledger.services.settlement_services import deduct_from_allowance

router = APIRouter()

@router.get("/configs")
async def configs(db: AsyncSession = Depends(get_db)):
    return respond(await list_allowance_configs(db))

@router.put("/configs")
async def save_config(data: AllowanceConfigIn, db: AsyncSession = Depends(get_db)):
    return respond(await upsert_allowance_config(db, data.member_id, data.type, data.value))

@router.post("/configs/defaults")
async def seed_default_configs(db: AsyncSession = Depends(get_db)):
    return respond(await provision_default_configs(db))

@router.delete("/configs/{member_id}")
async def deactivate_config(member_id: int, db: AsyncSession = Depends(get_db)):
    return respond(await deactivate_allowance_config(db, member_id))

@router.get("/")
async def allowances(month: str | None = None, db: AsyncSession = Depends(get_db)):
    return respond(await list_personal_allowances(db, month or current_month()))

@router.get("/{member_id}")
async def member_allowance(member_id: int, month: str | None = None, db: AsyncSession = Depends(get_db)):
    return respond(await get_personal_allowance(db, member_id, month or current_month()))

@router.post("/spend")
async def spend(data: AllowanceMovement, db: AsyncSession = Depends(get_db)):
    return respond(await deduct_from_allowance(db, data.member_id, data.amount, data.month))

@router.post("/refund")
async def refund(data: AllowanceMovement, db: AsyncSession = Depends(get_db)):
    return respond(await refund_allowance(db, data.member_id, data.amount, data.month))
