from datetime import date
from decimal import Decimal
from typing import List
from pydantic import BaseModel, ConfigDict
from household_ledger.schemas.allowance import AllowanceShare

class IncomeCreate(BaseModel):
    member_id: int
    amount: Decimal
    date: date
    allocated_to_month: str | None = None
    description: str | None = None

class IncomeOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    member_id: int
    amount: Decimal
    date: date
    allocated_to_month: str
    pool_credit: Decimal
    description: str | None = None

class IncomeResult(BaseModel):
    income_id: int
    month: str
    allowances: List[AllowanceShare]
    total_allocated: Decimal
    remaining_for_pool: Decimal
    pool_balance: Decimal

class IncomeDeleted(BaseModel):
    id: int
    pool_balance: Decimal
