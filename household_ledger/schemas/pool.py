from datetime import date
from decimal import Decimal
from typing import List, Literal
from pydantic import BaseModel
from household_ledger.schemas.allowance import PersonalAllowanceOut
from household_ledger.schemas.reimbursement import ReimbursementOut

class PoolBalanceOut(BaseModel):
    balance: Decimal

class PoolDeduction(BaseModel):
    expense_id: int
    amount: Decimal

class PoolDeductionOut(BaseModel):
    expense_id: int
    amount: Decimal
    pool_balance: Decimal

class SharedPoolExpenseCreate(BaseModel):
    paid_by_id: int
    amount: Decimal
    description: str
    date: date
    type: Literal["shared", "personal"] = "shared"
    paid_from_pool: bool = False

class SharedPoolExpenseOut(BaseModel):
    expense_id: int
    disposition: Literal["pool", "allowance", "reimbursement"]
    pool_balance: Decimal | None = None
    allowance: PersonalAllowanceOut | None = None
    reimbursement: ReimbursementOut | None = None

class MemberAllowanceSummary(PersonalAllowanceOut):
    cumulative_allocated: Decimal
    cumulative_spent: Decimal
    cumulative_saved: Decimal

class SharedPoolSummary(BaseModel):
    month: str
    total_income: Decimal
    total_allowances_allocated: Decimal
    amount_to_pool: Decimal
    total_pool_expenses: Decimal
    total_personal_expenses: Decimal
    member_allowances: List[MemberAllowanceSummary]
    pending_reimbursements: List[ReimbursementOut]
    total_pending_reimbursements: Decimal
    total_pool_spent: Decimal
    cumulative_total_allowances_allocated: Decimal
    cumulative_total_allowances_spent: Decimal
    pool_balance: Decimal
