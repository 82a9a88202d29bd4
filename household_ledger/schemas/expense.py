from datetime import date
from decimal import Decimal
from typing import List, Literal
from pydantic import BaseModel, ConfigDict

SplitType = Literal["equal", "ratio", "custom"]

class SplitOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    expense_id: int
    member_id: int
    amount: Decimal
    paid: bool

class SplitRequest(BaseModel):
    expense_id: int
    amount: Decimal
    split_type: str
    household_id: int

class IndividualExpenseCreate(BaseModel):
    household_id: int
    paid_by_id: int
    amount: Decimal
    description: str | None = None
    date: date
    split_type: str = "equal"

class ExpenseOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    household_id: int | None = None
    paid_by_id: int
    amount: Decimal
    description: str | None = None
    type: str
    paid_from_pool: bool
    needs_reimbursement: bool

class IndividualExpenseOut(BaseModel):
    expense: ExpenseOut
    splits: List[SplitOut]

class Counterparty(BaseModel):
    member_id: int
    member_name: str | None = None
    amount: Decimal

class MemberBalance(BaseModel):
    member_id: int
    member_name: str
    net_balance: Decimal
    owes: List[Counterparty]
    owed_by: List[Counterparty]

class BalanceDetail(BaseModel):
    expense_id: int
    description: str | None = None
    amount: Decimal
    date: date
    type: Literal["owes", "owed"]
    other_member_id: int

class MemberBalanceDetail(BaseModel):
    member_id: int
    total_owed: Decimal
    total_owing: Decimal
    net_balance: Decimal
    details: List[BalanceDetail]

class SettleDebtsRequest(BaseModel):
    member_a_id: int
    member_b_id: int

class DebtSettlementOut(BaseModel):
    amount_settled: Decimal
    splits_settled: int

class SplitRatioIn(BaseModel):
    member_id: int
    ratio: Decimal
    is_active: bool = True

class SplitRatioOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    member_id: int
    ratio: Decimal
    is_active: bool
