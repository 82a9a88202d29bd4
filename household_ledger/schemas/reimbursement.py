from datetime import datetime
from decimal import Decimal
from typing import List
from pydantic import BaseModel, ConfigDict

class ReimbursementCreate(BaseModel):
    expense_id: int
    member_id: int
    amount: Decimal
    description: str | None = None
    month: str

class ReimbursementOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    member_id: int
    expense_id: int | None = None
    month: str
    amount: Decimal
    description: str
    settled: bool
    settled_at: datetime | None = None

class ReimbursementList(BaseModel):
    reimbursements: List[ReimbursementOut]
    total_owed: Decimal
    count: int
