from decimal import Decimal
from typing import List, Literal
from pydantic import BaseModel, ConfigDict

class AllowanceConfigIn(BaseModel):
    member_id: int
    type: Literal["percentage", "fixed"]
    value: Decimal

class AllowanceConfigOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    member_id: int
    type: str
    value: Decimal
    is_active: bool

class AllowanceShare(BaseModel):
    member_id: int
    amount: Decimal

class AllowanceDistribution(BaseModel):
    allowances: List[AllowanceShare]
    total_allocated: Decimal
    remaining_for_pool: Decimal

class PersonalAllowanceOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    member_id: int
    month: str
    allocated: Decimal
    spent: Decimal
    remaining: Decimal
    carried_over: Decimal
    carried_to: Decimal

class AllowanceMovement(BaseModel):
    member_id: int
    amount: Decimal
    month: str
