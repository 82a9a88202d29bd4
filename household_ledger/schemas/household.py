from pydantic import BaseModel, ConfigDict, Field

class HouseholdCreate(BaseModel):
    name: str = Field(min_length=1)

class HouseholdOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str

class MemberCreate(BaseModel):
    name: str = Field(min_length=1)

class MemberOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    household_id: int
    name: str
