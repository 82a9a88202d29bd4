from sqlalchemy import Column, Integer, Numeric, DateTime
from sqlalchemy.sql import func
from household_ledger.db.session import Base

POOL_BALANCE_ID = 1

class PoolBalance(Base):
    __tablename__ = "pool_balance"

    # Fixed primary key: a second concurrent insert fails instead of creating another pool
    id = Column(Integer, primary_key=True, default=POOL_BALANCE_ID)
    balance = Column(Numeric(12, 2), nullable=False, default=0)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())
