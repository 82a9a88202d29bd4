from contextlib import asynccontextmanager
from fastapi import FastAPI
from household_ledger.core.logging_config import configure_logging
from household_ledger.db.session import init_models
from household_ledger.api.v1.routes.households import router as household_router
from household_ledger.api.v1.routes.income import router as income_router
from household_ledger.api.v1.routes.pool import router as pool_router
from household_ledger.api.v1.routes.allowances import router as allowance_router
from household_ledger.api.v1.routes.reimbursements import router as reimbursement_router
from household_ledger.api.v1.routes.splits import router as split_router

configure_logging()

@asynccontextmanager
async def lifespan(app: FastAPI):
    await init_models()
    yield

app = FastAPI(title="Household Ledger", lifespan=lifespan)

@app.get("/")
async def root():
    return {"message": "Household Ledger is live"}

app.include_router(household_router, prefix="/api/v1/households")
app.include_router(income_router, prefix="/api/v1/income")
app.include_router(pool_router, prefix="/api/v1/pool")
app.include_router(allowance_router, prefix="/api/v1/allowances")
app.include_router(reimbursement_router, prefix="/api/v1/reimbursements")
app.include_router(split_router, prefix="/api/v1/splits")
