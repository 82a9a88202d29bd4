import functools
from dataclasses import dataclass, field
from typing import Generic, TypeVar, Union

import structlog
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from household_ledger.core.exceptions import AccountingError, ErrorKind

logger = structlog.get_logger(__name__)

T = TypeVar("T")

STORAGE_FAILURE_MESSAGE = "A storage error occurred, please try again"


@dataclass(frozen=True)
class Ok(Generic[T]):
    value: T
    warning: str | None = None
    success: bool = field(default=True, init=False)


@dataclass(frozen=True)
class Err:
    kind: ErrorKind
    message: str
    success: bool = field(default=False, init=False)

    @classmethod
    def from_exc(cls, exc: AccountingError) -> "Err":
        return cls(kind=exc.kind, message=exc.message)


Result = Union[Ok[T], Err]


def unit_of_work(operation: str):
    def decorator(fn):
        @functools.wraps(fn)
        async def wrapper(db: AsyncSession, *args, **kwargs):
            try:
                outcome = await fn(db, *args, **kwargs)
                await db.commit()
            except AccountingError as e:
                await db.rollback()
                logger.warning(
                    "operation_rejected",
                    operation=operation,
                    kind=e.kind.value,
                    reason=e.message,
                )
                return Err.from_exc(e)
            except SQLAlchemyError:
                await db.rollback()
                logger.exception("storage_failure", operation=operation)
                return Err(ErrorKind.STORAGE, STORAGE_FAILURE_MESSAGE)

            if isinstance(outcome, Ok):
                return outcome
            return Ok(outcome)
        return wrapper
    return decorator
