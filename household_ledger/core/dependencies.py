from fastapi import HTTPException
from household_ledger.core.exceptions import ErrorKind
from household_ledger.core.result import Err

STATUS_BY_KIND = {
    ErrorKind.VALIDATION: 400,
    ErrorKind.INSUFFICIENT_BALANCE: 400,
    ErrorKind.CONFIGURATION: 400,
    ErrorKind.NO_ACTIVE_MEMBERS: 400,
    ErrorKind.ZERO_RATIO: 400,
    ErrorKind.NOT_FOUND: 404,
    ErrorKind.ALREADY_SETTLED: 409,
    ErrorKind.NOT_IMPLEMENTED: 501,
    ErrorKind.STORAGE: 503,
}

def respond(result):
    """Turn a service result into a JSON body, or raise the matching HTTP error."""
    if isinstance(result, Err):
        raise HTTPException(
            status_code=STATUS_BY_KIND.get(result.kind, 500),
            detail={"kind": result.kind.value, "message": result.message},
        )

    body = {"success": True, "data": result.value}
    if result.warning:
        body["warning"] = result.warning
    return body
