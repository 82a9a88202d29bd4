from enum import Enum


class ErrorKind(str, Enum):
    VALIDATION = "validation"
    INSUFFICIENT_BALANCE = "insufficient_balance"
    NOT_FOUND = "not_found"
    ALREADY_SETTLED = "already_settled"
    CONFIGURATION = "configuration"
    NOT_IMPLEMENTED = "not_implemented"
    NO_ACTIVE_MEMBERS = "no_active_members"
    ZERO_RATIO = "zero_ratio"
    STORAGE = "storage"


class AccountingError(Exception):
    """Business-rule failure. Converted to an ``Err`` result at the service boundary."""

    kind = ErrorKind.VALIDATION

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(AccountingError):
    kind = ErrorKind.VALIDATION


class InsufficientBalanceError(AccountingError):
    kind = ErrorKind.INSUFFICIENT_BALANCE


class NotFoundError(AccountingError):
    kind = ErrorKind.NOT_FOUND


class AlreadySettledError(AccountingError):
    kind = ErrorKind.ALREADY_SETTLED


class ConfigurationError(AccountingError):
    kind = ErrorKind.CONFIGURATION


class SplitTypeNotImplementedError(AccountingError):
    kind = ErrorKind.NOT_IMPLEMENTED


class NoActiveMembersError(AccountingError):
    kind = ErrorKind.NO_ACTIVE_MEMBERS


class ZeroRatioError(AccountingError):
    kind = ErrorKind.ZERO_RATIO


class StorageError(AccountingError):
    kind = ErrorKind.STORAGE
