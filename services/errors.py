"""Error kinds raised by the expense service layer."""


class ExpenseError(Exception):
    """Base class; `kind` and `status_code` are read by the routes."""
    kind = "ExpenseError"
    status_code = 500


class ExpenseValidationError(ExpenseError, ValueError):
    status_code = 400


class InvalidTitle(ExpenseValidationError):
    kind = "InvalidTitle"


class InvalidAmount(ExpenseValidationError):
    kind = "InvalidAmount"


class InvalidDate(ExpenseValidationError):
    kind = "InvalidDate"


class InvalidId(ExpenseValidationError):
    kind = "InvalidId"


class NotFound(ExpenseError, LookupError):
    kind = "NotFound"
    status_code = 404


class PersistenceFault(ExpenseError, ConnectionError):
    """The backing store was unreachable or rejected the operation."""
    kind = "PersistenceFault"
    status_code = 500
