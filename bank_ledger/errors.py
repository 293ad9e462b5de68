"""
Error types for the ledger state machine.

Every failure an operation can report is a LedgerError subclass with a stable
`code`, an HTTP status used by the reference dispatcher, and a payload in the
`{"Error": "<message>"}` shape returned to callers.

Hierarchy
---------
LedgerError
 ├─ ArgumentCountError   : wrong number of invocation arguments
 ├─ InvalidAmountError   : amount argument is not a base-10 integer
 ├─ InvalidFunctionError : unknown function name for the entry point
 ├─ UnknownMethodError   : Adjust method other than deposit/withdraw
 ├─ InvalidNameError     : bank name that cannot be stored in the bank list
 ├─ NotFoundError        : key has no value in the store
 ├─ MalformedValueError  : stored value cannot be decoded
 ├─ StoreReadError       : store failed on get
 └─ StoreWriteError      : store failed on put

StoreError is raised by store engines themselves and wrapped by the core.
"""

from typing import Any, Dict, Optional


class StoreError(Exception):
    """Failure raised by a ledger store engine on get/put."""


class LedgerError(Exception):
    """Base class for state machine errors."""

    code: str = "LedgerError"
    http_status: int = 400

    def __init__(self, message: str = "", *, key: Optional[str] = None) -> None:
        self.message = message or self.__class__.__name__
        self.key = key
        super().__init__(self.message)

    def __str__(self) -> str:
        return self.message

    def to_payload(self) -> Dict[str, Any]:
        """Error response body returned to the dispatcher"""
        return {"Error": self.message}


class ArgumentCountError(LedgerError):
    code = "ArgumentCountError"


class InvalidAmountError(LedgerError):
    code = "InvalidAmountError"

    def __init__(self, value: str, message: str = "") -> None:
        super().__init__(message or f"Expecting integer value for asset holding, got {value!r}")
        self.value = value


class InvalidFunctionError(LedgerError):
    code = "InvalidFunctionError"

    def __init__(self, function: str, message: str = "") -> None:
        super().__init__(message or f"Invalid function name {function!r}")
        self.function = function


class UnknownMethodError(LedgerError):
    code = "UnknownMethodError"

    def __init__(self, method: str) -> None:
        super().__init__(f"Unknown method {method!r}. Expecting \"deposit\" or \"withdraw\"")
        self.method = method


class InvalidNameError(LedgerError):
    code = "InvalidNameError"

    def __init__(self, name: str, message: str = "") -> None:
        super().__init__(message or f"Invalid name {name!r}")
        self.name = name


class NotFoundError(LedgerError):
    code = "NotFoundError"
    http_status = 404

    def __init__(self, key: str) -> None:
        super().__init__(f"Nil amount for {key}", key=key)


class MalformedValueError(LedgerError):
    """Stored bytes exist but do not decode to the expected type."""

    code = "MalformedValueError"
    http_status = 422

    def __init__(self, key: str, value: bytes) -> None:
        super().__init__(f"Malformed value {value!r} for {key}", key=key)
        self.value = value


class StoreReadError(LedgerError):
    code = "StoreReadError"
    http_status = 500

    def __init__(self, key: str, cause: Optional[BaseException] = None) -> None:
        super().__init__(f"Failed to get state for {key}", key=key)
        self.cause = cause


class StoreWriteError(LedgerError):
    code = "StoreWriteError"
    http_status = 500

    def __init__(self, key: str, cause: Optional[BaseException] = None) -> None:
        message = f"Failed to put state for {key}"
        if cause is not None:
            message = f"{message}: {cause}"
        super().__init__(message, key=key)
        self.cause = cause
