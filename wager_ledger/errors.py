class LedgerServiceError(Exception):
    kind = "LEDGER_ERROR"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def to_detail(self) -> dict:
        return {"kind": self.kind, "message": self.message}


class NotFoundError(LedgerServiceError):
    kind = "NOT_FOUND"


class ConflictError(LedgerServiceError):
    kind = "CONFLICT"


class InvalidArgumentError(LedgerServiceError):
    kind = "INVALID_ARGUMENT"


class StorageUnavailableError(LedgerServiceError):
    kind = "UNAVAILABLE"
