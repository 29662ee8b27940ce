from dataclasses import dataclass
from typing import Any

from fastapi import HTTPException

REJECTION_STATUS_CODES = {
    "already_running": 409,
    "not_running": 409,
    "missing_credentials": 503,
}

REJECTION_MESSAGES = {
    "already_running": "A batch is already running; wait for it to finish or cancel it",
    "not_running": "No batch is running",
    "missing_credentials": "Seller credentials are not configured",
    "empty_batch": "No records to list",
}


@dataclass
class ApiError:
    code: str
    message: str
    details: dict[str, Any] | None = None

    def to_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "code": self.code,
            "message": self.message,
        }
        if self.details:
            payload["details"] = self.details
        return payload


class AppHTTPException(HTTPException):
    def __init__(self, status_code: int, error: ApiError):
        super().__init__(status_code=status_code, detail=error.to_dict())

    @classmethod
    def from_rejection(cls, reason: str) -> "AppHTTPException":
        code, _, subject = reason.partition(":")
        details = {"index": int(subject)} if code == "invalid_item" and subject.isdigit() else None
        return cls(
            status_code=REJECTION_STATUS_CODES.get(code, 400),
            error=ApiError(code=code, message=REJECTION_MESSAGES.get(code, "Invalid batch"), details=details),
        )
