from __future__ import annotations

from datetime import date

from fastapi import Request
from fastapi.responses import JSONResponse


class ApiError(Exception):
    def __init__(self, status_code: int, code: str, message: str):
        super().__init__(message)
        self.status_code = status_code
        self.code = code
        self.message = message


class LeaveOverlapError(Exception):
    """Two approved leaves of one employee claim the same calendar date."""

    def __init__(self, employee_id: int | None, day_date: date):
        super().__init__(f"Overlapping approved leave on {day_date.isoformat()}")
        self.employee_id = employee_id
        self.day_date = day_date


def get_request_id(request: Request) -> str:
    request_id = getattr(request.state, "request_id", None)
    if request_id:
        return str(request_id)
    return "unknown"


def error_response(request: Request, *, status_code: int, code: str, message: str) -> JSONResponse:
    payload = {
        "error": {
            "code": code,
            "message": message,
            "request_id": get_request_id(request),
        }
    }
    return JSONResponse(status_code=status_code, content=payload)
