# app/core/responses.py
"""
Response envelope shared by every successful response:
    {"statusCode": int, "data": any, "message": str, "success": bool}
"""
from typing import Any
from pydantic import BaseModel


class ApiResponse(BaseModel):
    statusCode: int
    data: Any = None
    message: str = "Success"
    success: bool = True

    @classmethod
    def of(cls, status_code: int, data: Any = None, message: str = "Success") -> "ApiResponse":
        """Build the envelope; success is derived from the status code."""
        return cls(statusCode=status_code, data=data, message=message, success=status_code < 400)
