"""Pydantic response schemas for the image reducer API."""

from __future__ import annotations

from pydantic import BaseModel, Field


class ErrorResponse(BaseModel):
    """Standard error response."""

    detail: str
    code: str = Field(description="Error kind, e.g. 'InvalidParameter' or 'UnrecognizedFormat'")
