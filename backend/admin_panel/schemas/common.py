"""Shared Pydantic schemas."""
from pydantic import BaseModel
from typing import Optional


class MessageResponse(BaseModel):
    success: bool = True
    message: str = ""


class ErrorResponse(BaseModel):
    success: bool = False
    error: str
    detail: Optional[str] = None
