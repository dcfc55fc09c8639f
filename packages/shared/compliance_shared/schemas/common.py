from enum import Enum

from pydantic import BaseModel


class Role(str, Enum):
    BROKER_ADMIN = "broker_admin"
    AGENT = "agent"
    MEMBER = "member"


class ErrorBody(BaseModel):
    code: str
    message: str
    status: int


class ErrorResponse(BaseModel):
    error: ErrorBody

