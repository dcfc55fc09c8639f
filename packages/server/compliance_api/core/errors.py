"""
Error taxonomy for organization membership and provisioning.

Each error is an HTTPException so services can raise it directly and the
page layer gets a status code; `error_envelope_handler` renders the
`{"error": {...}}` body with a stable machine code.
"""

from __future__ import annotations

from typing import Optional

from fastapi import HTTPException, Request
from fastapi.responses import JSONResponse

from compliance_shared.schemas.common import ErrorBody, ErrorResponse


class ComplianceError(HTTPException):
    status_code: int = 500
    code: str = "INTERNAL_ERROR"
    message: str = "Internal error"

    def __init__(self, message: Optional[str] = None):
        super().__init__(status_code=self.status_code, detail=message or self.message)


class Unauthenticated(ComplianceError):
    status_code = 401
    code = "UNAUTHENTICATED"
    message = "Not signed in"


class NotAMember(ComplianceError):
    status_code = 403
    code = "NOT_A_MEMBER"
    message = "Not a member of that organization"


class NoOrganization(ComplianceError):
    status_code = 409
    code = "ONBOARDING_REQUIRED"
    message = "User has no organization memberships"


class ProvisioningFailed(ComplianceError):
    status_code = 500
    code = "PROVISIONING_FAILED"
    message = "Failed to create organization"


class StoreUnavailable(ComplianceError):
    status_code = 503
    code = "STORE_UNAVAILABLE"
    message = "Data store unavailable"


async def error_envelope_handler(request: Request, exc: ComplianceError) -> JSONResponse:
    return JSONResponse(
        status_code=exc.status_code,
        content=ErrorResponse(
            error=ErrorBody(code=exc.code, message=exc.detail, status=exc.status_code)
        ).model_dump(),
        headers=exc.headers,
    )
