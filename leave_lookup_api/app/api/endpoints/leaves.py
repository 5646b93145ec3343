"""
Leave endpoints.

``POST /api/leave`` looks up a single record by service code and id
number.  The request is handled in three steps, each of which may end
it early:

1. the body is validated (400 on failure, the store is not touched);
2. when verification is enabled the captcha token is checked (403 on
   failure, the store is not touched);
3. the store is searched (404 when nothing matches).

``GET /api/leaves`` returns every record.  Both endpoints only ever
return redacted records, so the id number never appears in a response.
"""

from typing import Any

from fastapi import APIRouter, Body, Depends, Request

from leave_lookup_api.app.api.deps import get_leave_store, get_settings, get_verifier
from leave_lookup_api.app.core.config import Settings
from leave_lookup_api.app.core.errors import NotFoundError, VerificationError
from leave_lookup_api.app.core.middleware import client_ip
from leave_lookup_api.app.core.security import CaptchaVerifier
from leave_lookup_api.app.schemas.leave import (
    ErrorResponse,
    LeaveListResponse,
    LeaveLookupResponse,
    validate_leave_query,
)
from leave_lookup_api.app.services.leave_service import LeaveStore, redact

router = APIRouter()

ERROR_RESPONSES = {
    400: {"model": ErrorResponse, "description": "Invalid input"},
    403: {"model": ErrorResponse, "description": "Verification failed"},
    404: {"model": ErrorResponse, "description": "No matching record"},
    500: {"model": ErrorResponse, "description": "Internal error"},
}


@router.post("/leave", response_model=LeaveLookupResponse, responses=ERROR_RESPONSES)
async def lookup_leave(
    request: Request,
    payload: Any = Body(...),
    store: LeaveStore = Depends(get_leave_store),
    verifier: CaptchaVerifier = Depends(get_verifier),
    app_settings: Settings = Depends(get_settings),
) -> LeaveLookupResponse:
    """Return the record matching ``serviceCode`` and ``idNumber``."""
    query = validate_leave_query(payload)

    if verifier.enabled:
        remote_ip = client_ip(request, app_settings.trusted_proxy_hops)
        if not await verifier.verify(query.captcha_token, remote_ip):
            raise VerificationError()

    record = store.find_one(query.service_code, query.id_number)
    if record is None:
        raise NotFoundError()
    return LeaveLookupResponse(record=redact(record))


@router.get("/leaves", response_model=LeaveListResponse, responses={500: ERROR_RESPONSES[500]})
async def list_leaves(store: LeaveStore = Depends(get_leave_store)) -> LeaveListResponse:
    """Return all records with id numbers removed."""
    return LeaveListResponse(leaves=store.list_all())
