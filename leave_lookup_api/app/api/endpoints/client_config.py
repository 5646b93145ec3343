"""
Front‑end configuration endpoint.

``GET /api/config`` tells the bundled page whether lookups must carry a
captcha token and which site key to render the widget with.
"""

from fastapi import APIRouter, Depends

from leave_lookup_api.app.api.deps import get_settings, get_verifier
from leave_lookup_api.app.core.config import Settings
from leave_lookup_api.app.core.security import CaptchaVerifier
from leave_lookup_api.app.schemas.client_config import ClientConfigResponse

router = APIRouter()


@router.get("/config", response_model=ClientConfigResponse)
async def get_client_config(
    app_settings: Settings = Depends(get_settings),
    verifier: CaptchaVerifier = Depends(get_verifier),
) -> ClientConfigResponse:
    return ClientConfigResponse(
        verification_enabled=verifier.enabled,
        recaptcha_site_key=app_settings.recaptcha_site_key or None,
    )
