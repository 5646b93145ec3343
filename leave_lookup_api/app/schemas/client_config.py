"""
Pydantic schema for the front‑end configuration endpoint.

Only public values belong here: the reCAPTCHA site key is meant to be
embedded in web pages, the secret never leaves the server.
"""

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class ClientConfigResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    success: bool = True
    verification_enabled: bool = Field(..., alias="verificationEnabled")
    recaptcha_site_key: Optional[str] = Field(None, alias="recaptchaSiteKey")
