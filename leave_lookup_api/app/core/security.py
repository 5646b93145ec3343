"""
Bot verification helpers.

This module implements the optional reCAPTCHA check performed before a
leave lookup.  ``CaptchaVerifier`` is built from a ``VerificationMode``:
when the mode is disabled every request passes without any network I/O;
when it is enabled the client supplied token is posted to the
``siteverify`` endpoint together with the shared secret and the caller's
address.

Any failure to obtain a positive answer (missing token, network error,
non‑2xx status, malformed JSON, a score under the threshold or a
timeout) is a rejection.  Verification is never silently skipped once a
secret is configured.
"""

import asyncio
import logging
from typing import Any, Dict, Optional

import httpx

from .config import DEFAULT_RECAPTCHA_VERIFY_URL, Settings, VerificationMode
from .logging_config import get_security_logger


logger = logging.getLogger(__name__)


class CaptchaVerifier:
    """Verify client tokens against a reCAPTCHA compatible endpoint.

    Parameters
    ----------
    mode : VerificationMode
        Disabled, or enabled with the shared secret.
    verify_url : str
        The ``siteverify`` endpoint.
    min_score : float
        Minimum accepted score for score based (v3) tokens.  Responses
        without a score are judged on ``success`` alone.
    timeout : float
        Upper bound in seconds for the whole verification call.
    transport : Optional[httpx.AsyncBaseTransport]
        Transport handed to ``httpx.AsyncClient``; tests pass an
        ``httpx.MockTransport`` here.
    """

    def __init__(
        self,
        mode: VerificationMode,
        verify_url: str = DEFAULT_RECAPTCHA_VERIFY_URL,
        min_score: float = 0.5,
        timeout: float = 5.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self.mode = mode
        self.verify_url = verify_url
        self.min_score = min_score
        self.timeout = timeout
        self._transport = transport

    @classmethod
    def from_settings(cls, app_settings: Settings) -> "CaptchaVerifier":
        return cls(
            mode=app_settings.verification_mode,
            verify_url=app_settings.recaptcha_verify_url,
            min_score=app_settings.recaptcha_min_score,
            timeout=app_settings.verification_timeout,
        )

    @property
    def enabled(self) -> bool:
        return self.mode.is_enabled

    async def verify(self, token: Optional[str], remote_ip: Optional[str] = None) -> bool:
        """Return ``True`` when the request may proceed to the lookup."""
        if not self.mode.is_enabled:
            return True
        security_logger = get_security_logger()
        if not token:
            security_logger.warning("Missing verification token from %s", remote_ip)
            return False
        try:
            payload = await asyncio.wait_for(self._post(token, remote_ip), timeout=self.timeout)
        except asyncio.TimeoutError:
            security_logger.warning("Verification timed out after %.1fs for %s", self.timeout, remote_ip)
            return False
        except (httpx.HTTPError, ValueError) as e:
            security_logger.warning("Verification service unavailable for %s: %s", remote_ip, e)
            return False
        return self._is_accepted(payload, remote_ip)

    async def _post(self, token: str, remote_ip: Optional[str]) -> Dict[str, Any]:
        data = {"secret": self.mode.secret, "response": token}
        if remote_ip:
            data["remoteip"] = remote_ip
        async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
            response = await client.post(self.verify_url, data=data)
            response.raise_for_status()
            body = response.json()
        if not isinstance(body, dict):
            raise ValueError("Unexpected verification response")
        return body

    def _is_accepted(self, payload: Dict[str, Any], remote_ip: Optional[str]) -> bool:
        security_logger = get_security_logger()
        if payload.get("success") is not True:
            security_logger.warning(
                "Verification rejected for %s: %s", remote_ip, payload.get("error-codes") or "no success flag"
            )
            return False
        score = payload.get("score")
        if score is not None:
            try:
                score_value = float(score)
            except (TypeError, ValueError):
                security_logger.warning("Verification returned a malformed score for %s", remote_ip)
                return False
            if score_value < self.min_score:
                security_logger.warning(
                    "Verification score %.2f below %.2f for %s", score_value, self.min_score, remote_ip
                )
                return False
        logger.debug("Verification passed for %s", remote_ip)
        return True
