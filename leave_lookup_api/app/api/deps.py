"""
FastAPI dependencies shared by the endpoints.

The store, the verifier and the settings are created once by
``create_app`` and attached to ``app.state``.  Endpoints reach them
through these dependencies, which keeps handlers free of module level
state and lets tests inject their own instances.
"""

from fastapi import Request

from ..core.config import Settings
from ..core.security import CaptchaVerifier
from ..services.leave_service import LeaveStore


def get_leave_store(request: Request) -> LeaveStore:
    return request.app.state.leave_store


def get_verifier(request: Request) -> CaptchaVerifier:
    return request.app.state.verifier


def get_settings(request: Request) -> Settings:
    return request.app.state.settings
