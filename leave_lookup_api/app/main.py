"""
Main entrypoint for the Leave Lookup API.

This module assembles the FastAPI application, sets up logging, builds
the leave store and the bot verifier, and wires the request pipeline.
The ``create_app`` function builds and configures the app, which is then
instantiated at module import time as ``app``.  Importing the app here
makes it easy to run with uvicorn or another ASGI server, e.g.::

    uvicorn leave_lookup_api.app.main:app --reload

Tests call ``create_app`` directly with their own settings, store or
verifier.
"""

import logging
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from .api.router import api_router, frontend_router
from .core.config import Settings, settings
from .core.errors import register_exception_handlers
from .core.logging_config import setup_logging
from .core.middleware import (
    AccessLogStage,
    BodySizeLimitMiddleware,
    BodySizeLimitStage,
    RateLimitStage,
    RequestPipelineMiddleware,
    SecurityHeadersMiddleware,
)
from .core.security import CaptchaVerifier
from .services.leave_service import LeaveStore, load_default_store


logger = logging.getLogger(__name__)


def create_app(
    app_settings: Optional[Settings] = None,
    store: Optional[LeaveStore] = None,
    verifier: Optional[CaptchaVerifier] = None,
) -> FastAPI:
    """Create and configure a FastAPI application.

    Parameters
    ----------
    app_settings : Optional[Settings]
        Settings to use; defaults to the module level ``settings``.
    store : Optional[LeaveStore]
        A prebuilt store.  When omitted the store is built once here
        from the configured data source.
    verifier : Optional[CaptchaVerifier]
        A prebuilt verifier.  When omitted one is built from
        ``app_settings.verification_mode``.

    Returns
    -------
    FastAPI
        A configured FastAPI application instance.
    """
    app_settings = app_settings or settings

    # Initialise logging before anything else so that the store can log
    # while it is being built.
    setup_logging(
        app_settings.log_level,
        app_settings.log_file or None,
        max_bytes=app_settings.log_max_bytes,
        backup_count=app_settings.log_backup_count,
    )

    app = FastAPI(title=app_settings.project_name, version=app_settings.api_version)

    app.state.settings = app_settings
    app.state.leave_store = store if store is not None else load_default_store(app_settings)
    app.state.verifier = verifier or CaptchaVerifier.from_settings(app_settings)

    register_exception_handlers(app)

    # Middleware added last runs first: CORS, then hardening headers,
    # then the request pipeline, then the streamed body limit.
    app.add_middleware(BodySizeLimitMiddleware, max_bytes=app_settings.max_body_bytes)
    app.add_middleware(
        RequestPipelineMiddleware,
        stages=[
            AccessLogStage(trusted_hops=app_settings.trusted_proxy_hops),
            BodySizeLimitStage(app_settings.max_body_bytes),
            RateLimitStage(
                app_settings.rate_limit_max,
                app_settings.rate_limit_window,
                trusted_hops=app_settings.trusted_proxy_hops,
            ),
        ],
    )
    app.add_middleware(SecurityHeadersMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=app_settings.cors_origin_list,
        allow_methods=["GET", "POST"],
        allow_headers=["*"],
    )

    app.include_router(api_router, prefix="/api")
    # The front‑end catch‑all must come after every API route.
    app.include_router(frontend_router)

    logger.info(
        "%s ready with %d leave records (verification %s)",
        app_settings.project_name,
        len(app.state.leave_store),
        "enabled" if app.state.verifier.enabled else "disabled",
    )
    return app


# Create the application instance at import time so that tools such as
# uvicorn can discover it without calling create_app manually.
app = create_app()
