"""
Simple configuration management.

The ``Settings`` dataclass reads configuration directly from environment
variables.  Defaults are provided for all fields so the service starts
with no configuration at all; in a production deployment you should at
least set ``RECAPTCHA_SECRET`` and point ``LOG_FILE`` at a writable
location.

Bot verification is modelled explicitly through ``VerificationMode``
rather than by checking the environment inside request handlers.  The
handler receives a verifier built from the mode and never needs to know
whether a secret exists.
"""

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional


PACKAGE_DIR = Path(__file__).resolve().parent.parent.parent  # leave_lookup_api/

DEFAULT_RECAPTCHA_VERIFY_URL = "https://www.google.com/recaptcha/api/siteverify"


@dataclass(frozen=True)
class VerificationMode:
    """Whether bot verification is required for lookups.

    Use :meth:`disabled` or :meth:`enabled` rather than calling the
    constructor directly.  An enabled mode always carries a non‑empty
    secret.
    """

    secret: Optional[str] = None

    @classmethod
    def disabled(cls) -> "VerificationMode":
        return cls(secret=None)

    @classmethod
    def enabled(cls, secret: str) -> "VerificationMode":
        if not secret:
            raise ValueError("An enabled verification mode requires a secret")
        return cls(secret=secret)

    @property
    def is_enabled(self) -> bool:
        return self.secret is not None

    def __repr__(self) -> str:
        # Never print the secret itself.
        return "VerificationMode.Enabled(***)" if self.is_enabled else "VerificationMode.Disabled"


@dataclass
class Settings:
    """Application settings loaded from environment variables."""

    project_name: str = field(default_factory=lambda: os.getenv("PROJECT_NAME", "Leave Lookup API"))
    api_version: str = field(default_factory=lambda: os.getenv("API_VERSION", "1.0.0"))
    host: str = field(default_factory=lambda: os.getenv("HOST", "0.0.0.0"))
    port: int = field(default_factory=lambda: int(os.getenv("PORT", "3000")))

    log_level: str = field(default_factory=lambda: os.getenv("LOG_LEVEL", "INFO"))
    # Rotating activity log.  Set LOG_FILE to an empty string to log to the
    # console only.
    log_file: str = field(default_factory=lambda: os.getenv("LOG_FILE", "activity.log"))
    log_max_bytes: int = field(default_factory=lambda: int(os.getenv("LOG_MAX_BYTES", "5000000")))
    log_backup_count: int = field(default_factory=lambda: int(os.getenv("LOG_BACKUP_COUNT", "3")))

    # reCAPTCHA verification.  Leaving the secret empty disables the check.
    recaptcha_secret: str = field(default_factory=lambda: os.getenv("RECAPTCHA_SECRET", ""))
    # Public site key handed to the front end so it can render the widget.
    recaptcha_site_key: str = field(default_factory=lambda: os.getenv("RECAPTCHA_SITE_KEY", ""))
    recaptcha_verify_url: str = field(
        default_factory=lambda: os.getenv("RECAPTCHA_VERIFY_URL", DEFAULT_RECAPTCHA_VERIFY_URL)
    )
    recaptcha_min_score: float = field(default_factory=lambda: float(os.getenv("RECAPTCHA_MIN_SCORE", "0.5")))
    verification_timeout: float = field(default_factory=lambda: float(os.getenv("VERIFICATION_TIMEOUT", "5.0")))

    # Fixed window rate limit applied per client address.
    rate_limit_max: int = field(default_factory=lambda: int(os.getenv("RATE_LIMIT_MAX", "40")))
    rate_limit_window: int = field(default_factory=lambda: int(os.getenv("RATE_LIMIT_WINDOW", str(15 * 60))))
    max_body_bytes: int = field(default_factory=lambda: int(os.getenv("MAX_BODY_BYTES", str(16 * 1024))))

    # Number of reverse proxies in front of the service.  With N trusted
    # proxies the client address is the Nth X-Forwarded-For entry counted
    # from the right; 0 ignores the header and uses the socket peer.
    trusted_proxy_hops: int = field(default_factory=lambda: int(os.getenv("TRUSTED_PROXY_HOPS", "0")))

    # Comma‑separated list of allowed CORS origins.
    cors_origins: str = field(default_factory=lambda: os.getenv("CORS_ORIGINS", "*"))

    public_dir: str = field(default_factory=lambda: os.getenv("PUBLIC_DIR", str(PACKAGE_DIR / "public")))

    # Optional JSON file holding the raw leave records.  When empty the
    # built‑in records are used.
    leave_data_file: str = field(default_factory=lambda: os.getenv("LEAVE_DATA_FILE", ""))

    @property
    def verification_mode(self) -> VerificationMode:
        if self.recaptcha_secret:
            return VerificationMode.enabled(self.recaptcha_secret)
        return VerificationMode.disabled()

    @property
    def cors_origin_list(self) -> List[str]:
        return [o.strip() for o in self.cors_origins.split(",") if o.strip()]


# Instantiate settings once so other modules can import it without
# repeatedly reading environment variables.  Environment variables should
# be set before importing this module; tests build their own ``Settings``
# instances instead.
settings = Settings()
