import os

import pytest

# The application module builds an app at import time; keep it from
# writing an activity log into the working directory during tests.
os.environ.setdefault("LOG_FILE", "")
os.environ.setdefault("RECAPTCHA_SECRET", "")

from fastapi.testclient import TestClient  # noqa: E402

from leave_lookup_api.app.core.config import Settings  # noqa: E402
from leave_lookup_api.app.main import create_app  # noqa: E402
from leave_lookup_api.app.services.leave_service import LeaveStore  # noqa: E402


SEEDED_RECORD = {
    "serviceCode": "GSL25021372778",
    "idNumber": "1088576044",
    "name": "Test Beneficiary",
    "reportDate": "2025-02-24",
    "startDate": "2025-02-09",
    "endDate": "2025-02-24",
    "doctorName": "Test Doctor",
    "jobTitle": "Consultant",
}


def make_settings(**overrides) -> Settings:
    values = {
        "log_file": "",
        "recaptcha_secret": "",
        "rate_limit_max": 1000,
        "rate_limit_window": 900,
        "leave_data_file": "",
    }
    values.update(overrides)
    return Settings(**values)


@pytest.fixture
def seeded_store() -> LeaveStore:
    return LeaveStore.from_raw([SEEDED_RECORD])


@pytest.fixture
def make_client(seeded_store):
    """Build a TestClient around a freshly created app."""

    def _make(store=None, verifier=None, raise_server_exceptions=True, **setting_overrides):
        app = create_app(
            make_settings(**setting_overrides),
            store=store if store is not None else seeded_store,
            verifier=verifier,
        )
        return TestClient(app, raise_server_exceptions=raise_server_exceptions)

    return _make


@pytest.fixture
def client(make_client) -> TestClient:
    return make_client()
