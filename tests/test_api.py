import logging
from urllib.parse import parse_qs

import httpx

from leave_lookup_api.app.core.config import VerificationMode
from leave_lookup_api.app.core.security import CaptchaVerifier
from leave_lookup_api.app.services.leave_service import LeaveStore

from conftest import SEEDED_RECORD


LOOKUP = {"serviceCode": "GSL25021372778", "idNumber": "1088576044"}


class CountingStore(LeaveStore):
    def __init__(self, records):
        super().__init__(records)
        self.lookups = 0

    def find_one(self, service_code, id_number):
        self.lookups += 1
        return super().find_one(service_code, id_number)


class BrokenStore(LeaveStore):
    def __init__(self):
        super().__init__([])

    def find_one(self, service_code, id_number):
        raise RuntimeError("corrupt record for 1088576044")

    def list_all(self):
        raise RuntimeError("corrupt record for 1088576044")


def _captcha_verifier(success):
    return CaptchaVerifier(
        mode=VerificationMode.enabled("s3cret"),
        verify_url="https://captcha.test/siteverify",
        transport=httpx.MockTransport(lambda request: httpx.Response(200, json={"success": success})),
    )


def test_lookup_returns_redacted_record(client):
    response = client.post("/api/leave", json=LOOKUP)

    assert response.status_code == 200
    body = response.json()
    assert body["success"] is True
    assert body["record"]["serviceCode"] == "GSL25021372778"
    assert body["record"]["days"] == 16
    assert "idNumber" not in body["record"]
    assert "1088576044" not in response.text


def test_lookup_with_wrong_id_number_is_not_found(client):
    response = client.post("/api/leave", json={**LOOKUP, "idNumber": "1088576045"})

    assert response.status_code == 404
    assert response.json() == {"success": False, "message": "No matching record."}


def test_invalid_input_is_rejected_before_lookup(make_client):
    store = CountingStore.from_raw([SEEDED_RECORD])
    client = make_client(store=store)

    for body in (
        {**LOOKUP, "serviceCode": "A" * 7},
        {**LOOKUP, "serviceCode": "A" * 21},
        {**LOOKUP, "idNumber": "12345678901"},
        {"serviceCode": "GSL25021372778"},
        ["GSL25021372778", "1088576044"],
    ):
        response = client.post("/api/leave", json=body)
        assert response.status_code == 400
        assert response.json() == {"success": False, "message": "Invalid input."}

    assert store.lookups == 0


def test_boundary_service_codes_reach_the_store(make_client):
    store = CountingStore.from_raw([SEEDED_RECORD])
    client = make_client(store=store)

    assert client.post("/api/leave", json={**LOOKUP, "serviceCode": "A" * 8}).status_code == 404
    assert client.post("/api/leave", json={**LOOKUP, "serviceCode": "A" * 20}).status_code == 404
    assert store.lookups == 2


def test_malformed_json_body_is_invalid_input(client):
    response = client.post(
        "/api/leave",
        content=b"{serviceCode:",
        headers={"Content-Type": "application/json"},
    )

    assert response.status_code == 400
    assert response.json()["success"] is False


def test_list_leaves_is_redacted(client):
    response = client.get("/api/leaves")

    assert response.status_code == 200
    body = response.json()
    assert body["success"] is True
    assert len(body["leaves"]) == 1
    assert all("idNumber" not in leave for leave in body["leaves"])
    assert body["leaves"][0]["days"] == 16


def test_failed_verification_is_forbidden_and_store_untouched(make_client, caplog):
    store = CountingStore.from_raw([SEEDED_RECORD])
    client = make_client(store=store, verifier=_captcha_verifier(False))

    with caplog.at_level(logging.INFO):
        response = client.post("/api/leave", json={**LOOKUP, "captchaToken": "bogus"})

    assert response.status_code == 403
    assert response.json() == {"success": False, "message": "Verification failed."}
    assert store.lookups == 0
    assert not any("Leave lookup" in record.getMessage() for record in caplog.records)
    assert any(record.name == "leave_lookup_api.security" for record in caplog.records)


def test_missing_token_with_verification_enabled_is_forbidden(make_client):
    client = make_client(verifier=_captcha_verifier(True))

    assert client.post("/api/leave", json=LOOKUP).status_code == 403


def test_invalid_input_is_reported_before_verification(make_client):
    client = make_client(verifier=_captcha_verifier(False))

    response = client.post("/api/leave", json={**LOOKUP, "idNumber": "123"})

    assert response.status_code == 400


def test_passed_verification_proceeds_to_lookup(make_client):
    client = make_client(verifier=_captcha_verifier(True))

    response = client.post("/api/leave", json={**LOOKUP, "captchaToken": "good"})

    assert response.status_code == 200
    assert response.json()["record"]["days"] == 16


def test_unexpected_error_is_generic(make_client):
    client = make_client(store=BrokenStore(), raise_server_exceptions=False)

    for response in (client.post("/api/leave", json=LOOKUP), client.get("/api/leaves")):
        assert response.status_code == 500
        assert response.json() == {"success": False, "message": "Internal server error."}
        assert "corrupt" not in response.text


def test_unknown_api_path_is_json_404(client):
    response = client.get("/api/unknown")

    assert response.status_code == 404
    assert response.json() == {"success": False, "message": "Page not found."}


def test_unknown_post_path_is_json_404(client):
    response = client.post("/nowhere", json={})

    assert response.status_code in (404, 405)
    assert response.json()["success"] is False


def test_spa_fallback_serves_index(make_client, tmp_path):
    (tmp_path / "index.html").write_text("<html>lookup</html>", encoding="utf-8")
    (tmp_path / "app.js").write_text("console.log('x')", encoding="utf-8")
    client = make_client(public_dir=str(tmp_path))

    assert client.get("/").text == "<html>lookup</html>"
    assert client.get("/some/client/route").text == "<html>lookup</html>"
    assert client.get("/app.js").text == "console.log('x')"


def test_spa_fallback_refuses_traversal(make_client, tmp_path):
    public = tmp_path / "public"
    public.mkdir()
    (public / "index.html").write_text("index", encoding="utf-8")
    (tmp_path / "secret.txt").write_text("secret", encoding="utf-8")
    client = make_client(public_dir=str(public))

    response = client.get("/%2E%2E/secret.txt")

    assert "secret" not in response.text


def test_missing_entry_point_is_json_404(make_client, tmp_path):
    client = make_client(public_dir=str(tmp_path))

    response = client.get("/")

    assert response.status_code == 404
    assert response.json() == {"success": False, "message": "Page not found."}


def test_bundled_front_end_is_served(client):
    response = client.get("/")

    assert response.status_code == 200
    assert "lookup-form" in response.text


def test_security_headers_are_set(client):
    response = client.get("/api/leaves")

    assert response.headers["X-Content-Type-Options"] == "nosniff"
    assert response.headers["X-Frame-Options"] == "SAMEORIGIN"
    assert "Content-Security-Policy" in response.headers


def test_rate_limit_rejects_excess_requests(make_client):
    client = make_client(rate_limit_max=2)

    first = client.get("/api/leaves")
    assert first.headers["RateLimit-Limit"] == "2"
    assert first.headers["RateLimit-Remaining"] == "1"
    assert client.get("/api/leaves").status_code == 200

    response = client.get("/api/leaves")
    assert response.status_code == 429
    assert response.json() == {"success": False, "message": "Too many requests, please try again later."}
    assert "Retry-After" in response.headers


def test_rate_limit_ignores_forwarded_header_without_trusted_proxies(make_client):
    client = make_client(rate_limit_max=1)

    statuses = [
        client.get("/api/leaves", headers={"X-Forwarded-For": f"10.9.9.{i}"}).status_code for i in range(5)
    ]

    assert statuses == [200, 429, 429, 429, 429]


def test_rate_limit_ignores_client_written_forwarded_hops(make_client):
    client = make_client(rate_limit_max=1, trusted_proxy_hops=1)

    statuses = [
        client.get("/api/leaves", headers={"X-Forwarded-For": f"10.9.9.{i}, 203.0.113.7"}).status_code
        for i in range(5)
    ]

    assert statuses == [200, 429, 429, 429, 429]


def test_rate_limit_is_per_client_behind_trusted_proxy(make_client):
    client = make_client(rate_limit_max=1, trusted_proxy_hops=1)

    assert client.get("/api/leaves", headers={"X-Forwarded-For": "203.0.113.1"}).status_code == 200
    assert client.get("/api/leaves", headers={"X-Forwarded-For": "203.0.113.2"}).status_code == 200
    assert client.get("/api/leaves", headers={"X-Forwarded-For": "203.0.113.1"}).status_code == 429


def test_oversized_body_is_rejected(make_client):
    client = make_client(max_body_bytes=64)

    response = client.post("/api/leave", json={**LOOKUP, "captchaToken": "x" * 200})

    assert response.status_code == 413
    assert response.json()["success"] is False


def test_streamed_body_over_limit_is_rejected(make_client):
    store = CountingStore.from_raw([SEEDED_RECORD])
    client = make_client(store=store, max_body_bytes=64)
    padding = b'"' + b"x" * 5000 + b'"'
    chunks = [b'{"serviceCode": "GSL25021372778", "idNumber": "1088576044", "captchaToken": ', padding, b"}"]

    response = client.post(
        "/api/leave",
        content=(chunk for chunk in chunks),
        headers={"Content-Type": "application/json"},
    )

    assert response.status_code == 413
    assert response.json() == {"success": False, "message": "Request body too large."}
    assert store.lookups == 0


def test_verification_sees_peer_address_not_forwarded_header(make_client):
    seen = []

    def handler(request):
        seen.append(parse_qs(request.content.decode()))
        return httpx.Response(200, json={"success": True})

    verifier = CaptchaVerifier(
        mode=VerificationMode.enabled("s3cret"),
        verify_url="https://captcha.test/siteverify",
        transport=httpx.MockTransport(handler),
    )
    client = make_client(verifier=verifier)

    response = client.post(
        "/api/leave",
        json={**LOOKUP, "captchaToken": "tok"},
        headers={"X-Forwarded-For": "10.9.9.9"},
    )

    assert response.status_code == 200
    assert seen[0]["remoteip"] == ["testclient"]


def test_client_config_without_verification(client):
    response = client.get("/api/config")

    assert response.status_code == 200
    assert response.json() == {"success": True, "verificationEnabled": False, "recaptchaSiteKey": None}


def test_client_config_exposes_site_key_only(make_client):
    client = make_client(recaptcha_secret="s3cret", recaptcha_site_key="site-key-123")

    response = client.get("/api/config")

    assert response.json() == {"success": True, "verificationEnabled": True, "recaptchaSiteKey": "site-key-123"}
    assert "s3cret" not in response.text
