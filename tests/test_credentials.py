import base64
import json
import time
from datetime import datetime, timezone
from urllib.parse import parse_qs

import httpx
import pytest
from google.auth import exceptions as google_exceptions

from daisy_orchestrator.domain.errors import CredentialError
from daisy_orchestrator.domain.models.credentials import Credential
from daisy_orchestrator.infrastructure.auth import (
    FirebaseUserSession, IdentityTokenSupplier, ServiceAccountTokenSupplier, StaticTokenSupplier,
    select_credential_supplier, token_expiry
)
from daisy_orchestrator.infrastructure.config.settings import AuthSettings


def _b64(data: dict) -> str:
    return base64.urlsafe_b64encode(json.dumps(data).encode("utf-8")).rstrip(b"=").decode("ascii")


def _jwt(exp: int, uid: str = "uid-1") -> str:
    return ".".join([_b64({"alg": "RS256", "typ": "JWT"}), _b64({"exp": exp, "user_id": uid}), "c2lnbmF0dXJl"])


class _FakeUser:
    def __init__(self, token="id-token", user_id=None):
        self.uid = "uid-7"
        self.credential = Credential(token=token, user_id=user_id)

    def get_id_token(self, force_refresh=False):
        return self.credential


class _FakeGoogleCredentials:
    def __init__(self, fail=False):
        self.valid = False
        self.token = None
        self.expiry = None
        self.fail = fail
        self.refreshes = 0

    def refresh(self, request):
        self.refreshes += 1
        if self.fail:
            raise google_exceptions.RefreshError("metadata server unreachable")
        self.valid = True
        self.token = "ya29.access"
        self.expiry = datetime(2030, 1, 1, 12, 0, 0)


def test_static_token():
    credential = StaticTokenSupplier("dev-token", user_id="me").acquire()
    assert credential.authorization_header == "Bearer dev-token"
    assert credential.user_id == "me"


def test_static_token_missing():
    with pytest.raises(CredentialError):
        StaticTokenSupplier("  ").acquire()


def test_identity_supplier_uses_current_user():
    supplier = IdentityTokenSupplier.for_session(_FakeUser())
    credential = supplier.acquire()
    assert credential.token == "id-token"
    assert credential.user_id == "uid-7"


def test_identity_supplier_without_user():
    with pytest.raises(CredentialError):
        IdentityTokenSupplier(lambda: None).acquire()


def test_identity_supplier_with_empty_token():
    with pytest.raises(CredentialError):
        IdentityTokenSupplier.for_session(_FakeUser(token="")).acquire()


def test_token_expiry_reads_exp_claim():
    assert token_expiry(_jwt(1893456000)) == datetime(2030, 1, 1, tzinfo=timezone.utc)
    assert token_expiry("not-a-jwt") is None


def test_firebase_session_refreshes_expired_token():
    fresh = _jwt(int(time.time()) + 3600)
    calls = []

    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(request)
        return httpx.Response(200, json={"id_token": fresh, "refresh_token": "r2", "user_id": "uid-1", "expires_in": "3600"})

    session = FirebaseUserSession(
        api_key="key",
        uid="uid-1",
        id_token=_jwt(int(time.time()) - 60),
        refresh_token="r1",
        http_client=httpx.Client(transport=httpx.MockTransport(handler)),
    )

    credential = IdentityTokenSupplier.for_session(session).acquire()

    assert credential.token == fresh
    assert credential.user_id == "uid-1"
    assert len(calls) == 1
    assert calls[0].url.params["key"] == "key"
    assert parse_qs(calls[0].content.decode())["refresh_token"] == ["r1"]

    # Still fresh; no second round trip
    session.get_id_token()
    assert len(calls) == 1


def test_firebase_refresh_failure_is_credential_error():
    def handler(request):
        return httpx.Response(400, json={"error": {"message": "TOKEN_EXPIRED"}})

    session = FirebaseUserSession(
        api_key="key",
        uid="uid-1",
        id_token=_jwt(int(time.time()) - 60),
        refresh_token="r1",
        http_client=httpx.Client(transport=httpx.MockTransport(handler)),
    )
    with pytest.raises(CredentialError):
        session.get_id_token()


def test_service_account_refreshes_when_invalid():
    google_credentials = _FakeGoogleCredentials()
    supplier = ServiceAccountTokenSupplier(credentials=google_credentials, request=object(), user_id="svc")

    credential = supplier.acquire()

    assert credential.token == "ya29.access"
    assert credential.user_id == "svc"
    assert credential.expires_at.tzinfo is timezone.utc
    supplier.acquire()
    assert google_credentials.refreshes == 1


def test_service_account_failure_is_credential_error():
    supplier = ServiceAccountTokenSupplier(credentials=_FakeGoogleCredentials(fail=True), request=object())
    with pytest.raises(CredentialError):
        supplier.acquire()


def test_selection_order():
    user = _FakeUser()
    assert isinstance(select_credential_supplier(AuthSettings(access_token="t"), current_user=lambda: user),
                      IdentityTokenSupplier)
    assert isinstance(select_credential_supplier(AuthSettings(access_token="t", firebase_refresh_token=None)), StaticTokenSupplier)
    assert isinstance(select_credential_supplier(AuthSettings(access_token=None, firebase_refresh_token=None)), ServiceAccountTokenSupplier)


def test_credential_repr_hides_token():
    assert "secret" not in repr(Credential(token="secret", user_id="u"))


def _expired_session(handler) -> FirebaseUserSession:
    return FirebaseUserSession(
        api_key="key",
        uid="uid-1",
        id_token=_jwt(int(time.time()) - 60),
        refresh_token="r1",
        http_client=httpx.Client(transport=httpx.MockTransport(handler)),
    )


@pytest.mark.parametrize("body", [
    ["x"],
    {"refresh_token": "r2"},
    {"id_token": "opaque-token", "expires_in": "soon"},
])
def test_firebase_unusable_refresh_body_is_credential_error(body):
    session = _expired_session(lambda request: httpx.Response(200, json=body))
    with pytest.raises(CredentialError):
        session.get_id_token()


def test_firebase_session_from_settings_refreshes_on_first_use():
    fresh = _jwt(int(time.time()) + 3600)
    calls = []

    def handler(request):
        calls.append(request)
        return httpx.Response(200, json={"id_token": fresh, "refresh_token": "r2", "user_id": "uid-9"})

    settings = AuthSettings(firebase_api_key="key", firebase_refresh_token="r1", firebase_uid=None)
    session = FirebaseUserSession.from_settings(
        settings, http_client=httpx.Client(transport=httpx.MockTransport(handler))
    )

    credential = IdentityTokenSupplier.for_session(session).acquire()

    assert credential.token == fresh
    assert credential.user_id == "uid-9"
    assert calls[0].url.params["key"] == "key"
    session.get_id_token()
    assert len(calls) == 1


def test_configured_firebase_sign_in_is_selected():
    settings = AuthSettings(firebase_api_key="key", firebase_refresh_token="r1", access_token="t")
    assert isinstance(select_credential_supplier(settings), IdentityTokenSupplier)

    # An API key alone is not a sign-in
    settings = AuthSettings(firebase_api_key="key", firebase_refresh_token=None, access_token="t")
    assert isinstance(select_credential_supplier(settings), StaticTokenSupplier)
