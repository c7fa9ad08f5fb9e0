"""
Interactive credentials - the signed-in end user's Firebase ID token.
"""

from __future__ import annotations
import logging
import threading
from datetime import datetime, timedelta, timezone
from typing import Any, Callable, Dict, Optional

import httpx
from google.auth import exceptions as google_exceptions
from google.auth import jwt

from ...domain.errors import CredentialError
from ...domain.interfaces.credentials import CredentialSupplier, IdentitySession
from ...domain.models.credentials import Credential
from ..config.settings import AuthSettings


SECURE_TOKEN_URL = "https://securetoken.googleapis.com/v1/token"

# Refresh a little before the token actually expires
REFRESH_SKEW = timedelta(minutes=5)


class FirebaseUserSession(IdentitySession):
    """A signed-in Firebase user whose ID token is refreshed on demand."""

    def __init__(
        self,
        api_key: str,
        uid: Optional[str],
        id_token: Optional[str],
        refresh_token: str,
        http_client: Optional[httpx.Client] = None,
        logger: Optional[logging.Logger] = None
    ):
        if not api_key:
            raise ValueError("Firebase API key is required")
        self._api_key = api_key
        self._uid = uid
        self._refresh_token = refresh_token
        self._http = http_client or httpx.Client(timeout=10.0)
        self._logger = logger or logging.getLogger(__name__)
        self._lock = threading.RLock()
        # Without an ID token the first get_id_token() refreshes
        self._credential = Credential(
            token=id_token or "",
            user_id=uid,
            expires_at=token_expiry(id_token) if id_token else None
        )

    @classmethod
    def from_settings(
        cls,
        settings: AuthSettings,
        http_client: Optional[httpx.Client] = None,
        logger: Optional[logging.Logger] = None
    ) -> FirebaseUserSession:
        """Session restored from a configured refresh token (e.g. after a prior sign-in)."""
        if not settings.firebase_refresh_token:
            raise ValueError("Firebase refresh token is required")
        return cls(
            api_key=settings.firebase_api_key or "",
            uid=settings.firebase_uid,
            id_token=None,
            refresh_token=settings.firebase_refresh_token,
            http_client=http_client,
            logger=logger
        )

    @property
    def uid(self) -> Optional[str]:
        return self._uid

    def get_id_token(self, force_refresh: bool = False) -> Credential:
        """Return the current ID token, refreshing it when expired."""
        with self._lock:
            if force_refresh or not self._credential.token or self._credential.is_expired(REFRESH_SKEW):
                self._refresh()
            return self._credential

    def _refresh(self) -> None:
        if not self._refresh_token:
            raise CredentialError("Session has no refresh token")
        try:
            response = self._http.post(
                SECURE_TOKEN_URL,
                params={"key": self._api_key},
                data={"grant_type": "refresh_token", "refresh_token": self._refresh_token}
            )
            response.raise_for_status()
            data: Dict[str, Any] = response.json()
        except (httpx.HTTPError, ValueError) as e:
            self._logger.debug(f"ID token refresh failed: {e}")
            raise CredentialError("Unable to refresh identity token") from e

        if not isinstance(data, dict):
            raise CredentialError("Token refresh returned an unexpected body")
        id_token = data.get("id_token")
        if not isinstance(id_token, str) or not id_token:
            raise CredentialError("Token refresh returned no id_token")
        expires_at = token_expiry(id_token)
        if expires_at is None and data.get("expires_in"):
            try:
                expires_at = datetime.now(timezone.utc) + timedelta(seconds=int(data["expires_in"]))
            except (TypeError, ValueError, OverflowError) as e:
                raise CredentialError("Token refresh returned an invalid expires_in") from e

        self._refresh_token = data.get("refresh_token") or self._refresh_token
        self._uid = data.get("user_id") or self._uid
        self._credential = Credential(token=id_token, user_id=self._uid, expires_at=expires_at)
        self._logger.debug(f"Refreshed ID token for user {self._uid}")


class IdentityTokenSupplier(CredentialSupplier):
    """Credential supplier for interactive use: the current user's identity token."""

    def __init__(
        self,
        current_user: Callable[[], Optional[IdentitySession]],
        logger: Optional[logging.Logger] = None
    ):
        self._current_user = current_user
        self._logger = logger or logging.getLogger(__name__)

    @classmethod
    def for_session(cls, session: IdentitySession, **kwargs: Any) -> IdentityTokenSupplier:
        """Supplier bound to a single signed-in session."""
        return cls(lambda: session, **kwargs)

    def acquire(self) -> Credential:
        user = self._current_user()
        if user is None:
            raise CredentialError("No signed-in user")
        credential = user.get_id_token()
        if not credential.token:
            raise CredentialError("Signed-in user has no identity token")
        if credential.user_id is None:
            credential = Credential(token=credential.token, user_id=user.uid, expires_at=credential.expires_at)
        return credential


def token_expiry(token: str) -> Optional[datetime]:
    """Read the ``exp`` claim of a JWT without verifying its signature."""
    try:
        claims = jwt.decode(token, verify=False)
    except (ValueError, TypeError, google_exceptions.GoogleAuthError):
        return None
    exp = claims.get("exp") if isinstance(claims, dict) else None
    if exp is None:
        return None
    try:
        return datetime.fromtimestamp(int(exp), tz=timezone.utc)
    except (TypeError, ValueError, OverflowError):
        return None
