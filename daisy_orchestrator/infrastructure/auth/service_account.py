"""
Non-interactive credentials - ambient service identity exchanged for an access token.
"""

from __future__ import annotations
import logging
import threading
from datetime import timezone
from typing import Any, List, Optional

import google.auth
from google.auth import exceptions as google_exceptions
from google.auth.transport.requests import Request

from ...domain.errors import CredentialError
from ...domain.interfaces.credentials import CredentialSupplier
from ...domain.models.credentials import Credential
from ..config.settings import CLOUD_PLATFORM_SCOPE


class ServiceAccountTokenSupplier(CredentialSupplier):
    """Resolves Application Default Credentials and keeps the access token fresh."""

    def __init__(
        self,
        scopes: Optional[List[str]] = None,
        credentials: Optional[Any] = None,
        request: Optional[Any] = None,
        user_id: Optional[str] = None,
        logger: Optional[logging.Logger] = None
    ):
        self._scopes = scopes or [CLOUD_PLATFORM_SCOPE]
        self._credentials = credentials
        self._request = request
        self._user_id = user_id
        self._logger = logger or logging.getLogger(__name__)
        self._lock = threading.RLock()

    def acquire(self) -> Credential:
        with self._lock:
            try:
                if self._credentials is None:
                    self._credentials, project = google.auth.default(scopes=self._scopes)
                    self._logger.info(f"Using application default credentials (project: {project})")
                if not self._credentials.valid:
                    self._credentials.refresh(self._request or Request())
            except google_exceptions.GoogleAuthError as e:
                self._logger.warning(f"Service credential unavailable: {e}")
                raise CredentialError("No service credential available") from e

            token = self._credentials.token
            if not token:
                raise CredentialError("Service credential returned no access token")
            # google-auth keeps expiry as naive UTC
            expiry = getattr(self._credentials, "expiry", None)
            if expiry is not None and expiry.tzinfo is None:
                expiry = expiry.replace(tzinfo=timezone.utc)
            return Credential(token=token, user_id=self._user_id, expires_at=expiry)


class StaticTokenSupplier(CredentialSupplier):
    """A pre-issued bearer token, e.g. from the environment during development."""

    def __init__(self, token: Optional[str], user_id: Optional[str] = None):
        self._token = (token or "").strip()
        self._user_id = user_id

    def acquire(self) -> Credential:
        if not self._token:
            raise CredentialError("No access token configured")
        return Credential(token=self._token, user_id=self._user_id)
