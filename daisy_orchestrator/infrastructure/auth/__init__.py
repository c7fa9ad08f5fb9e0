"""Credential infrastructure package."""

from __future__ import annotations
import logging
from typing import Callable, Optional

from ...domain.interfaces.credentials import CredentialSupplier, IdentitySession
from ..config.settings import AuthSettings
from .identity import FirebaseUserSession, IdentityTokenSupplier, token_expiry
from .service_account import ServiceAccountTokenSupplier, StaticTokenSupplier


def select_credential_supplier(
    settings: AuthSettings,
    current_user: Optional[Callable[[], Optional[IdentitySession]]] = None,
    user_id: Optional[str] = None,
    logger: Optional[logging.Logger] = None
) -> CredentialSupplier:
    """Pick the supplier for this execution context, once, at construction time.

    An interactive caller hands in ``current_user``. Otherwise a configured
    Firebase sign-in (API key plus refresh token) is used, then a static
    token, then ambient service identity.
    """
    if current_user is not None:
        return IdentityTokenSupplier(current_user, logger=logger)
    if settings.firebase_api_key and settings.firebase_refresh_token:
        session = FirebaseUserSession.from_settings(settings, logger=logger)
        return IdentityTokenSupplier.for_session(session, logger=logger)
    if settings.access_token:
        return StaticTokenSupplier(settings.access_token, user_id=user_id)
    return ServiceAccountTokenSupplier(scopes=settings.scope_list, user_id=user_id, logger=logger)


__all__ = [
    'FirebaseUserSession',
    'IdentityTokenSupplier',
    'ServiceAccountTokenSupplier',
    'StaticTokenSupplier',
    'select_credential_supplier',
    'token_expiry'
]
