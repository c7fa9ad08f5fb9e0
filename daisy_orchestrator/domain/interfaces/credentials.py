"""
Credential supplier protocol interface.
Defines the contract for resolving a bearer credential in a given execution context.
"""

from __future__ import annotations
from typing import Protocol

from ..models.credentials import Credential


class CredentialSupplier(Protocol):
    """Protocol for credential supplier implementations."""

    def acquire(self) -> Credential:
        """Return a usable credential or raise CredentialError."""
        ...


class IdentitySession(Protocol):
    """Protocol for a signed-in end user whose identity token can be fetched."""

    @property
    def uid(self) -> str:
        """Stable id of the signed-in user."""
        ...

    def get_id_token(self, force_refresh: bool = False) -> Credential:
        """Return the current identity token, refreshing it when expired."""
        ...
