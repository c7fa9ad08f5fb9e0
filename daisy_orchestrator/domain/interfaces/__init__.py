"""Domain interfaces package - Protocols for ports."""

from .backend import BackendReply, BackendTransport, ByteSource
from .credentials import CredentialSupplier, IdentitySession

__all__ = [
    "BackendReply",
    "BackendTransport",
    "ByteSource",
    "CredentialSupplier",
    "IdentitySession"
]
