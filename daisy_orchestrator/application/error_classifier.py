"""
Error classifier - maps any failure of a send onto the user-facing error taxonomy.
Raw backend text is logged, never carried into the classified error.
"""

from __future__ import annotations
import logging
from typing import Optional

import httpx

from ..domain.errors import BackendError, CredentialError, ErrorKind, OrchestratorError
from ..infrastructure.agent_engine.retry import extract_status_code


STATUS_CODE_KINDS = {
    401: ErrorKind.UNAUTHENTICATED,
    403: ErrorKind.UNAUTHENTICATED,
    400: ErrorKind.INVALID_INPUT,
    413: ErrorKind.INVALID_INPUT,
    422: ErrorKind.INVALID_INPUT,
    429: ErrorKind.RATE_LIMITED,
    408: ErrorKind.TIMEOUT,
    504: ErrorKind.TIMEOUT,
}

# Google canonical status names, as reported in error payloads
CANONICAL_STATUS_KINDS = {
    "UNAUTHENTICATED": ErrorKind.UNAUTHENTICATED,
    "PERMISSION_DENIED": ErrorKind.UNAUTHENTICATED,
    "INVALID_ARGUMENT": ErrorKind.INVALID_INPUT,
    "FAILED_PRECONDITION": ErrorKind.INVALID_INPUT,
    "OUT_OF_RANGE": ErrorKind.INVALID_INPUT,
    "RESOURCE_EXHAUSTED": ErrorKind.RATE_LIMITED,
    "DEADLINE_EXCEEDED": ErrorKind.TIMEOUT,
}


class ErrorClassifier:
    """Classifies transport, HTTP-status and backend-reported failures."""

    def __init__(self, logger: Optional[logging.Logger] = None):
        self._logger = logger or logging.getLogger(__name__)

    def classify(self, failure: BaseException) -> OrchestratorError:
        if isinstance(failure, OrchestratorError):
            return failure

        kind = self._kind_for(failure)
        self._logger.warning(f"Request failed ({kind.value}): {type(failure).__name__}")
        self._logger.debug(f"Failure detail: {failure!r}")
        return OrchestratorError(kind)

    def _kind_for(self, failure: BaseException) -> ErrorKind:
        if isinstance(failure, CredentialError):
            return ErrorKind.UNAUTHENTICATED

        if isinstance(failure, BackendError) and failure.status:
            kind = CANONICAL_STATUS_KINDS.get(str(failure.status).upper())
            if kind is not None:
                return kind

        if isinstance(failure, (TimeoutError, httpx.TimeoutException)):
            return ErrorKind.TIMEOUT

        if isinstance(failure, (BackendError, httpx.HTTPStatusError)):
            code = extract_status_code(failure)
            if code is not None:
                return STATUS_CODE_KINDS.get(code, ErrorKind.INTERNAL)

        return ErrorKind.INTERNAL


def classify(failure: BaseException) -> OrchestratorError:
    """Module-level shortcut using a default classifier."""
    return ErrorClassifier().classify(failure)
