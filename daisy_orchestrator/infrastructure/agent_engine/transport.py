"""
Agent Engine transport - Infrastructure implementation of the backend transport protocol.
Handles HTTP communication with the orchestrator agent (streamed or single response).
"""

from __future__ import annotations
import json
import logging
from contextlib import contextmanager
from typing import Any, Dict, Iterator, Optional

import httpx

from ...domain.errors import BackendError, BackendTimeoutError
from ...domain.interfaces.backend import BackendReply, BackendTransport
from ...domain.models.conversation import OutboundRequest
from ...domain.models.credentials import Credential
from ..config.settings import BackendSettings, TransportSettings
from .retry import RetryConfig, RetryPolicy


class AgentEngineTransport(BackendTransport):
    """Sends chat requests to the agent backend over HTTP."""

    def __init__(
        self,
        backend: BackendSettings,
        transport: Optional[TransportSettings] = None,
        http_client: Optional[httpx.Client] = None,
        retry_policy: Optional[RetryPolicy] = None,
        logger: Optional[logging.Logger] = None
    ):
        transport = transport or TransportSettings()
        self._logger = logger or logging.getLogger(__name__)
        self._url = backend.url
        if not self._url:
            raise ValueError("Backend URL is not configured (set DAISY_AGENT_BACKEND_URL or project/engine ids)")

        # Timeouts are enforced here, never by the decoder
        self._owns_client = http_client is None
        self._client = http_client or httpx.Client(
            timeout=httpx.Timeout(
                connect=transport.connect_timeout_s,
                read=transport.read_timeout_s,
                write=transport.connect_timeout_s,
                pool=transport.connect_timeout_s
            )
        )
        self._retry = retry_policy or RetryPolicy(
            RetryConfig.from_settings(transport),
            logger=self._logger
        )
        self._logger.info(f"Agent transport initialized - URL: {self._url}")

    @property
    def url(self) -> str:
        return self._url

    @contextmanager
    def open(self, request: OutboundRequest, credential: Credential) -> Iterator[BackendReply]:
        """Issue the request; the HTTP response is closed when the context exits."""
        response = self._retry.execute(lambda: self._send(request, credential))
        try:
            yield self._to_reply(response)
        finally:
            response.close()

    def close(self) -> None:
        if self._owns_client:
            self._client.close()

    def _send(self, request: OutboundRequest, credential: Credential) -> httpx.Response:
        http_request = self._client.build_request(
            "POST",
            self._url,
            json=request.to_payload(),
            headers={
                "Authorization": credential.authorization_header,
                "Content-Type": "application/json",
                "Accept": "text/event-stream, application/json",
            }
        )
        try:
            response = self._client.send(http_request, stream=True)
        except httpx.ConnectTimeout:
            # Nothing reached the backend; left for the retry policy
            raise
        except httpx.TimeoutException as e:
            raise BackendTimeoutError(detail=f"{type(e).__name__}: {e}") from e

        if response.status_code >= 400:
            try:
                body = response.read().decode("utf-8", errors="replace")
            finally:
                response.close()
            self._logger.debug(f"Backend returned HTTP {response.status_code}: {body[:500]}")
            raise BackendError(
                detail=body,
                status_code=response.status_code,
                status=_google_status(body)
            )
        return response

    def _to_reply(self, response: httpx.Response) -> BackendReply:
        content_type = response.headers.get("content-type", "")
        if "application/json" not in content_type:
            return BackendReply(stream=response)

        response.read()
        try:
            body = response.json()
        except ValueError as e:
            raise BackendError(detail=f"Unreadable JSON response: {e}", status_code=response.status_code) from e
        return parse_single_response(body)


def parse_single_response(body: Any) -> BackendReply:
    """Map a complete ``{response, metadata}`` body to a reply."""
    if isinstance(body, dict) and "result" in body and "response" not in body:
        # Callable-function envelope
        body = body["result"]
    if not isinstance(body, dict):
        raise BackendError(detail="Unexpected response shape")

    error = body.get("error")
    if isinstance(error, dict):
        raise BackendError(
            detail=str(error.get("message") or ""),
            status_code=_optional_int(error.get("code")),
            status=error.get("status")
        )

    text = body.get("response")
    if not isinstance(text, str):
        raise BackendError(detail="Response body has no 'response' text")
    metadata = body.get("metadata")
    return BackendReply(text=text, metadata=metadata if isinstance(metadata, dict) else {})


def _google_status(body: str) -> Optional[str]:
    """Extract the canonical status from a Google API error body, if any."""
    try:
        data: Dict[str, Any] = json.loads(body)
    except ValueError:
        return None
    error = data.get("error") if isinstance(data, dict) else None
    if isinstance(error, dict) and isinstance(error.get("status"), str):
        return error["status"]
    return None


def _optional_int(value: Any) -> Optional[int]:
    try:
        return int(value)
    except (TypeError, ValueError):
        return None
