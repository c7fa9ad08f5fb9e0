"""
Orchestrator client - Application service driving one conversation with the agent backend.
Coordinates credentials, transport, decoding, session state and error classification.
"""

from __future__ import annotations
import logging
import time
from contextlib import closing
from typing import Any, Dict, Iterator, List, Optional

from ..domain.errors import ErrorKind, OrchestratorError
from ..domain.interfaces.backend import BackendReply, BackendTransport
from ..domain.interfaces.credentials import CredentialSupplier
from ..domain.models.conversation import OutboundRequest, Session, Turn
from ..domain.models.credentials import Credential
from ..domain.models.events import StreamEvent
from ..domain.services.event_decoder import EventDecoder
from ..domain.services.pseudo_stream import pseudo_stream
from ..infrastructure.config.settings import AppSettings
from .error_classifier import ErrorClassifier


AGENT_DESCRIPTION = "A base ReAct agent built with Google's Agent Development Kit (ADK)"
AGENT_CAPABILITIES = [
    "Neo4j Knowledge Graph (428 music industry entities)",
    "Business Scenarios (534 AI use cases and strategies)",
    "Gemini 2.0 Flash for reasoning and synthesis",
]


class OrchestratorClient:
    """Sends user messages to the orchestrator agent and streams back its answer.

    One client owns one conversation. At most one ``send`` may be in flight;
    callers serialise sends themselves (e.g. by disabling input).
    """

    def __init__(
        self,
        settings: AppSettings,
        credentials: CredentialSupplier,
        transport: Optional[BackendTransport] = None,
        decoder: Optional[EventDecoder] = None,
        classifier: Optional[ErrorClassifier] = None,
        logger: Optional[logging.Logger] = None
    ):
        self._settings = settings
        self._credentials = credentials
        self._logger = logger or logging.getLogger(__name__)
        if transport is None:
            from ..infrastructure.agent_engine.transport import AgentEngineTransport
            transport = AgentEngineTransport(settings.backend, settings.transport)
        self._transport = transport
        self._decoder = decoder or EventDecoder()
        self._classifier = classifier or ErrorClassifier()
        self._session = Session(capacity=settings.conversation.max_history)

    @property
    def session(self) -> Session:
        return self._session

    @property
    def session_id(self) -> str:
        return self._session.session_id

    @property
    def history(self) -> List[Turn]:
        return self._session.history

    def send(self, message: str) -> Iterator[StreamEvent]:
        """Stream the answer to ``message`` as events, in arrival order.

        Raises OrchestratorError (and nothing else) when the call fails. Events
        already yielded stay delivered, but the answer is then not recorded.
        """
        text = self._validate(message)
        started = time.perf_counter()

        try:
            credential = self._credentials.acquire()
        except OrchestratorError:
            raise
        except Exception as e:
            # Whatever the supplier raised, no credential means not signed in
            self._logger.warning(f"Credential acquisition failed: {type(e).__name__}")
            self._logger.debug(f"Credential failure detail: {e!r}")
            raise OrchestratorError(ErrorKind.UNAUTHENTICATED) from None

        # Recorded before the call so a failed attempt still shows what was asked
        self._session.add_user_turn(text)
        request = self._build_request(text, credential)

        fragments: List[str] = []
        try:
            with self._transport.open(request, credential) as reply:
                with closing(self._events(reply)) as events:
                    for event in events:
                        if event.is_text:
                            fragments.append(event.value)
                        yield event
        except Exception as e:
            raise self._classifier.classify(e) from None

        answer = "".join(fragments)
        self._session.add_assistant_turn(answer)
        self._logger.debug(
            f"Answer complete - session {request.session_id}, "
            f"{len(answer)} chars in {(time.perf_counter() - started) * 1000.0:.1f}ms"
        )

    def ask(self, message: str) -> str:
        """Send ``message`` and return the assembled answer text."""
        return "".join(event.value for event in self.send(message) if event.is_text)

    def start_new_session(self) -> str:
        """Forget the conversation; only later sends are affected."""
        self._session.reset()
        self._logger.info(f"Started new session {self._session.session_id}")
        return self._session.session_id

    def describe(self) -> Dict[str, Any]:
        """Summary of the agent this client talks to."""
        backend = self._settings.backend
        return {
            "project_id": backend.project_id,
            "location": backend.location,
            "engine_id": backend.engine_id,
            "display_name": backend.display_name,
            "url": backend.url,
            "description": AGENT_DESCRIPTION,
            "capabilities": list(AGENT_CAPABILITIES),
            "session_id": self.session_id,
        }

    def close(self) -> None:
        self._transport.close()

    def __enter__(self) -> OrchestratorClient:
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()

    def _validate(self, message: Any) -> str:
        if not isinstance(message, str) or not message.strip():
            raise OrchestratorError(ErrorKind.INVALID_INPUT)
        if len(message) > self._settings.conversation.max_message_chars:
            raise OrchestratorError(ErrorKind.INVALID_INPUT)
        return message

    def _build_request(self, message: str, credential: Credential) -> OutboundRequest:
        conversation = self._settings.conversation
        return OutboundRequest(
            message=message,
            session_id=self._session.session_id,
            user_id=credential.user_id or conversation.default_user_id,
            previous_messages=self._session.previous_turns(limit=conversation.max_history),
        )

    def _events(self, reply: BackendReply) -> Iterator[StreamEvent]:
        if reply.is_stream:
            return self._decoder.decode(reply.stream)
        conversation = self._settings.conversation
        return pseudo_stream(
            reply.text or "",
            delay_s=conversation.pseudo_stream_delay_s,
            enabled=conversation.pseudo_stream_enabled,
        )
