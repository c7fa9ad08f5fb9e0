"""
Event decoder - Domain service turning an SSE-style byte stream into stream events.
Pure business logic; the byte source is any object with iter_bytes() and close().
"""

from __future__ import annotations
import codecs
import json
import logging
from typing import Any, Dict, Generator, Iterable, Iterator, List, Optional

from ..errors import BackendError
from ..interfaces.backend import ByteSource
from ..models.events import StreamEvent


EVENT_PREFIX = "data: "


class EventDecoder:
    """Decodes ``data: <json>`` lines into StreamEvents as bytes arrive."""

    def __init__(self, prefix: str = EVENT_PREFIX, logger: Optional[logging.Logger] = None):
        self._prefix = prefix
        self._logger = logger or logging.getLogger(__name__)

    def decode(self, source: ByteSource) -> EventStream:
        """Lazily decode ``source``; it is closed however iteration ends."""
        return EventStream(self._decode_source(source), source)

    def _decode_source(self, source: ByteSource) -> Generator[StreamEvent, None, None]:
        try:
            yield from self.decode_chunks(source.iter_bytes())
        finally:
            source.close()

    def decode_chunks(self, chunks: Iterable[bytes]) -> Iterator[StreamEvent]:
        """Decode raw chunks. Network reads may split a line (or a character) anywhere."""
        utf8 = codecs.getincrementaldecoder("utf-8")(errors="replace")
        buffer = ""
        for chunk in chunks:
            if not chunk:
                continue
            buffer += utf8.decode(chunk)
            lines = buffer.split("\n")
            # Keep the possibly incomplete tail for the next read
            buffer = lines.pop()
            for line in lines:
                yield from self._decode_line(line)
        if buffer:
            self._logger.debug(f"Discarding {len(buffer)} chars of unterminated trailing data")

    def _decode_line(self, line: str) -> Iterator[StreamEvent]:
        if line.endswith("\r"):
            line = line[:-1]
        if not line.startswith(self._prefix):
            return
        try:
            payload = json.loads(line[len(self._prefix):])
        except ValueError as e:
            self._logger.debug(f"Dropping malformed stream line: {e}")
            return
        if not isinstance(payload, dict):
            return
        yield from self.events_from_payload(payload)

    def events_from_payload(self, payload: Dict[str, Any]) -> List[StreamEvent]:
        """Extract events from one parsed payload, in document order."""
        error = payload.get("error")
        if isinstance(error, dict):
            raise BackendError(
                detail=str(error.get("message") or ""),
                status_code=_as_int(error.get("code")),
                status=error.get("status"),
            )

        events: List[StreamEvent] = []
        content = payload.get("content")
        parts = content.get("parts") if isinstance(content, dict) else None
        for part in parts or []:
            if not isinstance(part, dict):
                continue
            text = part.get("text")
            if isinstance(text, str) and text:
                events.append(StreamEvent.text(text))
            call = part.get("functionCall") or part.get("function_call")
            if isinstance(call, dict) and call.get("name"):
                events.append(StreamEvent.tool_call(str(call["name"])))

        metadata = payload.get("metadata")
        if isinstance(metadata, dict) and metadata.get("specialist"):
            events.append(StreamEvent.specialist(str(metadata["specialist"])))
        return events


class EventStream:
    """Iterator of decoded events that owns its byte source.

    ``close()`` releases the source even when iteration never started.
    """

    def __init__(self, events: Generator[StreamEvent, None, None], source: ByteSource):
        self._events = events
        self._source = source

    def __iter__(self) -> EventStream:
        return self

    def __next__(self) -> StreamEvent:
        return next(self._events)

    def close(self) -> None:
        try:
            self._events.close()
        finally:
            self._source.close()


def _as_int(value: Any) -> Optional[int]:
    try:
        return int(value)
    except (TypeError, ValueError):
        return None
