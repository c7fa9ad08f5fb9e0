"""Domain services package."""

from .event_decoder import EventDecoder, EventStream, EVENT_PREFIX
from .pseudo_stream import pseudo_stream, split_sentences

__all__ = [
    "EventDecoder",
    "EventStream",
    "EVENT_PREFIX",
    "pseudo_stream",
    "split_sentences"
]
