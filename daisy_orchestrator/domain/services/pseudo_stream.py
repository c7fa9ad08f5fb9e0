"""
Pseudo-stream - replays a complete response as paced sentence fragments.
Kept apart from the event decoder so it can be switched off on its own.
"""

from __future__ import annotations
import re
import time
from typing import Callable, Iterator, List

from ..models.events import StreamEvent


# Split after sentence punctuation, before the whitespace that follows it
_SENTENCE_BOUNDARY = re.compile(r"(?<=[.!?])(?=\s)")


def split_sentences(text: str) -> List[str]:
    """Segments whose concatenation is exactly ``text``."""
    return [segment for segment in _SENTENCE_BOUNDARY.split(text) if segment]


def pseudo_stream(
    text: str,
    delay_s: float = 0.03,
    enabled: bool = True,
    sleep: Callable[[float], None] = time.sleep
) -> Iterator[StreamEvent]:
    """Yield ``text`` as TEXT events with a short pause between segments."""
    if not text:
        return
    if not enabled:
        yield StreamEvent.text(text)
        return
    for index, segment in enumerate(split_sentences(text)):
        if index and delay_s > 0:
            sleep(delay_s)
        yield StreamEvent.text(segment)
