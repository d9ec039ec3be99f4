"""Use case: the authoritative transcript and its per-session ordering channel."""

from __future__ import annotations

import logging
from collections.abc import Callable

from live_scribe.l1_entities.transcript import TranscriptSegment

log = logging.getLogger('scribe.transcript')


class TranscriptAccumulator:
    """Append-only transcript text.

    Appends must arrive in sequence order; callers that complete work out of
    order go through an ``OrderedSegmentChannel`` from ``open_channel()``.
    """

    def __init__(self, on_updated: Callable[[str], None] | None = None) -> None:
        self._text = ''
        self._on_updated = on_updated

    def set_listener(self, on_updated: Callable[[str], None] | None) -> None:
        self._on_updated = on_updated

    def reset(self) -> None:
        """Clear the transcript. Only for a brand-new session."""
        self._text = ''

    def append(self, segment: TranscriptSegment) -> None:
        if not segment.text:
            return
        self._text = f'{self._text}{segment.text} '
        log.debug('Appended segment %d (%d chars)', segment.sequence, len(segment.text))
        if self._on_updated is not None:
            self._on_updated(self._text)

    def current_text(self) -> str:
        return self._text

    def open_channel(self) -> OrderedSegmentChannel:
        """Start a fresh ordering buffer whose sequence numbers begin at 0."""
        return OrderedSegmentChannel(self)


class OrderedSegmentChannel:
    """Reorders completions so the accumulator sees sequence 0, 1, 2, ...

    Every sequence number must be either submitted or skipped exactly once;
    a missing number holds back all later segments.
    """

    def __init__(self, accumulator: TranscriptAccumulator) -> None:
        self._accumulator = accumulator
        self._next_sequence = 0
        self._pending: dict[int, TranscriptSegment | None] = {}

    @property
    def next_sequence(self) -> int:
        return self._next_sequence

    @property
    def pending(self) -> int:
        return len(self._pending)

    def submit(self, segment: TranscriptSegment) -> None:
        self._put(segment.sequence, segment)

    def skip(self, sequence: int) -> None:
        """Mark *sequence* consumed without text (dropped or failed window)."""
        self._put(sequence, None)

    def _put(self, sequence: int, segment: TranscriptSegment | None) -> None:
        if sequence < self._next_sequence or sequence in self._pending:
            log.warning('Ignoring duplicate or stale segment %d (next=%d)', sequence, self._next_sequence)
            return
        self._pending[sequence] = segment
        while self._next_sequence in self._pending:
            ready = self._pending.pop(self._next_sequence)
            if ready is not None:
                self._accumulator.append(ready)
            self._next_sequence += 1
