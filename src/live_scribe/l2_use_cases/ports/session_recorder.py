"""Port: full-session capture used for archival."""

from __future__ import annotations

from typing import Protocol


class SessionRecorder(Protocol):
    """Uninterrupted full-session capture. Never stopped by window rotation."""

    @property
    def is_recording(self) -> bool: ...

    def start(self) -> None: ...

    def stop(self) -> None: ...
