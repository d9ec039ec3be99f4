"""Capture window entities — the raw container bytes of one closed window."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field


class CaptureBlob(BaseModel):
    """Opaque compressed/container bytes tagged with their mime type."""

    model_config = ConfigDict(frozen=True)

    data: bytes
    mime_type: str

    @property
    def size(self) -> int:
        return len(self.data)


class CaptureWindow(BaseModel):
    """One closed slice of live audio designated for transcription."""

    model_config = ConfigDict(frozen=True)

    sequence: int = Field(ge=0)
    blob: CaptureBlob
    started_at: float = Field(description='Monotonic clock reading when the window opened')
