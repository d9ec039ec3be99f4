"""Transcript segment entity."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field


class TranscriptSegment(BaseModel):
    """Recognized text for one capture window or offline slice."""

    model_config = ConfigDict(frozen=True)

    sequence: int = Field(ge=0, description='Per-session window index establishing append order')
    text: str = ''
