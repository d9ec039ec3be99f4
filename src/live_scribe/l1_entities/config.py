"""Configuration Pydantic models — pure schema, no infrastructure defaults."""

from __future__ import annotations

from pydantic import BaseModel, Field, model_validator


class TranscriptionConfig(BaseModel):
    model: str
    chunk_length_s: float = Field(gt=0)
    stride_length_s: float = Field(ge=0)
    language: str

    @model_validator(mode='after')
    def _stride_inside_chunk(self) -> TranscriptionConfig:
        if self.stride_length_s >= self.chunk_length_s:
            raise ValueError('stride_length_s must be shorter than chunk_length_s')
        return self


class CaptureConfig(BaseModel):
    window_seconds: float = Field(gt=0)
    container_preference: list[str]
    device: int | str | None = None  # None = system default input


class FileConfig(BaseModel):
    window_seconds: float = Field(gt=0)


class OutputConfig(BaseModel):
    directory: str
    save_audio: bool


class AppConfig(BaseModel):
    transcription: TranscriptionConfig
    capture: CaptureConfig
    file: FileConfig
    output: OutputConfig
