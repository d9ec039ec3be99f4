"""Port: speech model lookup."""

from __future__ import annotations

from typing import Protocol


class ModelResolver(Protocol):
    """Turns a configured model id into something a PipelineProvider can load."""

    def resolve(self, model_name: str) -> str:
        """Local weights path (downloading if needed) or a pass-through name.

        Raises ModelResolutionError when the model cannot be made available.
        """
        ...
