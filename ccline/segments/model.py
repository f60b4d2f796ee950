"""Segment showing the active model's name."""

from __future__ import annotations

from ccline.config import SegmentId
from ccline.input import InputData
from ccline.models import ModelConfig
from ccline.segments.base import Segment, SegmentData


class ModelSegment(Segment):
    segment_id = SegmentId.MODEL

    def __init__(self, model_config: ModelConfig | None = None) -> None:
        self._model_config = model_config

    def _config(self) -> ModelConfig:
        return self._model_config if self._model_config is not None else ModelConfig.load()

    def format_model_name(self, model_id: str, display_name: str) -> str:
        """Configured name if recognised, else the upstream name plus any modifier suffix."""
        config = self._config()
        name = config.get_display_name(model_id)
        if name is not None:
            return name
        base = display_name or model_id
        suffix = config.get_display_suffix(model_id)
        return base + suffix if suffix is not None else base

    def collect(self, input_data: InputData) -> SegmentData | None:
        model = input_data.model
        return SegmentData(
            primary=self.format_model_name(model.id, model.display_name),
            metadata={"model_id": model.id, "display_name": model.display_name},
        )