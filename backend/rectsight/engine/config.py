"""Engine configuration: quantization, decomposition, mapping and pipeline knobs."""

from __future__ import annotations

import enum
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from rectsight.engine.grid import BACKGROUND, Pixel
from rectsight.errors import ConfigError

if TYPE_CHECKING:
    from rectsight.config import Settings


class AlphaMode(str, enum.Enum):
    CONTINUOUS = "continuous"  # alpha quantized like every other channel
    BINARY = "binary"  # alpha -> 0/255, non-opaque pixels collapse to TRANSPARENT
    NONE = "none"  # alpha passed through untouched
    BACKGROUND = "background"  # low-alpha pixels become the BACKGROUND sentinel


@dataclass
class QuantizerConfig:
    """Controls channel precision and alpha handling."""

    step: int = 16
    alpha_mode: AlphaMode = AlphaMode.CONTINUOUS
    # BINARY: opaque iff alpha > threshold. BACKGROUND: background iff alpha <= threshold.
    alpha_threshold: int = 127

    def validate(self) -> None:
        if isinstance(self.step, bool) or not isinstance(self.step, int):
            raise ConfigError(f"Quantization step must be an integer, got {self.step!r}")
        if not 1 <= self.step <= 255:
            raise ConfigError(f"Quantization step must be in [1, 255], got {self.step}")
        if not 0 <= self.alpha_threshold <= 255:
            raise ConfigError(f"Alpha threshold must be in [0, 255], got {self.alpha_threshold}")
        try:
            self.alpha_mode = AlphaMode(self.alpha_mode)
        except ValueError as e:
            raise ConfigError(f"Unknown alpha mode: {self.alpha_mode!r}") from e


@dataclass
class DecomposerConfig:
    """Controls the greedy rectangle search.

    The scan is O(W²·H²) on adversarial input, so grid sides are bounded.
    """

    exclude_background: bool = False
    background: Pixel = BACKGROUND
    max_width: int | None = 512
    max_height: int | None = 512
    # Rows scanned between two event-loop yields in decompose_async()
    rows_per_batch: int = 16

    def validate(self) -> None:
        for name in ("max_width", "max_height"):
            limit = getattr(self, name)
            if limit is not None and limit < 1:
                raise ConfigError(f"{name} must be positive or None, got {limit}")
        if self.rows_per_batch < 1:
            raise ConfigError(f"rows_per_batch must be positive, got {self.rows_per_batch}")
        if len(self.background) != 4:
            raise ConfigError(f"Background color must have 4 channels, got {self.background!r}")


@dataclass
class MapperConfig:
    scale: float = 0.1

    def validate(self) -> None:
        if not self.scale > 0:
            raise ConfigError(f"Scale factor must be positive, got {self.scale}")


@dataclass
class PipelineConfig:
    """Bundles the stage configs and toggles the optional rendering stages."""

    quantize: bool = True
    quantizer: QuantizerConfig = field(default_factory=QuantizerConfig)
    decomposer: DecomposerConfig = field(default_factory=DecomposerConfig)
    mapper: MapperConfig = field(default_factory=MapperConfig)
    render_expressions: bool = False
    render_svg: bool = False

    @classmethod
    def from_settings(cls, settings: Settings) -> PipelineConfig:
        mode = AlphaMode(settings.alpha_mode)
        return cls(
            quantizer=QuantizerConfig(step=settings.quantize_step, alpha_mode=mode),
            decomposer=DecomposerConfig(
                exclude_background=mode is AlphaMode.BACKGROUND,
                max_width=settings.max_grid_side,
                max_height=settings.max_grid_side,
            ),
            mapper=MapperConfig(scale=settings.scale),
        )

    def validate(self) -> None:
        self.quantizer.validate()
        self.decomposer.validate()
        self.mapper.validate()
