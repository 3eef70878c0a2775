"""Data models for Story Reel Builder"""

from .render import (
    RenderConfig,
    Window,
    RenderedClip,
)
from .subtitle import (
    SubtitleConfig,
    Word,
    CaptionCue,
    SubtitleTrack,
    format_timestamp,
)
from .build import (
    SEGMENT_COUNT,
    BuildStage,
    PipelineConfig,
    BuildFailure,
    StageOutcome,
    BuildResult,
)

__all__ = [
    # Render models
    "RenderConfig",
    "Window",
    "RenderedClip",
    # Subtitle models
    "SubtitleConfig",
    "Word",
    "CaptionCue",
    "SubtitleTrack",
    "format_timestamp",
    # Build models
    "SEGMENT_COUNT",
    "BuildStage",
    "PipelineConfig",
    "BuildFailure",
    "StageOutcome",
    "BuildResult",
]
