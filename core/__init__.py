"""Core components - planning, subtitles, rendering and build orchestration"""

from .errors import PipelineError
from .planner import plan_segments
from .subtitles import build_cues, load_subtitle_track, parse_transcript
from .assets import AssetBundle, StoryStore

# Note: PipelineOrchestrator and FFmpegRenderer are NOT imported here to keep
# `import core` free of subprocess machinery. Import them directly:
#   from core.orchestrator import PipelineOrchestrator
#   from core.renderer import FFmpegRenderer

__all__ = [
    "PipelineError",
    "plan_segments",
    "build_cues",
    "load_subtitle_track",
    "parse_transcript",
    "AssetBundle",
    "StoryStore",
]
