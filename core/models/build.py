"""
Build models

State, stage outcomes and the terminal result of one story build.
"""

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, Dict, List, Optional

from core.errors import PipelineError
from core.models.render import Window


SEGMENT_COUNT = 3


class BuildStage(Enum):
    """States of the build state machine, in execution order"""
    VALIDATING = "validating"
    PLANNING = "planning"
    RENDERING = "rendering"
    CONCATENATING = "concatenating"
    SUBTITLING = "subtitling"
    DONE = "done"
    FAILED = "failed"


@dataclass
class PipelineConfig:
    """
    Per-build policy.

    Attributes:
        segment_count: Number of image windows (fixed at 3 for story reels)
        keep_scratch: Leave the build's scratch directory behind for debugging
    """
    segment_count: int = SEGMENT_COUNT
    keep_scratch: bool = False


@dataclass
class BuildFailure:
    """Why a build stopped: the stage, a stable kind tag and the cause"""
    stage: BuildStage
    kind: str
    message: str
    index: Optional[int] = None

    @classmethod
    def from_error(cls, stage: BuildStage, error: PipelineError) -> "BuildFailure":
        return cls(
            stage=stage,
            kind=error.kind,
            message=error.message,
            index=error.index,
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "stage": self.stage.value,
            "kind": self.kind,
            "message": self.message,
            "index": self.index,
        }


@dataclass
class StageOutcome:
    """Tagged result of a single stage: a value, or the error that stopped it"""
    ok: bool
    value: Any = None
    error: Optional[PipelineError] = None

    @classmethod
    def success(cls, value: Any = None) -> "StageOutcome":
        return cls(ok=True, value=value)

    @classmethod
    def failure(cls, error: PipelineError) -> "StageOutcome":
        return cls(ok=False, error=error)


@dataclass
class BuildResult:
    """
    Result from a build.

    Attributes:
        story_id: Story that was built
        success: Whether a Final Video was published
        stage: Terminal stage (DONE or FAILED)
        final_path: Published Final Video (None on failure)
        subtitles_applied: Whether a caption stream was embedded
        subtitle_note: Why subtitles were skipped, when they were
        duration: Narration duration in seconds, once probed
        windows: The segment plan, once computed
        failure: What stopped the build, when it failed
        stage_history: Every stage entered, in order
        build_time: Wall-clock build time in seconds
    """
    story_id: str
    success: bool
    stage: BuildStage
    final_path: Optional[Path] = None
    subtitles_applied: bool = False
    subtitle_note: Optional[str] = None
    duration: Optional[float] = None
    windows: List[Window] = field(default_factory=list)
    failure: Optional[BuildFailure] = None
    stage_history: List[BuildStage] = field(default_factory=list)
    build_time: Optional[float] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "story_id": self.story_id,
            "success": self.success,
            "stage": self.stage.value,
            "final_path": str(self.final_path) if self.final_path else None,
            "subtitles_applied": self.subtitles_applied,
            "subtitle_note": self.subtitle_note,
            "duration": self.duration,
            "windows": [w.to_dict() for w in self.windows],
            "failure": self.failure.to_dict() if self.failure else None,
            "stage_history": [s.value for s in self.stage_history],
            "build_time": self.build_time,
        }
