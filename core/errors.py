"""
Pipeline error taxonomy.

Every failure the build pipeline can produce is a PipelineError subclass
carrying a stable ``kind`` tag, the stage it happened in, and (for per-window
failures) the window index. The orchestrator turns these into BuildFailure
records; the HTTP layer maps ``kind`` to a status code.
"""

from typing import Optional


class PipelineError(Exception):
    """Base error for the story reel pipeline."""

    kind = "PipelineError"

    def __init__(
        self,
        message: str,
        stage: Optional[str] = None,
        index: Optional[int] = None
    ):
        super().__init__(message)
        self.message = message
        self.stage = stage
        self.index = index


class InvalidInputError(PipelineError):
    """Raised when the planner receives a non-positive or non-finite duration."""
    kind = "InvalidInput"


class InvalidStoryIdError(PipelineError):
    """Raised when a story ID would escape the stories directory."""
    kind = "InvalidStoryId"


class StoryNotFoundError(PipelineError, FileNotFoundError):
    """Raised when no asset bundle exists for a story ID."""
    kind = "StoryNotFound"


class MissingAssetError(PipelineError):
    """Raised when a bundle lacks a required image or narration track."""
    kind = "MissingAsset"


class DurationUnknownError(PipelineError):
    """Raised when ffprobe cannot report the narration duration."""
    kind = "DurationUnknown"


class MalformedTranscriptError(PipelineError):
    """Raised when transcript offsets are unparsable or out of order."""
    kind = "MalformedTranscript"


class FFmpegNotFoundError(PipelineError):
    """Raised when FFmpeg is not installed or not in PATH."""
    kind = "EncoderMissing"


class RenderError(PipelineError):
    """Raised when rendering one window's clip fails."""
    kind = "RenderFailure"


class ConcatError(PipelineError):
    """Raised when joining the rendered clips fails."""
    kind = "ConcatFailure"


class SubtitleEmbedError(PipelineError):
    """Raised when muxing the caption track fails."""
    kind = "SubtitleEmbedFailure"


class ScratchError(PipelineError):
    """Raised when the build scratch directory cannot be created."""
    kind = "ScratchUnavailable"


class PublishError(PipelineError):
    """Raised when the staged Final Video cannot be moved into place."""
    kind = "PublishFailure"


class EncoderCancelledError(PipelineError):
    """Raised when an encoder process was terminated before finishing."""
    kind = "Cancelled"
