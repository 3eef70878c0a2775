"""
Render models for FFmpeg story assembly

These models represent the encoder configuration, the segment plan,
and the per-window clips produced while assembling a story video.
"""

from dataclasses import dataclass
from pathlib import Path


@dataclass
class RenderConfig:
    """
    Configuration for rendering.

    Attributes:
        output_width: Output video width in pixels (vertical canvas)
        output_height: Output video height in pixels
        output_fps: Output frame rate
        video_codec: Video codec (h264 for broad compatibility)
        audio_codec: Audio codec (aac, mp3, etc.)
        audio_bitrate: Audio bitrate (e.g., "192k")
        pixel_format: Pixel format (yuv420p for compatibility)
    """
    output_width: int = 1080
    output_height: int = 1920
    output_fps: float = 30.0
    video_codec: str = "libx264"
    audio_codec: str = "aac"
    audio_bitrate: str = "192k"
    pixel_format: str = "yuv420p"

    # Quality preset (ultrafast, fast, medium, slow, veryslow)
    preset: str = "medium"

    # CRF for quality-based encoding (0-51, lower = better, 23 is default)
    crf: int = 23

    # Seconds before a single encoder invocation is killed
    encoder_timeout: float = 300.0

    @property
    def scale_filter(self) -> str:
        """Fit the still into the canvas, letterboxing with black."""
        w, h = self.output_width, self.output_height
        return (
            f"scale={w}:{h}:force_original_aspect_ratio=decrease,"
            f"pad={w}:{h}:(ow-iw)/2:(oh-ih)/2:black,setsar=1"
        )


@dataclass(frozen=True)
class Window:
    """
    A contiguous time range of the narration assigned to one image.

    Attributes:
        index: Zero-based window position
        start: Offset into the narration (seconds)
        duration: Length of the window (seconds)
    """
    index: int
    start: float
    duration: float

    @property
    def end(self) -> float:
        return self.start + self.duration

    def to_dict(self) -> dict:
        return {
            "index": self.index,
            "start": self.start,
            "duration": self.duration,
        }


@dataclass
class RenderedClip:
    """A clip rendered for one window, waiting to be concatenated."""
    window: Window
    path: Path
