"""
Subtitle models

Word-level transcript entries, the caption cues grouped from them,
and the SubRip serialization of the resulting track.
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import List


@dataclass
class SubtitleConfig:
    """
    Cue grouping thresholds.

    Attributes:
        max_words_per_cue: Close a cue once it holds this many words
        max_pause: Close a cue when the silence before the next word exceeds this (seconds)
        language: ISO 639-2 tag written on the embedded subtitle stream
    """
    max_words_per_cue: int = 10
    max_pause: float = 0.7
    language: str = "eng"


@dataclass(frozen=True)
class Word:
    """A single transcribed word with its narration offsets"""
    text: str
    start: float
    end: float


@dataclass
class CaptionCue:
    """One caption shown between start and end"""
    index: int
    start: float
    end: float
    text: str

    @property
    def duration(self) -> float:
        return self.end - self.start

    def to_srt(self) -> str:
        return (
            f"{self.index}\n"
            f"{format_timestamp(self.start)} --> {format_timestamp(self.end)}\n"
            f"{self.text}\n\n"
        )


@dataclass
class SubtitleTrack:
    """Ordered, non-overlapping caption cues for one story"""
    cues: List[CaptionCue] = field(default_factory=list)

    def __len__(self) -> int:
        return len(self.cues)

    @property
    def is_empty(self) -> bool:
        return not self.cues

    def to_srt(self) -> str:
        return "".join(cue.to_srt() for cue in self.cues)

    def write_srt(self, output_path: Path) -> Path:
        """Write the track as a UTF-8 .srt file and return its path."""
        output_path = Path(output_path)
        output_path.parent.mkdir(parents=True, exist_ok=True)
        output_path.write_text(self.to_srt(), encoding="utf-8")
        return output_path


def format_timestamp(seconds: float) -> str:
    """
    Convert seconds to SRT timestamp format: HH:MM:SS,mmm

    Args:
        seconds: Time in seconds (e.g., 125.34)

    Returns:
        Formatted timestamp string (e.g., "00:02:05,340")
    """
    if seconds < 0:
        seconds = 0.0

    total_ms = int(round(seconds * 1000))
    hours, rem = divmod(total_ms, 3_600_000)
    minutes, rem = divmod(rem, 60_000)
    secs, millis = divmod(rem, 1000)

    return f"{hours:02d}:{minutes:02d}:{secs:02d},{millis:03d}"
