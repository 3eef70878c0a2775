"""
Subtitle Builder - groups word-level speech timestamps into caption cues.

Transcripts come from the speech-to-text step as JSON shaped like
``{"transcript": "...", "words": [{"word": "Hi", "startTime": "0.100s",
"endTime": "0.400s"}]}``. Offsets are decimal-second strings with an
``s`` suffix; the protobuf duration form ``{"seconds": "1", "nanos": 5e8}``
is accepted as well.
"""

import json
import logging
import math
from pathlib import Path
from typing import Any, List, Optional

from core.errors import MalformedTranscriptError
from core.models.subtitle import CaptionCue, SubtitleConfig, SubtitleTrack, Word

logger = logging.getLogger(__name__)


def parse_offset(value: Any) -> float:
    """
    Parse one transcript offset into seconds.

    Raises:
        MalformedTranscriptError: If the value is not a non-negative time
    """
    if isinstance(value, bool):
        raise MalformedTranscriptError(f"Unparsable offset: {value!r}", stage="subtitling")

    try:
        if isinstance(value, (int, float)):
            seconds = float(value)
        elif isinstance(value, str):
            text = value.strip()
            if text.endswith("s"):
                text = text[:-1]
            seconds = float(text)
        elif isinstance(value, dict):
            seconds = float(value.get("seconds") or 0) + float(value.get("nanos") or 0) / 1e9
        else:
            raise TypeError(type(value).__name__)
    except (TypeError, ValueError):
        raise MalformedTranscriptError(f"Unparsable offset: {value!r}", stage="subtitling")

    if not math.isfinite(seconds) or seconds < 0:
        raise MalformedTranscriptError(f"Offset out of range: {value!r}", stage="subtitling")
    return seconds


def parse_transcript(data: Any) -> List[Word]:
    """
    Convert a transcript document into ordered Words.

    Words with blank text are dropped. A missing ``words`` list is an
    empty transcript, not an error.

    Raises:
        MalformedTranscriptError: On a wrong document shape, unparsable
            offsets, a word ending before it starts, or a word starting
            before its predecessor
    """
    if not isinstance(data, dict):
        raise MalformedTranscriptError("Transcript must be a JSON object", stage="subtitling")

    raw_words = data.get("words") or []
    if not isinstance(raw_words, list):
        raise MalformedTranscriptError("Transcript 'words' must be a list", stage="subtitling")

    words: List[Word] = []
    for i, raw in enumerate(raw_words):
        if not isinstance(raw, dict):
            raise MalformedTranscriptError(f"Word {i} is not an object", stage="subtitling")

        text = str(raw.get("word") or "").strip()
        if not text:
            continue

        start = parse_offset(raw.get("startTime"))
        end = parse_offset(raw.get("endTime"))
        if end < start:
            raise MalformedTranscriptError(
                f"Word {i} ({text!r}) ends at {end} before it starts at {start}",
                stage="subtitling"
            )
        if words and start < words[-1].start:
            raise MalformedTranscriptError(
                f"Word {i} ({text!r}) starts at {start}, before the previous word",
                stage="subtitling"
            )
        words.append(Word(text=text, start=start, end=end))

    return words


def build_cues(words: List[Word], config: Optional[SubtitleConfig] = None) -> List[CaptionCue]:
    """
    Group words into caption cues.

    The open cue closes when it reaches ``max_words_per_cue`` words, at the
    last word, or when the pause before the next word exceeds ``max_pause``.
    A cue closed by the word cap is clamped to end where the next word
    starts, so cues never overlap. A cue is held open past the cap while the
    next word starts at the same time as the cue, so cue starts strictly
    increase.
    """
    config = config or SubtitleConfig()
    cues: List[CaptionCue] = []
    pending: List[Word] = []

    for i, word in enumerate(words):
        pending.append(word)
        next_word = words[i + 1] if i + 1 < len(words) else None

        should_close = (
            next_word is None
            or len(pending) >= config.max_words_per_cue
            or next_word.start - word.end > config.max_pause
        )
        if not should_close:
            continue
        if next_word is not None and next_word.start <= pending[0].start:
            continue

        start = pending[0].start
        end = word.end
        if next_word is not None and next_word.start < end:
            end = max(start, next_word.start)

        cues.append(CaptionCue(
            index=len(cues) + 1,
            start=start,
            end=end,
            text=" ".join(w.text for w in pending),
        ))
        pending = []

    return cues


def load_subtitle_track(
    transcript_path: Optional[Path],
    config: Optional[SubtitleConfig] = None
) -> Optional[SubtitleTrack]:
    """
    Build the caption track for a story.

    Returns:
        The track, or None when there is no transcript or it has no words

    Raises:
        MalformedTranscriptError: If the transcript exists but is unusable
    """
    if transcript_path is None or not Path(transcript_path).exists():
        logger.info("No transcript found; building without subtitles")
        return None

    try:
        with open(transcript_path, "r", encoding="utf-8") as f:
            data = json.load(f)
    except (OSError, UnicodeDecodeError, json.JSONDecodeError) as e:
        raise MalformedTranscriptError(f"Unreadable transcript {transcript_path}: {e}", stage="subtitling")

    words = parse_transcript(data)
    if not words:
        logger.info(f"Transcript {transcript_path} has no words; building without subtitles")
        return None

    track = SubtitleTrack(cues=build_cues(words, config))
    logger.info(f"Built {len(track)} caption cues from {len(words)} words")
    return track
