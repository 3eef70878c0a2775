"""Test data factories for consistent test setup"""

import json
from pathlib import Path
from typing import Any, Dict, List, Optional

from core.assets import AUDIO_NAME, IMAGE_TEMPLATE, TRANSCRIPT_NAME
from core.models.subtitle import Word

# Smallest valid PNG header; the fake renderer never decodes it
PNG_BYTES = b"\x89PNG\r\n\x1a\n" + b"\x00" * 32
MP3_BYTES = b"ID3\x03\x00\x00\x00\x00\x00\x00" + b"\xff\xfb" * 64


def make_words(
    texts: Optional[List[str]] = None,
    start: float = 0.0,
    length: float = 0.3,
    gap: float = 0.1
) -> List[Word]:
    """Factory for evenly spaced Words"""
    texts = texts if texts is not None else ["Once", "upon", "a", "time"]
    words = []
    t = start
    for text in texts:
        words.append(Word(text=text, start=t, end=t + length))
        t += length + gap
    return words


def make_transcript(words: Optional[List[Word]] = None, **kwargs) -> Dict[str, Any]:
    """Factory for a speech-to-text transcript document"""
    words = words if words is not None else make_words(**kwargs)
    return {
        "transcript": " ".join(w.text for w in words),
        "words": [
            {
                "word": w.text,
                "startTime": f"{w.start:.3f}s",
                "endTime": f"{w.end:.3f}s",
            }
            for w in words
        ],
    }


def write_story(
    root: Path,
    story_id: str = "story1",
    images: int = 3,
    audio: bool = True,
    transcript: Any = "default",
) -> Path:
    """
    Lay out a story directory.

    Args:
        root: Stories root
        story_id: Directory name
        images: How many b-roll stills to write (from b-roll-1)
        audio: Whether to write the narration
        transcript: "default" for a sample transcript, None for none,
            a str for raw file text, anything else is JSON-encoded
    """
    story_dir = Path(root) / story_id
    story_dir.mkdir(parents=True, exist_ok=True)

    for i in range(images):
        (story_dir / IMAGE_TEMPLATE.format(number=i + 1)).write_bytes(PNG_BYTES)
    if audio:
        (story_dir / AUDIO_NAME).write_bytes(MP3_BYTES)

    if transcript == "default":
        transcript = make_transcript()
    if isinstance(transcript, str):
        (story_dir / TRANSCRIPT_NAME).write_text(transcript, encoding="utf-8")
    elif transcript is not None:
        (story_dir / TRANSCRIPT_NAME).write_text(json.dumps(transcript), encoding="utf-8")

    return story_dir
