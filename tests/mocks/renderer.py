"""In-process stand-in for FFmpegRenderer

Writes small marker files instead of encoding so pipeline tests can run
without ffmpeg and still assert on ordering and published bytes.
"""

import asyncio
from pathlib import Path
from typing import List, Optional, Tuple

from core.errors import (
    ConcatError,
    DurationUnknownError,
    RenderError,
    SubtitleEmbedError,
)
from core.models.render import Window


class FakeRenderer:
    """Records every call and produces deterministic clip contents"""

    def __init__(
        self,
        duration: float = 9.0,
        fail_probe: bool = False,
        fail_render_index: Optional[int] = None,
        fail_concat: bool = False,
        fail_mux: bool = False,
        render_delays: Optional[List[float]] = None,
        hang_render: bool = False,
    ):
        self.duration = duration
        self.fail_probe = fail_probe
        self.fail_render_index = fail_render_index
        self.fail_concat = fail_concat
        self.fail_mux = fail_mux
        self.render_delays = render_delays
        self.hang_render = hang_render

        self.calls: List[Tuple[str, object]] = []
        self.render_started = asyncio.Event()
        self.active = 0
        self.max_active = 0

    def count(self, name: str) -> int:
        return sum(1 for call, _ in self.calls if call == name)

    async def probe_duration(self, media_path: Path) -> float:
        self.calls.append(("probe", Path(media_path)))
        if self.fail_probe:
            raise DurationUnknownError(f"ffprobe reported no duration for {media_path}", stage="planning")
        return self.duration

    async def render_segment(self, image_path: Path, audio_path: Path, window: Window, output_path: Path) -> Path:
        self.calls.append(("render", window))
        self.active += 1
        self.max_active = max(self.max_active, self.active)
        self.render_started.set()
        try:
            if self.hang_render:
                await asyncio.Event().wait()
            if self.render_delays:
                await asyncio.sleep(self.render_delays[window.index])
            if window.index == self.fail_render_index:
                raise RenderError(
                    f"ffmpeg exited with 1 for segment {window.index + 1}",
                    stage="rendering",
                    index=window.index
                )
            Path(output_path).write_bytes(f"clip{window.index}:{Path(image_path).name};".encode())
        finally:
            self.active -= 1
        return Path(output_path)

    async def concat_videos(self, video_paths: List[Path], output_path: Path) -> Path:
        self.calls.append(("concat", [Path(p) for p in video_paths]))
        if self.fail_concat:
            raise ConcatError("ffmpeg exited with 1: Non-monotonous DTS", stage="concatenating")
        Path(output_path).write_bytes(b"".join(Path(p).read_bytes() for p in video_paths))
        return Path(output_path)

    async def mux_subtitles(
        self,
        video_path: Path,
        subtitle_path: Path,
        output_path: Path,
        language: str = "eng"
    ) -> Path:
        self.calls.append(("mux", Path(subtitle_path)))
        if self.fail_mux:
            raise SubtitleEmbedError("ffmpeg exited with 1: codec not supported", stage="subtitling")
        Path(output_path).write_bytes(
            Path(video_path).read_bytes() + b"[subs:" + language.encode() + b"]" + Path(subtitle_path).read_bytes()
        )
        return Path(output_path)

    async def check_ffmpeg_installed(self):
        return {
            "installed": True,
            "path": "/usr/bin/ffmpeg",
            "version": "ffmpeg version 6.1 (fake)",
            "ffprobe": "/usr/bin/ffprobe",
        }
