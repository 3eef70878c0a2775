"""
FFmpeg-based renderer for story reel assembly.

Renders one clip per narration window from a still image and an audio
slice, joins the clips with the concat demuxer, and muxes a caption
track into the result. Every encoder invocation goes through a shared
semaphore so concurrent builds cannot spawn unbounded ffmpeg processes.
"""

import asyncio
import logging
import math
import os
import shutil
import tempfile
from contextlib import suppress
from pathlib import Path
from typing import Any, Dict, List, Optional, Type

from core.errors import (
    ConcatError,
    DurationUnknownError,
    EncoderCancelledError,
    FFmpegNotFoundError,
    PipelineError,
    RenderError,
    SubtitleEmbedError,
)
from core.models.render import RenderConfig, Window

logger = logging.getLogger(__name__)


def _seconds(value: float) -> str:
    """Format a time for the ffmpeg command line (microsecond precision)."""
    return f"{value:.6f}"


class FFmpegRenderer:
    """
    FFmpeg-based renderer for story segments and final output.

    Handles:
    - Duration probing (ffprobe)
    - Still-image + audio-slice segment encoding
    - Stream-copy concatenation
    - Subtitle stream muxing
    """

    def __init__(
        self,
        config: Optional[RenderConfig] = None,
        max_concurrent_encoders: int = 4,
        ffmpeg_path: Optional[str] = None,
        ffprobe_path: Optional[str] = None
    ):
        """
        Initialize the renderer.

        Args:
            config: Render configuration (uses defaults if not provided)
            max_concurrent_encoders: Upper bound on live ffmpeg/ffprobe processes
            ffmpeg_path: Explicit ffmpeg executable (searched for if omitted)
            ffprobe_path: Explicit ffprobe executable (searched for if omitted)
        """
        self.config = config or RenderConfig()
        self.max_concurrent_encoders = max_concurrent_encoders
        self._slots = asyncio.Semaphore(max_concurrent_encoders)

        self._ffmpeg_path = ffmpeg_path or self._find_ffmpeg()
        self._ffprobe_path = ffprobe_path or self._find_ffprobe()

    def _find_ffmpeg(self) -> str:
        """Find FFmpeg executable."""
        ffmpeg = shutil.which("ffmpeg")
        if ffmpeg:
            return ffmpeg

        # Check common locations on Windows
        common_paths = [
            r"C:\ffmpeg\bin\ffmpeg.exe",
            r"C:\Program Files\ffmpeg\bin\ffmpeg.exe",
            r"C:\Program Files (x86)\ffmpeg\bin\ffmpeg.exe",
        ]
        for path in common_paths:
            if os.path.exists(path):
                return path

        # Not found - the first invocation raises FFmpegNotFoundError
        return "ffmpeg"

    def _find_ffprobe(self) -> str:
        """Find FFprobe, preferring PATH and then the directory holding ffmpeg."""
        ffprobe = shutil.which("ffprobe")
        if ffprobe:
            return ffprobe

        ffmpeg_dir = os.path.dirname(self._ffmpeg_path)
        for name in ("ffprobe", "ffprobe.exe"):
            candidate = os.path.join(ffmpeg_dir, name)
            if ffmpeg_dir and os.path.exists(candidate):
                return candidate

        return "ffprobe"

    async def _run(
        self,
        cmd: List[str],
        error_cls: Type[PipelineError],
        stage: str,
        index: Optional[int] = None
    ) -> bytes:
        """
        Run one encoder process inside the shared process bound.

        Cancelling the awaiting task kills the process before re-raising.

        Returns:
            The process's stdout

        Raises:
            FFmpegNotFoundError: If the executable does not exist
            EncoderCancelledError: If the process was killed by a signal
            error_cls: If the executable cannot be started, on timeout, or on
                a non-zero exit status
        """
        async with self._slots:
            logger.debug(f"FFmpeg command: {' '.join(cmd)}")
            try:
                process = await asyncio.create_subprocess_exec(
                    *cmd,
                    stdout=asyncio.subprocess.PIPE,
                    stderr=asyncio.subprocess.PIPE
                )
            except FileNotFoundError:
                raise FFmpegNotFoundError(
                    f"{cmd[0]} not found. Please install FFmpeg and add it to your PATH.",
                    stage=stage,
                    index=index
                )
            except OSError as e:
                raise error_cls(
                    f"Could not start {cmd[0]}: {e}",
                    stage=stage,
                    index=index
                )

            try:
                stdout, stderr = await asyncio.wait_for(
                    process.communicate(),
                    timeout=self.config.encoder_timeout
                )
            except asyncio.TimeoutError:
                await self._terminate(process)
                raise error_cls(
                    f"{os.path.basename(cmd[0])} timed out after {self.config.encoder_timeout}s",
                    stage=stage,
                    index=index
                )
            except asyncio.CancelledError:
                await self._terminate(process)
                raise

        if process.returncode is not None and process.returncode < 0:
            raise EncoderCancelledError(
                f"{os.path.basename(cmd[0])} was terminated by signal {-process.returncode}",
                stage=stage,
                index=index
            )
        if process.returncode != 0:
            # Skip the ffmpeg banner - the real error is at the end of stderr
            err_text = (stderr or b"").decode(errors="replace")
            raise error_cls(
                f"{os.path.basename(cmd[0])} exited with {process.returncode}: {err_text[-500:]}",
                stage=stage,
                index=index
            )
        return stdout or b""

    @staticmethod
    async def _terminate(process) -> None:
        """Kill an encoder process that is still running and reap it."""
        if process.returncode is None:
            with suppress(ProcessLookupError):
                process.kill()
        await process.wait()

    async def probe_duration(self, media_path: Path) -> float:
        """
        Get the duration of a media file in seconds using ffprobe.

        Raises:
            DurationUnknownError: If the probe fails or reports no usable duration
        """
        cmd = [
            self._ffprobe_path,
            "-v", "error",
            "-show_entries", "format=duration",
            "-of", "default=noprint_wrappers=1:nokey=1",
            str(media_path)
        ]

        try:
            stdout = await self._run(cmd, DurationUnknownError, stage="planning")
        except FFmpegNotFoundError as e:
            raise DurationUnknownError(e.message, stage="planning")

        text = stdout.decode(errors="replace").strip()
        try:
            duration = float(text)
        except ValueError:
            raise DurationUnknownError(
                f"ffprobe reported no duration for {media_path}: {text!r}",
                stage="planning"
            )

        if not math.isfinite(duration) or duration <= 0:
            raise DurationUnknownError(
                f"ffprobe reported unusable duration {duration} for {media_path}",
                stage="planning"
            )

        logger.info(f"Probed duration of {Path(media_path).name}: {duration:.3f}s")
        return duration

    async def render_segment(
        self,
        image_path: Path,
        audio_path: Path,
        window: Window,
        output_path: Path
    ) -> Path:
        """
        Render one window: the still looped as video over its audio slice.

        Both inputs are limited to the window duration and the output uses
        shortest semantics, so the clip runs exactly window.duration.

        Args:
            image_path: Still image for this window
            audio_path: Full narration track
            window: The time range to cut from the narration
            output_path: Clip file to write

        Returns:
            Path to the rendered clip

        Raises:
            RenderError: If ffmpeg fails or writes nothing
        """
        cfg = self.config
        duration = _seconds(window.duration)
        cmd = [
            self._ffmpeg_path,
            "-y",
            "-loglevel", "error",
            "-loop", "1",
            "-framerate", str(cfg.output_fps),
            "-t", duration,
            "-i", str(image_path),
            "-ss", _seconds(window.start),  # Seek before input (fast, sample-accurate for audio)
            "-t", duration,
            "-i", str(audio_path),
            "-map", "0:v:0",
            "-map", "1:a:0",
            "-vf", cfg.scale_filter,
            "-c:v", cfg.video_codec,
            "-preset", cfg.preset,
            "-crf", str(cfg.crf),
            "-pix_fmt", cfg.pixel_format,
            "-r", str(cfg.output_fps),
            "-c:a", cfg.audio_codec,
            "-b:a", cfg.audio_bitrate,
            "-t", duration,
            "-shortest",
            str(output_path)
        ]

        logger.info(
            f"Rendering segment {window.index + 1}: "
            f"{window.start:.3f}s to {window.end:.3f}s from {Path(image_path).name}"
        )
        await self._run(cmd, RenderError, stage="rendering", index=window.index)

        if not os.path.exists(output_path) or os.path.getsize(output_path) == 0:
            raise RenderError(
                f"Segment {window.index + 1} produced no output at {output_path}",
                stage="rendering",
                index=window.index
            )
        return Path(output_path)

    async def concat_videos(self, video_paths: List[Path], output_path: Path) -> Path:
        """
        Concatenate clips in order using the FFmpeg concat demuxer.

        Clips are stream-copied (no re-encode), which relies on every clip
        having been rendered with identical settings.

        Raises:
            ConcatError: If a clip is missing or ffmpeg fails
        """
        if not video_paths:
            raise ConcatError("No clips provided for concatenation", stage="concatenating")

        for i, path in enumerate(video_paths):
            if not os.path.exists(path) or os.path.getsize(path) == 0:
                raise ConcatError(
                    f"Clip {i + 1} is missing or empty: {path}",
                    stage="concatenating",
                    index=i
                )

        concat_file = self._generate_concat_file(video_paths, directory=Path(output_path).parent)

        try:
            cmd = [
                self._ffmpeg_path,
                "-y",
                "-loglevel", "error",
                "-f", "concat",
                "-safe", "0",
                "-i", concat_file,
                "-map", "0",
                "-c", "copy",  # Stream copy (fast, no re-encoding)
                "-movflags", "+faststart",
                str(output_path)
            ]
            await self._run(cmd, ConcatError, stage="concatenating")
        finally:
            if os.path.exists(concat_file):
                os.remove(concat_file)

        if not os.path.exists(output_path):
            raise ConcatError(f"Concatenation produced no output at {output_path}", stage="concatenating")

        logger.info(f"Concatenated {len(video_paths)} clips into {Path(output_path).name}")
        return Path(output_path)

    async def mux_subtitles(
        self,
        video_path: Path,
        subtitle_path: Path,
        output_path: Path,
        language: str = "eng"
    ) -> Path:
        """
        Embed an SRT file as a mov_text stream without re-encoding audio/video.

        Raises:
            SubtitleEmbedError: If ffmpeg fails or writes nothing
        """
        cmd = [
            self._ffmpeg_path,
            "-y",
            "-loglevel", "error",
            "-i", str(video_path),
            "-i", str(subtitle_path),
            "-map", "0",
            "-map", "1",
            "-c", "copy",
            "-c:s", "mov_text",
            "-metadata:s:s:0", f"language={language}",
            "-movflags", "+faststart",
            "-f", "mp4",
            str(output_path)
        ]

        await self._run(cmd, SubtitleEmbedError, stage="subtitling")

        if not os.path.exists(output_path) or os.path.getsize(output_path) == 0:
            raise SubtitleEmbedError(f"Subtitle mux produced no output at {output_path}", stage="subtitling")
        return Path(output_path)

    def _generate_concat_file(self, video_paths: List[Path], directory: Optional[Path] = None) -> str:
        """
        Generate FFmpeg concat demuxer file.

        Args:
            video_paths: List of video file paths
            directory: Where to create the list file (system temp if omitted)

        Returns:
            Path to the concat list file
        """
        fd, concat_path = tempfile.mkstemp(
            suffix=".txt",
            prefix="ffmpeg_concat_",
            dir=str(directory) if directory else None
        )

        with os.fdopen(fd, 'w', encoding="utf-8") as f:
            for path in video_paths:
                # The demuxer resolves relative entries against the list file, so use absolute paths
                abs_path = os.path.abspath(path).replace("\\", "/")
                escaped_path = abs_path.replace("'", "'\\''")
                f.write(f"file '{escaped_path}'\n")

        return concat_path

    async def check_ffmpeg_installed(self) -> Dict[str, Any]:
        """
        Check if FFmpeg and FFprobe are properly installed.

        Returns:
            Dict with installation status and version info
        """
        status: Dict[str, Any] = {"installed": False, "path": None, "version": None, "ffprobe": None}
        try:
            process = await asyncio.create_subprocess_exec(
                self._ffmpeg_path, "-version",
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE
            )
            stdout, _ = await process.communicate()

            if process.returncode == 0:
                status.update(
                    installed=True,
                    path=self._ffmpeg_path,
                    version=stdout.decode(errors="replace").split('\n')[0]
                )
        except OSError:
            pass

        if not status["installed"]:
            status["error"] = "FFmpeg not found. Please install FFmpeg and add it to your PATH."
            return status

        try:
            process = await asyncio.create_subprocess_exec(
                self._ffprobe_path, "-version",
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE
            )
            await process.communicate()
            if process.returncode == 0:
                status["ffprobe"] = self._ffprobe_path
        except OSError:
            pass

        if status["ffprobe"] is None:
            status["error"] = "FFprobe not found. It ships with FFmpeg; check your installation."
        return status
