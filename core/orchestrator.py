"""
Pipeline Orchestrator - Assembles one story's Final Video
Validating → Planning → Rendering → Concatenating → Subtitling → Done

Each stage returns a StageOutcome. A failed mandatory stage moves the build
to FAILED and nothing is published; the subtitling stage degrades to an
unsubtitled video instead of failing.
"""

import asyncio
import logging
import os
import shutil
import tempfile
import time
from pathlib import Path
from typing import Callable, List, Optional

from core.assets import AssetBundle
from core.errors import MalformedTranscriptError, PipelineError, PublishError, ScratchError
from core.models.build import (
    BuildFailure,
    BuildResult,
    BuildStage,
    PipelineConfig,
    StageOutcome,
)
from core.models.render import RenderedClip, Window
from core.models.subtitle import SubtitleConfig
from core.planner import plan_segments
from core.renderer import FFmpegRenderer
from core.subtitles import load_subtitle_track

logger = logging.getLogger(__name__)

# Called with each stage as the build enters it
StageCallback = Optional[Callable[[BuildStage], None]]


class PipelineOrchestrator:
    """
    Runs the build state machine for one asset bundle at a time.

    The renderer is injected and may be shared across orchestrators; its
    process bound is the only state shared between concurrent builds.

    Usage:
        renderer = FFmpegRenderer(RenderConfig())
        orchestrator = PipelineOrchestrator(renderer)
        result = await orchestrator.build(store.load_bundle(story_id))
    """

    def __init__(
        self,
        renderer: FFmpegRenderer,
        config: Optional[PipelineConfig] = None,
        subtitle_config: Optional[SubtitleConfig] = None
    ):
        self.renderer = renderer
        self.config = config or PipelineConfig()
        self.subtitle_config = subtitle_config or SubtitleConfig()

    async def build(self, bundle: AssetBundle, on_stage: StageCallback = None) -> BuildResult:
        """
        Build and publish the Final Video for a bundle.

        Pipeline failures are returned in the result, never raised. If the
        awaiting task is cancelled, the scratch area is removed and
        CancelledError propagates; no Final Video is published.

        Args:
            bundle: The story's input files
            on_stage: Optional progress callback

        Returns:
            BuildResult describing the published video or the failure
        """
        start_time = time.time()
        result = BuildResult(story_id=bundle.story_id, success=False, stage=BuildStage.VALIDATING)
        scratch: Optional[Path] = None

        def enter(stage: BuildStage) -> None:
            result.stage = stage
            result.stage_history.append(stage)
            logger.info(f"[{bundle.story_id}] {stage.value}")
            if on_stage:
                on_stage(stage)

        def fail(stage: BuildStage, error: PipelineError) -> BuildResult:
            result.failure = BuildFailure.from_error(stage, error)
            logger.error(
                f"[{bundle.story_id}] {stage.value} failed ({error.kind}): {error.message}"
            )
            enter(BuildStage.FAILED)
            return result

        try:
            enter(BuildStage.VALIDATING)
            outcome = self._validate(bundle)
            if not outcome.ok:
                return fail(BuildStage.VALIDATING, outcome.error)

            enter(BuildStage.PLANNING)
            outcome = await self._plan(bundle)
            if not outcome.ok:
                return fail(BuildStage.PLANNING, outcome.error)
            result.duration, result.windows = outcome.value

            try:
                scratch = Path(tempfile.mkdtemp(prefix=".build-", dir=str(bundle.directory)))
            except OSError as e:
                return fail(BuildStage.RENDERING, ScratchError(
                    f"Could not create scratch directory in {bundle.directory}: {e}",
                    stage="rendering"
                ))

            enter(BuildStage.RENDERING)
            outcome = await self._render(bundle, result.windows, scratch)
            if not outcome.ok:
                return fail(BuildStage.RENDERING, outcome.error)
            clips: List[RenderedClip] = outcome.value

            enter(BuildStage.CONCATENATING)
            outcome = await self._concat(clips, scratch)
            if not outcome.ok:
                return fail(BuildStage.CONCATENATING, outcome.error)
            concat_path: Path = outcome.value

            enter(BuildStage.SUBTITLING)
            staged_path, result.subtitles_applied, result.subtitle_note = await self._subtitle(
                bundle, concat_path, scratch
            )
            outcome = self._publish(staged_path, bundle.final_path)
            if not outcome.ok:
                return fail(BuildStage.SUBTITLING, outcome.error)

            result.final_path = bundle.final_path
            result.success = True
            enter(BuildStage.DONE)
            return result

        except asyncio.CancelledError:
            logger.warning(f"[{bundle.story_id}] build cancelled during {result.stage.value}")
            raise

        finally:
            result.build_time = time.time() - start_time
            if scratch is not None and not self.config.keep_scratch:
                shutil.rmtree(scratch, ignore_errors=True)

    def _validate(self, bundle: AssetBundle) -> StageOutcome:
        try:
            bundle.validate(self.config.segment_count)
        except PipelineError as e:
            return StageOutcome.failure(e)
        return StageOutcome.success()

    async def _plan(self, bundle: AssetBundle) -> StageOutcome:
        try:
            duration = await self.renderer.probe_duration(bundle.audio_path)
            windows = plan_segments(duration, self.config.segment_count)
        except PipelineError as e:
            return StageOutcome.failure(e)

        logger.info(
            f"[{bundle.story_id}] {duration:.3f}s narration in "
            f"{len(windows)} windows of {windows[0].duration:.3f}s"
        )
        return StageOutcome.success((duration, windows))

    async def _render(self, bundle: AssetBundle, windows: List[Window], scratch: Path) -> StageOutcome:
        """Render every window concurrently and join before returning."""
        limit = asyncio.Semaphore(self.config.segment_count)

        async def render_one(window: Window) -> RenderedClip:
            async with limit:
                path = await self.renderer.render_segment(
                    image_path=bundle.image_paths[window.index],
                    audio_path=bundle.audio_path,
                    window=window,
                    output_path=scratch / f"segment_{window.index}.mp4"
                )
                return RenderedClip(window=window, path=path)

        tasks = [asyncio.ensure_future(render_one(w)) for w in windows]
        try:
            clips = await asyncio.gather(*tasks)
        except PipelineError as e:
            await self._cancel_all(tasks)
            return StageOutcome.failure(e)
        except BaseException:
            await self._cancel_all(tasks)
            raise

        return StageOutcome.success(sorted(clips, key=lambda c: c.window.index))

    @staticmethod
    async def _cancel_all(tasks: List[asyncio.Future]) -> None:
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)

    async def _concat(self, clips: List[RenderedClip], scratch: Path) -> StageOutcome:
        try:
            path = await self.renderer.concat_videos(
                video_paths=[clip.path for clip in clips],
                output_path=scratch / "concat.mp4"
            )
        except PipelineError as e:
            return StageOutcome.failure(e)
        return StageOutcome.success(path)

    async def _subtitle(self, bundle: AssetBundle, concat_path: Path, scratch: Path):
        """
        Embed captions when possible.

        Returns:
            (file to publish, subtitles applied, note on why they were skipped)
        """
        try:
            track = load_subtitle_track(bundle.transcript_path, self.subtitle_config)
        except MalformedTranscriptError as e:
            logger.warning(f"[{bundle.story_id}] transcript unusable, continuing without subtitles: {e.message}")
            return concat_path, False, f"malformed transcript: {e.message}"

        if track is None or track.is_empty:
            return concat_path, False, "no transcript"

        muxed_path = scratch / "subtitled.mp4"
        try:
            srt_path = track.write_srt(scratch / "captions.srt")
            await self.renderer.mux_subtitles(
                video_path=concat_path,
                subtitle_path=srt_path,
                output_path=muxed_path,
                language=self.subtitle_config.language
            )
        except (PipelineError, OSError) as e:
            logger.warning(f"[{bundle.story_id}] subtitle embedding failed, publishing without subtitles: {e}")
            return concat_path, False, f"subtitle embedding failed: {e}"

        return muxed_path, True, None

    def _publish(self, staged_path: Path, final_path: Path) -> StageOutcome:
        """Atomically move the staged video over the story's Final Video."""
        try:
            os.replace(staged_path, final_path)
        except OSError as e:
            return StageOutcome.failure(PublishError(
                f"Could not publish {final_path}: {e}",
                stage="subtitling"
            ))
        logger.info(f"Published {final_path}")
        return StageOutcome.success(final_path)
