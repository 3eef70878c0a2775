"""Story build and listing endpoints"""

from fastapi import APIRouter, HTTPException, Request

from core.assets import FINAL_NAME, StoryStore
from core.errors import InvalidStoryIdError, StoryNotFoundError
from core.orchestrator import PipelineOrchestrator
from server.models.requests import (
    BuildErrorDetail,
    BuildResponse,
    StoryListResponse,
    StoryStatusResponse,
)


router = APIRouter()

# Failure kinds caused by the request rather than the pipeline
CLIENT_ERROR_STATUS = {
    "InvalidStoryId": 400,
    "StoryNotFound": 404,
    "MissingAsset": 422,
}


def video_url(story_id: str) -> str:
    """Static URL the Final Video is served from"""
    return f"/files/{story_id}/{FINAL_NAME}"


def _error(story_id: str, kind: str, message: str, stage=None, index=None) -> HTTPException:
    detail = BuildErrorDetail(
        story_id=story_id,
        stage=stage,
        kind=kind,
        message=message,
        index=index,
    )
    return HTTPException(
        status_code=CLIENT_ERROR_STATUS.get(kind, 500),
        detail=detail.model_dump()
    )


@router.get("", response_model=StoryListResponse)
async def list_stories(request: Request):
    """List stories that have a completed Final Video"""
    store: StoryStore = request.app.state.store
    return StoryListResponse(stories=store.list_completed())


@router.get("/{story_id}", response_model=StoryStatusResponse)
async def get_story(story_id: str, request: Request):
    """Report whether a story has a published Final Video"""
    store: StoryStore = request.app.state.store

    try:
        directory = store.story_dir(story_id)
    except InvalidStoryIdError as e:
        raise _error(story_id, e.kind, e.message)

    if not directory.is_dir():
        raise _error(story_id, StoryNotFoundError.kind, f"Story with ID {story_id} not found")

    has_video = store.has_final(story_id)
    return StoryStatusResponse(
        story_id=story_id,
        has_video=has_video,
        video_url=video_url(story_id) if has_video else None
    )


@router.post("/{story_id}/build", response_model=BuildResponse)
async def build_story(story_id: str, request: Request):
    """Assemble the story's images and narration into its Final Video"""
    store: StoryStore = request.app.state.store
    orchestrator: PipelineOrchestrator = request.app.state.orchestrator
    in_flight: set = request.app.state.builds_in_flight

    try:
        bundle = store.load_bundle(story_id)
    except (InvalidStoryIdError, StoryNotFoundError) as e:
        raise _error(story_id, e.kind, e.message)

    if story_id in in_flight:
        raise HTTPException(
            status_code=409,
            detail=f"A build for story {story_id} is already running"
        )

    in_flight.add(story_id)
    try:
        result = await orchestrator.build(bundle)
    finally:
        in_flight.discard(story_id)

    if not result.success:
        failure = result.failure
        raise _error(
            story_id,
            failure.kind,
            failure.message,
            stage=failure.stage.value,
            index=failure.index
        )

    return BuildResponse(
        story_id=story_id,
        status="completed",
        video_url=video_url(story_id),
        subtitles_applied=result.subtitles_applied,
        subtitle_note=result.subtitle_note,
        duration=result.duration,
        build_time=result.build_time
    )
