"""Pydantic models for API requests/responses"""

from pydantic import BaseModel, Field
from typing import List, Optional


class BuildResponse(BaseModel):
    """Response from a successful story build"""
    story_id: str = Field(..., description="Story that was built")
    status: str = Field("completed", description="Build status")
    video_url: str = Field(..., description="Static URL of the Final Video")
    subtitles_applied: bool = Field(..., description="Whether captions were embedded")
    subtitle_note: Optional[str] = Field(None, description="Why captions were skipped, if they were")
    duration: Optional[float] = Field(None, description="Narration duration in seconds")
    build_time: Optional[float] = Field(None, description="Build wall-clock time in seconds")


class BuildErrorDetail(BaseModel):
    """Structured failure carried in a 4xx/5xx build response"""
    story_id: str = Field(..., description="Story the build was for")
    stage: Optional[str] = Field(None, description="Pipeline stage that failed")
    kind: str = Field(..., description="Failure kind, e.g. MissingAsset or RenderFailure")
    message: str = Field(..., description="Cause of the failure")
    index: Optional[int] = Field(None, description="Window index for per-segment failures")


class StoryListResponse(BaseModel):
    """Stories that have a completed Final Video"""
    stories: List[str] = Field(default_factory=list, description="Story IDs, sorted")


class StoryStatusResponse(BaseModel):
    """Whether a story has a published Final Video"""
    story_id: str
    has_video: bool
    video_url: Optional[str] = None
