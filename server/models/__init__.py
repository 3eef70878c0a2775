"""Pydantic models for API requests and responses"""

from .requests import (
    BuildResponse,
    BuildErrorDetail,
    StoryListResponse,
    StoryStatusResponse,
)

__all__ = [
    "BuildResponse",
    "BuildErrorDetail",
    "StoryListResponse",
    "StoryStatusResponse",
]
