"""
FastAPI server for Story Reel Builder

Exposes the build and list operations over HTTP and serves published
Final Videos statically under /files.
"""

import logging
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles
from fastapi.responses import JSONResponse

from core.assets import StoryStore
from core.orchestrator import PipelineOrchestrator
from core.renderer import FFmpegRenderer
from server.config import Settings, settings as default_settings
from server.routes import stories

logger = logging.getLogger(__name__)


def create_app(
    settings: Optional[Settings] = None,
    renderer: Optional[FFmpegRenderer] = None
) -> FastAPI:
    """
    Build the API application.

    Args:
        settings: Configuration (environment-backed defaults if omitted)
        renderer: Encoder collaborator; constructed from settings if omitted
    """
    settings = settings or default_settings

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Application lifespan - construct collaborators on startup"""
        logging.basicConfig(
            level=getattr(logging, settings.log_level.upper(), logging.INFO),
            format="%(asctime)s %(levelname)s [%(name)s] %(message)s"
        )
        logger.info(f"Story Reel Builder starting (env={settings.env}, debug={settings.debug})")
        logger.info(f"Stories dir: {Path(settings.stories_dir).resolve()}")

        Path(settings.stories_dir).mkdir(parents=True, exist_ok=True)

        app.state.store = StoryStore(root=settings.stories_dir)
        app.state.renderer = renderer or FFmpegRenderer(
            config=settings.render_config(),
            max_concurrent_encoders=settings.max_concurrent_encoders,
            ffmpeg_path=settings.ffmpeg_path,
            ffprobe_path=settings.ffprobe_path
        )
        app.state.orchestrator = PipelineOrchestrator(
            renderer=app.state.renderer,
            config=settings.pipeline_config(),
            subtitle_config=settings.subtitle_config()
        )
        app.state.builds_in_flight = set()

        yield

        logger.info("Shutting down Story Reel Builder server")

    app = FastAPI(
        title="Story Reel Builder",
        description="Assembles narrated image stories into vertical videos with captions",
        version="0.1.0",
        lifespan=lifespan,
        docs_url="/docs",
        redoc_url="/redoc",
    )

    # CORS middleware for local development
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],  # In production, specify exact origins
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(stories.router, prefix="/stories", tags=["Stories"])

    @app.get("/health")
    async def health():
        """Health check endpoint"""
        return {
            "status": "healthy",
            "service": "story-reel-builder",
            "version": "0.1.0",
            "debug": settings.debug,
            "env": settings.env
        }

    @app.get("/build-video")
    async def build_video(id: str, request: Request):
        """Query-string alias of POST /stories/{id}/build"""
        return await stories.build_story(id, request)

    @app.get("/samples")
    async def samples(request: Request):
        """Bare list of story IDs with a Final Video"""
        return request.app.state.store.list_completed()

    @app.exception_handler(500)
    async def internal_error_handler(request: Request, exc):
        return JSONResponse(
            status_code=500,
            content={
                "error": "Internal Server Error",
                "detail": str(exc),
                "path": str(request.url.path)
            }
        )

    # Final Videos are served from the story directories; the directory is
    # created on startup, so don't require it at import time
    app.mount(
        "/files",
        StaticFiles(directory=settings.stories_dir, check_dir=False),
        name="story_files"
    )

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "server.main:app",
        host="0.0.0.0",
        port=8080,
        reload=True,
        log_level="info"
    )
